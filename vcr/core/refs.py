"""
Reference layer: HEAD, tracks and tags.

This is the only component that writes pointer files. HEAD holds one of:
- "" (fresh repository, no frames yet)
- "ref: tracks/<name>" or "ref: tags/<name>"
- a frame id (detached)

A symbolic reference may only name a track or tag pointer, never another
symbolic reference, so dereferencing is a single step and cannot loop.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Optional, Union

from .errors import (
    BrokenReference,
    DetachedOrStaleTrack,
    FrameNotFound,
    InvalidName,
    NameAlreadyExists,
    NameNotFound,
    UnrecognisedReference,
)
from .frame import EMPTY
from .objects import ObjectStore
from .storage import ROOTS, TAGS, TRACKS, RepositoryStorage
from ..logging import get_vcr_logger

REF_PREFIX = "ref: "
HEAD = "HEAD"

log = get_vcr_logger("refs")


@dataclass(frozen=True)
class ResolvedFrame:
    """A reference that named a frame directly."""

    frame_id: str

    @property
    def head_value(self) -> str:
        return self.frame_id


@dataclass(frozen=True)
class SymbolicTrack:
    name: str

    @property
    def head_value(self) -> str:
        return f"{REF_PREFIX}{TRACKS}/{self.name}"


@dataclass(frozen=True)
class SymbolicTag:
    name: str

    @property
    def head_value(self) -> str:
        return f"{REF_PREFIX}{TAGS}/{self.name}"


ResolvedTarget = Union[ResolvedFrame, SymbolicTrack, SymbolicTag]


@dataclass(frozen=True)
class Track:
    """
    A named line of history.

    Attributes:
        name: Track name
        head: Most recent frame on the track, or EMPTY
        root: Frame the track was created at, or EMPTY
    """

    name: str
    head: str
    root: str


def validate_name(name: str) -> str:
    """
    Check a track or tag name.

    Raises:
        InvalidName: For empty names, whitespace, "..", hidden or absolute parts
    """
    if not name or name == HEAD or name.startswith(REF_PREFIX.strip()):
        raise InvalidName(f"Invalid name: '{name}'")
    if any(ch.isspace() for ch in name) or name.startswith("/") or name.endswith("/"):
        raise InvalidName(f"Invalid name: '{name}'")
    if "//" in name or name.startswith("-"):
        raise InvalidName(f"Invalid name: '{name}'")
    for part in PurePosixPath(name).parts:
        if part in ("", ".", "..") or part.startswith("."):
            raise InvalidName(f"Invalid name: '{name}'")
    return name


class ReferenceLayer:
    """Resolution and atomic updates of HEAD, tracks and tags."""

    def __init__(self, storage: RepositoryStorage, objects: ObjectStore):
        self.storage = storage
        self.objects = objects

    # -- HEAD --

    def head(self) -> str:
        """Raw HEAD content."""
        value = self.storage.read_pointer(self.storage.head_file)
        return value or EMPTY

    def set_head(self, target: Union[ResolvedTarget, str]) -> None:
        """
        Point HEAD at a track, a tag, or a frame id.

        Args:
            target: A resolved target, or a raw HEAD value
        """
        value = target if isinstance(target, str) else target.head_value
        self.storage.write_pointer(self.storage.head_file, value)
        log.debug(f"HEAD -> {value or '(empty)'}")

    def current_track_name(self) -> Optional[str]:
        """Name of the checked-out track, or None when on a tag or detached."""
        head = self.head()
        prefix = f"{REF_PREFIX}{TRACKS}/"
        if head.startswith(prefix):
            return head[len(prefix):]
        return None

    def current_frame(self) -> str:
        """Frame HEAD resolves to; EMPTY in a repository with no frames."""
        return self.dereference(self.head())

    # -- Resolution --

    def resolve_target(self, name: str) -> ResolvedTarget:
        """
        Resolve a user-supplied name.

        Order: frame id prefix, then tag, then track. "HEAD" names the
        current frame.

        Raises:
            AmbiguousReference: If the name is a prefix of several frame ids
            UnrecognisedReference: If nothing matches
        """
        if name == HEAD:
            return ResolvedFrame(self.current_frame())

        matches = self.objects.prefix_matches(name)
        if matches:
            return ResolvedFrame(self.objects.resolve_prefix(name))

        if self.tag_exists(name):
            return SymbolicTag(name)
        if self.track_exists(name):
            return SymbolicTrack(name)

        raise UnrecognisedReference(
            f"'{name}' not recognised as either a track, tag, or frame."
        )

    def resolve_frame(self, name: str) -> str:
        """Resolve a name all the way to a frame id (possibly EMPTY)."""
        return self.dereference(self.resolve_target(name).head_value)

    def dereference(self, ref: str) -> str:
        """
        Follow a HEAD-style reference to a frame id.

        Returns:
            Frame id, or EMPTY for a track that has no frames yet

        Raises:
            BrokenReference: If the pointer file or the frame it names is missing
        """
        if ref.startswith(REF_PREFIX):
            target = ref[len(REF_PREFIX):]
            namespace, _, name = target.partition("/")
            if namespace not in (TRACKS, TAGS) or not name:
                raise BrokenReference(f"Symbolic reference to non-pointer: {ref}")
            path = self._existing(namespace, name)
            value = self.storage.read_pointer(path) if path is not None else None
            if value is None:
                raise BrokenReference(f"{ref} points at a missing {namespace[:-1]}")
            if value.startswith(REF_PREFIX):
                raise BrokenReference(f"{ref} points at another symbolic reference")
            ref = value

        if ref and not self.objects.frame_exists(ref):
            raise BrokenReference(f"Reference names a missing frame: {ref}")
        return ref

    # -- Tracks --

    def track_exists(self, name: str) -> bool:
        path = self._existing(TRACKS, name)
        return path is not None and path.is_file()

    def read_track(self, name: str) -> Track:
        """
        Load a track.

        Raises:
            NameNotFound: If the track does not exist
        """
        path = self._existing(TRACKS, name)
        head = self.storage.read_pointer(path) if path is not None else None
        if head is None:
            raise NameNotFound(f"Track not found: {name}")
        root = self.storage.read_pointer(self.storage.pointer_path(ROOTS, name))
        return Track(name=name, head=head, root=root or EMPTY)

    def list_tracks(self) -> List[str]:
        return self.storage.list_pointers(TRACKS)

    def create_track(self, name: str, frame_id: str) -> Track:
        """
        Create a track whose head and root are both ``frame_id``.

        Raises:
            NameAlreadyExists: If the track is active
        """
        validate_name(name)
        if self.track_exists(name):
            raise NameAlreadyExists(f"Track already exists: {name}")
        self._check_free(TRACKS, name)
        self.storage.write_pointer(self.storage.pointer_path(ROOTS, name), frame_id)
        self.storage.write_pointer(self.storage.pointer_path(TRACKS, name), frame_id)
        log.info(f"Created track {name} at {frame_id[:8] or '(empty)'}")
        return Track(name=name, head=frame_id, root=frame_id)

    def update_track_head(self, name: str, frame_id: str, expected: str) -> None:
        """
        Move a track's head, provided it still sits at ``expected``.

        Raises:
            NameNotFound: If the track does not exist
            DetachedOrStaleTrack: If the head moved since ``expected`` was read
        """
        current = self.read_track(name).head
        if current != expected:
            raise DetachedOrStaleTrack(
                f"Track {name} is at {current[:8] or '(empty)'}, "
                f"expected {expected[:8] or '(empty)'}"
            )
        self.storage.write_pointer(self.storage.pointer_path(TRACKS, name), frame_id)
        log.debug(f"Track {name} -> {frame_id[:8]}")

    def delete_track(self, name: str) -> None:
        """
        Remove a track's pointer records. Its frames are kept.

        Raises:
            NameNotFound: If the track does not exist
        """
        path = self._existing(TRACKS, name)
        if path is None or not self.storage.delete_pointer(path):
            raise NameNotFound(f"Track not found: {name}")
        self.storage.delete_pointer(self.storage.pointer_path(ROOTS, name))
        log.info(f"Deleted track {name}")

    # -- Tags --

    def tag_exists(self, name: str) -> bool:
        path = self._existing(TAGS, name)
        return path is not None and path.is_file()

    def read_tag(self, name: str) -> str:
        path = self._existing(TAGS, name)
        value = self.storage.read_pointer(path) if path is not None else None
        if value is None:
            raise NameNotFound(f"Tag not found: {name}")
        return value

    def list_tags(self) -> List[str]:
        return self.storage.list_pointers(TAGS)

    def create_tag(self, name: str, frame_id: str) -> None:
        """
        Create an immutable tag.

        Raises:
            NameAlreadyExists: If the tag exists
            FrameNotFound: If the frame does not exist
        """
        validate_name(name)
        if self.tag_exists(name):
            raise NameAlreadyExists(f"Tag already exists: {name}")
        self._check_free(TAGS, name)
        if not self.objects.frame_exists(frame_id):
            raise FrameNotFound(f"Cannot tag missing frame: {frame_id or '(empty)'}")
        self.storage.write_pointer(self.storage.pointer_path(TAGS, name), frame_id)
        log.info(f"Tagged {frame_id[:8]} as '{name}'")

    def delete_tag(self, name: str) -> None:
        path = self._existing(TAGS, name)
        if path is None or not self.storage.delete_pointer(path):
            raise NameNotFound(f"Tag not found: {name}")
        log.info(f"Deleted tag {name}")

    def _check_free(self, namespace: str, name: str) -> None:
        # "a" and "a/b" cannot both exist as pointer files
        path = self.storage.pointer_path(namespace, name)
        namespace_dir = self.storage.base_dir / namespace
        if path.is_dir() or any(
            parent.is_file() for parent in path.parents if namespace_dir in parent.parents
        ):
            raise InvalidName(f"'{name}' clashes with an existing {namespace[:-1]} name")

    def _existing(self, namespace: str, name: str) -> Optional[Path]:
        # Names that escape the namespace never refer to a pointer
        try:
            return self.storage.pointer_path(namespace, name)
        except InvalidName:
            return None
