"""
Three-way merge of two frames into a track.

Every path is classified against the nearest common ancestor. One-sided and
identical changes are applied; paths changed differently on both sides are
conflicts, written with markers into the staging area and never resolved
automatically.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .errors import (
    DetachedOrStaleTrack,
    MergeConflictError,
    NoMergeInProgress,
    StagingNotEmpty,
)
from .frame import EMPTY
from .history import History
from .objects import ObjectStore
from .refs import ReferenceLayer, SymbolicTrack
from .staging import StagingArea
from .storage import RepositoryStorage
from ..logging import get_vcr_logger

log = get_vcr_logger("merge")


class PathState(str, Enum):
    """How one path changed on each side since the common ancestor."""

    UNCHANGED = "unchanged"
    SOURCE_ONLY = "source_only"
    TARGET_ONLY = "target_only"
    BOTH_SAME = "both_same"
    CONFLICT = "conflict"


class MergeOutcome(str, Enum):
    NO_MERGE_NECESSARY = "no_merge_necessary"
    FAST_FORWARD = "fast_forward"
    MERGED = "merged"


@dataclass(frozen=True)
class PathMerge:
    """Classification of one path; None means the side lacks the path."""

    path: str
    state: PathState
    base: Optional[bytes]
    source: Optional[bytes]
    target: Optional[bytes]


@dataclass(frozen=True)
class MergeResult:
    """
    Successful merge outcome.

    Attributes:
        outcome: What the merge did
        track: Track that was merged into
        source: Source frame id
        target: Target frame id before the merge
        frame_id: New merge frame (MERGED) or new track head (FAST_FORWARD)
        paths: Classification of every path (MERGED only)
    """

    outcome: MergeOutcome
    track: str
    source: str
    target: str
    frame_id: Optional[str] = None
    paths: List[PathMerge] = field(default_factory=list)


class PendingMerge(BaseModel):
    """State of a merge stopped on conflicts, kept until the next commit."""

    track: str = Field(description="Track being merged into")
    source: str = Field(description="Frame id merged in")
    target: str = Field(description="Track head when the merge started")
    removed: List[str] = Field(
        default_factory=list, description="Paths the merge deletes"
    )
    conflicts: List[str] = Field(
        default_factory=list, description="Paths written with conflict markers"
    )


def classify(
    base: Dict[str, bytes], source: Dict[str, bytes], target: Dict[str, bytes]
) -> List[PathMerge]:
    """
    Classify every path present in any of the three trees.

    Returns:
        One PathMerge per path, sorted by path
    """
    result = []
    for path in sorted(set(base) | set(source) | set(target)):
        b, s, t = base.get(path), source.get(path), target.get(path)
        if s == t:
            state = PathState.UNCHANGED if s == b else PathState.BOTH_SAME
        elif s == b:
            state = PathState.TARGET_ONLY
        elif t == b:
            state = PathState.SOURCE_ONLY
        else:
            state = PathState.CONFLICT
        result.append(PathMerge(path=path, state=state, base=b, source=s, target=t))
    return result


def conflict_content(
    target: Optional[bytes],
    source: Optional[bytes],
    target_label: str,
    source_label: str,
) -> bytes:
    """Both versions of a conflicted file between labelled markers."""
    parts = [f"<<<<<<< {target_label}\n".encode("utf-8")]
    for content, marker in (
        (target, b"=======\n"),
        (source, f">>>>>>> {source_label}\n".encode("utf-8")),
    ):
        if content:
            parts.append(content if content.endswith(b"\n") else content + b"\n")
        parts.append(marker)
    return b"".join(parts)


def merged_content(
    entry: PathMerge, target_label: str, source_label: str
) -> Optional[bytes]:
    """Content a path takes in the merge result; None means deleted."""
    if entry.state == PathState.SOURCE_ONLY:
        return entry.source
    if entry.state == PathState.CONFLICT:
        return conflict_content(entry.target, entry.source, target_label, source_label)
    return entry.target


class MergeEngine:
    """Merges a source frame into a track."""

    def __init__(
        self,
        storage: RepositoryStorage,
        objects: ObjectStore,
        refs: ReferenceLayer,
        staging: StagingArea,
        history: History,
    ):
        self.storage = storage
        self.objects = objects
        self.refs = refs
        self.staging = staging
        self.history = history

    def merge(
        self,
        source_ref: str,
        target_ref: Optional[str],
        author: str,
        message: Optional[str] = None,
    ) -> MergeResult:
        """
        Merge ``source_ref`` into the track named by ``target_ref``.

        Args:
            source_ref: Track, tag or frame id prefix to merge in
            target_ref: Track to merge into (default: the checked-out track)
            author: Author of a merge frame
            message: Merge frame message

        Returns:
            MergeResult for NO_MERGE_NECESSARY, FAST_FORWARD and MERGED

        Raises:
            DetachedOrStaleTrack: If the target is not a track
            StagingNotEmpty: If staged changes or a pending merge exist
            NoCommonAncestor: If the frames share no history
            MergeConflictError: If paths conflict; the result is staged when
                the target track is checked out
        """
        track = self._target_track(target_ref)
        source = self.refs.resolve_frame(source_ref)
        target = self.refs.read_track(track).head

        if source == target or source == EMPTY or self.history.has_ancestor(target, source):
            log.info(f"No merge necessary: {source_ref} is already in {track}")
            return MergeResult(MergeOutcome.NO_MERGE_NECESSARY, track, source, target)

        self._require_clean()

        if target == EMPTY or self.history.has_ancestor(source, target):
            self.refs.update_track_head(track, source, expected=target)
            log.info(f"Fast-forwarded {track} to {source[:8]}")
            return MergeResult(
                MergeOutcome.FAST_FORWARD, track, source, target, frame_id=source
            )

        base = self.history.common_ancestor(target, source)
        paths = classify(
            self.objects.read_snapshot(base),
            self.objects.read_snapshot(source),
            self.objects.read_snapshot(target),
        )
        merged: Dict[str, bytes] = {}
        removed: List[str] = []
        for entry in paths:
            content = merged_content(entry, track, source_ref)
            if content is None:
                removed.append(entry.path)
            else:
                merged[entry.path] = content
        conflicts = [e.path for e in paths if e.state == PathState.CONFLICT]

        if conflicts:
            if self.refs.current_track_name() == track:
                self._stage_result(track, source, target, paths, merged, removed, conflicts)
            log.warning(f"Merge of {source_ref} into {track} has conflicts: {conflicts}")
            raise MergeConflictError(conflicts)

        frame_id = self.objects.create_frame(
            [target, source],
            author,
            message or f"Merge {source_ref} into {track}",
            merged,
        )
        self.refs.update_track_head(track, frame_id, expected=target)
        log.info(f"Merged {source_ref} into {track} as {frame_id[:8]}")
        return MergeResult(
            MergeOutcome.MERGED, track, source, target, frame_id=frame_id, paths=paths
        )

    def pending(self) -> Optional[PendingMerge]:
        """The merge awaiting a commit, if any."""
        raw = self.storage.read_pointer(self.storage.merge_file)
        if not raw:
            return None
        return PendingMerge.model_validate_json(raw)

    def clear_pending(self) -> None:
        self.storage.merge_file.unlink(missing_ok=True)

    def abort(self) -> PendingMerge:
        """
        Drop a conflicted merge and everything it staged.

        Raises:
            NoMergeInProgress: If there is no pending merge
        """
        pending = self.pending()
        if pending is None:
            raise NoMergeInProgress("No merge in progress")
        self.staging.drain()
        self.clear_pending()
        log.info(f"Aborted merge of {pending.source[:8]} into {pending.track}")
        return pending

    def _target_track(self, target_ref: Optional[str]) -> str:
        if target_ref is None:
            track = self.refs.current_track_name()
            if track is None:
                raise DetachedOrStaleTrack("HEAD is not on a track; name a target track")
            return track
        resolved = self.refs.resolve_target(target_ref)
        if not isinstance(resolved, SymbolicTrack):
            raise DetachedOrStaleTrack(f"Merge target must be a track: {target_ref}")
        return resolved.name

    def _require_clean(self) -> None:
        if self.pending() is not None:
            raise StagingNotEmpty("A merge is already in progress; commit or abort it")
        if not self.staging.is_empty():
            raise StagingNotEmpty("Commit or unstage staged changes before merging")

    def _stage_result(
        self,
        track: str,
        source: str,
        target: str,
        paths: List[PathMerge],
        merged: Dict[str, bytes],
        removed: List[str],
        conflicts: List[str],
    ) -> None:
        for entry in paths:
            content = merged.get(entry.path)
            if content is not None and content != entry.target:
                self.staging.stage(entry.path, content)
        pending = PendingMerge(
            track=track,
            source=source,
            target=target,
            removed=removed,
            conflicts=conflicts,
        )
        self.storage.write_pointer(self.storage.merge_file, pending.model_dump_json())
