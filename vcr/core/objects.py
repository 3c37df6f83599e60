"""
Object store for frames.

Frames are append-only: each one is written into a temporary directory and
renamed into place, and an existing frame directory is never touched again.

Layout of one frame:
- frames/{frame_id}/
  - .frame/...snapshot files...
  - parent     (parent ids, one per line; empty for a root frame)
  - author
  - message
  - timestamp
"""

import bisect
import os
import shutil
import tempfile
from pathlib import Path, PurePosixPath
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .errors import AmbiguousReference, FrameCollision, FrameNotFound, InvalidPath
from .frame import EMPTY, Frame, create_frame_id, snapshot_digest, utc_timestamp
from .storage import RepositoryStorage
from ..logging import get_vcr_logger

SNAPSHOT_DIR = ".frame"

log = get_vcr_logger("objects")

SnapshotSource = Union[Mapping[str, bytes], Path]


class ObjectStore:
    """
    Immutable, content-addressed frame records.

    Short-id lookups use a sorted index of all frame ids, built lazily and
    rebuilt after every frame this store creates.
    """

    def __init__(self, storage: RepositoryStorage):
        self.storage = storage
        self.frames_dir = storage.frames_dir
        self._index: Optional[List[str]] = None

    def create_frame(
        self,
        parents: Sequence[str],
        author: str,
        message: str,
        snapshot: SnapshotSource,
        timestamp: Optional[str] = None,
    ) -> str:
        """
        Write a new frame.

        Args:
            parents: Parent frame ids, first parent first
            author: Author of the frame
            message: Commit message
            snapshot: Mapping of path to bytes, or a directory to copy
            timestamp: Creation time (default: now)

        Returns:
            The new frame id

        Raises:
            FrameCollision: If a frame with the derived id already exists
        """
        files = read_tree(snapshot) if isinstance(snapshot, Path) else dict(snapshot)
        parents = [p for p in parents if p]
        timestamp = timestamp or utc_timestamp()
        frame_id = create_frame_id(
            timestamp, author, parents, message, snapshot_digest(files)
        )

        target = self.frames_dir / frame_id
        if target.exists():
            raise FrameCollision(f"Frame {frame_id} already exists")

        temp_dir = Path(tempfile.mkdtemp(dir=self.frames_dir, prefix=".new-"))
        try:
            snapshot_root = temp_dir / SNAPSHOT_DIR
            snapshot_root.mkdir()
            for path, content in files.items():
                destination = snapshot_root / checked_path(path)
                destination.parent.mkdir(parents=True, exist_ok=True)
                destination.write_bytes(content)

            (temp_dir / "parent").write_text("\n".join(parents), encoding="utf-8")
            (temp_dir / "author").write_text(author, encoding="utf-8")
            (temp_dir / "message").write_text(message, encoding="utf-8")
            (temp_dir / "timestamp").write_text(timestamp, encoding="utf-8")

            try:
                os.rename(temp_dir, target)
            except OSError as e:
                raise FrameCollision(f"Frame {frame_id} already exists") from e
        except BaseException:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise

        self._index = None
        log.debug(
            f"Created frame {frame_id[:8]}",
            frame_id=frame_id,
            parents=parents,
            files=len(files),
        )
        return frame_id

    def frame_exists(self, frame_id: str) -> bool:
        if not frame_id or frame_id.startswith("."):
            return False
        return (self.frames_dir / frame_id).is_dir()

    def read_frame(self, frame_id: str) -> Frame:
        """
        Load frame metadata.

        Raises:
            FrameNotFound: If the frame does not exist
        """
        if not self.frame_exists(frame_id):
            raise FrameNotFound(f"Frame not found: {frame_id}")

        frame_dir = self.frames_dir / frame_id
        parents = [
            line.strip()
            for line in (frame_dir / "parent").read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]
        return Frame(
            frame_id=frame_id,
            parents=parents,
            author=(frame_dir / "author").read_text(encoding="utf-8"),
            message=(frame_dir / "message").read_text(encoding="utf-8"),
            timestamp=(frame_dir / "timestamp").read_text(encoding="utf-8"),
        )

    def read_snapshot(self, frame_id: str) -> Dict[str, bytes]:
        """
        Load every file stored in a frame.

        The EMPTY frame id stands for the empty tree of a fresh repository.
        """
        if frame_id == EMPTY:
            return {}
        if not self.frame_exists(frame_id):
            raise FrameNotFound(f"Frame not found: {frame_id}")
        return read_tree(self.frames_dir / frame_id / SNAPSHOT_DIR)

    def read_file(self, frame_id: str, path: str) -> Optional[bytes]:
        """Content of one path in a frame, or None if the frame lacks it."""
        if frame_id == EMPTY:
            return None
        if not self.frame_exists(frame_id):
            raise FrameNotFound(f"Frame not found: {frame_id}")
        try:
            return (self.frames_dir / frame_id / SNAPSHOT_DIR / checked_path(path)).read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            return None

    def list_frames(self) -> List[str]:
        """All stored frame ids, sorted."""
        self._index = None
        return list(self._frame_index())

    def resolve_prefix(self, partial: str) -> str:
        """
        Expand a unique frame id prefix to the full id.

        Raises:
            AmbiguousReference: If several frame ids share the prefix
            FrameNotFound: If none does
        """
        matches = self.prefix_matches(partial)
        if not matches:
            raise FrameNotFound(f"No frame id starts with '{partial}'")
        if len(matches) > 1:
            raise AmbiguousReference(partial, matches)
        return matches[0]

    def prefix_matches(self, partial: str) -> List[str]:
        """All frame ids starting with ``partial``."""
        if not partial:
            return []
        matches = _scan(self._frame_index(), partial)
        if not matches:
            # Another process may have added frames since the index was built
            self._index = None
            matches = _scan(self._frame_index(), partial)
        return matches

    def _frame_index(self) -> List[str]:
        if self._index is None:
            self._index = sorted(
                p.name
                for p in self.frames_dir.iterdir()
                if p.is_dir() and not p.name.startswith(".")
            )
        return self._index


def _scan(index: List[str], partial: str) -> List[str]:
    start = bisect.bisect_left(index, partial)
    matches = []
    for frame_id in index[start:]:
        if not frame_id.startswith(partial):
            break
        matches.append(frame_id)
    return matches


def read_tree(root: Path) -> Dict[str, bytes]:
    """Read every file below ``root`` keyed by its relative POSIX path."""
    files: Dict[str, bytes] = {}
    if not root.exists():
        return files
    for path in root.rglob("*"):
        if path.is_file():
            files[path.relative_to(root).as_posix()] = path.read_bytes()
    return files


def checked_path(path: str) -> PurePosixPath:
    relative = PurePosixPath(path)
    if relative.is_absolute() or ".." in relative.parts or not relative.parts:
        raise InvalidPath(f"Not a repository-relative path: {path}")
    return relative
