"""
Storage handle for a repository directory.

All on-disk pointer files go through this class so that every write is
atomic and no caller builds raw paths into the repository by hand.
"""

import fcntl
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from loguru import logger

from .errors import InvalidName

TRACKS = "tracks"
ROOTS = "roots"
TAGS = "tags"


class RepositoryStorage:
    """
    File-based storage for a repository.

    Layout under the marker directory:
    - .vcr/
      - frames/
        - {frame_id}/  (see ObjectStore)
      - tracks/
        - {track_name}  (contains frame id or is empty)
      - roots/
        - {track_name}  (frame id captured when the track was created)
      - tags/
        - {tag_name}  (contains frame id)
      - staging/
      - HEAD  ("", "ref: tracks/<name>", "ref: tags/<name>" or frame id)
      - MERGE  (pending merge, only while a conflicted merge is unresolved)
      - config
      - lock
      - .log
    """

    def __init__(self, base_dir: Path):
        """
        Initialize storage.

        Args:
            base_dir: Repository marker directory (e.g. <work>/.vcr)
        """
        self.base_dir = base_dir
        self.frames_dir = self.base_dir / "frames"
        self.tracks_dir = self.base_dir / TRACKS
        self.roots_dir = self.base_dir / ROOTS
        self.tags_dir = self.base_dir / TAGS
        self.staging_dir = self.base_dir / "staging"
        self.head_file = self.base_dir / "HEAD"
        self.merge_file = self.base_dir / "MERGE"
        self.config_file = self.base_dir / "config"
        self.lock_file = self.base_dir / "lock"
        self.log_file = self.base_dir / ".log"
        self._lock_depth = 0

    def create_layout(self) -> None:
        """Create the empty repository layout."""
        self.base_dir.mkdir(parents=True)
        for directory in (
            self.frames_dir,
            self.tracks_dir,
            self.roots_dir,
            self.tags_dir,
            self.staging_dir,
        ):
            directory.mkdir()
        self.write_pointer(self.head_file, "")
        self.config_file.touch()
        self.log_file.touch()

    def pointer_path(self, namespace: str, name: str) -> Path:
        """
        Path of a named pointer file.

        Args:
            namespace: One of "tracks", "roots", "tags"
            name: Pointer name, may contain "/" for grouping

        Raises:
            InvalidName: If the name would leave the namespace directory
        """
        if not self.is_pointer_name(name):
            raise InvalidName(f"Invalid pointer name: '{name}'")
        namespace_dir = self.base_dir / namespace
        path = namespace_dir / name
        if namespace_dir.resolve() not in path.resolve().parents:
            raise InvalidName(f"Invalid pointer name: '{name}'")
        return path

    @staticmethod
    def is_pointer_name(name: str) -> bool:
        """True iff ``name`` is relative and has no empty, "." or ".." parts."""
        if not name or name.startswith("/") or "\\" in name:
            return False
        return all(part not in ("", ".", "..") for part in name.split("/"))

    def read_pointer(self, path: Path) -> Optional[str]:
        """
        Read a pointer file.

        Returns:
            Stripped file content, or None if the file does not exist
        """
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None

    def write_pointer(self, path: Path, value: str) -> None:
        """
        Atomically replace a pointer file.

        Writes to a temporary file in the same directory, then renames it
        into place, so readers see either the old or the new value.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with self.atomic_write(path) as f:
            f.write(value)

    def delete_pointer(self, path: Path) -> bool:
        """
        Delete a pointer file and any directories its name created.

        Returns:
            True if deleted, False if didn't exist
        """
        try:
            path.unlink()
        except FileNotFoundError:
            return False

        namespace_dir = self._namespace_dir(path)
        parent = path.parent
        while namespace_dir is not None and parent != namespace_dir:
            try:
                parent.rmdir()
            except OSError:
                break
            parent = parent.parent
        return True

    def list_pointers(self, namespace: str) -> List[str]:
        """
        List pointer names in a namespace, including grouped names.

        Returns:
            Sorted names relative to the namespace directory
        """
        directory = self.base_dir / namespace
        if not directory.exists():
            return []
        return sorted(
            p.relative_to(directory).as_posix()
            for p in directory.rglob("*")
            if p.is_file() and not p.name.startswith(".")
        )

    @contextmanager
    def atomic_write(self, filepath: Path, mode: str = "w") -> Iterator:
        """
        Context manager for atomic file write operations.

        Args:
            filepath: Target file path
            mode: "w" for text, "wb" for bytes

        Yields:
            File object for writing
        """
        temp_fd, temp_path = tempfile.mkstemp(
            dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp"
        )

        try:
            encoding = None if "b" in mode else "utf-8"
            with os.fdopen(temp_fd, mode, encoding=encoding) as f:
                yield f
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            os.replace(temp_path, filepath)

        except BaseException:
            try:
                os.unlink(temp_path)
            except FileNotFoundError:
                pass
            raise

    @contextmanager
    def lock(self) -> Iterator[None]:
        """
        Hold the repository's exclusive advisory lock.

        Mutating operations run inside this context; readers never take it.
        Re-entrant within one handle.
        """
        if self._lock_depth:
            self._lock_depth += 1
            try:
                yield
            finally:
                self._lock_depth -= 1
            return

        with open(self.lock_file, "a") as fh:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            logger.trace(f"Acquired lock {self.lock_file}")
            self._lock_depth = 1
            try:
                yield
            finally:
                self._lock_depth = 0
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    def _namespace_dir(self, path: Path) -> Optional[Path]:
        for directory in (self.tracks_dir, self.roots_dir, self.tags_dir):
            if directory in path.parents:
                return directory
        return None
