"""
Staging area: file contents queued for the next frame.

Staged files are stored under <root>/staging/ at their repository-relative
paths. Each staged file is written atomically.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from .errors import NotStaged
from .objects import checked_path, read_tree
from .storage import RepositoryStorage
from ..logging import get_vcr_logger

log = get_vcr_logger("staging")


class StageOutcome(str, Enum):
    """Result of staging one path."""

    STAGED = "staged"
    NO_CHANGE = "no_change"


class StagingArea:
    """Mutable mapping of path to bytes, persisted in the repository."""

    def __init__(self, storage: RepositoryStorage):
        self.storage = storage
        self.root = storage.staging_dir

    def _path(self, path: str) -> Path:
        return self.root / checked_path(path)

    def read(self, path: str) -> Optional[bytes]:
        """Staged content of a path, or None if it is not staged."""
        try:
            return self._path(path).read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            return None

    def stage(self, path: str, content: bytes) -> StageOutcome:
        """
        Queue content for a path.

        Returns:
            NO_CHANGE if the staged copy is already byte-identical, else STAGED
        """
        if self.read(path) == content:
            return StageOutcome.NO_CHANGE

        target = self._path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with self.storage.atomic_write(target, mode="wb") as f:
            f.write(content)
        log.debug(f"Staged {path}", path=path, size=len(content))
        return StageOutcome.STAGED

    def unstage(self, path: str) -> None:
        """
        Remove a path from the staging area.

        Raises:
            NotStaged: If the path is not staged
        """
        target = self._path(path)
        if not target.is_file():
            raise NotStaged(f"Not staged: {path}")
        target.unlink()
        self._prune(target.parent)
        log.debug(f"Unstaged {path}", path=path)

    def paths(self) -> List[str]:
        """Sorted staged paths."""
        if not self.root.exists():
            return []
        return sorted(
            p.relative_to(self.root).as_posix()
            for p in self.root.rglob("*")
            if p.is_file() and not _is_temp(p)
        )

    def contents(self) -> Dict[str, bytes]:
        """Every staged path with its content."""
        return {
            path: content
            for path, content in read_tree(self.root).items()
            if not _is_temp(Path(path))
        }

    def is_empty(self) -> bool:
        return not self.paths()

    def drain(self) -> None:
        """
        Remove everything from the staging area.

        Only called once the frame built from this content is durably stored.
        """
        for path in sorted(self.root.rglob("*"), reverse=True):
            if path.is_dir():
                path.rmdir()
            else:
                path.unlink()
        log.debug("Drained staging area")

    def _prune(self, directory: Path) -> None:
        while directory != self.root and self.root in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                break
            directory = directory.parent


def _is_temp(path: Path) -> bool:
    return path.name.startswith(".") and path.name.endswith(".tmp")
