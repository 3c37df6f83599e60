"""
Status and diff computation.

Compares the committed snapshot, the staging area and the working tree by
content. Rendering of the differences is left to vcr.render.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .objects import ObjectStore
from .refs import ReferenceLayer
from .staging import StagingArea
from .worktree import WorkingTree


class DiffSide(str, Enum):
    """One side of a comparison."""

    WORKING = "working"
    STAGING = "staging"
    FRAME = "frame"


@dataclass
class Status:
    """
    Classification of working tree files.

    Attributes:
        staged: Files whose staged copy matches the working file
        modified_unstaged: Files whose working content matches neither the
            staged copy nor the current frame
    """

    staged: List[str] = field(default_factory=list)
    modified_unstaged: List[str] = field(default_factory=list)

    def is_clean(self) -> bool:
        return not self.staged and not self.modified_unstaged


@dataclass(frozen=True)
class FileDiff:
    """A path whose content differs between two sides; None means absent."""

    path: str
    old: Optional[bytes]
    new: Optional[bytes]

    @property
    def change(self) -> str:
        if self.old is None:
            return "added"
        if self.new is None:
            return "removed"
        return "modified"


class StatusOrchestrator:
    """Three-way comparison of committed, staged and working content."""

    def __init__(
        self,
        objects: ObjectStore,
        refs: ReferenceLayer,
        staging: StagingArea,
        worktree: WorkingTree,
    ):
        self.objects = objects
        self.refs = refs
        self.staging = staging
        self.worktree = worktree

    def compute_status(self) -> Status:
        """
        Classify every non-ignored working tree file.

        Content is compared byte for byte; modification times are never used.
        """
        committed = self.objects.read_snapshot(self.refs.current_frame())
        status = Status()

        for path in self.worktree.files():
            working = self.worktree.read(path)
            if working is None:
                continue
            staged = self.staging.read(path)

            if staged is not None and staged == working:
                status.staged.append(path)
            elif working != staged and working != committed.get(path):
                status.modified_unstaged.append(path)

        return status

    def side_contents(self, side: DiffSide, frame: Optional[str] = None) -> Dict[str, bytes]:
        """
        Full tree of one side.

        STAGING is the current frame overlaid with staged content, i.e. what
        the next commit would record. FRAME defaults to the current frame.
        """
        if side == DiffSide.WORKING:
            return self.worktree.read_all()
        if side == DiffSide.STAGING:
            tree = self.objects.read_snapshot(self.refs.current_frame())
            tree.update(self.staging.contents())
            return tree
        frame_id = self.refs.resolve_frame(frame) if frame else self.refs.current_frame()
        return self.objects.read_snapshot(frame_id)

    def compute_diff(
        self,
        paths: Optional[Iterable[str]] = None,
        source: DiffSide = DiffSide.WORKING,
        target: DiffSide = DiffSide.STAGING,
        frame: Optional[str] = None,
    ) -> List[FileDiff]:
        """
        Differences between two sides.

        Args:
            paths: Restrict to these repository-relative paths (default: all)
            source: Newer side
            target: Older side
            frame: Reference used when a side is FRAME

        Returns:
            One FileDiff per differing path, sorted by path
        """
        new_tree = self.side_contents(source, frame)
        old_tree = self.side_contents(target, frame)

        selected = list(paths) if paths else None
        if selected is None:
            candidates = sorted(set(new_tree) | set(old_tree))
            ignored = self.worktree.ignore_set()
            candidates = [p for p in candidates if p not in ignored]
        else:
            candidates = sorted(set(selected))

        return self.compare(old_tree, new_tree, candidates)

    @staticmethod
    def compare(
        old_tree: Dict[str, bytes],
        new_tree: Dict[str, bytes],
        paths: Optional[Iterable[str]] = None,
    ) -> List[FileDiff]:
        """Differing paths of two trees (default: every path in either)."""
        candidates = paths if paths is not None else sorted(set(old_tree) | set(new_tree))
        diffs = []
        for path in candidates:
            old = old_tree.get(path)
            new = new_tree.get(path)
            if old != new:
                diffs.append(FileDiff(path=path, old=old, new=new))
        return diffs
