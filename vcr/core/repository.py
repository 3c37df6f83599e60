"""
Repository facade.

Wires the object store, reference layer, staging area, status orchestrator
and history/merge engines onto one repository directory, and provides the
operations the command line exposes.
"""

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .errors import (
    AlreadyInitialized,
    DetachedOrStaleTrack,
    MissingCommitMessage,
    NotARepository,
    NothingToCommit,
    NotStaged,
    StagingNotEmpty,
    TrackCheckedOut,
)
from .frame import EMPTY, Frame
from .history import History
from .merge import MergeEngine, MergeResult, PendingMerge
from .objects import ObjectStore
from .refs import ReferenceLayer, ResolvedTarget, SymbolicTrack, Track, validate_name
from .staging import StageOutcome, StagingArea
from .status import DiffSide, FileDiff, Status, StatusOrchestrator
from .storage import RepositoryStorage
from .worktree import IgnoreLoader, WorkingTree
from ..config import Config, config as default_config
from ..logging import get_logger_instance, get_vcr_logger, log_action, track_operation
from ..settings import SettingsProvider, TomlSettings

Confirm = Callable[[str], bool]

log = get_vcr_logger("repository")


def _decline(question: str) -> bool:
    return False


class Repository:
    """
    A working directory under version control.

    Provides operations for:
    - Tracks and tags
    - Staging and committing
    - Status and diffs
    - History and merging

    Example:
        >>> repo = Repository.init(Path("project"))
        >>> repo.stage(["a.txt"])
        >>> frame_id = repo.commit("first")
    """

    def __init__(
        self,
        work_dir: Path,
        settings: Optional[SettingsProvider] = None,
        confirm: Optional[Confirm] = None,
        ignore_loader: Optional[IgnoreLoader] = None,
        app_config: Optional[Config] = None,
    ):
        """
        Open an existing repository rooted at ``work_dir``.

        Args:
            work_dir: Working tree root containing the marker directory
            settings: Settings provider (default: the repository config file)
            confirm: Yes/no collaborator for destructive operations
            ignore_loader: Collaborator returning ignored paths
            app_config: Application configuration (default: from environment)
        """
        self.config = app_config or default_config
        self.work_dir = work_dir
        self.repo_dir = work_dir / self.config.repository.dir_name
        if not self.repo_dir.is_dir():
            raise NotARepository(
                f"{work_dir} isn't a vcr directory. Use `vcr init` to make it one."
            )

        self.storage = RepositoryStorage(self.repo_dir)
        self.settings: SettingsProvider = settings or TomlSettings(self.storage.config_file)
        self.confirm: Confirm = confirm or _decline
        self.objects = ObjectStore(self.storage)
        self.refs = ReferenceLayer(self.storage, self.objects)
        self.staging = StagingArea(self.storage)
        self.worktree = WorkingTree(
            work_dir,
            self.config.repository.dir_name,
            self.config.repository.ignore_file,
            ignore_loader,
        )
        self.status_engine = StatusOrchestrator(
            self.objects, self.refs, self.staging, self.worktree
        )
        self.lineage = History(self.objects)
        self.merges = MergeEngine(
            self.storage, self.objects, self.refs, self.staging, self.lineage
        )

        logger_instance = get_logger_instance()
        if logger_instance is not None:
            logger_instance.attach_action_log(self.repo_dir)

    @classmethod
    def init(
        cls,
        path: Optional[Path] = None,
        default_track: Optional[str] = None,
        **kwargs,
    ) -> "Repository":
        """
        Create a repository, its default track, and check that track out.

        Raises:
            AlreadyInitialized: If the directory is already a repository
        """
        app_config = kwargs.get("app_config") or default_config
        work_dir = (path or Path.cwd()).resolve()
        storage = RepositoryStorage(work_dir / app_config.repository.dir_name)
        if storage.base_dir.exists():
            raise AlreadyInitialized(f"Already a vcr repository: {work_dir}")
        track = validate_name(default_track or app_config.repository.default_track)
        work_dir.mkdir(parents=True, exist_ok=True)
        storage.create_layout()

        repo = cls(work_dir, **kwargs)
        repo._action(f">>> init {work_dir}")
        with repo.storage.lock():
            repo.refs.create_track(track, EMPTY)
            repo.refs.set_head(SymbolicTrack(track))
        repo._action(f"VCR initialised with track {track}.")
        log.info(f"Initialized repository at {work_dir}")
        return repo

    @classmethod
    def open(cls, path: Optional[Path] = None, **kwargs) -> "Repository":
        """
        Open the repository containing ``path`` (default: the current directory).

        Raises:
            NotARepository: If neither the path nor any parent is a repository
        """
        app_config = kwargs.get("app_config") or default_config
        start = (path or Path.cwd()).resolve()
        for candidate in [start, *start.parents]:
            if (candidate / app_config.repository.dir_name).is_dir():
                return cls(candidate, **kwargs)
        raise NotARepository(
            f"{start} isn't a vcr directory. Use `vcr init` to make it one."
        )

    # -- Position --

    def author(self, override: Optional[str] = None) -> str:
        """Author for new frames: argument, then user.name setting, then config."""
        return override or self.settings.get("user.name") or self.config.repository.author

    def current_frame(self) -> str:
        return self.refs.current_frame()

    def current_track_name(self) -> Optional[str]:
        return self.refs.current_track_name()

    # -- Tracks --

    @track_operation("track_create")
    def create_track(self, name: str, checkout: bool = False) -> Track:
        """
        Create a track at the current frame.

        Args:
            name: Name for the new track
            checkout: Also point HEAD at the new track
        """
        with self.storage.lock():
            self._action(f">>> track new {name}")
            track = self.refs.create_track(name, self.refs.current_frame())
            if checkout:
                self.refs.set_head(SymbolicTrack(name))
            self._action(f"created {name} track at {track.head or '(empty)'}")
            return track

    def is_merged(self, name: str) -> bool:
        """
        Whether a track's head is contained in another track.

        True if the head is empty, or equals or is an ancestor of the head of
        any other active track. Tags are not considered.
        """
        head = self.refs.read_track(name).head
        if head == EMPTY:
            return True
        for other in self.refs.list_tracks():
            if other == name:
                continue
            other_head = self.refs.read_track(other).head
            if other_head == head or self.lineage.has_ancestor(other_head, head):
                return True
        return False

    @track_operation("track_delete")
    def delete_track(self, name: str, confirm: Optional[Confirm] = None) -> bool:
        """
        Delete a track's pointers, asking first if it is not merged.

        Returns:
            True if deleted, False if the operator declined

        Raises:
            NameNotFound: If the track does not exist
            TrackCheckedOut: If HEAD points at the track
        """
        with self.storage.lock():
            self._action(f">>> track delete {name}")
            self.refs.read_track(name)
            if self.refs.current_track_name() == name:
                raise TrackCheckedOut(f"Cannot delete the checked-out track: {name}")
            if not self.is_merged(name):
                ask = confirm or self.confirm
                if not ask(f"Track {name} is not merged into any other track. Delete it?"):
                    self._action(f"kept unmerged track {name}")
                    return False
            self.refs.delete_track(name)
            self._action(f"deleted {name} track")
            return True

    def list_tracks(self) -> List[Track]:
        return [self.refs.read_track(name) for name in self.refs.list_tracks()]

    def show_track(self, name: str) -> List[Frame]:
        """Frames made on a track, root to head."""
        return self.lineage.track_frames(self.refs.read_track(name))

    # -- Tags --

    @track_operation("tag_create")
    def create_tag(self, name: str, target: Optional[str] = None) -> str:
        """
        Tag a frame (default: the current frame).

        Returns:
            The tagged frame id
        """
        with self.storage.lock():
            self._action(f">>> tag new {name} {target or ''}".rstrip())
            frame_id = self.refs.resolve_frame(target) if target else self.refs.current_frame()
            self.refs.create_tag(name, frame_id)
            self._action(f"tagged {frame_id} as {name}")
            return frame_id

    @track_operation("tag_delete")
    def delete_tag(self, name: str) -> None:
        with self.storage.lock():
            self._action(f">>> tag delete {name}")
            self.refs.delete_tag(name)

    def list_tags(self) -> Dict[str, str]:
        """Tag names with the frame ids they point at."""
        return {name: self.refs.read_tag(name) for name in self.refs.list_tags()}

    # -- Checkout --

    @track_operation("checkout")
    def checkout(self, target: str, restore: bool = False) -> ResolvedTarget:
        """
        Point HEAD at a track, tag or frame.

        Args:
            target: Frame id prefix, tag or track name
            restore: Also write the target frame's files into the working tree

        Raises:
            StagingNotEmpty: If a conflicted merge is pending
        """
        with self.storage.lock():
            self._action(f">>> checkout {target}")
            if self.merges.pending() is not None:
                raise StagingNotEmpty("Commit or abort the pending merge before checkout")
            resolved = self.refs.resolve_target(target)
            frame_id = self.refs.dereference(resolved.head_value)
            self.refs.set_head(resolved)
            if restore:
                for path, content in self.objects.read_snapshot(frame_id).items():
                    self.worktree.write(path, content)
            self._action(resolved.head_value)
            if not isinstance(resolved, SymbolicTrack):
                log.warning(f"HEAD detached at {frame_id[:8] or '(empty)'}")
            return resolved

    # -- Staging --

    @track_operation("stage")
    def stage(self, paths: Iterable[str]) -> Dict[str, StageOutcome]:
        """
        Stage files (directories are expanded) from the working tree.

        All paths are checked before anything is staged.

        Returns:
            Outcome per repository-relative path
        """
        paths = list(paths)
        with self.storage.lock():
            self._action(f">>> stage {' '.join(paths)}")
            files: List[str] = []
            for path in paths:
                for relative in self.worktree.expand(path):
                    if relative not in files:
                        files.append(relative)

            outcomes: Dict[str, StageOutcome] = {}
            for relative in files:
                content = self.worktree.read(relative)
                if content is None:
                    continue
                outcomes[relative] = self.staging.stage(relative, content)
            return outcomes

    @track_operation("unstage")
    def unstage(self, paths: Iterable[str]) -> List[str]:
        """
        Remove files from the staging area.

        Raises:
            NotStaged: If any path is not staged; nothing is unstaged then
        """
        paths = list(paths)
        with self.storage.lock():
            self._action(f">>> unstage {' '.join(paths)}")
            relatives = [self.worktree.relative(path) for path in paths]
            staged = set(self.staging.paths())
            missing = [r for r in relatives if r not in staged]
            if missing:
                raise NotStaged(f"Not staged: {', '.join(missing)}")
            for relative in relatives:
                self.staging.unstage(relative)
            return relatives

    # -- Status and diff --

    def status(self) -> Status:
        return self.status_engine.compute_status()

    def diff(
        self,
        paths: Optional[Iterable[str]] = None,
        staged: bool = False,
        frame: Optional[str] = None,
    ) -> List[FileDiff]:
        """
        Changed files with their old and new content.

        By default the working tree is compared with what the next commit
        would record. ``staged`` compares that with the current frame;
        ``frame`` compares the working tree with the given frame.
        """
        relatives = [self.worktree.relative(p) for p in paths] if paths else None
        if staged:
            return self.status_engine.compute_diff(
                relatives, DiffSide.STAGING, DiffSide.FRAME, frame
            )
        if frame:
            return self.status_engine.compute_diff(
                relatives, DiffSide.WORKING, DiffSide.FRAME, frame
            )
        return self.status_engine.compute_diff(relatives, DiffSide.WORKING, DiffSide.STAGING)

    # -- Commit --

    @track_operation("commit")
    def commit(self, message: str, author: Optional[str] = None) -> str:
        """
        Record the staging area as a new frame on the checked-out track.

        The frame is written first, then the track head moves, then the
        staging area is drained.

        Returns:
            The new frame id

        Raises:
            MissingCommitMessage: If the message is empty
            NothingToCommit: If nothing is staged
            DetachedOrStaleTrack: If HEAD is not at the tip of a track
        """
        if not message or not message.strip():
            raise MissingCommitMessage("A commit message must be provided.")

        with self.storage.lock():
            self._action(f">>> commit {message}")
            if self.staging.is_empty():
                raise NothingToCommit("Nothing staged to commit")

            track = self.refs.current_track_name()
            if track is None:
                raise DetachedOrStaleTrack(
                    "HEAD is not on a track; check out a track before committing"
                )
            parent = self.refs.current_frame()

            parents = [parent]
            snapshot = self.objects.read_snapshot(parent)
            pending = self.merges.pending()
            if pending is not None:
                if pending.track != track or pending.target != parent:
                    raise DetachedOrStaleTrack(
                        f"Pending merge belongs to {pending.track} at {pending.target[:8]}"
                    )
                parents.append(pending.source)
                for path in pending.removed:
                    snapshot.pop(path, None)
            snapshot.update(self.staging.contents())

            frame_id = self.objects.create_frame(
                parents, self.author(author), message, snapshot
            )
            self.refs.update_track_head(track, frame_id, expected=parent)
            self.staging.drain()
            self.merges.clear_pending()

            self._action(f"committed {frame_id} on {track}")
            log.info(f"Committed {frame_id[:8]}: {message}", frame_id=frame_id, track=track)
            return frame_id

    # -- Merge --

    @track_operation("merge")
    def merge(
        self,
        source: str,
        target: Optional[str] = None,
        message: Optional[str] = None,
        author: Optional[str] = None,
    ) -> MergeResult:
        """
        Merge ``source`` into ``target`` (default: the checked-out track).

        Raises:
            MergeConflictError: If paths conflict; see MergeEngine.merge
        """
        with self.storage.lock():
            self._action(f">>> merge {source} {target or ''}".rstrip())
            result = self.merges.merge(source, target, self.author(author), message)
            self._action(f"{result.outcome.value} {result.track} {result.frame_id or ''}".rstrip())
            return result

    @track_operation("merge_abort")
    def abort_merge(self) -> PendingMerge:
        with self.storage.lock():
            self._action(">>> merge --abort")
            return self.merges.abort()

    def pending_merge(self) -> Optional[PendingMerge]:
        return self.merges.pending()

    # -- History --

    def history(self, limit: Optional[int] = None, ref: Optional[str] = None) -> List[Frame]:
        """Frames reachable from ``ref`` (default: HEAD), newest first."""
        start = self.refs.resolve_frame(ref) if ref else self.refs.current_frame()
        return self.lineage.log(start, limit)

    def show(self, ref: str) -> Frame:
        """Metadata of the frame a reference names."""
        frame_id = self.refs.resolve_frame(ref)
        return self.objects.read_frame(frame_id)

    def changes(self, ref: str) -> List[FileDiff]:
        """Files a frame changed relative to its first parent."""
        frame = self.show(ref)
        return self.status_engine.compare(
            self.objects.read_snapshot(frame.parent),
            self.objects.read_snapshot(frame.frame_id),
        )

    def _action(self, message: str) -> None:
        if self.config.logging.enable_action_log:
            log_action(self.repo_dir, self.author(), message)
