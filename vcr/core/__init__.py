"""
Version control core for working directories.

Provides frames, tracks and tags, the staging area, status and diffs, and
three-way merging.
"""

from .errors import (
    ErrorKind,
    VCRError,
    NotARepository,
    AlreadyInitialized,
    NameAlreadyExists,
    NameNotFound,
    AmbiguousReference,
    UnrecognisedReference,
    BrokenReference,
    FrameCollision,
    FrameNotFound,
    NothingToCommit,
    MissingCommitMessage,
    DetachedOrStaleTrack,
    NoCommonAncestor,
    MergeConflictError,
    NotStaged,
    InvalidName,
    InvalidPath,
    PathNotFound,
    StagingNotEmpty,
    TrackCheckedOut,
    NoMergeInProgress,
)

from .frame import (
    EMPTY,
    Frame,
    create_frame_id,
    snapshot_digest,
)

from .storage import RepositoryStorage
from .objects import ObjectStore

from .refs import (
    ReferenceLayer,
    ResolvedFrame,
    SymbolicTag,
    SymbolicTrack,
    Track,
)

from .staging import StageOutcome, StagingArea
from .worktree import IgnoreSet, WorkingTree

from .status import (
    DiffSide,
    FileDiff,
    Status,
    StatusOrchestrator,
)

from .history import History

from .merge import (
    MergeEngine,
    MergeOutcome,
    MergeResult,
    PathMerge,
    PathState,
    PendingMerge,
)

from .repository import Repository

__all__ = [
    # Errors
    "ErrorKind",
    "VCRError",
    "NotARepository",
    "AlreadyInitialized",
    "NameAlreadyExists",
    "NameNotFound",
    "AmbiguousReference",
    "UnrecognisedReference",
    "BrokenReference",
    "FrameCollision",
    "FrameNotFound",
    "NothingToCommit",
    "MissingCommitMessage",
    "DetachedOrStaleTrack",
    "NoCommonAncestor",
    "MergeConflictError",
    "NotStaged",
    "InvalidName",
    "InvalidPath",
    "PathNotFound",
    "StagingNotEmpty",
    "TrackCheckedOut",
    "NoMergeInProgress",
    # Frames
    "EMPTY",
    "Frame",
    "create_frame_id",
    "snapshot_digest",
    # Storage
    "RepositoryStorage",
    "ObjectStore",
    # References
    "ReferenceLayer",
    "ResolvedFrame",
    "SymbolicTag",
    "SymbolicTrack",
    "Track",
    # Staging and working tree
    "StageOutcome",
    "StagingArea",
    "IgnoreSet",
    "WorkingTree",
    # Status
    "DiffSide",
    "FileDiff",
    "Status",
    "StatusOrchestrator",
    # History and merge
    "History",
    "MergeEngine",
    "MergeOutcome",
    "MergeResult",
    "PathMerge",
    "PathState",
    "PendingMerge",
    # Facade
    "Repository",
]
