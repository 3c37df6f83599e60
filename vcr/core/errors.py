"""
Error taxonomy for the version control engine.

Every failure carries an ErrorKind and a stable process exit code so the
command line can report exactly what went wrong.
"""

from enum import Enum
from typing import Iterable, List, Optional


class ErrorKind(str, Enum):
    """Kinds of failure, each mapped to one exit code."""

    NOT_A_REPOSITORY = "not_a_repository"
    ALREADY_INITIALIZED = "already_initialized"
    NAME_ALREADY_EXISTS = "name_already_exists"
    NAME_NOT_FOUND = "name_not_found"
    AMBIGUOUS_REFERENCE = "ambiguous_reference"
    UNRECOGNISED_REFERENCE = "unrecognised_reference"
    BROKEN_REFERENCE = "broken_reference"
    FRAME_COLLISION = "frame_collision"
    FRAME_NOT_FOUND = "frame_not_found"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    MISSING_COMMIT_MESSAGE = "missing_commit_message"
    DETACHED_OR_STALE_TRACK = "detached_or_stale_track"
    NO_COMMON_ANCESTOR = "no_common_ancestor"
    MERGE_CONFLICTS = "merge_conflicts"
    NOT_STAGED = "not_staged"
    INVALID_NAME = "invalid_name"
    INVALID_PATH = "invalid_path"
    PATH_NOT_FOUND = "path_not_found"
    STAGING_NOT_EMPTY = "staging_not_empty"
    TRACK_CHECKED_OUT = "track_checked_out"
    NO_MERGE_IN_PROGRESS = "no_merge_in_progress"


EXIT_CODES = {
    ErrorKind.NOT_A_REPOSITORY: 10,
    ErrorKind.ALREADY_INITIALIZED: 11,
    ErrorKind.NAME_ALREADY_EXISTS: 12,
    ErrorKind.NAME_NOT_FOUND: 13,
    ErrorKind.AMBIGUOUS_REFERENCE: 14,
    ErrorKind.UNRECOGNISED_REFERENCE: 15,
    ErrorKind.BROKEN_REFERENCE: 16,
    ErrorKind.FRAME_COLLISION: 17,
    ErrorKind.FRAME_NOT_FOUND: 18,
    ErrorKind.NOTHING_TO_COMMIT: 19,
    ErrorKind.MISSING_COMMIT_MESSAGE: 20,
    ErrorKind.DETACHED_OR_STALE_TRACK: 21,
    ErrorKind.NO_COMMON_ANCESTOR: 22,
    ErrorKind.MERGE_CONFLICTS: 23,
    ErrorKind.NOT_STAGED: 24,
    ErrorKind.INVALID_NAME: 25,
    ErrorKind.INVALID_PATH: 26,
    ErrorKind.PATH_NOT_FOUND: 27,
    ErrorKind.STAGING_NOT_EMPTY: 28,
    ErrorKind.TRACK_CHECKED_OUT: 29,
    ErrorKind.NO_MERGE_IN_PROGRESS: 30,
}


class VCRError(Exception):
    """Base exception for version control errors."""

    kind: Optional[ErrorKind] = None

    @property
    def exit_code(self) -> int:
        """Process exit code for this kind of failure."""
        if self.kind is None:
            return 1
        return EXIT_CODES[self.kind]


class NotARepository(VCRError):
    """Raised when no repository marker directory can be found."""

    kind = ErrorKind.NOT_A_REPOSITORY


class AlreadyInitialized(VCRError):
    """Raised when initialising over an existing repository."""

    kind = ErrorKind.ALREADY_INITIALIZED


class NameAlreadyExists(VCRError):
    """Raised when a track or tag name is already taken."""

    kind = ErrorKind.NAME_ALREADY_EXISTS


class NameNotFound(VCRError):
    """Raised when a track or tag does not exist."""

    kind = ErrorKind.NAME_NOT_FOUND


class AmbiguousReference(VCRError):
    """Raised when a frame id prefix matches more than one frame."""

    kind = ErrorKind.AMBIGUOUS_REFERENCE

    def __init__(self, prefix: str, matches: Iterable[str]):
        self.prefix = prefix
        self.matches: List[str] = sorted(matches)
        shown = ", ".join(m[:12] for m in self.matches[:5])
        super().__init__(
            f"'{prefix}' matches {len(self.matches)} frames: {shown}"
        )


class UnrecognisedReference(VCRError):
    """Raised when a name is neither a frame, a tag, nor a track."""

    kind = ErrorKind.UNRECOGNISED_REFERENCE


class BrokenReference(VCRError):
    """Raised when a symbolic reference points at a missing target."""

    kind = ErrorKind.BROKEN_REFERENCE


class FrameCollision(VCRError):
    """Raised when a new frame id is already present in the store."""

    kind = ErrorKind.FRAME_COLLISION


class FrameNotFound(VCRError):
    """Raised when a frame id (or prefix) matches nothing."""

    kind = ErrorKind.FRAME_NOT_FOUND


class NothingToCommit(VCRError):
    kind = ErrorKind.NOTHING_TO_COMMIT


class MissingCommitMessage(VCRError):
    kind = ErrorKind.MISSING_COMMIT_MESSAGE


class DetachedOrStaleTrack(VCRError):
    """Raised when HEAD is not at the tip of a track."""

    kind = ErrorKind.DETACHED_OR_STALE_TRACK


class NoCommonAncestor(VCRError):
    """Raised when two frames share no history at all."""

    kind = ErrorKind.NO_COMMON_ANCESTOR


class MergeConflictError(VCRError):
    """Raised when a merge leaves conflicted paths in the staging area."""

    kind = ErrorKind.MERGE_CONFLICTS

    def __init__(self, paths: Iterable[str]):
        self.paths: List[str] = sorted(paths)
        super().__init__(
            "Merge conflicts in: " + ", ".join(self.paths)
        )


class NotStaged(VCRError):
    kind = ErrorKind.NOT_STAGED


class InvalidName(VCRError):
    kind = ErrorKind.INVALID_NAME


class InvalidPath(VCRError):
    """Raised for paths outside the working tree or inside the store."""

    kind = ErrorKind.INVALID_PATH


class PathNotFound(VCRError):
    kind = ErrorKind.PATH_NOT_FOUND


class StagingNotEmpty(VCRError):
    kind = ErrorKind.STAGING_NOT_EMPTY


class TrackCheckedOut(VCRError):
    """Raised when deleting the track HEAD currently points at."""

    kind = ErrorKind.TRACK_CHECKED_OUT


class NoMergeInProgress(VCRError):
    kind = ErrorKind.NO_MERGE_IN_PROGRESS
