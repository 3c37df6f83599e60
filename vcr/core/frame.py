"""
Frame representation for version control.

A frame is an immutable snapshot record: metadata, an ordered list of parent
frame ids, and the full tree of file contents at commit time.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
import hashlib

EMPTY = ""


@dataclass(frozen=True)
class Frame:
    """
    Metadata of one frame in the version history.

    Attributes:
        frame_id: Content-derived identifier (40 hex digits)
        parents: Parent frame ids; empty for a root frame, two for a merge
        author: Who made the frame
        message: Commit message
        timestamp: ISO-8601 UTC time of creation
    """

    frame_id: str
    parents: List[str] = field(default_factory=list)
    author: str = ""
    message: str = ""
    timestamp: str = ""

    @property
    def parent(self) -> str:
        """First parent, or EMPTY for a root frame."""
        return self.parents[0] if self.parents else EMPTY

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def short_id(self) -> str:
        return self.frame_id[:8]

    def to_dict(self) -> Dict[str, Any]:
        """Convert frame to dictionary for serialization."""
        return {
            "frame_id": self.frame_id,
            "parents": list(self.parents),
            "author": self.author,
            "message": self.message,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Frame":
        """Create frame from dictionary."""
        return cls(
            frame_id=data["frame_id"],
            parents=list(data.get("parents", [])),
            author=data.get("author", ""),
            message=data.get("message", ""),
            timestamp=data.get("timestamp", ""),
        )


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string with microseconds."""
    return datetime.now(timezone.utc).isoformat()


def snapshot_digest(snapshot: Mapping[str, bytes]) -> str:
    """
    Digest of a snapshot's paths and contents, independent of ordering.

    Args:
        snapshot: Mapping of repository-relative path to file bytes
    """
    digest = hashlib.sha256()
    for path in sorted(snapshot):
        content = snapshot[path]
        digest.update(path.encode("utf-8"))
        digest.update(b"\0")
        digest.update(str(len(content)).encode("ascii"))
        digest.update(b"\0")
        digest.update(content)
    return digest.hexdigest()


def create_frame_id(
    timestamp: str,
    author: str,
    parents: Sequence[str],
    message: str,
    content_digest: Optional[str] = None,
) -> str:
    """
    Derive a frame id from its metadata and content.

    The same inputs always give the same id.
    """
    material = "\n".join(
        [timestamp, author, " ".join(parents), message, content_digest or ""]
    )
    return hashlib.sha1(material.encode("utf-8")).hexdigest()
