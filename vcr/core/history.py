"""
History traversal: ancestor walks and nearest common ancestor search.
"""

from collections import deque
from typing import Iterator, List, Optional, Set

from .errors import NoCommonAncestor
from .frame import EMPTY, Frame
from .objects import ObjectStore
from .refs import Track


class History:
    """Read-only walks over the frame graph."""

    def __init__(self, objects: ObjectStore):
        self.objects = objects

    def ancestors(self, frame_id: str) -> Iterator[str]:
        """
        Lazily yield ``frame_id`` and then its ancestors.

        Parents are visited breadth-first, first parent first, and each frame
        is yielded once. For a linear chain this is the frame, its parent,
        its grandparent and so on down to the root. Yields nothing for EMPTY.
        """
        if frame_id == EMPTY:
            return
        queue = deque([frame_id])
        seen = {frame_id}
        while queue:
            current = queue.popleft()
            yield current
            for parent in self.objects.read_frame(current).parents:
                if parent not in seen:
                    seen.add(parent)
                    queue.append(parent)

    def has_ancestor(self, frame_id: str, candidate: str) -> bool:
        """True iff ``candidate`` is a proper ancestor of ``frame_id``."""
        if candidate == EMPTY:
            return False
        walk = self.ancestors(frame_id)
        next(walk, None)
        return any(ancestor == candidate for ancestor in walk)

    def common_ancestor(self, frame_a: str, frame_b: str) -> str:
        """
        Nearest frame reachable from both ``frame_a`` and ``frame_b``.

        Both ancestor sequences advance one step at a time. After each step
        the newest frame of each side is looked up in the other side's
        visited set; the first hit wins.

        Raises:
            NoCommonAncestor: If both walks end without meeting
        """
        walk_a = self.ancestors(frame_a)
        walk_b = self.ancestors(frame_b)
        seen_a: Set[str] = set()
        seen_b: Set[str] = set()

        while True:
            newest_a: Optional[str] = next(walk_a, None)
            newest_b: Optional[str] = next(walk_b, None)
            if newest_a is None and newest_b is None:
                raise NoCommonAncestor(
                    f"{frame_a[:8] or '(empty)'} and {frame_b[:8] or '(empty)'} "
                    "share no history"
                )
            if newest_a is not None:
                seen_a.add(newest_a)
            if newest_b is not None:
                seen_b.add(newest_b)

            if newest_a is not None and newest_a in seen_b:
                return newest_a
            if newest_b is not None and newest_b in seen_a:
                return newest_b

    def log(self, frame_id: str, limit: Optional[int] = None) -> List[Frame]:
        """Frames reachable from ``frame_id``, newest first."""
        frames: List[Frame] = []
        for ancestor in self.ancestors(frame_id):
            if limit is not None and len(frames) >= limit:
                break
            frames.append(self.objects.read_frame(ancestor))
        return frames

    def track_frames(self, track: Track) -> List[Frame]:
        """
        Frames made on a track, root to head.

        For a track created at a frame, that frame is excluded; for a track
        created in an empty repository, the walk runs to the root frame.
        The walk also stops at the first frame that does not descend from the
        track root, which happens after a fast-forward onto a merge whose
        first parent came from elsewhere.
        """
        frames: List[Frame] = []
        current = track.head
        while current and current != track.root:
            if track.root and not self.has_ancestor(current, track.root):
                break
            frame = self.objects.read_frame(current)
            frames.append(frame)
            current = frame.parent
        frames.reverse()
        return frames
