"""
Frame-transform providers.

The grasp service only needs `lookup_transform(target, source)`. Live systems
can wrap their own transform tree behind the `TransformProvider` protocol;
`StaticTransformBuffer` is a fixed frame graph, typically loaded from the
`frames` list of the service settings.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import numpy as np

from grasphub.errors import TransformLookupError
from grasphub.schema import Pose
from grasphub.transforms.coordinates import invert_transform

logger = logging.getLogger(__name__)


@runtime_checkable
class TransformProvider(Protocol):
    def lookup_transform(
        self, target_frame: str, source_frame: str, stamp: Optional[float] = None
    ) -> Pose:
        """
        Returns the pose of `source_frame` expressed in `target_frame`.

        `stamp=None` asks for the latest available transform. Implementations
        raise TransformLookupError when the frames are not connected and own
        any waiting or timeout behaviour.
        """
        ...


class StaticTransformBuffer:
    """
    A graph of fixed parent -> child transforms.

    Lookups walk the graph breadth-first in either direction, inverting edges
    that are traversed from child to parent. Stamps are accepted and ignored.
    """

    def __init__(self):
        # frame -> {neighbor: 4x4 pose of neighbor in frame}
        self._edges: Dict[str, Dict[str, np.ndarray]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, frames: Optional[List[Dict[str, Any]]]) -> "StaticTransformBuffer":
        """
        Builds a buffer from a list of frame entries.

        Each entry has `parent`, `child`, and optionally `translation` (3
        values) and `rotation` (quaternion, x y z w).
        """
        buffer = cls()
        for entry in frames or []:
            try:
                parent, child = entry["parent"], entry["child"]
            except KeyError as e:
                raise ValueError(f"Frame entry {entry} is missing {e}") from e
            pose = Pose(
                position=entry.get("translation", [0.0, 0.0, 0.0]),
                orientation=entry.get("rotation", [0.0, 0.0, 0.0, 1.0]),
            )
            buffer.set_transform(parent, child, pose)
        return buffer

    def set_transform(self, parent_frame: str, child_frame: str, pose: Pose) -> None:
        """Stores the pose of `child_frame` in `parent_frame`."""
        if parent_frame == child_frame:
            raise ValueError(f"Cannot attach frame '{parent_frame}' to itself")
        matrix = pose.as_matrix()
        with self._lock:
            edges = {frame: dict(n) for frame, n in self._edges.items()}
            edges.setdefault(parent_frame, {})[child_frame] = matrix
            edges.setdefault(child_frame, {})[parent_frame] = invert_transform(matrix)
            self._edges = edges
        logger.debug(f"Static transform {parent_frame} -> {child_frame} set")

    @property
    def frames(self) -> List[str]:
        return sorted(self._edges)

    def can_transform(self, target_frame: str, source_frame: str) -> bool:
        try:
            self.lookup_transform(target_frame, source_frame)
        except TransformLookupError:
            return False
        return True

    def lookup_transform(
        self, target_frame: str, source_frame: str, stamp: Optional[float] = None
    ) -> Pose:
        if target_frame == source_frame:
            return Pose.identity()

        edges = self._edges
        if target_frame not in edges or source_frame not in edges:
            unknown = target_frame if target_frame not in edges else source_frame
            raise TransformLookupError(f"Frame '{unknown}' does not exist")

        # Breadth-first search accumulating the pose of each frame in target.
        poses_in_target = {target_frame: np.eye(4)}
        queue = deque([target_frame])
        while queue:
            frame = queue.popleft()
            for neighbor, matrix in edges[frame].items():
                if neighbor in poses_in_target:
                    continue
                poses_in_target[neighbor] = poses_in_target[frame] @ matrix
                if neighbor == source_frame:
                    return Pose.from_matrix(poses_in_target[neighbor])
                queue.append(neighbor)

        raise TransformLookupError(
            f"'{target_frame}' and '{source_frame}' are not part of the same tree"
        )
