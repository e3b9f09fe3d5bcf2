"""
Data types for the grasp resolution pipeline.

---
Pose Convention:
- Positions are metres, orientations are unit quaternions in `x, y, z, w`
  order (scalar last, the same order used by `scipy.spatial.transform`).
- A pose `T_parent_child` transforms a point from the child frame into the
  parent frame. Stored grasp poses are expressed in the model's local frame;
  detection poses are expressed in the frame named by their `frame_id`.
---
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

# Approach distances are not stored in the catalog; every grasp gets the same.
DESIRED_APPROACH_DISTANCE = 0.15
MIN_APPROACH_DISTANCE = 0.07


class GraspStatus(str, Enum):
    """Outcome of a grasp resolution request."""

    SUCCESS = "success"
    INVALID_REQUEST = "invalid_request"
    CONFIGURATION_MISSING = "configuration_missing"
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    TRANSFORM_UNAVAILABLE = "transform_unavailable"


class DatabaseReturnCode(IntEnum):
    """Return codes for the catalog pass-through operations."""

    SUCCESS = 0
    DATABASE_NOT_CONNECTED = 1
    DATABASE_QUERY_ERROR = 2


@dataclass(eq=False)
class Pose:
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: np.ndarray = field(
        default_factory=lambda: np.array([0.0, 0.0, 0.0, 1.0])
    )

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        self.orientation = np.asarray(self.orientation, dtype=np.float64).reshape(4)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pose):
            return NotImplemented
        return bool(
            np.array_equal(self.position, other.position)
            and np.array_equal(self.orientation, other.orientation)
        )

    @classmethod
    def identity(cls) -> "Pose":
        return cls()

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "Pose":
        """Builds a pose from a 4x4 homogeneous transformation matrix."""
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"Expected 4x4 pose matrix, got shape {matrix.shape}")
        quat = Rotation.from_matrix(matrix[:3, :3]).as_quat()
        return cls(position=matrix[:3, 3].copy(), orientation=quat)

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "Pose":
        """Builds a pose from a flat `[px, py, pz, qx, qy, qz, qw]` array."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (7,):
            raise ValueError(f"Expected 7 pose values, got shape {values.shape}")
        return cls(position=values[:3], orientation=values[3:])

    def as_matrix(self) -> np.ndarray:
        """Homogeneous transformation matrix for this pose."""
        h = np.eye(4)
        h[:3, :3] = Rotation.from_quat(self.orientation).as_matrix()
        h[:3, 3] = self.position
        return h

    def as_array(self) -> np.ndarray:
        return np.concatenate([self.position, self.orientation])

    def to_dict(self) -> Dict[str, List[float]]:
        return {
            "position": self.position.tolist(),
            "orientation": self.orientation.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pose":
        return cls(
            position=data.get("position", [0.0, 0.0, 0.0]),
            orientation=data.get("orientation", [0.0, 0.0, 0.0, 1.0]),
        )


@dataclass
class PoseStamped:
    pose: Pose
    frame_id: str
    stamp: float = 0.0  # seconds; 0.0 means "latest available"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoseStamped":
        return cls(
            pose=Pose.from_dict(data.get("pose", {})),
            frame_id=data.get("frame_id", ""),
            stamp=float(data.get("stamp", 0.0)),
        )


@dataclass
class JointState:
    name: List[str] = field(default_factory=list)
    position: List[float] = field(default_factory=list)
    effort: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[Any]]:
        return {
            "name": list(self.name),
            "position": list(self.position),
            "effort": list(self.effort),
        }


@dataclass(frozen=True)
class HandProfile:
    """Catalog hand id plus the physical joint names of one arm's hand."""

    catalog_hand_id: str
    joint_names: Tuple[str, ...]


@dataclass(frozen=True)
class RawGraspRecord:
    """A grasp exactly as the catalog stores it, before any hand mapping."""

    grasp_id: int
    scaled_model_id: int
    hand_id: str
    quality: float
    scaled_quality: float
    pre_grasp_joints: Tuple[float, ...]
    final_grasp_joints: Tuple[float, ...]
    final_grasp_pose: Pose  # in the model's local frame
    table_clearance: Optional[float] = None  # millimetres, as stored
    cluster_rep: bool = True


@dataclass
class ResolvedGrasp:
    pre_grasp_posture: JointState
    grasp_posture: JointState
    grasp_pose: Pose
    success_probability: float
    grasp_id: int
    scaled_model_id: int
    desired_approach_distance: float = DESIRED_APPROACH_DISTANCE
    min_approach_distance: float = MIN_APPROACH_DISTANCE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grasp_id": self.grasp_id,
            "scaled_model_id": self.scaled_model_id,
            "pre_grasp_posture": self.pre_grasp_posture.to_dict(),
            "grasp_posture": self.grasp_posture.to_dict(),
            "grasp_pose": self.grasp_pose.to_dict(),
            "success_probability": self.success_probability,
            "desired_approach_distance": self.desired_approach_distance,
            "min_approach_distance": self.min_approach_distance,
        }


@dataclass
class ModelMatch:
    """One candidate catalog model for a detected object."""

    model_id: int
    pose: PoseStamped
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelMatch":
        return cls(
            model_id=int(data["model_id"]),
            pose=PoseStamped.from_dict(data.get("pose", {})),
            confidence=float(data.get("confidence", 0.0)),
        )


@dataclass
class GraspRequest:
    """
    A request for the stored grasps of a recognized object.

    Only `potential_models[0]` is used. Any further candidates are ignored
    (with a warning), so callers should put their best match first.
    """

    arm_name: str
    potential_models: List[ModelMatch]
    reference_frame_id: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraspRequest":
        return cls(
            arm_name=data.get("arm_name", ""),
            potential_models=[
                ModelMatch.from_dict(m) for m in data.get("potential_models") or []
            ],
            reference_frame_id=data.get("reference_frame_id", ""),
        )


@dataclass
class GraspResponse:
    grasps: List[ResolvedGrasp] = field(default_factory=list)
    status: GraspStatus = GraspStatus.SUCCESS
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "grasps": [g.to_dict() for g in self.grasps],
        }


# --- Catalog pass-through types ---


@dataclass(frozen=True)
class ModelDescription:
    name: str
    maker: str
    tags: Tuple[str, ...] = ()


@dataclass(eq=False)
class ModelMesh:
    vertices: np.ndarray  # (V, 3)
    triangles: np.ndarray  # (T, 3)


@dataclass
class ModelScan:
    scaled_model_id: int
    frame_id: str
    cloud_topic: str
    object_pose: Pose
    scan_source: str
    bagfile_location: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scaled_model_id": self.scaled_model_id,
            "frame_id": self.frame_id,
            "cloud_topic": self.cloud_topic,
            "object_pose": self.object_pose.to_dict(),
            "scan_source": self.scan_source,
            "bagfile_location": self.bagfile_location,
        }
