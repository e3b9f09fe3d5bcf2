from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

from grasphub.errors import ShapeMismatchError
from grasphub.schema import HandProfile, JointState, RawGraspRecord

# Efforts are not stored in the catalog.
PRE_GRASP_EFFORT = 100.0
GRASP_EFFORT = 50.0


class BaseJointLayout(ABC):
    """
    Maps stored, hand-agnostic joint values onto a physical hand.

    Each subclass covers one family of catalog hand ids. It declares the shape
    it expects (`check_shape`) and how one stored posture vector becomes the
    physical position vector (`map_posture`). The pre-grasp and final grasp
    postures always go through the same mapping.
    """

    hand_ids: Tuple[str, ...] = ()

    @abstractmethod
    def check_shape(self, record: RawGraspRecord, profile: HandProfile) -> None:
        """Raises ShapeMismatchError if the record cannot be mapped."""
        raise NotImplementedError

    @abstractmethod
    def map_posture(self, values: np.ndarray, num_joints: int) -> np.ndarray:
        """Returns the physical joint positions for one stored posture."""
        raise NotImplementedError

    def adapt(
        self, record: RawGraspRecord, profile: HandProfile
    ) -> Tuple[JointState, JointState]:
        """
        Builds the pre-grasp and grasp joint states for a record.

        Args:
            record: The raw grasp record from the catalog.
            profile: The hand profile of the requesting arm.

        Returns:
            A `(pre_grasp_posture, grasp_posture)` tuple.

        Raises:
            ShapeMismatchError: If the stored vectors do not fit this layout.
        """
        if len(record.pre_grasp_joints) != len(record.final_grasp_joints):
            raise ShapeMismatchError(
                f"Grasp {record.grasp_id} stores {len(record.pre_grasp_joints)} "
                f"pre-grasp values but {len(record.final_grasp_joints)} grasp values"
            )
        self.check_shape(record, profile)

        num_joints = len(profile.joint_names)
        pre_positions = self.map_posture(
            np.asarray(record.pre_grasp_joints, dtype=np.float64), num_joints
        )
        grasp_positions = self.map_posture(
            np.asarray(record.final_grasp_joints, dtype=np.float64), num_joints
        )
        pre_grasp = JointState(
            name=list(profile.joint_names),
            position=[float(v) for v in pre_positions],
            effort=[PRE_GRASP_EFFORT] * num_joints,
        )
        grasp = JointState(
            name=list(profile.joint_names),
            position=[float(v) for v in grasp_positions],
            effort=[GRASP_EFFORT] * num_joints,
        )
        return pre_grasp, grasp


def expect_lengths(
    record: RawGraspRecord,
    profile: HandProfile,
    num_joint_names: int,
    num_values: int,
    hand_label: str,
) -> None:
    """Shared shape check for layouts with a fixed joint and value count."""
    if len(profile.joint_names) != num_joint_names:
        raise ShapeMismatchError(
            f"{hand_label} expects {num_joint_names} joint names, "
            f"hand description has {len(profile.joint_names)}"
        )
    if len(record.final_grasp_joints) != num_values:
        raise ShapeMismatchError(
            f"{hand_label} expects {num_values} stored joint values, "
            f"grasp {record.grasp_id} has {len(record.final_grasp_joints)}"
        )

