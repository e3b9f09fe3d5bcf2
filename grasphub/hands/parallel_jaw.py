import numpy as np

from grasphub.hands.base import BaseJointLayout, expect_lengths
from grasphub.schema import HandProfile, RawGraspRecord


class ParallelJawJointLayout(BaseJointLayout):
    """
    Parallel-jaw gripper stored as a single opening value.

    The gripper really has one degree of freedom, but its description exposes
    four coupled joints, so the stored value is replicated to each of them.
    """

    hand_ids = ("WILLOW_GRIPPER_2010",)
    num_joints = 4

    def check_shape(self, record: RawGraspRecord, profile: HandProfile) -> None:
        expect_lengths(record, profile, self.num_joints, 1, "Parallel-jaw gripper")

    def map_posture(self, values: np.ndarray, num_joints: int) -> np.ndarray:
        return np.full(num_joints, values[0], dtype=np.float64)
