import numpy as np

from grasphub.hands.base import BaseJointLayout, expect_lengths
from grasphub.schema import HandProfile, RawGraspRecord

JOINT_LIMIT = 1.5707

# Output slot -> stored index for the finger joints. Output slot 0 is the
# finger spread, taken from stored index 0 and limited to [0, JOINT_LIMIT].
# Stored index 5 has no physical counterpart.
FINGER_JOINT_SOURCE_INDICES = (6, 7, 1, 2, 3, 4)


class UnderactuatedJointLayout(BaseJointLayout):
    """
    Three-finger hand stored with 8 values and driven through 7 joints.

    The stored order differs from the physical order, so values are remapped
    and clamped to the joint limits of the real hand.
    """

    hand_ids = ("Schunk",)
    num_joints = 7
    num_stored_values = 8

    def check_shape(self, record: RawGraspRecord, profile: HandProfile) -> None:
        expect_lengths(
            record,
            profile,
            self.num_joints,
            self.num_stored_values,
            "Three-finger hand",
        )

    def map_posture(self, values: np.ndarray, num_joints: int) -> np.ndarray:
        positions = np.empty(self.num_joints, dtype=np.float64)
        positions[0] = np.clip(values[0], 0.0, JOINT_LIMIT)
        positions[1:] = np.clip(
            values[list(FINGER_JOINT_SOURCE_INDICES)], -JOINT_LIMIT, JOINT_LIMIT
        )
        return positions
