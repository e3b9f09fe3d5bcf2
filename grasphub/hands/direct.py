import numpy as np

from grasphub.errors import ShapeMismatchError
from grasphub.hands.base import BaseJointLayout
from grasphub.schema import HandProfile, RawGraspRecord


class DirectJointLayout(BaseJointLayout):
    """
    Copies stored values onto the hand joints one to one.

    The catalog does not record joint names, so the stored order is assumed to
    be the order of the hand description's joint list. Nothing can check this
    here; only the value count is validated.
    """

    def check_shape(self, record: RawGraspRecord, profile: HandProfile) -> None:
        if len(profile.joint_names) != len(record.final_grasp_joints):
            raise ShapeMismatchError(
                "Stored grasp does not match the hand description. Hand "
                f"'{profile.catalog_hand_id}' has {len(profile.joint_names)} joints, "
                f"grasp {record.grasp_id} specifies "
                f"{len(record.final_grasp_joints)} values"
            )

    def map_posture(self, values: np.ndarray, num_joints: int) -> np.ndarray:
        return values.copy()
