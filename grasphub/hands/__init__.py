from .base import GRASP_EFFORT, PRE_GRASP_EFFORT, BaseJointLayout
from .direct import DirectJointLayout
from .parallel_jaw import ParallelJawJointLayout
from .registry import (
    DEFAULT_JOINT_LAYOUT,
    JOINT_LAYOUTS,
    adapt_postures,
    get_joint_layout,
)
from .underactuated import UnderactuatedJointLayout

__all__ = [
    "BaseJointLayout",
    "DirectJointLayout",
    "ParallelJawJointLayout",
    "UnderactuatedJointLayout",
    "JOINT_LAYOUTS",
    "DEFAULT_JOINT_LAYOUT",
    "GRASP_EFFORT",
    "PRE_GRASP_EFFORT",
    "adapt_postures",
    "get_joint_layout",
]
