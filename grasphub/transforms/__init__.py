from .buffer import StaticTransformBuffer, TransformProvider
from .coordinates import (
    compose_grasp_pose,
    invert_transform,
    multiply_poses,
    transform_pose,
)

__all__ = [
    "StaticTransformBuffer",
    "TransformProvider",
    "compose_grasp_pose",
    "invert_transform",
    "multiply_poses",
    "transform_pose",
]
