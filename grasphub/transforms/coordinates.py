"""
Pose composition utilities.

Grasp poses are stored relative to a model's local frame. To be usable they
are chained through the detection pose of the recognized object and, when the
caller asks for another frame, through the transform between the detection
frame and that reference frame.
"""

from __future__ import annotations

import logging
from typing import Callable

import numpy as np
from jaxtyping import Float

from grasphub.errors import TransformLookupError, TransformUnavailableError
from grasphub.schema import Pose

logger = logging.getLogger(__name__)

# (target_frame, source_frame) -> pose of source in target
TransformLookup = Callable[[str, str], Pose]


def transform_pose(
    pose: Float[np.ndarray, "4 4"], transform_matrix: Float[np.ndarray, "4 4"]  # noqa: F722
) -> np.ndarray:
    """
    Apply a coordinate transformation to a 4x4 pose matrix.

    Args:
        pose: 4x4 pose matrix in the source coordinate system.
        transform_matrix: 4x4 transformation matrix from source to target system.

    Returns:
        np.ndarray: 4x4 pose matrix in the target coordinate system.
    """
    if pose.shape != (4, 4):
        raise ValueError(f"Expected 4x4 pose matrix, got shape {pose.shape}")
    if transform_matrix.shape != (4, 4):
        raise ValueError(
            f"Expected 4x4 transform matrix, got shape {transform_matrix.shape}"
        )

    return transform_matrix @ pose


def invert_transform(matrix: Float[np.ndarray, "4 4"]) -> np.ndarray:  # noqa: F722
    """Inverse of a rigid 4x4 transform, without a general matrix inverse."""
    rotation = matrix[:3, :3]
    inverse = np.eye(4)
    inverse[:3, :3] = rotation.T
    inverse[:3, 3] = -rotation.T @ matrix[:3, 3]
    return inverse


def multiply_poses(outer: Pose, inner: Pose) -> Pose:
    """
    Returns `outer ∘ inner`.

    If `inner` is expressed in frame B and `outer` is the pose of B in frame A,
    the result is `inner` expressed in frame A. The operation does not commute.
    """
    return Pose.from_matrix(transform_pose(inner.as_matrix(), outer.as_matrix()))


def compose_grasp_pose(
    local_pose: Pose,
    detection_pose: Pose,
    detection_frame: str,
    reference_frame: str,
    lookup_transform: TransformLookup,
) -> Pose:
    """
    Expresses a model-local grasp pose in the caller's reference frame.

    Args:
        local_pose: Grasp pose relative to the model's local frame.
        detection_pose: Pose of the model in `detection_frame`.
        detection_frame: Frame the detection was reported in.
        reference_frame: Frame the caller wants the grasp in.
        lookup_transform: Returns the pose of its second frame argument
            expressed in its first. Only called when the frames differ.

    Returns:
        The grasp pose in `reference_frame`.

    Raises:
        TransformUnavailableError: If the two frames cannot be related.
    """
    grasp_pose = multiply_poses(detection_pose, local_pose)
    if detection_frame == reference_frame:
        return grasp_pose

    try:
        reference_transform = lookup_transform(reference_frame, detection_frame)
    except TransformLookupError as e:
        logger.error(
            f"Failed to get transform from {reference_frame} to {detection_frame}: {e}"
        )
        raise TransformUnavailableError(
            f"No transform from '{reference_frame}' to '{detection_frame}'"
        ) from e

    return multiply_poses(reference_transform, grasp_pose)
