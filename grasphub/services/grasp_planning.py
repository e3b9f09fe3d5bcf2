"""
Grasp resolution: from a recognized object to grasps for a specific hand.

A request runs through a fixed sequence of stages:

1. resolve the hand profile of the requesting arm,
2. fetch the stored grasps of the first candidate model for that hand,
3. prune unusable grasps,
4. per grasp, map the stored joint values onto the hand and express the grasp
   pose in the requested reference frame.

Failures in stages 1-2, a malformed request, or a missing frame transform in
stage 4 abort the request with no grasps. A grasp whose stored joint values do
not fit the hand is skipped and the rest are still returned.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from grasphub.catalog.base import BaseCatalog
from grasphub.config.hand_description import HandProfileResolver
from grasphub.errors import (
    CatalogError,
    CatalogUnavailableError,
    GraspResolutionError,
    InvalidRequestError,
    ShapeMismatchError,
)
from grasphub.hands import adapt_postures
from grasphub.processing.pruning import GraspPruner
from grasphub.schema import (
    GraspRequest,
    GraspResponse,
    GraspStatus,
    JointState,
    ModelMatch,
    Pose,
    RawGraspRecord,
    ResolvedGrasp,
)
from grasphub.transforms.buffer import TransformProvider
from grasphub.transforms.coordinates import compose_grasp_pose

logger = logging.getLogger(__name__)


class _LatestTransformLookup:
    """
    Looks up transforms at the latest available time, once per frame pair.

    One instance lives for one request, so every grasp of the request is
    composed with the same reference transform.
    """

    def __init__(self, provider: TransformProvider):
        self.provider = provider
        self._transforms: Dict[Tuple[str, str], Pose] = {}

    def __call__(self, target_frame: str, source_frame: str) -> Pose:
        key = (target_frame, source_frame)
        if key not in self._transforms:
            self._transforms[key] = self.provider.lookup_transform(
                target_frame, source_frame, None
            )
        return self._transforms[key]


class GraspResolutionService:
    """
    Answers grasp requests for recognized objects from the grasp catalog.

    Args:
        catalog: The grasp catalog, or None if no catalog could be connected.
        hand_profiles: Resolver for arm name -> hand profile.
        transforms: Provider for transforms between named frames.
        pruner: Pruning criterion; defaults to the fixed quality threshold.
    """

    def __init__(
        self,
        catalog: Optional[BaseCatalog],
        hand_profiles: HandProfileResolver,
        transforms: TransformProvider,
        pruner: Optional[GraspPruner] = None,
    ):
        self.catalog = catalog
        self.hand_profiles = hand_profiles
        self.transforms = transforms
        self.pruner = pruner or GraspPruner()

    def resolve_grasps(self, request: GraspRequest) -> GraspResponse:
        """
        Resolves a request into a response; never raises for request failures.

        The response either carries every grasp that survived the pipeline
        with `GraspStatus.SUCCESS` (possibly none), or no grasps and the status
        of the failure.
        """
        try:
            grasps = self.plan(request)
        except GraspResolutionError as e:
            logger.error(f"Database grasp planning failed ({e.status.value}): {e}")
            return GraspResponse(grasps=[], status=e.status, message=str(e))

        logger.info(f"Database grasp planner: returning {len(grasps)} grasps")
        return GraspResponse(grasps=grasps, status=GraspStatus.SUCCESS)

    def plan(self, request: GraspRequest) -> List[ResolvedGrasp]:
        """
        Runs the pipeline for one request.

        Raises:
            GraspResolutionError: One of its subclasses, for any request-fatal
                failure.
        """
        target = self._select_target(request)
        profile = self.hand_profiles.resolve(request.arm_name)

        records = self._fetch_grasps(target.model_id, profile.catalog_hand_id)
        records = self.pruner(records)

        lookup = _LatestTransformLookup(self.transforms)
        grasps = []
        skipped = 0
        for record in records:
            try:
                pre_grasp_posture, grasp_posture = adapt_postures(record, profile)
            except ShapeMismatchError as e:
                logger.error(f"Skipping grasp {record.grasp_id}: {e}")
                skipped += 1
                continue

            grasp_pose = compose_grasp_pose(
                record.final_grasp_pose,
                target.pose.pose,
                target.pose.frame_id,
                request.reference_frame_id,
                lookup,
            )
            grasps.append(
                self._build_grasp(record, pre_grasp_posture, grasp_posture, grasp_pose)
            )

        if skipped:
            logger.warning(
                f"Skipped {skipped} of {len(records)} grasps that do not match "
                f"the description of hand '{profile.catalog_hand_id}'"
            )
        return grasps

    def _select_target(self, request: GraspRequest) -> ModelMatch:
        if not request.potential_models:
            raise InvalidRequestError(
                "No potential model information in grasp planning target"
            )
        if not request.arm_name:
            raise InvalidRequestError("Grasp planning request has no arm name")
        if not request.reference_frame_id:
            raise InvalidRequestError("Grasp planning request has no reference frame")
        if len(request.potential_models) > 1:
            logger.warning(
                f"Target has {len(request.potential_models)} potential models. "
                "Returning grasps for first model only"
            )
        target = request.potential_models[0]
        pose = target.pose.pose
        if not (
            np.all(np.isfinite(pose.position))
            and np.all(np.isfinite(pose.orientation))
            and np.linalg.norm(pose.orientation) > 0.0
        ):
            raise InvalidRequestError(
                f"Detection pose of model {target.model_id} is not a valid pose"
            )
        return target

    def _fetch_grasps(self, model_id: int, hand_id: str) -> List[RawGraspRecord]:
        if self.catalog is None:
            raise CatalogUnavailableError("Grasp catalog is not connected")
        try:
            records = self.catalog.fetch_grasps(model_id, hand_id)
        except CatalogError as e:
            logger.error(
                f"Catalog query error for model {model_id}, hand '{hand_id}': {e}"
            )
            raise CatalogUnavailableError(
                f"Catalog query failed for model {model_id} and hand '{hand_id}'"
            ) from e
        logger.info(f"Retrieved {len(records)} grasps from the catalog")
        return records

    def _build_grasp(
        self,
        record: RawGraspRecord,
        pre_grasp_posture: JointState,
        grasp_posture: JointState,
        grasp_pose: Pose,
    ) -> ResolvedGrasp:
        return ResolvedGrasp(
            pre_grasp_posture=pre_grasp_posture,
            grasp_posture=grasp_posture,
            grasp_pose=grasp_pose,
            success_probability=record.scaled_quality,
            grasp_id=record.grasp_id,
            scaled_model_id=record.scaled_model_id,
        )
