from __future__ import annotations

import logging
from typing import Optional, Tuple

from grasphub.catalog.base import BaseCatalog
from grasphub.catalog.hdf5 import H5GraspCatalog
from grasphub.config.hand_description import HandProfileResolver, YamlParameterStore
from grasphub.config.settings import ServiceSettings
from grasphub.processing.pruning import GraspPruner
from grasphub.services.grasp_planning import GraspResolutionService
from grasphub.services.model_queries import ModelQueryService
from grasphub.transforms.buffer import StaticTransformBuffer


def connect_catalog(settings: ServiceSettings) -> Optional[BaseCatalog]:
    """Opens the configured catalog, or returns None if it is unavailable."""
    if settings.catalog_path is None:
        logging.warning("No catalog_path configured; grasp catalog not connected.")
        return None
    try:
        return H5GraspCatalog(settings.catalog_path)
    except FileNotFoundError as e:
        logging.error(
            f"Failed to open grasp catalog: {e}. Unable to do grasp planning "
            "on recognized objects."
        )
        return None


def build_services(
    settings: ServiceSettings,
) -> Tuple[GraspResolutionService, ModelQueryService]:
    """Wires the grasp and model query services from settings."""
    catalog = connect_catalog(settings)
    hand_profiles = HandProfileResolver(
        YamlParameterStore({"hand_description": settings.hand_description})
    )
    pruner = GraspPruner(
        mode=settings.prune_mode,
        quality_threshold=settings.quality_threshold,
        gripper_opening=settings.prune_gripper_opening,
        table_clearance=settings.prune_table_clearance,
    )
    grasp_service = GraspResolutionService(
        catalog,
        hand_profiles,
        StaticTransformBuffer.from_config(settings.frames),
        pruner=pruner,
    )
    return grasp_service, ModelQueryService(catalog)
