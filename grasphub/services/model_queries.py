"""Thin catalog queries: model lists, meshes, descriptions and scans."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from grasphub.catalog.base import BaseCatalog
from grasphub.errors import CatalogError
from grasphub.schema import DatabaseReturnCode, ModelMesh, ModelScan

logger = logging.getLogger(__name__)


@dataclass
class ModelListResponse:
    return_code: DatabaseReturnCode
    model_ids: List[int] = field(default_factory=list)


@dataclass
class ModelMeshResponse:
    return_code: DatabaseReturnCode
    mesh: Optional[ModelMesh] = None


@dataclass
class ModelDescriptionResponse:
    return_code: DatabaseReturnCode
    name: str = ""
    maker: str = ""
    tags: Tuple[str, ...] = ()


@dataclass
class ModelScansResponse:
    return_code: DatabaseReturnCode
    matching_scans: List[ModelScan] = field(default_factory=list)


class ModelQueryService:
    """
    Forwards simple queries to the catalog and reports a return code.

    Args:
        catalog: The grasp catalog, or None if no catalog could be connected.
    """

    def __init__(self, catalog: Optional[BaseCatalog]):
        self.catalog = catalog

    def get_model_list(self, model_set: str = "") -> ModelListResponse:
        if self.catalog is None:
            return ModelListResponse(DatabaseReturnCode.DATABASE_NOT_CONNECTED)
        try:
            model_ids = self.catalog.list_models(model_set)
        except CatalogError as e:
            logger.error(f"GetModelList: query error: {e}")
            return ModelListResponse(DatabaseReturnCode.DATABASE_QUERY_ERROR)
        return ModelListResponse(DatabaseReturnCode.SUCCESS, model_ids=model_ids)

    def get_model_mesh(self, model_id: int) -> ModelMeshResponse:
        if self.catalog is None:
            return ModelMeshResponse(DatabaseReturnCode.DATABASE_NOT_CONNECTED)
        try:
            mesh = self.catalog.get_mesh(model_id)
        except CatalogError as e:
            logger.error(f"GetModelMesh: query error: {e}")
            return ModelMeshResponse(DatabaseReturnCode.DATABASE_QUERY_ERROR)
        return ModelMeshResponse(DatabaseReturnCode.SUCCESS, mesh=mesh)

    def get_model_description(self, model_id: int) -> ModelDescriptionResponse:
        if self.catalog is None:
            return ModelDescriptionResponse(DatabaseReturnCode.DATABASE_NOT_CONNECTED)
        try:
            descriptions = self.catalog.get_descriptions(model_id)
        except CatalogError as e:
            logger.error(f"GetModelDescription: query error: {e}")
            return ModelDescriptionResponse(DatabaseReturnCode.DATABASE_QUERY_ERROR)
        # A scaled model id must identify exactly one model.
        if len(descriptions) != 1:
            return ModelDescriptionResponse(DatabaseReturnCode.DATABASE_QUERY_ERROR)
        description = descriptions[0]
        return ModelDescriptionResponse(
            DatabaseReturnCode.SUCCESS,
            name=description.name,
            maker=description.maker,
            tags=description.tags,
        )

    def get_model_scans(self, model_id: int, scan_source: str = "") -> ModelScansResponse:
        if self.catalog is None:
            logger.error("GetModelScans: database not connected")
            return ModelScansResponse(DatabaseReturnCode.DATABASE_NOT_CONNECTED)
        try:
            scans = self.catalog.get_scans(model_id, scan_source)
        except CatalogError as e:
            logger.error(f"GetModelScans: query error: {e}")
            return ModelScansResponse(DatabaseReturnCode.DATABASE_QUERY_ERROR)
        return ModelScansResponse(DatabaseReturnCode.SUCCESS, matching_scans=scans)

    def save_model_scan(self, scan: ModelScan) -> DatabaseReturnCode:
        if self.catalog is None:
            logger.error("SaveScan: database not connected")
            return DatabaseReturnCode.DATABASE_NOT_CONNECTED
        try:
            self.catalog.save_scan(scan)
        except CatalogError as e:
            logger.error(f"SaveScan: query error: {e}")
            return DatabaseReturnCode.DATABASE_QUERY_ERROR
        return DatabaseReturnCode.SUCCESS
