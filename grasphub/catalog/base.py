from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from grasphub.schema import ModelDescription, ModelMesh, ModelScan, RawGraspRecord


class BaseCatalog(ABC):
    """
    Abstract base class for grasp catalogs.

    A catalog owns scaled models and the grasps pre-computed for them, per
    hand. Implementations raise `CatalogError` when a query cannot be
    answered; callers decide how that is reported.
    """

    @abstractmethod
    def fetch_grasps(self, model_id: int, hand_id: str) -> List[RawGraspRecord]:
        """Returns the cluster-representative grasps of a model for a hand."""
        raise NotImplementedError

    @abstractmethod
    def list_models(self, model_set: str = "") -> List[int]:
        """Returns the ids of the scaled models in a set (all models if empty)."""
        raise NotImplementedError

    @abstractmethod
    def get_mesh(self, model_id: int) -> ModelMesh:
        raise NotImplementedError

    @abstractmethod
    def get_descriptions(self, model_id: int) -> List[ModelDescription]:
        """Returns every description stored for `model_id`."""
        raise NotImplementedError

    @abstractmethod
    def get_scans(self, model_id: int, scan_source: str = "") -> List[ModelScan]:
        raise NotImplementedError

    @abstractmethod
    def save_scan(self, scan: ModelScan) -> None:
        raise NotImplementedError
