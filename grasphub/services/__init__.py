from .factory import build_services, connect_catalog
from .grasp_planning import GraspResolutionService
from .model_queries import ModelQueryService

__all__ = [
    "GraspResolutionService",
    "ModelQueryService",
    "build_services",
    "connect_catalog",
]
