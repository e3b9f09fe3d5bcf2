from .base import BaseCatalog
from .hdf5 import H5GraspCatalog, validate_catalog

__all__ = [
    "BaseCatalog",
    "H5GraspCatalog",
    "validate_catalog",
]
