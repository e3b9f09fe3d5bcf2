"""
Exception types for grasp resolution.

There are two tiers. A `GraspResolutionError` aborts the whole request and is
reported to the caller through its `status`. A `ShapeMismatchError` only
disqualifies the record being adapted; the request carries on without it.
Collaborator failures (`CatalogError`, `TransformLookupError`) are translated
into the request-level errors by the orchestrator.
"""

from __future__ import annotations

from grasphub.schema import GraspStatus


class GraspResolutionError(Exception):
    """Base class for request-fatal errors."""

    status: GraspStatus = GraspStatus.INVALID_REQUEST


class InvalidRequestError(GraspResolutionError):
    """The request is malformed or has no candidate model. Not retryable."""

    status = GraspStatus.INVALID_REQUEST


class ConfigurationMissingError(GraspResolutionError):
    """Hand description parameters are missing or malformed for an arm."""

    status = GraspStatus.CONFIGURATION_MISSING


class CatalogUnavailableError(GraspResolutionError):
    """The catalog is not connected or a query failed. Retryable."""

    status = GraspStatus.CATALOG_UNAVAILABLE


class TransformUnavailableError(GraspResolutionError):
    """No transform is known between the detection and reference frames."""

    status = GraspStatus.TRANSFORM_UNAVAILABLE


class ShapeMismatchError(ValueError):
    """A stored grasp does not fit the joint layout of the requesting hand."""

    pass


class CatalogError(Exception):
    """Raised by catalog implementations when a query cannot be answered."""

    pass


class CatalogSchemaError(CatalogError):
    """The catalog file does not follow the expected HDF5 layout."""

    pass


class TransformLookupError(LookupError):
    """Raised by transform providers when two frames are not connected."""

    pass
