"""
Hand description lookup.

Every arm is described under `/hand_description/<arm_name>/` by two
parameters: `hand_database_name`, the id the catalog stores grasps under, and
`hand_joints`, the ordered joint names of the physical hand. Both are
required, since joint mapping depends on the exact joint count and order.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

import yaml

from grasphub.errors import ConfigurationMissingError
from grasphub.schema import HandProfile

logger = logging.getLogger(__name__)

HAND_DESCRIPTION_NAMESPACE = "/hand_description"


class ParameterStore(Protocol):
    def get_param(self, name: str) -> Any:
        """Returns the value of a slash-separated parameter name, or raises KeyError."""
        ...


class YamlParameterStore:
    """
    Read-only parameters from a nested mapping, addressed by slash-separated names.

    `/hand_description/right_arm/hand_joints` resolves to
    `data["hand_description"]["right_arm"]["hand_joints"]`.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data = data or {}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "YamlParameterStore":
        logger.info(f"Loading parameters from {path}...")
        with open(path) as f:
            try:
                return cls(yaml.safe_load(f) or {})
            except yaml.YAMLError as e:
                logger.error(f"Error parsing YAML file {path}: {e}")
                raise

    def get_param(self, name: str) -> Any:
        value: Any = self.data
        for key in name.strip("/").split("/"):
            if not isinstance(value, dict) or key not in value:
                raise KeyError(name)
            value = value[key]
        return value


class HandProfileResolver:
    """
    Resolves an arm name to its `HandProfile`, memoizing the result.

    The cache is only cleared by `invalidate`, i.e. when the hand
    configuration is explicitly reloaded.
    """

    def __init__(self, params: ParameterStore):
        self.params = params
        self._cache: Dict[str, HandProfile] = {}
        self._lock = threading.Lock()

    def _param_name(self, arm_name: str, key: str) -> str:
        return f"{HAND_DESCRIPTION_NAMESPACE}/{arm_name}/{key}"

    def _get(self, name: str) -> Any:
        try:
            return self.params.get_param(name)
        except KeyError as e:
            logger.error(f"Hand description: could not find parameter {name}")
            raise ConfigurationMissingError(
                f"Hand description parameter {name} is not set"
            ) from e

    def hand_database_name(self, arm_name: str) -> str:
        name = self._param_name(arm_name, "hand_database_name")
        value = self._get(name)
        if not isinstance(value, str) or not value:
            logger.error(f"Hand description: bad parameter {name}")
            raise ConfigurationMissingError(
                f"Hand description parameter {name} must be a non-empty string"
            )
        return value

    def hand_joint_names(self, arm_name: str) -> List[str]:
        name = self._param_name(arm_name, "hand_joints")
        values = self._get(name)
        if not isinstance(values, list) or not all(
            isinstance(v, str) for v in values
        ):
            logger.error(f"Hand description: bad parameter {name}")
            raise ConfigurationMissingError(
                f"Hand description parameter {name} must be a list of strings"
            )
        return list(values)

    def resolve(self, arm_name: str) -> HandProfile:
        """
        Returns the hand profile for `arm_name`.

        Raises:
            ConfigurationMissingError: If either hand parameter is absent or
                has the wrong type.
        """
        profile = self._cache.get(arm_name)
        if profile is not None:
            return profile

        profile = HandProfile(
            catalog_hand_id=self.hand_database_name(arm_name),
            joint_names=tuple(self.hand_joint_names(arm_name)),
        )
        with self._lock:
            return self._cache.setdefault(arm_name, profile)

    def invalidate(self, arm_name: Optional[str] = None) -> None:
        """Drops the cached profile for one arm, or for all arms."""
        with self._lock:
            if arm_name is None:
                self._cache.clear()
            else:
                self._cache.pop(arm_name, None)
