from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from grasphub.processing.pruning import PRUNE_MODES, QUALITY_EXCLUSION_THRESHOLD

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.resolve() / "configs" / "grasphub.yaml"


@dataclass
class ServiceSettings:
    """Settings for the grasp service, usually read from `grasphub.yaml`."""

    catalog_path: Optional[Path] = None
    prune_mode: str = "quality"
    quality_threshold: float = QUALITY_EXCLUSION_THRESHOLD
    prune_gripper_opening: float = 0.5
    prune_table_clearance: float = 0.0
    hand_description: Dict[str, Any] = field(default_factory=dict)
    frames: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        if self.catalog_path is not None:
            self.catalog_path = Path(self.catalog_path)
        if self.prune_mode not in PRUNE_MODES:
            raise ValueError(
                f"prune_mode must be one of {PRUNE_MODES}, got '{self.prune_mode}'"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None):
        """
        Builds settings from a parsed YAML mapping.

        A relative `catalog_path` is resolved against `base_dir`, normally the
        directory of the YAML file.
        """
        catalog_path = data.get("catalog_path")
        if catalog_path is not None:
            catalog_path = Path(catalog_path)
            if base_dir is not None and not catalog_path.is_absolute():
                catalog_path = base_dir / catalog_path
        return cls(
            catalog_path=catalog_path,
            prune_mode=data.get("prune_mode", "quality"),
            quality_threshold=float(
                data.get("quality_threshold", QUALITY_EXCLUSION_THRESHOLD)
            ),
            prune_gripper_opening=float(data.get("prune_gripper_opening", 0.5)),
            prune_table_clearance=float(data.get("prune_table_clearance", 0.0)),
            hand_description=data.get("hand_description") or {},
            frames=data.get("frames") or [],
        )


def load_settings(path: Union[str, Path, None] = None) -> ServiceSettings:
    """
    Loads service settings from a YAML file.

    Falls back to the packaged default configuration when `path` is not given
    or does not exist.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        logging.warning(
            f"No config file found at {config_path}, "
            f"using default configuration {DEFAULT_CONFIG_PATH}"
        )
        config_path = DEFAULT_CONFIG_PATH

    logging.info(f"Loading configuration from {config_path}...")
    with open(config_path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logging.error(f"Error parsing YAML file {config_path}: {e}")
            raise
    return ServiceSettings.from_dict(data, base_dir=config_path.parent)
