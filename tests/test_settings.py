import logging

import pytest
import yaml

from grasphub.config.settings import DEFAULT_CONFIG_PATH, ServiceSettings, load_settings
from grasphub.processing.pruning import QUALITY_EXCLUSION_THRESHOLD


class TestServiceSettings:
    def test_defaults(self):
        settings = ServiceSettings()

        assert settings.catalog_path is None
        assert settings.prune_mode == "quality"
        assert settings.quality_threshold == QUALITY_EXCLUSION_THRESHOLD
        assert settings.prune_gripper_opening == 0.5
        assert settings.prune_table_clearance == 0.0

    def test_invalid_prune_mode(self):
        with pytest.raises(ValueError, match="prune_mode"):
            ServiceSettings(prune_mode="random")

    def test_relative_catalog_path(self, tmp_path):
        settings = ServiceSettings.from_dict({"catalog_path": "data/grasps.h5"}, tmp_path)
        assert settings.catalog_path == tmp_path / "data" / "grasps.h5"

    def test_absolute_catalog_path(self, tmp_path):
        absolute = tmp_path / "grasps.h5"
        settings = ServiceSettings.from_dict({"catalog_path": str(absolute)}, tmp_path / "x")
        assert settings.catalog_path == absolute


class TestLoadSettings:
    """Test reading settings from YAML files."""

    def test_packaged_default(self):
        settings = load_settings()

        assert DEFAULT_CONFIG_PATH.exists()
        assert settings.prune_mode == "quality"
        assert "right_arm" in settings.hand_description
        assert settings.frames

    def test_custom_file(self, tmp_path):
        path = tmp_path / "service.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "catalog_path": "grasps.h5",
                    "prune_mode": "clearance",
                    "prune_gripper_opening": 0.3,
                    "hand_description": {"arm": {"hand_database_name": "BARRETT"}},
                }
            )
        )

        settings = load_settings(path)

        assert settings.catalog_path == tmp_path / "grasps.h5"
        assert settings.prune_mode == "clearance"
        assert settings.prune_gripper_opening == 0.3
        assert settings.frames == []

    def test_missing_file_falls_back_to_default(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            settings = load_settings(tmp_path / "nope.yaml")

        assert "No config file found" in caplog.text
        assert settings == load_settings(DEFAULT_CONFIG_PATH)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_settings(path) == ServiceSettings()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("prune_mode: [unclosed")

        with pytest.raises(yaml.YAMLError):
            load_settings(path)
