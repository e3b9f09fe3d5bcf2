import json
from unittest.mock import Mock

import h5py
import pytest
import yaml

from grasphub.cli.main import (
    _setup_list_models_parser,
    _setup_model_parsers,
    _setup_resolve_parser,
    _setup_save_scan_parser,
    _setup_validate_parser,
    main,
)


@pytest.fixture
def config_factory(tmp_path, catalog_file_factory):
    """Returns a factory writing a service config next to a fresh catalog."""

    def _create_config(**overrides):
        config = {
            "catalog_path": str(catalog_file_factory()),
            "hand_description": {
                "right_arm": {
                    "hand_database_name": "WILLOW_GRIPPER_2010",
                    "hand_joints": ["j1", "j2", "j3", "j4"],
                }
            },
            "frames": [
                {"parent": "base_link", "child": "camera", "translation": [0, 0, 1]}
            ],
        }
        config.update(overrides)
        config_path = tmp_path / "grasphub.yaml"
        config_path.write_text(yaml.safe_dump(config))
        return config_path

    return _create_config


@pytest.fixture
def request_file(tmp_path):
    def _create_request(arm_name="right_arm", model_id=18744):
        path = tmp_path / "request.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "arm_name": arm_name,
                    "reference_frame_id": "base_link",
                    "potential_models": [
                        {
                            "model_id": model_id,
                            "pose": {
                                "frame_id": "camera",
                                "pose": {"position": [1.0, 0.0, 0.0]},
                            },
                        }
                    ],
                }
            )
        )
        return path

    return _create_request


def _run(capsys, *argv):
    main(list(argv))
    return json.loads(capsys.readouterr().out)


class TestCLIParsers:
    """Test the CLI parser setup functions."""

    @pytest.mark.parametrize(
        "setup,num_parsers",
        [
            (_setup_resolve_parser, 1),
            (_setup_list_models_parser, 1),
            (_setup_model_parsers, 3),
            (_setup_save_scan_parser, 1),
            (_setup_validate_parser, 1),
        ],
    )
    def test_setup_parsers(self, setup, num_parsers):
        subparsers = Mock()
        parser = Mock()
        subparsers.add_parser.return_value = parser

        setup(subparsers)

        assert subparsers.add_parser.call_count == num_parsers
        assert parser.add_argument.call_count >= 1

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main([])

    def test_save_scan_requires_fields(self):
        with pytest.raises(SystemExit):
            main(["save-scan", "18744", "--frame-id", "camera"])


class TestResolveCommand:
    """Test the resolve command."""

    def test_resolve(self, capsys, config_factory, request_file):
        data = _run(capsys, "--config", str(config_factory()), "resolve", str(request_file()))

        assert data["status"] == "success"
        assert [g["grasp_id"] for g in data["grasps"]] == [1, 3]
        assert data["grasps"][0]["grasp_pose"]["position"] == pytest.approx([1.0, 0.0, 1.1])

    def test_failed_request_exits(self, capsys, config_factory, request_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_factory()), "resolve", str(request_file("left_arm"))])

        assert exc_info.value.code == 1
        data = json.loads(capsys.readouterr().out)
        assert data["status"] == "configuration_missing"
        assert data["grasps"] == []

    def test_no_catalog(self, capsys, config_factory, request_file):
        config = config_factory(catalog_path=None)

        with pytest.raises(SystemExit):
            main(["--config", str(config), "resolve", str(request_file())])

        assert json.loads(capsys.readouterr().out)["status"] == "catalog_unavailable"

    def test_malformed_request(self, tmp_path, config_factory):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"potential_models": [{"confidence": 1.0}]}))

        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_factory()), "resolve", str(path)])
        assert exc_info.value.code == 1


class TestModelCommands:
    """Test the catalog pass-through commands."""

    def test_list_models(self, capsys, config_factory):
        config = str(config_factory())

        assert _run(capsys, "--config", config, "list-models") == {
            "model_ids": [18744, 18800]
        }
        assert _run(
            capsys, "--config", config, "list-models", "--model-set", "FULL_MODEL_SET"
        ) == {"model_ids": [18800]}

    def test_describe(self, capsys, config_factory):
        data = _run(capsys, "--config", str(config_factory()), "describe", "18744")
        assert data == {"name": "coke_can", "maker": "Coca-Cola", "tags": ["can", "soda"]}

    def test_describe_unknown_model(self, config_factory):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_factory()), "describe", "1"])
        assert exc_info.value.code == 1

    def test_mesh(self, capsys, config_factory):
        data = _run(capsys, "--config", str(config_factory()), "mesh", "18744")
        assert data["triangles"] == [[0, 1, 2]]
        assert len(data["vertices"]) == 3

    def test_save_scan_and_list(self, capsys, config_factory):
        config = str(config_factory())

        main(
            [
                "--config", config, "save-scan", "18744",
                "--frame-id", "camera",
                "--cloud-topic", "/camera/points",
                "--scan-source", "kinect",
                "--bagfile-location", "/data/scan.bag",
                "--pose", "0.1", "0", "0", "0", "0", "0", "1",
            ]
        )
        capsys.readouterr()
        data = _run(capsys, "--config", config, "scans", "18744")

        (scan,) = data["scans"]
        assert scan["scan_source"] == "kinect"
        assert scan["object_pose"]["position"] == [0.1, 0.0, 0.0]


class TestValidateCommand:
    """Test the validate-catalog command."""

    def test_valid_configured_catalog(self, config_factory):
        main(["--config", str(config_factory()), "validate-catalog"])

    def test_invalid_catalog(self, catalog_file_factory, config_factory):
        path = catalog_file_factory()
        with h5py.File(path, "a") as f:
            del f["models/18744"].attrs["name"]

        config = str(config_factory())
        with pytest.raises(SystemExit):
            main(["--config", config, "validate-catalog", str(path)])
        with pytest.raises(SystemExit):
            main(["--config", config, "validate-catalog", str(path), "--strict"])

    def test_no_catalog_configured(self, config_factory):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_factory(catalog_path=None)), "validate-catalog"])
        assert exc_info.value.code == 1
