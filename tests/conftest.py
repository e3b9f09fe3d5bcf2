import json
from pathlib import Path

import h5py
import numpy as np
import pytest

from grasphub.config.hand_description import HandProfileResolver, YamlParameterStore
from grasphub.schema import Pose, RawGraspRecord

IDENTITY_POSE = [0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 1.0]

PARALLEL_JAW_JOINTS = ["j1", "j2", "j3", "j4"]
THREE_FINGER_JOINTS = [f"sdh_{i}" for i in range(7)]
DIRECT_JOINTS = ["f1", "f2", "f3", "spread"]

HAND_DESCRIPTION = {
    "hand_description": {
        "right_arm": {
            "hand_database_name": "WILLOW_GRIPPER_2010",
            "hand_joints": PARALLEL_JAW_JOINTS,
        },
        "sdh_arm": {
            "hand_database_name": "Schunk",
            "hand_joints": THREE_FINGER_JOINTS,
        },
        "barrett_arm": {
            "hand_database_name": "BARRETT",
            "hand_joints": DIRECT_JOINTS,
        },
    }
}


def _grasp(grasp_id, quality, pre, final, **kwargs):
    return {
        "grasp_id": grasp_id,
        "quality": quality,
        "scaled_quality": kwargs.get("scaled_quality", 0.5),
        "pre": pre,
        "final": final,
        "pose": kwargs.get("pose", IDENTITY_POSE),
        "table_clearance": kwargs.get("table_clearance", 50.0),
        "cluster_rep": kwargs.get("cluster_rep", True),
    }


DEFAULT_MODELS = {
    18744: {
        "name": "coke_can",
        "maker": "Coca-Cola",
        "tags": ["can", "soda"],
        "model_sets": ["REDUCED_MODEL_SET"],
        "mesh": True,
        "grasps": {
            "WILLOW_GRIPPER_2010": [
                _grasp(1, -60.0, [0.5], [0.3], scaled_quality=0.9,
                       pose=[0.0, 0.0, 0.1, 0.0, 0.0, 0.0, 1.0]),
                _grasp(2, -40.0, [0.5], [0.2], scaled_quality=0.8),
                _grasp(3, -50.0, [0.4], [0.1], scaled_quality=0.7),
                _grasp(4, -70.0, [0.4], [0.1], cluster_rep=False),
            ],
            "Schunk": [
                _grasp(10, -55.0, [0.0] * 8, [0.0, 0, 0, 0, 0, 0, 1.2, -2.0]),
            ],
            "BARRETT": [
                _grasp(20, -45.0, [0.1, 0.2, 0.3, 0.4], [0.5, 0.6, 0.7, 0.8]),
            ],
        },
    },
    18800: {
        "name": "mug",
        "maker": "IKEA",
        "tags": ["mug"],
        "model_sets": ["FULL_MODEL_SET"],
        "mesh": False,
        "grasps": {
            "WILLOW_GRIPPER_2010": [
                _grasp(30, -65.0, [0.6], [0.05], scaled_quality=0.4),
            ],
        },
    },
}


@pytest.fixture
def catalog_file_factory(tmpdir_factory):
    """
    A pytest fixture that returns a factory function for creating temporary
    HDF5 grasp catalogs.

    Usage:
        def test_something(catalog_file_factory):
            catalog_path = catalog_file_factory()  # the DEFAULT_MODELS catalog
            catalog_path = catalog_file_factory({7: {...}})
    """

    def _create_file(models=None) -> Path:
        models = DEFAULT_MODELS if models is None else models
        temp_dir = Path(tmpdir_factory.mktemp("catalog"))
        file_path = temp_dir / "catalog.h5"

        with h5py.File(file_path, "w") as f:
            models_group = f.create_group("models")
            for model_id, model in models.items():
                model_group = models_group.create_group(str(model_id))
                model_group.attrs["name"] = model.get("name", "")
                model_group.attrs["maker"] = model.get("maker", "")
                model_group.attrs["tags"] = json.dumps(model.get("tags", []))
                model_group.attrs["model_sets"] = json.dumps(
                    model.get("model_sets", [])
                )

                if model.get("mesh"):
                    mesh_group = model_group.create_group("mesh")
                    mesh_group.create_dataset(
                        "vertices",
                        data=np.array(
                            [[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float64
                        ),
                    )
                    mesh_group.create_dataset(
                        "triangles", data=np.array([[0, 1, 2]], dtype=np.int32)
                    )

                grasps_group = model_group.create_group("grasps")
                for hand_id, grasps in model.get("grasps", {}).items():
                    hand_group = grasps_group.create_group(hand_id)
                    hand_group.create_dataset(
                        "grasp_ids",
                        data=np.array([g["grasp_id"] for g in grasps], dtype=np.int64),
                    )
                    for name in ("quality", "scaled_quality", "table_clearance"):
                        hand_group.create_dataset(
                            name,
                            data=np.array([g[name] for g in grasps], dtype=np.float64),
                        )
                    hand_group.create_dataset(
                        "cluster_rep",
                        data=np.array([g["cluster_rep"] for g in grasps], dtype=bool),
                    )
                    hand_group.create_dataset(
                        "pre_grasp_joints",
                        data=np.array([g["pre"] for g in grasps], dtype=np.float64),
                    )
                    hand_group.create_dataset(
                        "final_grasp_joints",
                        data=np.array([g["final"] for g in grasps], dtype=np.float64),
                    )
                    hand_group.create_dataset(
                        "final_grasp_pose",
                        data=np.array([g["pose"] for g in grasps], dtype=np.float64),
                    )

        return file_path

    return _create_file


@pytest.fixture
def record_factory():
    """Returns a factory for RawGraspRecord instances with sensible defaults."""

    def _create_record(**overrides) -> RawGraspRecord:
        values = {
            "grasp_id": 1,
            "scaled_model_id": 18744,
            "hand_id": "WILLOW_GRIPPER_2010",
            "quality": -60.0,
            "scaled_quality": 0.5,
            "pre_grasp_joints": (0.5,),
            "final_grasp_joints": (0.3,),
            "final_grasp_pose": Pose(),
            "table_clearance": 50.0,
        }
        values.update(overrides)
        return RawGraspRecord(**values)

    return _create_record


@pytest.fixture
def hand_profiles():
    return HandProfileResolver(YamlParameterStore(HAND_DESCRIPTION))
