"""
HDF5-backed grasp catalog.

---
File layout:

    /models/<scaled_model_id>                 attrs: name, maker, tags, model_sets
        mesh/vertices         (V, 3) float64
        mesh/triangles        (T, 3) int32
        grasps/<hand_id>/
            grasp_ids           (N,)   int64
            quality             (N,)   float64
            scaled_quality      (N,)   float64
            pre_grasp_joints    (N, D) float64
            final_grasp_joints  (N, D) float64
            final_grasp_pose    (N, 7) float64   [px, py, pz, qx, qy, qz, qw]
            table_clearance     (N,)   float64   optional, millimetres
            cluster_rep         (N,)   bool      optional, defaults to all True
        scans/scan_<k>                        attrs: frame_id, cloud_topic,
                                                     scan_source, bagfile_location
            object_pose         (7,)   float64

`tags` and `model_sets` are JSON-encoded lists of strings. Grasp poses are in
the model's local frame.
---
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Union

import h5py
import numpy as np

from grasphub.catalog.base import BaseCatalog
from grasphub.errors import CatalogError, CatalogSchemaError
from grasphub.schema import (
    ModelDescription,
    ModelMesh,
    ModelScan,
    Pose,
    RawGraspRecord,
)

logger = logging.getLogger(__name__)

MODELS_GROUP = "models"

# dataset name -> expected rank
REQUIRED_GRASP_DATASETS = {
    "grasp_ids": 1,
    "quality": 1,
    "scaled_quality": 1,
    "pre_grasp_joints": 2,
    "final_grasp_joints": 2,
    "final_grasp_pose": 2,
}
OPTIONAL_GRASP_DATASETS = {"table_clearance": 1, "cluster_rep": 1}


def _attr_str(attrs: Any, key: str, default: str = "") -> str:
    value = attrs.get(key, default)
    if isinstance(value, bytes):
        value = value.decode()
    return str(value)


def _attr_list(attrs: Any, key: str) -> List[str]:
    raw = _attr_str(attrs, key, "[]")
    try:
        values = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CatalogSchemaError(f"Attribute '{key}' is not a JSON list: {raw}") from e
    return [str(v) for v in values]


class H5GraspCatalog(BaseCatalog):
    """
    Catalog stored in a single HDF5 file.

    The file is opened for each query, so concurrent readers never share a
    handle. Scan writes are serialized through a lock.

    Args:
        h5_path: Path to the catalog file.
    """

    def __init__(self, h5_path: Union[str, Path]):
        self.h5_path = Path(h5_path)
        if not self.h5_path.exists():
            raise FileNotFoundError(f"Catalog file not found: {self.h5_path}")
        self._write_lock = threading.Lock()

    def _open(self, mode: str = "r") -> h5py.File:
        try:
            return h5py.File(self.h5_path, mode)
        except OSError as e:
            raise CatalogError(f"Could not open catalog {self.h5_path}: {e}") from e

    def _models(self, f: h5py.File) -> h5py.Group:
        models = f.get(MODELS_GROUP)
        if not isinstance(models, h5py.Group):
            raise CatalogSchemaError(f"Catalog has no '/{MODELS_GROUP}' group")
        return models

    def _find_model(self, f: h5py.File, model_id: int) -> h5py.Group | None:
        group = self._models(f).get(str(int(model_id)))
        return group if isinstance(group, h5py.Group) else None

    def fetch_grasps(self, model_id: int, hand_id: str) -> List[RawGraspRecord]:
        with self._open() as f:
            model = self._find_model(f, model_id)
            if model is None:
                logger.warning(f"Scaled model {model_id} is not in the catalog")
                return []
            grasps_group = model.get("grasps")
            if not isinstance(grasps_group, h5py.Group) or hand_id not in grasps_group:
                return []
            return self._read_grasps(grasps_group[hand_id], int(model_id), hand_id)

    def _read_grasps(
        self, group: h5py.Group, model_id: int, hand_id: str
    ) -> List[RawGraspRecord]:
        try:
            data: Dict[str, np.ndarray] = {
                name: np.asarray(group[name]) for name in REQUIRED_GRASP_DATASETS
            }
        except KeyError as e:
            raise CatalogSchemaError(
                f"Grasp group '{group.name}' is missing a dataset: {e}"
            ) from e

        optional = {
            name: np.asarray(group[name])
            for name in OPTIONAL_GRASP_DATASETS
            if name in group
        }
        expected_ranks = {**REQUIRED_GRASP_DATASETS, **OPTIONAL_GRASP_DATASETS}
        num_grasps = None
        for name, values in {**data, **optional}.items():
            if values.ndim != expected_ranks[name]:
                raise CatalogSchemaError(
                    f"Dataset '{group.name}/{name}' has rank {values.ndim}, "
                    f"expected rank {expected_ranks[name]}"
                )
            if num_grasps is None:
                num_grasps = len(values)
            elif len(values) != num_grasps:
                raise CatalogSchemaError(
                    f"Dataset '{group.name}/{name}' has {len(values)} rows, "
                    f"expected {num_grasps}"
                )
        if data["final_grasp_pose"].shape[1] != 7:
            raise CatalogSchemaError(
                f"Dataset '{group.name}/final_grasp_pose' has "
                f"{data['final_grasp_pose'].shape[1]} columns, expected 7"
            )

        table_clearance = optional.get("table_clearance")
        cluster_rep = (
            optional["cluster_rep"].astype(bool)
            if "cluster_rep" in optional
            else np.ones(num_grasps, dtype=bool)
        )

        records = []
        for i in range(num_grasps):
            if not cluster_rep[i]:
                continue
            records.append(
                RawGraspRecord(
                    grasp_id=int(data["grasp_ids"][i]),
                    scaled_model_id=model_id,
                    hand_id=hand_id,
                    quality=float(data["quality"][i]),
                    scaled_quality=float(data["scaled_quality"][i]),
                    pre_grasp_joints=tuple(
                        float(v) for v in data["pre_grasp_joints"][i]
                    ),
                    final_grasp_joints=tuple(
                        float(v) for v in data["final_grasp_joints"][i]
                    ),
                    final_grasp_pose=Pose.from_array(data["final_grasp_pose"][i]),
                    table_clearance=(
                        float(table_clearance[i])
                        if table_clearance is not None
                        else None
                    ),
                    cluster_rep=True,
                )
            )
        return records

    def list_models(self, model_set: str = "") -> List[int]:
        with self._open() as f:
            model_ids = []
            for name, group in self._models(f).items():
                if not isinstance(group, h5py.Group) or not name.isdigit():
                    continue
                if model_set and model_set not in _attr_list(group.attrs, "model_sets"):
                    continue
                model_ids.append(int(name))
        return sorted(model_ids)

    def get_mesh(self, model_id: int) -> ModelMesh:
        with self._open() as f:
            model = self._find_model(f, model_id)
            if model is None:
                raise CatalogError(f"Scaled model {model_id} is not in the catalog")
            mesh = model.get("mesh")
            if (
                not isinstance(mesh, h5py.Group)
                or "vertices" not in mesh
                or "triangles" not in mesh
            ):
                raise CatalogError(f"Scaled model {model_id} has no mesh")
            return ModelMesh(
                vertices=np.asarray(mesh["vertices"], dtype=np.float64),
                triangles=np.asarray(mesh["triangles"], dtype=np.int32),
            )

    def get_descriptions(self, model_id: int) -> List[ModelDescription]:
        with self._open() as f:
            model = self._find_model(f, model_id)
            if model is None:
                return []
            return [
                ModelDescription(
                    name=_attr_str(model.attrs, "name"),
                    maker=_attr_str(model.attrs, "maker"),
                    tags=tuple(_attr_list(model.attrs, "tags")),
                )
            ]

    def get_scans(self, model_id: int, scan_source: str = "") -> List[ModelScan]:
        with self._open() as f:
            model = self._find_model(f, model_id)
            if model is None or "scans" not in model:
                return []
            scans = []
            for name in sorted(model["scans"].keys()):
                scan_group = model["scans"][name]
                source = _attr_str(scan_group.attrs, "scan_source")
                if scan_source and source != scan_source:
                    continue
                scans.append(
                    ModelScan(
                        scaled_model_id=int(model_id),
                        frame_id=_attr_str(scan_group.attrs, "frame_id"),
                        cloud_topic=_attr_str(scan_group.attrs, "cloud_topic"),
                        object_pose=Pose.from_array(scan_group["object_pose"][:]),
                        scan_source=source,
                        bagfile_location=_attr_str(
                            scan_group.attrs, "bagfile_location"
                        ),
                    )
                )
            return scans

    def save_scan(self, scan: ModelScan) -> None:
        with self._write_lock, self._open("a") as f:
            model = self._find_model(f, scan.scaled_model_id)
            if model is None:
                raise CatalogError(
                    f"Scaled model {scan.scaled_model_id} is not in the catalog"
                )
            scans = model.require_group("scans")
            scan_group = scans.create_group(f"scan_{len(scans):04d}")
            scan_group.attrs["frame_id"] = scan.frame_id
            scan_group.attrs["cloud_topic"] = scan.cloud_topic
            scan_group.attrs["scan_source"] = scan.scan_source
            scan_group.attrs["bagfile_location"] = scan.bagfile_location
            scan_group.create_dataset("object_pose", data=scan.object_pose.as_array())
        logger.info(
            f"Saved scan of model {scan.scaled_model_id} from '{scan.scan_source}'"
        )


def _check(problems: List[str], msg: str, strict: bool) -> None:
    if strict:
        raise CatalogSchemaError(msg)
    logger.warning(msg)
    problems.append(msg)


def validate_catalog(h5_path: Union[str, Path], strict: bool = False) -> List[str]:
    """
    Checks a catalog file against the expected layout.

    Args:
        h5_path: Path to the catalog file.
        strict: If True, raises CatalogSchemaError on the first problem.
                Otherwise, logs a warning per problem.

    Returns:
        The list of problems found (empty if the file is valid).
    """
    problems: List[str] = []
    with h5py.File(h5_path, "r") as f:
        models = f.get(MODELS_GROUP)
        if not isinstance(models, h5py.Group):
            _check(problems, f"Validation: Missing group '/{MODELS_GROUP}'", strict)
            return problems

        for model_name, model in models.items():
            path = f"/{MODELS_GROUP}/{model_name}"
            if not isinstance(model, h5py.Group):
                _check(problems, f"Validation: '{path}' is not a group", strict)
                continue
            if not model_name.isdigit():
                _check(problems, f"Validation: Model id '{path}' is not numeric", strict)
            for attr in ("name", "maker"):
                if attr not in model.attrs:
                    _check(
                        problems,
                        f"Validation: Missing attribute '{attr}' in group '{path}'",
                        strict,
                    )
            grasps = model.get("grasps")
            if not isinstance(grasps, h5py.Group):
                continue
            for hand_id, hand_group in grasps.items():
                hand_path = f"{path}/grasps/{hand_id}"
                if not isinstance(hand_group, h5py.Group):
                    _check(
                        problems, f"Validation: '{hand_path}' is not a group", strict
                    )
                    continue
                expected = {**REQUIRED_GRASP_DATASETS, **OPTIONAL_GRASP_DATASETS}
                for name, rank in expected.items():
                    if name not in hand_group:
                        if name in REQUIRED_GRASP_DATASETS:
                            _check(
                                problems,
                                f"Validation: Missing dataset '{hand_path}/{name}'",
                                strict,
                            )
                        continue
                    if hand_group[name].ndim != rank:
                        _check(
                            problems,
                            "Validation: Mismatched rank for dataset "
                            f"'{hand_path}/{name}'. Got rank {hand_group[name].ndim}, "
                            f"expected rank {rank}",
                            strict,
                        )
                pose = hand_group.get("final_grasp_pose")
                if pose is not None and pose.ndim == 2 and pose.shape[1] != 7:
                    _check(
                        problems,
                        f"Validation: '{hand_path}/final_grasp_pose' must have 7 "
                        f"columns, got {pose.shape[1]}",
                        strict,
                    )
    return problems
