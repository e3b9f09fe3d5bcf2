from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from grasphub.catalog.hdf5 import validate_catalog
from grasphub.config.settings import load_settings
from grasphub.errors import CatalogSchemaError
from grasphub.schema import DatabaseReturnCode, GraspRequest, GraspStatus, ModelScan, Pose
from grasphub.services.factory import build_services


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def _setup_resolve_parser(subparsers):
    """Set up the resolve command parser."""
    parser_resolve = subparsers.add_parser(
        "resolve", help="Resolve the stored grasps for a recognized object."
    )
    parser_resolve.add_argument(
        "request",
        type=Path,
        help="YAML or JSON file with arm_name, potential_models and "
        "reference_frame_id.",
    )


def _setup_list_models_parser(subparsers):
    """Set up the list-models command parser."""
    parser_list = subparsers.add_parser(
        "list-models", help="List the scaled model ids in the catalog."
    )
    parser_list.add_argument(
        "--model-set", default="", help="Only list models of this model set."
    )


def _setup_model_parsers(subparsers):
    """Set up the describe, mesh and scans command parsers."""
    parser_describe = subparsers.add_parser(
        "describe", help="Show the name, maker and tags of a scaled model."
    )
    parser_describe.add_argument("model_id", type=int)

    parser_mesh = subparsers.add_parser(
        "mesh", help="Show the mesh of a scaled model."
    )
    parser_mesh.add_argument("model_id", type=int)

    parser_scans = subparsers.add_parser(
        "scans", help="List the recorded scans of a scaled model."
    )
    parser_scans.add_argument("model_id", type=int)
    parser_scans.add_argument(
        "--scan-source", default="", help="Only list scans from this source."
    )


def _setup_save_scan_parser(subparsers):
    """Set up the save-scan command parser."""
    parser = subparsers.add_parser(
        "save-scan", help="Record a scan of a scaled model in the catalog."
    )
    parser.add_argument("model_id", type=int)
    parser.add_argument("--frame-id", required=True)
    parser.add_argument("--cloud-topic", required=True)
    parser.add_argument("--scan-source", required=True)
    parser.add_argument("--bagfile-location", required=True)
    parser.add_argument(
        "--pose",
        type=float,
        nargs=7,
        default=[0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 1.0],
        metavar=("PX", "PY", "PZ", "QX", "QY", "QZ", "QW"),
        help="Ground-truth object pose in --frame-id (default: identity).",
    )


def _setup_validate_parser(subparsers):
    """Set up the validate-catalog command parser."""
    parser_validate = subparsers.add_parser(
        "validate-catalog", help="Validate a catalog file against the HDF5 layout."
    )
    parser_validate.add_argument(
        "h5_path",
        type=Path,
        nargs="?",
        help="Catalog file to validate (default: the configured catalog).",
    )
    parser_validate.add_argument(
        "--strict", action="store_true", help="Stop at the first problem."
    )


def _handle_resolve_command(args, grasp_service):
    """Handle the resolve command."""
    with open(args.request) as f:
        try:
            request_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logging.error(f"Could not parse request file {args.request}: {e}")
            sys.exit(1)

    try:
        request = GraspRequest.from_dict(request_data)
    except (KeyError, TypeError, ValueError) as e:
        logging.error(f"Malformed grasp request in {args.request}: {e}")
        sys.exit(1)

    response = grasp_service.resolve_grasps(request)
    _print_json(response.to_dict())
    if response.status != GraspStatus.SUCCESS:
        sys.exit(1)


def _check_return_code(return_code: DatabaseReturnCode) -> None:
    if return_code != DatabaseReturnCode.SUCCESS:
        logging.error(f"Catalog query failed: {return_code.name}")
        sys.exit(1)


def _handle_list_models_command(args, model_queries):
    """Handle the list-models command."""
    response = model_queries.get_model_list(args.model_set)
    _check_return_code(response.return_code)
    _print_json({"model_ids": response.model_ids})


def _handle_describe_command(args, model_queries):
    """Handle the describe command."""
    response = model_queries.get_model_description(args.model_id)
    _check_return_code(response.return_code)
    _print_json(
        {"name": response.name, "maker": response.maker, "tags": list(response.tags)}
    )


def _handle_mesh_command(args, model_queries):
    """Handle the mesh command."""
    response = model_queries.get_model_mesh(args.model_id)
    _check_return_code(response.return_code)
    _print_json(
        {
            "vertices": response.mesh.vertices.tolist(),
            "triangles": response.mesh.triangles.tolist(),
        }
    )


def _handle_scans_command(args, model_queries):
    """Handle the scans command."""
    response = model_queries.get_model_scans(args.model_id, args.scan_source)
    _check_return_code(response.return_code)
    _print_json({"scans": [scan.to_dict() for scan in response.matching_scans]})


def _handle_save_scan_command(args, model_queries):
    """Handle the save-scan command."""
    scan = ModelScan(
        scaled_model_id=args.model_id,
        frame_id=args.frame_id,
        cloud_topic=args.cloud_topic,
        object_pose=Pose.from_array(args.pose),
        scan_source=args.scan_source,
        bagfile_location=args.bagfile_location,
    )
    _check_return_code(model_queries.save_model_scan(scan))
    logging.info(f"Saved scan for model {args.model_id}.")


def _handle_validate_command(args, settings):
    """Handle the validate-catalog command."""
    h5_path = args.h5_path or settings.catalog_path
    if h5_path is None:
        logging.error("No catalog file given and no catalog_path configured.")
        sys.exit(1)

    logging.info(f"Validating {h5_path} against the catalog layout...")
    try:
        problems = validate_catalog(h5_path, strict=args.strict)
    except CatalogSchemaError as e:
        logging.error(f"Validation Failed: {e}")
        sys.exit(1)
    if problems:
        logging.error(f"Validation found {len(problems)} problem(s).")
        sys.exit(1)
    logging.info("Validation successful.")


def main(argv=None):
    """The main entry point for the grasphub command-line interface."""
    parser = argparse.ArgumentParser(
        description="Stored-grasp lookup for recognized objects."
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Service settings YAML (default: the packaged grasphub.yaml).",
    )
    subparsers = parser.add_subparsers(
        dest="command", required=True, help="Available commands"
    )

    # Set up command parsers
    _setup_resolve_parser(subparsers)
    _setup_list_models_parser(subparsers)
    _setup_model_parsers(subparsers)
    _setup_save_scan_parser(subparsers)
    _setup_validate_parser(subparsers)

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    settings = load_settings(args.config)

    if args.command == "validate-catalog":
        _handle_validate_command(args, settings)
        return

    grasp_service, model_queries = build_services(settings)

    # Handle commands
    if args.command == "resolve":
        _handle_resolve_command(args, grasp_service)
    elif args.command == "list-models":
        _handle_list_models_command(args, model_queries)
    elif args.command == "describe":
        _handle_describe_command(args, model_queries)
    elif args.command == "mesh":
        _handle_mesh_command(args, model_queries)
    elif args.command == "scans":
        _handle_scans_command(args, model_queries)
    elif args.command == "save-scan":
        _handle_save_scan_command(args, model_queries)


if __name__ == "__main__":
    main()
