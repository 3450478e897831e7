"""
Module 04 - CLI Import Command

Import a data service archive into a JSON workspace content tree.

Usage:
    dsarchive import archive.zip [--workspace ws.json] [--parent /dataservices]
                     [--name NAME] [--replace] [--root connections=/shared/connections] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from archive.importer import ArchiveIndex, DataServiceImporter
from archive.options import ImportOptions
from core.codec.reader import read_manifest
from core.content import NodeKinds, ResourceCollection, load_workspace, save_workspace
from core.errors import ArchiveException, DelegateImportError, MissingManifestError
from core.manifest import MANIFEST_PATH

from dsarchive_cli.config import load_runtime_config


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_ARCHIVE_ERROR = 2


@dataclass
class ImportSummary:
    """Summary of an archive import for CLI output."""
    archive: str = ""
    workspace: str = ""
    data_service: str = ""
    node: str = ""
    entries: dict[str, Any] = field(default_factory=dict)
    missing_entries: list[str] = field(default_factory=list)
    success: bool = False
    error: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if d["error"] is None:
            del d["error"]
        return d


def parse_root_overrides(values: list[str] | None) -> dict[str, str]:
    """Parse ``KIND=PATH`` resolution-root overrides."""
    roots: dict[str, str] = {}
    valid = {c.value for c in ResourceCollection}
    for value in values or []:
        kind, sep, path = value.partition("=")
        kind = kind.strip().lower()
        if not sep or not path.strip():
            raise ValueError(f"Expected KIND=PATH, got '{value}'")
        if kind not in valid:
            raise ValueError(f"Unknown resource kind '{kind}', expected one of: {', '.join(sorted(valid))}")
        roots[kind] = path.strip()
    return roots


def peek_data_service_name(data: bytes, source: str) -> str:
    index = ArchiveIndex(data, source=source)
    try:
        if index.manifest_info is None:
            raise MissingManifestError(f"Archive has no {MANIFEST_PATH} entry", path=source)
        return read_manifest(index.read(index.manifest_info), source=source).name
    finally:
        index.close()


def print_summary(summary: ImportSummary, output_json: bool) -> None:
    if output_json:
        print(json.dumps(summary.to_dict(), indent=2))
        return

    if summary.success:
        print(f"Imported data service '{summary.data_service}' into {summary.node}")
        for path, info in summary.entries.items():
            print(f"  {path}: {info['outcome']} -> {info['node']}")
        if summary.missing_entries:
            print(f"missing from archive: {', '.join(summary.missing_entries)}")
        print(f"workspace: {summary.workspace}")
    else:
        print(f"Failed to import {summary.archive}", file=sys.stderr)
        if summary.error:
            print(f"Error: {summary.error.get('message')}", file=sys.stderr)


def import_cmd(args: Namespace) -> int:
    """Execute the import command."""
    cli_config = args.cli_config
    archive_path = Path(args.archive)
    workspace = Path(args.workspace or cli_config.workspace)
    summary = ImportSummary(archive=str(archive_path), workspace=str(workspace))

    if not archive_path.exists():
        print(f"Error: Archive not found: {archive_path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        roots = parse_root_overrides(args.root)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    options = ImportOptions.from_config(load_runtime_config(cli_config))
    options.resolution_roots.update(roots)

    data = archive_path.read_bytes()
    tree = load_workspace(workspace)

    try:
        name = args.name or peek_data_service_name(data, str(archive_path))
        parent = tree.ensure_path(args.parent)
        existing = tree.find_child(parent, name, NodeKinds.DATA_SERVICE)
        if existing is not None:
            if not args.replace:
                print(
                    f"Error: Data service '{existing.path}' already exists (use --replace)",
                    file=sys.stderr,
                )
                return EXIT_RUNTIME_ERROR
            tree.remove(existing)
        destination = tree.create_child(parent, name, NodeKinds.DATA_SERVICE)

        result = DataServiceImporter(tree, options).import_archive(
            data, destination, source=str(archive_path)
        )
    except DelegateImportError as e:
        # entries imported before the failure stay in the workspace
        save_workspace(tree, workspace)
        summary.error = e.to_error_model().model_dump()
        print_summary(summary, args.json)
        return EXIT_ARCHIVE_ERROR
    except ArchiveException as e:
        summary.error = e.to_error_model().model_dump()
        print_summary(summary, args.json)
        return EXIT_ARCHIVE_ERROR

    save_workspace(tree, workspace)

    report = result.to_dict()
    summary.success = True
    summary.data_service = result.manifest.name
    summary.node = destination.path
    summary.entries = report["entries"]
    summary.missing_entries = report["missing_entries"]
    print_summary(summary, args.json)
    return EXIT_SUCCESS
