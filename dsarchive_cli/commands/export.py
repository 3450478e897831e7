"""
Module 04 - CLI Export Command

Export a data service from a JSON workspace content tree.

Usage:
    dsarchive export --source /dataservices/Portfolio --out portfolio.zip
    dsarchive export --source /dataservices/Portfolio --artifact manifest-xml --out dataservice.xml
    dsarchive export --source /dataservices/Portfolio --artifact file-list --out ./portfolio/
    dsarchive export --source /dataservices/Portfolio --artifact service-vdb-xml --out service-vdb.xml
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from archive.exporter import DataServiceExporter, ExportResult
from archive.options import ArtifactKind, ExportOptions
from core.content import NodeKinds, load_workspace
from core.errors import ArchiveException

from dsarchive_cli.config import load_runtime_config


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_ARCHIVE_ERROR = 2


@dataclass
class ExportSummary:
    """Summary of an export for CLI output."""
    source: str = ""
    artifact: str = ""
    output_path: str = ""
    files: list[str] = field(default_factory=list)
    bytes_written: int = 0
    skipped: list[dict[str, Any]] = field(default_factory=list)
    success: bool = False
    error: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if d["error"] is None:
            del d["error"]
        return d


def write_file_list(result: ExportResult, out_dir: Path) -> int:
    """Write each exported file below ``out_dir``. Returns total bytes written."""
    out_dir.mkdir(parents=True, exist_ok=True)
    base = out_dir.resolve()
    total = 0
    for path, content in zip(result.paths, result.contents):
        target = (base / path).resolve()
        if base not in target.parents:
            raise ValueError(f"Refusing to write outside {base}: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        total += len(content)
    return total


def print_summary(summary: ExportSummary, output_json: bool) -> None:
    if output_json:
        print(json.dumps(summary.to_dict(), indent=2))
        return

    if summary.success:
        print(f"Exported {summary.source} as {summary.artifact}: {summary.output_path}")
        for path in summary.files:
            print(f"  {path}")
        print(f"bytes: {summary.bytes_written}")
        for skipped in summary.skipped:
            print(f"skipped {skipped.get('path')}: {skipped.get('message')}")
    else:
        print(f"Failed to export {summary.source}", file=sys.stderr)
        if summary.error:
            print(f"Error: {summary.error.get('message')}", file=sys.stderr)


def export_cmd(args: Namespace) -> int:
    """Execute the export command."""
    cli_config = args.cli_config
    workspace = Path(args.workspace or cli_config.workspace)
    out_path = Path(args.out)

    options = ExportOptions.from_config(load_runtime_config(cli_config))
    if args.compact:
        options.pretty_print = False
    if args.indent is not None:
        options.indent = args.indent

    try:
        artifact = ArtifactKind.parse(args.artifact) if args.artifact else options.artifact
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = ExportSummary(source=args.source, artifact=artifact.value, output_path=str(out_path))

    if not workspace.exists():
        print(f"Error: Workspace not found: {workspace}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    tree = load_workspace(workspace)
    source = tree.node_at(args.source)
    if source is None or source.kind != NodeKinds.DATA_SERVICE:
        print(f"Error: No data service at {args.source}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        result = DataServiceExporter(tree, options).export(source, artifact)
    except ArchiveException as e:
        summary.error = e.to_error_model().model_dump()
        print_summary(summary, args.json)
        return EXIT_ARCHIVE_ERROR

    if artifact is ArtifactKind.FILE_LIST:
        summary.bytes_written = write_file_list(result, out_path)
        summary.files = list(result.paths)
    else:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(result.data)
        summary.bytes_written = len(result.data)
        summary.files = list(result.paths)

    summary.success = True
    summary.skipped = [s.model_dump() for s in result.skipped]
    print_summary(summary, args.json)
    return EXIT_SUCCESS
