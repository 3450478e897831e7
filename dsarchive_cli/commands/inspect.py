"""
Module 04 - CLI Inspect & Validate Commands

Read the manifest of an archive, or validate a standalone manifest file,
without touching a workspace.

Usage:
    dsarchive inspect archive.zip [--json]
    dsarchive validate dataservice.xml [--json]
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from archive.importer import ArchiveIndex
from core.codec.reader import read_manifest
from core.errors import ArchiveException, MissingManifestError
from core.manifest import MANIFEST_PATH, Manifest


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_ARCHIVE_ERROR = 2


@dataclass
class InspectSummary:
    """Summary of a manifest for CLI output."""
    path: str = ""
    ok: bool = False
    manifest: dict[str, Any] | None = None
    members: list[str] = field(default_factory=list)
    undeclared_members: list[str] = field(default_factory=list)
    missing_entries: list[str] = field(default_factory=list)
    error: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if d["error"] is None:
            del d["error"]
        return d


def summarize_manifest(manifest: Manifest) -> list[str]:
    """Human-readable lines describing a manifest."""
    lines = [f"data service: {manifest.name}"]
    if manifest.description:
        lines.append(f"description: {manifest.description}")
    if manifest.last_modified:
        lines.append(f"last modified: {manifest.last_modified.isoformat()}")
    if manifest.modified_by:
        lines.append(f"modified by: {manifest.modified_by}")
    for name, value in manifest.properties.items():
        lines.append(f"property {name} = {value}")

    service_vdb = manifest.service_vdb
    if service_vdb is not None:
        lines.append(
            f"service VDB: {service_vdb.path} [{service_vdb.publish_policy.to_xml()}] "
            f"{service_vdb.vdb_name or ''} {service_vdb.vdb_version or ''}".rstrip()
        )
        for dep in service_vdb.vdbs:
            lines.append(f"  dependency: {dep.path} [{dep.publish_policy.to_xml()}]")

    sections = [
        ("connections", manifest.connections),
        ("drivers", manifest.drivers),
        ("metadata", manifest.metadata),
        ("udfs", manifest.udfs),
        ("vdbs", manifest.vdbs),
        ("resources", manifest.resources),
    ]
    for label, entries in sections:
        if not entries:
            continue
        lines.append(f"{label}:")
        for entry in entries:
            lines.append(f"  {entry.path} [{entry.publish_policy.to_xml()}]")
    return lines


def print_summary(summary: InspectSummary, manifest: Manifest | None, output_json: bool) -> None:
    if output_json:
        print(json.dumps(summary.to_dict(), indent=2))
        return

    if not summary.ok:
        print(f"Invalid: {summary.path}", file=sys.stderr)
        if summary.error:
            print(f"Error: {summary.error.get('message')}", file=sys.stderr)
        return

    for line in summarize_manifest(manifest):
        print(line)
    if summary.missing_entries:
        print(f"missing from archive: {', '.join(summary.missing_entries)}")
    if summary.undeclared_members:
        print(f"undeclared members: {', '.join(summary.undeclared_members)}")


def inspect_cmd(args: Namespace) -> int:
    """Execute the inspect command."""
    archive_path = Path(args.archive)
    summary = InspectSummary(path=str(archive_path))

    if not archive_path.exists():
        print(f"Error: Archive not found: {archive_path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    manifest = None
    try:
        index = ArchiveIndex(archive_path.read_bytes(), source=str(archive_path))
        try:
            if index.manifest_info is None:
                raise MissingManifestError(f"Archive has no {MANIFEST_PATH} entry", path=str(archive_path))
            manifest = read_manifest(
                index.read(index.manifest_info),
                source=f"{archive_path}!{index.manifest_info.filename}",
            )
            members = index.member_paths()
        finally:
            index.close()
    except ArchiveException as e:
        summary.error = e.to_error_model().model_dump()
        print_summary(summary, None, args.json)
        return EXIT_ARCHIVE_ERROR

    member_set = set(members)
    declared = {path for entry in manifest.entries() for path in entry.member_paths()}
    summary.ok = True
    summary.manifest = manifest.to_dict()
    summary.members = members
    summary.missing_entries = sorted(
        entry.path
        for entry in manifest.entries()
        if member_set.isdisjoint(entry.member_paths())
    )
    summary.undeclared_members = [
        m for m in members if m not in declared and m != MANIFEST_PATH
    ]
    print_summary(summary, manifest, args.json)
    return EXIT_SUCCESS


def validate_cmd(args: Namespace) -> int:
    """Execute the validate command."""
    manifest_path = Path(args.manifest)
    summary = InspectSummary(path=str(manifest_path))

    if not manifest_path.exists():
        print(f"Error: Manifest not found: {manifest_path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        manifest = read_manifest(manifest_path.read_bytes(), source=str(manifest_path))
    except ArchiveException as e:
        summary.error = e.to_error_model().model_dump()
        print_summary(summary, None, args.json)
        return EXIT_ARCHIVE_ERROR

    summary.ok = True
    summary.manifest = manifest.to_dict()
    print_summary(summary, manifest, args.json)
    return EXIT_SUCCESS
