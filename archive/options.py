"""
Module 03 - Archive Import & Export
File: options.py

Purpose: Options consumed by the importer and exporter, built from the
runtime configuration or constructed directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

from core.config.runtime import (
    DEFAULT_EXCLUDED_PROPERTY_PREFIXES,
    RuntimeConfig,
    get_default_config,
)
from core.content.lexicon import ResourceCollection


__all__ = [
    "ArtifactKind",
    "PropertyFilter",
    "PrefixPropertyFilter",
    "ImportOptions",
    "ExportOptions",
]


PropertyFilter = Callable[[str, Any], bool]


class ArtifactKind(str, Enum):
    """Output artifact produced by an export."""
    MANIFEST_XML = "manifest_xml"
    FULL_ZIP = "full_zip"
    FILE_LIST = "file_list"
    SERVICE_VDB_XML = "service_vdb_xml"

    @classmethod
    def default(cls) -> "ArtifactKind":
        return cls.FULL_ZIP

    @classmethod
    def parse(cls, text: str | None) -> "ArtifactKind":
        """Parse ``full-zip``, ``full_zip`` or ``FULL_ZIP``. Blank yields the default."""
        if not text or not text.strip():
            return cls.default()
        key = text.strip().lower().replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown artifact kind '{text}', expected one of: "
                + ", ".join(k.value for k in cls)
            ) from None


class PrefixPropertyFilter:
    """Accepts properties whose names do not start with an excluded prefix."""

    def __init__(self, excluded_prefixes: Iterable[str] = DEFAULT_EXCLUDED_PROPERTY_PREFIXES) -> None:
        self.excluded_prefixes = tuple(excluded_prefixes)

    def __call__(self, name: str, value: Any) -> bool:
        return not name.startswith(self.excluded_prefixes)

    def __repr__(self) -> str:
        return f"PrefixPropertyFilter({list(self.excluded_prefixes)!r})"


def _collection_key(collection: ResourceCollection | str) -> str:
    return collection.value if isinstance(collection, ResourceCollection) else str(collection)


@dataclass
class ImportOptions:
    """
    Import options.

    ``resolution_roots`` maps a collection name to the content-tree path
    searched for existing resources. Absolute paths start at the tree root,
    relative paths at the data service node's parent.
    """
    resolution_roots: dict[str, str] = field(default_factory=dict)

    def root_override(self, collection: ResourceCollection | str) -> str | None:
        value = self.resolution_roots.get(_collection_key(collection))
        return value or None

    @classmethod
    def from_config(cls, config: RuntimeConfig | None = None) -> "ImportOptions":
        config = config or get_default_config()
        return cls(resolution_roots=dict(config.importer.resolution_roots))


@dataclass
class ExportOptions:
    """Export options."""
    artifact: ArtifactKind = ArtifactKind.FULL_ZIP
    pretty_print: bool = True
    indent: int = 4
    folders: dict[str, str] = field(
        default_factory=lambda: {c.value: f"{c.value}/" for c in ResourceCollection}
    )
    property_filter: PropertyFilter = field(default_factory=PrefixPropertyFilter)

    def folder_for(self, collection: ResourceCollection | str) -> str:
        """Archive folder for entries without a stored path. Always ends with ``/`` unless empty."""
        key = _collection_key(collection)
        folder = self.folders.get(key, f"{key}/") or ""
        if folder and not folder.endswith("/"):
            folder += "/"
        return folder

    @classmethod
    def from_config(cls, config: RuntimeConfig | None = None) -> "ExportOptions":
        config = config or get_default_config()
        export = config.exporter
        folders = {c.value: f"{c.value}/" for c in ResourceCollection}
        folders.update(export.folders)
        return cls(
            artifact=ArtifactKind.parse(export.artifact),
            pretty_print=export.pretty_print,
            indent=export.indent,
            folders=folders,
            property_filter=PrefixPropertyFilter(export.excluded_property_prefixes),
        )
