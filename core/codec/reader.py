"""
Module 01 - Core Model & Codec
File: reader.py

Purpose: Manifest reader. Validates manifest bytes against the manifest
schema, then builds a Manifest in a single event-driven pass.

The parse is driven by lxml parser-target callbacks (start/data/end/close).
All scratch state lives on a handler created per call, so ``read_manifest``
is safe to call concurrently.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping

from lxml import etree

from core.codec.schema import safe_parser, validate_manifest_bytes
from core.errors import MalformedManifestError, SchemaValidationError
from core.manifest import (
    ConnectionEntry,
    DataServiceEntry,
    Manifest,
    PublishPolicy,
    ServiceVdbEntry,
    VdbEntry,
    parse_timestamp,
)


__all__ = ["Elements", "Attributes", "read_manifest"]


logger = logging.getLogger(__name__)


class Elements:
    """Manifest element names."""
    DATASERVICE = "dataservice"
    DESCRIPTION = "description"
    LAST_MODIFIED = "last-modified"
    MODIFIED_BY = "modified-by"
    PROPERTY = "property"
    SERVICE_VDB_FILE = "service-vdb-file"
    DEPENDENCIES = "dependencies"
    METADATA = "metadata"
    DDL_FILE = "ddl-file"
    CONNECTIONS = "connections"
    CONNECTION_FILE = "connection-file"
    DRIVERS = "drivers"
    DRIVER_FILE = "driver-file"
    UDFS = "udfs"
    UDF_FILE = "udf-file"
    VDBS = "vdbs"
    VDB_FILE = "vdb-file"
    RESOURCES = "resources"
    RESOURCE_FILE = "resource-file"


class Attributes:
    """Manifest attribute names."""
    NAME = "name"
    PATH = "path"
    PUBLISH = "publish"
    JNDI_NAME = "jndi-name"
    VDB_NAME = "vdb-name"
    VDB_VERSION = "vdb-version"


class VdbParent(Enum):
    """Which owner a ``vdb-file`` element attaches to."""
    UNKNOWN = "unknown"
    MANIFEST = "manifest"
    SERVICE_VDB = "service_vdb"


# Elements whose character data is collected
_TEXT_ELEMENTS = frozenset({
    Elements.DESCRIPTION,
    Elements.LAST_MODIFIED,
    Elements.MODIFIED_BY,
    Elements.PROPERTY,
})

# Plain file elements and the section element that must enclose them
_FILE_SECTIONS = {
    Elements.DDL_FILE: Elements.METADATA,
    Elements.DRIVER_FILE: Elements.DRIVERS,
    Elements.UDF_FILE: Elements.UDFS,
    Elements.RESOURCE_FILE: Elements.RESOURCES,
}

_SECTIONS = frozenset({
    Elements.METADATA,
    Elements.CONNECTIONS,
    Elements.DRIVERS,
    Elements.UDFS,
    Elements.RESOURCES,
})


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


class _ManifestHandler:
    """Parser target building a Manifest from element events."""

    def __init__(self, source: str | None) -> None:
        self.source = source
        self.manifest: Manifest | None = None
        self.stack: list[str] = []
        self.buffer: list[str] = []
        self.vdb_parent = VdbParent.UNKNOWN
        self.service_vdb: ServiceVdbEntry | None = None
        self.property_name: str | None = None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _malformed(self, message: str, element: str | None = None) -> MalformedManifestError:
        return MalformedManifestError(message, path=self.source, element=element)

    def _require(self, attrib: Mapping[str, str], name: str, element: str) -> str:
        value = attrib.get(name)
        if value is None or not value.strip():
            raise self._malformed(f"Element '{element}' is missing attribute '{name}'", element)
        return value

    def _require_manifest(self, element: str) -> Manifest:
        if self.manifest is None:
            raise self._malformed(f"Element '{element}' found outside the manifest root", element)
        return self.manifest

    def _parent(self) -> str | None:
        # stack already holds the current element
        return self.stack[-2] if len(self.stack) > 1 else None

    def _entry_args(self, attrib: Mapping[str, str], element: str) -> tuple[str, PublishPolicy]:
        path = self._require(attrib, Attributes.PATH, element)
        return path, PublishPolicy.from_xml(attrib.get(Attributes.PUBLISH))

    def _vdb_entry(self, cls: type[VdbEntry], attrib: Mapping[str, str], element: str) -> VdbEntry:
        path, policy = self._entry_args(attrib, element)
        return cls(
            path,
            policy,
            vdb_name=attrib.get(Attributes.VDB_NAME),
            vdb_version=attrib.get(Attributes.VDB_VERSION),
        )

    # -------------------------------------------------------------------------
    # Parser target interface
    # -------------------------------------------------------------------------

    def start(self, tag: str, attrib: Mapping[str, str]) -> None:
        element = _local_name(tag)
        self.stack.append(element)
        self.buffer.clear()

        if element == Elements.DATASERVICE:
            if self.manifest is not None:
                raise self._malformed("Nested data service element", element)
            self.manifest = Manifest(self._require(attrib, Attributes.NAME, element))
            return

        manifest = self._require_manifest(element)

        if element in _TEXT_ELEMENTS:
            if self._parent() != Elements.DATASERVICE:
                raise self._malformed(f"Element '{element}' is not a child of the root", element)
            if element == Elements.PROPERTY:
                self.property_name = self._require(attrib, Attributes.NAME, element)
        elif element == Elements.SERVICE_VDB_FILE:
            if manifest.service_vdb is not None:
                raise self._malformed("Only one service VDB may be declared", element)
            self.service_vdb = self._vdb_entry(ServiceVdbEntry, attrib, element)
            manifest.service_vdb = self.service_vdb
        elif element == Elements.DEPENDENCIES:
            if self._parent() != Elements.SERVICE_VDB_FILE or self.service_vdb is None:
                raise self._malformed("Dependencies found outside the service VDB", element)
            self.vdb_parent = VdbParent.SERVICE_VDB
        elif element == Elements.VDBS:
            self.vdb_parent = VdbParent.MANIFEST
        elif element == Elements.VDB_FILE:
            entry = self._vdb_entry(VdbEntry, attrib, element)
            if self.vdb_parent is VdbParent.MANIFEST:
                manifest.add_vdb(entry)
            elif self.vdb_parent is VdbParent.SERVICE_VDB:
                self.service_vdb.add_vdb(entry)
            else:
                raise self._malformed(
                    "VDB file found outside both the VDBs and service VDB dependencies sections",
                    element,
                )
        elif element in _SECTIONS:
            pass
        elif element == Elements.CONNECTION_FILE:
            if self._parent() != Elements.CONNECTIONS:
                raise self._malformed("Connection file found outside the connections section", element)
            path, policy = self._entry_args(attrib, element)
            manifest.add_connection(
                ConnectionEntry(
                    path,
                    policy,
                    jndi_name=self._require(attrib, Attributes.JNDI_NAME, element),
                )
            )
        elif element in _FILE_SECTIONS:
            section = _FILE_SECTIONS[element]
            if self._parent() != section:
                raise self._malformed(f"Element '{element}' found outside the '{section}' section", element)
            entry = DataServiceEntry(*self._entry_args(attrib, element))
            if element == Elements.DDL_FILE:
                manifest.add_metadata(entry)
            elif element == Elements.DRIVER_FILE:
                manifest.add_driver(entry)
            elif element == Elements.UDF_FILE:
                manifest.add_udf(entry)
            else:
                manifest.add_resource(entry)
        else:
            raise self._malformed(f"Unexpected element '{element}'", element)

    def data(self, text: str) -> None:
        if self.stack and self.stack[-1] in _TEXT_ELEMENTS:
            self.buffer.append(text)

    def end(self, tag: str) -> None:
        element = _local_name(tag)
        text = "".join(self.buffer)
        manifest = self.manifest

        if element == Elements.DESCRIPTION:
            manifest.description = text
        elif element == Elements.LAST_MODIFIED:
            try:
                manifest.last_modified = parse_timestamp(text)
            except ValueError as e:
                raise self._malformed(f"Invalid last-modified value '{text}'", element) from e
        elif element == Elements.MODIFIED_BY:
            manifest.modified_by = text
        elif element == Elements.PROPERTY:
            manifest.set_property(self.property_name, text)
            self.property_name = None
        elif element in (Elements.DEPENDENCIES, Elements.VDBS):
            self.vdb_parent = VdbParent.UNKNOWN

        self.stack.pop()
        self.buffer.clear()

    def close(self) -> Manifest:
        if self.manifest is None:
            raise self._malformed("Manifest has no data service root element")

        # suffix normalization can make two distinct declared paths collide
        seen: dict[str, str] = {}
        for entry in self.manifest.entries():
            if entry.path in seen:
                raise SchemaValidationError(
                    f"Paths '{seen[entry.path]}' and '{entry.declared_path}' both normalize to '{entry.path}'",
                    path=self.source,
                    errors=[f"duplicate entry path '{entry.path}'"],
                )
            seen[entry.path] = entry.declared_path
        return self.manifest


def read_manifest(
    data: bytes | str,
    *,
    validate: bool = True,
    source: str | None = None,
) -> Manifest:
    """
    Read a manifest.

    Args:
        data: Manifest XML bytes
        validate: Validate against the manifest schema before parsing
        source: Archive member or file path, reported in errors

    Returns:
        The parsed Manifest

    Raises:
        SchemaValidationError: bytes are not well-formed or do not conform to the schema
        MalformedManifestError: unexpected element sequence found while parsing
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    if validate:
        validate_manifest_bytes(data, source=source)

    handler = _ManifestHandler(source)
    parser = safe_parser(target=handler)
    try:
        manifest = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise SchemaValidationError(
            f"Manifest is not well-formed XML: {e.msg}",
            path=source,
            line=e.lineno,
        ) from e

    logger.debug(f"Read manifest '{manifest.name}' from {source or '<bytes>'}")
    return manifest
