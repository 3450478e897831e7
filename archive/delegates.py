"""
Module 03 - Archive Import & Export
File: delegates.py

Purpose: Sub-importers and sub-exporters for resource payloads.

The importer hands a freshly materialized resource node to the delegate
of its collection; the exporter asks the same delegate for the bytes to
place in the archive. VDB internals stay opaque: the default VDB delegate
only stores bytes and the declared name and version.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from lxml import etree

from core.codec.connection import Connection, ConnectionType, read_connection, write_connection
from core.codec.schema import safe_parser
from core.content.lexicon import Props, ResourceCollection
from core.content.tree import ContentNode, ContentTree
from core.errors import ArchiveException
from core.manifest import CONNECTION_SUFFIX

from archive.options import ExportOptions


__all__ = [
    "PayloadDelegate",
    "FileDelegate",
    "ConnectionDelegate",
    "VdbDelegate",
    "default_delegates",
]


logger = logging.getLogger(__name__)


@runtime_checkable
class PayloadDelegate(Protocol):
    """Converts between archive bytes and a resource node."""

    name: str

    def import_payload(self, tree: ContentTree, resource: ContentNode) -> bool:
        """Interpret the payload stored on ``resource``. False signals failure."""
        ...

    def export_payload(
        self,
        tree: ContentTree,
        resource: ContentNode,
        options: ExportOptions,
    ) -> bytes | None:
        """Bytes to write to the archive, or None when the resource has no content."""
        ...


class FileDelegate:
    """Drivers, metadata, UDFs and resources: bytes are kept as-is."""

    name = "file"

    def import_payload(self, tree: ContentTree, resource: ContentNode) -> bool:
        return tree.get_payload(resource) is not None

    def export_payload(
        self,
        tree: ContentTree,
        resource: ContentNode,
        options: ExportOptions,
    ) -> bytes | None:
        return tree.get_payload(resource)


class ConnectionDelegate:
    """
    Connection documents.

    Import parses the document onto node properties and drops the raw bytes.
    Export rebuilds the document from those properties.
    """

    name = "connection"

    def import_payload(self, tree: ContentTree, resource: ContentNode) -> bool:
        payload = tree.get_payload(resource)
        if payload is None:
            return False
        try:
            conn = read_connection(payload, source=resource.path)
        except ArchiveException as e:
            logger.error(f"Unable to read connection '{resource.name}': {e}")
            return False

        tree.set_property(resource, Props.CONNECTION_NAME, conn.name)
        tree.set_property(resource, Props.CONNECTION_TYPE, conn.type.value)
        tree.set_property(resource, Props.DESCRIPTION, conn.description)
        tree.set_property(resource, Props.JNDI_NAME, conn.jndi_name)
        tree.set_property(resource, Props.DRIVER_NAME, conn.driver_name)
        tree.set_property(resource, Props.CLASS_NAME, conn.class_name)
        for prop_name, value in conn.properties.items():
            tree.set_property(resource, prop_name, value)
        tree.set_payload(resource, None)
        return True

    def to_connection(
        self,
        tree: ContentTree,
        resource: ContentNode,
        options: ExportOptions,
    ) -> Connection | None:
        type_value = tree.get_property(resource, Props.CONNECTION_TYPE)
        if type_value is None:
            return None
        try:
            conn_type = ConnectionType(type_value)
        except ValueError:
            logger.warning(f"Connection '{resource.path}' has unknown type '{type_value}'")
            return None

        name = tree.get_property(resource, Props.CONNECTION_NAME)
        if not name:
            name = resource.name
            if name.endswith(CONNECTION_SUFFIX):
                name = name[: -len(CONNECTION_SUFFIX)]

        properties = {
            key: str(value)
            for key, value in tree.properties(resource).items()
            if options.property_filter(key, value)
        }
        return Connection(
            name=name,
            type=conn_type,
            description=tree.get_property(resource, Props.DESCRIPTION),
            jndi_name=tree.get_property(resource, Props.JNDI_NAME),
            driver_name=tree.get_property(resource, Props.DRIVER_NAME),
            class_name=tree.get_property(resource, Props.CLASS_NAME),
            properties=properties,
        )

    def export_payload(
        self,
        tree: ContentTree,
        resource: ContentNode,
        options: ExportOptions,
    ) -> bytes | None:
        conn = self.to_connection(tree, resource, options)
        if conn is None:
            # connection imported without a parsed document
            return tree.get_payload(resource)
        return write_connection(conn, pretty_print=options.pretty_print, indent=options.indent)


class VdbDelegate:
    """Opaque VDB handling: raw bytes plus the root's name and version."""

    name = "vdb"

    def import_payload(self, tree: ContentTree, resource: ContentNode) -> bool:
        payload = tree.get_payload(resource)
        if payload is None:
            return False
        try:
            root = etree.fromstring(payload, safe_parser())
        except etree.XMLSyntaxError as e:
            logger.error(f"VDB '{resource.name}' is not well-formed XML: {e.msg}")
            return False

        tree.set_property(resource, Props.VDB_DECLARED_NAME, root.get("name"))
        tree.set_property(resource, Props.VDB_DECLARED_VERSION, root.get("version"))
        return True

    def export_payload(
        self,
        tree: ContentTree,
        resource: ContentNode,
        options: ExportOptions,
    ) -> bytes | None:
        return tree.get_payload(resource)


def default_delegates() -> dict[ResourceCollection, PayloadDelegate]:
    files = FileDelegate()
    return {
        ResourceCollection.CONNECTIONS: ConnectionDelegate(),
        ResourceCollection.VDBS: VdbDelegate(),
        ResourceCollection.DRIVERS: files,
        ResourceCollection.METADATA: files,
        ResourceCollection.UDFS: files,
        ResourceCollection.RESOURCES: files,
    }
