"""
Module 01 - Core Model & Codec
File: writer.py

Purpose: Streaming manifest writer. Output parses back to an equal
Manifest with or without pretty printing.
"""

from __future__ import annotations

import io
from typing import Iterable

from lxml import etree

from core.codec.reader import Attributes, Elements
from core.codec.schema import safe_parser
from core.manifest import (
    ConnectionEntry,
    DataServiceEntry,
    Manifest,
    VdbEntry,
    format_timestamp,
)


__all__ = ["DEFAULT_INDENT", "write_manifest", "pretty_print_xml"]


DEFAULT_INDENT = 4


def _entry_attributes(entry: DataServiceEntry) -> dict[str, str]:
    attrib = {
        Attributes.PATH: entry.path,
        Attributes.PUBLISH: entry.publish_policy.to_xml(),
    }
    if isinstance(entry, VdbEntry):
        if entry.vdb_name is not None:
            attrib[Attributes.VDB_NAME] = entry.vdb_name
        if entry.vdb_version is not None:
            attrib[Attributes.VDB_VERSION] = entry.vdb_version
    elif isinstance(entry, ConnectionEntry) and entry.jndi_name is not None:
        attrib[Attributes.JNDI_NAME] = entry.jndi_name
    return attrib


def _write_text_element(xf, tag: str, text: str, attrib: dict[str, str] | None = None) -> None:
    with xf.element(tag, attrib=attrib or {}):
        xf.write(text)


def _write_section(xf, section: str, element: str, entries: Iterable[DataServiceEntry]) -> None:
    entries = list(entries)
    if not entries:
        return
    with xf.element(section):
        for entry in entries:
            with xf.element(element, attrib=_entry_attributes(entry)):
                pass


def pretty_print_xml(data: bytes, indent: int = DEFAULT_INDENT) -> bytes:
    """Re-indent an XML document, leaving leaf text untouched."""
    root = etree.fromstring(data, safe_parser())
    etree.indent(root, space=" " * max(indent, 0))
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def write_manifest(
    manifest: Manifest,
    *,
    pretty_print: bool = True,
    indent: int = DEFAULT_INDENT,
) -> bytes:
    """
    Serialize a manifest to XML bytes.

    Optional scalars and empty sections are omitted entirely.
    """
    buffer = io.BytesIO()
    with etree.xmlfile(buffer, encoding="UTF-8") as xf:
        xf.write_declaration()
        with xf.element(Elements.DATASERVICE, attrib={Attributes.NAME: manifest.name}):
            if manifest.description is not None:
                _write_text_element(xf, Elements.DESCRIPTION, manifest.description)
            if manifest.last_modified is not None:
                _write_text_element(xf, Elements.LAST_MODIFIED, format_timestamp(manifest.last_modified))
            if manifest.modified_by is not None:
                _write_text_element(xf, Elements.MODIFIED_BY, manifest.modified_by)

            for name, value in manifest.properties.items():
                _write_text_element(xf, Elements.PROPERTY, value, {Attributes.NAME: name})

            service_vdb = manifest.service_vdb
            if service_vdb is not None:
                with xf.element(Elements.SERVICE_VDB_FILE, attrib=_entry_attributes(service_vdb)):
                    _write_section(xf, Elements.DEPENDENCIES, Elements.VDB_FILE, service_vdb.vdbs)

            _write_section(xf, Elements.METADATA, Elements.DDL_FILE, manifest.metadata)
            _write_section(xf, Elements.CONNECTIONS, Elements.CONNECTION_FILE, manifest.connections)
            _write_section(xf, Elements.DRIVERS, Elements.DRIVER_FILE, manifest.drivers)
            _write_section(xf, Elements.UDFS, Elements.UDF_FILE, manifest.udfs)
            _write_section(xf, Elements.VDBS, Elements.VDB_FILE, manifest.vdbs)
            _write_section(xf, Elements.RESOURCES, Elements.RESOURCE_FILE, manifest.resources)

    data = buffer.getvalue()
    if pretty_print:
        data = pretty_print_xml(data, indent)
    return data
