"""
Module 01 - Core Model & Codec
File: connection.py

Purpose: Connection model and its XML codec. A connection archive entry
holds either a ``jdbc-connection`` or a ``resource-connection`` document.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lxml import etree

from core.codec.schema import safe_parser
from core.codec.writer import DEFAULT_INDENT, pretty_print_xml
from core.errors import MalformedManifestError, SchemaValidationError


__all__ = [
    "ConnectionType",
    "Connection",
    "read_connection",
    "write_connection",
]


class ConnectionType(str, Enum):
    JDBC = "jdbc"
    RESOURCE = "resource"

    @property
    def root_element(self) -> str:
        return f"{self.value}-connection"

    @classmethod
    def from_root_element(cls, element: str) -> "ConnectionType | None":
        for kind in cls:
            if kind.root_element == element:
                return kind
        return None


# Connection element names
DESCRIPTION = "description"
JNDI_NAME = "jndi-name"
DRIVER_NAME = "driver-name"
DRIVER_CLASS = "driver-class"
PROPERTY = "property"
NAME = "name"


@dataclass
class Connection:
    """A JDBC or resource-adapter connection definition."""
    name: str
    type: ConnectionType = ConnectionType.JDBC
    description: str | None = None
    jndi_name: str | None = None
    driver_name: str | None = None
    class_name: str | None = None  # resource connections only
    properties: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "jndi_name": self.jndi_name,
            "driver_name": self.driver_name,
            "class_name": self.class_name,
            "properties": dict(self.properties),
        }


def read_connection(data: bytes, source: str | None = None) -> Connection:
    """
    Parse a connection document.

    Raises:
        SchemaValidationError: bytes are not well-formed XML
        MalformedManifestError: unknown root or child element, or missing name
    """
    try:
        root = etree.fromstring(data, safe_parser())
    except etree.XMLSyntaxError as e:
        raise SchemaValidationError(
            f"Connection is not well-formed XML: {e.msg}",
            path=source,
            line=e.lineno,
        ) from e

    kind = ConnectionType.from_root_element(etree.QName(root).localname)
    if kind is None:
        raise MalformedManifestError(
            f"Unexpected connection root element '{root.tag}'",
            path=source,
            element=str(root.tag),
        )

    name = root.get(NAME)
    if not name:
        raise MalformedManifestError("Connection has no name", path=source, element=str(root.tag))

    conn = Connection(name=name, type=kind)
    for child in root:
        if not isinstance(child.tag, str):
            continue  # comments and processing instructions
        tag = etree.QName(child).localname
        text = child.text or ""
        if tag == DESCRIPTION:
            conn.description = text or None
        elif tag == JNDI_NAME:
            conn.jndi_name = text.strip() or None
        elif tag == DRIVER_NAME:
            conn.driver_name = text.strip() or None
        elif tag == DRIVER_CLASS:
            conn.class_name = text.strip() or None
        elif tag == PROPERTY:
            prop_name = child.get(NAME)
            if not prop_name:
                raise MalformedManifestError("Connection property has no name", path=source, element=tag)
            conn.properties[prop_name] = text
        else:
            raise MalformedManifestError(
                f"Unexpected connection element '{tag}'",
                path=source,
                element=tag,
            )
    return conn


def write_connection(
    conn: Connection,
    *,
    pretty_print: bool = True,
    indent: int = DEFAULT_INDENT,
) -> bytes:
    """Serialize a connection document."""
    buffer = io.BytesIO()
    with etree.xmlfile(buffer, encoding="UTF-8") as xf:
        xf.write_declaration()
        with xf.element(conn.type.root_element, attrib={NAME: conn.name}):
            if conn.description:
                with xf.element(DESCRIPTION):
                    xf.write(conn.description)
            if conn.jndi_name:
                with xf.element(JNDI_NAME):
                    xf.write(conn.jndi_name)
            if conn.driver_name:
                with xf.element(DRIVER_NAME):
                    xf.write(conn.driver_name)
            if conn.type is ConnectionType.RESOURCE and conn.class_name:
                with xf.element(DRIVER_CLASS):
                    xf.write(conn.class_name)
            for prop_name, value in conn.properties.items():
                with xf.element(PROPERTY, attrib={NAME: prop_name}):
                    xf.write(value)

    data = buffer.getvalue()
    if pretty_print:
        data = pretty_print_xml(data, indent)
    return data
