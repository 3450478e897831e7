"""
Manifest Codec

Schema validation, reader and writer for the data service manifest,
plus the connection document codec.
"""

from .schema import SCHEMA_FILE, validate_manifest_bytes
from .reader import Attributes, Elements, read_manifest
from .writer import DEFAULT_INDENT, pretty_print_xml, write_manifest
from .connection import Connection, ConnectionType, read_connection, write_connection

__all__ = [
    "SCHEMA_FILE",
    "validate_manifest_bytes",
    "Attributes",
    "Elements",
    "read_manifest",
    "DEFAULT_INDENT",
    "pretty_print_xml",
    "write_manifest",
    "Connection",
    "ConnectionType",
    "read_connection",
    "write_connection",
]
