"""
Manifest Model

Plain data structures for the data service manifest and its entries.
"""

from .policy import PublishPolicy
from .entries import (
    CONNECTION_SUFFIX,
    VDB_SUFFIX,
    ConnectionEntry,
    DataServiceEntry,
    ServiceVdbEntry,
    VdbEntry,
    normalize_path,
)
from .manifest import (
    MANIFEST_PATH,
    TIMESTAMP_FORMAT,
    Manifest,
    format_timestamp,
    parse_timestamp,
)

__all__ = [
    "PublishPolicy",
    "CONNECTION_SUFFIX",
    "VDB_SUFFIX",
    "ConnectionEntry",
    "DataServiceEntry",
    "ServiceVdbEntry",
    "VdbEntry",
    "normalize_path",
    "MANIFEST_PATH",
    "TIMESTAMP_FORMAT",
    "Manifest",
    "format_timestamp",
    "parse_timestamp",
]
