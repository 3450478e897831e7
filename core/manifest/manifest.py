"""
Module 01 - Core Model & Codec
File: manifest.py

Purpose: In-memory model of the data service manifest
(``META-INF/dataservice.xml``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterator

from core.manifest.entries import (
    ConnectionEntry,
    DataServiceEntry,
    ServiceVdbEntry,
    VdbEntry,
)


__all__ = [
    "MANIFEST_PATH",
    "TIMESTAMP_FORMAT",
    "Manifest",
    "format_timestamp",
    "parse_timestamp",
]


MANIFEST_PATH = "META-INF/dataservice.xml"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Parse a manifest timestamp. Raises ValueError on bad input."""
    return datetime.strptime(text.strip(), TIMESTAMP_FORMAT)


def _empty_to_none(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    return value


class Manifest:
    """
    Data service manifest.

    Holds scalar metadata, free-form properties, an optional service VDB
    and the entry collections. Created fresh per read or per export.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._description: str | None = None
        self._last_modified: datetime | None = None
        self._modified_by: str | None = None
        self._properties: dict[str, str] = {}
        self._service_vdb: ServiceVdbEntry | None = None
        self._connections: list[ConnectionEntry] = []
        self._drivers: list[DataServiceEntry] = []
        self._metadata: list[DataServiceEntry] = []
        self._udfs: list[DataServiceEntry] = []
        self._vdbs: list[VdbEntry] = []
        self._resources: list[DataServiceEntry] = []

    # -------------------------------------------------------------------------
    # Scalars
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if value is None or not str(value).strip():
            raise ValueError("Data service name cannot be empty")
        self._name = str(value)

    @property
    def description(self) -> str | None:
        return self._description

    @description.setter
    def description(self, value: str | None) -> None:
        self._description = _empty_to_none(value)

    @property
    def last_modified(self) -> datetime | None:
        return self._last_modified

    @last_modified.setter
    def last_modified(self, value: datetime | None) -> None:
        """Stored naive, to the second. Aware values are converted to UTC first."""
        if value is None:
            self._last_modified = None
            return
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        self._last_modified = value.replace(microsecond=0)

    @property
    def modified_by(self) -> str | None:
        return self._modified_by

    @modified_by.setter
    def modified_by(self, value: str | None) -> None:
        self._modified_by = _empty_to_none(value)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def properties(self) -> dict[str, str]:
        """Copy of the free-form properties, in insertion order."""
        return dict(self._properties)

    def get_property(self, name: str) -> str | None:
        return self._properties.get(name)

    def set_property(self, name: str, value: str | None) -> None:
        """Set a property. An empty or None value removes it."""
        if name is None or not str(name).strip():
            raise ValueError("Property name cannot be empty")
        if value is None or value == "":
            self._properties.pop(name, None)
        else:
            self._properties[name] = str(value)

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    @property
    def service_vdb(self) -> ServiceVdbEntry | None:
        return self._service_vdb

    @service_vdb.setter
    def service_vdb(self, entry: ServiceVdbEntry | None) -> None:
        if self._service_vdb is not None:
            self._service_vdb.container = None
        if entry is not None:
            entry.container = self
        self._service_vdb = entry

    @property
    def connections(self) -> list[ConnectionEntry]:
        return list(self._connections)

    @property
    def drivers(self) -> list[DataServiceEntry]:
        return list(self._drivers)

    @property
    def metadata(self) -> list[DataServiceEntry]:
        return list(self._metadata)

    @property
    def udfs(self) -> list[DataServiceEntry]:
        return list(self._udfs)

    @property
    def vdbs(self) -> list[VdbEntry]:
        return list(self._vdbs)

    @property
    def resources(self) -> list[DataServiceEntry]:
        return list(self._resources)

    def add_connection(self, entry: ConnectionEntry) -> ConnectionEntry:
        self._connections.append(entry)
        return entry

    def add_driver(self, entry: DataServiceEntry) -> DataServiceEntry:
        self._drivers.append(entry)
        return entry

    def add_metadata(self, entry: DataServiceEntry) -> DataServiceEntry:
        self._metadata.append(entry)
        return entry

    def add_udf(self, entry: DataServiceEntry) -> DataServiceEntry:
        self._udfs.append(entry)
        return entry

    def add_vdb(self, entry: VdbEntry) -> VdbEntry:
        if isinstance(entry, ServiceVdbEntry):
            raise TypeError("Use the service_vdb attribute for the service VDB")
        entry.container = self
        self._vdbs.append(entry)
        return entry

    def add_resource(self, entry: DataServiceEntry) -> DataServiceEntry:
        self._resources.append(entry)
        return entry

    def entries(self) -> Iterator[DataServiceEntry]:
        """All entries, service VDB and its dependencies first."""
        if self._service_vdb is not None:
            yield self._service_vdb
            yield from self._service_vdb.vdbs
        yield from self._vdbs
        yield from self._connections
        yield from self._metadata
        yield from self._drivers
        yield from self._udfs
        yield from self._resources

    def find_entry(self, path: str) -> DataServiceEntry | None:
        for entry in self.entries():
            if entry.path == path:
                return entry
        return None

    # -------------------------------------------------------------------------
    # Serialization & comparison
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self._name,
            "description": self._description,
            "last_modified": (
                format_timestamp(self._last_modified) if self._last_modified else None
            ),
            "modified_by": self._modified_by,
            "properties": dict(self._properties),
            "service_vdb": self._service_vdb.to_dict() if self._service_vdb else None,
            "connections": [e.to_dict() for e in self._connections],
            "drivers": [e.to_dict() for e in self._drivers],
            "metadata": [e.to_dict() for e in self._metadata],
            "udfs": [e.to_dict() for e in self._udfs],
            "vdbs": [e.to_dict() for e in self._vdbs],
            "resources": [e.to_dict() for e in self._resources],
        }

    def _fields(self) -> tuple[Any, ...]:
        return (
            self._name,
            self._description,
            self._last_modified,
            self._modified_by,
            self._properties,
            self._service_vdb,
            self._connections,
            self._drivers,
            self._metadata,
            self._udfs,
            self._vdbs,
            self._resources,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Manifest):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self) -> int:
        return hash(("Manifest", self._name))

    def __repr__(self) -> str:
        return (
            f"Manifest(name={self._name!r}, entries={sum(1 for _ in self.entries())}, "
            f"service_vdb={self._service_vdb.path if self._service_vdb else None!r})"
        )
