"""
Module 05 - API Request Models

Pydantic models for API request validation.
The manifest body mirrors ``Manifest.to_dict()``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from core.manifest import (
    ConnectionEntry,
    DataServiceEntry,
    Manifest,
    PublishPolicy,
    ServiceVdbEntry,
    VdbEntry,
    parse_timestamp,
)


class EntryModel(BaseModel):
    """A file entry (driver, metadata, UDF or resource)."""

    path: str = Field(..., min_length=1, description="Archive path of the entry")
    publish: str | None = Field(
        default=None,
        description="Publish policy: always, ifMissing (default) or never",
    )

    def policy(self) -> PublishPolicy:
        return PublishPolicy.from_xml(self.publish)

    def to_entry(self) -> DataServiceEntry:
        return DataServiceEntry(self.path, self.policy())


class VdbEntryModel(EntryModel):
    """A VDB entry."""

    vdb_name: str | None = None
    vdb_version: str | None = None

    def to_entry(self) -> VdbEntry:
        return VdbEntry(self.path, self.policy(), self.vdb_name, self.vdb_version)


class ServiceVdbEntryModel(VdbEntryModel):
    """The service VDB entry and its dependencies."""

    dependencies: list[VdbEntryModel] = Field(default_factory=list)

    def to_entry(self) -> ServiceVdbEntry:
        entry = ServiceVdbEntry(self.path, self.policy(), self.vdb_name, self.vdb_version)
        for dependency in self.dependencies:
            entry.add_vdb(dependency.to_entry())
        return entry


class ConnectionEntryModel(EntryModel):
    """A connection entry."""

    jndi_name: str = Field(..., min_length=1)

    def to_entry(self) -> ConnectionEntry:
        return ConnectionEntry(self.path, self.policy(), self.jndi_name)


class ManifestRenderRequest(BaseModel):
    """Request body for POST /manifest/render endpoint."""

    name: str = Field(..., min_length=1, description="Data service name")
    description: str | None = None
    last_modified: str | None = Field(
        default=None,
        description="Timestamp formatted as YYYY-MM-DDTHH:MM:SS",
    )
    modified_by: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)
    service_vdb: ServiceVdbEntryModel | None = None
    connections: list[ConnectionEntryModel] = Field(default_factory=list)
    drivers: list[EntryModel] = Field(default_factory=list)
    metadata: list[EntryModel] = Field(default_factory=list)
    udfs: list[EntryModel] = Field(default_factory=list)
    vdbs: list[VdbEntryModel] = Field(default_factory=list)
    resources: list[EntryModel] = Field(default_factory=list)
    pretty_print: bool = Field(default=True, description="Indent the rendered XML")
    indent: int = Field(default=4, ge=0, le=16, description="Indent width when pretty printing")

    def to_manifest(self) -> Manifest:
        """
        Build the manifest model.

        Raises:
            ValueError: a field fails model validation
        """
        manifest = Manifest(self.name)
        manifest.description = self.description
        if self.last_modified:
            manifest.last_modified = parse_timestamp(self.last_modified)
        manifest.modified_by = self.modified_by
        for key, value in self.properties.items():
            manifest.set_property(key, value)
        if self.service_vdb is not None:
            manifest.service_vdb = self.service_vdb.to_entry()
        for conn in self.connections:
            manifest.add_connection(conn.to_entry())
        for driver in self.drivers:
            manifest.add_driver(driver.to_entry())
        for ddl in self.metadata:
            manifest.add_metadata(ddl.to_entry())
        for udf in self.udfs:
            manifest.add_udf(udf.to_entry())
        for vdb in self.vdbs:
            manifest.add_vdb(vdb.to_entry())
        for resource in self.resources:
            manifest.add_resource(resource.to_entry())
        return manifest
