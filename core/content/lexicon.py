"""
Module 02 - Content Tree
File: lexicon.py

Purpose: Node kinds and property names used when materializing a data
service in the content tree, and the per-collection kind table shared by
the importer and the exporter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


__all__ = [
    "NodeKinds",
    "Props",
    "ResourceCollection",
    "CollectionKinds",
    "COLLECTION_KINDS",
    "collection_for_entry_kind",
]


class NodeKinds:
    """Content-tree node kinds."""

    ROOT = "nt:root"
    FOLDER = "nt:folder"

    DATA_SERVICE = "dv:dataService"

    # Entry nodes (children of the data service node)
    SERVICE_VDB_ENTRY = "dv:serviceVdbEntry"
    VDB_ENTRY = "dv:vdbEntry"
    CONNECTION_ENTRY = "dv:connectionEntry"
    DRIVER_ENTRY = "dv:driverEntry"
    METADATA_ENTRY = "dv:ddlEntry"
    UDF_ENTRY = "dv:udfEntry"
    RESOURCE_ENTRY = "dv:resourceEntry"

    # Resource nodes (referenced by entry nodes)
    VDB = "vdb:virtualDatabase"
    CONNECTION = "dv:connection"
    DRIVER_FILE = "dv:driverFile"
    METADATA_FILE = "dv:ddlFile"
    UDF_FILE = "dv:udfFile"
    RESOURCE_FILE = "dv:resourceFile"


class Props:
    """Content-tree property names."""

    # Data service node
    DATA_SERVICE_NAME = "dv:dataServiceName"
    DESCRIPTION = "dv:description"
    LAST_MODIFIED = "dv:lastModified"
    MODIFIED_BY = "dv:modifiedBy"

    # Entry nodes
    ENTRY_PATH = "dv:entryPath"
    PUBLISH_POLICY = "dv:publishPolicy"
    SOURCE_RESOURCE = "dv:sourceResource"
    JNDI_NAME = "dv:jndiName"
    VDB_NAME = "dv:vdbName"
    VDB_VERSION = "dv:vdbVersion"

    # Connection nodes
    CONNECTION_NAME = "dv:connectionName"
    CONNECTION_TYPE = "dv:connectionType"
    DRIVER_NAME = "dv:driverName"
    CLASS_NAME = "dv:className"

    # VDB nodes
    VDB_DECLARED_NAME = "vdb:name"
    VDB_DECLARED_VERSION = "vdb:version"


class ResourceCollection(str, Enum):
    """Manifest entry collections that map to a resolution root."""
    CONNECTIONS = "connections"
    DRIVERS = "drivers"
    METADATA = "metadata"
    RESOURCES = "resources"
    UDFS = "udfs"
    VDBS = "vdbs"


@dataclass(frozen=True)
class CollectionKinds:
    """Entry and resource node kinds for one manifest collection."""
    collection: ResourceCollection
    entry_kind: str
    resource_kind: str


COLLECTION_KINDS: dict[ResourceCollection, CollectionKinds] = {
    ResourceCollection.CONNECTIONS: CollectionKinds(
        ResourceCollection.CONNECTIONS, NodeKinds.CONNECTION_ENTRY, NodeKinds.CONNECTION,
    ),
    ResourceCollection.DRIVERS: CollectionKinds(
        ResourceCollection.DRIVERS, NodeKinds.DRIVER_ENTRY, NodeKinds.DRIVER_FILE,
    ),
    ResourceCollection.METADATA: CollectionKinds(
        ResourceCollection.METADATA, NodeKinds.METADATA_ENTRY, NodeKinds.METADATA_FILE,
    ),
    ResourceCollection.RESOURCES: CollectionKinds(
        ResourceCollection.RESOURCES, NodeKinds.RESOURCE_ENTRY, NodeKinds.RESOURCE_FILE,
    ),
    ResourceCollection.UDFS: CollectionKinds(
        ResourceCollection.UDFS, NodeKinds.UDF_ENTRY, NodeKinds.UDF_FILE,
    ),
    ResourceCollection.VDBS: CollectionKinds(
        ResourceCollection.VDBS, NodeKinds.VDB_ENTRY, NodeKinds.VDB,
    ),
}


def collection_for_entry_kind(kind: str) -> ResourceCollection | None:
    """Collection whose entries use ``kind``. Service VDB entries map to VDBS."""
    if kind == NodeKinds.SERVICE_VDB_ENTRY:
        return ResourceCollection.VDBS
    for kinds in COLLECTION_KINDS.values():
        if kinds.entry_kind == kind:
            return kinds.collection
    return None
