"""
Test fixtures package for data service archive tests.

This package provides factory functions for creating test objects:
- archive_fixtures.py: manifests, payload documents and zip archives
  (default, nested dependency and multi-entry catalog archives)

Usage:
    from tests.fixtures import make_manifest, make_full_archive

    def test_something():
        manifest = make_manifest(name="MyService")
        data = make_full_archive()
"""

from .archive_fixtures import (
    SERVICE_VDB_PATH,
    DEPENDENCY_VDB_PATH,
    VDB_PATH,
    CONNECTION_PATH,
    DRIVER_PATH,
    DDL_PATH,
    UDF_PATH,
    RESOURCE_PATH,
    CONNECTION_JNDI,
    NESTED_SERVICE_VDB_PATH,
    NESTED_DEPENDENCY_PATH,
    CATALOG_SERVICE_VDB_PATH,
    CATALOG_DEPENDENCY_PATH,
    CATALOG_UDF_PATH,
    CATALOG_NEVER_UDF_PATH,
    make_vdb_xml,
    make_connection,
    make_connection_xml,
    make_manifest,
    make_payloads,
    make_archive,
    make_full_archive,
    make_nested_manifest,
    make_nested_archive,
    make_catalog_manifest,
    make_catalog_payloads,
    make_catalog_archive,
    zip_members,
)

__all__ = [
    # Paths
    "SERVICE_VDB_PATH",
    "DEPENDENCY_VDB_PATH",
    "VDB_PATH",
    "CONNECTION_PATH",
    "DRIVER_PATH",
    "DDL_PATH",
    "UDF_PATH",
    "RESOURCE_PATH",
    "CONNECTION_JNDI",
    "NESTED_SERVICE_VDB_PATH",
    "NESTED_DEPENDENCY_PATH",
    "CATALOG_SERVICE_VDB_PATH",
    "CATALOG_DEPENDENCY_PATH",
    "CATALOG_UDF_PATH",
    "CATALOG_NEVER_UDF_PATH",
    # Factories
    "make_vdb_xml",
    "make_connection",
    "make_connection_xml",
    "make_manifest",
    "make_payloads",
    "make_archive",
    "make_full_archive",
    "make_nested_manifest",
    "make_nested_archive",
    "make_catalog_manifest",
    "make_catalog_payloads",
    "make_catalog_archive",
    "zip_members",
]
