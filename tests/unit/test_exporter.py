"""
Module 03 - Archive Exporter Unit Tests
Tests for archive/exporter.py

Tests:
- import then export reproduces the manifest and payloads
- FULL_ZIP, FILE_LIST, MANIFEST_XML and SERVICE_VDB_XML artifacts
- NEVER entries: kept in the manifest, zero bytes in file lists, absent from zips
- unresolvable references are skipped and reported
- trees built without an archive (folder layout, VDB fallbacks)
- nested dependency and multi-entry catalog archives exported and re-imported
"""
import pytest

from archive.exporter import DEFAULT_VDB_VERSION, DataServiceExporter, export_data_service
from archive.importer import DataServiceImporter
from archive.options import ArtifactKind, ExportOptions, ImportOptions
from archive.resolver import ResolutionOutcome
from core.codec import read_manifest
from core.content import NodeKinds, Props
from core.errors import ErrorCodes, NoServiceVdbError
from core.manifest import MANIFEST_PATH, PublishPolicy

from fixtures import (
    CATALOG_DEPENDENCY_PATH,
    CATALOG_NEVER_UDF_PATH,
    CATALOG_SERVICE_VDB_PATH,
    CATALOG_UDF_PATH,
    CONNECTION_PATH,
    DDL_PATH,
    DEPENDENCY_VDB_PATH,
    DRIVER_PATH,
    NESTED_DEPENDENCY_PATH,
    NESTED_SERVICE_VDB_PATH,
    RESOURCE_PATH,
    SERVICE_VDB_PATH,
    UDF_PATH,
    VDB_PATH,
    make_archive,
    make_catalog_archive,
    make_catalog_manifest,
    make_catalog_payloads,
    make_full_archive,
    make_manifest,
    make_nested_archive,
    make_nested_manifest,
    make_payloads,
    make_vdb_xml,
    zip_members,
)


EXPECTED_ORDER = [
    MANIFEST_PATH,
    SERVICE_VDB_PATH,
    DEPENDENCY_VDB_PATH,
    VDB_PATH,
    CONNECTION_PATH,
    DDL_PATH,
    DRIVER_PATH,
    UDF_PATH,
    RESOURCE_PATH,
]


def _imported(tree, data=None, policy=None):
    node = tree.create_child(tree.root, "PortfolioService", NodeKinds.DATA_SERVICE)
    archive = data if data is not None else make_full_archive(policy=policy)
    DataServiceImporter(tree, ImportOptions()).import_archive(archive, node)
    return node


def _exporter(tree, **kwargs):
    return DataServiceExporter(tree, ExportOptions(**kwargs))


# =============================================================================
# Round Trip
# =============================================================================

class TestExportRoundTrip:
    """Import followed by export."""

    def test_manifest_reproduced(self, content_tree):
        node = _imported(content_tree)
        result = _exporter(content_tree).export(node, ArtifactKind.MANIFEST_XML)
        assert read_manifest(result.data) == make_manifest()
        assert result.manifest == make_manifest()

    def test_full_zip_paths_and_order(self, content_tree):
        node = _imported(content_tree)
        result = _exporter(content_tree).export(node, ArtifactKind.FULL_ZIP)

        assert result.paths == EXPECTED_ORDER
        assert list(zip_members(result.data)) == EXPECTED_ORDER

    def test_full_zip_payloads_reproduced(self, content_tree):
        node = _imported(content_tree)
        members = zip_members(_exporter(content_tree).export(node).data)

        for path, content in make_payloads().items():
            assert members[path] == content, path

    def test_full_zip_reimports(self, content_tree):
        node = _imported(content_tree)
        exported = _exporter(content_tree).export(node).data

        again = content_tree.create_child(content_tree.root, "Copy", NodeKinds.DATA_SERVICE)
        result = DataServiceImporter(content_tree, ImportOptions()).import_archive(exported, again)

        assert result.manifest == make_manifest()
        assert result.missing_entries == []

    def test_default_artifact_from_options(self, content_tree):
        node = _imported(content_tree)
        result = _exporter(content_tree, artifact=ArtifactKind.FILE_LIST).export(node)
        assert result.artifact is ArtifactKind.FILE_LIST
        assert result.data is None

    def test_artifact_by_name(self, content_tree):
        node = _imported(content_tree)
        assert export_data_service(content_tree, node, "manifest-xml").artifact is ArtifactKind.MANIFEST_XML


# =============================================================================
# Artifact Kinds
# =============================================================================

class TestArtifacts:
    """Tests for each artifact kind."""

    def test_file_list_matches_zip(self, content_tree):
        node = _imported(content_tree)
        exporter = _exporter(content_tree)
        listing = exporter.export(node, ArtifactKind.FILE_LIST)
        members = zip_members(exporter.export(node, ArtifactKind.FULL_ZIP).data)

        assert listing.paths == list(members)
        assert listing.contents == list(members.values())

    def test_compact_manifest(self, content_tree):
        node = _imported(content_tree)
        data = _exporter(content_tree, pretty_print=False).export(node, ArtifactKind.MANIFEST_XML).data
        assert b"\n    <" not in data

    def test_service_vdb_xml(self, content_tree):
        node = _imported(content_tree)
        result = _exporter(content_tree).export(node, ArtifactKind.SERVICE_VDB_XML)
        assert result.data == make_vdb_xml("PortfolioService", "1")
        assert result.manifest is None

    def test_service_vdb_xml_without_service_vdb(self, content_tree):
        payloads = make_payloads()
        del payloads[SERVICE_VDB_PATH]
        del payloads[DEPENDENCY_VDB_PATH]
        node = _imported(content_tree, make_archive(payloads, make_manifest(with_service_vdb=False)))

        with pytest.raises(NoServiceVdbError) as exc_info:
            _exporter(content_tree).export(node, ArtifactKind.SERVICE_VDB_XML)
        assert exc_info.value.code == ErrorCodes.NO_SERVICE_VDB

    def test_service_vdb_xml_with_never_policy(self, content_tree):
        node = _imported(content_tree, policy=PublishPolicy.NEVER)
        with pytest.raises(NoServiceVdbError):
            _exporter(content_tree).export(node, ArtifactKind.SERVICE_VDB_XML)


# =============================================================================
# NEVER Entries
# =============================================================================

class TestNeverEntries:
    """Entries whose payload is never published."""

    def test_kept_in_manifest(self, content_tree):
        node = _imported(content_tree, policy=PublishPolicy.NEVER)
        result = _exporter(content_tree).export(node, ArtifactKind.MANIFEST_XML)
        assert read_manifest(result.data) == make_manifest(policy=PublishPolicy.NEVER)

    def test_zero_bytes_in_file_list(self, content_tree):
        node = _imported(content_tree, policy=PublishPolicy.NEVER)
        result = _exporter(content_tree).export(node, ArtifactKind.FILE_LIST)

        assert result.paths == EXPECTED_ORDER
        assert all(content == b"" for content in result.contents[1:])

    def test_absent_from_zip(self, content_tree):
        node = _imported(content_tree, policy=PublishPolicy.NEVER)
        result = _exporter(content_tree).export(node, ArtifactKind.FULL_ZIP)
        assert list(zip_members(result.data)) == [MANIFEST_PATH]


# =============================================================================
# Skipped Entries
# =============================================================================

class TestSkippedEntries:
    """Best-effort export of damaged trees."""

    def test_missing_reference_skipped(self, content_tree):
        node = _imported(content_tree)
        entry = content_tree.find_child(node, "mysql-connector.jar", NodeKinds.DRIVER_ENTRY)
        resource = content_tree.resolve_reference(content_tree.get_property(entry, Props.SOURCE_RESOURCE))
        content_tree.remove(resource)

        result = _exporter(content_tree).export(node, ArtifactKind.FULL_ZIP)

        assert DRIVER_PATH not in result.paths
        assert result.manifest.drivers == []
        assert [s.code for s in result.skipped] == [ErrorCodes.MISSING_REFERENCE]
        assert result.skipped[0].path == DRIVER_PATH

    def test_resource_without_content_skipped(self, content_tree):
        node = _imported(content_tree)
        entry = content_tree.find_child(node, "readme.txt", NodeKinds.RESOURCE_ENTRY)
        resource = content_tree.resolve_reference(content_tree.get_property(entry, Props.SOURCE_RESOURCE))
        content_tree.set_payload(resource, None)

        result = _exporter(content_tree).export(node, ArtifactKind.FULL_ZIP)

        assert RESOURCE_PATH not in result.paths
        assert result.manifest.find_entry(RESOURCE_PATH) is not None
        assert result.skipped[0].code == ErrorCodes.MISSING_REFERENCE

    def test_connection_without_jndi_name_skipped(self, content_tree, data_service_node):
        tree = content_tree
        resource = tree.create_child(tree.root, "Pool", NodeKinds.CONNECTION)
        entry = tree.create_child(data_service_node, "Pool", NodeKinds.CONNECTION_ENTRY)
        tree.set_property(entry, Props.SOURCE_RESOURCE, resource.identifier)

        result = _exporter(tree).export(data_service_node, ArtifactKind.FILE_LIST)

        assert result.manifest.connections == []
        assert result.skipped == []
        assert result.paths == [MANIFEST_PATH]


# =============================================================================
# Trees Built Without an Archive
# =============================================================================

class TestHandBuiltTree:
    """Data service nodes assembled directly in the tree."""

    def _vdb(self, tree, parent, name, payload=None, declared=None):
        resource = tree.create_child(tree.root, name, NodeKinds.VDB)
        tree.set_payload(resource, payload if payload is not None else make_vdb_xml(name))
        if declared:
            tree.set_property(resource, Props.VDB_DECLARED_NAME, declared)
        entry = tree.create_child(parent, name, NodeKinds.VDB_ENTRY)
        tree.set_property(entry, Props.SOURCE_RESOURCE, resource.identifier)
        return entry

    def test_folder_layout_and_defaults(self, content_tree, data_service_node):
        self._vdb(content_tree, data_service_node, "Sales", declared="SalesVdb")

        result = _exporter(content_tree).export(data_service_node, ArtifactKind.FILE_LIST)

        vdb = result.manifest.vdbs[0]
        assert vdb.path == "vdbs/Sales-vdb.xml"
        assert vdb.vdb_name == "SalesVdb"
        assert vdb.vdb_version == DEFAULT_VDB_VERSION
        assert result.paths == [MANIFEST_PATH, "vdbs/Sales-vdb.xml"]

    def test_vdb_name_falls_back_to_resource_name(self, content_tree, data_service_node):
        self._vdb(content_tree, data_service_node, "Orders")
        manifest = _exporter(content_tree).export(data_service_node, ArtifactKind.MANIFEST_XML).manifest
        assert manifest.vdbs[0].vdb_name == "Orders"

    def test_service_vdb_has_no_folder(self, content_tree, data_service_node):
        tree = content_tree
        resource = tree.create_child(tree.root, "Main", NodeKinds.VDB)
        tree.set_payload(resource, make_vdb_xml("Main"))
        entry = tree.create_child(data_service_node, "Main", NodeKinds.SERVICE_VDB_ENTRY)
        tree.set_property(entry, Props.SOURCE_RESOURCE, resource.identifier)
        self._vdb(tree, entry, "Dep")

        result = _exporter(tree).export(data_service_node, ArtifactKind.FILE_LIST)

        assert result.manifest.service_vdb.path == "Main-vdb.xml"
        assert [v.path for v in result.manifest.service_vdb.vdbs] == ["vdbs/Dep-vdb.xml"]
        assert result.paths == [MANIFEST_PATH, "Main-vdb.xml", "vdbs/Dep-vdb.xml"]

    def test_custom_folders(self, content_tree, data_service_node):
        self._vdb(content_tree, data_service_node, "Sales")
        options = ExportOptions(folders={"vdbs": "models"})
        manifest = DataServiceExporter(content_tree, options).build_manifest(data_service_node)[0]
        assert manifest.vdbs[0].path == "models/Sales-vdb.xml"

    def test_property_filter(self, content_tree, data_service_node):
        tree = content_tree
        tree.set_property(data_service_node, "team", "analytics")
        tree.set_property(data_service_node, "jcr:uuid", "x")
        tree.set_property(data_service_node, "secret", "y")

        default = _exporter(tree).build_manifest(data_service_node)[0]
        custom = _exporter(tree, property_filter=lambda name, value: name == "team").build_manifest(
            data_service_node
        )[0]

        assert default.properties == {"team": "analytics", "secret": "y"}
        assert custom.properties == {"team": "analytics"}

    def test_name_falls_back_to_node_name(self, content_tree, data_service_node):
        manifest = _exporter(content_tree).build_manifest(data_service_node)[0]
        assert manifest.name == "PortfolioService"


# =============================================================================
# Scenarios
# =============================================================================

def _reimport(tree, data, name="Copy"):
    node = tree.create_child(tree.root, name, NodeKinds.DATA_SERVICE)
    return DataServiceImporter(tree, ImportOptions()).import_archive(data, node)


class TestNestedDependencyScenario:
    """Service VDB whose dependency is stored under vdbs/."""

    def test_export_then_reimport(self, content_tree):
        node = _imported(content_tree, make_nested_archive())
        exported = _exporter(content_tree).export(node, ArtifactKind.FULL_ZIP)

        assert exported.paths == [MANIFEST_PATH, NESTED_SERVICE_VDB_PATH, NESTED_DEPENDENCY_PATH]
        assert exported.manifest == make_nested_manifest()
        assert zip_members(exported.data)[NESTED_DEPENDENCY_PATH] == make_vdb_xml("twitter", "1")

        result = _reimport(content_tree, exported.data)

        assert result.ok
        assert result.manifest == make_nested_manifest()
        service_entry = result.entry_nodes[NESTED_SERVICE_VDB_PATH]
        dependency = result.entry_nodes[NESTED_DEPENDENCY_PATH]
        assert service_entry.kind == NodeKinds.SERVICE_VDB_ENTRY
        assert dependency.parent is service_entry
        assert content_tree.get_property(dependency, Props.VDB_NAME) == "twitter"
        assert content_tree.get_property(dependency, Props.VDB_VERSION) == "1"
        assert content_tree.children(result.data_service_node, NodeKinds.VDB_ENTRY) == []

    def test_service_vdb_xml(self, content_tree):
        node = _imported(content_tree, make_nested_archive())
        result = _exporter(content_tree).export(node, ArtifactKind.SERVICE_VDB_XML)
        assert result.data == make_vdb_xml("product-view", "1")


class TestCatalogScenario:
    """Several entries per collection, one UDF never published."""

    def test_manifest_reproduced(self, content_tree):
        node = _imported(content_tree, make_catalog_archive())
        manifest = _exporter(content_tree).export(node, ArtifactKind.MANIFEST_XML).manifest

        assert manifest == make_catalog_manifest()
        assert len(manifest.connections) == 2
        assert len(manifest.drivers) == 3
        assert len(manifest.metadata) == 2
        assert len(manifest.resources) == 2
        assert len(manifest.vdbs) == 2
        assert [v.path for v in manifest.service_vdb.vdbs] == [CATALOG_DEPENDENCY_PATH]
        assert [u.publish_policy for u in manifest.udfs] == [PublishPolicy.IF_MISSING, PublishPolicy.NEVER]

    def test_full_zip_leaves_out_never_udf(self, content_tree):
        node = _imported(content_tree, make_catalog_archive())
        result = _exporter(content_tree).export(node, ArtifactKind.FULL_ZIP)
        members = zip_members(result.data)

        assert CATALOG_NEVER_UDF_PATH not in members
        assert members[CATALOG_UDF_PATH] == b"pricing udf jar bytes"
        assert members[CATALOG_SERVICE_VDB_PATH] == make_vdb_xml("SalesCatalog", "1")
        assert set(members) == {MANIFEST_PATH, *make_catalog_payloads()}
        for path, content in make_catalog_payloads().items():
            assert members[path] == content, path

        written = read_manifest(members[MANIFEST_PATH])
        assert written == make_catalog_manifest()
        assert written.find_entry(CATALOG_NEVER_UDF_PATH).publish_policy is PublishPolicy.NEVER

    def test_file_list_empty_never_udf(self, content_tree):
        node = _imported(content_tree, make_catalog_archive())
        exporter = _exporter(content_tree)
        listing = exporter.export(node, ArtifactKind.FILE_LIST)
        contents = dict(zip(listing.paths, listing.contents))

        assert contents[CATALOG_NEVER_UDF_PATH] == b""
        assert contents[CATALOG_UDF_PATH] == b"pricing udf jar bytes"
        assert listing.paths.index(CATALOG_NEVER_UDF_PATH) == listing.paths.index(CATALOG_UDF_PATH) + 1

        members = zip_members(exporter.export(node, ArtifactKind.FULL_ZIP).data)
        assert [p for p in listing.paths if p != CATALOG_NEVER_UDF_PATH] == list(members)

    def test_reimport(self, content_tree):
        node = _imported(content_tree, make_catalog_archive())
        exported = _exporter(content_tree).export(node, ArtifactKind.FULL_ZIP).data

        result = _reimport(content_tree, exported)

        assert result.ok
        assert result.manifest == make_catalog_manifest()
        assert result.outcomes[CATALOG_NEVER_UDF_PATH] is ResolutionOutcome.SKIPPED
        assert result.outcomes[CATALOG_UDF_PATH] is ResolutionOutcome.REFERENCED
        assert len(result.entry_nodes) == len(list(make_catalog_manifest().entries()))
