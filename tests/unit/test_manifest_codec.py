"""
Module 01 - Manifest Codec Unit Tests
Tests for core/codec/ (schema, reader, writer)

Tests:
- write/read reproduces an equal manifest (pretty and compact)
- schema rejections: duplicate paths, duplicate JNDI names, bad policy,
  more than one service VDB, elements out of order
- sequence errors raised by the reader when validation is off
- partial manifests (drivers only, dependencies only)
"""
from datetime import datetime, timedelta, timezone

from lxml import etree
import pytest

from core.codec import (
    pretty_print_xml,
    read_manifest,
    validate_manifest_bytes,
    write_manifest,
)
from core.errors import ErrorCodes, MalformedManifestError, SchemaValidationError
from core.manifest import DataServiceEntry, Manifest, PublishPolicy, ServiceVdbEntry, VdbEntry

from fixtures import make_manifest


def _xml(body: str, name: str = "svc") -> bytes:
    return f'<?xml version="1.0" encoding="UTF-8"?><dataservice name="{name}">{body}</dataservice>'.encode()


# =============================================================================
# Round Trip
# =============================================================================

class TestWriteRead:
    """Writer output read back by the reader."""

    def test_round_trip_pretty(self):
        manifest = make_manifest()
        assert read_manifest(write_manifest(manifest)) == manifest

    def test_round_trip_compact(self):
        manifest = make_manifest()
        data = write_manifest(manifest, pretty_print=False)
        assert b"\n    <" not in data
        assert read_manifest(data) == manifest

    def test_round_trip_every_policy(self):
        for policy in PublishPolicy:
            manifest = make_manifest(policy=policy)
            assert read_manifest(write_manifest(manifest)) == manifest

    def test_round_trip_aware_timestamp(self):
        manifest = make_manifest()
        manifest.last_modified = datetime(2026, 3, 14, 11, 26, 53, tzinfo=timezone(timedelta(hours=2)))
        assert manifest.last_modified == datetime(2026, 3, 14, 9, 26, 53)
        assert read_manifest(write_manifest(manifest)) == manifest

    def test_pretty_print_indent(self):
        data = write_manifest(make_manifest(), indent=2)
        assert b'\n  <description>' in data

    def test_minimal_manifest_omits_optional_elements(self):
        data = write_manifest(Manifest("bare"))
        root = etree.fromstring(data)
        assert root.tag == "dataservice"
        assert root.get("name") == "bare"
        assert len(root) == 0

    def test_writer_section_order(self):
        root = etree.fromstring(write_manifest(make_manifest()))
        assert [child.tag for child in root] == [
            "description",
            "last-modified",
            "modified-by",
            "property",
            "service-vdb-file",
            "metadata",
            "connections",
            "drivers",
            "udfs",
            "vdbs",
            "resources",
        ]

    def test_text_whitespace_preserved(self):
        manifest = Manifest("svc")
        manifest.description = "  two  spaces  "
        assert read_manifest(write_manifest(manifest)).description == "  two  spaces  "

    def test_drivers_only(self):
        manifest = Manifest("DriverEntriesOnly")
        manifest.add_driver(DataServiceEntry("drivers/a.jar"))
        manifest.add_driver(DataServiceEntry("drivers/b.jar", PublishPolicy.ALWAYS))
        parsed = read_manifest(write_manifest(manifest))
        assert parsed == manifest
        assert parsed.service_vdb is None
        assert [d.publish_policy for d in parsed.drivers] == [PublishPolicy.IF_MISSING, PublishPolicy.ALWAYS]

    def test_dependencies_attach_to_service_vdb(self):
        manifest = Manifest("svc")
        service = ServiceVdbEntry("svc-vdb.xml", vdb_name="svc", vdb_version="1")
        service.add_vdb(VdbEntry("vdbs/dep-vdb.xml", vdb_name="dep"))
        manifest.service_vdb = service
        manifest.add_vdb(VdbEntry("vdbs/other-vdb.xml"))

        parsed = read_manifest(write_manifest(manifest))

        assert [v.path for v in parsed.service_vdb.vdbs] == ["vdbs/dep-vdb.xml"]
        assert [v.path for v in parsed.vdbs] == ["vdbs/other-vdb.xml"]
        assert parsed.service_vdb.vdbs[0].container is parsed.service_vdb
        assert parsed.vdbs[0].container is parsed

    def test_str_input_accepted(self):
        parsed = read_manifest(_xml("<description>d</description>").decode())
        assert parsed.description == "d"

    def test_missing_publish_attribute_defaults(self):
        parsed = read_manifest(_xml('<drivers><driver-file path="d.jar"/></drivers>'))
        assert parsed.drivers[0].publish_policy is PublishPolicy.IF_MISSING


# =============================================================================
# Schema Validation
# =============================================================================

class TestSchemaValidation:
    """Documents the schema rejects."""

    def test_valid_document_passes(self):
        validate_manifest_bytes(write_manifest(make_manifest()))

    def test_not_well_formed(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            read_manifest(b"<dataservice name='x'>", source="broken.xml")
        assert exc_info.value.code == ErrorCodes.SCHEMA_VALIDATION_ERROR
        assert exc_info.value.path == "broken.xml"

    def test_duplicate_paths_rejected(self):
        data = _xml(
            '<drivers><driver-file path="a.jar"/></drivers>'
            '<udfs><udf-file path="a.jar"/></udfs>'
        )
        with pytest.raises(SchemaValidationError) as exc_info:
            read_manifest(data)
        assert exc_info.value.details["errors"]

    def test_paths_colliding_after_normalization_rejected(self):
        data = _xml(
            '<vdbs><vdb-file path="v/a.xml"/><vdb-file path="v/a-vdb.xml"/></vdbs>'
        )
        with pytest.raises(SchemaValidationError) as exc_info:
            read_manifest(data)
        assert "v/a-vdb.xml" in exc_info.value.message

    def test_unsuffixed_path_kept_as_declared(self):
        manifest = read_manifest(_xml('<vdbs><vdb-file path="vdbs/twitter.xml"/></vdbs>'))
        entry = manifest.vdbs[0]
        assert entry.path == "vdbs/twitter-vdb.xml"
        assert entry.declared_path == "vdbs/twitter.xml"
        assert read_manifest(write_manifest(manifest)) == manifest

    def test_duplicate_jndi_names_rejected(self):
        data = _xml(
            "<connections>"
            '<connection-file path="a-connection.xml" jndi-name="java:/A"/>'
            '<connection-file path="b-connection.xml" jndi-name="java:/A"/>'
            "</connections>"
        )
        with pytest.raises(SchemaValidationError):
            read_manifest(data)

    def test_duplicate_property_names_rejected(self):
        data = _xml('<property name="a">1</property><property name="a">2</property>')
        with pytest.raises(SchemaValidationError):
            read_manifest(data)

    def test_unknown_policy_rejected(self):
        data = _xml('<drivers><driver-file path="a.jar" publish="sometimes"/></drivers>')
        with pytest.raises(SchemaValidationError):
            read_manifest(data)

    def test_two_service_vdbs_rejected(self):
        data = _xml('<service-vdb-file path="a-vdb.xml"/><service-vdb-file path="b-vdb.xml"/>')
        with pytest.raises(SchemaValidationError):
            read_manifest(data)

    def test_out_of_order_sections_rejected(self):
        data = _xml('<resources><resource-file path="r"/></resources><drivers><driver-file path="d"/></drivers>')
        with pytest.raises(SchemaValidationError):
            read_manifest(data)

    def test_connection_requires_jndi_name(self):
        data = _xml('<connections><connection-file path="a-connection.xml"/></connections>')
        with pytest.raises(SchemaValidationError):
            read_manifest(data)

    def test_bad_timestamp_rejected(self):
        with pytest.raises(SchemaValidationError):
            read_manifest(_xml("<last-modified>yesterday</last-modified>"))

    def test_missing_name_rejected(self):
        with pytest.raises(SchemaValidationError):
            read_manifest(b"<dataservice/>")

    def test_external_entities_not_resolved(self):
        data = (
            b'<?xml version="1.0"?>'
            b'<!DOCTYPE dataservice [<!ENTITY x SYSTEM "file:///etc/passwd">]>'
            b'<dataservice name="svc"><description>&x;</description></dataservice>'
        )
        try:
            manifest = read_manifest(data)
        except (SchemaValidationError, MalformedManifestError):
            return
        assert "root:" not in (manifest.description or "")


# =============================================================================
# Reader Sequence Errors
# =============================================================================

class TestReaderSequence:
    """Sequence checks the reader enforces on its own (validate=False)."""

    def test_unknown_element(self):
        with pytest.raises(MalformedManifestError) as exc_info:
            read_manifest(_xml("<surprise/>"), validate=False)
        assert exc_info.value.code == ErrorCodes.MALFORMED_MANIFEST
        assert exc_info.value.details["element"] == "surprise"

    def test_vdb_file_outside_sections(self):
        with pytest.raises(MalformedManifestError):
            read_manifest(_xml('<drivers><vdb-file path="a-vdb.xml"/></drivers>'), validate=False)

    def test_file_outside_its_section(self):
        with pytest.raises(MalformedManifestError):
            read_manifest(_xml('<udfs><driver-file path="a.jar"/></udfs>'), validate=False)

    def test_dependencies_outside_service_vdb(self):
        with pytest.raises(MalformedManifestError):
            read_manifest(_xml('<dependencies><vdb-file path="a-vdb.xml"/></dependencies>'), validate=False)

    def test_second_service_vdb(self):
        data = _xml('<service-vdb-file path="a-vdb.xml"/><service-vdb-file path="b-vdb.xml"/>')
        with pytest.raises(MalformedManifestError):
            read_manifest(data, validate=False)

    def test_missing_path_attribute(self):
        with pytest.raises(MalformedManifestError):
            read_manifest(_xml("<drivers><driver-file/></drivers>"), validate=False)

    def test_bad_timestamp(self):
        with pytest.raises(MalformedManifestError):
            read_manifest(_xml("<last-modified>soon</last-modified>"), validate=False)


class TestPrettyPrint:
    """Tests for pretty_print_xml()."""

    def test_reindents_compact_xml(self):
        data = pretty_print_xml(b"<a><b>text</b></a>", indent=3)
        assert data.startswith(b"<?xml")
        assert b"\n   <b>text</b>" in data
