"""
Module 01 - Connection Codec Unit Tests
Tests for core/codec/connection.py
"""
import pytest

from core.codec.connection import Connection, ConnectionType, read_connection, write_connection
from core.errors import MalformedManifestError, SchemaValidationError

from fixtures import make_connection


class TestConnectionCodec:
    """Tests for read_connection() / write_connection()."""

    def test_jdbc_round_trip(self):
        conn = make_connection()
        assert read_connection(write_connection(conn)) == conn

    def test_resource_round_trip_keeps_class_name(self):
        conn = make_connection(conn_type=ConnectionType.RESOURCE)
        data = write_connection(conn)
        assert data.count(b"<resource-connection") == 1
        assert b"<driver-class>org.example.ResourceAdapter</driver-class>" in data
        assert read_connection(data) == conn

    def test_jdbc_omits_driver_class(self):
        conn = make_connection()
        conn.class_name = "ignored"
        assert b"driver-class" not in write_connection(conn)

    def test_element_order(self):
        data = write_connection(make_connection(), pretty_print=False)
        positions = [data.index(tag) for tag in (b"<description>", b"<jndi-name>", b"<driver-name>", b"<property ")]
        assert positions == sorted(positions)

    def test_minimal_document(self):
        conn = read_connection(b'<jdbc-connection name="Bare"/>')
        assert conn == Connection(name="Bare", type=ConnectionType.JDBC)

    def test_comments_ignored(self):
        conn = read_connection(b'<jdbc-connection name="C"><!-- note --><jndi-name>java:/C</jndi-name></jdbc-connection>')
        assert conn.jndi_name == "java:/C"

    def test_unknown_root(self):
        with pytest.raises(MalformedManifestError):
            read_connection(b'<ldap-connection name="x"/>')

    def test_missing_name(self):
        with pytest.raises(MalformedManifestError):
            read_connection(b"<jdbc-connection/>")

    def test_unknown_child(self):
        with pytest.raises(MalformedManifestError):
            read_connection(b'<jdbc-connection name="x"><pool-size>4</pool-size></jdbc-connection>')

    def test_not_well_formed(self):
        with pytest.raises(SchemaValidationError):
            read_connection(b"<jdbc-connection", source="c.xml")

    def test_to_dict(self):
        data = make_connection().to_dict()
        assert data["type"] == "jdbc"
        assert data["properties"]["url"].startswith("jdbc:mysql")
