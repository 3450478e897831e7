"""
Module 05 - API Smoke Tests

Tests for the FastAPI endpoints:
1. GET /health returns ok
2. POST /manifest/parse validates an uploaded manifest
3. POST /manifest/render returns schema-valid XML
4. POST /archive/inspect compares the manifest with the archive members
5. POST /archive/normalize returns every artifact kind
"""

import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from api.app import app
from core.codec import read_manifest, write_manifest
from core.manifest import MANIFEST_PATH

from fixtures import (
    CONNECTION_PATH,
    DRIVER_PATH,
    SERVICE_VDB_PATH,
    make_archive,
    make_full_archive,
    make_manifest,
    make_vdb_xml,
)


client = TestClient(app)


def upload(data: bytes, filename: str = "portfolio.zip", content_type: str = "application/zip") -> dict:
    return {"file": (filename, io.BytesIO(data), content_type)}


# =============================================================================
# Health
# =============================================================================

class TestHealth:
    """Tests for the health endpoints."""

    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["service"] == "dsarchive-api"
        assert "full_zip" in data["artifacts"]
        assert data["schema_file"] == "dataservice.xsd"


# =============================================================================
# Manifest
# =============================================================================

class TestManifestRoutes:
    """Tests for /manifest."""

    def test_parse(self):
        xml = write_manifest(make_manifest())
        response = client.post(
            "/manifest/parse",
            files=upload(xml, "dataservice.xml", "application/xml"),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["manifest"]["name"] == "PortfolioService"

    def test_parse_invalid(self):
        response = client.post(
            "/manifest/parse",
            files=upload(b"<dataservice/>", "dataservice.xml", "application/xml"),
        )
        assert response.status_code == 422
        data = response.json()
        assert data["ok"] is False
        assert data["error"]["code"] == "SCHEMA_VALIDATION_ERROR"

    def test_render(self):
        body = {
            "name": "Rendered",
            "description": "rendered from JSON",
            "last_modified": "2026-03-14T09:26:53",
            "service_vdb": {
                "path": "Rendered-vdb.xml",
                "vdb_name": "Rendered",
                "vdb_version": "1",
                "dependencies": [{"path": "vdbs/Dep-vdb.xml", "publish": "never"}],
            },
            "connections": [{"path": CONNECTION_PATH, "jndi_name": "java:/Pool"}],
            "drivers": [{"path": DRIVER_PATH, "publish": "always"}],
        }
        response = client.post("/manifest/render", json=body)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")

        manifest = read_manifest(response.content)
        assert manifest.name == "Rendered"
        assert manifest.service_vdb.path == "Rendered-vdb.xml"
        assert manifest.connections[0].jndi_name == "java:/Pool"

    def test_render_duplicate_path(self):
        body = {
            "name": "Rendered",
            "drivers": [{"path": DRIVER_PATH}, {"path": DRIVER_PATH}],
        }
        response = client.post("/manifest/render", json=body)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "SCHEMA_VALIDATION_ERROR"

    def test_render_bad_timestamp(self):
        response = client.post("/manifest/render", json={"name": "X", "last_modified": "yesterday"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"


# =============================================================================
# Archive
# =============================================================================

class TestArchiveInspect:
    """Tests for /archive/inspect."""

    def test_inspect(self):
        response = client.post("/archive/inspect", files=upload(make_full_archive()))
        assert response.status_code == 200
        data = response.json()
        assert data["manifest_path"] == MANIFEST_PATH
        assert data["missing_entries"] == []
        assert data["undeclared_members"] == []

    def test_inspect_prefixed_with_extras(self):
        members = {SERVICE_VDB_PATH: make_vdb_xml(), "notes.txt": b"extra"}
        data = make_archive(members, make_manifest(), prefix="PortfolioService/")
        response = client.post("/archive/inspect", files=upload(data))
        assert response.status_code == 200
        body = response.json()
        assert body["manifest_path"] == "PortfolioService/" + MANIFEST_PATH
        assert body["undeclared_members"] == ["notes.txt"]
        assert CONNECTION_PATH in body["missing_entries"]

    def test_inspect_not_a_zip(self):
        response = client.post("/archive/inspect", files=upload(b"plain bytes"))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ARCHIVE"

    def test_inspect_missing_manifest(self):
        response = client.post("/archive/inspect", files=upload(make_archive({"a.txt": b"a"})))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_MANIFEST"


class TestArchiveNormalize:
    """Tests for /archive/normalize."""

    def test_full_zip(self):
        response = client.post("/archive/normalize", files=upload(make_full_archive()))
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert "PortfolioService.zip" in response.headers["content-disposition"]

        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            names = zf.namelist()
        assert names[0] == MANIFEST_PATH
        assert SERVICE_VDB_PATH in names

    def test_file_list(self):
        response = client.post(
            "/archive/normalize",
            files=upload(make_full_archive()),
            data={"artifact": "file-list"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["data_service"] == "PortfolioService"
        paths = [f["path"] for f in data["files"]]
        assert paths[0] == MANIFEST_PATH
        assert SERVICE_VDB_PATH in paths

    def test_manifest_xml(self):
        response = client.post(
            "/archive/normalize",
            files=upload(make_full_archive()),
            data={"artifact": "manifest_xml", "pretty_print": "false"},
        )
        assert response.status_code == 200
        assert read_manifest(response.content).name == "PortfolioService"

    def test_service_vdb_xml(self):
        response = client.post(
            "/archive/normalize",
            files=upload(make_full_archive()),
            data={"artifact": "service_vdb_xml"},
        )
        assert response.status_code == 200
        assert response.content == make_vdb_xml("PortfolioService", "1")

    def test_service_vdb_xml_missing(self):
        data = make_archive({}, make_manifest(with_service_vdb=False))
        response = client.post(
            "/archive/normalize",
            files=upload(data),
            data={"artifact": "service_vdb_xml"},
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NO_SERVICE_VDB"

    def test_unknown_artifact(self):
        response = client.post(
            "/archive/normalize",
            files=upload(make_full_archive()),
            data={"artifact": "tarball"},
        )
        assert response.status_code == 400
