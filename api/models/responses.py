"""
Module 05 - API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "dsarchive-api"
    version: str = "v1"
    schema_file: str | None = Field(default=None, description="Manifest schema in use")
    artifacts: list[str] = Field(default_factory=list, description="Artifacts /archive/normalize can produce")


class ManifestResponse(BaseModel):
    """Response for POST /manifest/parse endpoint."""

    ok: bool = Field(..., description="Whether the manifest was parsed")
    manifest: dict[str, Any] = Field(..., description="Manifest content as JSON")


class ArchiveInspectResponse(BaseModel):
    """Response for POST /archive/inspect endpoint."""

    ok: bool = Field(..., description="Whether the archive manifest was read")
    manifest: dict[str, Any] = Field(..., description="Manifest content as JSON")
    manifest_path: str = Field(..., description="Location of the manifest inside the archive")
    members: list[str] = Field(default_factory=list, description="Archive members, in archive order")
    missing_entries: list[str] = Field(
        default_factory=list,
        description="Declared entries with no archive member (NEVER entries excluded)",
    )
    undeclared_members: list[str] = Field(
        default_factory=list,
        description="Archive members not declared by the manifest",
    )


class FileInfo(BaseModel):
    """One file of a FILE_LIST export."""

    path: str
    size: int


class FileListResponse(BaseModel):
    """Response for POST /archive/normalize with artifact=file_list."""

    ok: bool = True
    data_service: str = Field(..., description="Data service name")
    files: list[FileInfo] = Field(default_factory=list)
    skipped: list[dict[str, Any]] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
