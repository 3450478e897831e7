"""API request and response models."""

from api.models.requests import (
    EntryModel,
    VdbEntryModel,
    ServiceVdbEntryModel,
    ConnectionEntryModel,
    ManifestRenderRequest,
)
from api.models.responses import (
    HealthResponse,
    ManifestResponse,
    ArchiveInspectResponse,
    FileInfo,
    FileListResponse,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    "EntryModel",
    "VdbEntryModel",
    "ServiceVdbEntryModel",
    "ConnectionEntryModel",
    "ManifestRenderRequest",
    "HealthResponse",
    "ManifestResponse",
    "ArchiveInspectResponse",
    "FileInfo",
    "FileListResponse",
    "ErrorDetail",
    "ErrorResponse",
]
