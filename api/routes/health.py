"""
Module 05 - Health Route

Liveness check. Also reports which manifest schema is loaded and the
export artifacts the service can produce.
"""

from fastapi import APIRouter

from api import __version__
from api.models.responses import HealthResponse
from archive.options import ArtifactKind
from core.codec import SCHEMA_FILE


router = APIRouter(tags=["health"])


def _status() -> HealthResponse:
    return HealthResponse(
        ok=SCHEMA_FILE.exists(),
        version=__version__,
        schema_file=SCHEMA_FILE.name,
        artifacts=[kind.value for kind in ArtifactKind],
    )


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """ok is false when the bundled manifest schema is missing."""
    return _status()


@router.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    return _status()
