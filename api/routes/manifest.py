"""
Module 05 - Manifest Routes

Parse an uploaded manifest document, or render one from JSON.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import Response

from api.errors import ArchiveRequestError, InvalidRequestError, MissingFileError
from api.models.requests import ManifestRenderRequest
from api.models.responses import ManifestResponse
from core.codec import read_manifest, write_manifest
from core.errors import ArchiveException


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/manifest", tags=["manifest"])


@router.post("/parse", response_model=ManifestResponse)
async def parse_manifest(
    file: UploadFile = File(..., description="dataservice.xml document"),
) -> ManifestResponse:
    """
    Validate an uploaded manifest against the schema and return it as JSON.
    """
    if file is None or file.filename == "":
        raise MissingFileError("No file uploaded")

    content = await file.read()
    logger.info(f"Parsing manifest: {file.filename}")
    try:
        manifest = read_manifest(content, source=file.filename)
    except ArchiveException as e:
        raise ArchiveRequestError(e)

    return ManifestResponse(ok=True, manifest=manifest.to_dict())


@router.post("/render")
async def render_manifest(request: ManifestRenderRequest) -> Response:
    """
    Render manifest XML from a JSON description.

    The rendered document is validated against the schema before it is
    returned, so duplicate paths are reported as schema errors.
    """
    try:
        manifest = request.to_manifest()
    except (TypeError, ValueError) as e:
        raise InvalidRequestError(f"Invalid manifest: {e}")

    data = write_manifest(manifest, pretty_print=request.pretty_print, indent=request.indent)
    try:
        read_manifest(data, source="rendered manifest")
    except ArchiveException as e:
        raise ArchiveRequestError(e)

    return Response(content=data, media_type="application/xml")
