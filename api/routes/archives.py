"""
Module 05 - Archive Routes

Inspect an uploaded archive, or normalize it by importing it into a
scratch content tree and exporting the requested artifact.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from api.deps import get_export_options, get_import_options
from api.errors import ArchiveRequestError, InvalidRequestError, MissingFileError
from api.models.responses import ArchiveInspectResponse, FileInfo, FileListResponse
from archive import (
    ArchiveIndex,
    ArtifactKind,
    DataServiceExporter,
    DataServiceImporter,
    ExportOptions,
    ImportOptions,
)
from core.codec import read_manifest
from core.content import InMemoryContentTree, NodeKinds
from core.errors import ArchiveException, MissingManifestError
from core.manifest import MANIFEST_PATH, Manifest, PublishPolicy


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/archive", tags=["archive"])


_MEDIA_TYPES = {
    ArtifactKind.FULL_ZIP: "application/zip",
    ArtifactKind.MANIFEST_XML: "application/xml",
    ArtifactKind.SERVICE_VDB_XML: "application/xml",
}


def read_archive_manifest(index: ArchiveIndex) -> Manifest:
    """Parse the manifest of an indexed archive."""
    if index.manifest_info is None:
        raise MissingManifestError(f"Archive has no {MANIFEST_PATH} entry", path=index.source)
    return read_manifest(index.read(index.manifest_info), source=index.source)


async def _read_upload(file: UploadFile) -> bytes:
    if file is None or file.filename == "":
        raise MissingFileError("No file uploaded")
    return await file.read()


@router.post("/inspect", response_model=ArchiveInspectResponse)
async def inspect_archive(
    file: UploadFile = File(..., description="Data service archive (zip)"),
) -> ArchiveInspectResponse:
    """
    Read the manifest of an uploaded archive and compare it with the members.
    """
    content = await _read_upload(file)
    logger.info(f"Inspecting archive: {file.filename}")

    try:
        index = ArchiveIndex(content, source=file.filename)
    except ArchiveException as e:
        raise ArchiveRequestError(e)

    try:
        manifest = read_archive_manifest(index)
        members = index.member_paths()
        manifest_path = index.manifest_info.filename
    except ArchiveException as e:
        raise ArchiveRequestError(e)
    finally:
        index.close()

    member_set = set(members)
    declared = {path for entry in manifest.entries() for path in entry.member_paths()}
    missing = [
        entry.path
        for entry in manifest.entries()
        if member_set.isdisjoint(entry.member_paths()) and entry.publish_policy is not PublishPolicy.NEVER
    ]
    undeclared = [
        path for path in members
        if path not in declared and path != MANIFEST_PATH
    ]

    return ArchiveInspectResponse(
        ok=True,
        manifest=manifest.to_dict(),
        manifest_path=manifest_path,
        members=members,
        missing_entries=missing,
        undeclared_members=undeclared,
    )


@router.post("/normalize")
async def normalize_archive(
    file: UploadFile = File(..., description="Data service archive (zip)"),
    artifact: str = Form(default="full_zip", description="Artifact to produce"),
    pretty_print: bool = Form(default=True, description="Indent exported XML"),
    import_options: ImportOptions = Depends(get_import_options),
    export_options: ExportOptions = Depends(get_export_options),
) -> Response:
    """
    Import an archive into a scratch content tree and export it again.

    Returns the zip, the manifest XML, the service VDB XML, or a JSON
    listing of archive paths for ``file_list``.
    """
    content = await _read_upload(file)
    try:
        kind = ArtifactKind.parse(artifact)
    except ValueError as e:
        raise InvalidRequestError(str(e))

    export_options.pretty_print = pretty_print
    tree = InMemoryContentTree()

    try:
        index = ArchiveIndex(content, source=file.filename)
        try:
            name = read_archive_manifest(index).name
        finally:
            index.close()

        destination = tree.create_child(tree.root, name, NodeKinds.DATA_SERVICE)
        DataServiceImporter(tree, import_options).import_archive(
            content, destination, source=file.filename
        )
        result = DataServiceExporter(tree, export_options).export(destination, kind)
    except ArchiveException as e:
        raise ArchiveRequestError(e)

    logger.info(f"Normalized {file.filename} as {kind.value}")

    if kind is ArtifactKind.FILE_LIST:
        listing = FileListResponse(
            ok=True,
            data_service=name,
            files=[
                FileInfo(path=path, size=len(data))
                for path, data in zip(result.paths, result.contents)
            ],
            skipped=[s.model_dump() for s in result.skipped],
        )
        return Response(content=listing.model_dump_json(), media_type="application/json")

    headers = {}
    if kind is ArtifactKind.FULL_ZIP:
        headers["Content-Disposition"] = f'attachment; filename="{name}.zip"'
    return Response(content=result.data, media_type=_MEDIA_TYPES[kind], headers=headers)
