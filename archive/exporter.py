"""
Module 03 - Archive Import & Export
File: exporter.py

Purpose: Export a data service node from a content tree.

Rebuilds a Manifest from the node's typed children, resolves each entry's
linked resource, and produces one of the artifact kinds: manifest XML, a
full archive, a file list, or the service VDB document alone.

Export is best-effort: unresolvable references and resources without
content are logged and recorded on the result, not raised.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from core.codec.writer import write_manifest
from core.content.lexicon import NodeKinds, Props, ResourceCollection, collection_for_entry_kind
from core.content.tree import ContentNode, ContentTree
from core.errors import ArchiveError, MissingReferenceError, NoServiceVdbError
from core.manifest import (
    MANIFEST_PATH,
    ConnectionEntry,
    DataServiceEntry,
    Manifest,
    PublishPolicy,
    ServiceVdbEntry,
    VdbEntry,
    parse_timestamp,
)

from archive.delegates import PayloadDelegate, default_delegates
from archive.options import ArtifactKind, ExportOptions
from archive.resolver import policy_from_node


__all__ = ["DEFAULT_VDB_VERSION", "ExportResult", "DataServiceExporter", "export_data_service"]


logger = logging.getLogger(__name__)

DEFAULT_VDB_VERSION = "1"

# Archive order of payloads after the manifest
_SERVICE_VDB, _DEPENDENCY_VDB, _VDB, _CONNECTION, _METADATA, _DRIVER, _UDF, _RESOURCE = range(8)

_GROUP_BY_COLLECTION = {
    ResourceCollection.VDBS: _VDB,
    ResourceCollection.CONNECTIONS: _CONNECTION,
    ResourceCollection.METADATA: _METADATA,
    ResourceCollection.DRIVERS: _DRIVER,
    ResourceCollection.UDFS: _UDF,
    ResourceCollection.RESOURCES: _RESOURCE,
}


@dataclass
class _PlannedPayload:
    """One archive member to emit after the manifest."""
    path: str
    collection: ResourceCollection
    group: int
    resource: ContentNode | None = None  # None for NEVER entries


@dataclass
class ExportResult:
    """Outcome of one export."""
    artifact: ArtifactKind
    data: bytes | None = None
    paths: list[str] = field(default_factory=list)
    contents: list[bytes] = field(default_factory=list)
    manifest: Manifest | None = None
    skipped: list[ArchiveError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "artifact": self.artifact.value,
            "data_service": self.manifest.name if self.manifest else None,
            "bytes": len(self.data) if self.data is not None else None,
            "paths": list(self.paths),
            "sizes": [len(c) for c in self.contents],
            "skipped": [s.model_dump() for s in self.skipped],
        }


class DataServiceExporter:
    """Exports a data service node as manifest XML, zip or file list."""

    def __init__(
        self,
        tree: ContentTree,
        options: ExportOptions | None = None,
        delegates: Mapping[ResourceCollection, PayloadDelegate] | None = None,
    ) -> None:
        self.tree = tree
        self.options = options or ExportOptions.from_config()
        self.delegates = dict(default_delegates())
        if delegates:
            self.delegates.update(delegates)

    def export(
        self,
        source: ContentNode,
        artifact: ArtifactKind | str | None = None,
    ) -> ExportResult:
        """
        Export ``source`` (a data service node).

        Raises:
            NoServiceVdbError: SERVICE_VDB_XML requested and no service VDB resolves
        """
        if artifact is None:
            kind = self.options.artifact
        elif isinstance(artifact, ArtifactKind):
            kind = artifact
        else:
            kind = ArtifactKind.parse(artifact)

        logger.info(f"Exporting {source.path} as {kind.value}")

        if kind is ArtifactKind.SERVICE_VDB_XML:
            return ExportResult(artifact=kind, data=self.export_service_vdb(source))

        result = ExportResult(artifact=kind)
        manifest, plan = self.build_manifest(source, result.skipped)
        result.manifest = manifest
        manifest_xml = write_manifest(
            manifest,
            pretty_print=self.options.pretty_print,
            indent=self.options.indent,
        )

        if kind is ArtifactKind.MANIFEST_XML:
            result.data = manifest_xml
            return result

        result.paths.append(MANIFEST_PATH)
        result.contents.append(manifest_xml)
        for item in sorted(plan, key=lambda p: p.group):
            if item.resource is None:
                # NEVER entries are listed with no bytes and left out of archives
                if kind is ArtifactKind.FILE_LIST:
                    result.paths.append(item.path)
                    result.contents.append(b"")
                continue

            payload = self.delegates[item.collection].export_payload(self.tree, item.resource, self.options)
            if payload is None:
                error = MissingReferenceError(
                    f"Resource '{item.resource.path}' has no content",
                    path=item.path,
                    reference=item.resource.identifier,
                )
                logger.warning(f"Skipping payload for '{item.path}': {error.message}")
                result.skipped.append(error.to_error_model())
                continue
            result.paths.append(item.path)
            result.contents.append(payload)

        if kind is ArtifactKind.FULL_ZIP:
            result.data = self._zip(result.paths, result.contents)

        logger.info(
            f"Exported data service '{manifest.name}': {len(result.paths)} files, "
            f"{len(result.skipped)} skipped"
        )
        return result

    # -------------------------------------------------------------------------
    # Manifest construction
    # -------------------------------------------------------------------------

    def build_manifest(
        self,
        source: ContentNode,
        skipped: list[ArchiveError] | None = None,
    ) -> tuple[Manifest, list["_PlannedPayload"]]:
        """Rebuild the manifest and the payload plan from a data service node."""
        tree = self.tree
        skipped = skipped if skipped is not None else []
        plan: list[_PlannedPayload] = []

        manifest = Manifest(tree.get_property(source, Props.DATA_SERVICE_NAME) or source.name)
        manifest.description = tree.get_property(source, Props.DESCRIPTION)
        manifest.modified_by = tree.get_property(source, Props.MODIFIED_BY)
        manifest.last_modified = self._last_modified(source)

        for name, value in tree.properties(source).items():
            if value is not None and self.options.property_filter(name, value):
                manifest.set_property(name, str(value))

        for child in tree.children(source):
            if child.kind == NodeKinds.SERVICE_VDB_ENTRY:
                if manifest.service_vdb is not None:
                    logger.warning(f"Ignoring additional service VDB entry '{child.path}'")
                    continue
                self._add_service_vdb(manifest, child, plan, skipped)
                continue

            collection = collection_for_entry_kind(child.kind)
            if collection is None:
                logger.debug(f"Ignoring child '{child.path}' of kind {child.kind}")
                continue

            if collection is ResourceCollection.VDBS:
                built = self._vdb_entry(VdbEntry, child, collection, skipped)
                if built is not None:
                    manifest.add_vdb(built[0])
                    plan.append(_PlannedPayload(built[0].path, collection, _VDB, built[1]))
            elif collection is ResourceCollection.CONNECTIONS:
                built = self._connection_entry(child, skipped)
                if built is not None:
                    manifest.add_connection(built[0])
                    plan.append(_PlannedPayload(built[0].path, collection, _CONNECTION, built[1]))
            else:
                built = self._file_entry(child, collection, skipped)
                if built is not None:
                    entry, resource = built
                    if collection is ResourceCollection.DRIVERS:
                        manifest.add_driver(entry)
                    elif collection is ResourceCollection.METADATA:
                        manifest.add_metadata(entry)
                    elif collection is ResourceCollection.UDFS:
                        manifest.add_udf(entry)
                    else:
                        manifest.add_resource(entry)
                    plan.append(
                        _PlannedPayload(entry.path, collection, _GROUP_BY_COLLECTION[collection], resource)
                    )

        return manifest, plan

    def _last_modified(self, source: ContentNode) -> datetime | None:
        value = self.tree.get_property(source, Props.LAST_MODIFIED)
        if value is None or isinstance(value, datetime):
            return value
        try:
            return parse_timestamp(str(value))
        except ValueError:
            logger.warning(f"Ignoring unparseable last-modified value {value!r} on {source.path}")
            return None

    def _entry_path(self, node: ContentNode, collection: ResourceCollection | None) -> str:
        stored = self.tree.get_property(node, Props.ENTRY_PATH)
        if stored:
            return str(stored)
        folder = self.options.folder_for(collection) if collection is not None else ""
        return folder + node.name

    def _reference(
        self,
        node: ContentNode,
        path: str,
        policy: PublishPolicy,
        skipped: list[ArchiveError],
    ) -> tuple[bool, ContentNode | None]:
        """(usable, resource). NEVER entries are usable without a resource."""
        if policy is PublishPolicy.NEVER:
            return True, None

        reference = self.tree.get_property(node, Props.SOURCE_RESOURCE)
        resource = self.tree.resolve_reference(reference)
        if resource is None:
            error = MissingReferenceError(
                f"Entry '{node.path}' references a resource that cannot be resolved",
                path=path,
                reference=reference,
            )
            logger.warning(f"Skipping entry '{path}': {error.message}")
            skipped.append(error.to_error_model())
            return False, None
        return True, resource

    def _file_entry(
        self,
        node: ContentNode,
        collection: ResourceCollection,
        skipped: list[ArchiveError],
    ) -> tuple[DataServiceEntry, ContentNode | None] | None:
        policy = policy_from_node(self.tree, node)
        entry = DataServiceEntry(self._entry_path(node, collection), policy)
        usable, resource = self._reference(node, entry.path, policy, skipped)
        return (entry, resource) if usable else None

    def _connection_entry(
        self,
        node: ContentNode,
        skipped: list[ArchiveError],
    ) -> tuple[ConnectionEntry, ContentNode | None] | None:
        tree = self.tree
        policy = policy_from_node(tree, node)
        entry = ConnectionEntry(self._entry_path(node, ResourceCollection.CONNECTIONS), policy)
        usable, resource = self._reference(node, entry.path, policy, skipped)
        if not usable:
            return None

        jndi_name = tree.get_property(node, Props.JNDI_NAME)
        if not jndi_name and resource is not None:
            jndi_name = tree.get_property(resource, Props.JNDI_NAME)
        if not jndi_name:
            logger.info(f"Skipping connection entry '{entry.path}': no JNDI name")
            return None
        entry.jndi_name = jndi_name
        return entry, resource

    def _vdb_entry(
        self,
        cls: type[VdbEntry],
        node: ContentNode,
        collection: ResourceCollection | None,
        skipped: list[ArchiveError],
    ) -> tuple[VdbEntry, ContentNode | None] | None:
        tree = self.tree
        policy = policy_from_node(tree, node)
        entry = cls(self._entry_path(node, collection), policy)
        usable, resource = self._reference(node, entry.path, policy, skipped)
        if not usable:
            return None

        vdb_name = tree.get_property(node, Props.VDB_NAME)
        vdb_version = tree.get_property(node, Props.VDB_VERSION)
        if resource is not None:
            vdb_name = vdb_name or tree.get_property(resource, Props.VDB_DECLARED_NAME) or resource.name
            vdb_version = vdb_version or tree.get_property(resource, Props.VDB_DECLARED_VERSION)
        entry.vdb_name = vdb_name
        entry.vdb_version = vdb_version or DEFAULT_VDB_VERSION
        return entry, resource

    def _add_service_vdb(
        self,
        manifest: Manifest,
        node: ContentNode,
        plan: list[_PlannedPayload],
        skipped: list[ArchiveError],
    ) -> None:
        built = self._vdb_entry(ServiceVdbEntry, node, None, skipped)
        if built is None:
            return
        service_vdb, resource = built
        manifest.service_vdb = service_vdb
        plan.append(_PlannedPayload(service_vdb.path, ResourceCollection.VDBS, _SERVICE_VDB, resource))

        for child in self.tree.children(node, NodeKinds.VDB_ENTRY):
            dependency = self._vdb_entry(VdbEntry, child, ResourceCollection.VDBS, skipped)
            if dependency is None:
                continue
            service_vdb.add_vdb(dependency[0])
            plan.append(
                _PlannedPayload(dependency[0].path, ResourceCollection.VDBS, _DEPENDENCY_VDB, dependency[1])
            )

    # -------------------------------------------------------------------------
    # Artifacts
    # -------------------------------------------------------------------------

    def export_service_vdb(self, source: ContentNode) -> bytes:
        """Serialized service VDB resource, bypassing manifest construction."""
        tree = self.tree
        entry_node = next(iter(tree.children(source, NodeKinds.SERVICE_VDB_ENTRY)), None)
        if entry_node is None:
            raise NoServiceVdbError(f"Data service '{source.path}' has no service VDB", path=source.path)

        resource = tree.resolve_reference(tree.get_property(entry_node, Props.SOURCE_RESOURCE))
        if resource is None:
            raise NoServiceVdbError(
                f"Service VDB of '{source.path}' does not reference a VDB",
                path=entry_node.path,
            )

        payload = self.delegates[ResourceCollection.VDBS].export_payload(tree, resource, self.options)
        if payload is None:
            raise NoServiceVdbError(
                f"Service VDB '{resource.path}' has no content",
                path=entry_node.path,
            )
        return payload

    @staticmethod
    def _zip(paths: list[str], contents: list[bytes]) -> bytes:
        buffer = io.BytesIO()
        written: set[str] = set()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
            for path, content in zip(paths, contents):
                if path in written:
                    logger.warning(f"Duplicate archive path '{path}' not written twice")
                    continue
                zf.writestr(path, content)
                written.add(path)
        return buffer.getvalue()


def export_data_service(
    tree: ContentTree,
    source: ContentNode,
    artifact: ArtifactKind | str | None = None,
    options: ExportOptions | None = None,
) -> ExportResult:
    """Convenience wrapper around DataServiceExporter.export."""
    return DataServiceExporter(tree, options).export(source, artifact)
