"""
Module 03 - Archive Import & Export
File: importer.py

Purpose: Import a data service archive into a content tree.

The archive is indexed once and then walked in three passes:

1. locate and parse the manifest, populate the data service node
2. materialize the service VDB and its dependency VDBs
3. dispatch every other declared member, in archive order, to the
   materializer of its collection

Each entry is resolved with the publish-policy resolver. A delegate
failure rolls back that entry's nodes and aborts the import; entries
imported before it remain.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from typing import Any, Mapping

from core.codec.reader import read_manifest
from core.content.lexicon import COLLECTION_KINDS, NodeKinds, Props, ResourceCollection
from core.content.tree import ContentNode, ContentTree
from core.errors import DelegateImportError, InvalidArchiveError, MissingManifestError
from core.manifest import (
    MANIFEST_PATH,
    ConnectionEntry,
    DataServiceEntry,
    Manifest,
    PublishPolicy,
    ServiceVdbEntry,
    VdbEntry,
    format_timestamp,
)

from archive.delegates import PayloadDelegate, default_delegates
from archive.options import ImportOptions
from archive.resolver import (
    PublishPolicyResolver,
    Resolution,
    ResolutionOutcome,
    ResolutionRoots,
    policy_to_property,
)


__all__ = ["ArchiveIndex", "ImportResult", "DataServiceImporter", "import_archive"]


logger = logging.getLogger(__name__)


class ArchiveIndex:
    """Zip archive read once and indexed by member path."""

    def __init__(self, data: bytes, source: str | None = None) -> None:
        self.source = source
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise InvalidArchiveError(f"Not a zip archive: {e}", path=source) from e

        self.members: list[zipfile.ZipInfo] = self._zip.infolist()
        self.prefix = ""
        self.manifest_info = self._find_manifest()
        if self.manifest_info is not None:
            self.prefix = self.manifest_info.filename[: -len(MANIFEST_PATH)]

        self._by_path = {
            self.relative_path(info): info
            for info in self.members
            if not info.is_dir()
        }

    def _find_manifest(self) -> zipfile.ZipInfo | None:
        for info in self.members:
            name = info.filename.lstrip("/")
            if name == MANIFEST_PATH or name.endswith("/" + MANIFEST_PATH):
                return info
        return None

    def relative_path(self, info: zipfile.ZipInfo) -> str:
        """Member path relative to the folder holding ``META-INF``."""
        name = info.filename.lstrip("/")
        prefix = self.prefix.lstrip("/")
        if prefix and name.startswith(prefix):
            return name[len(prefix):]
        return name

    def get(self, path: str) -> zipfile.ZipInfo | None:
        return self._by_path.get(path)

    def find_entry(self, entry: DataServiceEntry) -> zipfile.ZipInfo | None:
        """Member holding ``entry``: the declared path, else the normalized one."""
        for path in entry.member_paths():
            info = self._by_path.get(path)
            if info is not None:
                return info
        return None

    def read(self, info: zipfile.ZipInfo) -> bytes:
        return self._zip.read(info)

    def member_paths(self) -> list[str]:
        return [self.relative_path(info) for info in self.members if not info.is_dir()]

    def close(self) -> None:
        self._zip.close()


@dataclass
class ImportResult:
    """Summary of one archive import."""
    manifest: Manifest
    data_service_node: ContentNode
    entry_nodes: dict[str, ContentNode] = field(default_factory=dict)
    outcomes: dict[str, ResolutionOutcome] = field(default_factory=dict)
    missing_entries: list[str] = field(default_factory=list)
    source: str | None = None

    @property
    def ok(self) -> bool:
        """True when every declared entry was found in the archive."""
        return not self.missing_entries

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "source": self.source,
            "data_service": self.manifest.name,
            "node": self.data_service_node.path,
            "entries": {
                path: {
                    "node": node.path,
                    "outcome": self.outcomes[path].value if path in self.outcomes else None,
                }
                for path, node in self.entry_nodes.items()
            },
            "missing_entries": list(self.missing_entries),
        }


class DataServiceImporter:
    """Imports data service archives into a content tree."""

    def __init__(
        self,
        tree: ContentTree,
        options: ImportOptions | None = None,
        delegates: Mapping[ResourceCollection, PayloadDelegate] | None = None,
        resolver: PublishPolicyResolver | None = None,
    ) -> None:
        self.tree = tree
        self.options = options or ImportOptions.from_config()
        self.delegates = dict(default_delegates())
        if delegates:
            self.delegates.update(delegates)
        self.resolver = resolver or PublishPolicyResolver()
        self.roots = ResolutionRoots(self.options)

    def import_archive(
        self,
        data: bytes,
        destination: ContentNode,
        *,
        source: str | None = None,
    ) -> ImportResult:
        """
        Import an archive into ``destination`` (a data service node).

        Raises:
            InvalidArchiveError: bytes are not a zip archive
            MissingManifestError: archive has no manifest
            SchemaValidationError: manifest does not conform to the schema
            MalformedManifestError: manifest has an unexpected element sequence
            DelegateImportError: a sub-importer failed for one entry
        """
        index = ArchiveIndex(data, source)
        try:
            # Pass 1: manifest
            if index.manifest_info is None:
                raise MissingManifestError(
                    f"Archive has no {MANIFEST_PATH} entry",
                    path=source,
                )
            manifest_source = f"{source}!{index.manifest_info.filename}" if source else index.manifest_info.filename
            manifest = read_manifest(index.read(index.manifest_info), source=manifest_source)
            logger.info(f"Importing data service '{manifest.name}' into {destination.path}")
            self._populate_data_service(destination, manifest)

            result = ImportResult(manifest=manifest, data_service_node=destination, source=source)

            # Pass 2: service VDB and its dependencies
            handled = {index.relative_path(index.manifest_info)}
            service_vdb = manifest.service_vdb
            if service_vdb is not None:
                for vdb in [service_vdb, *service_vdb.vdbs]:
                    handled.update(vdb.member_paths())
                self._import_service_vdb(index, destination, service_vdb, result)

            # Pass 3: everything else, in archive order
            declared = self._declared_entries(manifest)
            by_member: dict[str, tuple[ResourceCollection, DataServiceEntry]] = {}
            for collection, entry in declared:
                for member in entry.member_paths():
                    by_member.setdefault(member, (collection, entry))

            for info in index.members:
                if info.is_dir():
                    continue
                path = index.relative_path(info)
                if path in handled:
                    continue
                target = by_member.get(path)
                if target is None:
                    logger.debug(f"Skipping undeclared archive member '{path}'")
                    continue
                collection, entry = target
                handled.add(path)
                if entry.path in result.entry_nodes:
                    continue
                self._import_entry(index, destination, destination, collection, entry, result)

            # NEVER entries need no archive member
            for collection, entry in declared:
                if entry.path not in result.entry_nodes and entry.publish_policy is PublishPolicy.NEVER:
                    self._import_entry(index, destination, destination, collection, entry, result)

            for entry in manifest.entries():
                if entry.path not in result.entry_nodes and entry.path not in result.missing_entries:
                    logger.warning(f"Entry '{entry.path}' is declared but not present in the archive")
                    result.missing_entries.append(entry.path)

            logger.info(
                f"Imported data service '{manifest.name}': "
                f"{len(result.entry_nodes)} entries, {len(result.missing_entries)} missing"
            )
            return result
        finally:
            index.close()

    # -------------------------------------------------------------------------
    # Passes
    # -------------------------------------------------------------------------

    def _populate_data_service(self, node: ContentNode, manifest: Manifest) -> None:
        tree = self.tree
        tree.set_property(node, Props.DATA_SERVICE_NAME, manifest.name)
        tree.set_property(node, Props.DESCRIPTION, manifest.description)
        tree.set_property(
            node,
            Props.LAST_MODIFIED,
            format_timestamp(manifest.last_modified) if manifest.last_modified else None,
        )
        tree.set_property(node, Props.MODIFIED_BY, manifest.modified_by)
        for name, value in manifest.properties.items():
            tree.set_property(node, name, value)

    def _import_service_vdb(
        self,
        index: ArchiveIndex,
        data_service: ContentNode,
        service_vdb: ServiceVdbEntry,
        result: ImportResult,
    ) -> None:
        if index.find_entry(service_vdb) is None and service_vdb.publish_policy is not PublishPolicy.NEVER:
            logger.warning(f"Service VDB '{service_vdb.path}' is not present in the archive")
            return

        service_node = self._import_entry(
            index,
            data_service,
            data_service,
            ResourceCollection.VDBS,
            service_vdb,
            result,
            entry_kind=NodeKinds.SERVICE_VDB_ENTRY,
        )

        for dependency in service_vdb.vdbs:
            if index.find_entry(dependency) is None and dependency.publish_policy is not PublishPolicy.NEVER:
                logger.warning(f"Dependency VDB '{dependency.path}' is not present in the archive")
                continue
            self._import_entry(
                index,
                data_service,
                service_node,
                ResourceCollection.VDBS,
                dependency,
                result,
            )

    @staticmethod
    def _declared_entries(
        manifest: Manifest,
    ) -> list[tuple[ResourceCollection, DataServiceEntry]]:
        groups: list[tuple[ResourceCollection, list[DataServiceEntry]]] = [
            (ResourceCollection.DRIVERS, manifest.drivers),
            (ResourceCollection.METADATA, manifest.metadata),
            (ResourceCollection.RESOURCES, manifest.resources),
            (ResourceCollection.UDFS, manifest.udfs),
            (ResourceCollection.CONNECTIONS, manifest.connections),
            (ResourceCollection.VDBS, manifest.vdbs),
        ]
        return [(collection, entry) for collection, entries in groups for entry in entries]

    # -------------------------------------------------------------------------
    # Entry materialization
    # -------------------------------------------------------------------------

    def _import_entry(
        self,
        index: ArchiveIndex,
        data_service: ContentNode,
        parent: ContentNode,
        collection: ResourceCollection,
        entry: DataServiceEntry,
        result: ImportResult,
        entry_kind: str | None = None,
    ) -> ContentNode:
        tree = self.tree
        kinds = COLLECTION_KINDS[collection]
        entry_node = tree.create_child(parent, entry.entry_name, entry_kind or kinds.entry_kind)
        tree.set_property(entry_node, Props.ENTRY_PATH, entry.path)
        tree.set_property(entry_node, Props.PUBLISH_POLICY, policy_to_property(entry.publish_policy))
        if isinstance(entry, ConnectionEntry):
            tree.set_property(entry_node, Props.JNDI_NAME, entry.jndi_name)
        elif isinstance(entry, VdbEntry):
            tree.set_property(entry_node, Props.VDB_NAME, entry.vdb_name)
            tree.set_property(entry_node, Props.VDB_VERSION, entry.vdb_version)

        info = index.find_entry(entry)

        def read_payload() -> bytes | None:
            return index.read(info) if info is not None else None

        root = self.roots.root_for(tree, data_service, collection)
        resolution = self.resolver.resolve(
            tree,
            entry_node,
            name=entry.entry_name,
            resource_kind=kinds.resource_kind,
            root=root,
            policy=entry.publish_policy,
            read_payload=read_payload,
        )

        if resolution.created:
            self._run_delegate(collection, entry, entry_node, resolution)

        result.entry_nodes[entry.path] = entry_node
        result.outcomes[entry.path] = resolution.outcome
        logger.debug(f"Entry '{entry.path}' {resolution.outcome.value} under {root.path}")
        return entry_node

    def _run_delegate(
        self,
        collection: ResourceCollection,
        entry: DataServiceEntry,
        entry_node: ContentNode,
        resolution: Resolution,
    ) -> None:
        delegate = self.delegates.get(collection)
        if delegate is None:
            return

        error: Exception | None = None
        try:
            ok = delegate.import_payload(self.tree, resolution.resource)
        except Exception as e:
            ok = False
            error = e

        if ok:
            return

        # only this entry's nodes are rolled back
        self.tree.remove(resolution.resource)
        self.tree.remove(entry_node)
        raise DelegateImportError(
            f"The {delegate.name} importer failed for entry '{entry.path}'"
            + (f": {error}" if error else ""),
            path=entry.path,
            delegate=delegate.name,
        ) from error


def import_archive(
    tree: ContentTree,
    data: bytes,
    destination: ContentNode,
    options: ImportOptions | None = None,
    *,
    source: str | None = None,
) -> ImportResult:
    """Convenience wrapper around DataServiceImporter.import_archive."""
    return DataServiceImporter(tree, options).import_archive(data, destination, source=source)
