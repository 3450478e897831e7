"""
Archive Import & Export

Publish-policy resolution, payload delegates, and the two pipelines that
move a data service between a zip archive and a content tree.
"""

from .options import ArtifactKind, ExportOptions, ImportOptions, PrefixPropertyFilter, PropertyFilter
from .resolver import (
    PublishPolicyResolver,
    Resolution,
    ResolutionOutcome,
    ResolutionRoots,
    policy_from_node,
    policy_to_property,
)
from .delegates import ConnectionDelegate, FileDelegate, PayloadDelegate, VdbDelegate, default_delegates
from .importer import ArchiveIndex, DataServiceImporter, ImportResult, import_archive
from .exporter import DEFAULT_VDB_VERSION, DataServiceExporter, ExportResult, export_data_service

__all__ = [
    "ArtifactKind",
    "ExportOptions",
    "ImportOptions",
    "PrefixPropertyFilter",
    "PropertyFilter",
    "PublishPolicyResolver",
    "Resolution",
    "ResolutionOutcome",
    "ResolutionRoots",
    "policy_from_node",
    "policy_to_property",
    "ConnectionDelegate",
    "FileDelegate",
    "PayloadDelegate",
    "VdbDelegate",
    "default_delegates",
    "ArchiveIndex",
    "DataServiceImporter",
    "ImportResult",
    "import_archive",
    "DEFAULT_VDB_VERSION",
    "DataServiceExporter",
    "ExportResult",
    "export_data_service",
]
