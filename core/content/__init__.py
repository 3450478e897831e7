"""
Content Tree

Adapter contract for the hierarchical store that receives materialized
resources, an in-memory implementation, and the node-kind lexicon.
"""

from .lexicon import (
    COLLECTION_KINDS,
    CollectionKinds,
    NodeKinds,
    Props,
    ResourceCollection,
    collection_for_entry_kind,
)
from .tree import ContentNode, ContentTree, InMemoryContentTree
from .workspace import load_workspace, save_workspace

__all__ = [
    "COLLECTION_KINDS",
    "CollectionKinds",
    "NodeKinds",
    "Props",
    "ResourceCollection",
    "collection_for_entry_kind",
    "ContentNode",
    "ContentTree",
    "InMemoryContentTree",
    "load_workspace",
    "save_workspace",
]
