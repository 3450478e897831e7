"""
Module 03 - Archive Import & Export
File: resolver.py

Purpose: Publish-policy resolution shared by every entry kind.

On import, decides per entry whether a new resource node is materialized
or an existing equivalent one is referenced. On export, reads the policy
stored on an entry node back into a PublishPolicy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from core.content.lexicon import NodeKinds, Props, ResourceCollection
from core.content.tree import ContentNode, ContentTree
from core.manifest import PublishPolicy

from archive.options import ImportOptions


__all__ = [
    "ResolutionOutcome",
    "Resolution",
    "ResolutionRoots",
    "PublishPolicyResolver",
    "policy_from_node",
    "policy_to_property",
]


logger = logging.getLogger(__name__)


class ResolutionOutcome(str, Enum):
    MATERIALIZED = "materialized"
    REFERENCED = "referenced"
    SKIPPED = "skipped"


@dataclass
class Resolution:
    """Result of resolving one entry."""
    outcome: ResolutionOutcome
    resource: ContentNode | None = None

    @property
    def created(self) -> bool:
        return self.outcome is ResolutionOutcome.MATERIALIZED


def policy_to_property(policy: PublishPolicy) -> str:
    return policy.name


def policy_from_node(tree: ContentTree, node: ContentNode) -> PublishPolicy:
    """Policy stored on an entry node. Missing or unknown values give the default."""
    return PublishPolicy.from_xml(tree.get_property(node, Props.PUBLISH_POLICY))


class ResolutionRoots:
    """
    Locates the resolution root for each resource collection.

    Lookup order:
    1. an override from the import options (created when missing)
    2. the default folder named after the collection, if a folder of that
       name exists beside the data service node
    3. the data service node's parent
    """

    def __init__(self, options: ImportOptions | None = None) -> None:
        self.options = options or ImportOptions()

    def root_for(
        self,
        tree: ContentTree,
        data_service: ContentNode,
        collection: ResourceCollection,
    ) -> ContentNode:
        base = tree.parent_of(data_service) or tree.root

        override = self.options.root_override(collection)
        if override:
            if override.startswith("/"):
                return tree.ensure_path(override)
            return tree.ensure_path(f"{base.path.rstrip('/')}/{override}")

        default = tree.find_child(base, collection.value, NodeKinds.FOLDER)
        if default is not None:
            return default
        return base


class PublishPolicyResolver:
    """Applies a publish policy to one entry node."""

    def resolve(
        self,
        tree: ContentTree,
        entry_node: ContentNode,
        *,
        name: str,
        resource_kind: str,
        root: ContentNode,
        policy: PublishPolicy,
        read_payload: Callable[[], bytes | None],
    ) -> Resolution:
        """
        Resolve an entry.

        Args:
            tree: Content tree being populated
            entry_node: Entry node that receives the reference property
            name: Resource name (the entry name)
            resource_kind: Node kind of the resource
            root: Resolution root searched and written to
            policy: Entry publish policy
            read_payload: Reads the entry's archive bytes; None if the archive has none

        Returns:
            Resolution with the outcome and the linked resource node
        """
        if policy is PublishPolicy.NEVER:
            # payload is read and discarded
            read_payload()
            tree.set_property(entry_node, Props.SOURCE_RESOURCE, None)
            logger.debug(f"Policy NEVER for '{name}', no resource linked")
            return Resolution(ResolutionOutcome.SKIPPED)

        if policy is PublishPolicy.IF_MISSING:
            existing = tree.find_child(root, name, resource_kind)
            if existing is not None:
                tree.set_property(entry_node, Props.SOURCE_RESOURCE, existing.identifier)
                logger.debug(f"Referenced existing {resource_kind} '{existing.path}'")
                return Resolution(ResolutionOutcome.REFERENCED, existing)

        resource = tree.create_child(root, name, resource_kind)
        tree.set_payload(resource, read_payload())
        tree.set_property(entry_node, Props.SOURCE_RESOURCE, resource.identifier)
        logger.debug(f"Materialized {resource_kind} '{resource.path}'")
        return Resolution(ResolutionOutcome.MATERIALIZED, resource)
