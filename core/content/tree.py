"""
Module 02 - Content Tree
File: tree.py

Purpose: Content-tree adapter contract and an in-memory implementation.

The importer and exporter only talk to the tree through ``ContentTree``.
``InMemoryContentTree`` is the implementation used by the CLI workspace,
the HTTP API and the tests.
"""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterator, Protocol, runtime_checkable

from core.content.lexicon import NodeKinds


__all__ = [
    "ContentNode",
    "ContentTree",
    "InMemoryContentTree",
]


@dataclass(eq=False)
class ContentNode:
    """A node in the content tree. Same-name siblings are allowed."""
    name: str
    kind: str
    identifier: str = field(default_factory=lambda: str(uuid.uuid4()))
    properties: dict[str, Any] = field(default_factory=dict)
    payload: bytes | None = field(default=None, repr=False)
    children: list["ContentNode"] = field(default_factory=list, repr=False)
    parent: "ContentNode | None" = field(default=None, repr=False)

    @property
    def path(self) -> str:
        if self.parent is None:
            return "/"
        parent_path = self.parent.path
        return f"{parent_path.rstrip('/')}/{self.name}"


@runtime_checkable
class ContentTree(Protocol):
    """Operations the archive engine needs from a content tree."""

    @property
    def root(self) -> ContentNode: ...

    def create_child(self, parent: ContentNode, name: str, kind: str) -> ContentNode: ...

    def get_property(self, node: ContentNode, name: str, default: Any = None) -> Any: ...

    def set_property(self, node: ContentNode, name: str, value: Any) -> None: ...

    def properties(self, node: ContentNode) -> dict[str, Any]: ...

    def find_child(self, parent: ContentNode, name: str, kind: str) -> ContentNode | None: ...

    def children(self, parent: ContentNode, kind: str | None = None) -> list[ContentNode]: ...

    def node_at(self, path: str) -> ContentNode | None: ...

    def ensure_path(self, path: str, kind: str = NodeKinds.FOLDER) -> ContentNode: ...

    def resolve_reference(self, identifier: str | None) -> ContentNode | None: ...

    def remove(self, node: ContentNode) -> None: ...

    def get_payload(self, node: ContentNode) -> bytes | None: ...

    def set_payload(self, node: ContentNode, data: bytes | None) -> None: ...

    def parent_of(self, node: ContentNode) -> ContentNode | None: ...


class InMemoryContentTree:
    """Content tree held entirely in memory, indexed by node identifier."""

    def __init__(self) -> None:
        self._root = ContentNode(name="", kind=NodeKinds.ROOT)
        self._index: dict[str, ContentNode] = {self._root.identifier: self._root}

    @property
    def root(self) -> ContentNode:
        return self._root

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    def create_child(self, parent: ContentNode, name: str, kind: str) -> ContentNode:
        if not name or "/" in name:
            raise ValueError(f"Invalid node name: {name!r}")
        node = ContentNode(name=name, kind=kind, parent=parent)
        parent.children.append(node)
        self._index[node.identifier] = node
        return node

    def find_child(self, parent: ContentNode, name: str, kind: str) -> ContentNode | None:
        for child in parent.children:
            if child.name == name and child.kind == kind:
                return child
        return None

    def children(self, parent: ContentNode, kind: str | None = None) -> list[ContentNode]:
        if kind is None:
            return list(parent.children)
        return [c for c in parent.children if c.kind == kind]

    def node_at(self, path: str) -> ContentNode | None:
        """Node at an absolute path. The first same-named child wins."""
        node = self._root
        for segment in _segments(path):
            node = next((c for c in node.children if c.name == segment), None)
            if node is None:
                return None
        return node

    def ensure_path(self, path: str, kind: str = NodeKinds.FOLDER) -> ContentNode:
        """Return the node at ``path``, creating missing segments as ``kind``."""
        node = self._root
        for segment in _segments(path):
            child = next((c for c in node.children if c.name == segment), None)
            node = child if child is not None else self.create_child(node, segment, kind)
        return node

    def parent_of(self, node: ContentNode) -> ContentNode | None:
        return node.parent

    def remove(self, node: ContentNode) -> None:
        if node is self._root:
            raise ValueError("Cannot remove the root node")
        if node.parent is not None:
            node.parent.children = [c for c in node.parent.children if c is not node]
            node.parent = None
        for descendant in self.walk(node):
            self._index.pop(descendant.identifier, None)

    def walk(self, node: ContentNode | None = None) -> Iterator[ContentNode]:
        """Depth-first iteration starting at ``node`` (default: root)."""
        start = node or self._root
        stack = [start]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def resolve_reference(self, identifier: str | None) -> ContentNode | None:
        if not identifier:
            return None
        return self._index.get(identifier)

    # -------------------------------------------------------------------------
    # Properties & payload
    # -------------------------------------------------------------------------

    def get_property(self, node: ContentNode, name: str, default: Any = None) -> Any:
        return node.properties.get(name, default)

    def set_property(self, node: ContentNode, name: str, value: Any) -> None:
        """Set a property. None removes it."""
        if value is None:
            node.properties.pop(name, None)
        else:
            node.properties[name] = value

    def properties(self, node: ContentNode) -> dict[str, Any]:
        return dict(node.properties)

    def get_payload(self, node: ContentNode) -> bytes | None:
        return node.payload

    def set_payload(self, node: ContentNode, data: bytes | None) -> None:
        node.payload = data

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self, node: ContentNode | None = None) -> dict[str, Any]:
        return _node_to_dict(node or self._root)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryContentTree":
        tree = cls()
        tree._index.clear()
        tree._root = _node_from_dict(data, None, tree._index)
        return tree

    def render(self, node: ContentNode | None = None) -> str:
        """Indented text listing of a subtree."""
        start = node or self._root
        lines: list[str] = []

        def visit(current: ContentNode, depth: int) -> None:
            label = current.name or "/"
            extra = f" ({len(current.payload)} bytes)" if current.payload is not None else ""
            lines.append(f"{'  ' * depth}{label} [{current.kind}]{extra}")
            for child in current.children:
                visit(child, depth + 1)

        visit(start, 0)
        return "\n".join(lines)


def _segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def _node_to_dict(node: ContentNode) -> dict[str, Any]:
    d: dict[str, Any] = {
        "name": node.name,
        "kind": node.kind,
        "identifier": node.identifier,
        "properties": dict(node.properties),
        "children": [_node_to_dict(c) for c in node.children],
    }
    if node.payload is not None:
        d["payload"] = base64.b64encode(node.payload).decode("ascii")
    return d


def _node_from_dict(
    data: dict[str, Any],
    parent: ContentNode | None,
    index: dict[str, ContentNode],
) -> ContentNode:
    payload = data.get("payload")
    node = ContentNode(
        name=data.get("name", ""),
        kind=data.get("kind", NodeKinds.FOLDER),
        identifier=data.get("identifier") or str(uuid.uuid4()),
        properties=dict(data.get("properties", {})),
        payload=base64.b64decode(payload) if payload is not None else None,
        parent=parent,
    )
    index[node.identifier] = node
    node.children = [_node_from_dict(c, node, index) for c in data.get("children", [])]
    return node
