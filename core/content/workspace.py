"""
Module 02 - Content Tree
File: workspace.py

Purpose: Persist an in-memory content tree as a JSON workspace file.
Payload bytes are stored base64-encoded.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from core.content.tree import InMemoryContentTree


__all__ = ["WORKSPACE_FORMAT", "load_workspace", "save_workspace"]


logger = logging.getLogger(__name__)

WORKSPACE_FORMAT = "dsarchive.workspace.v1"


def load_workspace(path: str | Path) -> InMemoryContentTree:
    """Load a workspace. A missing file yields an empty tree."""
    path = Path(path)
    if not path.exists():
        logger.info(f"Workspace {path} does not exist, starting with an empty tree")
        return InMemoryContentTree()

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    fmt = data.get("format")
    if fmt != WORKSPACE_FORMAT:
        raise ValueError(f"Unsupported workspace format: {fmt!r}")
    return InMemoryContentTree.from_dict(data["root"])


def save_workspace(tree: InMemoryContentTree, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"format": WORKSPACE_FORMAT, "root": tree.to_dict()}, f, indent=2)
    logger.debug(f"Saved workspace to {path}")
    return path
