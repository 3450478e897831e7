"""
Module 04 - CLI Tree Command

Print the content tree held in a workspace.

Usage:
    dsarchive tree [--workspace ws.json] [--path /dataservices] [--json]
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace
from pathlib import Path

from core.content import load_workspace


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def tree_cmd(args: Namespace) -> int:
    """Execute the tree command."""
    workspace = Path(args.workspace or args.cli_config.workspace)
    if not workspace.exists():
        print(f"Error: Workspace not found: {workspace}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    tree = load_workspace(workspace)
    node = tree.node_at(args.path)
    if node is None:
        print(f"Error: No node at {args.path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.json:
        print(json.dumps(tree.to_dict(node), indent=2))
    else:
        print(tree.render(node))
    return EXIT_SUCCESS
