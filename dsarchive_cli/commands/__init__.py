"""
CLI command modules.
"""

from dsarchive_cli.commands import inspect, importer, export, tree

__all__ = ["inspect", "importer", "export", "tree"]
