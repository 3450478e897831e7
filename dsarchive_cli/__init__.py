"""
Module 04 - dsarchive CLI

Command-line interface for data service archives.

Usage:
    python -m dsarchive_cli inspect archive.zip
    python -m dsarchive_cli import archive.zip --workspace ws.json
    python -m dsarchive_cli export --source /MyService --out MyService.zip
    python -m dsarchive_cli tree
"""

__version__ = "0.1.0"
