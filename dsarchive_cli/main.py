"""
Module 04 - CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m dsarchive_cli inspect archive.zip [--json]
    python -m dsarchive_cli validate dataservice.xml [--json]
    python -m dsarchive_cli import archive.zip [--workspace ws.json] [--parent /] [--root KIND=PATH]
    python -m dsarchive_cli export --source /MyService --artifact full_zip --out MyService.zip
    python -m dsarchive_cli tree [--path /MyService] [--json]
    python -m dsarchive_cli config --init

Environment Variables:
    DSARCHIVE_WORKSPACE           Workspace file (default: dsarchive-workspace.json)
    DSARCHIVE_RUNTIME_CONFIG      YAML runtime configuration
    DSARCHIVE_<KIND>_ROOT         Resolution root for connections, drivers, ...
    DSARCHIVE_EXPORT_ARTIFACT     Default export artifact (default: full_zip)
    DSARCHIVE_PRETTY_PRINT        Pretty-print exported XML (default: true)
    DSARCHIVE_INDENT              Indent width for pretty printing (default: 4)
    DSARCHIVE_LOG_LEVEL           Log level (default: INFO)
    DSARCHIVE_LOG_FILE            Optional log file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from archive.options import ArtifactKind
from dsarchive_cli import __version__
from dsarchive_cli.commands import export, importer, inspect, tree
from dsarchive_cli.config import load_config, get_default_config_template


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_ARCHIVE_ERROR = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="dsarchive",
        description="Data service archive tool - inspect, import and export data service archives.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./dsarchive.json or ~/.config/dsarchive/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks for unexpected errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- inspect command ---
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Summarize the manifest of an archive",
        description="Read and validate the manifest of a data service archive and list its entries.",
    )
    inspect_parser.add_argument("archive", type=str, help="Path to the archive (zip)")
    inspect_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    inspect_parser.set_defaults(func=inspect.inspect_cmd)

    # --- validate command ---
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a manifest document against the schema",
        description="Validate a standalone dataservice.xml and report schema errors.",
    )
    validate_parser.add_argument("manifest", type=str, help="Path to the manifest XML")
    validate_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    validate_parser.set_defaults(func=inspect.validate_cmd)

    # --- import command ---
    import_parser = subparsers.add_parser(
        "import",
        help="Import an archive into the workspace",
        description="Materialize a data service archive in the workspace content tree.",
    )
    import_parser.add_argument("archive", type=str, help="Path to the archive (zip)")
    import_parser.add_argument(
        "--workspace", "-w",
        type=str,
        default=None,
        help="Workspace file (default: from config)",
    )
    import_parser.add_argument(
        "--parent",
        type=str,
        default="/",
        help="Folder that receives the data service node (default: /)",
    )
    import_parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Data service node name (default: manifest name)",
    )
    import_parser.add_argument(
        "--replace",
        action="store_true",
        default=False,
        help="Replace an existing data service with the same name",
    )
    import_parser.add_argument(
        "--root",
        action="append",
        default=None,
        metavar="KIND=PATH",
        help="Resolution root override, e.g. connections=/shared/connections (repeatable)",
    )
    import_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    import_parser.set_defaults(func=importer.import_cmd)

    # --- export command ---
    export_parser = subparsers.add_parser(
        "export",
        help="Export a data service from the workspace",
        description="Produce a manifest, a file list, a service VDB or a full archive.",
    )
    export_parser.add_argument(
        "--workspace", "-w",
        type=str,
        default=None,
        help="Workspace file (default: from config)",
    )
    export_parser.add_argument(
        "--source",
        type=str,
        required=True,
        help="Path of the data service node in the workspace",
    )
    export_parser.add_argument(
        "--artifact",
        type=str,
        default=None,
        help="Artifact to produce: " + ", ".join(kind.value for kind in ArtifactKind) + " (default: from config)",
    )
    export_parser.add_argument(
        "--out", "-o",
        type=str,
        required=True,
        help="Output path (directory for file_list, file otherwise)",
    )
    export_parser.add_argument(
        "--compact",
        action="store_true",
        default=False,
        help="Disable pretty printing of XML",
    )
    export_parser.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Indent width for pretty printing",
    )
    export_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    export_parser.set_defaults(func=export.export_cmd)

    # --- tree command ---
    tree_parser = subparsers.add_parser(
        "tree",
        help="Show the workspace content tree",
        description="Print the workspace content tree, or a subtree.",
    )
    tree_parser.add_argument(
        "--workspace", "-w",
        type=str,
        default=None,
        help="Workspace file (default: from config)",
    )
    tree_parser.add_argument(
        "--path",
        type=str,
        default="/",
        help="Subtree to show (default: /)",
    )
    tree_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output the subtree as JSON",
    )
    tree_parser.set_defaults(func=tree.tree_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Create or show CLI configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="dsarchive.json",
        help="Configuration file path (default: dsarchive.json)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (DSARCHIVE_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.cli_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: dsarchive config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=archive error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
