"""
Module 05 - API Dependencies

Dependency injection for the API.
Provides runtime configuration and import/export options.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from archive.options import ExportOptions, ImportOptions
from core.config.runtime import ENV_PREFIX, RuntimeConfig

logger = logging.getLogger(__name__)


def _load_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig from a YAML file, then overlay environment variables.

    Search order for the config file:
      1. $DSARCHIVE_RUNTIME_CONFIG
      2. ./dsarchive.yaml
      3. ~/.config/dsarchive/runtime.yaml

    Environment variables ALWAYS override config file values.
    The .env file is loaded automatically by core.config.runtime on import.
    """
    search_paths = [
        Path.cwd() / "dsarchive.yaml",
        Path.home() / ".config" / "dsarchive" / "runtime.yaml",
    ]
    explicit = os.getenv(f"{ENV_PREFIX}RUNTIME_CONFIG")
    if explicit:
        search_paths.insert(0, Path(explicit))

    for path in search_paths:
        if path.exists():
            try:
                config = RuntimeConfig.from_yaml(path)
                logger.info(f"Loaded config from {path}")
                return config.with_env_overrides()
            except Exception as e:
                logger.warning(f"Failed to parse {path}: {e}")

    return RuntimeConfig.from_env()


def get_import_options() -> ImportOptions:
    """Import options for one request."""
    return ImportOptions.from_config(_load_runtime_config())


def get_export_options() -> ExportOptions:
    """Export options for one request."""
    return ExportOptions.from_config(_load_runtime_config())
