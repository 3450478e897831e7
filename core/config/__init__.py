"""
Runtime Configuration Module

Provides configuration loading and management for the archive engine.
"""

from .runtime import (
    DEFAULT_EXCLUDED_PROPERTY_PREFIXES,
    ENV_PREFIX,
    ExportConfig,
    ImportConfig,
    RuntimeConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "DEFAULT_EXCLUDED_PROPERTY_PREFIXES",
    "ENV_PREFIX",
    "ExportConfig",
    "ImportConfig",
    "RuntimeConfig",
    "get_default_config",
    "set_default_config",
]
