"""
Runtime Configuration

Central configuration for archive import and export: resolution roots,
export artifact selection, manifest formatting and property filtering.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

from core.content.lexicon import ResourceCollection

load_dotenv()


ENV_PREFIX = "DSARCHIVE_"

# Content-tree property namespaces never echoed into an exported manifest
DEFAULT_EXCLUDED_PROPERTY_PREFIXES: tuple[str, ...] = (
    "jcr:",
    "mix:",
    "nt:",
    "mode:",
    "dv:",
    "vdb:",
    "jdbc:",
    "med:",
    "mmcore:",
    "relational:",
    "transformation:",
    "xmi:",
)


def _default_folders() -> dict[str, str]:
    return {collection.value: f"{collection.value}/" for collection in ResourceCollection}


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ImportConfig:
    """Configuration for archive import."""
    # collection name -> content-tree path of its resolution root
    resolution_roots: dict[str, str] = field(default_factory=dict)


@dataclass
class ExportConfig:
    """Configuration for archive export."""
    artifact: str = "full_zip"
    pretty_print: bool = True
    indent: int = 4
    # collection name -> archive folder used when an entry has no stored path
    folders: dict[str, str] = field(default_factory=_default_folders)
    excluded_property_prefixes: list[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_PROPERTY_PREFIXES)
    )


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for the archive engine.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    importer: ImportConfig = field(default_factory=ImportConfig)
    exporter: ExportConfig = field(default_factory=ExportConfig)
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - DSARCHIVE_<COLLECTION>_ROOT: resolution root for CONNECTIONS, DRIVERS,
          METADATA, RESOURCES, UDFS or VDBS
        - DSARCHIVE_EXPORT_ARTIFACT: default export artifact
        - DSARCHIVE_PRETTY_PRINT: pretty-print exported XML (true/false)
        - DSARCHIVE_INDENT: indent width for pretty printing
        """
        overrides: dict[str, Any] = {}

        # Resolution roots
        for collection in ResourceCollection:
            value = os.getenv(f"{ENV_PREFIX}{collection.name}_ROOT")
            if value:
                overrides.setdefault("import", {}).setdefault("resolution_roots", {})[
                    collection.value
                ] = value

        # Export settings
        if os.getenv(f"{ENV_PREFIX}EXPORT_ARTIFACT"):
            overrides.setdefault("export", {})["artifact"] = os.getenv(f"{ENV_PREFIX}EXPORT_ARTIFACT")
        if os.getenv(f"{ENV_PREFIX}PRETTY_PRINT"):
            overrides.setdefault("export", {})["pretty_print"] = _env_bool(
                f"{ENV_PREFIX}PRETTY_PRINT", True
            )
        if os.getenv(f"{ENV_PREFIX}INDENT"):
            overrides.setdefault("export", {})["indent"] = int(os.getenv(f"{ENV_PREFIX}INDENT", "4"))

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        import_data = data.get("import", {}) or {}
        export_data = dict(data.get("export", {}) or {})

        importer = ImportConfig(
            resolution_roots=dict(import_data.get("resolution_roots", {}) or {}),
        )

        folders = _default_folders()
        folders.update(export_data.pop("folders", {}) or {})
        exporter = ExportConfig(folders=folders, **export_data)

        return cls(
            importer=importer,
            exporter=exporter,
            extra=data.get("extra", {}) or {},
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        Export settings from the environment replace file values. Resolution
        roots from the environment only fill collections the file leaves unset.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        import copy
        new_config = copy.deepcopy(self)

        if "import" in overrides:
            roots = new_config.importer.resolution_roots
            for collection, path in overrides["import"].get("resolution_roots", {}).items():
                roots.setdefault(collection, path)

        if "export" in overrides:
            for key, value in overrides["export"].items():
                setattr(new_config.exporter, key, value)

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "import": {
                "resolution_roots": dict(self.importer.resolution_roots),
            },
            "export": {
                "artifact": self.exporter.artifact,
                "pretty_print": self.exporter.pretty_print,
                "indent": self.exporter.indent,
                "folders": dict(self.exporter.folders),
                "excluded_property_prefixes": list(self.exporter.excluded_property_prefixes),
            },
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig | None) -> None:
    """Set the default runtime configuration. None resets to env defaults."""
    global _default_config
    _default_config = config
