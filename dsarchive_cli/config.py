"""
Module 04 - CLI Configuration

Configuration management for the dsarchive CLI.
Supports environment variables and configuration files.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.config.runtime import ENV_PREFIX, RuntimeConfig


@dataclass
class CLIConfig:
    """Main CLI configuration."""

    # Content-tree workspace used by import/export/tree
    workspace: str = "dsarchive-workspace.json"

    # Optional YAML runtime configuration (resolution roots, export settings)
    runtime_config: str | None = None

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    # Output
    default_output_format: str = "human"  # "human" or "json"

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspace": self.workspace,
            "runtime_config": self.runtime_config,
            "log_level": self.log_level,
            "log_file": self.log_file,
            "default_output_format": self.default_output_format,
        }


def load_config_from_env() -> CLIConfig:
    """Load configuration from environment variables."""
    config = CLIConfig()

    if os.getenv(f"{ENV_PREFIX}WORKSPACE"):
        config.workspace = os.getenv(f"{ENV_PREFIX}WORKSPACE", config.workspace)
    config.runtime_config = os.getenv(f"{ENV_PREFIX}RUNTIME_CONFIG")

    # Logging
    config.log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO")
    config.log_file = os.getenv(f"{ENV_PREFIX}LOG_FILE")

    if os.getenv(f"{ENV_PREFIX}OUTPUT_FORMAT"):
        config.default_output_format = os.getenv(f"{ENV_PREFIX}OUTPUT_FORMAT", "human")

    return config


def load_config_from_file(path: Path) -> CLIConfig:
    """Load configuration from a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    config = CLIConfig()
    config.workspace = data.get("workspace", config.workspace)
    config.runtime_config = data.get("runtime_config", config.runtime_config)
    config.log_level = data.get("log_level", config.log_level)
    config.log_file = data.get("log_file", config.log_file)
    config.default_output_format = data.get("default_output_format", config.default_output_format)
    return config


def load_config(config_path: Path | None = None) -> CLIConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Args:
        config_path: Optional path to config file

    Returns:
        Merged configuration
    """
    config = CLIConfig()

    if config_path and config_path.exists():
        config = load_config_from_file(config_path)

    default_paths = [
        Path.cwd() / "dsarchive.json",
        Path.cwd() / ".dsarchive.json",
        Path.home() / ".config" / "dsarchive" / "config.json",
    ]

    if config_path is None:
        for default_path in default_paths:
            if default_path.exists():
                config = load_config_from_file(default_path)
                break

    # Environment takes precedence
    env_config = load_config_from_env()
    if os.getenv(f"{ENV_PREFIX}WORKSPACE"):
        config.workspace = env_config.workspace
    if os.getenv(f"{ENV_PREFIX}RUNTIME_CONFIG"):
        config.runtime_config = env_config.runtime_config
    if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config.log_level = env_config.log_level
    if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config.log_file = env_config.log_file
    if os.getenv(f"{ENV_PREFIX}OUTPUT_FORMAT"):
        config.default_output_format = env_config.default_output_format

    return config


def load_runtime_config(config: CLIConfig) -> RuntimeConfig:
    """Runtime configuration for import/export, with env overrides applied."""
    if config.runtime_config:
        return RuntimeConfig.from_yaml(config.runtime_config).with_env_overrides()
    return RuntimeConfig.from_env()


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """{
  "workspace": "dsarchive-workspace.json",
  "runtime_config": null,
  "log_level": "INFO",
  "log_file": null,
  "default_output_format": "human"
}
"""
