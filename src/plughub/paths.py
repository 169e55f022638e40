"""XDG-compliant path helpers for plughub configuration and plugins."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir


def get_data_dir() -> Path:
    """Get the data directory for plughub (installed plugins, exports)."""
    override = os.environ.get("PLUGHUB_DATA_DIR")
    if override:
        return Path(override).resolve()
    return Path(user_data_dir("plughub"))


def get_config_dir() -> Path:
    """Get the config directory for plughub (config.toml)."""
    override = os.environ.get("PLUGHUB_CONFIG_DIR")
    if override:
        return Path(override).resolve()
    return Path(user_config_dir("plughub"))


def get_plugin_dir() -> Path:
    """Get the directory scanned for plugin packages."""
    override = os.environ.get("PLUGHUB_PLUGIN_DIR")
    if override:
        return Path(override).resolve()
    return get_data_dir() / "plugins"


def get_config_path() -> Path:
    """Get the path to the main config file."""
    return get_config_dir() / "config.toml"


def get_diagnostics_path() -> Path:
    """Get the path to the diagnostics export file."""
    return get_data_dir() / "diagnostics.log"
