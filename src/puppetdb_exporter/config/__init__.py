"""Configuration utilities for the PuppetDB exporter."""

from __future__ import annotations

from .environment import EnvironmentSettings, build_env_override_mapping, load_environment_settings
from .loader import apply_cli_overrides, load_config, load_raw_config
from .models import DEFAULT_PUPPETDB_URL, ExporterConfig, LoggingConfig, PuppetDBOptions

__all__ = [
    "DEFAULT_PUPPETDB_URL",
    "EnvironmentSettings",
    "ExporterConfig",
    "LoggingConfig",
    "PuppetDBOptions",
    "apply_cli_overrides",
    "build_env_override_mapping",
    "load_config",
    "load_environment_settings",
    "load_raw_config",
]
