"""Configuration loading utilities."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import ValidationError

from puppetdb_exporter.core.exceptions import ConfigurationError

from .environment import (
    EnvironmentSettings,
    build_env_override_mapping,
    load_environment_settings,
)
from .models import ExporterConfig

__all__ = [
    "apply_cli_overrides",
    "load_config",
    "load_raw_config",
]


def load_raw_config(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file into a mapping."""

    resolved = _resolve_config_path(path)
    try:
        with resolved.open("r", encoding="utf-8") as stream:
            payload = yaml.safe_load(stream)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {resolved}: {exc}"
        raise ConfigurationError(msg) from exc
    except OSError as exc:
        msg = f"Cannot read configuration file {resolved}: {exc}"
        raise ConfigurationError(msg) from exc
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        msg = f"Configuration root in {resolved} must be a mapping, got {type(payload).__name__}"
        raise ConfigurationError(msg)
    return dict(cast(Mapping[str, Any], payload))


def apply_cli_overrides(
    payload: Mapping[str, Any],
    cli_overrides: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Merge dotted ``section.key`` CLI overrides; ``None`` values are skipped."""

    merged: dict[str, Any] = dict(payload)
    if not cli_overrides:
        return merged

    tree: dict[str, Any] = {}
    for dotted_key, value in cli_overrides.items():
        if value is None:
            continue
        _assign_nested(tree, dotted_key.split("."), value)
    if tree:
        merged = _deep_merge(merged, tree)
    return merged


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, Any] | None = None,
    env_settings: EnvironmentSettings | None = None,
) -> ExporterConfig:
    """Build the exporter configuration.

    Layers are applied in order: model defaults, the optional YAML file, the
    ``PUPPETDB_*`` environment variables, then CLI overrides.

    Raises
    ------
    FileNotFoundError
        If ``config_path`` is given but does not exist.
    ConfigurationError
        If the file cannot be read as a YAML mapping or the merged payload
        fails validation.
    """

    payload: dict[str, Any] = {}
    if config_path is not None:
        payload = load_raw_config(Path(config_path))

    settings = env_settings if env_settings is not None else load_environment_settings()
    env_overrides = build_env_override_mapping(settings)
    if env_overrides:
        payload = _deep_merge(payload, env_overrides)

    payload = apply_cli_overrides(payload, cli_overrides)

    try:
        return ExporterConfig.model_validate(payload)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise ConfigurationError(msg) from exc


def _resolve_config_path(config_path: str | Path) -> Path:
    """Normalize config path resolution logic."""

    path = Path(config_path).expanduser().resolve()
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise FileNotFoundError(msg)
    return path


def _deep_merge(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
) -> dict[str, Any]:
    """Recursively merge two mapping-like objects."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(
                cast(Mapping[str, Any], merged[key]),
                cast(Mapping[str, Any], value),
            )
        else:
            merged[key] = value
    return merged


def _assign_nested(target: MutableMapping[str, Any], parts: Sequence[str], value: Any) -> None:
    """Assign a value to a nested mapping according to dotted parts."""

    current = target
    for part in parts[:-1]:
        existing = current.get(part)
        if not isinstance(existing, MutableMapping):
            existing = {}
            current[part] = existing
        current = existing
    current[parts[-1]] = value
