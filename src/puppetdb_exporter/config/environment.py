"""Environment-driven configuration helpers for the exporter.

Responsibilities:

- reading ``.env`` and the process environment through ``EnvironmentSettings``;
- turning the short ``PUPPETDB_*`` variables into a nested override mapping
  that the loader merges on top of the YAML configuration.

Values are kept as plain strings here, type coercion is left to
:class:`~puppetdb_exporter.config.models.ExporterConfig`.
"""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class _EnvOverrideSpec:
    """Internal spec describing mapping between env vars and config paths."""

    __slots__ = ("attr", "config_path")

    def __init__(self, attr: str, config_path: Iterable[str]) -> None:
        self.attr = attr
        self.config_path = tuple(config_path)


_ENV_OVERRIDE_SPECS: tuple[_EnvOverrideSpec, ...] = (
    _EnvOverrideSpec("puppetdb_url", ("puppetdb", "url")),
    _EnvOverrideSpec("cert_file", ("puppetdb", "cert_path")),
    _EnvOverrideSpec("ca_file", ("puppetdb", "ca_cert_path")),
    _EnvOverrideSpec("key_file", ("puppetdb", "key_path")),
    _EnvOverrideSpec("ssl_verify", ("puppetdb", "ssl_verify")),
    _EnvOverrideSpec("timeout", ("puppetdb", "timeout_sec")),
    _EnvOverrideSpec("listen_address", ("listen_address",)),
    _EnvOverrideSpec("scrape_interval", ("scrape_interval_sec",)),
    _EnvOverrideSpec("namespace", ("namespace",)),
    _EnvOverrideSpec("log_level", ("logging", "level")),
    _EnvOverrideSpec("log_format", ("logging", "format")),
)


class EnvironmentSettings(BaseSettings):
    """Typed view of the exporter environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    puppetdb_url: str | None = Field(default=None, alias="PUPPETDB_URL")
    cert_file: str | None = Field(default=None, alias="PUPPETDB_CERT_FILE")
    ca_file: str | None = Field(default=None, alias="PUPPETDB_CA_FILE")
    key_file: str | None = Field(default=None, alias="PUPPETDB_KEY_FILE")
    ssl_verify: str | None = Field(default=None, alias="PUPPETDB_SSL_VERIFY")
    timeout: str | None = Field(default=None, alias="PUPPETDB_TIMEOUT")
    listen_address: str | None = Field(default=None, alias="PUPPETDB_EXPORTER_LISTEN_ADDRESS")
    scrape_interval: str | None = Field(default=None, alias="PUPPETDB_EXPORTER_SCRAPE_INTERVAL")
    namespace: str | None = Field(default=None, alias="PUPPETDB_EXPORTER_NAMESPACE")
    log_level: str | None = Field(default=None, alias="PUPPETDB_EXPORTER_LOG_LEVEL")
    log_format: str | None = Field(default=None, alias="PUPPETDB_EXPORTER_LOG_FORMAT")

    @field_validator("*")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        """Trim values and treat empty strings as unset."""
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


def load_environment_settings(*, env_file: Path | None = None) -> EnvironmentSettings:
    """Load and validate exporter environment settings.

    Parameters
    ----------
    env_file:
        Optional path to a ``.env`` file. When omitted, the default search order
        from :class:`EnvironmentSettings` is used.
    """

    init_kwargs: dict[str, Any] = {}
    if env_file is not None:
        init_kwargs["_env_file"] = env_file
    return EnvironmentSettings(**init_kwargs)


def build_env_override_mapping(settings: EnvironmentSettings) -> dict[str, Any]:
    """Return nested overrides derived from the environment variables."""

    overrides: dict[str, Any] = {}

    for spec in _ENV_OVERRIDE_SPECS:
        value = getattr(settings, spec.attr)
        if value is None:
            continue
        _assign_nested_override(overrides, spec.config_path, value)

    return overrides


def _assign_nested_override(
    target: MutableMapping[str, Any],
    path: Iterable[str],
    value: str,
) -> None:
    """Assign a value to a nested dictionary without mutating siblings."""
    current: MutableMapping[str, Any] = target
    parts = tuple(path)
    for part in parts[:-1]:
        existing = current.get(part)
        if not isinstance(existing, MutableMapping):
            next_level: dict[str, Any] = {}
            current[part] = next_level
            current = next_level
            continue
        current = existing
    current[parts[-1]] = value


__all__ = [
    "EnvironmentSettings",
    "build_env_override_mapping",
    "load_environment_settings",
]
