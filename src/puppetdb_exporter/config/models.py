"""Typed configuration models for the exporter."""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, field_validator

from puppetdb_exporter.core.logger import LogFormat

__all__ = [
    "DEFAULT_PUPPETDB_URL",
    "ExporterConfig",
    "LoggingConfig",
    "METRIC_PREFIX_PATTERN",
    "PuppetDBOptions",
]

DEFAULT_PUPPETDB_URL = "https://puppetdb:8081/pdb/query"

METRIC_PREFIX_PATTERN = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")


class PuppetDBOptions(BaseModel):
    """Connection options for a single PuppetDB endpoint."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(
        default=DEFAULT_PUPPETDB_URL,
        description="Base URL of the PuppetDB query API; /v4/nodes is appended.",
    )
    cert_path: Path | None = Field(
        default=Path("certs/client.pem"),
        description="Client certificate presented to PuppetDB (https only).",
    )
    ca_cert_path: Path | None = Field(
        default=Path("certs/cacert.pem"),
        description="CA bundle used to verify the PuppetDB server (https only).",
    )
    key_path: Path | None = Field(
        default=Path("certs/client.key"),
        description="Private key matching the client certificate (https only).",
    )
    ssl_verify: bool = Field(
        default=True,
        description="Whether the PuppetDB server certificate is verified.",
    )
    timeout_sec: PositiveFloat = Field(
        default=30.0,
        description="Per-request transport timeout in seconds.",
    )

    @field_validator("url")
    @classmethod
    def _strip_url(cls, value: str) -> str:
        """Trim whitespace around the configured URL."""
        return value.strip()

    @field_validator("cert_path", "ca_cert_path", "key_path", mode="before")
    @classmethod
    def _empty_path_is_none(cls, value: object) -> object:
        """Treat empty strings from env vars or YAML as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class LoggingConfig(BaseModel):
    """Logging section of the configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", description="Root log level name.")
    format: LogFormat = Field(default=LogFormat.JSON, description="Renderer for log lines.")

    @field_validator("level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        normalised = value.strip().upper()
        if normalised not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            msg = f"Unsupported log level: {value}"
            raise ValueError(msg)
        return normalised


class ExporterConfig(BaseModel):
    """Top-level exporter configuration."""

    model_config = ConfigDict(extra="forbid")

    puppetdb: PuppetDBOptions = Field(default_factory=PuppetDBOptions)
    listen_address: str = Field(
        default="0.0.0.0:9635",
        description="host:port the metrics endpoint listens on.",
    )
    scrape_interval_sec: PositiveFloat = Field(
        default=60.0,
        description="Seconds between two PuppetDB polls.",
    )
    namespace: str = Field(
        default="puppetdb",
        description="Prefix of every exported metric name.",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("namespace")
    @classmethod
    def _validate_namespace(cls, value: str) -> str:
        """Ensure the namespace is a valid Prometheus metric name prefix."""
        if not METRIC_PREFIX_PATTERN.fullmatch(value):
            msg = f"namespace must match {METRIC_PREFIX_PATTERN.pattern}, got {value!r}"
            raise ValueError(msg)
        return value
