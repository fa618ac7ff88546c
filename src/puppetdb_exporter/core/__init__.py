"""Logging and error primitives shared by the exporter packages."""

from __future__ import annotations

from .exceptions import (
    ConfigurationError,
    DecodeError,
    HTTPStatusError,
    NetworkError,
    PuppetDBError,
    PuppetDBExporterError,
    RegistrationError,
)
from .log_events import LogEvents
from .logger import LogConfig, LogFormat, UnifiedLogger, configure_logging

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "HTTPStatusError",
    "LogConfig",
    "LogEvents",
    "LogFormat",
    "NetworkError",
    "PuppetDBError",
    "PuppetDBExporterError",
    "RegistrationError",
    "UnifiedLogger",
    "configure_logging",
]
