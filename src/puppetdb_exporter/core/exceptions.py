"""Domain-specific exceptions for the PuppetDB exporter.

Upper layers (the poller and the CLI) only catch the types defined here, the
client translates ``requests`` and ``ssl`` failures into them.
"""

from __future__ import annotations

__all__ = [
    "PuppetDBExporterError",
    "ConfigurationError",
    "RegistrationError",
    "PuppetDBError",
    "NetworkError",
    "HTTPStatusError",
    "DecodeError",
]


class PuppetDBExporterError(Exception):
    """Base class for exporter errors."""

    pass


class ConfigurationError(PuppetDBExporterError):
    """Invalid URL, TLS material or configuration file. Fatal at startup."""

    pass


class RegistrationError(PuppetDBExporterError):
    """A metric family could not be registered with the collector registry."""

    pass


class PuppetDBError(PuppetDBExporterError):
    """Base class for failures of a single PuppetDB query."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class NetworkError(PuppetDBError):
    """Transport-level failure: DNS, refused connection, TLS handshake, timeout."""

    pass


class HTTPStatusError(NetworkError):
    """PuppetDB answered with a non-2xx status code."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class DecodeError(PuppetDBError):
    """The response body is not a JSON array of node objects."""

    pass
