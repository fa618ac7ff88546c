"""HTTP endpoint serving a collector registry in the Prometheus text format."""

from __future__ import annotations

import threading
from wsgiref.simple_server import WSGIServer

from prometheus_client import CollectorRegistry, start_http_server

from puppetdb_exporter.core.exceptions import ConfigurationError
from puppetdb_exporter.core.log_events import LogEvents
from puppetdb_exporter.core.logger import UnifiedLogger

__all__ = ["DEFAULT_PORT", "MetricsServer", "parse_listen_address"]

DEFAULT_PORT = 9635

logger = UnifiedLogger.get(__name__)


def parse_listen_address(value: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``:port``) into a bind address and a port.

    IPv6 hosts must be bracketed, e.g. ``[::]:9635``.
    """

    candidate = value.strip()
    host, sep, port_text = candidate.rpartition(":")
    if not sep or not port_text.isdigit():
        msg = f"listen address must be host:port, got {value!r}"
        raise ConfigurationError(msg)
    port = int(port_text)
    if not 0 < port < 65536:
        msg = f"listen port out of range: {port}"
        raise ConfigurationError(msg)
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or "0.0.0.0", port


class MetricsServer:
    """Serve ``registry`` from a daemon thread."""

    def __init__(
        self,
        registry: CollectorRegistry,
        *,
        address: str = "0.0.0.0",
        port: int = DEFAULT_PORT,
    ) -> None:
        self.registry = registry
        self.address = address
        self.port = port
        self._server: WSGIServer | None = None
        self._thread: threading.Thread | None = None

    @classmethod
    def from_listen_address(cls, registry: CollectorRegistry, listen_address: str) -> MetricsServer:
        address, port = parse_listen_address(listen_address)
        return cls(registry, address=address, port=port)

    @property
    def running(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        if self._server is not None:
            return
        self._server, self._thread = start_http_server(
            self.port,
            addr=self.address,
            registry=self.registry,
        )
        logger.info(LogEvents.SERVER_HTTP_STARTED.value, address=self.address, port=self.port)

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
        self._server = None
        self._thread = None
        logger.info(LogEvents.SERVER_HTTP_STOPPED.value, address=self.address, port=self.port)
