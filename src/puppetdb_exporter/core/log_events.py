"""Registry of structured logging event identifiers."""

from __future__ import annotations

from enum import Enum, auto

__all__ = ["LogEvents"]


class LogEvents(str, Enum):
    """Event names logged by the exporter, ``<component>.<subject>.<outcome>``."""

    @staticmethod
    def _generate_next_value_(name: str, start: int, count: int, last_values: list[str]) -> str:
        return name.lower().replace("_", ".")

    CLI_EXPORTER_STARTED = auto()
    CLI_EXPORTER_STOPPED = auto()
    CLI_SHUTDOWN_REQUESTED = auto()
    CLI_STARTUP_FAILED = auto()
    CLIENT_NODES_FETCHED = auto()
    CLIENT_REQUEST_FAILED = auto()
    CLIENT_TLS_CONFIGURED = auto()
    CONFIG_LOAD_COMPLETED = auto()
    POLLER_COLLECTOR_REGISTERED = auto()
    POLLER_CYCLE_COMPLETED = auto()
    POLLER_FETCH_FAILED = auto()
    POLLER_LOOP_STARTED = auto()
    POLLER_LOOP_STOPPED = auto()
    POLLER_STATUS_RESET = auto()
    SERVER_HTTP_STARTED = auto()
    SERVER_HTTP_STOPPED = auto()
