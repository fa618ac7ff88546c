"""Prometheus collector that polls PuppetDB and counts nodes per report status."""

from __future__ import annotations

import threading
import time
from collections import Counter
from collections.abc import Iterable
from datetime import timedelta
from typing import Protocol

from prometheus_client import CollectorRegistry, Gauge
from prometheus_client.metrics_core import Metric

from puppetdb_exporter.clients.puppetdb import Node
from puppetdb_exporter.config.models import METRIC_PREFIX_PATTERN
from puppetdb_exporter.core.exceptions import PuppetDBError, RegistrationError
from puppetdb_exporter.core.log_events import LogEvents
from puppetdb_exporter.core.logger import UnifiedLogger

__all__ = ["NodeSource", "PuppetDBExporter", "STATUS_METRIC_NAME"]

STATUS_METRIC_NAME = "node_report_status_count"

logger = UnifiedLogger.get(__name__)


class NodeSource(Protocol):
    """Anything able to return the current node list."""

    def nodes(self) -> list[Node]: ...


class PuppetDBExporter:
    """Owns the node status gauges and keeps them in sync with PuppetDB.

    The exporter registers itself as a custom collector so that the registry
    calls :meth:`describe` and :meth:`collect` on every scrape, while
    :meth:`scrape` updates the gauge values from a separate thread.
    """

    def __init__(
        self,
        client: NodeSource,
        *,
        registry: CollectorRegistry,
        namespace: str = "puppetdb",
    ) -> None:
        self.client = client
        self.namespace = namespace
        self.cycles = 0
        self._known_statuses: set[str] = set()
        metric = f"{namespace}_{STATUS_METRIC_NAME}"
        if not METRIC_PREFIX_PATTERN.fullmatch(namespace):
            msg = f"failed to register {metric}: invalid namespace {namespace!r}"
            raise RegistrationError(msg)
        try:
            self._status_gauge = Gauge(
                STATUS_METRIC_NAME,
                "Total count of reports status by type",
                labelnames=("status",),
                namespace=namespace,
                registry=None,
            )
            registry.register(self)
        except ValueError as exc:
            msg = f"failed to register {metric}: {exc}"
            raise RegistrationError(msg) from exc
        logger.debug(
            LogEvents.POLLER_COLLECTOR_REGISTERED.value,
            metric=metric,
        )

    def describe(self) -> Iterable[Metric]:
        """Yield the static descriptor of every metric family."""

        yield from self._status_gauge.describe()

    def collect(self) -> Iterable[Metric]:
        """Yield the current value of every tracked status label."""

        yield from self._status_gauge.collect()

    def poll_once(self) -> Counter[str]:
        """Run one fetch/aggregate/update cycle and return the status counts.

        A failed fetch is logged and treated as an empty node list. Statuses
        seen in earlier cycles but absent from this one are set to zero. Every
        event logged during the cycle, the client's included, carries
        ``component="poller"`` and the cycle number.
        """

        self.cycles += 1
        with UnifiedLogger.scoped(component="poller", cycle=self.cycles):
            return self._update_gauges()

    def _update_gauges(self) -> Counter[str]:
        started = time.monotonic()
        try:
            nodes = self.client.nodes()
        except PuppetDBError as exc:
            logger.error(
                LogEvents.POLLER_FETCH_FAILED.value,
                error=str(exc),
                error_type=type(exc).__name__,
                url=exc.url,
            )
            nodes = []

        counts: Counter[str] = Counter(node.latest_report_status for node in nodes)

        stale = sorted(self._known_statuses - counts.keys())
        for status in stale:
            self._status_gauge.labels(status=status).set(0)
        if stale:
            logger.debug(LogEvents.POLLER_STATUS_RESET.value, statuses=stale)

        for status, count in counts.items():
            self._status_gauge.labels(status=status).set(count)
        self._known_statuses.update(counts)

        logger.info(
            LogEvents.POLLER_CYCLE_COMPLETED.value,
            nodes=len(nodes),
            statuses=dict(counts),
            duration_ms=round((time.monotonic() - started) * 1000, 3),
        )
        return counts

    def scrape(
        self,
        interval: float | timedelta,
        *,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Poll PuppetDB every ``interval`` until ``stop_event`` is set.

        Without a stop event the loop never returns.
        """

        seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
        if seconds <= 0:
            msg = f"interval must be > 0, got {seconds}"
            raise ValueError(msg)

        stop = stop_event or threading.Event()
        logger.info(LogEvents.POLLER_LOOP_STARTED.value, interval_sec=seconds)
        while not stop.is_set():
            self.poll_once()
            stop.wait(seconds)
        logger.info(LogEvents.POLLER_LOOP_STOPPED.value)
