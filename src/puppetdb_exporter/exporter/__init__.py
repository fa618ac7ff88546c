"""Prometheus side of the exporter: the polling collector and its HTTP endpoint."""

from __future__ import annotations

from .collector import STATUS_METRIC_NAME, NodeSource, PuppetDBExporter
from .server import DEFAULT_PORT, MetricsServer, parse_listen_address

__all__ = [
    "DEFAULT_PORT",
    "MetricsServer",
    "NodeSource",
    "PuppetDBExporter",
    "STATUS_METRIC_NAME",
    "parse_listen_address",
]
