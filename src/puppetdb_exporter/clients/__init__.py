"""Clients for the inventory APIs polled by the exporter."""

from __future__ import annotations

from .puppetdb import UNKNOWN_STATUS, Node, PuppetDBClient

__all__ = ["Node", "PuppetDBClient", "UNKNOWN_STATUS"]
