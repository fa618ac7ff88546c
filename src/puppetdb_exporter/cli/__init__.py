"""Typer command-line interface for the PuppetDB exporter."""

from __future__ import annotations

from .main import app, serve

__all__ = ["app", "serve"]
