"""Command-line entry point for the PuppetDB exporter."""

from __future__ import annotations

import signal
import threading
from pathlib import Path
from types import FrameType
from typing import Any

import typer
from prometheus_client import REGISTRY, CollectorRegistry

from puppetdb_exporter import __version__
from puppetdb_exporter.clients.puppetdb import PuppetDBClient
from puppetdb_exporter.config import ExporterConfig, load_config
from puppetdb_exporter.core.exceptions import ConfigurationError, RegistrationError
from puppetdb_exporter.core.log_events import LogEvents
from puppetdb_exporter.core.logger import LogConfig, LogFormat, UnifiedLogger
from puppetdb_exporter.exporter.collector import PuppetDBExporter
from puppetdb_exporter.exporter.server import MetricsServer

app = typer.Typer(
    name="puppetdb-exporter",
    help="Export PuppetDB node report statuses as Prometheus metrics.",
    add_completion=False,
)

EXIT_CONFIG_ERROR = 2
EXIT_RUNTIME_ERROR = 1


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"puppetdb-exporter {__version__}")
        raise typer.Exit()


def serve(
    config: ExporterConfig,
    *,
    registry: CollectorRegistry | None = None,
    stop_event: threading.Event | None = None,
) -> None:
    """Wire the client, collector and HTTP endpoint, then poll until stopped.

    Raises
    ------
    ConfigurationError
        If the listen address or PuppetDB connection options are invalid.
    RegistrationError
        If the metric family is already registered in ``registry``.
    """

    log = UnifiedLogger.get(__name__)
    stop = stop_event or threading.Event()
    server = MetricsServer.from_listen_address(registry or REGISTRY, config.listen_address)

    with PuppetDBClient(config.puppetdb) as client:
        exporter = PuppetDBExporter(
            client,
            registry=server.registry,
            namespace=config.namespace,
        )
        server.start()
        try:
            with UnifiedLogger.scoped(puppetdb_url=client.base_url):
                log.info(
                    LogEvents.CLI_EXPORTER_STARTED.value,
                    listen_address=config.listen_address,
                    scrape_interval_sec=config.scrape_interval_sec,
                    namespace=config.namespace,
                )
                exporter.scrape(config.scrape_interval_sec, stop_event=stop)
        finally:
            server.stop()
    log.info(LogEvents.CLI_EXPORTER_STOPPED.value)


def _install_signal_handlers(stop: threading.Event) -> None:
    log = UnifiedLogger.get(__name__)

    def _handle(signum: int, _frame: FrameType | None) -> None:
        log.info(LogEvents.CLI_SHUTDOWN_REQUESTED.value, signal=signal.Signals(signum).name)
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


@app.command()
def run(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML configuration file.",
    ),
    puppetdb_url: str | None = typer.Option(
        None, "--puppetdb-url", help="PuppetDB base URL, e.g. https://puppetdb:8081/pdb/query."
    ),
    cert_file: Path | None = typer.Option(None, "--cert-file", help="Client certificate."),
    ca_file: Path | None = typer.Option(None, "--ca-file", help="CA certificate bundle."),
    key_file: Path | None = typer.Option(None, "--key-file", help="Client private key."),
    ssl_verify: bool | None = typer.Option(
        None, "--ssl-verify/--no-ssl-verify", help="Verify the PuppetDB server certificate."
    ),
    listen_address: str | None = typer.Option(
        None, "--listen-address", help="host:port to expose metrics on."
    ),
    scrape_interval: float | None = typer.Option(
        None, "--scrape-interval", help="Seconds between two PuppetDB polls."
    ),
    namespace: str | None = typer.Option(None, "--namespace", help="Metric name prefix."),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level name."),
    log_format: LogFormat | None = typer.Option(None, "--log-format", help="Log renderer."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Shortcut for --log-level DEBUG."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Poll PuppetDB and serve node report status counts."""

    cli_overrides: dict[str, Any] = {
        "puppetdb.url": puppetdb_url,
        "puppetdb.cert_path": cert_file,
        "puppetdb.ca_cert_path": ca_file,
        "puppetdb.key_path": key_file,
        "puppetdb.ssl_verify": ssl_verify,
        "listen_address": listen_address,
        "scrape_interval_sec": scrape_interval,
        "namespace": namespace,
        "logging.level": "DEBUG" if verbose else log_level,
        "logging.format": log_format.value if log_format is not None else None,
    }

    try:
        exporter_config = load_config(config, cli_overrides=cli_overrides)
    except FileNotFoundError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc
    except ConfigurationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc

    UnifiedLogger.configure(
        LogConfig(level=exporter_config.logging.level, format=exporter_config.logging.format)
    )
    log = UnifiedLogger.get(__name__)
    log.debug(
        LogEvents.CONFIG_LOAD_COMPLETED.value,
        config_path=str(config) if config is not None else None,
        log_level=exporter_config.logging.level,
    )

    stop = threading.Event()
    _install_signal_handlers(stop)

    try:
        serve(exporter_config, stop_event=stop)
    except (ConfigurationError, RegistrationError) as exc:
        log.error(LogEvents.CLI_STARTUP_FAILED.value, error=str(exc), error_type=type(exc).__name__)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from exc
    except OSError as exc:
        log.error(LogEvents.CLI_STARTUP_FAILED.value, error=str(exc), error_type=type(exc).__name__)
        typer.echo(f"Error: failed to start metrics server: {exc}", err=True)
        raise typer.Exit(code=EXIT_RUNTIME_ERROR) from exc


def main() -> None:
    """Execute the Typer application."""

    app()
