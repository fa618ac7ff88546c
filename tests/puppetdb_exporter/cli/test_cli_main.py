"""Tests for the Typer command-line interface."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from prometheus_client import CollectorRegistry
from typer.testing import CliRunner

from puppetdb_exporter import __version__
from puppetdb_exporter.cli import main as cli_main
from puppetdb_exporter.config.models import ExporterConfig, PuppetDBOptions
from puppetdb_exporter.core.exceptions import ConfigurationError, RegistrationError
from puppetdb_exporter.core.logger import LogFormat
from puppetdb_exporter.exporter.collector import PuppetDBExporter
from puppetdb_exporter.exporter.server import MetricsServer

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_signal_handlers(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(cli_main, "_install_signal_handlers", lambda stop: None)
    yield
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)


@pytest.fixture
def captured_serve(monkeypatch: pytest.MonkeyPatch) -> list[ExporterConfig]:
    captured: list[ExporterConfig] = []

    def _fake_serve(config: ExporterConfig, **kwargs: Any) -> None:
        captured.append(config)

    monkeypatch.setattr(cli_main, "serve", _fake_serve)
    return captured


@pytest.mark.unit
class TestRunCommand:
    def test_options_reach_configuration(self, captured_serve: list[ExporterConfig]) -> None:
        result = runner.invoke(
            cli_main.app,
            [
                "--puppetdb-url",
                "http://puppetdb.example.com:8080",
                "--no-ssl-verify",
                "--scrape-interval",
                "5",
                "--listen-address",
                "127.0.0.1:9100",
                "--namespace",
                "fleet",
                "--log-format",
                "key_value",
            ],
        )

        assert result.exit_code == 0, result.output
        [config] = captured_serve
        assert config.puppetdb.url == "http://puppetdb.example.com:8080"
        assert config.puppetdb.ssl_verify is False
        assert config.scrape_interval_sec == 5.0
        assert config.listen_address == "127.0.0.1:9100"
        assert config.namespace == "fleet"
        assert config.logging.format is LogFormat.KEY_VALUE

    def test_verbose_switches_to_debug(self, captured_serve: list[ExporterConfig]) -> None:
        result = runner.invoke(cli_main.app, ["--verbose", "--log-level", "ERROR"])

        assert result.exit_code == 0, result.output
        assert captured_serve[0].logging.level == "DEBUG"

    def test_config_file_is_loaded(self, tmp_path: Path, captured_serve: list[ExporterConfig]) -> None:
        config_path = tmp_path / "exporter.yaml"
        config_path.write_text("namespace: from_file\nscrape_interval_sec: 10\n", encoding="utf-8")

        result = runner.invoke(cli_main.app, ["--config", str(config_path), "--scrape-interval", "20"])

        assert result.exit_code == 0, result.output
        assert captured_serve[0].namespace == "from_file"
        assert captured_serve[0].scrape_interval_sec == 20.0

    def test_missing_config_file_exits_with_config_error(self, tmp_path: Path) -> None:
        result = runner.invoke(cli_main.app, ["--config", str(tmp_path / "absent.yaml")])

        assert result.exit_code == cli_main.EXIT_CONFIG_ERROR

    def test_unreadable_config_path_exits_with_config_error(self, tmp_path: Path) -> None:
        result = runner.invoke(cli_main.app, ["--config", str(tmp_path)])

        assert result.exit_code == cli_main.EXIT_CONFIG_ERROR
        assert "Cannot read configuration file" in result.output

    def test_invalid_value_exits_with_config_error(self) -> None:
        result = runner.invoke(cli_main.app, ["--scrape-interval", "0"])

        assert result.exit_code == cli_main.EXIT_CONFIG_ERROR

    def test_invalid_scheme_halts_startup(self) -> None:
        result = runner.invoke(cli_main.app, ["--puppetdb-url", "ftp://puppetdb.example.com"])

        assert result.exit_code == cli_main.EXIT_CONFIG_ERROR
        assert "not a valid http scheme" in result.output

    def test_registration_error_halts_startup(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _fail(config: ExporterConfig, **kwargs: Any) -> None:
            raise RegistrationError("duplicate")

        monkeypatch.setattr(cli_main, "serve", _fail)

        result = runner.invoke(cli_main.app, [])

        assert result.exit_code == cli_main.EXIT_CONFIG_ERROR

    def test_version(self) -> None:
        result = runner.invoke(cli_main.app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


@pytest.mark.unit
class TestServe:
    @pytest.fixture
    def server_calls(self, monkeypatch: pytest.MonkeyPatch) -> list[str]:
        calls: list[str] = []
        monkeypatch.setattr(MetricsServer, "start", lambda self: calls.append("start"))
        monkeypatch.setattr(MetricsServer, "stop", lambda self: calls.append("stop"))
        return calls

    def test_registers_collector_and_stops(
        self, registry: CollectorRegistry, server_calls: list[str]
    ) -> None:
        config = ExporterConfig(puppetdb=PuppetDBOptions(url="http://puppetdb.example.com:8080"))
        stop = threading.Event()
        stop.set()

        cli_main.serve(config, registry=registry, stop_event=stop)

        assert server_calls == ["start", "stop"]
        names = {family.name for family in registry.collect()}
        assert "puppetdb_node_report_status_count" in names

    def test_duplicate_registration(self, registry: CollectorRegistry, server_calls: list[str]) -> None:
        config = ExporterConfig(puppetdb=PuppetDBOptions(url="http://puppetdb.example.com:8080"))
        PuppetDBExporter(object(), registry=registry)  # type: ignore[arg-type]

        with pytest.raises(RegistrationError):
            cli_main.serve(config, registry=registry, stop_event=threading.Event())

        assert server_calls == []

    def test_bad_listen_address(self, registry: CollectorRegistry, server_calls: list[str]) -> None:
        config = ExporterConfig(
            puppetdb=PuppetDBOptions(url="http://puppetdb.example.com:8080"),
            listen_address="nowhere",
        )

        with pytest.raises(ConfigurationError):
            cli_main.serve(config, registry=registry, stop_event=threading.Event())

        assert server_calls == []
