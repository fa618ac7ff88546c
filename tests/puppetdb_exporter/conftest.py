"""Shared pytest fixtures for exporter tests."""

from __future__ import annotations

import io
import logging
import shutil
import subprocess
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from prometheus_client import CollectorRegistry
from structlog.contextvars import clear_contextvars

from puppetdb_exporter.config.environment import EnvironmentSettings
from puppetdb_exporter.config.models import PuppetDBOptions

PUPPETDB_URL = "http://puppetdb.example.com:8080/pdb/query"
NODES_URL = f"{PUPPETDB_URL}/v4/nodes"

_ENV_VARS = (
    "PUPPETDB_URL",
    "PUPPETDB_CERT_FILE",
    "PUPPETDB_CA_FILE",
    "PUPPETDB_KEY_FILE",
    "PUPPETDB_SSL_VERIFY",
    "PUPPETDB_TIMEOUT",
    "PUPPETDB_EXPORTER_LISTEN_ADDRESS",
    "PUPPETDB_EXPORTER_SCRAPE_INTERVAL",
    "PUPPETDB_EXPORTER_NAMESPACE",
    "PUPPETDB_EXPORTER_LOG_LEVEL",
    "PUPPETDB_EXPORTER_LOG_FORMAT",
)


@dataclass(frozen=True)
class TLSMaterial:
    cert_path: Path
    key_path: Path
    ca_cert_path: Path


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep host ``PUPPETDB_*`` variables and ``.env`` files out of the tests."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def registry() -> CollectorRegistry:
    """Fresh registry so that every test registers its own metric families."""

    return CollectorRegistry()


@pytest.fixture
def http_options() -> PuppetDBOptions:
    return PuppetDBOptions(url=PUPPETDB_URL, timeout_sec=2.0)


@pytest.fixture
def empty_env_settings() -> EnvironmentSettings:
    return EnvironmentSettings(_env_file=None)


@pytest.fixture(scope="session")
def tls_material(tmp_path_factory: pytest.TempPathFactory) -> TLSMaterial:
    """Self-signed certificate and key, the certificate doubles as CA bundle."""

    openssl = shutil.which("openssl")
    if openssl is None:
        pytest.skip("openssl binary not available")
    directory = tmp_path_factory.mktemp("tls")
    cert_path = directory / "client.pem"
    key_path = directory / "client.key"
    command: list[Any] = [
        openssl,
        "req",
        "-x509",
        "-newkey",
        "rsa:2048",
        "-nodes",
        "-keyout",
        str(key_path),
        "-out",
        str(cert_path),
        "-days",
        "1",
        "-subj",
        "/CN=puppetdb-exporter-test",
    ]
    subprocess.run(command, check=True, capture_output=True)
    return TLSMaterial(cert_path=cert_path, key_path=key_path, ca_cert_path=cert_path)


@pytest.fixture
def nodes_url() -> str:
    """URL the client requests for ``http_options``."""

    return NODES_URL


@pytest.fixture
def log_stream() -> Iterator[io.StringIO]:
    """Buffer the configured logger writes to; logging is muted afterwards."""

    stream = io.StringIO()
    yield stream
    clear_contextvars()
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)
