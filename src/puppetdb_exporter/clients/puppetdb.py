"""HTTP client for the PuppetDB query API."""

from __future__ import annotations

import ssl
from types import TracebackType
from urllib.parse import urlsplit

import requests
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from puppetdb_exporter import __version__
from puppetdb_exporter.config.models import PuppetDBOptions
from puppetdb_exporter.core.exceptions import (
    ConfigurationError,
    DecodeError,
    HTTPStatusError,
    NetworkError,
)
from puppetdb_exporter.core.log_events import LogEvents
from puppetdb_exporter.core.logger import UnifiedLogger

__all__ = ["Node", "PuppetDBClient", "UNKNOWN_STATUS"]

UNKNOWN_STATUS = "unknown"
"""Status reported for nodes whose ``latest_report_status`` is null."""

_VALID_SCHEMES = frozenset({"http", "https"})

logger = UnifiedLogger.get(__name__)


class Node(BaseModel):
    """A node record returned by ``/v4/nodes``; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    certname: str
    latest_report_status: str = UNKNOWN_STATUS

    @field_validator("latest_report_status", mode="before")
    @classmethod
    def _null_status_is_unknown(cls, value: object) -> object:
        """Nodes that never reported carry a null status."""
        if value is None:
            return UNKNOWN_STATUS
        return value


_NODE_LIST = TypeAdapter(list[Node])


class PuppetDBClient:
    """Thin wrapper around one PuppetDB base URL and its transport settings.

    The constructor validates the URL and, for ``https``, the client
    certificate, private key and CA bundle. No connection is opened until
    :meth:`nodes` is called.

    Parameters
    ----------
    options:
        Connection options; they are not modified after construction.
    session:
        Optional pre-built :class:`requests.Session`. A new one is created
        when omitted.

    Raises
    ------
    ConfigurationError
        If the URL scheme is not ``http``/``https`` or the TLS material cannot
        be read or parsed.
    """

    def __init__(
        self,
        options: PuppetDBOptions,
        *,
        session: requests.Session | None = None,
    ) -> None:
        parsed = urlsplit(options.url)
        scheme = parsed.scheme.lower()
        if scheme not in _VALID_SCHEMES:
            msg = f"{scheme or options.url!r} is not a valid http scheme"
            raise ConfigurationError(msg)
        if not parsed.netloc:
            msg = f"PuppetDB URL has no host: {options.url!r}"
            raise ConfigurationError(msg)

        if scheme == "https":
            _validate_tls_material(options)

        self.options = options
        self.base_url = options.url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Accept": "application/json", "User-Agent": f"puppetdb-exporter/{__version__}"}
        )

        if scheme == "https":
            self.session.cert = (str(options.cert_path), str(options.key_path))
            self.session.verify = str(options.ca_cert_path) if options.ssl_verify else False
            logger.info(
                LogEvents.CLIENT_TLS_CONFIGURED.value,
                base_url=self.base_url,
                cert_path=str(options.cert_path),
                ca_cert_path=str(options.ca_cert_path),
                ssl_verify=options.ssl_verify,
            )

    def __enter__(self) -> PuppetDBClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release pooled connections held by the session."""

        self.session.close()

    def nodes(self) -> list[Node]:
        """Return every node known to PuppetDB, in API order.

        Raises
        ------
        NetworkError
            On transport failures (DNS, refused connection, TLS, timeout).
        HTTPStatusError
            When PuppetDB answers with a non-2xx status.
        DecodeError
            When the body is not a JSON array of node objects.
        """

        payload = self._get("nodes")
        try:
            nodes = _NODE_LIST.validate_python(payload)
        except ValidationError as exc:
            msg = f"failed to decode nodes: {exc}"
            raise DecodeError(msg, url=self._url_for("nodes")) from exc
        logger.debug(LogEvents.CLIENT_NODES_FETCHED.value, base_url=self.base_url, count=len(nodes))
        return nodes

    def _url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/v4/{endpoint}"

    def _get(self, endpoint: str) -> object:
        url = self._url_for(endpoint)
        try:
            response = self.session.get(url, timeout=self.options.timeout_sec)
        except requests.exceptions.RequestException as exc:
            logger.debug(LogEvents.CLIENT_REQUEST_FAILED.value, url=url, error=str(exc))
            msg = f"failed to call API: {exc}"
            raise NetworkError(msg, url=url) from exc

        if not 200 <= response.status_code < 300:
            msg = f"PuppetDB returned HTTP {response.status_code} for {url}"
            raise HTTPStatusError(msg, url=url, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            msg = f"failed to unmarshal response from {url}: {exc}"
            raise DecodeError(msg, url=url) from exc


def _validate_tls_material(options: PuppetDBOptions) -> None:
    """Load the client identity and CA bundle, failing early on bad files."""

    missing = [
        name
        for name, value in (
            ("cert_path", options.cert_path),
            ("key_path", options.key_path),
            ("ca_cert_path", options.ca_cert_path),
        )
        if value is None
    ]
    if missing:
        msg = f"https requires {', '.join(missing)} to be set"
        raise ConfigurationError(msg)

    context = ssl.create_default_context()
    try:
        context.load_cert_chain(certfile=str(options.cert_path), keyfile=str(options.key_path))
    except OSError as exc:
        msg = f"failed to load keypair: {exc}"
        raise ConfigurationError(msg) from exc
    try:
        context.load_verify_locations(cafile=str(options.ca_cert_path))
    except OSError as exc:
        msg = f"failed to load ca certificate: {exc}"
        raise ConfigurationError(msg) from exc
