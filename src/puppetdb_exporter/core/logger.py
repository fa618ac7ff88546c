"""Structured logging for the exporter.

Modules obtain their loggers through :class:`UnifiedLogger`; the CLI calls
:meth:`UnifiedLogger.configure` once the configuration has been loaded.
Lines are rendered as JSON by default so log shippers running next to the
exporter can forward them untouched. ``key_value`` reads better in a terminal.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, MutableMapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final, TextIO

import structlog
from structlog.contextvars import bind_contextvars, reset_contextvars
from structlog.stdlib import BoundLogger

__all__ = [
    "LogConfig",
    "LogFormat",
    "REDACTED",
    "UnifiedLogger",
    "configure_logging",
]

REDACTED: Final[str] = "***REDACTED***"

_ROOT_LOGGER_NAME: Final[str] = "puppetdb_exporter"
_KEY_VALUE_ORDER: Final[Sequence[str]] = ("timestamp", "level", "component", "message")


class LogFormat(str, Enum):
    """Renderers selectable through ``logging.format``."""

    JSON = "json"
    KEY_VALUE = "key_value"


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Resolved logging settings handed to :func:`configure_logging`."""

    level: int | str = logging.INFO
    format: LogFormat = LogFormat.JSON
    redact_fields: Sequence[str] = ("key_path", "password", "private_key")

    def numeric_level(self) -> int:
        if isinstance(self.level, int):
            return self.level
        level = logging.getLevelNamesMapping().get(self.level.upper())
        if level is None:
            raise ValueError(f"Unsupported log level: {self.level}")
        return level


class _Redactor:
    """Replace the value of sensitive keys before an event is rendered."""

    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = frozenset(fields)

    def __call__(
        self,
        _logger: Any,
        _method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key in self.fields.intersection(event_dict):
            event_dict[key] = REDACTED
        return event_dict


def _renderer(log_format: LogFormat) -> Any:
    if log_format is LogFormat.KEY_VALUE:
        return structlog.processors.KeyValueRenderer(
            key_order=_KEY_VALUE_ORDER,
            drop_missing=True,
        )
    return structlog.processors.JSONRenderer(sort_keys=True, ensure_ascii=False)


def configure_logging(config: LogConfig | None = None, *, stream: TextIO | None = None) -> None:
    """Route structlog and stdlib records through one handler on ``stream``.

    ``stream`` defaults to ``sys.stderr``. A second call replaces the handler
    installed by the first one.

    Raises
    ------
    ValueError
        If ``config.level`` is not a known level name.
    """

    cfg = config or LogConfig()
    level = cfg.numeric_level()
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.EventRenamer("message"),
        _Redactor(cfg.redact_fields),
        structlog.processors.format_exc_info,
    ]

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(LogFormat(cfg.format)),
            ],
        )
    )
    logging.basicConfig(handlers=[handler], level=level, force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class UnifiedLogger:
    """Facade the exporter modules log through."""

    @staticmethod
    def configure(config: LogConfig | None = None, *, stream: TextIO | None = None) -> None:
        configure_logging(config, stream=stream)

    @staticmethod
    def get(name: str | None = None) -> BoundLogger:
        """Return a lazily configured logger named ``name``."""

        return structlog.stdlib.get_logger(name or _ROOT_LOGGER_NAME)

    @staticmethod
    @contextmanager
    def scoped(**context: Any) -> Iterator[None]:
        """Attach ``context`` to every event logged inside the ``with`` block.

        Values bound by an enclosing scope under the same keys are restored on
        exit. The context is local to the current thread.
        """

        tokens = bind_contextvars(**context)
        try:
            yield
        finally:
            reset_contextvars(**tokens)
