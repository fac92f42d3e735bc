"""Structured logging setup with JSON-lines output for stdlib and structlog loggers."""

from __future__ import annotations

import json
import logging
import math
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, TextIO

import structlog

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_DEFAULT_LOGGER_NAME: Final[str] = "featuremap"

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Configuration for JSON-lines logging."""

    level: int | str = "INFO"
    log_file: Path | str | None = None
    logger_name: str = _DEFAULT_LOGGER_NAME
    stream: TextIO | None = None
    log_to_stream: bool = True


class _JsonLineFormatter(logging.Formatter):
    """Formatter that emits canonical JSON objects per log line."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = _normalize_json_value(extras)

        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            event["stack"] = str(record.stack_info)

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class StructuredLoggingHandle:
    """Runtime handle for an active logging setup."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        handlers: tuple[logging.Handler, ...],
        log_path: Path | None,
    ) -> None:
        self.logger = logger
        self.log_path = log_path
        self._handlers = handlers
        self._is_shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def flush(self) -> None:
        for handler in self._handlers:
            handler.flush()

    def shutdown(self) -> None:
        if self._is_shutdown:
            return
        for handler in self._handlers:
            handler.flush()
            self.logger.removeHandler(handler)
            handler.close()
        self._is_shutdown = True


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    verbose: bool = False,
    stream: TextIO | None = None,
) -> StructuredLoggingHandle:
    """Configure logging from an ``[observability]`` config section.

    ``verbose`` forces ``DEBUG`` regardless of the configured level. An empty
    ``log_file`` disables the file sink.
    """

    cfg = dict(observability_config or {})
    raw_level = cfg.get("log_level", "INFO")
    level: int | str = raw_level if isinstance(raw_level, (int, str)) else "INFO"
    if verbose:
        level = "DEBUG"
    raw_file = cfg.get("log_file")
    log_file = raw_file if isinstance(raw_file, (str, Path)) and str(raw_file) else None

    return setup_structured_logging(LoggingConfig(level=level, log_file=log_file, stream=stream))


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Attach JSON-lines handlers to the package logger and route structlog through it."""

    level = _parse_log_level(config.level)
    formatter = _JsonLineFormatter()

    handlers: list[logging.Handler] = []
    if config.log_to_stream:
        stream_handler = logging.StreamHandler(
            config.stream if config.stream is not None else sys.stderr
        )
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        handlers.append(stream_handler)

    log_path: Path | None = None
    if config.log_file is not None:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logger = logging.getLogger(config.logger_name)
    logger.setLevel(level)
    logger.propagate = False

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    for handler in handlers:
        logger.addHandler(handler)

    _configure_structlog()
    return StructuredLoggingHandle(logger=logger, handlers=tuple(handlers), log_path=log_path)


def _configure_structlog() -> None:
    # Event keyword arguments become LogRecord extras, rendered under "fields".
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS:
            continue
        if key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _normalize_json_value(value: object) -> JSONValue:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value):
            return value
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            normalized = value.replace(tzinfo=UTC)
        else:
            normalized = value.astimezone(UTC)
        return normalized.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): _normalize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    if isinstance(value, (set, frozenset)):
        normalized_items = [_normalize_json_value(item) for item in value]
        return sorted(
            normalized_items,
            key=lambda item: json.dumps(
                item, sort_keys=True, separators=(",", ":"), ensure_ascii=False
            ),
        )
    return repr(value)


__all__ = [
    "JSONScalar",
    "JSONValue",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "setup_logging",
    "setup_structured_logging",
]
