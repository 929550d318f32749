"""Structured leveled logging with JSON and text formatters.

This module provides:

- `JSONFormatter`: one JSON object per line with ``time``, ``level``,
  ``msg``, ``service`` and one nested object per attached `LogObject`
- `TextFormatter`: one ``key=value`` line per event, e.g.
  ``time=2024-05-01T10:00:00.000Z level=INFO msg="Info message" service=api``
- `ServiceLogger`: a per-service logger owned by its caller. Verbosity and
  output format come from ``LOG_LEVEL`` (debug, info, warn, error) and
  ``LOG_HANDLER`` (json, text). Debug and info events can be sampled.
- Log objects (`map_object`, `err_object`, `info_object`, `warn_object`)
  that attach typed properties to an event
- `new_test_logger`: a logger writing to memory with a reader for the
  captured messages
- `LOGGING_CONFIG`: a ``dictConfig`` dictionary routing library loggers
  through the JSON formatter

## Usage

```python
from foundation.logger import ServiceLogger, map_object

log = ServiceLogger("billing")
log.info("invoice sent", map_object("invoice", {"id": "in_123", "amount": 42}))
```
"""

import base64
import io
import json
import logging
import random
import re
import sys
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta
from typing import IO, Any, Protocol, runtime_checkable

import attrs

from foundation.environment import Environment, default_environment
from foundation.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "LOG_LEVEL"
LOG_HANDLER_ENV = "LOG_HANDLER"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_LOG_HANDLER = "json"

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}
LOG_HANDLERS: frozenset[str] = frozenset({"json", "text"})

_LEVEL_NAMES: dict[int, str] = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}

# LogRecord attributes that are never rendered as extra fields
_STANDARD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "asctime",
        "service",
        "log_objects",
    }
)

_NEEDS_QUOTING = re.compile(r'[\s"=\\]|[^\x20-\x7e]')

LogValue = str | int | float | bool | datetime | timedelta | bytes | None


# =============================================================================
# Log Objects
# =============================================================================


@runtime_checkable
class LogObject(Protocol):
    """An object that can be attached to a log event.

    ``log_name`` becomes the key of the nested object and
    ``log_properties()`` its fields.
    """

    @property
    def log_name(self) -> str: ...

    def log_properties(self) -> Mapping[str, LogValue]: ...


@attrs.define(frozen=True, slots=True)
class MapObject:
    """`LogObject` wrapping a plain mapping."""

    name: str
    fields: Mapping[str, LogValue] = attrs.field(factory=dict)

    @property
    def log_name(self) -> str:
        return self.name

    def log_properties(self) -> Mapping[str, LogValue]:
        return self.fields


def map_object(name: str, data: Mapping[str, LogValue]) -> MapObject:
    """Wrap ``data`` as a log object named ``name``."""
    return MapObject(name=name, fields=dict(data))


def err_object(exc: BaseException | None) -> MapObject:
    """Log object named ``errorMsg`` carrying the error text."""
    return MapObject(name="errorMsg", fields={"error": str(exc) if exc is not None else "empty error"})


def info_object(msg: str) -> MapObject:
    """Log object named ``infoMsg`` carrying an informational message."""
    return MapObject(name="infoMsg", fields={"msg": msg})


def warn_object(exc: BaseException | None) -> MapObject:
    """Log object named ``warnMsg`` carrying the warning text."""
    return MapObject(name="warnMsg", fields={"error": str(exc) if exc is not None else "empty error"})


def render_value(value: LogValue) -> Any:
    """Convert a property value into its JSON representation.

    Returns None for zero values (empty string or bytes, 0, zero duration,
    None), which are left out of the output. Booleans are always kept.

    Raises:
        TypeError: If the value is not one of the supported property types.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value if value != 0 else None
    if isinstance(value, str):
        return value or None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds() if value else None
    if isinstance(value, bytes | bytearray):
        return base64.b64encode(bytes(value)).decode("ascii") if value else None

    msg = f"unsupported log property type: {type(value).__name__}"
    raise TypeError(msg)


def render_properties(properties: Mapping[str, LogValue]) -> dict[str, Any]:
    """Render every property of a log object, dropping zero values."""
    rendered: dict[str, Any] = {}
    for key, value in properties.items():
        converted = render_value(value)
        if converted is not None:
            rendered[key] = converted
    return rendered


# =============================================================================
# Formatters
# =============================================================================


def format_timestamp(created: float) -> str:
    """Format an epoch timestamp as local ISO-8601 with millisecond precision.

    UTC timestamps use the ``Z`` suffix.
    """
    dt = datetime.fromtimestamp(created).astimezone()
    text = dt.isoformat(timespec="milliseconds")
    if dt.utcoffset() == timedelta(0):
        return text.replace("+00:00", "Z")
    return text


def level_name(levelno: int) -> str:
    """Return the display name of a level (``WARN`` rather than ``WARNING``)."""
    return _LEVEL_NAMES.get(levelno, logging.getLevelName(levelno))


def _extra_attributes(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Each record becomes one JSON object:
    - ``time``, ``level``, ``msg``: always present
    - ``service``: when the record carries one (`ServiceLogger` records do)
    - one nested object per attached log object
    - every other attribute passed through ``extra=``
    - ``error`` with the formatted traceback when ``exc_info`` is set
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON line.

        Args:
            record: The log record to format.

        Returns:
            JSON string representation of the log record.
        """
        return json.dumps(self.get_log(record), default=str)

    def get_log(self, record: logging.LogRecord) -> dict[str, Any]:
        """Extract log data from record into a dictionary.

        Args:
            record: The log record to extract data from.

        Returns:
            Dictionary containing log data.
        """
        core: dict[str, Any] = {
            "time": format_timestamp(record.created),
            "level": level_name(record.levelno),
            "msg": record.getMessage(),
        }

        service = getattr(record, "service", None)
        if service is not None:
            core["service"] = service

        d = dict(core)
        log_objects = getattr(record, "log_objects", None)
        if isinstance(log_objects, dict):
            d.update(log_objects)

        d.update(_extra_attributes(record))
        # Core keys always win over log objects and extras of the same name
        d.update(core)

        if record.exc_info:
            d["error"] = self.formatException(record.exc_info)

        return d


def _quote(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    text = value if isinstance(value, str) else str(value)
    if text == "" or _NEEDS_QUOTING.search(text):
        return json.dumps(text)
    return text


class TextFormatter(logging.Formatter):
    """Text formatter writing one ``key=value`` line per record.

    Values are quoted when they are empty or contain spaces, quotes, ``=``
    or non printable characters. Log object properties are flattened as
    ``<object>.<key>=<value>``.
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"time={format_timestamp(record.created)}",
            f"level={level_name(record.levelno)}",
            f"msg={_quote(record.getMessage())}",
        ]

        service = getattr(record, "service", None)
        if service is not None:
            parts.append(f"service={_quote(service)}")

        log_objects = getattr(record, "log_objects", None)
        if isinstance(log_objects, dict):
            for name, properties in log_objects.items():
                for key, value in properties.items():
                    parts.append(f"{name}.{key}={_quote(value)}")

        for key, value in _extra_attributes(record).items():
            parts.append(f"{key}={_quote(value)}")

        if record.exc_info:
            parts.append(f"error={_quote(self.formatException(record.exc_info))}")

        return " ".join(parts)


def create_formatter(handler: str) -> logging.Formatter:
    """Return the formatter for a handler name (``json`` or ``text``)."""
    if handler == "text":
        return TextFormatter()
    return JSONFormatter()


# =============================================================================
# Service Logger
# =============================================================================


def resolve_log_level(value: str | None) -> str:
    """Validate a level name, falling back to ``info``."""
    if value is None or value == "":
        return DEFAULT_LOG_LEVEL
    if value not in LOG_LEVELS:
        logger.warning("invalid LOG_LEVEL env: %s, using info level default", value)
        return DEFAULT_LOG_LEVEL
    return value


def resolve_log_handler(value: str | None) -> str:
    """Validate a handler name, falling back to ``json``."""
    if value is None or value == "":
        return DEFAULT_LOG_HANDLER
    if value not in LOG_HANDLERS:
        logger.warning("invalid LOG_HANDLER env: %s, using json default", value)
        return DEFAULT_LOG_HANDLER
    return value


class ServiceLogger:
    """Leveled structured logger bound to one service.

    Each instance owns a private `logging.Logger` (not registered in the
    logging manager) with a single stream handler, so two services in the
    same process never share state. The handler lock serializes writes.

    Attributes:
        service: Service name added to every event.
        sample_rate: Probability in [0, 1] that a debug or info event is
            written. Warn and error events are always written.

    Args:
        service: Service name. Must not be empty.
        level: Level name. When None, read from ``LOG_LEVEL``.
        handler: ``json`` or ``text``. When None, read from ``LOG_HANDLER``.
        sample_rate: Sampling probability for debug and info events.
        stream: Output stream (default: ``sys.stderr``).
        environment: Environment used for ``LOG_LEVEL``/``LOG_HANDLER``.
        rng: Random source used for sampling.

    Raises:
        ConfigurationError: If the service name is empty or the sample rate
            is outside [0, 1].
    """

    def __init__(
        self,
        service: str,
        level: str | None = None,
        handler: str | None = None,
        sample_rate: float = 1.0,
        stream: IO[str] | None = None,
        environment: Environment | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if not service:
            raise ConfigurationError("logger error: service name is required")
        if not 0.0 <= sample_rate <= 1.0:
            msg = f"logger error: sample rate must be within [0, 1], got {sample_rate}"
            raise ConfigurationError(msg)

        env = environment or default_environment()
        self.service = service
        self.sample_rate = sample_rate
        self._level = resolve_log_level(level if level is not None else env.get_string(LOG_LEVEL_ENV, ""))
        self._handler_name = resolve_log_handler(
            handler if handler is not None else env.get_string(LOG_HANDLER_ENV, "")
        )
        self._rng = rng or random.Random()

        self._handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        self._handler.setFormatter(create_formatter(self._handler_name))

        self._logger = logging.Logger(service, level=LOG_LEVELS[self._level])
        self._logger.propagate = False
        self._logger.addHandler(self._handler)

    @property
    def log_level(self) -> str:
        """Return the configured level name."""
        return self._level

    @property
    def handler(self) -> str:
        """Return the configured output format (``json`` or ``text``)."""
        return self._handler_name

    def is_enabled_for(self, level: str) -> bool:
        return self._logger.isEnabledFor(LOG_LEVELS[level])

    def _sampled(self, levelno: int) -> bool:
        if levelno >= logging.WARNING or self.sample_rate >= 1.0:
            return True
        return self._rng.random() < self.sample_rate

    def _log(self, levelno: int, msg: str, objects: tuple[LogObject, ...]) -> None:
        if not self._logger.isEnabledFor(levelno) or not self._sampled(levelno):
            return
        rendered = {obj.log_name: render_properties(obj.log_properties()) for obj in objects}
        self._logger.log(levelno, msg, extra={"service": self.service, "log_objects": rendered})

    def debug(self, msg: str, *objects: LogObject) -> None:
        self._log(logging.DEBUG, msg, objects)

    def info(self, msg: str, *objects: LogObject) -> None:
        self._log(logging.INFO, msg, objects)

    def warn(self, msg: str, *objects: LogObject) -> None:
        self._log(logging.WARNING, msg, objects)

    def error(self, msg: str, *objects: LogObject) -> None:
        self._log(logging.ERROR, msg, objects)

    def fatal(self, msg: str, *objects: LogObject) -> None:
        """Log at error level, then exit the process with status 1.

        Raises:
            SystemExit: Always, with code 1.
        """
        self._log(logging.ERROR, msg, objects)
        self._handler.flush()
        raise SystemExit(1)

    def close(self) -> None:
        """Detach and close the stream handler (the stream itself stays open)."""
        self._logger.removeHandler(self._handler)
        self._handler.close()


_TEXT_MSG = re.compile(r'(?:^|\s)msg=("(?:[^"\\]|\\.)*"|\S*)')


def _extract_msg(line: str) -> str | None:
    if line.startswith("{"):
        try:
            return json.loads(line).get("msg")
        except json.JSONDecodeError:
            return None
    match = _TEXT_MSG.search(line)
    if match is None:
        return None
    value = match.group(1)
    return json.loads(value) if value.startswith('"') else value


def new_test_logger(
    service: str = "test-service",
    level: str | None = None,
    handler: str | None = None,
    environment: Environment | None = None,
) -> tuple[ServiceLogger, Callable[[], list[str]], Callable[[], None]]:
    """Create a logger writing to memory.

    Returns:
        Tuple of (logger, read_output, cleanup). ``read_output()`` returns
        the ``msg`` of every line written so far; ``cleanup()`` closes the
        logger and its buffer.
    """
    buffer = io.StringIO()
    test_logger = ServiceLogger(service, level=level, handler=handler, stream=buffer, environment=environment)

    def read_output() -> list[str]:
        messages = []
        for line in buffer.getvalue().splitlines():
            msg = _extract_msg(line)
            if msg is not None:
                messages.append(msg)
        return messages

    def cleanup() -> None:
        test_logger.close()
        buffer.close()

    return test_logger, read_output, cleanup


# =============================================================================
# Library Logging Configuration
# =============================================================================

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,  # Keep existing loggers, just configure them
    "formatters": {
        "json": {"()": JSONFormatter},
        "text": {"()": TextFormatter},
    },
    "handlers": {
        "default": {
            "formatter": "json",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "clients": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "foundation": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["default"],
        "level": "INFO",
    },
}


def build_logging_config(environment: Environment | None = None) -> dict[str, Any]:
    """Return `LOGGING_CONFIG` adjusted to ``LOG_LEVEL`` and ``LOG_HANDLER``."""
    env = environment or default_environment()
    level = LOG_LEVELS[resolve_log_level(env.get_string(LOG_LEVEL_ENV, ""))]
    handler = resolve_log_handler(env.get_string(LOG_HANDLER_ENV, ""))

    level_label = logging.getLevelName(level)
    config: dict[str, Any] = {
        **LOGGING_CONFIG,
        "handlers": {"default": {**LOGGING_CONFIG["handlers"]["default"], "formatter": handler}},
        "loggers": {
            name: {**settings, "level": level_label} for name, settings in LOGGING_CONFIG["loggers"].items()
        },
        "root": {**LOGGING_CONFIG["root"], "level": level_label},
    }
    return config
