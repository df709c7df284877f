"""Structured logging for visca2uvc.

Builds on Python's standard logging module with:
- Structured data support (key-value pairs in logs)
- JSON formatting option for machine-readable output
- Context management for per-command tracking

Command results go to stdout; everything emitted here goes to stderr by
default so the two never interleave in a pipe.

Example:
    logger = get_logger(__name__)

    # Simple logging
    logger.info("Context created")

    # Structured logging with keyword arguments
    logger.error("Control request failed", operation="get_zoom_abs", code=-9)

    # Context manager adds fields to every record in scope
    with LogContext(command="get_zoom_abs"):
        logger.debug("Querying zoom range")

    # JSON lines instead of key=value text
    configure_logging(json_format=True)
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import threading
from collections.abc import MutableMapping
from datetime import UTC, datetime
from typing import Any, TextIO, cast

ROOT_LOGGER_NAME = "visca2uvc"

# Fields added by LogContext; merged under explicit keyword arguments.
_log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "log_context", default={}
)


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger(logging.Logger):
    """Logger accepting keyword arguments as structured fields.

    The standard ``debug()``/``info()``/... methods forward unknown keyword
    arguments to ``_log``; this override collects them, merges the active
    LogContext underneath, and stores the result on the record as
    ``structured_data`` for the formatters.

    Field names must not collide with the parameters of ``Logger._log``
    (msg, args, level, exc_info, extra, stack_info, stacklevel); the
    standard methods bind those before this override runs.

    Usage:
        logger = get_logger("visca2uvc.devices.camera")
        logger.debug("Device opened", vendor_id=0x046D)
    """

    def _log(
        self,
        level: int,
        msg: object,
        args: tuple[Any, ...] | MutableMapping[str, Any] | None = None,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **kwargs: Any,
    ) -> None:
        """Log a message, turning extra keyword arguments into fields.

        Merge order is LogContext values < explicit kwargs, so a call site
        can override an ambient field.

        Args:
            level: Numeric log level.
            msg: Log message, may contain % placeholders.
            args: Arguments for % formatting.
            exc_info: Exception info, passed through.
            extra: Additional LogRecord attributes. ``structured_data`` is
                overwritten.
            stack_info: If True, include stack trace in log.
            stacklevel: Stack frames to skip for caller attribution.
            **kwargs: Structured fields (operation, code, command, ...).
        """
        structured_data = {**_log_context.get(), **kwargs}
        if extra is None:
            extra = {}
        extra["structured_data"] = structured_data

        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


# =============================================================================
# Formatters
# =============================================================================


class StructuredFormatter(logging.Formatter):
    """Human-readable formatter with structured data.

    Format: timestamp - name - level - message | key=value key=value
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        include_structured: bool = True,
    ) -> None:
        """Initialize the formatter.

        Args:
            fmt: Base format string. Defaults to
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'.
            datefmt: Date format for %(asctime)s.
            include_structured: Append ' | key=value ...' when the record
                carries structured fields.
        """
        if fmt is None:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt, datefmt)
        self.include_structured = include_structured

    def format(self, record: logging.LogRecord) -> str:
        """Format the record and append its structured fields.

        Args:
            record: Record to format. A missing ``structured_data``
                attribute is treated as empty.

        Returns:
            Formatted line, e.g.
            '... - ERROR - Control request failed | operation=open code=-3'.
        """
        base = super().format(record)
        if not self.include_structured:
            return base

        structured = getattr(record, "structured_data", {})
        if not structured:
            return base

        pairs = " ".join(f"{k}={_format_value(v)}" for k, v in structured.items())
        return f"{base} | {pairs}"


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, fields."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as a single-line JSON object.

        Structured fields are merged at top level. Values that are not
        JSON-serializable fall back to ``str()``.

        Args:
            record: Record to format.

        Returns:
            JSON string without trailing newline.

        Example:
            >>> json.loads(JSONFormatter().format(record))["operation"]
            'set_zoom_abs'
        """
        log_dict: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_dict.update(getattr(record, "structured_data", {}))

        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_dict, default=str)


def _format_value(value: Any) -> str:
    """Render a structured value for key=value output.

    None becomes 'null', strings with spaces are quoted, dicts and lists
    are JSON, ints are shown in decimal.

    Example:
        >>> _format_value("Access denied")
        '"Access denied"'
        >>> _format_value(None)
        'null'
    """
    if value is None:
        return "null"
    if isinstance(value, str):
        if " " in value:
            return f'"{value}"'
        return value
    if isinstance(value, dict | list):
        return json.dumps(value, default=str)
    return str(value)


# =============================================================================
# Context Management
# =============================================================================


class LogContext:
    """Context manager adding fields to all log records in its scope.

    Nesting merges fields; inner values win. Backed by contextvars.

    Usage:
        with LogContext(command="set_zoom_rel"):
            logger.info("Setting relative zoom")  # includes command=...
    """

    def __init__(self, **kwargs: Any) -> None:
        self._kwargs = kwargs
        self._token: contextvars.Token[dict[str, Any]] | None = None

    def __repr__(self) -> str:
        return f"LogContext({self._kwargs!r})"

    def __enter__(self) -> LogContext:
        current = _log_context.get()
        self._token = _log_context.set({**current, **self._kwargs})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


# =============================================================================
# Configuration
# =============================================================================

_configured = False
_config_lock = threading.Lock()
# Handler installed by configure_logging(); the only one reset removes.
_handler: logging.Handler | None = None


def configure_logging(
    level: int | str = logging.WARNING,
    json_format: bool = False,
    stream: TextIO | None = None,
    include_structured: bool = True,
    force: bool = False,
) -> None:
    """Configure the visca2uvc logging system.

    Attaches one handler to the ``visca2uvc`` logger. Idempotent: later
    calls have no effect unless ``force=True``. Lock-protected.

    Args:
        level: Minimum level, int or name ('DEBUG', 'info', ...).
        json_format: Use JSONFormatter instead of StructuredFormatter.
        stream: Output stream. Default: sys.stderr.
        include_structured: Append key=value fields in text mode.
        force: Drop the existing handler and reconfigure.

    Example:
        >>> configure_logging(level="DEBUG", stream=io.StringIO(), force=True)
    """
    with _config_lock:
        if force:
            _reset_logging_impl()
        _configure_logging_impl(level, json_format, stream, include_structured)


def _configure_logging_impl(
    level: int | str = logging.WARNING,
    json_format: bool = False,
    stream: TextIO | None = None,
    include_structured: bool = True,
) -> None:
    """Internal implementation of configure_logging (assumes lock is held)."""
    global _configured, _handler

    if _configured:
        return

    logging.setLoggerClass(StructuredLogger)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = StructuredFormatter(include_structured=include_structured)
    handler.setFormatter(formatter)

    if isinstance(level, str):
        level = level.upper()

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.addHandler(handler)
    root.propagate = False

    _handler = handler
    _configured = True


def _reset_logging_impl() -> None:
    """Internal implementation of reset_logging (assumes lock is held).

    Handlers attached by anything else (test log capture, embedding
    applications) are left in place.
    """
    global _configured, _handler

    if _handler is not None:
        logging.getLogger(ROOT_LOGGER_NAME).removeHandler(_handler)
        _handler.close()
        _handler = None

    _configured = False


def reset_logging() -> None:
    """Return logging to the unconfigured state. Used by tests."""
    with _config_lock:
        _reset_logging_impl()


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger, configuring defaults on first use.

    Args:
        name: Logger name, normally ``__name__``.

    Returns:
        StructuredLogger accepting keyword fields.

    Example:
        >>> logger = get_logger("visca2uvc.commands")
        >>> logger.warning("Unknown command", command="frobnicate")
    """
    if not _configured:
        with _config_lock:
            if not _configured:  # pragma: no branch
                _configure_logging_impl()

    # Loggers created before setLoggerClass() stay plain Logger instances;
    # module-level loggers are created after the first call, so the cast
    # holds for everything under the visca2uvc namespace.
    return cast(StructuredLogger, logging.getLogger(name))
