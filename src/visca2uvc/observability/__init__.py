"""Observability module for visca2uvc.

Provides structured logging for device-control operations.

Example:
    from visca2uvc.observability import get_logger, LogContext

    logger = get_logger(__name__)

    with LogContext(command="get_zoom_rel"):
        logger.debug("Querying relative zoom", request="MIN")
"""

from visca2uvc.observability.logging import (
    JSONFormatter,
    LogContext,
    StructuredFormatter,
    StructuredLogger,
    configure_logging,
    get_logger,
    reset_logging,
)

__all__ = [
    "JSONFormatter",
    "LogContext",
    "StructuredFormatter",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "reset_logging",
]
