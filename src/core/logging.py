"""Structured logging configuration (structlog)."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

import structlog


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    """Configure stdlib logging and structlog once at startup.

    Logs go to stderr: stdout carries the MCP stdio transport.
    """
    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "json":
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))
        processors.insert(0, structlog.stdlib.add_logger_name)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.insert(0, structlog.processors.TimeStamper(fmt="%H:%M:%S"))
        processors.append(structlog.dev.ConsoleRenderer(colors=False, pad_event=30))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_cache_operation(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    key: str,
    hit: Optional[bool] = None,
    **kwargs: Any,
) -> None:
    """Emit a debug line for a cache operation."""
    log_data: dict[str, Any] = {"operation": operation, "cache_key": key, **kwargs}
    if hit is not None:
        log_data["cache_hit"] = hit
    logger.debug("cache_operation", **log_data)
