"""Opinionated JSON logging configuration for MCP servers."""

import logging
import sys
from typing import Any, Optional

import structlog


def configure_logging(
    level: str = "INFO",
    service_name: Optional[str] = None,
    structured: bool = True,
) -> None:
    """Configure logging for MCP servers.

    Everything is written to stderr: stdio servers own stdout for the protocol.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        service_name: Name of the service, bound to every structured event
        structured: Whether to render events as JSON (otherwise key=value console output)
    """
    log_level = getattr(logging, str(level).upper(), logging.INFO)

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if structured:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.handlers[:] = [handler]
    root.setLevel(log_level)

    # Keep the SDK's own loggers on the same level; httpx request lines only on DEBUG
    for name in ("mcp", "mcp.server", "uvicorn", "uvicorn.error"):
        logging.getLogger(name).setLevel(log_level)
    logging.getLogger("httpx").setLevel(logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING)

    if service_name:
        structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str, **context: Any) -> Any:
    """Get a structlog logger with optional bound context.

    Args:
        name: Logger name
        **context: Additional context to bind to the logger

    Returns:
        Bound structlog logger
    """
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger
