"""
Structured logging configuration using structlog.

structlog events (fetch and skip diagnostics carrying source_url and
reason) and plain stdlib records from libraries such as httpx are both
rendered by one ProcessorFormatter on stderr: JSON lines in production,
colored console output otherwise. stdout is left to the CLI summary.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from user_aggregator.config.settings import get_settings

HANDLER_NAME = "user_aggregator"


def _shared_processors() -> list[Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def build_formatter(production: bool) -> structlog.stdlib.ProcessorFormatter:
    """
    Build the formatter that renders every record reaching the root logger.

    Args:
        production: Render JSON lines instead of console output
    """
    if production:
        renderer: Processor = structlog.processors.JSONRenderer()
        final: list[Processor] = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
        final = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=final,
    )


def setup_logging() -> None:
    """
    Configure structured logging for the application.

    Safe to call more than once: the handler installed by a previous call
    is replaced rather than duplicated.

    Usage:
        setup_logging()
        logger = structlog.get_logger()
        logger.warning("Skipping source", source_url=url, reason="HTTP 500")
    """
    settings = get_settings()

    structlog.configure(
        processors=_shared_processors() + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(build_formatter(settings.is_production))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level))

    # Set log levels for noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (defaults to module name)

    Returns:
        Bound logger instance
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """
    Bind context variables to all subsequent log messages.

    Args:
        **kwargs: Key-value pairs to bind
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
