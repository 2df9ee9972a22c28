"""
Structured Logging
==================
structlog integration for workflow audit events.

Usage:
    from rostering.utils.structured_logging import get_structured_logger

    log = get_structured_logger("rostering.audit")
    log.info("bid_approved", bid_id="b1", shift_id="s1", employee_id="e1")
"""
import logging
from typing import Any

import structlog
import structlog.contextvars


def configure_structlog(json_output: bool = False, level: int = logging.INFO) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: If True, output JSON lines (for production).
                    If False, use colored console output (for development).
        level: Minimum level passed through the filtering logger.
    """
    if json_output:
        renderer = structlog.processors.JSONRenderer()
        timestamper = structlog.processors.TimeStamper(fmt="iso")
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
        timestamper = structlog.processors.TimeStamper(fmt="%H:%M:%S")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_structured_logger(name: str) -> Any:
    """
    Get a structured logger.

    Args:
        name: Logger name (e.g., "rostering.audit")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """
    Bind context variables for all subsequent structured log calls.

    Args:
        **kwargs: Context values (e.g., actor_id="m1", batch_id="batch-3")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()
