"""Utilities package for the rostering engine."""
from .logging_setup import (
    TRACE,
    WorkflowLogger,
    get_logger,
    log_check,
    log_function_call,
    setup_logging,
)
from .structured_logging import (
    bind_context,
    clear_context,
    configure_structlog,
    get_structured_logger,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_function_call",
    "log_check",
    "WorkflowLogger",
    "TRACE",
    "configure_structlog",
    "get_structured_logger",
    "bind_context",
    "clear_context",
]
