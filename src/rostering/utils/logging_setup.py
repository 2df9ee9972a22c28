"""
Rostering Engine: Logging Infrastructure
========================================
Multi-level logging with file rotation and function tracing.

Levels:
    TRACE (5): Function entry/exit with arguments
    DEBUG (10): Eligibility decisions, state changes
    INFO (20): Completed transitions, batch summaries
    WARNING (30): Refused actions (validation failures)
    ERROR (40): Invalid transitions, persistence rollbacks
"""
import functools
import inspect
import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

# Custom TRACE level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def trace(self, message, *args, **kwargs):
    """Log at TRACE level."""
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


logging.Logger.trace = trace


class ColoredFormatter(logging.Formatter):
    """Formatter with ANSI colors for console output."""

    COLORS = {
        TRACE: "\033[90m",             # Gray
        logging.DEBUG: "\033[36m",     # Cyan
        logging.INFO: "\033[32m",      # Green
        logging.WARNING: "\033[33m",   # Yellow
        logging.ERROR: "\033[31m",     # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelno, "")
        message = super().format(record)
        if color and sys.stdout.isatty():
            return f"{color}{message}{self.RESET}"
        return message


def _parse_level(name: str) -> int:
    if name.upper() == "TRACE":
        return TRACE
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = "logs/rostering.log",
    console_level: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Minimum log level for file output
        log_file: Path to log file (None = no file logging)
        console_level: Console log level (defaults to level)
        max_bytes: Max size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Root logger for the engine
    """
    logger = logging.getLogger("rostering")
    logger.setLevel(TRACE)  # Capture everything, handlers filter

    logger.handlers.clear()

    file_level = _parse_level(level)
    cons_level = _parse_level(console_level or level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(cons_level)
    console_handler.setFormatter(ColoredFormatter(
        "[%(asctime)s] %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    ))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)

    logger.info(f"Logging initialized: console={cons_level}, file={file_level if log_file else 'disabled'}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (e.g., "rostering.engine.bids")
    """
    return logging.getLogger(name)


def _describe_call(func: Callable, is_method: bool, args: tuple, kwargs: dict) -> Tuple[str, str]:
    """Return the display name and the abbreviated argument list of a call."""
    name = func.__name__
    if is_method and args:
        name = f"{type(args[0]).__name__}.{name}"
        args = args[1:]
    shown = [repr(a)[:50] for a in args[:3]]
    shown += [f"{k}={repr(v)[:30]}" for k, v in list(kwargs.items())[:3]]
    return name, ", ".join(shown)


def log_function_call(func: Callable) -> Callable:
    """
    Trace entry, exit and elapsed time of an engine entry point.

    Bound methods are reported as ``Class.method`` without ``self``.

    Usage:
        @log_function_call
        def approve(self, bid_id):
            ...
    """
    logger = logging.getLogger(f"rostering.trace.{func.__module__}")
    is_method = next(iter(inspect.signature(func).parameters), None) == "self"

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        name, call_str = _describe_call(func, is_method, args, kwargs)
        logger.log(TRACE, f"→ {name}({call_str})")
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.debug(f"✖ {name} raised: {type(e).__name__}: {e}")
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.log(TRACE, f"← {name} returned: {repr(result)[:100]} ({elapsed_ms:.1f} ms)")
        return result

    return wrapper


def log_check(
    logger: logging.Logger,
    name: str,
    allowed: bool,
    details: str = "",
    level: int = logging.DEBUG
):
    """
    Log an eligibility check result.

    Args:
        logger: Logger to use
        name: Predicate name
        allowed: Whether the action is allowed
        details: Reason or context
        level: Log level for allowed checks
    """
    status = "✓" if allowed else "✗"
    msg = f"[{status}] {name}"
    if details:
        msg += f" - {details}"

    if allowed:
        logger.log(level, msg)
    else:
        logger.warning(msg)


class WorkflowLogger:
    """Structured logger for multi-step operations (batches, publication)."""

    def __init__(self, name: str = "rostering.engine"):
        self.logger = logging.getLogger(name)
        self.indent = 0

    def _prefix(self) -> str:
        return "  " * self.indent

    def phase(self, name: str):
        """Log start of a major phase."""
        self.logger.info(f"{'='*20} {name} {'='*20}")

    def step(self, description: str):
        """Log a step within a phase."""
        self.logger.info(f"{self._prefix()}▸ {description}")

    def detail(self, key: str, value: Any):
        """Log a detail at DEBUG level."""
        self.logger.debug(f"{self._prefix()}  {key}: {value}")

    def check(self, name: str, allowed: bool, details: str = ""):
        log_check(self.logger, name, allowed, details)

    def enter(self, context: str):
        """Enter a nested context."""
        self.logger.debug(f"{self._prefix()}┌─ {context}")
        self.indent += 1

    def exit(self, context: str = ""):
        """Exit a nested context."""
        self.indent = max(0, self.indent - 1)
        if context:
            self.logger.debug(f"{self._prefix()}└─ {context}")
