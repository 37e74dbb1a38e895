"""
Centralized logging configuration.
Console logging for the API process and the batch CLI, plus one-line
event helpers so model calls, store queries and failures log the same way
everywhere.
"""

import copy
import logging
import sys
from typing import Iterable, Optional, Sequence


# Client libraries that log every HTTP request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "openai", "postgrest", "supabase", "uvicorn.access")


class ColoredFormatter(logging.Formatter):
    """
    Colored log formatter for console output.
    Colors a copy of the record so other handlers see the plain level name.
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color and sys.stdout.isatty():
            record = copy.copy(record)
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    use_colors: bool = True,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string (optional)
        use_colors: Color level names when writing to a terminal
        quiet: Logger names lowered to WARNING
    """
    if format_string is None:
        format_string = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    formatter_cls = ColoredFormatter if use_colors else logging.Formatter
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter_cls(format_string, datefmt="%H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = [handler]

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Usage:
        from core.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Something happened")
    """
    return logging.getLogger(name)


# === Log event helpers ===

def log_model_call(logger: logging.Logger, step: str, model: str, duration_ms: float, **kwargs):
    """Log a completed external model call."""
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.info(f"MODEL {step} via {model} ({duration_ms:.0f}ms) {extra}".strip())


def log_db_query(logger: logging.Logger, operation: str, table: str, duration_ms: float):
    """Log a database query."""
    logger.debug(f"DB {operation} on {table} ({duration_ms:.1f}ms)")


def log_review_flag(logger: logging.Logger, gemstone_id: str, reasons: Sequence[str]):
    """Log why an analysis was routed to human review."""
    logger.info(f"REVIEW {gemstone_id}: {', '.join(reasons)}")


def log_failure(
    logger: logging.Logger,
    gemstone_id: str,
    code: str,
    message: str,
    step: Optional[str] = None,
    level: int = logging.ERROR,
):
    """Log a typed per-gemstone failure with its code and step."""
    where = f" at {step}" if step else ""
    logger.log(level, f"FAILED {gemstone_id}: {code}{where} - {message}")


def log_error(logger: logging.Logger, error: Exception, context: str = None):
    """Log an unexpected error with traceback and optional context."""
    msg = f"{type(error).__name__}: {error}"
    if context:
        msg = f"[{context}] {msg}"
    logger.error(msg, exc_info=True)
