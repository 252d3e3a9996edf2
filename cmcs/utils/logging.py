"""Structured logging setup for the claim data layer."""

import functools
import logging
from contextlib import contextmanager
from typing import Optional, Dict, Any
from pathlib import Path


DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ContextFilter(logging.Filter):
    """Add context information to log records."""

    def __init__(self):
        super().__init__()
        self.context: Dict[str, Any] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context fields to log record."""
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


# Global context filter instance
_context_filter = ContextFilter()


def setup_logging(
    level: str = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with optional file output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format string for log messages
        log_file: Optional path to log file (empty string means console only)

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(_context_filter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(_context_filter)
        root_logger.addHandler(file_handler)

    return root_logger


@contextmanager
def log_context(**kwargs):
    """
    Attach context fields to every log record emitted inside the block.

    The previous fields are restored on exit, so nested blocks and
    exceptions leave no stray context behind.

    Example:
        with log_context(claim_id="C2025-004"):
            logger.info("Rejecting claim")  # Includes claim_id

    Args:
        **kwargs: Context key-value pairs
    """
    old_context = _context_filter.context.copy()
    _context_filter.context.update(kwargs)
    try:
        yield
    finally:
        _context_filter.context = old_context


def with_context(**context_kwargs):
    """
    Decorator form of log_context for a whole function.

    Example:
        @with_context(component="maintenance")
        def cleanup(registry):
            logger.info("Sweeping orphans")  # Includes component
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with log_context(**context_kwargs):
                return func(*args, **kwargs)

        return wrapper
    return decorator
