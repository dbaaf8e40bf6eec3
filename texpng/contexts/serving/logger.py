"""
Serving context logger.

Provides logging interface for the serving context with automatic [serve] prefix.
All serving modules should import from this module, not from utils.logger directly.
"""

import logging
from pathlib import Path

from loguru import logger

from texpng.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[serve]"

# stdlib loggers used by uvicorn
UVICORN_LOGGERS = ["uvicorn", "uvicorn.error", "uvicorn.access"]


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (uvicorn's) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_serving_logger(log_dir: Path, host: str, port: int, console: bool = True) -> Path:
    """
    Setup logger for one render service process.

    Configures loguru with provenance tracking and routes uvicorn's stdlib
    loggers through it, so the service writes a single log file.

    Args:
        log_dir: Directory for this service session
        host: Address the service binds
        port: Port the service binds
        console: Also log to stdout

    Returns:
        Path to log file
    """
    log_file = _setup_logger(
        context_name="serve",
        log_dir=log_dir,
        extra_provenance={"Listen": f"http://{host}:{port}"},
        console=console,
    )

    for name in UVICORN_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    return log_file


# Wrapper functions with automatic [serve] prefix


def _log_info(message: str) -> None:
    """Log info message with [serve] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [serve] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [serve] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [serve] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [serve] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_request_failure(status_code: int, message: str) -> None:
    """Log a request that ends in an error response."""
    if status_code >= 500:
        _log_error(f"{status_code}: {message}")
    else:
        _log_warning(f"{status_code}: {message}")
