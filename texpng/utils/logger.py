"""
Generic loguru setup shared by the tex2png contexts.

Context-specific wrappers (with their own message prefix) live in
contexts/{context}/logger.py and call setup_logger() from here.
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

LOGS_PATH = Path(
    os.getenv("TEX2PNG_LOGS_PATH", Path.home() / ".cache" / "tex2png" / "logs")
).expanduser()

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {process} | {message}"
CONSOLE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"
)


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: dict = None,
    console: bool = True,
) -> Path:
    """
    Configure loguru for one process of a context.

    Replaces any previously installed sinks with a DEBUG-level file sink and,
    optionally, an INFO-level colorized console sink, then writes a
    provenance header.

    Args:
        context_name: Context identifier (e.g., "serve", "render")
        log_dir: Directory for this logging session (created if missing)
        extra_provenance: Additional key-value pairs for the provenance header
        console: Also log INFO and above to stdout (default: True)

    Returns:
        Path to log file

    Example:
        from texpng.utils.logger import setup_logger

        log_file = setup_logger(
            context_name="serve",
            log_dir=LOGS_PATH / "serve_20251114_123456",
            extra_provenance={"Port": 3000},
        )
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()

    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG", enqueue=True)

    if console:
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level="INFO", colorize=True)

    log_provenance(extra_provenance)

    return log_file


def log_provenance(extra_context: dict = None) -> None:
    """
    Log execution provenance (script, command, cwd, Python, pid) plus extras.

    Args:
        extra_context: Additional key-value pairs to log
    """
    logger.info("=" * 80)
    logger.info(f"Script: {sys.argv[0]}")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Python: {sys.version.split()[0]}")
    logger.info(f"PID: {os.getpid()}")

    if extra_context:
        for key, value in extra_context.items():
            logger.info(f"{key}: {value}")

    logger.info("=" * 80)


def setup_console_logger(level: str = "WARNING") -> None:
    """
    Console-only logging for short-lived CLI processes.

    User-facing output goes through typer; loguru only surfaces problems.
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)
