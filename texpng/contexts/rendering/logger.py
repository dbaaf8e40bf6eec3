"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[render]"


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_render_start(input_file: str, out_file: str, display: bool, font_size: float) -> None:
    """Log start of a render with its parameters."""
    mode = "display" if display else "inline"
    _log_info(f"Rendering {input_file} -> {out_file}")
    _log_debug(f"  Mode: {mode}")
    _log_debug(f"  Font size: {font_size}")


def log_render_result(out_file: str, num_bytes: int, elapsed_time: float) -> None:
    """Log a successful render."""
    _log_success(f"Wrote {out_file} ({num_bytes} bytes, {elapsed_time:.2f}s)")


def log_macros_loaded(macros: dict, source=None) -> None:
    """
    Log the macro table an engine was configured with.

    Args:
        macros: Merged macro table (name -> MacroDefinition)
        source: Path of the user macro file, if any
    """
    if source is not None:
        _log_info(f"Loaded macros from {source}")
    _log_info(f"{len(macros)} macros configured: {', '.join(sorted(macros))}")
    for name, definition in sorted(macros.items()):
        _log_debug(f"  \\{name} [{definition.num_args}] -> {definition.template}")
