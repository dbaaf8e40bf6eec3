"""
Unit tests for the rendering context logger.
"""

import pytest
from loguru import logger

from texpng.contexts.rendering import logger as render_logger
from texpng.contexts.rendering.macros import MacroDefinition


@pytest.fixture
def records():
    """Collect (level, message) pairs emitted through loguru."""
    collected = []
    sink_id = logger.add(
        lambda message: collected.append((message.record["level"].name, message.record["message"])),
        level="DEBUG",
    )
    yield collected
    logger.remove(sink_id)


@pytest.mark.unit
class TestRenderingLogger:
    """Tests for the [render] logging helpers."""

    def test_render_start_and_result(self, records):
        """Test a render is logged with its parameters and outcome."""
        render_logger.log_render_start("eq.tex", "eq.png", True, 25.0)
        render_logger.log_render_result("eq.png", 1234, 0.5)

        assert records == [
            ("INFO", "[render] Rendering eq.tex -> eq.png"),
            ("DEBUG", "[render]   Mode: display"),
            ("DEBUG", "[render]   Font size: 25.0"),
            ("SUCCESS", "[render] Wrote eq.png (1234 bytes, 0.50s)"),
        ]

    def test_macros_loaded(self, records):
        """Test the macro table is summarized, with its source when given."""
        macros = {"RR": MacroDefinition(r"\mathbb{R}", 0)}

        render_logger.log_macros_loaded(macros, source="macros.json")

        assert records[0] == ("INFO", "[render] Loaded macros from macros.json")
        assert records[1] == ("INFO", "[render] 1 macros configured: RR")
        assert records[2] == ("DEBUG", "[render]   \\RR [0] -> \\mathbb{R}")

    def test_render_errors_are_logged_by_serving(self):
        """Test rendering raises its errors and leaves logging them to the caller."""
        assert not hasattr(render_logger, "_log_error")
