"""
Unit tests for rasterizer options and the checks that run before cairosvg.
"""

import pytest

from texpng.contexts.rendering.defaults import (
    BASE_FONT_SIZE_PT,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DISPLAY_FONT_SIZE_BOOST,
    PX_PER_PT,
)
from texpng.contexts.rendering.exceptions import RasterizationError
from texpng.contexts.rendering.rasterizer import RasterOptions, _apply_font_defaults, svg_to_png

SVG = '<?xml version="1.0"?>\n<svg xmlns="http://www.w3.org/2000/svg" width="10pt" height="10pt"></svg>'


@pytest.mark.unit
def test_default_options():
    """Test defaults: no system fonts, fixed fallback family."""
    options = RasterOptions()
    assert options.load_system_fonts is False
    assert options.default_font_family == DEFAULT_FONT_FAMILY
    assert options.default_font_size == DEFAULT_FONT_SIZE


@pytest.mark.unit
def test_display_math_gets_font_boost():
    """Test display math is rasterized at a larger size than inline math."""
    assert RasterOptions.for_request(30, display=True).default_font_size == 30 + DISPLAY_FONT_SIZE_BOOST
    assert RasterOptions.for_request(30, display=False).default_font_size == 30


@pytest.mark.unit
def test_scale_follows_font_size():
    """Test the output scale is proportional to the requested font size."""
    options = RasterOptions(default_font_size=BASE_FONT_SIZE_PT * PX_PER_PT * 2)
    assert options.scale == pytest.approx(2.0)


@pytest.mark.unit
def test_font_defaults_added_to_root_only():
    """Test font attributes are added to the first <svg> element."""
    svg = SVG.replace("</svg>", "<svg></svg></svg>")
    result = _apply_font_defaults(svg, RasterOptions(default_font_size=30))

    assert '<svg font-family="Latin Modern Math" font-size="30px" xmlns=' in result
    assert result.count("font-family") == 1


@pytest.mark.unit
def test_text_elements_rejected_without_system_fonts():
    """Test SVG needing system fonts is refused when they are disabled."""
    svg = SVG.replace("</svg>", "<text>x</text></svg>")
    with pytest.raises(RasterizationError, match="system fonts"):
        svg_to_png(svg, RasterOptions())


@pytest.mark.unit
@pytest.mark.parametrize("font_size", [0, -5])
def test_non_positive_font_size_rejected(font_size):
    """Test a zero or negative font size is a rasterization error."""
    with pytest.raises(RasterizationError, match="positive"):
        svg_to_png(SVG, RasterOptions(default_font_size=font_size))
