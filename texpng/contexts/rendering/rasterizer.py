"""
Rasterizer: SVG markup -> PNG bytes via cairosvg.
"""

import re
from dataclasses import dataclass
from xml.sax.saxutils import quoteattr

from texpng.contexts.rendering.defaults import (
    BASE_FONT_SIZE_PT,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DISPLAY_FONT_SIZE_BOOST,
    PX_PER_PT,
)
from texpng.contexts.rendering.exceptions import RasterizationError

SVG_ROOT_RE = re.compile(r"<svg\b")
TEXT_ELEMENT_RE = re.compile(r"<text\b")


@dataclass(frozen=True)
class RasterOptions:
    """
    Font options for rasterization.

    Attributes:
        default_font_size: Font size in CSS pixels; scales the whole image
        default_font_family: Fallback family declared on the SVG root
        load_system_fonts: Allow <text> elements that need system fonts
    """

    default_font_size: float = DEFAULT_FONT_SIZE
    default_font_family: str = DEFAULT_FONT_FAMILY
    load_system_fonts: bool = False

    @classmethod
    def for_request(cls, font_size: float, display: bool) -> "RasterOptions":
        """Options for one render, enlarging display math."""
        boost = DISPLAY_FONT_SIZE_BOOST if display else 0.0
        return cls(default_font_size=float(font_size) + boost)

    @property
    def scale(self) -> float:
        """Scale factor from the engine's base size to the requested size."""
        return self.default_font_size / (BASE_FONT_SIZE_PT * PX_PER_PT)


def _apply_font_defaults(svg: str, options: RasterOptions) -> str:
    attrs = (
        f"<svg font-family={quoteattr(options.default_font_family)} "
        f'font-size="{options.default_font_size:g}px"'
    )
    return SVG_ROOT_RE.sub(attrs, svg, count=1)


def svg_to_png(svg: str, options: RasterOptions) -> bytes:
    """
    Rasterize SVG markup to PNG.

    Args:
        svg: SVG document from MathEngine.tex2svg()
        options: Font options; default_font_size sets the output scale

    Returns:
        PNG file contents

    Raises:
        RasterizationError: If the SVG needs system fonts while they are
            disabled, the size is not positive, or cairosvg fails
    """
    if options.default_font_size <= 0:
        raise RasterizationError(f"Font size must be positive, got {options.default_font_size:g}")
    if not options.load_system_fonts and TEXT_ELEMENT_RE.search(svg):
        raise RasterizationError("SVG contains <text> elements but system fonts are disabled")

    # cairosvg loads the native cairo library on import
    import cairosvg

    try:
        return cairosvg.svg2png(
            bytestring=_apply_font_defaults(svg, options).encode("utf-8"),
            scale=options.scale,
        )
    except Exception as e:
        raise RasterizationError("Failed to rasterize SVG", original_error=e) from e
