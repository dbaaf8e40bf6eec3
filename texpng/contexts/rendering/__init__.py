"""
Rendering Context

Responsibilities:
- Detects inline vs display math and strips delimiters
- Loads and expands TeX macros
- Typesets math to SVG (LaTeX + dvisvgm)
- Rasterizes SVG to PNG (cairosvg) and writes the file

Owns: math normalization, macro configuration, TeX -> SVG -> PNG
Never: Knows about HTTP, processes, or the CLI
"""

from texpng.contexts.rendering.defaults import (
    DEFAULT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_MACROS,
    DEFAULT_OUTPUT_FILE,
)
from texpng.contexts.rendering.engine import MathEngine
from texpng.contexts.rendering.exceptions import (
    EngineInitError,
    MacroConfigError,
    MacroExpansionError,
    RasterizationError,
    TexRenderError,
    TypesettingError,
)
from texpng.contexts.rendering.macros import MacroDefinition, build_macro_table, load_macros
from texpng.contexts.rendering.normalizer import NormalizedContent, normalize_math
from texpng.contexts.rendering.rasterizer import RasterOptions, svg_to_png
from texpng.contexts.rendering.renderer import RenderResult, render_math_file

__all__ = [
    # Defaults shared with the CLI
    "DEFAULT_COLOR",
    "DEFAULT_FONT_SIZE",
    "DEFAULT_MACROS",
    "DEFAULT_OUTPUT_FILE",
    # Normalization
    "normalize_math",
    "NormalizedContent",
    # Macros
    "MacroDefinition",
    "build_macro_table",
    "load_macros",
    # Engine and rasterizer
    "MathEngine",
    "RasterOptions",
    "svg_to_png",
    # Orchestration
    "render_math_file",
    "RenderResult",
    # Errors
    "TexRenderError",
    "MacroConfigError",
    "MacroExpansionError",
    "EngineInitError",
    "RasterizationError",
    "TypesettingError",
]
