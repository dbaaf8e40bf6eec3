"""
Render orchestration: math source text -> PNG file on disk.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from texpng.contexts.rendering.defaults import DEFAULT_COLOR, DEFAULT_FONT_SIZE
from texpng.contexts.rendering.engine import MathEngine
from texpng.contexts.rendering.logger import log_render_result, log_render_start
from texpng.contexts.rendering.normalizer import normalize_math
from texpng.contexts.rendering.rasterizer import RasterOptions, svg_to_png

Rasterizer = Callable[[str, RasterOptions], bytes]


@dataclass
class RenderResult:
    """
    Result of one render.

    Attributes:
        out_file: Path the PNG was written to
        display: Whether the content was treated as display math
        num_bytes: Size of the written PNG
        elapsed_time: Seconds spent typesetting, rasterizing and writing
    """

    out_file: Path
    display: bool
    num_bytes: int
    elapsed_time: float


def render_math_file(
    engine: MathEngine,
    content: str,
    out_file: Path,
    color: str = DEFAULT_COLOR,
    font_size: float = DEFAULT_FONT_SIZE,
    rasterize: Rasterizer = svg_to_png,
    source: str = "<input>",
) -> RenderResult:
    """
    Normalize, typeset, rasterize and write one math fragment.

    Blocking; the render service runs it in a worker thread.

    Args:
        engine: Initialized typesetting engine
        content: Trimmed math source, possibly wrapped in delimiters
        out_file: Destination PNG path (overwritten if present)
        color: Glyph color
        font_size: Base font size in pixels (display math gets a boost)
        rasterize: SVG -> PNG function
        source: Name of the input for log messages

    Returns:
        RenderResult describing the written file

    Raises:
        TexRenderError: On macro expansion or rasterization failures
        TypesettingError: If LaTeX or dvisvgm rejects the fragment
        OSError: If the PNG cannot be written
    """
    normalized = normalize_math(content)
    log_render_start(source, str(out_file), normalized.display, font_size)

    start_time = time.time()
    svg = engine.tex2svg(normalized.text, normalized.display, color=color)
    png = rasterize(svg, RasterOptions.for_request(font_size, normalized.display))

    out_file = Path(out_file)
    out_file.write_bytes(png)
    elapsed_time = time.time() - start_time

    log_render_result(str(out_file), len(png), elapsed_time)

    return RenderResult(
        out_file=out_file,
        display=normalized.display,
        num_bytes=len(png),
        elapsed_time=elapsed_time,
    )
