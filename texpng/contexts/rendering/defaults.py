"""
Default render parameters for tex2png.

Shared by the render service (applied when a request omits a field) and the
CLI client (which omits fields the user did not give), so there is exactly
one set of defaults.
"""

DEFAULT_OUTPUT_FILE = "output.png"

# Gruvbox aqua
DEFAULT_COLOR = "#8ec07c"

DEFAULT_FONT_SIZE = 25.0

# Display math is rasterized slightly larger than inline math
DISPLAY_FONT_SIZE_BOOST = 5.0

DEFAULT_FONT_FAMILY = "Latin Modern Math"

# Built-in macros: name -> (expansion template, argument count)
DEFAULT_MACROS = {
    "bm": (r"\boldsymbol{#1}", 1),
    "tag": (r"\qquad (\mathrm{#1})", 1),
}

# Size the engine typesets at; the rasterizer scales from here to the
# requested font size
BASE_FONT_SIZE_PT = 10.0

# CSS pixels per point (96 dpi / 72 pt)
PX_PER_PT = 96.0 / 72.0
