"""
Integration tests for rendering - real LaTeX + dvisvgm typesetting and
cairosvg rasterization behind the HTTP app.
"""

import asyncio
import json
import shutil

import pytest
from fastapi.testclient import TestClient

from texpng.contexts.rendering import (
    MathEngine,
    RasterOptions,
    TypesettingError,
    render_math_file,
    svg_to_png,
)
from texpng.contexts.rendering.engine import DVISVGM_COMMAND, LATEX_COMMAND
from texpng.contexts.serving.app import create_app

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

# Check if the TeX toolchain is available
TEX_AVAILABLE = shutil.which(LATEX_COMMAND) is not None and shutil.which(DVISVGM_COMMAND) is not None

# cairosvg imports fine but needs the native cairo library at import time
try:
    import cairosvg  # noqa: F401

    CAIRO_AVAILABLE = True
except (ImportError, OSError):
    CAIRO_AVAILABLE = False

pytestmark = pytest.mark.skipif(
    not TEX_AVAILABLE,
    reason="latex and dvisvgm not installed - install TeX Live (with dvisvgm) or MiKTeX",
)

skip_if_no_cairo = pytest.mark.skipif(
    not CAIRO_AVAILABLE,
    reason="cairosvg or the cairo library is not installed",
)


def png_size(data: bytes):
    """(width, height) from a PNG IHDR chunk."""
    return int.from_bytes(data[16:20], "big"), int.from_bytes(data[20:24], "big")


@pytest.fixture(scope="module")
def engine():
    return asyncio.run(MathEngine().initialize())


@pytest.fixture
def client(engine, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return TestClient(create_app(engine))


@pytest.mark.integration
def test_engine_initializes(engine):
    """Test warm-up marks the engine ready."""
    assert engine.initialized is True


@pytest.mark.integration
def test_svg_uses_paths_not_text(engine):
    """Test glyphs are emitted as paths so no system fonts are needed."""
    svg = engine.tex2svg(r"\int_0^1 x^2\,dx", display=True)

    assert svg.lstrip().startswith("<?xml")
    assert "<svg" in svg
    assert "<path" in svg
    assert "<text" not in svg


@pytest.mark.integration
def test_color_applied_to_root(engine):
    """Test the requested color is the inherited glyph fill."""
    svg = engine.tex2svg("a+b", display=False, color="#ff0000")
    assert '<svg fill="#ff0000"' in svg


@pytest.mark.integration
@pytest.mark.parametrize(
    "tex",
    [
        r"\begin{aligned} a &= b + c \\ d &= e \end{aligned}",
        r"f(x) = \begin{cases} 1 & x > 0 \\ 0 & \text{otherwise} \end{cases}",
        r"\begin{pmatrix} 1 & 0 \\ 0 & 1 \end{pmatrix}",
        r"\begin{bmatrix} a & b \\ c & d \end{bmatrix}",
        r"\begin{align} x &= 1 \\ y &= 2 \end{align}",
        r"\begin{equation*} E = mc^2 \end{equation*}",
        r"a = b \\ c = d",
        r"\tfrac{1}{2} + \dfrac{3}{4}",
        r"A \xrightarrow{f} B",
        r"\coloneqq \quad \mathbb{R} \quad \mathcal{L}",
        r"\bm{\alpha} = 0 \tag{1}",
        r"\left( \frac{a}{b} \right) \text{ for all } a",
    ],
)
def test_ams_constructs_typeset(engine, tex):
    """Test amsmath, amssymb and mathtools constructs typeset in display mode."""
    svg = engine.tex2svg(tex, display=True)
    assert "<path" in svg


@pytest.mark.integration
def test_inline_aligned(engine):
    """Test inner AMS environments also work in inline math."""
    assert "<path" in engine.tex2svg(r"\begin{smallmatrix} a & b \end{smallmatrix}", display=False)


@pytest.mark.integration
def test_unknown_command_fails(engine):
    """Test an undefined control word raises with LaTeX's message."""
    with pytest.raises(TypesettingError, match="Undefined control sequence") as exc_info:
        engine.tex2svg(r"\notacommand{x}", display=False)
    assert "notacommand" in exc_info.value.context


@pytest.mark.integration
@skip_if_no_cairo
def test_display_math_is_larger(engine):
    """Test the display boost produces a bigger image than inline math."""
    svg = engine.tex2svg("x^2", display=False)

    inline = svg_to_png(svg, RasterOptions.for_request(25, display=False))
    display = svg_to_png(svg, RasterOptions.for_request(25, display=True))

    assert inline.startswith(PNG_MAGIC)
    assert png_size(display)[1] > png_size(inline)[1]


@pytest.mark.integration
@skip_if_no_cairo
def test_render_math_file(engine, tmp_path):
    """Test the whole pipeline writes a PNG."""
    out_file = tmp_path / "eq.png"

    result = render_math_file(engine, r"\(a^2+b^2=c^2\)", out_file)

    assert result.display is False
    assert result.num_bytes == out_file.stat().st_size
    assert out_file.read_bytes().startswith(PNG_MAGIC)


@pytest.mark.integration
@skip_if_no_cairo
def test_render_endpoint_end_to_end(client, tmp_path):
    """Test POST /render with defaults produces output.png in the service cwd."""
    source = tmp_path / "formula.tex"
    source.write_text("$$E=mc^2$$\n", encoding="utf-8")

    response = client.post("/render", json={"inputFile": str(source)})

    assert response.status_code == 200
    assert response.json() == {"success": True, "file": "output.png"}
    assert (tmp_path / "output.png").read_bytes().startswith(PNG_MAGIC)


@pytest.mark.integration
@skip_if_no_cairo
def test_render_endpoint_multiline_display(client, tmp_path):
    """Test a multi-line cases block renders through the service."""
    source = tmp_path / "cases.tex"
    source.write_text(
        "\\[\n|x| = \\begin{cases}\n  x & x \\ge 0 \\\\\n  -x & x < 0\n\\end{cases}\n\\]\n",
        encoding="utf-8",
    )

    response = client.post("/render", json={"inputFile": str(source), "outFile": "cases.png"})

    assert response.status_code == 200
    assert (tmp_path / "cases.png").read_bytes().startswith(PNG_MAGIC)


@pytest.mark.integration
@skip_if_no_cairo
def test_render_endpoint_with_user_macros(tmp_path, monkeypatch):
    """Test macros from a JSON file are usable in rendered input."""
    macros_file = tmp_path / "macros.json"
    macros_file.write_text(json.dumps({"RR": [r"\mathbb{R}", 0]}), encoding="utf-8")
    source = tmp_path / "formula.tex"
    source.write_text(r"$x \in \RR$", encoding="utf-8")

    monkeypatch.chdir(tmp_path)
    client = TestClient(create_app(MathEngine.from_macros_file(macros_file)))
    response = client.post("/render", json={"inputFile": str(source), "outFile": "rr.png"})

    assert response.status_code == 200
    assert (tmp_path / "rr.png").read_bytes().startswith(PNG_MAGIC)


@pytest.mark.integration
def test_render_endpoint_reports_typesetting_error(client, tmp_path):
    """Test a fragment LaTeX rejects is a 500 carrying LaTeX's message."""
    source = tmp_path / "bad.tex"
    source.write_text(r"$\notacommand$", encoding="utf-8")

    response = client.post("/render", json={"inputFile": str(source)})

    assert response.status_code == 500
    assert "Undefined control sequence" in response.json()["error"]
    assert not (tmp_path / "output.png").exists()
