"""
Typesetting engine: TeX math -> SVG markup.

Runs LaTeX (with amsmath, amssymb and mathtools) on a standalone document
holding the fragment, then converts the DVI to SVG with dvisvgm. Glyphs are
emitted as SVG paths (--no-fonts), so the rasterizer never needs system
fonts. Every render uses its own temporary directory, so renders from
worker threads do not interfere.
"""

import asyncio
import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Tuple
from xml.sax.saxutils import quoteattr

from dotenv import load_dotenv

from texpng.contexts.rendering.defaults import DEFAULT_COLOR
from texpng.contexts.rendering.exceptions import EngineInitError, TypesettingError
from texpng.contexts.rendering.logger import _log_debug, _log_info, log_macros_loaded
from texpng.contexts.rendering.macros import (
    MacroDefinition,
    build_macro_table,
    expand_macros,
    load_macros,
)

load_dotenv()

LATEX_COMMAND = os.getenv("TEX2PNG_LATEX", "latex")
DVISVGM_COMMAND = os.getenv("TEX2PNG_DVISVGM", "dvisvgm")

PREAMBLE = r"""\documentclass[border=1pt]{standalone}
\usepackage{amsmath}
\usepackage{amssymb}
\usepackage{mathtools}
"""

# Paragraph-level environments and the inner forms usable inside math mode
OUTER_ENVIRONMENTS = {
    "align": "aligned",
    "flalign": "aligned",
    "alignat": "alignedat",
    "gather": "gathered",
    "multline": "gathered",
    "equation": "gathered",
}
OUTER_ENVIRONMENT_RE = re.compile(
    r"\\(begin|end)\{(" + "|".join(OUTER_ENVIRONMENTS) + r")\*?\}"
)

LATEX_ERROR_RE = re.compile(r"^! (.+)$", re.MULTILINE)
LATEX_CONTEXT_RE = re.compile(r"^l\.\d+ (.*)$", re.MULTILINE)
SVG_ROOT_RE = re.compile(r"<svg\b")

Runner = Callable[..., subprocess.CompletedProcess]


def _to_inner_environments(text: str) -> str:
    """Rewrite align/gather/equation blocks as aligned/gathered so they nest in math mode."""
    return OUTER_ENVIRONMENT_RE.sub(
        lambda m: f"\\{m.group(1)}{{{OUTER_ENVIRONMENTS[m.group(2)]}}}", text
    )


def build_document(text: str, display: bool) -> str:
    """
    Wrap a delimiter-free fragment in a standalone LaTeX document.

    Display math is set in \\displaystyle inside a gathered block, so bare
    \\\\ line breaks start new centered rows. Blank lines are dropped; a
    paragraph break is an error inside math.

    Args:
        text: Math fragment with macros already expanded
        display: Display (True) or inline (False) math

    Returns:
        LaTeX document source
    """
    body = _to_inner_environments(text)
    body = "\n".join(line for line in body.splitlines() if line.strip())

    if display:
        math = f"$\\displaystyle\\begin{{gathered}}\n{body}\n\\end{{gathered}}$"
    else:
        math = f"${body}$"

    return f"{PREAMBLE}\\begin{{document}}\n{math}\n\\end{{document}}\n"


def parse_latex_errors(log_content: str) -> Tuple[List[str], str]:
    """
    Extract error messages and the first error location from LaTeX output.

    Args:
        log_content: Content of the .log file (or LaTeX's stdout)

    Returns:
        Tuple of (errors, context line of the first error)
    """
    errors = []
    for match in LATEX_ERROR_RE.finditer(log_content):
        error = match.group(1).strip()
        if error not in errors:
            errors.append(error)

    context = LATEX_CONTEXT_RE.search(log_content)
    return errors, context.group(1).strip() if context else ""


def _apply_color(svg: str, color: str) -> str:
    # dvisvgm leaves glyph fills unset, so they inherit from the root
    return SVG_ROOT_RE.sub(f"<svg fill={quoteattr(color)}", svg, count=1)


class MathEngine:
    """
    Configured typesetting engine shared by all requests of one service.

    The macro table is fixed at construction; changing macros means building
    a new engine (i.e. restarting the service).

    Attributes:
        macros: Read-only macro table (name -> MacroDefinition)
        latex: LaTeX executable producing DVI
        dvisvgm: dvisvgm executable
        run: subprocess.run-compatible callable
    """

    def __init__(
        self,
        macros: Optional[Mapping[str, MacroDefinition]] = None,
        latex: str = LATEX_COMMAND,
        dvisvgm: str = DVISVGM_COMMAND,
        run: Runner = subprocess.run,
    ):
        self.macros = macros if macros is not None else build_macro_table()
        self.latex = latex
        self.dvisvgm = dvisvgm
        self.run = run
        self.initialized = False

    @classmethod
    def from_macros_file(cls, macros_file: Optional[Path] = None) -> "MathEngine":
        """
        Build an engine from the built-in macros plus an optional user file.

        Raises:
            MacroConfigError: If the macros file is missing or malformed
        """
        custom = load_macros(macros_file) if macros_file else None
        engine = cls(macros=build_macro_table(custom))
        log_macros_loaded(engine.macros, source=macros_file)
        return engine

    async def initialize(self) -> "MathEngine":
        """
        Check the TeX toolchain and typeset a trivial expression off the
        event loop.

        The first LaTeX run in a fresh environment can take seconds while
        font maps and the format are loaded; doing it here keeps that cost
        out of the first request.

        Raises:
            EngineInitError: If latex or dvisvgm is missing or a trivial
                expression cannot be typeset
        """
        _log_info("Initializing typesetting engine...")
        for command in (self.latex, self.dvisvgm):
            if shutil.which(command) is None:
                raise EngineInitError(f"{command} not found on PATH")

        try:
            await asyncio.to_thread(self.tex2svg, "x", True)
        except Exception as e:
            raise EngineInitError("Typesetting engine initialization failed", original_error=e) from e
        self.initialized = True
        _log_info("Typesetting engine ready")
        return self

    def _run_tool(self, cmd: List[str], work_dir: Path) -> subprocess.CompletedProcess:
        _log_debug(f"Running: {' '.join(cmd)}")
        return self.run(
            cmd,
            cwd=work_dir,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )

    def _latex_to_dvi(self, tex_file: Path) -> Path:
        result = self._run_tool(
            [
                self.latex,
                "-interaction=nonstopmode",
                "-halt-on-error",
                "-no-shell-escape",
                tex_file.name,
            ],
            tex_file.parent,
        )

        dvi_file = tex_file.with_suffix(".dvi")
        if result.returncode == 0 and dvi_file.exists():
            return dvi_file

        log_file = tex_file.with_suffix(".log")
        # LaTeX writes its log in latin-1 (font metadata is not UTF-8)
        log_content = log_file.read_text(encoding="latin-1") if log_file.exists() else result.stdout
        errors, context = parse_latex_errors(log_content)
        raise TypesettingError("LaTeX error", errors=errors or ["DVI file was not generated"], context=context)

    def _dvi_to_svg(self, dvi_file: Path) -> str:
        svg_file = dvi_file.with_suffix(".svg")
        result = self._run_tool(
            [self.dvisvgm, "--no-fonts", "-o", svg_file.name, dvi_file.name],
            dvi_file.parent,
        )

        if result.returncode != 0 or not svg_file.exists():
            errors = [line.strip() for line in result.stderr.splitlines() if line.strip()]
            raise TypesettingError("dvisvgm error", errors=errors[-3:] or ["SVG file was not generated"])

        return svg_file.read_text(encoding="utf-8")

    def tex2svg(self, text: str, display: bool, color: str = DEFAULT_COLOR) -> str:
        """
        Typeset a delimiter-free math fragment as standalone SVG markup.

        Args:
            text: Math fragment without $ / \\[ delimiters
            display: Display style (True) or text style (False)
            color: CSS color for the glyphs

        Returns:
            SVG document as a string

        Raises:
            MacroExpansionError: If configured macros cannot be expanded
            TypesettingError: If LaTeX or dvisvgm rejects the fragment
        """
        expanded = expand_macros(text, self.macros)
        document = build_document(expanded, display)
        _log_debug(f"Typesetting ({'display' if display else 'inline'}): {expanded}")

        with tempfile.TemporaryDirectory(prefix="tex2png-") as tmp:
            tex_file = Path(tmp) / "math.tex"
            tex_file.write_text(document, encoding="utf-8")
            svg = self._dvi_to_svg(self._latex_to_dvi(tex_file))

        return _apply_color(svg, color)
