"""Custom exceptions for the rendering context."""

from pathlib import Path
from typing import List, Optional


class TexRenderError(Exception):
    """
    Base exception for failures while turning TeX into a PNG.

    Attributes:
        message: Error description
        original_error: The library error that caused this one, if any
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error

        super().__init__(f"{message}: {original_error}" if original_error else message)


class MacroConfigError(TexRenderError):
    """
    Raised when a user macro file is missing or malformed.

    Attributes:
        macros_file: Path of the offending file
    """

    def __init__(
        self,
        message: str,
        macros_file: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.macros_file = macros_file
        if macros_file is not None:
            message = f"{message} ({macros_file})"
        super().__init__(message, original_error=original_error)


class MacroExpansionError(TexRenderError):
    """
    Raised when macro expansion cannot complete.

    Attributes:
        macro_name: Macro being expanded when the failure happened
        latex_snippet: The LaTeX content that failed to expand
    """

    def __init__(self, message: str, macro_name: Optional[str] = None, latex_snippet: str = ""):
        self.macro_name = macro_name
        self.latex_snippet = latex_snippet

        parts = [message]
        if macro_name:
            parts.append(f"macro \\{macro_name}")
        if latex_snippet:
            snippet = latex_snippet[:200] + "..." if len(latex_snippet) > 200 else latex_snippet
            parts.append(f"in: {snippet}")

        super().__init__(", ".join(parts))


class TypesettingError(TexRenderError):
    """
    Raised when LaTeX or dvisvgm rejects a math fragment.

    Attributes:
        errors: Error lines parsed from the tool output
        context: Source line LaTeX reported the first error at, if any
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None, context: str = ""):
        self.errors = errors or []
        self.context = context

        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        if context:
            message = f"{message} (at: {context})"

        super().__init__(message)


class EngineInitError(TexRenderError):
    """Raised when the typesetting engine cannot be initialized."""

    pass


class RasterizationError(TexRenderError):
    """Raised when SVG markup cannot be turned into PNG bytes."""

    pass
