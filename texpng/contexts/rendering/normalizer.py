"""
Math delimiter normalization.

Decides whether a math fragment is display or inline math from its enclosing
delimiters and strips them:

    $$...$$  \\[...\\]   -> display
    $...$    \\(...\\)   -> inline
    anything else        -> unchanged, display
"""

from dataclasses import dataclass

from texpng.contexts.rendering.logger import _log_warning

# (opening, closing) pairs, checked in order
DISPLAY_DELIMITERS = [("$$", "$$"), ("\\[", "\\]")]
INLINE_DELIMITERS = [("$", "$"), ("\\(", "\\)")]


@dataclass(frozen=True)
class NormalizedContent:
    """
    Math text with its delimiters removed.

    Attributes:
        text: Fragment to hand to the typesetting engine
        display: True for display math, False for inline math
    """

    text: str
    display: bool


def _is_wrapped(content: str, opening: str, closing: str) -> bool:
    """True if content starts with opening and ends with a separate closing."""
    return (
        len(content) >= len(opening) + len(closing)
        and content.startswith(opening)
        and content.endswith(closing)
    )


def _strip(content: str, opening: str, closing: str) -> str:
    return content[len(opening) : len(content) - len(closing)].strip()


def normalize_math(content: str) -> NormalizedContent:
    """
    Detect and strip math delimiters.

    Display delimiters take priority over inline ones. A single-dollar pair
    only counts as inline math when neither end is a double dollar, so
    "$$x$" is not mistaken for inline math wrapping "$x".

    The input is expected to be trimmed already; it is not trimmed here, so
    delimiter-free text comes back verbatim. Never raises.

    Args:
        content: Raw math fragment (e.g. file contents after strip())

    Returns:
        NormalizedContent with the cleaned text and display flag

    Example:
        >>> normalize_math("$$E=mc^2$$")
        NormalizedContent(text='E=mc^2', display=True)
        >>> normalize_math("\\\\(a+b\\\\)")
        NormalizedContent(text='a+b', display=False)
    """
    for opening, closing in DISPLAY_DELIMITERS:
        if _is_wrapped(content, opening, closing):
            return NormalizedContent(text=_strip(content, opening, closing), display=True)

    for opening, closing in INLINE_DELIMITERS:
        if not _is_wrapped(content, opening, closing):
            continue
        if opening == "$" and (content.startswith("$$") or content.endswith("$$")):
            # Mismatched $$ / $ pair
            break
        return NormalizedContent(text=_strip(content, opening, closing), display=False)

    _log_warning("No recognized math delimiters found, treating as display math")
    return NormalizedContent(text=content, display=True)
