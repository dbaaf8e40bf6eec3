"""
Unit tests for math delimiter normalization.

Tests normalize_math in texpng.contexts.rendering.normalizer.
"""

import pytest

from texpng.contexts.rendering.normalizer import NormalizedContent, normalize_math


@pytest.mark.unit
class TestDisplayDelimiters:
    """Tests for $$...$$ and \\[...\\] detection."""

    def test_double_dollar(self):
        """Test $$...$$ is display math with delimiters stripped."""
        assert normalize_math("$$E=mc^2$$") == NormalizedContent("E=mc^2", True)

    def test_double_dollar_inner_whitespace_trimmed(self):
        """Test whitespace inside the delimiters is trimmed."""
        assert normalize_math("$$  a + b \n$$") == NormalizedContent("a + b", True)

    def test_bracket(self):
        """Test \\[...\\] is display math."""
        assert normalize_math(r"\[ \int_0^1 x\,dx \]") == NormalizedContent(r"\int_0^1 x\,dx", True)

    def test_empty_display(self):
        """Test $$$$ yields empty display content."""
        assert normalize_math("$$$$") == NormalizedContent("", True)

    @pytest.mark.parametrize("body", ["x", "a^2+b^2", " spaced ", r"\frac{1}{2}"])
    def test_double_dollar_property(self, body):
        """Test stripping two characters per side then trimming."""
        content = f"$${body}$$"
        assert normalize_math(content) == NormalizedContent(content[2:-2].strip(), True)


@pytest.mark.unit
class TestInlineDelimiters:
    """Tests for $...$ and \\(...\\) detection."""

    def test_single_dollar(self):
        """Test $...$ is inline math."""
        assert normalize_math("$x^2$") == NormalizedContent("x^2", False)

    def test_paren(self):
        """Test \\(...\\) is inline math."""
        assert normalize_math(r"\(a+b\)") == NormalizedContent("a+b", False)

    def test_single_dollar_trimmed(self):
        """Test inner whitespace of inline math is trimmed."""
        assert normalize_math("$ y $") == NormalizedContent("y", False)

    def test_lone_double_dollar_is_not_inline(self):
        """Test a bare $$ is not read as an empty inline pair."""
        assert normalize_math("$$") == NormalizedContent("$$", True)


@pytest.mark.unit
class TestNoDelimiters:
    """Tests for the fall-through branch."""

    @pytest.mark.parametrize(
        "content",
        [
            "x",
            "$$x$",
            "$x$$",
            "$",
            "$$$",
            r"\[x\)",
            r"\(x\]",
            r"\[x",
            "x$",
            "",
        ],
    )
    def test_passthrough(self, content):
        """Test unmatched or missing delimiters leave text untouched as display."""
        assert normalize_math(content) == NormalizedContent(content, True)

    def test_outer_whitespace_not_trimmed(self):
        """Test the normalizer leaves trimming to its caller."""
        assert normalize_math("  x  ") == NormalizedContent("  x  ", True)

    @pytest.mark.parametrize("content", ["$$a$$", "$b$", r"\[c\]", r"\(d\)", "e"])
    def test_idempotent(self, content):
        """Test normalizing already-normalized text is a no-op."""
        first = normalize_math(content)
        second = normalize_math(first.text)
        assert second.text == first.text
        assert second.display is True
