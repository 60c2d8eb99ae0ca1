"""Tests for the text_processing module."""
import pytest
from unittest.mock import MagicMock
from audiogram.text_processing import (
    MonospaceMeasurer,
    PillowTextMeasurer,
    TextBox,
    ends_sentence,
    normalize_spaces,
)


class TestNormalizeSpaces:
    """Tests for normalize_spaces function."""

    def test_collapses_whitespace(self):
        """Test that runs of whitespace become single spaces."""
        assert normalize_spaces("  hello   world \n") == "hello world"

    def test_non_breaking_space(self):
        """Test that non-breaking spaces are replaced."""
        assert normalize_spaces("a\u00a0\u00a0b") == "a b"

    def test_empty(self):
        """Test empty input."""
        assert normalize_spaces("") == ""


class TestEndsSentence:
    """Tests for ends_sentence function."""

    def test_terminal_punctuation(self):
        """Test that . ! and ? close a sentence."""
        assert ends_sentence(" there.")
        assert ends_sentence(" really!")
        assert ends_sentence(" why?")

    def test_other_punctuation(self):
        """Test that commas and bare words do not."""
        assert not ends_sentence(" hi,")
        assert not ends_sentence(" next")
        assert not ends_sentence("")


class TestMeasurers:
    """Tests for the text measurers."""

    def test_monospace(self):
        """Test fixed-advance measurement."""
        m = MonospaceMeasurer(10)
        assert m.measure("abc") == 30
        assert m.measure("") == 0

    def test_monospace_invalid(self):
        """Test that a non-positive advance is rejected."""
        with pytest.raises(ValueError):
            MonospaceMeasurer(0)

    def test_pillow_uses_getlength(self):
        """Test that the Pillow measurer asks the font for the string length."""
        font = MagicMock()
        font.getlength.return_value = 12.5
        m = PillowTextMeasurer(font)
        assert m.measure("hi there") == 12.5
        font.getlength.assert_called_once_with("hi there")

    def test_pillow_empty(self):
        """Test that empty text is zero wide without asking the font."""
        font = MagicMock()
        assert PillowTextMeasurer(font).measure("") == 0.0
        font.getlength.assert_not_called()


class TestTextBox:
    """Tests for TextBox."""

    def test_fills_current_line(self):
        """Test that text fitting the width stays on the line."""
        box = TextBox(MonospaceMeasurer(10), 100)
        assert box.add("abc") is False
        assert box.add(" de") is False
        assert box.lines == ["abc de"]

    def test_opens_new_line(self):
        """Test that overflowing text opens a new line."""
        box = TextBox(MonospaceMeasurer(10), 50)
        box.add("abc")
        assert box.add(" de") is True
        assert box.lines == ["abc", " de"]

    def test_empty_line_accepts_long_text(self):
        """Test that an empty line takes text wider than the box."""
        box = TextBox(MonospaceMeasurer(10), 50)
        assert box.add("abcdefgh") is False
        assert box.lines == ["abcdefgh"]

    def test_full(self):
        """Test that a full box raises."""
        box = TextBox(MonospaceMeasurer(10), 50, max_lines=1)
        box.add("abc")
        with pytest.raises(ValueError):
            box.add(" defgh")
