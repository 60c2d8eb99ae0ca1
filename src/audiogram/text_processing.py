#!/usr/bin/env python3
"""Text processing utilities for audiogram.

This module provides text normalization, the text-measurement contract
consumed by caption layout, and the width-constrained text box used to
pack caption words into lines.
"""
from __future__ import annotations

import re
from typing import List, Protocol

from PIL import ImageFont


# ============================================================
# Text Normalization
# ============================================================

SENTENCE_ENDINGS = (".", "!", "?")


def normalize_spaces(text: str) -> str:
    """Normalize whitespace in text by replacing non-breaking spaces and collapsing multiple spaces.

    Args:
        text: Input text

    Returns:
        Normalized text with single spaces
    """
    text = text.replace("\u00a0", " ")
    text = re.sub(r"\s+", " ", text).strip()
    return text


def ends_sentence(text: str) -> bool:
    """Check if a caption word closes a sentence (ends with . ! or ?)."""
    return text.endswith(SENTENCE_ENDINGS)


# ============================================================
# Text Measurement
# ============================================================

class TextMeasurer(Protocol):
    """Measures the rendered pixel width of a string in a fixed font."""

    def measure(self, text: str) -> float:
        ...


class PillowTextMeasurer:
    """Text measurement backed by a loaded Pillow font.

    Args:
        font: A font from ImageFont.truetype (or load_default)
    """

    def __init__(self, font: ImageFont.FreeTypeFont):
        self.font = font

    def measure(self, text: str) -> float:
        if not text:
            return 0.0
        return float(self.font.getlength(text))


class MonospaceMeasurer:
    """Fixed advance per character. Used when no font file is configured.

    Args:
        char_width: Advance of every character in pixels
    """

    def __init__(self, char_width: float):
        if char_width <= 0:
            raise ValueError("char_width must be positive")
        self.char_width = char_width

    def measure(self, text: str) -> float:
        return len(text) * self.char_width


# ============================================================
# Text Box
# ============================================================

class TextBox:
    """Greedy width-constrained line filler.

    Words are appended to the current line while the measured width of the
    whole line stays within max_width; otherwise a new line is opened.
    The line is measured as one string so kerning between words counts.

    Args:
        measurer: Text measurement oracle
        max_width: Maximum line width in pixels
        max_lines: Maximum number of lines before the box is full
    """

    def __init__(self, measurer: TextMeasurer, max_width: float, max_lines: int = 1000):
        self.measurer = measurer
        self.max_width = max_width
        self.max_lines = max_lines
        self.lines: List[str] = [""]

    def add(self, text: str) -> bool:
        """Add text to the box.

        Args:
            text: Text to append, including any leading space

        Returns:
            True if the text opened a new line
        """
        current = self.lines[-1]
        if not current or self.measurer.measure(current + text) <= self.max_width:
            self.lines[-1] = current + text
            return False
        if len(self.lines) >= self.max_lines:
            raise ValueError("Text box is full")
        self.lines.append(text)
        return True
