#!/usr/bin/env python3
"""Font readiness gate for audiogram.

Text layout needs the caption font's metrics, so the font is loaded once
before any text-bearing frame is rendered. After that the gate stays open
for the rest of the composition; a failed load is fatal and stays failed.
"""
from __future__ import annotations

import threading
from typing import Callable, Optional

from PIL import ImageFont

from .logging_utils import log
from .models import FontLoadError
from .text_processing import MonospaceMeasurer, PillowTextMeasurer, TextMeasurer

FontLoader = Callable[[], TextMeasurer]


# ============================================================
# Loaders
# ============================================================

def pillow_font_loader(path: str, size: float) -> FontLoader:
    """Loader for a TrueType/OpenType font file at a pixel size."""
    def load() -> TextMeasurer:
        return PillowTextMeasurer(ImageFont.truetype(path, size=size))
    return load


def monospace_font_loader(size: float, advance: float = 0.55) -> FontLoader:
    """Loader approximating a font as fixed-advance glyphs (`advance` em wide)."""
    def load() -> TextMeasurer:
        return MonospaceMeasurer(size * advance)
    return load


# ============================================================
# Gate
# ============================================================

class FontReadinessGate:
    """One-time barrier in front of text layout.

    Args:
        loader: Callable returning the text measurer for the loaded font
        name: Label used in log and error messages
        quiet: Suppress log output
    """

    def __init__(self, loader: FontLoader, *, name: str = "captions font", quiet: bool = False):
        self._loader = loader
        self.name = name
        self.quiet = quiet
        self._lock = threading.Lock()
        self._measurer: Optional[TextMeasurer] = None
        self._error: Optional[FontLoadError] = None

    @property
    def ready(self) -> bool:
        return self._measurer is not None

    def wait(self) -> TextMeasurer:
        """Load the font if not done yet and return its measurer.

        Safe to call from several threads; the loader runs at most once.

        Raises:
            FontLoadError: If loading fails (now or on an earlier call)
        """
        with self._lock:
            if self._measurer is not None:
                return self._measurer
            if self._error is not None:
                raise self._error
            try:
                measurer = self._loader()
            except Exception as e:
                self._error = FontLoadError(f"Failed to load {self.name}: {e}")
                raise self._error from e
            self._measurer = measurer
            log(f"   Loaded {self.name}", quiet=self.quiet)
            return measurer

    @property
    def measurer(self) -> TextMeasurer:
        """The loaded measurer. Raises FontLoadError before wait() succeeded."""
        if self._measurer is None:
            raise FontLoadError(f"{self.name} is not loaded yet")
        return self._measurer
