#!/usr/bin/env python3
"""Frame clock for audiogram.

Every component derives "now" from a frame index and the composition's
frames-per-second through these helpers. Nothing here reads wall-clock time.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from .models import FPS


# ============================================================
# Conversions
# ============================================================

def ms_to_frame(ms: float, fps: int = FPS) -> int:
    """Convert milliseconds to the frame during which that instant falls.

    Args:
        ms: Time in milliseconds
        fps: Frames per second

    Returns:
        Frame index (floored)
    """
    return int(math.floor((ms / 1000.0) * fps))


def frame_to_ms(frame: int, fps: int = FPS) -> float:
    """Convert a frame index to elapsed milliseconds."""
    return frame / fps * 1000.0


def frame_to_seconds(frame: int, fps: int = FPS) -> float:
    """Convert a frame index to elapsed seconds."""
    return frame / fps


def seconds_to_frames(seconds: float, fps: int = FPS) -> int:
    """Convert a duration in seconds to a whole number of frames (rounded)."""
    return int(math.floor(seconds * fps + 0.5))


# ============================================================
# Frame Clock
# ============================================================

@dataclass(frozen=True)
class FrameClock:
    """Single source of "now" for a composition.

    Attributes:
        fps: Frames per second
    """
    fps: int = FPS

    def __post_init__(self) -> None:
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")

    def _check(self, frame: int) -> None:
        if frame < 0:
            raise ValueError(f"frame must be non-negative, got {frame}")

    def now_ms(self, frame: int) -> float:
        self._check(frame)
        return frame_to_ms(frame, self.fps)

    def now_seconds(self, frame: int) -> float:
        self._check(frame)
        return frame_to_seconds(frame, self.fps)

    def frame_at_ms(self, ms: float) -> int:
        return ms_to_frame(ms, self.fps)

    def frames_for_seconds(self, seconds: float) -> int:
        return seconds_to_frames(seconds, self.fps)
