#!/usr/bin/env python3
"""Decoded audio access for audiogram.

This module decodes audio windows to PCM with ffmpeg and serves them to the
visualizers. Decoding happens lazily per window of time so a frame never
needs the whole file in memory (WAV sources); other containers are decoded
once in full because they can't be seeked sample-accurately.
"""
from __future__ import annotations

import math
import subprocess
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np

from .logging_utils import warn
from .system import ffmpeg_ok, run_cmd_bytes


DEFAULT_SAMPLE_RATE = 44100
DEFAULT_WINDOW_SECONDS = 10.0


# ============================================================
# Decoded Data
# ============================================================

@dataclass(frozen=True)
class AudioData:
    """A read-only slice of decoded mono samples.

    Attributes:
        samples: float32 samples in [-1, 1]
        sample_rate: Samples per second
        offset_seconds: Time of samples[0] within the source file
    """
    samples: np.ndarray
    sample_rate: int
    offset_seconds: float = 0.0

    @property
    def duration_seconds(self) -> float:
        return len(self.samples) / self.sample_rate

    def index_at(self, seconds: float) -> int:
        """Sample index for an absolute time in the source file."""
        return int(math.floor((seconds - self.offset_seconds) * self.sample_rate))

    def read(self, start: int, count: int) -> np.ndarray:
        """Read `count` samples from `start`; positions outside the data read as 0."""
        out = np.zeros(count, dtype=np.float32)
        lo = max(start, 0)
        hi = min(start + count, len(self.samples))
        if hi > lo:
            out[lo - start:hi - start] = self.samples[lo:hi]
        return out


# ============================================================
# Decoding
# ============================================================

def decode_audio_window(
    path: str,
    start_seconds: float = 0.0,
    duration_seconds: Optional[float] = None,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> np.ndarray:
    """Decode part of an audio file to mono float32 PCM with ffmpeg.

    Args:
        path: Audio file path or URL
        start_seconds: Where to start decoding
        duration_seconds: How much to decode, or None for the rest of the file
        sample_rate: Output sample rate

    Returns:
        1-D float32 array

    Raises:
        subprocess.CalledProcessError: If ffmpeg fails
        FileNotFoundError: If ffmpeg is not on PATH
    """
    if not ffmpeg_ok():
        raise FileNotFoundError("ffmpeg not found on PATH.")
    cmd = ["ffmpeg", "-v", "error"]
    if start_seconds > 0:
        cmd += ["-ss", f"{start_seconds:.6f}"]
    cmd += ["-i", path]
    if duration_seconds is not None:
        cmd += ["-t", f"{duration_seconds:.6f}"]
    cmd += ["-vn", "-ac", "1", "-ar", str(sample_rate), "-f", "f32le", "-"]

    code, out, err = run_cmd_bytes(cmd)
    if code != 0:
        tail = "\n".join(err.splitlines()[-20:])
        raise subprocess.CalledProcessError(code, cmd, output=None, stderr=tail)
    return np.frombuffer(out, dtype="<f4").astype(np.float32)


Loader = Callable[[str, float, Optional[float], int], np.ndarray]


# ============================================================
# Windowed Source
# ============================================================

class WindowedAudioSource:
    """Serves decoded audio around a frame, one window of time at a time.

    For a frame at time t the data covers the window containing t plus its
    neighbours, so visualizers can look slightly behind and ahead. Results
    are cached per window; loading is thread safe and deterministic.

    Args:
        path: Audio file path or URL
        fps: Frames per second of the composition
        window_seconds: Window length
        sample_rate: Decode sample rate
        loader: Decoder (defaults to ffmpeg)
        quiet: Suppress decode warnings
        max_cached: Decoded windows kept in memory (failed windows are kept
            as well and never retried)
    """

    def __init__(
        self,
        path: str,
        fps: int,
        *,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        loader: Loader = decode_audio_window,
        quiet: bool = False,
        max_cached: int = 4,
    ):
        self.path = path
        self.fps = fps
        self.window_seconds = window_seconds
        self.sample_rate = sample_rate
        self.loader = loader
        self.quiet = quiet
        self.max_cached = max_cached
        self.windowed = path.lower().endswith(".wav")
        self._cache: Dict[int, Optional[AudioData]] = {}
        self._lock = threading.Lock()

    def window_index(self, frame: int) -> int:
        return int(math.floor((frame / self.fps) / self.window_seconds))

    def data_for_frame(self, frame: int) -> Optional[AudioData]:
        """Decoded data covering `frame`, or None if it can't be decoded."""
        key = self.window_index(frame) if self.windowed else 0
        with self._lock:
            if key in self._cache:
                return self._cache[key]
            data = self._load(key)
            # failed windows are never evicted
            loaded = [k for k, v in self._cache.items() if v is not None]
            if len(loaded) >= self.max_cached:
                self._cache.pop(loaded[0])
            self._cache[key] = data
            return data

    def _load(self, key: int) -> Optional[AudioData]:
        if self.windowed:
            first = max(0, key - 1)
            start = first * self.window_seconds
            duration: Optional[float] = (key + 2 - first) * self.window_seconds
        else:
            start, duration = 0.0, None
        try:
            samples = self.loader(self.path, start, duration, self.sample_rate)
        except (OSError, subprocess.CalledProcessError) as e:
            warn(f"Audio data unavailable for {self.path} at {start:.1f}s: {e}", quiet=self.quiet)
            return None
        return AudioData(samples=samples, sample_rate=self.sample_rate, offset_seconds=start)
