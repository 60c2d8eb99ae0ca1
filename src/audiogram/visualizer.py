#!/usr/bin/env python3
"""Audio visualization for audiogram.

Two interchangeable strategies sample the decoded audio around the current
frame: an oscilloscope (smoothed waveform path) and a spectrum (bars from an
FFT). The strategy is chosen once per composition by make_visualizer.
"""
from __future__ import annotations

import math
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

from .audio import AudioData
from .models import (
    OscilloscopeVisualizer,
    SpectrumVisualizer,
    VisualizerConfig,
    VisualizerShape,
)

Point = Tuple[float, float]

# oscilloscope baseline, the middle of a 120px tall strip
OSCILLOSCOPE_BASELINE = 60

# the spectrum analyses four times as many buckets as the configured count
SPECTRUM_BUCKET_FACTOR = 4


# ============================================================
# Posterization
# ============================================================

def posterize_frame(frame: int, factor: int) -> int:
    """Snap a frame down to the nearest multiple of `factor`.

    With factor 3, frames 9, 10 and 11 all sample frame 9 and the
    waveform steps at frame 12.
    """
    if factor <= 1:
        return frame
    return (frame // factor) * factor


def js_round(x: float) -> int:
    """Round half up, the way the layout values were specified."""
    return int(math.floor(x + 0.5))


# ============================================================
# Sampling
# ============================================================

def visualize_waveform(
    audio: AudioData,
    frame: int,
    fps: int,
    number_of_samples: int,
    window_seconds: float,
) -> np.ndarray:
    """Sample the waveform in a window centred on the frame's time.

    The window is split into `number_of_samples` equal blocks and each block
    is reduced to its mean, giving values in [-1, 1].

    Args:
        audio: Decoded audio around the frame
        frame: Frame to sample
        fps: Frames per second
        number_of_samples: Number of output values
        window_seconds: Width of the sampled window

    Returns:
        Array of `number_of_samples` floats
    """
    t = frame / fps
    window = max(number_of_samples, int(round(window_seconds * audio.sample_rate)))
    block = window // number_of_samples
    start = audio.index_at(t - window_seconds / 2)
    data = audio.read(start, block * number_of_samples)
    values = data.reshape(number_of_samples, block).mean(axis=1)
    return np.clip(values, -1.0, 1.0)


def _magnitudes(audio: AudioData, frame: int, fps: int, number_of_samples: int) -> np.ndarray:
    size = number_of_samples * 2
    center = audio.index_at(frame / fps)
    segment = audio.read(center - size // 2, size).astype(np.float64)
    window = np.blackman(size)
    spectrum = np.abs(np.fft.rfft(segment * window))[:number_of_samples]
    # a full-scale sine lands at ~1.0
    return spectrum * 2.0 / window.sum()


def visualize_spectrum(
    audio: AudioData,
    frame: int,
    fps: int,
    number_of_samples: int,
    smoothing: bool = True,
) -> np.ndarray:
    """Magnitudes of `number_of_samples` frequency buckets at a frame.

    With smoothing, the magnitudes of frames f-1, f and f+1 are averaged.
    """
    frames = [frame - 1, frame, frame + 1] if smoothing else [frame]
    stacked = np.stack([_magnitudes(audio, f, fps, number_of_samples) for f in frames])
    return stacked.mean(axis=0)


# ============================================================
# Shaping
# ============================================================

def sample_oscilloscope(
    audio: Optional[AudioData],
    frame: int,
    window_seconds: float,
    posterization: int,
    number_of_samples: int,
    *,
    fps: int,
    width: float,
    amplitude: float = 4.0,
    x_offset: float = 0.0,
) -> List[Point]:
    """Oscilloscope points for a frame, empty if no audio data is available.

    Points are spaced evenly across `width` starting at `x_offset`; y is the
    baseline offset by the sample value scaled by amplitude.
    """
    if audio is None or number_of_samples < 2:
        return []
    values = visualize_waveform(audio, posterize_frame(frame, posterization), fps, number_of_samples, window_seconds)
    last = len(values) - 1
    return [
        (x_offset + i / last * width, OSCILLOSCOPE_BASELINE + float(v) * OSCILLOSCOPE_BASELINE * amplitude)
        for i, v in enumerate(values)
    ]


def mirror_bars(values: Sequence[float]) -> List[float]:
    """Reflect values around the first one: reverse(values[1:]) + values."""
    values = list(values)
    return values[1:][::-1] + values


def sample_spectrum(
    audio: Optional[AudioData],
    frame: int,
    number_of_samples: int,
    start_index: int,
    count: int,
    mirror: bool,
    *,
    fps: int,
    scale: float = 500.0,
) -> List[float]:
    """Spectrum bar heights for a frame, empty if no audio data is available.

    Takes `count` buckets from `start_index` (half of them, rounded, when
    mirroring), optionally mirrors them, and scales by sqrt(magnitude).
    """
    if audio is None:
        return []
    magnitudes = visualize_spectrum(audio, frame, fps, number_of_samples)
    take = js_round(count / 2) if mirror else count
    selected = [float(v) for v in magnitudes[start_index:start_index + take]]
    if mirror:
        selected = mirror_bars(selected)
    return [scale * math.sqrt(max(v, 0.0)) for v in selected]


def create_smooth_svg_path(points: Sequence[Point], smoothing: float = 0.2) -> str:
    """Build a smooth SVG path (M + cubic C segments) through points."""
    if not points:
        return ""

    def control(current: Point, previous: Optional[Point], nxt: Optional[Point], reverse: bool) -> Point:
        p = previous or current
        n = nxt or current
        angle = math.atan2(n[1] - p[1], n[0] - p[0]) + (math.pi if reverse else 0.0)
        length = math.hypot(n[0] - p[0], n[1] - p[1]) * smoothing
        return current[0] + math.cos(angle) * length, current[1] + math.sin(angle) * length

    parts = [f"M {points[0][0]:.3f},{points[0][1]:.3f}"]
    for i in range(1, len(points)):
        prev2 = points[i - 2] if i >= 2 else None
        nxt = points[i + 1] if i + 1 < len(points) else None
        cps = control(points[i - 1], prev2, points[i], False)
        cpe = control(points[i], points[i - 1], nxt, True)
        parts.append(
            f"C {cps[0]:.3f},{cps[1]:.3f} {cpe[0]:.3f},{cpe[1]:.3f} "
            f"{points[i][0]:.3f},{points[i][1]:.3f}"
        )
    return " ".join(parts)


# ============================================================
# Strategies
# ============================================================

class Visualizer(Protocol):
    kind: str

    def sample(self, audio: Optional[AudioData], frame: int) -> VisualizerShape:
        ...


class OscilloscopeStrategy:
    kind = "oscilloscope"

    def __init__(self, descriptor: OscilloscopeVisualizer, fps: int, width: float):
        self.descriptor = descriptor
        self.fps = fps
        self.width = width

    def sample(self, audio: Optional[AudioData], frame: int) -> VisualizerShape:
        d = self.descriptor
        points = sample_oscilloscope(
            audio,
            frame,
            d.window_seconds,
            d.posterization,
            d.number_of_samples,
            fps=self.fps,
            width=max(self.width - 2 * d.padding, 0),
            amplitude=d.amplitude,
            x_offset=d.padding,
        )
        return VisualizerShape(
            kind=self.kind,
            color=d.color,
            points=tuple(points),
            path=create_smooth_svg_path(points),
        )


class SpectrumStrategy:
    kind = "spectrum"

    def __init__(self, descriptor: SpectrumVisualizer, fps: int):
        self.descriptor = descriptor
        self.fps = fps

    def sample(self, audio: Optional[AudioData], frame: int) -> VisualizerShape:
        d = self.descriptor
        bars = sample_spectrum(
            audio,
            frame,
            d.number_of_samples * SPECTRUM_BUCKET_FACTOR,
            d.freq_range_start_index,
            d.lines_to_display,
            d.mirror_wave,
            fps=self.fps,
            scale=d.bar_scale,
        )
        return VisualizerShape(kind=self.kind, color=d.color, bars=tuple(bars))


def make_visualizer(descriptor: VisualizerConfig, fps: int, width: float) -> Visualizer:
    """Choose the visualizer strategy for a composition.

    Args:
        descriptor: Spectrum or oscilloscope settings
        fps: Frames per second
        width: Drawing width in pixels (oscilloscope only)
    """
    if isinstance(descriptor, OscilloscopeVisualizer):
        return OscilloscopeStrategy(descriptor, fps, width)
    if isinstance(descriptor, SpectrumVisualizer):
        return SpectrumStrategy(descriptor, fps)
    raise TypeError(f"Unknown visualizer descriptor: {descriptor!r}")
