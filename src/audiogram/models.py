#!/usr/bin/env python3
"""Data models for audiogram.

This module contains all data classes used throughout the application:
- TOOL_VERSION: Version constant
- Layout constants shared by the caption and visualizer code
- Exceptions raised during composition setup
- Caption: A single timed caption word
- CompositionConfig: The immutable composition configuration
- SpectrumVisualizer / OscilloscopeVisualizer: Visualizer descriptors
- MediaItem / MediaTiming / MediaTransform / MediaLayer: Media sequencing data
- RevealedWord / Thumbnail / VisualizerShape / FrameOutput: Per-frame output
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Tuple, Union


# ============================================================
# Versioning
# ============================================================

TOOL_VERSION = "0.2.0"


# ============================================================
# Layout Constants
# ============================================================

FPS = 30
BASE_SIZE = 64

CAPTIONS_FONT_SIZE = 40
CAPTIONS_FONT_WEIGHT = 600
LINE_HEIGHT = 54
LINES_PER_PAGE = 4

SHORTS_CAPTIONS_FONT_SIZE = 18
SHORTS_LINES_PER_PAGE = 2
SHORTS_TEXT_PADDING = 50

# word reveal: opacity fades in over 15 frames, the word rises 0.25em over 10
WORD_FADE_FRAMES = 15
WORD_RISE_FRAMES = 10
WORD_RISE_EM = 0.25

VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".webm", ".mkv")
FIT_MODES = ("cover", "contain", "fill")
MODES = ("shorts", "audiogram")
SAMPLE_COUNTS = (32, 64, 128, 256, 512)


# ============================================================
# Errors
# ============================================================

class AudiogramError(Exception):
    """Base class for composition setup failures."""


class ConfigError(AudiogramError, ValueError):
    """The composition configuration is invalid."""


class DurationError(AudiogramError):
    """The audio duration could not be resolved."""


class CaptionError(AudiogramError):
    """The captions file could not be loaded."""


class MediaError(AudiogramError):
    """The media list cannot be sequenced."""


class FontLoadError(AudiogramError):
    """The caption font could not be loaded."""


# ============================================================
# Captions
# ============================================================

@dataclass(frozen=True)
class Caption:
    """A single caption word with timing.

    Attributes:
        text: Word text, usually with a leading space
        start_ms: Start time in milliseconds relative to the audio file
        end_ms: End time in milliseconds relative to the audio file
    """
    text: str
    start_ms: float
    end_ms: float


# ============================================================
# Visualizers
# ============================================================

@dataclass(frozen=True)
class SpectrumVisualizer:
    """Frequency spectrum bars."""
    color: str = "#FFFFFF"
    number_of_samples: int = 64
    lines_to_display: int = 65
    freq_range_start_index: int = 0
    mirror_wave: bool = True
    bar_scale: float = 500.0
    kind: Literal["spectrum"] = "spectrum"


@dataclass(frozen=True)
class OscilloscopeVisualizer:
    """Smoothed waveform line."""
    color: str = "#FFFFFF"
    number_of_samples: int = 64
    window_seconds: float = 0.1
    posterization: int = 3
    amplitude: float = 4.0
    padding: int = 50
    kind: Literal["oscilloscope"] = "oscilloscope"


VisualizerConfig = Union[SpectrumVisualizer, OscilloscopeVisualizer]


# ============================================================
# Configuration
# ============================================================

@dataclass(frozen=True)
class CompositionConfig:
    """Immutable configuration for one composition.

    Validated once by config.validate_config before any frame is rendered.
    """
    audio_file: str = ""
    mode: str = "shorts"

    # audio
    audio_offset_seconds: float = 0.0
    background_sound: Optional[str] = None
    background_sound_volume: float = 0.15

    # media
    media: Tuple[str, ...] = ()
    cover_image: Optional[str] = None
    media_fit_mode: str = "cover"
    transition_duration_seconds: float = 0.5

    # title
    title_text: str = ""
    title_color: str = "#FFFFFF"
    title_font_size: float = 48

    # captions
    captions_file: Optional[str] = None
    captions_text_color: str = "#F8F9FA"
    only_display_current_sentence: bool = True

    # layout
    background_color: str = "#000000"
    visualizer: Optional[VisualizerConfig] = None

    # output geometry
    fps: int = FPS
    width: int = 1080
    height: int = 1920


@dataclass(frozen=True)
class ResolvedComposition:
    """Results of the one-time setup phase.

    Attributes:
        config: Validated configuration
        duration_in_frames: Total frame count, fixed for the composition
        captions: Loaded captions, sorted by start time
    """
    config: CompositionConfig
    duration_in_frames: int
    captions: Tuple[Caption, ...] = ()


# ============================================================
# Media Sequencing
# ============================================================

@dataclass(frozen=True)
class MediaItem:
    locator: str
    kind: Literal["image", "video"]

    @property
    def is_video(self) -> bool:
        return self.kind == "video"


@dataclass(frozen=True)
class MediaTiming:
    """Frame span of one media item.

    The span is inclusive of both ends for rendering; for partitioning the
    frame range it is treated as [start_frame, end_frame).
    """
    item: MediaItem
    index: int
    start_frame: int
    end_frame: int

    def frames(self) -> range:
        return range(self.start_frame, self.end_frame)


@dataclass(frozen=True)
class MediaTransform:
    opacity: float
    translate_y: float
    scale: float


@dataclass(frozen=True)
class MediaLayer:
    """A visible media item and its transform for one frame."""
    timing: MediaTiming
    transform: MediaTransform
    fit_mode: str
    video_start_frame: Optional[int] = None


# ============================================================
# Per-Frame Output
# ============================================================

@dataclass(frozen=True)
class RevealedWord:
    """A caption word with its reveal state for the current frame."""
    text: str
    start_ms: float
    end_ms: float
    opacity: float
    translate_y_em: float


CaptionLine = Tuple[RevealedWord, ...]


THUMBNAIL_GRADIENT: Tuple[Tuple[str, float], ...] = (
    ("rgba(0,0,0,0.3)", 0.0),
    ("rgba(0,0,0,0.1)", 0.4),
    ("rgba(0,0,0,0.1)", 0.6),
    ("rgba(0,0,0,0.6)", 1.0),
)


@dataclass(frozen=True)
class Thumbnail:
    """Static title card shown on frame 0 only."""
    media: MediaItem
    title_text: str
    title_color: str
    title_font_size: float
    background_color: str
    gradient: Tuple[Tuple[str, float], ...] = THUMBNAIL_GRADIENT
    panel_radius: int = 24
    panel_padding: Tuple[int, int] = (32, 40)
    accent_line: Tuple[int, int] = (60, 3)


@dataclass(frozen=True)
class VisualizerShape:
    """Visualizer output for one frame.

    Exactly one of points / bars is populated, depending on the kind.
    Both empty means no audio data was available for this frame.
    """
    kind: str
    color: str
    points: Tuple[Tuple[float, float], ...] = ()
    path: str = ""
    bars: Tuple[float, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.points and not self.bars


@dataclass(frozen=True)
class FrameOutput:
    frame: int
    time_ms: float
    thumbnail: Optional[Thumbnail] = None
    media_layers: Tuple[MediaLayer, ...] = ()
    caption_lines: Tuple[CaptionLine, ...] = ()
    visualizer: Optional[VisualizerShape] = None
    cover_image: Optional[str] = None
