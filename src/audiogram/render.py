#!/usr/bin/env python3
"""Per-frame rendering for audiogram.

build_context runs after setup and freezes everything a frame needs;
render_frame is then a pure function of (context, frame) producing the data
an external compositor draws. Frames can be rendered in any order, in any
process, and give identical results.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .audio import WindowedAudioSource
from .captions import select_lines
from .fonts import FontReadinessGate
from .logging_utils import log
from .media import classify_media, media_timings, thumbnail_for, visible_media
from .models import (
    BASE_SIZE,
    CAPTIONS_FONT_SIZE,
    LINES_PER_PAGE,
    SHORTS_CAPTIONS_FONT_SIZE,
    SHORTS_LINES_PER_PAGE,
    SHORTS_TEXT_PADDING,
    CaptionLine,
    CompositionConfig,
    ConfigError,
    FrameOutput,
    MediaItem,
    MediaTiming,
    ResolvedComposition,
)
from .text_processing import TextMeasurer
from .timing import FrameClock
from .visualizer import Visualizer, make_visualizer


# ============================================================
# Caption Geometry
# ============================================================

def caption_font_size(config: CompositionConfig) -> int:
    return CAPTIONS_FONT_SIZE if config.mode == "audiogram" else SHORTS_CAPTIONS_FONT_SIZE


def caption_geometry(config: CompositionConfig) -> Tuple[float, int]:
    """(max line width in px, lines per page) for the composition's mode."""
    if config.mode == "audiogram":
        return config.width - BASE_SIZE * 2, LINES_PER_PAGE
    return config.width - SHORTS_TEXT_PADDING * 2, SHORTS_LINES_PER_PAGE


# ============================================================
# Context
# ============================================================

@dataclass(frozen=True)
class CompositionContext:
    """Read-only inputs shared by every frame of a composition."""
    composition: ResolvedComposition
    clock: FrameClock
    media: Tuple[MediaItem, ...]
    timings: Tuple[MediaTiming, ...]
    transition_frames: int
    audio_offset_frames: int
    caption_width: float
    lines_per_page: int
    measurer: Optional[TextMeasurer] = None
    visualizer: Optional[Visualizer] = None
    audio: Optional[WindowedAudioSource] = None

    @property
    def config(self) -> CompositionConfig:
        return self.composition.config

    @property
    def duration_in_frames(self) -> int:
        return self.composition.duration_in_frames


def build_context(
    composition: ResolvedComposition,
    *,
    font_gate: Optional[FontReadinessGate] = None,
    audio: Optional[WindowedAudioSource] = None,
    quiet: bool = False,
) -> CompositionContext:
    """Freeze the per-frame inputs of a resolved composition.

    Waits on the font gate when there are captions to lay out.

    Args:
        composition: Result of setup_composition
        font_gate: Gate for the captions font (required when there are captions)
        audio: Decoded audio source for the visualizer (audiogram mode)
        quiet: Suppress log output

    Returns:
        CompositionContext

    Raises:
        MediaError: Shorts mode with no media, or too few frames for the media
        ConfigError: Captions without a font gate
        FontLoadError: If the captions font fails to load
    """
    config = composition.config
    clock = FrameClock(config.fps)

    media: Tuple[MediaItem, ...] = ()
    timings: Tuple[MediaTiming, ...] = ()
    if config.mode == "shorts":
        media = classify_media(config.media)
        timings = media_timings(media, composition.duration_in_frames)
        log(f"   {len(timings)} media items, {len(timings[0].frames())} frames each", quiet=quiet)

    measurer: Optional[TextMeasurer] = None
    if composition.captions:
        if font_gate is None:
            raise ConfigError("A font is required to lay out captions")
        measurer = font_gate.wait()

    visualizer: Optional[Visualizer] = None
    if config.mode == "audiogram" and config.visualizer is not None:
        visualizer = make_visualizer(config.visualizer, config.fps, config.width)

    width, lines_per_page = caption_geometry(config)
    return CompositionContext(
        composition=composition,
        clock=clock,
        media=media,
        timings=timings,
        transition_frames=clock.frames_for_seconds(config.transition_duration_seconds),
        audio_offset_frames=clock.frames_for_seconds(config.audio_offset_seconds),
        caption_width=width,
        lines_per_page=lines_per_page,
        measurer=measurer,
        visualizer=visualizer,
        audio=audio,
    )


# ============================================================
# Rendering
# ============================================================

def render_frame(context: CompositionContext, frame: int) -> FrameOutput:
    """Compute everything drawn at `frame`.

    Captions and audio run on the audio timeline, which is shifted by the
    audio offset; media and the thumbnail run on the composition timeline.

    Args:
        context: Composition context
        frame: Frame index in [0, duration_in_frames)

    Returns:
        FrameOutput

    Raises:
        ValueError: If the frame is out of range
    """
    if not 0 <= frame < context.duration_in_frames:
        raise ValueError(f"frame {frame} outside [0, {context.duration_in_frames})")

    config = context.config
    audio_frame = frame + context.audio_offset_frames

    caption_lines: Tuple[CaptionLine, ...] = ()
    if context.measurer is not None:
        caption_lines = select_lines(
            context.composition.captions,
            audio_frame,
            only_current_sentence=config.only_display_current_sentence,
            max_line_width=context.caption_width,
            lines_per_page=context.lines_per_page,
            measurer=context.measurer,
            window=(context.audio_offset_frames, context.audio_offset_frames + context.duration_in_frames),
            fps=config.fps,
        )

    if config.mode == "audiogram":
        shape = None
        if context.visualizer is not None:
            data = context.audio.data_for_frame(audio_frame) if context.audio is not None else None
            shape = context.visualizer.sample(data, audio_frame)
        return FrameOutput(
            frame=frame,
            time_ms=context.clock.now_ms(frame),
            caption_lines=caption_lines,
            visualizer=shape,
            cover_image=config.cover_image,
        )

    return FrameOutput(
        frame=frame,
        time_ms=context.clock.now_ms(frame),
        thumbnail=thumbnail_for(config, context.media, frame),
        media_layers=visible_media(
            context.timings,
            frame,
            transition_frames=context.transition_frames,
            frame_height=config.height,
            fit_mode=config.media_fit_mode,
        ),
        caption_lines=caption_lines,
    )


def render_frames(context: CompositionContext, start: int = 0, end: Optional[int] = None) -> Iterator[FrameOutput]:
    """Render frames [start, end) in order. `end` defaults to the last frame."""
    if end is None:
        end = context.duration_in_frames
    for frame in range(start, end):
        yield render_frame(context, frame)
