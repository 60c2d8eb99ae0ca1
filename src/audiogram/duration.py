#!/usr/bin/env python3
"""Composition setup for audiogram.

Resolves the total frame count from the audio duration and loads the
captions. Runs once before any frame is rendered; failures here abort the
composition.
"""
from __future__ import annotations

import math
from typing import Callable, Optional

from .captions import load_captions
from .logging_utils import format_duration, log
from .models import CompositionConfig, DurationError, ResolvedComposition
from .system import probe_duration_seconds

Probe = Callable[[str], Optional[float]]


def resolve_duration_in_frames(
    audio_file: str,
    offset_seconds: float,
    fps: int,
    *,
    probe: Optional[Probe] = None,
) -> int:
    """Compute the composition length from the audio duration.

    Args:
        audio_file: Audio path or URL
        offset_seconds: Seconds skipped at the start of the audio
        fps: Frames per second
        probe: Metadata parser returning the duration in seconds or None
            (defaults to ffprobe)

    Returns:
        floor((duration - offset) * fps)

    Raises:
        DurationError: If the duration can't be resolved or nothing is left
            after the offset
    """
    duration = (probe or probe_duration_seconds)(audio_file)
    if duration is None or not math.isfinite(duration) or duration <= 0:
        raise DurationError(f"Could not read the duration of {audio_file}")
    frames = int(math.floor((duration - offset_seconds) * fps))
    if frames <= 0:
        raise DurationError(
            f"Audio offset {offset_seconds}s leaves no frames of {audio_file} "
            f"(duration {duration:.3f}s)"
        )
    return frames


def setup_composition(
    config: CompositionConfig,
    *,
    probe: Optional[Probe] = None,
    quiet: bool = False,
) -> ResolvedComposition:
    """Run the one-time setup phase for a validated configuration.

    Args:
        config: Validated configuration
        probe: Audio metadata parser
        quiet: Suppress log output

    Returns:
        ResolvedComposition with the fixed frame count and loaded captions

    Raises:
        DurationError: If the audio duration can't be resolved
        CaptionError: If the captions file can't be loaded
    """
    log(f"Resolving duration of {config.audio_file}...", quiet=quiet)
    frames = resolve_duration_in_frames(
        config.audio_file,
        config.audio_offset_seconds,
        config.fps,
        probe=probe,
    )
    log(f"   {frames} frames ({format_duration(frames / config.fps)} at {config.fps} fps)", quiet=quiet)

    captions = load_captions(config.captions_file)
    if config.captions_file:
        log(f"   Loaded {len(captions)} captions from {config.captions_file}", quiet=quiet)

    return ResolvedComposition(config=config, duration_in_frames=frames, captions=captions)
