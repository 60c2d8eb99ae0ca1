#!/usr/bin/env python3
"""Media sequencing for audiogram.

This module handles:
- Classifying media locators as images or videos
- Media file discovery for directory inputs
- Partitioning the frame range across media items
- Per-frame fade/slide/scale transforms
- The static frame-0 thumbnail card
"""
from __future__ import annotations

import random
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .easing import ENTER_SLIDE, EXIT_SLIDE, cubic, ease_in, ease_out, interpolate, quad
from .models import (
    VIDEO_EXTENSIONS,
    CompositionConfig,
    MediaError,
    MediaItem,
    MediaLayer,
    MediaTiming,
    MediaTransform,
    Thumbnail,
)
from .text_processing import normalize_spaces


# ============================================================
# Media Classification / Discovery
# ============================================================

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp"}
MEDIA_EXTS = IMAGE_EXTENSIONS | set(VIDEO_EXTENSIONS)


def is_video_locator(locator: str) -> bool:
    """Check whether a locator names a video, by extension substring."""
    lowered = locator.lower()
    return any(ext in lowered for ext in VIDEO_EXTENSIONS)


def classify_media(locators: Iterable[str]) -> Tuple[MediaItem, ...]:
    return tuple(
        MediaItem(locator=loc, kind="video" if is_video_locator(loc) else "image")
        for loc in locators
    )


def iter_media_files_in_dir(d: Path) -> Iterable[Path]:
    """Iterate over media files directly inside a directory, in name order.

    Args:
        d: Directory path to search

    Yields:
        Path objects for each media file found
    """
    for p in sorted(d.iterdir()):
        if p.is_file() and p.suffix.lower() in MEDIA_EXTS:
            yield p


def discover_media(inputs: Sequence[str]) -> List[str]:
    """Expand media inputs into an ordered list of locators.

    Directories contribute their media files in name order; anything else
    (files, URLs) passes through unchanged. Duplicates are dropped.

    Args:
        inputs: Files, directories or URLs

    Returns:
        Deduplicated list of locators, order preserved
    """
    out: List[str] = []
    for s in inputs:
        p = Path(s)
        if p.is_dir():
            out.extend(str(x) for x in iter_media_files_in_dir(p))
        else:
            out.append(s)

    # de-dupe, preserve order
    seen = set()
    uniq: List[str] = []
    for loc in out:
        if loc in seen:
            continue
        seen.add(loc)
        uniq.append(loc)
    return uniq


def pick_background_sound(choices: Sequence[str], seed: str = "background-sound") -> Optional[str]:
    """Pick a background sound deterministically from a seed string."""
    if not choices:
        return None
    return choices[random.Random(seed).randrange(len(choices))]


# ============================================================
# Frame Partitioning
# ============================================================

def media_timings(items: Sequence[MediaItem], duration_in_frames: int) -> Tuple[MediaTiming, ...]:
    """Partition frames [1, duration_in_frames) evenly across media items.

    Frame 0 is reserved for the thumbnail. Each item gets
    floor((duration - 1) / n) frames; the last item absorbs the remainder
    so the range is covered up to duration_in_frames exactly.

    Args:
        items: Media items in display order
        duration_in_frames: Total composition length

    Returns:
        One MediaTiming per item

    Raises:
        MediaError: If there are no items or fewer frames than items + 1
    """
    n = len(items)
    if n == 0:
        raise MediaError("Shorts mode requires at least one media item.")
    if duration_in_frames < n + 1:
        raise MediaError(
            f"{duration_in_frames} frames cannot be split across {n} media items "
            f"(need at least {n + 1})."
        )

    available = duration_in_frames - 1
    per_item = available // n
    timings: List[MediaTiming] = []
    for i, item in enumerate(items):
        start = 1 + i * per_item
        end = min(1 + (i + 1) * per_item, duration_in_frames)
        if i == n - 1:
            end = duration_in_frames
        timings.append(MediaTiming(item=item, index=i, start_frame=start, end_frame=end))
    return tuple(timings)


# ============================================================
# Transforms
# ============================================================

_FADE_IN = ease_out(cubic)
_FADE_OUT = ease_in(cubic)
_SCALE_IN = ease_out(quad)
_SCALE_OUT = ease_in(quad)

SLIDE_FRACTION = 0.05


def transform_for(
    timing: MediaTiming,
    frame: int,
    transition_frames: int,
    frame_height: float,
) -> Optional[MediaTransform]:
    """Compute the transform of a media item at `frame`.

    Args:
        timing: The item's frame span
        frame: Current frame
        transition_frames: Length of the entry and exit transitions
        frame_height: Composition height in pixels (slide distance is 5% of it)

    Returns:
        MediaTransform, or None when the frame is outside the item's span
    """
    start, end = timing.start_frame, timing.end_frame
    if frame < start or frame > end:
        return None

    enter = (start, start + transition_frames)
    leave = (end - transition_frames, end)
    slide = frame_height * SLIDE_FRACTION

    fade_in = interpolate(frame, enter, (0.0, 1.0), easing=_FADE_IN)
    fade_out = interpolate(frame, leave, (1.0, 0.0), easing=_FADE_OUT)

    if frame < end - transition_frames:
        translate_y = interpolate(frame, enter, (slide, 0.0), easing=ENTER_SLIDE)
        scale = interpolate(frame, enter, (1.02, 1.0), easing=_SCALE_IN)
    else:
        translate_y = interpolate(frame, leave, (0.0, -slide), easing=EXIT_SLIDE)
        scale = interpolate(frame, leave, (1.0, 0.98), easing=_SCALE_OUT)

    return MediaTransform(opacity=min(fade_in, fade_out), translate_y=translate_y, scale=scale)


def visible_media(
    timings: Sequence[MediaTiming],
    frame: int,
    *,
    transition_frames: int,
    frame_height: float,
    fit_mode: str,
) -> Tuple[MediaLayer, ...]:
    """Media layers drawn at `frame`, in stacking order. Empty on frame 0."""
    if frame == 0:
        return ()
    layers: List[MediaLayer] = []
    for timing in timings:
        transform = transform_for(timing, frame, transition_frames, frame_height)
        if transform is None:
            continue
        layers.append(MediaLayer(
            timing=timing,
            transform=transform,
            fit_mode=fit_mode,
            video_start_frame=timing.start_frame if timing.item.is_video else None,
        ))
    return tuple(layers)


# ============================================================
# Thumbnail
# ============================================================

def thumbnail_for(config: CompositionConfig, items: Sequence[MediaItem], frame: int) -> Optional[Thumbnail]:
    """The static title card, on frame 0 only."""
    if frame != 0 or not items:
        return None
    return Thumbnail(
        media=items[0],
        title_text=normalize_spaces(config.title_text),
        title_color=config.title_color,
        title_font_size=max(config.title_font_size * 0.9, 36),
        background_color=config.background_color,
    )
