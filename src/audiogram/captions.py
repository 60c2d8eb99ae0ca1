#!/usr/bin/env python3
"""Caption windowing, layout and pagination for audiogram.

Given the full caption list and a frame, selects the words that should be
on screen: windowed to the composition's range, optionally trimmed to the
sentence in progress, packed into width-constrained lines, paginated to the
last few active lines, and annotated with per-word reveal state.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from .easing import ease_out, interpolate, quad
from .models import (
    FPS,
    WORD_FADE_FRAMES,
    WORD_RISE_EM,
    WORD_RISE_FRAMES,
    Caption,
    CaptionError,
    CaptionLine,
    RevealedWord,
)
from .text_processing import TextBox, TextMeasurer, ends_sentence
from .timing import ms_to_frame


# ============================================================
# Caption Loading
# ============================================================

def parse_captions(data: Any) -> Tuple[Caption, ...]:
    """Build captions from the decoded JSON caption list.

    Each entry needs "text", "startMs" and "endMs"; other keys are ignored.
    The result is sorted by start time.

    Raises:
        CaptionError: If an entry is malformed or captions overlap
    """
    if not isinstance(data, list):
        raise CaptionError("Captions must be a JSON array.")

    captions: List[Caption] = []
    for i, entry in enumerate(data):
        try:
            caption = Caption(
                text=str(entry["text"]),
                start_ms=float(entry["startMs"]),
                end_ms=float(entry["endMs"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CaptionError(f"Caption {i} is malformed: {e}") from None
        if caption.end_ms < caption.start_ms:
            raise CaptionError(f"Caption {i} ends before it starts.")
        captions.append(caption)

    captions.sort(key=lambda c: c.start_ms)
    for prev, cur in zip(captions, captions[1:]):
        if cur.start_ms < prev.end_ms:
            raise CaptionError(
                f"Captions overlap: {prev.text!r} ends at {prev.end_ms}ms, "
                f"{cur.text!r} starts at {cur.start_ms}ms"
            )
    return tuple(captions)


def load_captions(path: Optional[str]) -> Tuple[Caption, ...]:
    """Load captions from a JSON file.

    Args:
        path: Path to captions JSON, or None for no captions

    Returns:
        Tuple of Caption objects (empty if path is None)

    Raises:
        CaptionError: If the file can't be read or parsed
    """
    if not path:
        return ()
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise CaptionError(f"Could not load captions from {p}: {e}") from None
    return parse_captions(data)


# ============================================================
# Windowing
# ============================================================

def window_captions(
    captions: Sequence[Caption],
    start_frame: int,
    end_frame: int,
    fps: int = FPS,
) -> List[Caption]:
    """Keep captions that lie entirely within [start_frame, end_frame]."""
    return [
        c for c in captions
        if ms_to_frame(c.start_ms, fps) >= start_frame and ms_to_frame(c.end_ms, fps) <= end_frame
    ]


def sentence_to_display(
    windowed: Sequence[Caption],
    frame: int,
    only_current_sentence: bool,
    fps: int = FPS,
) -> List[Caption]:
    """Trim windowed captions to the sentence in progress.

    The boundary is the last caption ending in . ! or ? whose following
    caption has already started before `frame`. Everything up to and
    including the boundary is dropped.

    Args:
        windowed: Windowed captions in order
        frame: Current frame on the caption timeline
        only_current_sentence: If False, return everything
        fps: Frames per second

    Returns:
        Captions of the current sentence
    """
    if not only_current_sentence:
        return list(windowed)

    boundary = -1
    for i in range(len(windowed) - 2, -1, -1):
        if ends_sentence(windowed[i].text) and ms_to_frame(windowed[i + 1].start_ms, fps) < frame:
            boundary = i
            break
    return list(windowed[boundary + 1:])


# ============================================================
# Layout / Pagination
# ============================================================

def layout_text(
    captions: Sequence[Caption],
    box_width: float,
    measurer: TextMeasurer,
) -> List[List[Caption]]:
    """Pack caption words into lines no wider than box_width.

    A word's leading whitespace is trimmed for display when it starts a
    line, but the trimmed width still counts toward the line.

    Args:
        captions: Captions to lay out
        box_width: Maximum line width in pixels
        measurer: Text measurement oracle for the caption font

    Returns:
        List of lines, each a list of captions (never empty lines unless input is empty)
    """
    box = TextBox(measurer, box_width)
    lines: List[List[Caption]] = [[]]

    for i, caption in enumerate(captions):
        first = i == 0
        trimmed = caption.text.lstrip()
        new_line = box.add(trimmed if first else caption.text)
        if new_line:
            lines.append([])

        shown = caption
        if new_line or first:
            shown = Caption(text=trimmed, start_ms=caption.start_ms, end_ms=caption.end_ms)
            box.add(" " * (len(caption.text) - len(trimmed)))
        lines[-1].append(shown)

    if lines == [[]]:
        return []
    return lines


def filter_displayed_lines(
    lines: Sequence[Sequence[Caption]],
    frame: int,
    lines_per_page: int,
    fps: int = FPS,
) -> List[Sequence[Caption]]:
    """Keep lines with at least one started word, then the trailing page of them."""
    if lines_per_page <= 0:
        return []
    active = [
        line for line in lines
        if any(ms_to_frame(c.start_ms, fps) < frame for c in line)
    ]
    return active[-lines_per_page:]


# ============================================================
# Word Reveal
# ============================================================

_RISE = ease_out(quad)


def reveal_word(caption: Caption, frame: int, fps: int = FPS) -> RevealedWord:
    """Compute the opacity and vertical offset of a word at `frame`."""
    start = ms_to_frame(caption.start_ms, fps)
    opacity = interpolate(frame, (start, start + WORD_FADE_FRAMES), (0.0, 1.0))
    translate_y = interpolate(frame, (start, start + WORD_RISE_FRAMES), (WORD_RISE_EM, 0.0), easing=_RISE)
    return RevealedWord(
        text=caption.text,
        start_ms=caption.start_ms,
        end_ms=caption.end_ms,
        opacity=opacity,
        translate_y_em=translate_y,
    )


# ============================================================
# Caption Windower
# ============================================================

def select_lines(
    captions: Sequence[Caption],
    frame: int,
    *,
    only_current_sentence: bool,
    max_line_width: float,
    lines_per_page: int,
    measurer: TextMeasurer,
    window: Tuple[int, int],
    fps: int = FPS,
) -> Tuple[CaptionLine, ...]:
    """Select the caption lines visible at `frame`.

    Args:
        captions: All captions, sorted by start time
        frame: Current frame on the caption timeline
        only_current_sentence: Trim to the sentence in progress
        max_line_width: Maximum line width in pixels
        lines_per_page: Maximum number of visible lines
        measurer: Text measurement oracle for the caption font
        window: (start_frame, end_frame) render window on the caption timeline
        fps: Frames per second

    Returns:
        Tuple of lines, each a tuple of RevealedWord
    """
    if not captions:
        return ()
    windowed = window_captions(captions, window[0], window[1], fps)
    sentence = sentence_to_display(windowed, frame, only_current_sentence, fps)
    lines = layout_text(sentence, max_line_width, measurer)
    shown = filter_displayed_lines(lines, frame, lines_per_page, fps)
    return tuple(
        tuple(reveal_word(c, frame, fps) for c in line)
        for line in shown
    )
