#!/usr/bin/env python3
"""Frame-range batching for audiogram.

This module handles:
- Splitting a composition into disjoint frame ranges for parallel workers
- Parsing frame range arguments
- Output path calculation and preflight checks
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

FrameRange = Tuple[int, int]


# ============================================================
# Frame Ranges
# ============================================================

def split_frame_ranges(duration_in_frames: int, workers: int) -> List[FrameRange]:
    """Split [0, duration_in_frames) into up to `workers` contiguous ranges.

    Ranges differ in length by at most one frame; the earlier ranges take
    the extra frames. Empty ranges are not returned.

    Args:
        duration_in_frames: Total composition length
        workers: Number of workers

    Returns:
        List of (start, end) half-open ranges, in order
    """
    if workers <= 0:
        raise ValueError("workers must be positive")
    base, extra = divmod(duration_in_frames, workers)
    ranges: List[FrameRange] = []
    start = 0
    for i in range(workers):
        size = base + (1 if i < extra else 0)
        if size == 0:
            break
        ranges.append((start, start + size))
        start += size
    return ranges


def parse_frame_range(text: str, duration_in_frames: int) -> FrameRange:
    """Parse "START:END", "START:" or ":END" into a half-open range.

    Args:
        text: Range argument from --frames
        duration_in_frames: Total composition length (default END)

    Returns:
        (start, end) clamped to the composition

    Raises:
        ValueError: If the argument is malformed or the range is empty
    """
    if ":" not in text:
        raise ValueError(f"Frame range must look like START:END, got {text!r}")
    lo, hi = text.split(":", 1)
    start = int(lo) if lo.strip() else 0
    end = int(hi) if hi.strip() else duration_in_frames
    start = max(0, start)
    end = min(duration_in_frames, end)
    if start >= end:
        raise ValueError(f"Frame range {text!r} is empty for {duration_in_frames} frames")
    return start, end


# ============================================================
# Output Path Calculation
# ============================================================

def default_output_for(audio_file: str, fmt: str, frame_range: Optional[FrameRange] = None) -> Path:
    """Calculate the default output path for a composition.

    Args:
        audio_file: Audio path the composition is built from
        fmt: Output format (json/jsonl)
        frame_range: Optional range; appended to the name for partial renders

    Returns:
        Output file path next to the audio file
    """
    suffix = {"json": ".frames.json", "jsonl": ".frames.jsonl"}[fmt]
    p = Path(audio_file)
    stem = p.stem
    if frame_range is not None:
        stem = f"{stem}.{frame_range[0]:06d}-{frame_range[1]:06d}"
    return p.with_name(stem + suffix)


# ============================================================
# Preflight Checks
# ============================================================

def preflight_output(output_path: Path, overwrite: bool) -> Tuple[bool, str]:
    """Check that an output path can be written.

    Args:
        output_path: Output file path
        overwrite: If True, allow overwriting existing output

    Returns:
        Tuple of (success: bool, error_message: str)
        If success is True, error_message will be empty
    """
    if output_path.exists() and output_path.is_dir():
        return False, f"Output path is a directory (expected file): {output_path}"
    if output_path.exists() and not overwrite:
        return False, f"Output already exists: {output_path} (use --overwrite)"
    return True, ""
