#!/usr/bin/env python3
"""Console output for audiogram.

Setup steps and the CLI report through these helpers: informational lines on
stdout, warnings and errors on stderr, and a single overwritable progress
line while frames render. The per-frame render path never logs.
"""
from __future__ import annotations

import sys

PROGRESS_WIDTH = 100


# ============================================================
# Messages
# ============================================================

def log(msg: str, *, quiet: bool = False) -> None:
    """Report a setup step on stdout (suppressed by --quiet)."""
    if not quiet:
        print(msg, flush=True)


def warn(msg: str, *, quiet: bool = False) -> None:
    """Report a recoverable problem, such as undecodable audio, on stderr."""
    if not quiet:
        print(f"WARNING: {msg}", file=sys.stderr, flush=True)


def die(msg: str, code: int = 1) -> int:
    """Report a fatal error and hand back the process exit code.

    Errors are printed even with --quiet.

    Args:
        msg: What went wrong
        code: 2 for usage/config errors, 1 for runtime failures, 130 on interrupt

    Returns:
        `code`, so callers can `return die(...)`
    """
    print(f"ERROR: {msg}", file=sys.stderr, flush=True)
    return code


# ============================================================
# Progress
# ============================================================

def progress_line(msg: str, *, enabled: bool, quiet: bool) -> None:
    """Redraw the render progress line in place (padded to a fixed width)."""
    if quiet or not enabled:
        return
    sys.stdout.write("\r" + msg[:PROGRESS_WIDTH].ljust(PROGRESS_WIDTH))
    sys.stdout.flush()


def progress_done(*, enabled: bool, quiet: bool) -> None:
    if quiet or not enabled:
        return
    sys.stdout.write("\n")
    sys.stdout.flush()


# ============================================================
# Time Formatting
# ============================================================

def format_duration(seconds: float) -> str:
    """Wall-clock style duration: "M:SS", or "H:MM:SS" past an hour."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:d}:{secs:02d}"


def format_timecode(frame: int, fps: int) -> str:
    """Format a frame index as a timecode with a frame field.

    Args:
        frame: Frame index
        fps: Frames per second

    Returns:
        Timecode string (e.g., "1:02:15" for frame 1875 at 30 fps)
    """
    frame = max(0, int(frame))
    whole_seconds, frames = divmod(frame, fps)
    return f"{format_duration(whole_seconds)}:{frames:02d}"
