#!/usr/bin/env python3
"""External tools for audiogram.

Audio is never decoded in-process: ffprobe resolves the composition length
and ffmpeg decodes PCM windows for the visualizers. This module locates the
tools, runs them, and parses what ffprobe reports.
"""
from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


# ============================================================
# Paths
# ============================================================

def ensure_parent_dir(path: Path) -> None:
    """Create the directory an output file will be written into."""
    path.parent.mkdir(parents=True, exist_ok=True)


# ============================================================
# Tool Lookup
# ============================================================

def which_or_none(name: str) -> Optional[str]:
    return shutil.which(name)


def ffmpeg_ok() -> bool:
    """ffmpeg decodes audio windows for the visualizers."""
    return which_or_none("ffmpeg") is not None


def ffprobe_ok() -> bool:
    """ffprobe reads the audio duration during setup."""
    return which_or_none("ffprobe") is not None


# ============================================================
# Running Tools
# ============================================================

def run_cmd_text(cmd: List[str]) -> Tuple[int, str, str]:
    """Run a tool and return (exit code, stdout, stderr) as text."""
    p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    return p.returncode, p.stdout, p.stderr


def run_cmd_bytes(cmd: List[str]) -> Tuple[int, bytes, str]:
    """Run a tool whose stdout is binary (PCM from ffmpeg).

    Returns:
        Tuple of (return_code, stdout_bytes, stderr_text)
    """
    p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    return p.returncode, p.stdout, p.stderr.decode("utf-8", errors="replace")


def tool_version(name: str) -> Optional[str]:
    """The banner line of `<name> -version`, for --diagnose."""
    if which_or_none(name) is None:
        return None
    code, out, _ = run_cmd_text([name, "-version"])
    lines = out.splitlines() if code == 0 else []
    return lines[0].strip() if lines else None


# ============================================================
# Probing
# ============================================================

def probe_format(path: str) -> Optional[Dict[str, Any]]:
    """Container-level metadata of a media file as reported by ffprobe.

    Args:
        path: File path or URL

    Returns:
        The "format" object of `ffprobe -of json`, or None if ffprobe is
        missing, fails, or prints something unparseable
    """
    if not ffprobe_ok():
        return None
    code, out, _ = run_cmd_text([
        "ffprobe", "-v", "error",
        "-show_entries", "format=duration",
        "-of", "json",
        path,
    ])
    if code != 0:
        return None
    try:
        fmt = json.loads(out).get("format")
    except (ValueError, AttributeError):
        return None
    return fmt if isinstance(fmt, dict) else None


def probe_duration_seconds(path: str) -> Optional[float]:
    """Duration of an audio file in seconds, or None if it can't be read."""
    fmt = probe_format(path)
    if fmt is None:
        return None
    try:
        return float(fmt["duration"])
    except (KeyError, TypeError, ValueError):
        return None
