#!/usr/bin/env python3
"""Output writers for rendered frame data.

This module handles serializing per-frame output for an external compositor:
- JSON Lines (one frame per line, suited to streaming and frame ranges)
- JSON (a single document with the timeline and all frames)
"""
from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .models import FrameOutput, MediaTiming, ResolvedComposition
from .system import ensure_parent_dir


# ============================================================
# JSON Conversion
# ============================================================

def _round(value: float) -> float:
    return round(float(value), 4)


def frame_to_jsonable(out: FrameOutput) -> Dict[str, Any]:
    """Convert a FrameOutput to plain JSON-serializable data.

    Args:
        out: Rendered frame

    Returns:
        Dict with frame, time, thumbnail, media, captions and visualizer keys
    """
    d: Dict[str, Any] = {"frame": out.frame, "time_ms": _round(out.time_ms)}

    if out.thumbnail is not None:
        t = out.thumbnail
        d["thumbnail"] = {
            "media": t.media.locator,
            "media_kind": t.media.kind,
            "title_text": t.title_text,
            "title_color": t.title_color,
            "title_font_size": t.title_font_size,
            "background_color": t.background_color,
            "gradient": [list(stop) for stop in t.gradient],
            "panel_radius": t.panel_radius,
            "panel_padding": list(t.panel_padding),
            "accent_line": list(t.accent_line),
        }

    if out.cover_image is not None:
        d["cover_image"] = out.cover_image

    d["media"] = [
        {
            "index": layer.timing.index,
            "locator": layer.timing.item.locator,
            "kind": layer.timing.item.kind,
            "fit": layer.fit_mode,
            "opacity": _round(layer.transform.opacity),
            "translate_y": _round(layer.transform.translate_y),
            "scale": _round(layer.transform.scale),
            "video_start_frame": layer.video_start_frame,
        }
        for layer in out.media_layers
    ]

    d["captions"] = [
        [
            {
                "text": w.text,
                "start_ms": w.start_ms,
                "end_ms": w.end_ms,
                "opacity": _round(w.opacity),
                "translate_y_em": _round(w.translate_y_em),
            }
            for w in line
        ]
        for line in out.caption_lines
    ]

    if out.visualizer is not None:
        v = out.visualizer
        d["visualizer"] = {
            "kind": v.kind,
            "color": v.color,
            "points": [[_round(x), _round(y)] for x, y in v.points],
            "path": v.path,
            "bars": [_round(b) for b in v.bars],
        }
    return d


def timing_to_jsonable(timings: Iterable[MediaTiming]) -> List[Dict[str, Any]]:
    return [
        {
            "index": t.index,
            "locator": t.item.locator,
            "kind": t.item.kind,
            "start_frame": t.start_frame,
            "end_frame": t.end_frame,
        }
        for t in timings
    ]


def timeline_to_jsonable(composition: ResolvedComposition, timings: Iterable[MediaTiming]) -> Dict[str, Any]:
    """Composition-level data: config, duration and the media partition."""
    cfg = dataclasses.asdict(composition.config)
    return {
        "config": cfg,
        "duration_in_frames": composition.duration_in_frames,
        "fps": composition.config.fps,
        "captions": len(composition.captions),
        "media_timings": timing_to_jsonable(timings),
    }


# ============================================================
# Atomic File Writing
# ============================================================

def atomic_write_text(path: Path, content: str) -> None:
    """Write text to a file atomically using a temporary file.

    Args:
        path: Destination file path
        content: Text content to write
    """
    ensure_parent_dir(path)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(content, encoding="utf-8")
    os.replace(tmp, path)


# ============================================================
# Format Writers
# ============================================================

def write_frames_jsonl(frames: Iterable[FrameOutput], out_path: Path) -> int:
    """Write frames as JSON Lines, one frame per line.

    Args:
        frames: Rendered frames (consumed lazily)
        out_path: Output file path

    Returns:
        Number of frames written
    """
    ensure_parent_dir(out_path)
    tmp = out_path.with_suffix(out_path.suffix + ".tmp")
    count = 0
    with tmp.open("w", encoding="utf-8") as fh:
        for out in frames:
            fh.write(json.dumps(frame_to_jsonable(out), ensure_ascii=False))
            fh.write("\n")
            count += 1
    os.replace(tmp, out_path)
    return count


def write_frames_json(
    frames: Iterable[FrameOutput],
    out_path: Path,
    *,
    composition: ResolvedComposition,
    timings: Iterable[MediaTiming],
    tool_version: str,
) -> int:
    """Write the timeline and frames as one JSON document.

    Args:
        frames: Rendered frames
        out_path: Output file path
        composition: Resolved composition
        timings: Media timings
        tool_version: Version string recorded in the document

    Returns:
        Number of frames written
    """
    payload = {
        "tool": {"name": "audiogram", "version": tool_version},
        "timeline": timeline_to_jsonable(composition, timings),
        "frames": [frame_to_jsonable(f) for f in frames],
    }
    atomic_write_text(out_path, json.dumps(payload, ensure_ascii=False, indent=2))
    return len(payload["frames"])
