#!/usr/bin/env python3
"""Command-line interface for audiogram.

This is the main entry point for the audiogram command-line tool. It
resolves a composition, renders a frame range to per-frame data and writes
it out for an external compositor.
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import time
import traceback
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .audio import WindowedAudioSource
from .batch import default_output_for, parse_frame_range, preflight_output, split_frame_ranges
from .config import MODE_ALIASES, PRESETS, build_config, load_config_file, visualizer_for_kind
from .duration import setup_composition
from .fonts import FontReadinessGate, monospace_font_loader, pillow_font_loader
from .logging_utils import die, format_duration, format_timecode, log, progress_done, progress_line, warn
from .media import discover_media, pick_background_sound
from .models import TOOL_VERSION, AudiogramError, ConfigError, FrameOutput
from .output_writers import timeline_to_jsonable, write_frames_json, write_frames_jsonl
from .render import CompositionContext, build_context, caption_font_size, render_frames
from .system import tool_version


# ============================================================
# Progress
# ============================================================

def with_progress(
    frames: Iterator[FrameOutput],
    *,
    start: int,
    end: int,
    fps: int,
    enabled: bool,
    quiet: bool,
) -> Iterator[FrameOutput]:
    """Pass frames through while updating a one-line progress indicator."""
    total = max(1, end - start)
    t0 = time.time()
    for i, out in enumerate(frames, start=1):
        if i % 10 == 0 or i == total:
            elapsed = max(0.001, time.time() - t0)
            progress_line(
                f"   {i / total * 100:5.1f}% frame {format_timecode(out.frame, fps)} | {i / elapsed:6.1f} fps",
                enabled=enabled,
                quiet=quiet,
            )
        yield out
    progress_done(enabled=enabled, quiet=quiet)


# ============================================================
# Run one composition
# ============================================================

def run_one(
    *,
    context: CompositionContext,
    output_path: Path,
    fmt: str,
    start: int,
    end: int,
    quiet: bool,
    show_progress: bool,
) -> int:
    """Render a frame range of a composition and write it out.

    Args:
        context: Composition context from build_context
        output_path: Output file path
        fmt: Output format (json/jsonl)
        start: First frame (inclusive)
        end: Last frame (exclusive)
        quiet: Suppress non-error output
        show_progress: Show rendering progress

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    started = time.time()
    fps = context.config.fps
    log(f"Rendering frames {start}..{end - 1} ({format_timecode(start, fps)} - {format_timecode(end - 1, fps)})", quiet=quiet)

    frames = with_progress(
        render_frames(context, start, end),
        start=start,
        end=end,
        fps=fps,
        enabled=show_progress,
        quiet=quiet,
    )
    if fmt == "jsonl":
        count = write_frames_jsonl(frames, output_path)
    elif fmt == "json":
        count = write_frames_json(
            frames,
            output_path,
            composition=context.composition,
            timings=context.timings,
            tool_version=TOOL_VERSION,
        )
    else:
        return die(f"Unknown format: {fmt}", 2)

    log(f"Done: {count} frames -> {output_path} (total {format_duration(time.time() - started)})", quiet=quiet)
    return 0


# ============================================================
# Diagnostics
# ============================================================

def diagnose() -> None:
    """Print versions of the external tools the composition relies on."""
    print(f"audiogram {TOOL_VERSION}")
    for name in ("ffprobe", "ffmpeg"):
        print(f"{name}: {tool_version(name) or 'NOT FOUND'}")


# ============================================================
# CLI
# ============================================================

def cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Collect config values given on the command line."""
    o: Dict[str, Any] = {}
    if args.audio is not None:
        o["audio_file"] = args.audio
    if args.captions is not None:
        o["captions_file"] = args.captions
    if args.media:
        o["media"] = tuple(discover_media(args.media))
    if args.cover is not None:
        o["cover_image"] = args.cover
    if args.title is not None:
        o["title_text"] = args.title
    if args.offset is not None:
        o["audio_offset_seconds"] = float(args.offset)
    if args.transition is not None:
        o["transition_duration_seconds"] = float(args.transition)
    if args.fit is not None:
        o["media_fit_mode"] = args.fit
    if args.fps is not None:
        o["fps"] = args.fps
    if args.width is not None:
        o["width"] = args.width
    if args.height is not None:
        o["height"] = args.height
    if args.all_words:
        o["only_display_current_sentence"] = False
    return o


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the audiogram command-line tool.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    ap = argparse.ArgumentParser(description="Deterministic frame data for audiogram and shorts videos")
    ap.add_argument("--config", default=None, help="JSON composition config. CLI args override config.")
    ap.add_argument("--mode", default=None, help="Preset modes: shorts | audiogram (aliases: short, video, gram).")

    ap.add_argument("--audio", default=None, help="Audio file (required unless set in --config).")
    ap.add_argument("--captions", default=None, help="Captions JSON file ([{text, startMs, endMs}, ...]).")
    ap.add_argument("--media", nargs="*", default=None, help="Media files or directories (shorts mode).")
    ap.add_argument("--cover", default=None, help="Cover image (audiogram mode).")
    ap.add_argument("--title", default=None, help="Title text.")
    ap.add_argument("--background-sound", action="append", default=None,
                    help="Background sound candidate (repeatable; one is picked deterministically).")
    ap.add_argument("--visualizer", choices=["spectrum", "oscilloscope"], default=None)

    ap.add_argument("--offset", type=float, default=None, help="Audio start offset in seconds.")
    ap.add_argument("--transition", type=float, default=None, help="Media transition duration in seconds.")
    ap.add_argument("--fit", choices=["cover", "contain", "fill"], default=None, help="Media fit mode.")
    ap.add_argument("--all-words", action="store_true", help="Show all caption words, not just the current sentence.")
    ap.add_argument("--fps", type=int, default=None)
    ap.add_argument("--width", type=int, default=None)
    ap.add_argument("--height", type=int, default=None)

    ap.add_argument("--font", default=None, help="TrueType/OpenType font used to measure captions.")
    ap.add_argument("--font-size", type=int, default=None, help="Caption font size in px (default depends on --mode).")

    ap.add_argument("--frames", default=None, help="Frame range START:END to render (default: all).")
    ap.add_argument("--workers", type=int, default=None, help="Split the composition into N ranges...")
    ap.add_argument("--worker-index", type=int, default=None, help="...and render range I of them.")

    ap.add_argument("-o", "--output", default=None, help="Output path (default: next to the audio file).")
    ap.add_argument("--format", choices=["json", "jsonl"], default="jsonl", help="Output format")
    ap.add_argument("--overwrite", action="store_true", help="Overwrite output if it exists")
    ap.add_argument("--dry-run", action="store_true", help="Resolve the composition and print it, but do not render.")

    ap.add_argument("--quiet", action="store_true")
    ap.add_argument("--no-progress", action="store_true")
    ap.add_argument("--debug", action="store_true")
    ap.add_argument("--version", action="store_true")
    ap.add_argument("--diagnose", action="store_true")

    args = ap.parse_args(argv)

    if args.version:
        print(TOOL_VERSION)
        return 0

    if args.diagnose:
        diagnose()
        return 0

    quiet = args.quiet
    show_progress = not args.no_progress

    if args.mode:
        mode_key = args.mode.lower()
        if mode_key not in MODE_ALIASES:
            return die(f"Invalid --mode '{args.mode}'. Valid modes: shorts, audiogram", code=2)
        args.mode = MODE_ALIASES[mode_key]

    if (args.workers is None) != (args.worker_index is None):
        return die("--workers and --worker-index must be used together.", 2)
    if args.workers is not None and args.frames is not None:
        return die("--frames cannot be combined with --workers.", 2)

    # Build config: defaults -> preset -> config file -> CLI overrides
    try:
        cfg_file = load_config_file(args.config)
    except (OSError, ValueError) as e:
        return die(str(e), 2)

    mode = args.mode or cfg_file.get("mode")
    preset = PRESETS.get(MODE_ALIASES.get(str(mode).lower(), ""), {}) if mode else {}
    overrides = cli_overrides(args)
    if args.mode:
        overrides["mode"] = args.mode
    if args.visualizer is not None:
        overrides["visualizer"] = visualizer_for_kind(args.visualizer, cfg_file.get("visualizer"))
    if args.background_sound:
        overrides["background_sound"] = pick_background_sound(args.background_sound, seed=Path(overrides.get("audio_file", cfg_file.get("audio_file", ""))).name)

    try:
        cfg = build_config(preset, cfg_file, overrides)
    except ConfigError as e:
        return die(f"Invalid configuration: {e}", 2)

    if args.dry_run and not quiet:
        log("Resolved config:", quiet=quiet)
        log(json.dumps(dataclasses.asdict(cfg), indent=2), quiet=quiet)

    try:
        composition = setup_composition(cfg, quiet=quiet)

        font_size = args.font_size or caption_font_size(cfg)
        if args.font:
            loader = pillow_font_loader(args.font, font_size)
        else:
            if composition.captions:
                warn("No --font given; measuring captions with a monospace approximation.", quiet=quiet)
            loader = monospace_font_loader(font_size)
        gate = FontReadinessGate(loader, quiet=quiet)

        audio = WindowedAudioSource(cfg.audio_file, cfg.fps, quiet=quiet) if cfg.mode == "audiogram" else None
        context = build_context(composition, font_gate=gate, audio=audio, quiet=quiet)
    except AudiogramError as e:
        if args.debug:
            traceback.print_exc()
        return die(str(e), 1)

    duration = composition.duration_in_frames
    try:
        if args.workers is not None:
            ranges = split_frame_ranges(duration, args.workers)
            if not 0 <= args.worker_index < len(ranges):
                return die(f"--worker-index must be in [0, {len(ranges)}) for {duration} frames.", 2)
            start, end = ranges[args.worker_index]
        elif args.frames is not None:
            start, end = parse_frame_range(args.frames, duration)
        else:
            start, end = 0, duration
    except ValueError as e:
        return die(str(e), 2)

    partial = (start, end) != (0, duration)
    output_path = Path(args.output) if args.output else default_output_for(
        cfg.audio_file, args.format, (start, end) if partial else None
    )

    if args.dry_run:
        log(json.dumps(timeline_to_jsonable(composition, context.timings), indent=2), quiet=quiet)
        log(f"Dry run: would render frames {start}..{end - 1} to {output_path}", quiet=quiet)
        return 0

    ok, reason = preflight_output(output_path, args.overwrite)
    if not ok:
        return die(reason, 2)

    try:
        return run_one(
            context=context,
            output_path=output_path,
            fmt=args.format,
            start=start,
            end=end,
            quiet=quiet,
            show_progress=show_progress,
        )
    except KeyboardInterrupt:
        return die("Interrupted by user.", 130)
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        return die(f"{output_path}: {e}", 1)


if __name__ == "__main__":
    raise SystemExit(main())
