#!/usr/bin/env python3
"""Configuration management for audiogram.

This module handles configuration loading, preset management,
configuration merging/overrides and one-time validation.
"""
from __future__ import annotations

import dataclasses
import json
import re
from pathlib import Path
from typing import Any, Dict, Optional

from .models import (
    FIT_MODES,
    MODES,
    SAMPLE_COUNTS,
    CompositionConfig,
    ConfigError,
    OscilloscopeVisualizer,
    SpectrumVisualizer,
    VisualizerConfig,
)


# ============================================================
# Presets
# ============================================================

PRESETS: Dict[str, Dict[str, Any]] = {
    "shorts": {
        "mode": "shorts",
        "width": 1080,
        "height": 1920,
        "background_color": "#0a0a0a",
        "title_font_size": 52,
        "captions_text_color": "#F8F9FA",
        "only_display_current_sentence": True,
        "transition_duration_seconds": 0.8,
        "media_fit_mode": "cover",
        "background_sound_volume": 0.15,
    },
    "audiogram": {
        "mode": "audiogram",
        "width": 1080,
        "height": 1080,
        "background_color": "#000000",
        "title_font_size": 48,
        "only_display_current_sentence": True,
        "visualizer": {"type": "oscilloscope"},
    },
}

MODE_ALIASES = {
    "short": "shorts",
    "shorts": "shorts",
    "video": "shorts",
    "audiogram": "audiogram",
    "gram": "audiogram",
}

# camelCase keys from composition props and the video generation input
KEY_ALIASES = {
    "audioFileUrl": "audio_file",
    "audioPath": "audio_file",
    "audioOffsetInSeconds": "audio_offset_seconds",
    "backgroundSoundUrl": "background_sound",
    "backgroundSoundVolume": "background_sound_volume",
    "mediaUrls": "media",
    "coverImageUrl": "cover_image",
    "mediaFitMode": "media_fit_mode",
    "transitionDurationInSeconds": "transition_duration_seconds",
    "titleText": "title_text",
    "titleColor": "title_color",
    "titleFontSize": "title_font_size",
    "captionsFileName": "captions_file",
    "captionsTextColor": "captions_text_color",
    "onlyDisplayCurrentSentence": "only_display_current_sentence",
    "backgroundColor": "background_color",
}

VISUALIZER_KEY_ALIASES = {
    "type": "kind",
    "numberOfSamples": "number_of_samples",
    "linesToDisplay": "lines_to_display",
    "freqRangeStartIndex": "freq_range_start_index",
    "mirrorWave": "mirror_wave",
    "windowInSeconds": "window_seconds",
}

_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


# ============================================================
# Configuration Loading
# ============================================================

def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load configuration from a JSON file.

    Args:
        path: Path to JSON config file, or None to skip loading

    Returns:
        Dictionary of configuration values with canonical keys,
        or empty dict if path is None

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config file isn't a valid JSON object
    """
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Config must be a JSON object at top-level.")
    return normalize_keys(data)


def normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Translate camelCase keys to config field names. Unknown keys pass through."""
    out: Dict[str, Any] = {}
    for k, v in data.items():
        out[KEY_ALIASES.get(k, k)] = v
    return out


def parse_visualizer(raw: Any) -> Optional[VisualizerConfig]:
    """Build a visualizer descriptor from a dict discriminated by "kind"/"type".

    Args:
        raw: Dict, existing descriptor, or None

    Returns:
        SpectrumVisualizer, OscilloscopeVisualizer or None

    Raises:
        ConfigError: If the kind is missing/unknown or a field is unknown
    """
    if raw is None or isinstance(raw, (SpectrumVisualizer, OscilloscopeVisualizer)):
        return raw
    if not isinstance(raw, dict):
        raise ConfigError("visualizer must be an object")

    d = {VISUALIZER_KEY_ALIASES.get(k, k): v for k, v in raw.items()}
    kind = d.pop("kind", None)
    cls = {"spectrum": SpectrumVisualizer, "oscilloscope": OscilloscopeVisualizer}.get(kind)
    if cls is None:
        raise ConfigError(f"visualizer type must be 'spectrum' or 'oscilloscope', got {kind!r}")

    known = {f.name for f in dataclasses.fields(cls)} - {"kind"}
    unknown = set(d) - known
    if unknown:
        raise ConfigError(f"Unknown {kind} visualizer fields: {', '.join(sorted(unknown))}")
    if "number_of_samples" in d:
        try:
            d["number_of_samples"] = int(d["number_of_samples"])
        except (TypeError, ValueError):
            raise ConfigError(f"numberOfSamples must be one of {SAMPLE_COUNTS}") from None
    return cls(**d)


def visualizer_for_kind(kind: str, base: Any) -> Dict[str, Any]:
    """Visualizer settings for a kind picked on the command line.

    Keeps the fields of `base` (the config file's visualizer) when it is
    the same kind; otherwise the kind starts from its defaults.
    """
    if isinstance(base, dict) and base.get("type", base.get("kind")) == kind:
        return dict(base)
    return {"type": kind}


def apply_overrides(base: CompositionConfig, overrides: Dict[str, Any]) -> CompositionConfig:
    """Apply configuration overrides to a base configuration.

    Unknown keys are ignored. Lists become tuples and the visualizer is
    parsed into its descriptor.

    Args:
        base: Base CompositionConfig instance
        overrides: Dictionary of configuration values to override

    Returns:
        New CompositionConfig instance with overrides applied
    """
    known = {f.name for f in dataclasses.fields(base)}
    changes: Dict[str, Any] = {}
    for k, v in normalize_keys(overrides).items():
        if k not in known:
            continue
        if k == "media" and isinstance(v, (list, tuple)):
            v = tuple(v)
        elif k == "visualizer":
            v = parse_visualizer(v)
        changes[k] = v
    return dataclasses.replace(base, **changes)


# ============================================================
# Validation
# ============================================================

def _check_range(name: str, value: Any, lo: Optional[float] = None, hi: Optional[float] = None) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    if lo is not None and value < lo:
        raise ConfigError(f"{name} must be >= {lo}, got {value}")
    if hi is not None and value > hi:
        raise ConfigError(f"{name} must be <= {hi}, got {value}")


def _check_int(name: str, value: Any, lo: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if value < lo:
        raise ConfigError(f"{name} must be >= {lo}, got {value}")


def _check_color(name: str, value: Any) -> None:
    if not isinstance(value, str) or not _COLOR_RE.match(value):
        raise ConfigError(f"{name} must be a hex color like #RRGGBB, got {value!r}")


def _validate_visualizer(vis: VisualizerConfig) -> None:
    _check_color("visualizer.color", vis.color)
    if vis.number_of_samples not in SAMPLE_COUNTS:
        raise ConfigError(f"visualizer.number_of_samples must be one of {SAMPLE_COUNTS}")
    if isinstance(vis, SpectrumVisualizer):
        _check_int("visualizer.lines_to_display", vis.lines_to_display, 0)
        _check_int("visualizer.freq_range_start_index", vis.freq_range_start_index, 0)
        if not isinstance(vis.mirror_wave, bool):
            raise ConfigError("visualizer.mirror_wave must be a boolean")
        _check_range("visualizer.bar_scale", vis.bar_scale, 0)
    else:
        _check_range("visualizer.window_seconds", vis.window_seconds, 0.1)
        _check_int("visualizer.posterization", vis.posterization, 1)
        _check_range("visualizer.amplitude", vis.amplitude, 1)
        _check_int("visualizer.padding", vis.padding, 0)


def validate_config(cfg: CompositionConfig) -> CompositionConfig:
    """Validate a configuration once, before composition setup.

    Args:
        cfg: Configuration to validate

    Returns:
        The same configuration, for chaining

    Raises:
        ConfigError: On the first invalid field
    """
    if not isinstance(cfg.audio_file, str) or not cfg.audio_file:
        raise ConfigError("audio_file is required")
    if cfg.mode not in MODES:
        raise ConfigError(f"mode must be one of {MODES}, got {cfg.mode!r}")
    if cfg.media_fit_mode not in FIT_MODES:
        raise ConfigError(f"media_fit_mode must be one of {FIT_MODES}, got {cfg.media_fit_mode!r}")

    _check_range("audio_offset_seconds", cfg.audio_offset_seconds, 0)
    _check_range("background_sound_volume", cfg.background_sound_volume, 0, 1)
    _check_range("transition_duration_seconds", cfg.transition_duration_seconds, 0.1, 2)
    _check_range("title_font_size", cfg.title_font_size, 20, 100)
    _check_int("fps", cfg.fps, 1)
    _check_int("width", cfg.width, 1)
    _check_int("height", cfg.height, 1)

    for name in ("title_color", "captions_text_color", "background_color"):
        _check_color(name, getattr(cfg, name))
    if not isinstance(cfg.title_text, str):
        raise ConfigError("title_text must be a string")
    if not isinstance(cfg.only_display_current_sentence, bool):
        raise ConfigError("only_display_current_sentence must be a boolean")
    if not isinstance(cfg.media, tuple) or not all(isinstance(m, str) and m for m in cfg.media):
        raise ConfigError("media must be a list of non-empty strings")

    if cfg.visualizer is not None:
        _validate_visualizer(cfg.visualizer)

    if cfg.mode == "audiogram":
        if cfg.visualizer is None or not cfg.cover_image:
            raise ConfigError("audiogram mode requires a visualizer and a cover image")
    return cfg


def build_config(*layers: Dict[str, Any]) -> CompositionConfig:
    """Build a validated config from defaults plus override layers, in order."""
    cfg = CompositionConfig()
    for layer in layers:
        cfg = apply_overrides(cfg, layer)
    return validate_config(cfg)
