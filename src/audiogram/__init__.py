"""Audiogram - deterministic frame data for audiogram and shorts videos.

This package resolves a composition (audio, captions, media, visualizer)
and computes, for any frame, everything an external compositor draws.
"""
from .cli import main
from .models import TOOL_VERSION

__version__ = TOOL_VERSION
__all__ = ["main", "__version__"]
