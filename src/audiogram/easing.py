#!/usr/bin/env python3
"""Interpolation and easing curves for audiogram.

All animation in the composition is expressed as a clamped two-point
interpolation of the current frame, optionally shaped by an easing curve.
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence

EasingFn = Callable[[float], float]


# ============================================================
# Curves
# ============================================================

def linear(t: float) -> float:
    return t


def quad(t: float) -> float:
    return t * t


def cubic(t: float) -> float:
    return t * t * t


def ease_in(fn: EasingFn) -> EasingFn:
    """Run an easing curve forwards (slow start)."""
    return fn


def ease_out(fn: EasingFn) -> EasingFn:
    """Run an easing curve backwards (slow end)."""
    def out(t: float) -> float:
        return 1.0 - fn(1.0 - t)
    return out


def ease_in_out(fn: EasingFn) -> EasingFn:
    """Apply an easing curve symmetrically around the midpoint."""
    def in_out(t: float) -> float:
        if t < 0.5:
            return fn(t * 2.0) / 2.0
        return 1.0 - fn((1.0 - t) * 2.0) / 2.0
    return in_out


# ============================================================
# Cubic Bezier
# ============================================================

_NEWTON_ITERATIONS = 8
_NEWTON_MIN_SLOPE = 1e-3
_SUBDIVISION_PRECISION = 1e-7
_SUBDIVISION_MAX_ITERATIONS = 20


def _bezier_coord(t: float, p1: float, p2: float) -> float:
    # B(t) for a curve anchored at 0 and 1
    return ((1.0 - 3.0 * p2 + 3.0 * p1) * t + (3.0 * p2 - 6.0 * p1)) * t * t + 3.0 * p1 * t


def _bezier_slope(t: float, p1: float, p2: float) -> float:
    return 3.0 * (1.0 - 3.0 * p2 + 3.0 * p1) * t * t + 2.0 * (3.0 * p2 - 6.0 * p1) * t + 3.0 * p1


def bezier(x1: float, y1: float, x2: float, y2: float) -> EasingFn:
    """Build a CSS-style cubic-bezier easing curve.

    Solves x(t) = progress with Newton's method, falling back to bisection
    where the curve is too flat, then evaluates y(t).

    Args:
        x1, y1: First control point (x1 must be in [0, 1])
        x2, y2: Second control point (x2 must be in [0, 1])

    Returns:
        Easing function mapping [0, 1] -> roughly [0, 1]
    """
    if not (0.0 <= x1 <= 1.0 and 0.0 <= x2 <= 1.0):
        raise ValueError("bezier x values must be in [0, 1]")

    if x1 == y1 and x2 == y2:
        return linear

    def solve_t(x: float) -> float:
        t = x
        for _ in range(_NEWTON_ITERATIONS):
            slope = _bezier_slope(t, x1, x2)
            if abs(slope) < _NEWTON_MIN_SLOPE:
                break
            err = _bezier_coord(t, x1, x2) - x
            t -= err / slope
        else:
            return t

        lo, hi = 0.0, 1.0
        t = x
        for _ in range(_SUBDIVISION_MAX_ITERATIONS):
            err = _bezier_coord(t, x1, x2) - x
            if abs(err) < _SUBDIVISION_PRECISION:
                break
            if err > 0:
                hi = t
            else:
                lo = t
            t = (lo + hi) / 2.0
        return t

    def curve(x: float) -> float:
        if x <= 0.0:
            return 0.0
        if x >= 1.0:
            return 1.0
        return _bezier_coord(solve_t(x), y1, y2)

    return curve


# slide curves used by the media sequencer
ENTER_SLIDE = bezier(0.25, 0.46, 0.45, 0.94)
EXIT_SLIDE = bezier(0.55, 0.06, 0.68, 0.19)


# ============================================================
# Interpolation
# ============================================================

def interpolate(
    x: float,
    input_range: Sequence[float],
    output_range: Sequence[float],
    easing: Optional[EasingFn] = None,
) -> float:
    """Map x from input_range to output_range, clamped at both ends.

    Args:
        x: Input value (usually the current frame)
        input_range: (start, end) of the input
        output_range: (start, end) of the output
        easing: Optional easing applied to the normalized progress

    Returns:
        Interpolated value; x outside input_range is clamped to its ends
    """
    in_start, in_end = input_range
    out_start, out_end = output_range
    if in_end == in_start:
        return out_end if x >= in_end else out_start

    progress = (x - in_start) / (in_end - in_start)
    progress = min(1.0, max(0.0, progress))
    if easing is not None:
        progress = easing(progress)
    return out_start + (out_end - out_start) * progress
