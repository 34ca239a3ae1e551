"""
Spatial utilities for Project Pandora.

Bounded (non-wrapping) grid math: bounds checks, clamping, neighborhood
offset enumeration in fixed scan orders, and vector helpers for movement.

All functions assume a 2D grid with dimensions (width, height) and
0-indexed (x, y) coordinates. Positions outside the grid are never
wrapped; callers skip or clamp them.
"""

from __future__ import annotations

import math
from functools import lru_cache

import numpy as np


# Up, down, left, right
CARDINAL_DIRECTIONS: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value to [low, high]."""
    return max(low, min(high, value))


def in_bounds(x: int, y: int, width: int, height: int) -> bool:
    """True if (x, y) lies on the grid."""
    return 0 <= x < width and 0 <= y < height


def clamp_position(x: int, y: int, width: int, height: int) -> tuple[int, int]:
    """
    Clamp (x, y) to the grid edges.

    Args:
        x, y: Raw coordinates (may be negative or >= dimensions).
        width, height: Grid dimensions.

    Returns:
        (x, y) within [0, width) and [0, height).
    """
    return int(clamp(x, 0, width - 1)), int(clamp(y, 0, height - 1))


@lru_cache(maxsize=None)
def square_offsets(radius: int) -> tuple[tuple[int, int], ...]:
    """
    All (dx, dy) offsets with max(|dx|, |dy|) <= radius, excluding (0, 0).

    Row-major order: dy outer loop, dx inner loop, both ascending.
    """
    return tuple(
        (dx, dy)
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
        if not (dx == 0 and dy == 0)
    )


# Moore neighborhood (8 cells) in row-major order
MOORE_OFFSETS: tuple[tuple[int, int], ...] = square_offsets(1)


@lru_cache(maxsize=None)
def ring_offsets(radius: int) -> tuple[tuple[int, int], ...]:
    """Offsets at Chebyshev distance exactly `radius`, row-major."""
    return tuple(
        (dx, dy) for dx, dy in square_offsets(radius)
        if max(abs(dx), abs(dy)) == radius
    )


@lru_cache(maxsize=None)
def outward_offsets(max_range: int) -> tuple[tuple[int, int], ...]:
    """
    Offsets scanned outward: ring 1 first, then ring 2, ... up to max_range.

    Within a ring the order is row-major. This is the fixed scan order
    used when a cell looks for the nearest qualifying target.
    """
    offsets: list[tuple[int, int]] = []
    for r in range(1, max_range + 1):
        offsets.extend(ring_offsets(r))
    return tuple(offsets)


def normalize(vx: float, vy: float) -> tuple[float, float]:
    """Scale (vx, vy) to unit length. The zero vector is returned unchanged."""
    norm = math.hypot(vx, vy)
    if norm == 0.0:
        return 0.0, 0.0
    return vx / norm, vy / norm


def random_cardinal(rng: np.random.Generator) -> tuple[int, int]:
    """Pick one of up/down/left/right uniformly."""
    return CARDINAL_DIRECTIONS[int(rng.integers(0, len(CARDINAL_DIRECTIONS)))]
