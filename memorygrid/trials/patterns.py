"""Grid geometry, stimulus pattern generation and cell colouring.

Pure functions; randomness always comes from the caller's ``random.Random``
so a seeded generator reproduces a session exactly.
"""
from __future__ import annotations

import random

from memorygrid.trials.constants import COLOR
from memorygrid.trials.constants import MAX_GRID_SIDE
from memorygrid.trials.constants import MIN_GRID_SIDE
from memorygrid.trials.constants import MONOCHROME_CELL_COLOR


def grid_side(level: int) -> int:
    """Return the number of cells per grid side for *level* (3x3 up to 9x9)."""
    return min(MIN_GRID_SIDE + level // 3, MAX_GRID_SIDE)


def pattern_size(level: int, cell_count: int) -> int:
    """Return how many cells light up at *level*, clamped to the grid capacity."""
    return max(0, min(level + 2, cell_count))


def generate_pattern(rng: random.Random, level: int, side: int | None = None) -> tuple[int, ...]:
    """Pick distinct cell indices uniformly at random without replacement."""
    if side is None:
        side = grid_side(level)
    cell_count = side * side
    return tuple(rng.sample(range(cell_count), pattern_size(level, cell_count)))


def random_hsl(rng: random.Random) -> str:
    hue = rng.randrange(360)
    saturation = 70 + rng.randrange(31)
    lightness = 50 + rng.randrange(21)
    return f"hsl({hue}, {saturation}%, {lightness}%)"


def cell_colors(rng: random.Random, pattern, condition: str) -> dict[int, str]:
    """Map each lit cell to its display colour for *condition*.

    Colour rounds draw an independent hue/saturation/lightness per cell;
    monochrome rounds light every cell white.
    """
    if condition == COLOR:
        return {idx: random_hsl(rng) for idx in pattern}
    return {idx: MONOCHROME_CELL_COLOR for idx in pattern}
