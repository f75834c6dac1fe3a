"""Unit tests for grid geometry, pattern generation and cell colouring."""
import random
import re

import pytest

from memorygrid.trials.constants import COLOR
from memorygrid.trials.constants import MONOCHROME
from memorygrid.trials.constants import MONOCHROME_CELL_COLOR
from memorygrid.trials.patterns import cell_colors
from memorygrid.trials.patterns import generate_pattern
from memorygrid.trials.patterns import grid_side
from memorygrid.trials.patterns import pattern_size

HSL_RE = re.compile(r"^hsl\((\d+), (\d+)%, (\d+)%\)$")


class TestGridGeometry:
    @pytest.mark.parametrize(
        "level,side",
        [(0, 3), (1, 3), (2, 3), (3, 4), (5, 4), (6, 5), (17, 8), (18, 9), (40, 9)],
    )
    def test_grid_side(self, level, side):
        assert grid_side(level) == side

    def test_pattern_size_is_level_plus_two(self):
        assert pattern_size(1, 9) == 3
        assert pattern_size(4, 16) == 6

    def test_pattern_size_clamped_to_cells(self):
        assert pattern_size(100, 81) == 81


class TestGeneratePattern:
    def test_cells_are_distinct_and_in_range(self):
        rng = random.Random(3)
        for level in range(0, 30):
            side = grid_side(level)
            pattern = generate_pattern(rng, level)
            assert len(pattern) == len(set(pattern))
            assert len(pattern) == pattern_size(level, side * side)
            assert all(0 <= idx < side * side for idx in pattern)

    def test_same_seed_same_pattern(self):
        assert generate_pattern(random.Random(11), 4) == generate_pattern(random.Random(11), 4)


class TestCellColors:
    def test_monochrome_cells_are_white(self):
        colors = cell_colors(random.Random(1), (0, 4, 8), MONOCHROME)
        assert colors == {0: MONOCHROME_CELL_COLOR, 4: MONOCHROME_CELL_COLOR, 8: MONOCHROME_CELL_COLOR}

    def test_color_cells_in_hsl_ranges(self):
        colors = cell_colors(random.Random(2), tuple(range(40)), COLOR)
        assert set(colors) == set(range(40))
        for value in colors.values():
            hue, saturation, lightness = (int(x) for x in HSL_RE.match(value).groups())
            assert 0 <= hue <= 359
            assert 70 <= saturation <= 100
            assert 50 <= lightness <= 70
