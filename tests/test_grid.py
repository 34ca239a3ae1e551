"""
Unit tests for Cell, GridStore and the spatial helpers.

Tests cover:
- Cell energy accounting and death
- Grid allocation, seeding and bounds-checked access
- Scratch buffer swap
- Array views
- Neighborhood offset scan orders, clamping, normalization
"""

import numpy as np
import pytest

from pandora.core.cell import Cell, CellState, CellView
from pandora.core.grid import GridAllocationError, GridStore
from pandora.utils.spatial import (
    MOORE_OFFSETS,
    clamp_position,
    in_bounds,
    normalize,
    outward_offsets,
    random_cardinal,
    ring_offsets,
    square_offsets,
)


# ---------------------------------------------------------------------------
# Cell
# ---------------------------------------------------------------------------

class TestCell:

    def test_default_cell_is_dead(self):
        cell = Cell()
        assert cell.is_dead
        assert cell.energy == 0
        assert cell.age == 0

    def test_spawn(self):
        cell = Cell.spawn(CellState.MUTATED, 50)
        assert cell.state == CellState.MUTATED
        assert cell.energy == 50
        assert cell.age == 0
        assert cell.direction == (0.0, 0.0)
        assert cell.attack_cooldown == 0

    def test_spend_survives(self):
        cell = Cell.spawn(CellState.ALIVE, 10)
        assert cell.spend(9) is True
        assert cell.energy == 1

    def test_spend_to_zero_kills(self):
        cell = Cell.spawn(CellState.WARRIOR, 10)
        cell.age = 4
        cell.attack_cooldown = 2
        assert cell.spend(10) is False
        assert cell.is_dead
        assert cell.energy == 0
        assert cell.age == 0
        assert cell.attack_cooldown == 0

    def test_copy_is_independent_and_clears_moved_flag(self):
        cell = Cell.spawn(CellState.ALIVE, 10)
        cell.has_moved = True
        clone = cell.copy()
        clone.energy = 3
        assert cell.energy == 10
        assert clone.has_moved is False

    def test_view(self):
        cell = Cell.spawn(CellState.ALIVE, 12)
        cell.age = 3
        assert cell.view() == CellView(state=CellState.ALIVE, age=3, energy=12)


# ---------------------------------------------------------------------------
# GridStore
# ---------------------------------------------------------------------------

class TestGridStore:

    def test_new_grid_is_all_dead(self):
        grid = GridStore(4, 3)
        assert grid.total_cells == 12
        assert grid.live_count == 0

    @pytest.mark.parametrize("width,height", [(0, 5), (5, 0), (-1, 3)])
    def test_bad_dimensions_raise(self, width, height):
        with pytest.raises(GridAllocationError):
            GridStore(width, height)

    def test_allocation_error_is_runtime_error(self):
        assert issubclass(GridAllocationError, RuntimeError)

    def test_populate_ratio_extremes(self):
        rng = np.random.default_rng(0)
        grid = GridStore(6, 5)
        assert grid.populate(rng, ratio=0.0, initial_energy=100) == 0
        assert grid.live_count == 0
        assert grid.populate(rng, ratio=1.0, initial_energy=100) == 30
        assert all(c.state == CellState.ALIVE and c.energy == 100 for _, _, c in grid.iter_cells())

    def test_populate_ratio_is_roughly_respected(self):
        grid = GridStore(100, 100)
        placed = grid.populate(np.random.default_rng(1), ratio=0.25, initial_energy=100)
        assert 2200 < placed < 2800

    def test_out_of_bounds_access(self):
        grid = GridStore(3, 3)
        assert grid.get(-1, 0) is None
        assert grid.get(3, 0) is None
        grid.set(5, 5, Cell.spawn(CellState.ALIVE, 1))
        assert grid.live_count == 0

    def test_set_and_get(self):
        grid = GridStore(3, 3)
        cell = Cell.spawn(CellState.ALIVE, 7)
        grid.set(2, 1, cell)
        assert grid.get(2, 1) is cell
        assert grid.live_positions() == [(2, 1)]

    def test_live_positions_are_row_major(self):
        grid = GridStore(3, 3)
        for x, y in [(2, 0), (0, 1), (1, 0)]:
            grid.set(x, y, Cell.spawn(CellState.ALIVE, 1))
        assert grid.live_positions() == [(1, 0), (2, 0), (0, 1)]

    def test_swap_with_scratch(self):
        grid = GridStore(2, 2)
        for x, y in grid.iter_positions():
            grid.set_scratch(x, y, Cell.spawn(CellState.MUTATED, 5))
        grid.swap_with_scratch()
        assert grid.live_count == 4
        assert grid.get(1, 1).state == CellState.MUTATED

    def test_array_views(self):
        grid = GridStore(4, 2)
        cell = Cell.spawn(CellState.WARRIOR, 42)
        cell.age = 6
        grid.set(3, 1, cell)
        assert grid.state_array().shape == (2, 4)
        assert grid.state_array()[1, 3] == int(CellState.WARRIOR)
        assert grid.energy_array()[1, 3] == 42
        assert grid.age_array()[1, 3] == 6
        assert grid.energy_array().sum() == 42

    def test_reset_moved_flags(self):
        grid = GridStore(2, 1)
        grid.get(0, 0).has_moved = True
        grid.reset_moved_flags()
        assert not any(c.has_moved for _, _, c in grid.iter_cells())


# ---------------------------------------------------------------------------
# Spatial helpers
# ---------------------------------------------------------------------------

class TestSpatial:

    def test_moore_offsets_row_major(self):
        assert MOORE_OFFSETS == (
            (-1, -1), (0, -1), (1, -1),
            (-1, 0), (1, 0),
            (-1, 1), (0, 1), (1, 1),
        )

    def test_square_offsets_size(self):
        assert len(square_offsets(2)) == 24
        assert (0, 0) not in square_offsets(2)

    def test_ring_offsets(self):
        ring = ring_offsets(2)
        assert len(ring) == 16
        assert all(max(abs(dx), abs(dy)) == 2 for dx, dy in ring)
        assert ring[0] == (-2, -2)

    def test_outward_offsets_start_with_inner_ring(self):
        offsets = outward_offsets(2)
        assert len(offsets) == 24
        assert offsets[:8] == MOORE_OFFSETS

    def test_clamp_position(self):
        assert clamp_position(-3, 7, 5, 5) == (0, 4)
        assert clamp_position(2, 2, 5, 5) == (2, 2)

    def test_in_bounds(self):
        assert in_bounds(0, 0, 1, 1)
        assert not in_bounds(1, 0, 1, 1)

    def test_normalize(self):
        assert normalize(3.0, 4.0) == pytest.approx((0.6, 0.8))
        assert normalize(0.0, 0.0) == (0.0, 0.0)

    def test_random_cardinal_is_unit_step(self):
        rng = np.random.default_rng(3)
        for _ in range(20):
            dx, dy = random_cardinal(rng)
            assert abs(dx) + abs(dy) == 1
