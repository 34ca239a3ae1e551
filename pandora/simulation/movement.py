"""
Movement phase for Project Pandora.

MovementPlanner (full ruleset) steers each live cell with momentum plus an
attraction/repulsion field:

    field     = sum over positions within field_radius of  +/- (dx, dy) / d^2
                (+ toward DEAD cells, - away from live cells)
    direction = normalize(momentum_weight * previous
                          + field_weight * field
                          + uniform jitter)
    speed     = min(energy / speed_divisor, max_speed)
    target    = clamp(position + round(direction * speed))

A DEAD target is always taken. An occupied target is taken with
displacement_probability and its occupant is discarded without any combat
bookkeeping. A cell that fails to relocate accumulates stagnant cycles and
is killed when it reaches max_stagnant_cycles.

RandomStepPlanner (minimal ruleset) moves one step up/down/left/right into
a DEAD cell, or stays put.

Both planners scan the grid row-major and mutate it in place, so a cell
visited later in the scan sees the moves of earlier cells.
"""

from __future__ import annotations

import numpy as np

from pandora.core.cell import Cell
from pandora.core.config import SimConfig
from pandora.core.grid import GridStore
from pandora.simulation.statistics import PhaseStats
from pandora.utils.spatial import (
    clamp_position,
    normalize,
    random_cardinal,
    square_offsets,
)


def relocate(grid: GridStore, x: int, y: int, tx: int, ty: int) -> Cell:
    """
    Move the cell at (x, y) to (tx, ty) and leave a fresh DEAD cell behind.

    Whatever occupied (tx, ty) is dropped. Returns the moved cell.
    """
    mover = grid.get(x, y)
    grid.set(tx, ty, mover)
    grid.set(x, y, Cell())
    mover.has_moved = True
    mover.stagnant_cycles = 0
    return mover


class MovementPlanner:
    """Momentum and field driven movement with stagnation death."""

    def __init__(self, config: SimConfig):
        self.config = config

    def run(self, grid: GridStore, rng: np.random.Generator, stats: PhaseStats) -> None:
        """Movement phase over every live, not-yet-moved cell (row-major)."""
        for x, y in grid.iter_positions():
            cell = grid.get(x, y)
            if cell.is_dead or cell.has_moved:
                continue
            self.attempt(grid, x, y, rng, stats)

    # ------------------------------------------------------------------
    # Per-cell planning
    # ------------------------------------------------------------------

    def speed(self, cell: Cell) -> float:
        mv = self.config.movement
        return min(cell.energy / mv.speed_divisor, mv.max_speed)

    def field_vector(self, grid: GridStore, x: int, y: int) -> tuple[float, float]:
        """Attraction toward DEAD cells, repulsion from live ones, 1/d^2 weighted."""
        fx = 0.0
        fy = 0.0
        for dx, dy in square_offsets(self.config.movement.field_radius):
            neighbor = grid.get(x + dx, y + dy)
            if neighbor is None:
                continue
            weight = 1.0 / (dx * dx + dy * dy)
            if neighbor.is_dead:
                fx += dx * weight
                fy += dy * weight
            else:
                fx -= dx * weight
                fy -= dy * weight
        return fx, fy

    def plan_direction(
        self,
        grid: GridStore,
        x: int, y: int,
        cell: Cell,
        rng: np.random.Generator,
    ) -> tuple[float, float]:
        mv = self.config.movement
        fx, fy = self.field_vector(grid, x, y)
        jx, jy = rng.uniform(-mv.jitter, mv.jitter, size=2) if mv.jitter > 0 else (0.0, 0.0)
        px, py = cell.direction
        return normalize(
            mv.momentum_weight * px + mv.field_weight * fx + float(jx),
            mv.momentum_weight * py + mv.field_weight * fy + float(jy),
        )

    def target(self, grid: GridStore, x: int, y: int, cell: Cell) -> tuple[int, int]:
        speed = self.speed(cell)
        dx, dy = cell.direction
        return clamp_position(
            x + int(np.rint(dx * speed)),
            y + int(np.rint(dy * speed)),
            grid.width, grid.height,
        )

    def attempt(
        self,
        grid: GridStore,
        x: int, y: int,
        rng: np.random.Generator,
        stats: PhaseStats,
    ) -> bool:
        """
        Try to relocate the cell at (x, y).

        Returns:
            True if the cell relocated.
        """
        mv = self.config.movement
        cell = grid.get(x, y)

        if cell.stagnant_cycles >= mv.max_stagnant_cycles:
            cell.kill()
            stats.deaths_stagnation += 1
            return False

        cell.direction = self.plan_direction(grid, x, y, cell, rng)
        tx, ty = self.target(grid, x, y, cell)

        moved = False
        if (tx, ty) != (x, y):
            occupant = grid.get(tx, ty)
            if occupant.is_dead:
                moved = True
            elif rng.random() < mv.displacement_probability:
                moved = True
                stats.displacements += 1

        if moved:
            relocate(grid, x, y, tx, ty)
            stats.moves += 1
            return True

        cell.stagnant_cycles += 1
        stats.moves_blocked += 1
        if cell.stagnant_cycles >= mv.max_stagnant_cycles:
            cell.kill()
            stats.deaths_stagnation += 1
        return False

    def __repr__(self) -> str:
        return "MovementPlanner()"


class RandomStepPlanner:
    """One random cardinal step into an empty cell; no energy, no stagnation."""

    def __init__(self, config: SimConfig):
        self.config = config

    def run(self, grid: GridStore, rng: np.random.Generator, stats: PhaseStats) -> None:
        for x, y in grid.iter_positions():
            cell = grid.get(x, y)
            if cell.is_dead or cell.has_moved:
                continue
            self.attempt(grid, x, y, rng, stats)

    def attempt(
        self,
        grid: GridStore,
        x: int, y: int,
        rng: np.random.Generator,
        stats: PhaseStats,
    ) -> bool:
        dx, dy = random_cardinal(rng)
        target = grid.get(x + dx, y + dy)
        if target is not None and target.is_dead:
            relocate(grid, x, y, x + dx, y + dy)
            stats.moves += 1
            return True
        stats.moves_blocked += 1
        return False

    def __repr__(self) -> str:
        return "RandomStepPlanner()"
