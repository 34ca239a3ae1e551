"""
Reproduction for Project Pandora.

A cell whose energy exceeds the reproduction threshold places one offspring
into the first DEAD cell of its Moore neighborhood (row-major scan) and pays
the reproduction cost. The offspring inherits the parent's state, except
that a WARRIOR parent's offspring falls back to ALIVE with
warrior_demotion_probability.
"""

from __future__ import annotations

import numpy as np

from pandora.core.cell import Cell, CellState
from pandora.core.config import SimConfig
from pandora.core.grid import GridStore
from pandora.simulation.statistics import PhaseStats
from pandora.utils.spatial import MOORE_OFFSETS


class ReproductionResolver:
    """Energy-gated, one-offspring-per-generation reproduction."""

    def __init__(self, config: SimConfig):
        self.config = config

    def can_reproduce(self, cell: Cell) -> bool:
        return cell.is_alive and cell.energy > self.config.reproduction.threshold

    def offspring_state(self, parent: Cell, rng: np.random.Generator) -> CellState:
        if parent.state == CellState.WARRIOR:
            if rng.random() < self.config.reproduction.warrior_demotion_probability:
                return CellState.ALIVE
        return parent.state

    def find_nursery(self, grid: GridStore, x: int, y: int) -> tuple[int, int] | None:
        """First DEAD neighbor of (x, y) in row-major order, or None."""
        for dx, dy in MOORE_OFFSETS:
            neighbor = grid.get(x + dx, y + dy)
            if neighbor is not None and neighbor.is_dead:
                return x + dx, y + dy
        return None

    def try_reproduce(
        self,
        grid: GridStore,
        x: int, y: int,
        rng: np.random.Generator,
        stats: PhaseStats,
    ) -> bool:
        """
        Reproduce the cell at (x, y) if it has the energy and the room.

        Returns:
            True if an offspring was placed.
        """
        parent = grid.get(x, y)
        if parent is None or not self.can_reproduce(parent):
            return False

        nursery = self.find_nursery(grid, x, y)
        if nursery is None:
            return False

        rp = self.config.reproduction
        child = Cell.spawn(self.offspring_state(parent, rng), rp.offspring_energy)
        grid.set(nursery[0], nursery[1], child)
        stats.births_reproduction += 1

        if not parent.spend(rp.cost):
            stats.deaths_reproduction += 1
        return True
