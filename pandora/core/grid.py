"""
GridStore for Project Pandora.

Owns the fixed width x height array of cells plus a scratch buffer into
which the transition phase writes the next generation. All coordinate
access is bounds-checked: out-of-range reads return None and out-of-range
writes are ignored, so neighborhood scans can run past the edges freely.

The grid does not wrap. Position (0, 0) is the top-left corner; the live
array is indexed as _cells[y][x].
"""

from __future__ import annotations

from typing import Iterator, Optional

import numpy as np
from numpy.typing import NDArray

from pandora.core.cell import Cell, CellState
from pandora.utils.spatial import in_bounds


class GridAllocationError(RuntimeError):
    """Raised when the grid (or its scratch buffer) cannot be allocated."""


class GridStore:
    """
    The simulation grid: one Cell per position, plus a scratch buffer.

    Attributes:
        width: Number of columns.
        height: Number of rows.
    """

    def __init__(self, width: int, height: int):
        """
        Allocate a grid of DEAD cells and its scratch buffer.

        Raises:
            GridAllocationError: If either buffer cannot be allocated.
        """
        if width < 1 or height < 1:
            raise GridAllocationError(f"Grid dimensions must be positive, got {width}x{height}")

        self.width = width
        self.height = height
        try:
            self._cells: list[list[Cell]] = self._allocate()
            self._scratch: list[list[Cell]] = self._allocate()
        except MemoryError as exc:
            raise GridAllocationError(
                f"Could not allocate a {width}x{height} grid"
            ) from exc

    def _allocate(self) -> list[list[Cell]]:
        return [[Cell() for _ in range(self.width)] for _ in range(self.height)]

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def populate(self, rng: np.random.Generator, ratio: float, initial_energy: int) -> int:
        """
        Seed every position: ALIVE with probability `ratio`, else DEAD.

        Returns:
            Number of live cells placed.
        """
        rolls = rng.random((self.height, self.width))
        placed = 0
        for y in range(self.height):
            row = self._cells[y]
            for x in range(self.width):
                if rolls[y, x] < ratio:
                    row[x] = Cell.spawn(CellState.ALIVE, initial_energy)
                    placed += 1
                else:
                    row[x] = Cell()
        return placed

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return in_bounds(x, y, self.width, self.height)

    def get(self, x: int, y: int) -> Optional[Cell]:
        """Cell at (x, y), or None if off the grid."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return self._cells[y][x]
        return None

    def set(self, x: int, y: int, cell: Cell) -> None:
        """Place a cell at (x, y). Off-grid writes are ignored."""
        if 0 <= x < self.width and 0 <= y < self.height:
            self._cells[y][x] = cell

    def set_scratch(self, x: int, y: int, cell: Cell) -> None:
        """Write a next-generation cell into the scratch buffer."""
        if 0 <= x < self.width and 0 <= y < self.height:
            self._scratch[y][x] = cell

    def swap_with_scratch(self) -> None:
        """
        Make the scratch buffer the live grid.

        The old live buffer becomes the next scratch buffer; every slot of it
        is overwritten by the following transition phase before it is read.
        """
        self._cells, self._scratch = self._scratch, self._cells

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def iter_positions(self) -> Iterator[tuple[int, int]]:
        """All positions in row-major order (y outer, x inner)."""
        for y in range(self.height):
            for x in range(self.width):
                yield x, y

    def iter_cells(self) -> Iterator[tuple[int, int, Cell]]:
        """(x, y, cell) for every position, row-major."""
        for y, row in enumerate(self._cells):
            for x, cell in enumerate(row):
                yield x, y, cell

    def live_positions(self) -> list[tuple[int, int]]:
        """Positions of non-DEAD cells, row-major (snapshot list)."""
        return [(x, y) for x, y, cell in self.iter_cells() if cell.is_alive]

    def reset_moved_flags(self) -> None:
        for row in self._cells:
            for cell in row:
                cell.has_moved = False

    # ------------------------------------------------------------------
    # Array views (for metrics and rendering)
    # ------------------------------------------------------------------

    def state_array(self) -> NDArray[np.int8]:
        """(height, width) array of CellState values."""
        return np.array(
            [[int(cell.state) for cell in row] for row in self._cells],
            dtype=np.int8,
        )

    def energy_array(self) -> NDArray[np.int64]:
        return np.array([[cell.energy for cell in row] for row in self._cells], dtype=np.int64)

    def age_array(self) -> NDArray[np.int64]:
        return np.array([[cell.age for cell in row] for row in self._cells], dtype=np.int64)

    @property
    def total_cells(self) -> int:
        """Number of slots currently held by the live buffer."""
        return sum(len(row) for row in self._cells)

    @property
    def live_count(self) -> int:
        return sum(1 for _, _, cell in self.iter_cells() if cell.is_alive)

    def __repr__(self) -> str:
        return f"GridStore(size={self.width}x{self.height}, live={self.live_count})"
