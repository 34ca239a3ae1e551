"""
Neighborhood counting and state transition rules for Project Pandora.

Two rule sets share the same Moore-neighborhood backbone:

  - FullTransitionRule: energy economy (upkeep, crowding penalty), warrior
    promotion and mutation on survival, birth on exactly three neighbors.
  - MinimalTransitionRule: the classic three-state rule with no energy.

A rule never touches the grid. It receives the current cell and its
neighbor counts and returns a brand-new Cell for the scratch buffer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

import numpy as np

from pandora.core.cell import Cell, CellState
from pandora.core.config import SimConfig
from pandora.core.grid import GridStore
from pandora.utils.spatial import MOORE_OFFSETS


# Live cells stay inside this neighbor band without paying the crowding penalty
SURVIVAL_BAND: tuple[int, int] = (2, 3)
BIRTH_COUNT: int = 3


# ---------------------------------------------------------------------------
# Neighborhood
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NeighborCounts:
    """Moore-neighborhood occupancy around one position."""
    live: int = 0       # any non-DEAD state
    alive: int = 0
    mutated: int = 0
    warrior: int = 0


class NeighborhoodRule:
    """Counts occupied cells among the 8 neighbors, skipping off-grid positions."""

    @staticmethod
    def count(grid: GridStore, x: int, y: int) -> NeighborCounts:
        """Per-state neighbor counts (live = alive + mutated + warrior)."""
        alive = mutated = warrior = 0
        for dx, dy in MOORE_OFFSETS:
            cell = grid.get(x + dx, y + dy)
            if cell is None:
                continue
            if cell.state == CellState.ALIVE:
                alive += 1
            elif cell.state == CellState.MUTATED:
                mutated += 1
            elif cell.state == CellState.WARRIOR:
                warrior += 1
        return NeighborCounts(
            live=alive + mutated + warrior,
            alive=alive,
            mutated=mutated,
            warrior=warrior,
        )


# ---------------------------------------------------------------------------
# Transition outcome
# ---------------------------------------------------------------------------

class TransitionEvent(Enum):
    """What happened to a cell during the transition phase."""
    NONE = auto()
    BORN = auto()
    DIED = auto()
    MUTATED = auto()
    PROMOTED = auto()


class StateTransitionRule:
    """Base class: compute the next-generation cell for one position."""

    name: str = "base"

    def __init__(self, config: SimConfig):
        self.config = config

    def next_cell(
        self,
        cell: Cell,
        neighbors: NeighborCounts,
        rng: np.random.Generator,
    ) -> tuple[Cell, TransitionEvent]:
        raise NotImplementedError

    def _born(self, state: CellState) -> Cell:
        return Cell.spawn(state, self.config.energy.initial_energy)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# ---------------------------------------------------------------------------
# Full (energy economy) rule
# ---------------------------------------------------------------------------

class FullTransitionRule(StateTransitionRule):
    """
    Energy-economy transition.

    Live cell:
      1. pay upkeep; dead at energy <= 0
      2. outside the [2, 3] band pay the crowding penalty; dead at energy <= 0
      3. energy > warrior_threshold and promotion roll -> WARRIOR
         else spontaneous roll -> WARRIOR
         else mutation roll -> MUTATED
         else keep state
    Dead cell:
      exactly 3 live neighbors -> born (MUTATED on the birth mutation roll,
      otherwise ALIVE) with the initial energy.

    Age increments while the state is unchanged and resets on any change.
    """

    name = "full"

    def next_cell(
        self,
        cell: Cell,
        neighbors: NeighborCounts,
        rng: np.random.Generator,
    ) -> tuple[Cell, TransitionEvent]:
        if cell.is_dead:
            if neighbors.live == BIRTH_COUNT:
                mutated = rng.random() < self.config.mutation.birth_mutation_probability
                return self._born(CellState.MUTATED if mutated else CellState.ALIVE), TransitionEvent.BORN
            return Cell(), TransitionEvent.NONE

        energy = self.config.energy
        mutation = self.config.mutation
        nxt = cell.copy()

        if not nxt.spend(energy.upkeep):
            return nxt, TransitionEvent.DIED

        low, high = SURVIVAL_BAND
        if not (low <= neighbors.live <= high):
            if not nxt.spend(energy.crowding_penalty):
                return nxt, TransitionEvent.DIED

        event = TransitionEvent.NONE
        if nxt.energy > mutation.warrior_threshold and rng.random() < mutation.warrior_promotion_probability:
            nxt.state = CellState.WARRIOR
        elif rng.random() < mutation.spontaneous_warrior_probability:
            nxt.state = CellState.WARRIOR
        elif rng.random() < mutation.mutation_probability:
            nxt.state = CellState.MUTATED

        if nxt.state != cell.state:
            event = TransitionEvent.PROMOTED if nxt.state == CellState.WARRIOR else TransitionEvent.MUTATED
            nxt.age = 0
        else:
            nxt.age = cell.age + 1

        return nxt, event


# ---------------------------------------------------------------------------
# Minimal (classic) rule
# ---------------------------------------------------------------------------

class MinimalTransitionRule(StateTransitionRule):
    """
    Classic three-state rule, counting ALIVE and MUTATED neighbors apart.

      ALIVE:   alive < 2 or alive > 3 -> DEAD; mutated > 1 -> MUTATED
      MUTATED: alive == 3 -> ALIVE
      DEAD:    alive == 3 -> ALIVE

    Energy is left untouched; newborns receive the initial energy so the
    non-negative energy invariant holds.
    """

    name = "minimal"

    def next_cell(
        self,
        cell: Cell,
        neighbors: NeighborCounts,
        rng: np.random.Generator,
    ) -> tuple[Cell, TransitionEvent]:
        alive_n = neighbors.alive

        if cell.is_dead:
            if alive_n == BIRTH_COUNT:
                return self._born(CellState.ALIVE), TransitionEvent.BORN
            return Cell(), TransitionEvent.NONE

        nxt = cell.copy()
        if cell.state == CellState.MUTATED:
            new_state = CellState.ALIVE if alive_n == BIRTH_COUNT else CellState.MUTATED
        elif alive_n < SURVIVAL_BAND[0] or alive_n > SURVIVAL_BAND[1]:
            nxt.kill()
            return nxt, TransitionEvent.DIED
        elif neighbors.mutated > 1:
            new_state = CellState.MUTATED
        else:
            new_state = cell.state

        event = TransitionEvent.NONE
        if new_state != cell.state:
            nxt.state = new_state
            nxt.age = 0
            if new_state == CellState.MUTATED:
                event = TransitionEvent.MUTATED
        else:
            nxt.age = cell.age + 1
        return nxt, event


def make_transition_rule(config: SimConfig) -> StateTransitionRule:
    """Build the transition rule selected by config.rules.ruleset."""
    if config.rules.ruleset == "minimal":
        return MinimalTransitionRule(config)
    return FullTransitionRule(config)
