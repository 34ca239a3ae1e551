"""
Population statistics for Project Pandora.

Statistics is the record the rendering shell reads after every generation:
per-state counts and the generation counter. PhaseStats holds the event
counters collected while the phases of one generation run.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from pandora.core.cell import CellState
from pandora.core.rules import TransitionEvent


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass
class Statistics:
    """Per-state population counts after a generation."""
    alive_count: int = 0
    mutated_count: int = 0
    warrior_count: int = 0
    dead_count: int = 0
    generation: int = 0

    @property
    def live_count(self) -> int:
        """All non-DEAD cells."""
        return self.alive_count + self.mutated_count + self.warrior_count

    @property
    def total(self) -> int:
        return self.live_count + self.dead_count

    def overlay_text(self) -> str:
        """One-line summary for the statistics overlay."""
        return (
            f"Alive: {self.alive_count} | Mutated: {self.mutated_count} | "
            f"Warrior: {self.warrior_count} | Dead: {self.dead_count} | "
            f"Cycle: {self.generation}"
        )


# ---------------------------------------------------------------------------
# Phase event counters
# ---------------------------------------------------------------------------

@dataclass
class PhaseStats:
    """Event counters collected during one generation."""
    moves: int = 0
    moves_blocked: int = 0
    displacements: int = 0
    deaths_stagnation: int = 0
    births_reproduction: int = 0
    births_transition: int = 0
    attacks: int = 0
    deaths_combat: int = 0
    deaths_reproduction: int = 0
    deaths_transition: int = 0
    mutations: int = 0
    promotions: int = 0

    @classmethod
    def counter_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def record_transition(self, event: TransitionEvent) -> None:
        if event == TransitionEvent.BORN:
            self.births_transition += 1
        elif event == TransitionEvent.DIED:
            self.deaths_transition += 1
        elif event == TransitionEvent.MUTATED:
            self.mutations += 1
        elif event == TransitionEvent.PROMOTED:
            self.promotions += 1

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.counter_names()}


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class StatisticsAggregator:
    """
    Tallies per-state counts during the transition phase.

    Usage:
        aggregator.begin()
        aggregator.tally(next_cell.state)   # once per position
        stats = aggregator.finish()         # bumps the generation counter
    """

    def __init__(self):
        self.generation: int = 0
        self._counts: dict[CellState, int] = {}
        self._last = Statistics()

    def begin(self) -> None:
        self._counts = {state: 0 for state in CellState}

    def tally(self, state: CellState) -> None:
        self._counts[state] += 1

    def finish(self) -> Statistics:
        """Close the generation: increment the counter and publish counts."""
        self.generation += 1
        self._last = Statistics(
            alive_count=self._counts.get(CellState.ALIVE, 0),
            mutated_count=self._counts.get(CellState.MUTATED, 0),
            warrior_count=self._counts.get(CellState.WARRIOR, 0),
            dead_count=self._counts.get(CellState.DEAD, 0),
            generation=self.generation,
        )
        return self._last

    def recount(self, states) -> Statistics:
        """
        Rebuild counts from an iterable of states without advancing the
        generation counter (used right after seeding the grid).
        """
        self.begin()
        for state in states:
            self.tally(CellState(state))
        self._last = Statistics(
            alive_count=self._counts[CellState.ALIVE],
            mutated_count=self._counts[CellState.MUTATED],
            warrior_count=self._counts[CellState.WARRIOR],
            dead_count=self._counts[CellState.DEAD],
            generation=self.generation,
        )
        return self._last

    @property
    def last(self) -> Statistics:
        return self._last
