"""
Simulation Engine for Project Pandora.

Runs one generation as a fixed pipeline over the whole grid, each phase
scanning row-major:

  1. Reset the per-generation `has_moved` flags.
  2. Movement (including stagnation deaths).
  3. Reproduction-then-combat for every cell that was live at phase start.
  4. Transition: next state of every position computed from the grid as it
     stands after phase 3, written into the scratch buffer and tallied.
  5. Swap the scratch buffer in and advance the generation counter.

Phases 2 and 3 mutate the live grid while scanning, so earlier cells in the
scan influence later ones. Phase 4 reads one consistent grid and writes only
to the scratch buffer.

The minimal ruleset swaps in random-step movement, skips phase 3 and uses
the classic transition rule; the grid and statistics machinery is shared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from pandora.core.cell import CellView
from pandora.core.config import SimConfig
from pandora.core.grid import GridStore
from pandora.core.rules import NeighborhoodRule, make_transition_rule
from pandora.simulation.combat import CombatResolver
from pandora.simulation.movement import MovementPlanner, RandomStepPlanner
from pandora.simulation.reproduction import ReproductionResolver
from pandora.simulation.statistics import PhaseStats, Statistics, StatisticsAggregator


PHASES = ("reset", "movement", "interaction", "transition")


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    """Result of a multi-generation run."""
    config: SimConfig
    seed: int
    total_generations: int = 0
    final_statistics: Statistics = field(default_factory=Statistics)
    extinct: bool = False
    extinction_generation: Optional[int] = None
    phase_stats_history: list[PhaseStats] = field(default_factory=list)

    @property
    def final_live_count(self) -> int:
        return self.final_statistics.live_count


# ---------------------------------------------------------------------------
# Simulation Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """
    Owns the grid, the seeded random generator and the generation counter.

    Attributes:
        config: Simulation configuration.
        grid: The live GridStore (None until initialize()).
        rng: Seeded random generator shared by every phase.
        phase_stats: Event counters of the last generation.
        on_generation: Optional callback(generation, engine) after each generation.
        on_phase: Optional callback(phase_name, engine) after each phase.
    """

    def __init__(self, config: SimConfig, seed: Optional[int] = None):
        """
        Create a simulation engine.

        Args:
            config: Simulation configuration.
            seed: Random seed override. None = use config.world.seed.

        Raises:
            ValueError: If the configuration is invalid.
        """
        errors = config.validate()
        if errors:
            raise ValueError("Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors))

        self.config = config
        if seed is not None:
            self.config.world.seed = seed
        self.rng = np.random.default_rng(self.config.world.seed)

        self.grid: Optional[GridStore] = None
        self.neighborhood = NeighborhoodRule()
        self.transition_rule = make_transition_rule(self.config)

        if self.config.rules.ruleset == "minimal":
            self.planner = RandomStepPlanner(self.config)
            self.reproduction: Optional[ReproductionResolver] = None
            self.combat: Optional[CombatResolver] = None
        else:
            self.planner = MovementPlanner(self.config)
            self.reproduction = ReproductionResolver(self.config)
            self.combat = CombatResolver(self.config)

        self.aggregator = StatisticsAggregator()
        self.phase_stats = PhaseStats()
        self._accumulated_phase_stats: list[PhaseStats] = []

        self.on_generation: Optional[Callable[[int, "SimulationEngine"], None]] = None
        self.on_phase: Optional[Callable[[str, "SimulationEngine"], None]] = None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self, width: Optional[int] = None, height: Optional[int] = None) -> GridStore:
        """
        Allocate and seed the grid.

        Each cell becomes ALIVE with the initial energy with probability
        world.initial_population_ratio, otherwise DEAD.

        Raises:
            GridAllocationError: If the grid cannot be allocated.
        """
        width = self.config.world.width if width is None else width
        height = self.config.world.height if height is None else height

        grid = GridStore(width, height)
        grid.populate(
            self.rng,
            ratio=self.config.world.initial_population_ratio,
            initial_energy=self.config.energy.initial_energy,
        )
        self.grid = grid
        self.refresh_statistics()
        return grid

    def refresh_statistics(self) -> Statistics:
        """Recount states on the live grid without advancing the generation."""
        return self.aggregator.recount(self.grid.state_array().ravel().tolist())

    # ------------------------------------------------------------------
    # Generation pipeline
    # ------------------------------------------------------------------

    def advance_generation(self) -> Statistics:
        """
        Run the full pipeline once and return the new statistics.

        Raises:
            RuntimeError: If called before initialize().
        """
        if self.grid is None:
            raise RuntimeError("SimulationEngine.initialize() must be called first")

        stats = PhaseStats()
        grid = self.grid

        grid.reset_moved_flags()
        self._phase_done("reset")

        self.planner.run(grid, self.rng, stats)
        self._phase_done("movement")

        if self.reproduction is not None and self.combat is not None:
            self._interaction_phase(grid, stats)
        self._phase_done("interaction")

        result = self._transition_phase(grid, stats)
        self._phase_done("transition")

        self.phase_stats = stats
        self._accumulated_phase_stats.append(stats)

        if self.on_generation is not None:
            self.on_generation(result.generation, self)

        return result

    def _interaction_phase(self, grid: GridStore, stats: PhaseStats) -> None:
        """
        Reproduction for cells above the threshold, combat for the rest.

        Only cells live at phase start act: a slot whose cell died or was
        replaced by an offspring earlier in the scan is skipped.
        """
        actors = [(x, y, grid.get(x, y)) for x, y in grid.live_positions()]
        for x, y, cell in actors:
            if cell.is_dead or grid.get(x, y) is not cell:
                continue
            if self.reproduction.can_reproduce(cell):
                self.reproduction.try_reproduce(grid, x, y, self.rng, stats)
                continue
            self.combat.try_attack(grid, x, y, stats)

    def _transition_phase(self, grid: GridStore, stats: PhaseStats) -> Statistics:
        """Compute every next state into the scratch buffer, then swap."""
        self.aggregator.begin()
        for x, y, cell in grid.iter_cells():
            neighbors = self.neighborhood.count(grid, x, y)
            nxt, event = self.transition_rule.next_cell(cell, neighbors, self.rng)
            grid.set_scratch(x, y, nxt)
            self.aggregator.tally(nxt.state)
            stats.record_transition(event)
        grid.swap_with_scratch()
        return self.aggregator.finish()

    def _phase_done(self, phase: str) -> None:
        if self.on_phase is not None:
            self.on_phase(phase, self)

    # ------------------------------------------------------------------
    # Multi-generation run
    # ------------------------------------------------------------------

    def run(self, max_generations: int, stop_on_extinction: bool = True) -> RunResult:
        """
        Advance up to max_generations generations.

        Stops early on extinction (no live cells) when stop_on_extinction.
        """
        if self.grid is None:
            self.initialize()

        result = RunResult(config=self.config, seed=self.config.world.seed)

        generations_run = 0
        while generations_run < max_generations:
            stats = self.advance_generation()
            generations_run += 1
            if stats.live_count == 0:
                if not result.extinct:
                    result.extinct = True
                    result.extinction_generation = stats.generation
                if stop_on_extinction:
                    break

        result.total_generations = generations_run
        result.final_statistics = self.statistics()
        result.phase_stats_history = list(self._accumulated_phase_stats)
        return result

    # ------------------------------------------------------------------
    # Observer accessors
    # ------------------------------------------------------------------

    def statistics(self) -> Statistics:
        """Statistics of the last generation (or of the seeded grid)."""
        return self.aggregator.last

    def cell_at(self, x: int, y: int) -> CellView:
        """
        Read-only view of the cell at (x, y).

        Raises:
            RuntimeError: If called before initialize().
            IndexError: If (x, y) is off the grid.
        """
        if self.grid is None:
            raise RuntimeError("SimulationEngine.initialize() must be called first")
        if not self.grid.in_bounds(x, y):
            raise IndexError(
                f"Cell ({x}, {y}) outside {self.grid.width}x{self.grid.height} grid"
            )
        return self.grid.get(x, y).view()

    # ------------------------------------------------------------------
    # Accumulated statistics helpers
    # ------------------------------------------------------------------

    def get_accumulated_stats(self) -> dict[str, int]:
        """Sum the phase counters of every generation since the last reset."""
        totals = {name: 0 for name in PhaseStats.counter_names()}
        for stats in self._accumulated_phase_stats:
            for name, value in stats.as_dict().items():
                totals[name] += value
        return totals

    def reset_accumulated_stats(self) -> list[PhaseStats]:
        old = self._accumulated_phase_stats
        self._accumulated_phase_stats = []
        return old

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self.aggregator.generation

    @property
    def live_count(self) -> int:
        return self.aggregator.last.live_count

    @property
    def is_extinct(self) -> bool:
        return self.grid is not None and self.aggregator.last.live_count == 0

    @property
    def ruleset(self) -> str:
        return self.transition_rule.name

    def __repr__(self) -> str:
        return (
            f"SimulationEngine(ruleset={self.ruleset}, gen={self.generation}, "
            f"live={self.live_count})"
        )
