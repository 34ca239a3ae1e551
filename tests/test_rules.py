"""
Unit tests for neighbor counting and the transition rules.

Tests cover:
- Moore-neighborhood counting at edges and per state
- Full rule: upkeep, crowding penalty, death, birth, mutation and
  warrior promotion, age bookkeeping
- Birth mutation rate within statistical tolerance
- Minimal rule: the classic three-state transitions
"""

import numpy as np
import pytest

from pandora.core.cell import Cell, CellState
from pandora.core.config import SimConfig
from pandora.core.grid import GridStore
from pandora.core.rules import (
    FullTransitionRule,
    MinimalTransitionRule,
    NeighborCounts,
    NeighborhoodRule,
    TransitionEvent,
    make_transition_rule,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config() -> SimConfig:
    """Defaults with every random roll switched off."""
    cfg = SimConfig()
    cfg.mutation.mutation_probability = 0.0
    cfg.mutation.birth_mutation_probability = 0.0
    cfg.mutation.warrior_promotion_probability = 0.0
    cfg.mutation.spontaneous_warrior_probability = 0.0
    return cfg


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(123)


def _counts(live: int) -> NeighborCounts:
    return NeighborCounts(live=live, alive=live)


# ---------------------------------------------------------------------------
# Neighborhood
# ---------------------------------------------------------------------------

class TestNeighborhood:

    def test_corner_only_sees_three_positions(self):
        grid = GridStore(3, 3)
        for x, y in grid.iter_positions():
            grid.set(x, y, Cell.spawn(CellState.ALIVE, 1))
        assert NeighborhoodRule.count(grid, 0, 0).live == 3
        assert NeighborhoodRule.count(grid, 1, 1).live == 8
        assert NeighborhoodRule.count(grid, 1, 0).live == 5

    def test_counts_per_state(self):
        grid = GridStore(3, 3)
        grid.set(0, 0, Cell.spawn(CellState.ALIVE, 1))
        grid.set(1, 0, Cell.spawn(CellState.MUTATED, 1))
        grid.set(2, 0, Cell.spawn(CellState.MUTATED, 1))
        grid.set(0, 2, Cell.spawn(CellState.WARRIOR, 1))
        counts = NeighborhoodRule.count(grid, 1, 1)
        assert counts == NeighborCounts(live=4, alive=1, mutated=2, warrior=1)

    def test_center_cell_is_not_counted(self):
        grid = GridStore(3, 3)
        grid.set(1, 1, Cell.spawn(CellState.ALIVE, 1))
        assert NeighborhoodRule.count(grid, 1, 1).live == 0


# ---------------------------------------------------------------------------
# Full rule
# ---------------------------------------------------------------------------

class TestFullRule:

    def test_isolated_cell_pays_upkeep_and_penalty(self, config, rng):
        rule = FullTransitionRule(config)
        nxt, event = rule.next_cell(Cell.spawn(CellState.ALIVE, 100), _counts(0), rng)
        assert nxt.state == CellState.ALIVE
        assert nxt.energy == 94
        assert event == TransitionEvent.NONE

    def test_isolated_cell_with_little_energy_dies(self, config, rng):
        rule = FullTransitionRule(config)
        nxt, event = rule.next_cell(Cell.spawn(CellState.ALIVE, 4), _counts(0), rng)
        assert nxt.state == CellState.DEAD
        assert nxt.energy == 0
        assert event == TransitionEvent.DIED

    @pytest.mark.parametrize("live", [2, 3])
    def test_inside_band_only_upkeep(self, config, rng, live):
        rule = FullTransitionRule(config)
        nxt, _ = rule.next_cell(Cell.spawn(CellState.MUTATED, 100), _counts(live), rng)
        assert nxt.energy == 99
        assert nxt.state == CellState.MUTATED

    @pytest.mark.parametrize("live", [1, 4, 8])
    def test_outside_band_pays_penalty(self, config, rng, live):
        rule = FullTransitionRule(config)
        nxt, _ = rule.next_cell(Cell.spawn(CellState.ALIVE, 100), _counts(live), rng)
        assert nxt.energy == 94

    def test_upkeep_alone_can_kill(self, config, rng):
        rule = FullTransitionRule(config)
        nxt, event = rule.next_cell(Cell.spawn(CellState.ALIVE, 1), _counts(2), rng)
        assert nxt.is_dead
        assert event == TransitionEvent.DIED

    def test_age_increments_when_state_kept(self, config, rng):
        rule = FullTransitionRule(config)
        cell = Cell.spawn(CellState.ALIVE, 100)
        cell.age = 5
        nxt, _ = rule.next_cell(cell, _counts(2), rng)
        assert nxt.age == 6

    def test_source_cell_is_not_modified(self, config, rng):
        rule = FullTransitionRule(config)
        cell = Cell.spawn(CellState.ALIVE, 100)
        nxt, _ = rule.next_cell(cell, _counts(0), rng)
        assert nxt is not cell
        assert cell.energy == 100

    def test_mutation_resets_age(self, config, rng):
        config.mutation.mutation_probability = 1.0
        rule = FullTransitionRule(config)
        cell = Cell.spawn(CellState.ALIVE, 100)
        cell.age = 9
        nxt, event = rule.next_cell(cell, _counts(2), rng)
        assert nxt.state == CellState.MUTATED
        assert nxt.age == 0
        assert event == TransitionEvent.MUTATED

    def test_promotion_needs_energy_above_threshold(self, config, rng):
        config.mutation.warrior_promotion_probability = 1.0
        config.mutation.warrior_threshold = 200
        rule = FullTransitionRule(config)

        rich, event = rule.next_cell(Cell.spawn(CellState.ALIVE, 300), _counts(2), rng)
        assert rich.state == CellState.WARRIOR
        assert event == TransitionEvent.PROMOTED

        poor, event = rule.next_cell(Cell.spawn(CellState.ALIVE, 150), _counts(2), rng)
        assert poor.state == CellState.ALIVE
        assert event == TransitionEvent.NONE

    def test_spontaneous_warrior(self, config, rng):
        config.mutation.spontaneous_warrior_probability = 1.0
        rule = FullTransitionRule(config)
        nxt, event = rule.next_cell(Cell.spawn(CellState.MUTATED, 50), _counts(3), rng)
        assert nxt.state == CellState.WARRIOR
        assert event == TransitionEvent.PROMOTED

    def test_warrior_stays_warrior(self, config, rng):
        rule = FullTransitionRule(config)
        nxt, event = rule.next_cell(Cell.spawn(CellState.WARRIOR, 50), _counts(2), rng)
        assert nxt.state == CellState.WARRIOR
        assert event == TransitionEvent.NONE

    def test_birth_on_exactly_three(self, config, rng):
        rule = FullTransitionRule(config)
        nxt, event = rule.next_cell(Cell(), _counts(3), rng)
        assert nxt.state == CellState.ALIVE
        assert nxt.energy == config.energy.initial_energy
        assert nxt.age == 0
        assert event == TransitionEvent.BORN

    @pytest.mark.parametrize("live", [0, 2, 4, 8])
    def test_no_birth_otherwise(self, config, rng, live):
        rule = FullTransitionRule(config)
        nxt, event = rule.next_cell(Cell(), _counts(live), rng)
        assert nxt.is_dead
        assert nxt.energy == 0
        assert event == TransitionEvent.NONE

    def test_birth_counts_every_live_state(self, config, rng):
        rule = FullTransitionRule(config)
        counts = NeighborCounts(live=3, alive=1, mutated=1, warrior=1)
        nxt, _ = rule.next_cell(Cell(), counts, rng)
        assert nxt.is_alive

    def test_birth_mutation_rate(self, config):
        config.mutation.birth_mutation_probability = 0.3
        rule = FullTransitionRule(config)
        rng = np.random.default_rng(2024)
        trials = 20000
        mutated = sum(
            rule.next_cell(Cell(), _counts(3), rng)[0].state == CellState.MUTATED
            for _ in range(trials)
        )
        assert abs(mutated / trials - 0.3) < 0.02


# ---------------------------------------------------------------------------
# Minimal rule
# ---------------------------------------------------------------------------

class TestMinimalRule:

    @pytest.fixture
    def rule(self, config) -> MinimalTransitionRule:
        config.rules.ruleset = "minimal"
        return MinimalTransitionRule(config)

    @pytest.mark.parametrize("alive", [0, 1, 4, 8])
    def test_alive_dies_outside_band(self, rule, rng, alive):
        nxt, event = rule.next_cell(
            Cell.spawn(CellState.ALIVE, 100), NeighborCounts(live=alive, alive=alive), rng,
        )
        assert nxt.is_dead
        assert event == TransitionEvent.DIED

    def test_alive_survives_without_energy_change(self, rule, rng):
        cell = Cell.spawn(CellState.ALIVE, 100)
        cell.age = 2
        nxt, _ = rule.next_cell(cell, NeighborCounts(live=2, alive=2), rng)
        assert nxt.state == CellState.ALIVE
        assert nxt.energy == 100
        assert nxt.age == 3

    def test_alive_mutates_among_mutants(self, rule, rng):
        counts = NeighborCounts(live=4, alive=2, mutated=2)
        nxt, event = rule.next_cell(Cell.spawn(CellState.ALIVE, 100), counts, rng)
        assert nxt.state == CellState.MUTATED
        assert nxt.age == 0
        assert event == TransitionEvent.MUTATED

    def test_mutated_reverts_on_three_alive(self, rule, rng):
        counts = NeighborCounts(live=3, alive=3)
        nxt, _ = rule.next_cell(Cell.spawn(CellState.MUTATED, 100), counts, rng)
        assert nxt.state == CellState.ALIVE

    def test_mutated_otherwise_persists(self, rule, rng):
        counts = NeighborCounts(live=0)
        nxt, _ = rule.next_cell(Cell.spawn(CellState.MUTATED, 100), counts, rng)
        assert nxt.state == CellState.MUTATED

    def test_dead_born_on_three_alive(self, rule, rng):
        nxt, event = rule.next_cell(Cell(), NeighborCounts(live=3, alive=3), rng)
        assert nxt.state == CellState.ALIVE
        assert nxt.energy == 100
        assert event == TransitionEvent.BORN

    def test_mutated_neighbors_do_not_trigger_birth(self, rule, rng):
        nxt, _ = rule.next_cell(Cell(), NeighborCounts(live=3, alive=2, mutated=1), rng)
        assert nxt.is_dead


class TestRuleFactory:

    def test_make_transition_rule(self, config):
        assert isinstance(make_transition_rule(config), FullTransitionRule)
        config.rules.ruleset = "minimal"
        assert isinstance(make_transition_rule(config), MinimalTransitionRule)
