"""
Unit tests for Statistics, PhaseStats and the MetricsCollector.

Tests cover:
- Statistics totals and the overlay text
- PhaseStats transition bookkeeping
- StatisticsAggregator generation counting
- KPI values on a hand-built grid
- Empty grid KPIs
- KPI name ordering and history queries
"""

import pytest

from pandora.core.cell import Cell, CellState
from pandora.core.config import SimConfig
from pandora.core.grid import GridStore
from pandora.core.rules import TransitionEvent
from pandora.simulation.engine import SimulationEngine
from pandora.simulation.metrics import MetricsCollector
from pandora.simulation.statistics import PhaseStats, Statistics, StatisticsAggregator


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def grid() -> GridStore:
    """2x2 grid: two ALIVE, one WARRIOR, one DEAD."""
    g = GridStore(2, 2)
    a = Cell.spawn(CellState.ALIVE, 10)
    a.age = 2
    b = Cell.spawn(CellState.ALIVE, 20)
    b.age = 4
    w = Cell.spawn(CellState.WARRIOR, 60)
    g.set(0, 0, a)
    g.set(1, 0, b)
    g.set(0, 1, w)
    return g


@pytest.fixture
def statistics() -> Statistics:
    return Statistics(alive_count=2, mutated_count=0, warrior_count=1, dead_count=1, generation=3)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

class TestStatistics:

    def test_totals(self, statistics):
        assert statistics.live_count == 3
        assert statistics.total == 4

    def test_overlay_text(self, statistics):
        assert statistics.overlay_text() == (
            "Alive: 2 | Mutated: 0 | Warrior: 1 | Dead: 1 | Cycle: 3"
        )

    def test_phase_stats_record_transition(self):
        stats = PhaseStats()
        for event in [TransitionEvent.BORN, TransitionEvent.BORN, TransitionEvent.DIED,
                      TransitionEvent.MUTATED, TransitionEvent.PROMOTED, TransitionEvent.NONE]:
            stats.record_transition(event)
        assert stats.births_transition == 2
        assert stats.deaths_transition == 1
        assert stats.mutations == 1
        assert stats.promotions == 1

    def test_phase_stats_as_dict(self):
        stats = PhaseStats(moves=3)
        d = stats.as_dict()
        assert d["moves"] == 3
        assert list(d) == PhaseStats.counter_names()

    def test_aggregator(self):
        agg = StatisticsAggregator()
        agg.recount([0, 1, 1, 3])
        assert agg.generation == 0
        assert agg.last.alive_count == 2
        agg.begin()
        for state in (CellState.DEAD, CellState.MUTATED):
            agg.tally(state)
        stats = agg.finish()
        assert stats.generation == 1
        assert stats.mutated_count == 1
        assert stats.dead_count == 1


# ---------------------------------------------------------------------------
# MetricsCollector
# ---------------------------------------------------------------------------

class TestMetricsCollector:

    def test_population_kpis(self, grid, statistics):
        kpis = MetricsCollector(SimConfig()).collect(grid, statistics, {})
        assert kpis["generation"] == 3
        assert kpis["live_count"] == 3
        assert kpis["population_ratio"] == pytest.approx(0.75)
        assert kpis["extinction_flag"] is False

    def test_energy_and_age_kpis(self, grid, statistics):
        kpis = MetricsCollector(SimConfig()).collect(grid, statistics, {})
        assert kpis["avg_energy"] == pytest.approx(30.0)
        assert kpis["median_energy"] == pytest.approx(20.0)
        assert kpis["min_energy"] == 10
        assert kpis["max_energy"] == 60
        assert kpis["avg_age"] == pytest.approx(2.0)
        assert kpis["max_age"] == 4

    def test_event_totals(self, grid, statistics):
        totals = {
            "births_reproduction": 2, "births_transition": 3,
            "deaths_combat": 1, "deaths_stagnation": 4,
            "attacks": 7,
        }
        kpis = MetricsCollector(SimConfig()).collect(grid, statistics, totals)
        assert kpis["births_total"] == 5
        assert kpis["deaths_total"] == 5
        assert kpis["attacks"] == 7
        assert kpis["moves"] == 0

    def test_empty_grid(self):
        kpis = MetricsCollector(SimConfig()).collect(
            GridStore(3, 3), Statistics(dead_count=9, generation=1), {},
        )
        assert kpis["extinction_flag"] is True
        assert kpis["avg_energy"] == 0.0
        assert kpis["max_age"] == 0

    def test_kpi_names_match_collect_keys(self, grid, statistics):
        kpis = MetricsCollector(SimConfig()).collect(grid, statistics, {})
        assert list(kpis) == MetricsCollector.kpi_names()

    def test_history_queries(self, grid, statistics):
        collector = MetricsCollector(SimConfig())
        assert collector.get_last() is None
        collector.collect(grid, statistics, {})
        collector.collect(grid, statistics, {"moves": 4})
        assert len(collector.get_history()) == 2
        assert collector.get_last()["moves"] == 4
        assert collector.get_kpi_series("moves") == [0, 4]

    def test_collect_from_engine(self):
        cfg = SimConfig()
        cfg.world.width = 12
        cfg.world.height = 12
        engine = SimulationEngine(cfg)
        engine.initialize()
        collector = MetricsCollector(cfg)
        stats = engine.advance_generation()
        kpis = collector.collect(engine.grid, stats, engine.get_accumulated_stats())
        assert kpis["alive_count"] + kpis["mutated_count"] + kpis["warrior_count"] == kpis["live_count"]
        assert kpis["live_count"] + kpis["dead_count"] == 144
