"""
KPI Metrics collection for Project Pandora.

MetricsCollector gathers per-generation Key Performance Indicators (KPIs)
from the grid, the generation's Statistics and the phase event counters.
It produces a flat dictionary per generation suitable for CSV export.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from pandora.core.cell import CellState
from pandora.core.config import SimConfig
from pandora.core.grid import GridStore
from pandora.simulation.statistics import Statistics


class MetricsCollector:
    """
    Collects and computes KPIs per generation.

    Usage:
      1. After each generation, call `collect(grid, statistics, phase_totals)`
      2. Resulting dict is appended to `history`
      3. Call `get_history()` to retrieve all collected snapshots

    Attributes:
        config: Simulation configuration.
        history: List of KPI dicts, one per generation.
    """

    def __init__(self, config: SimConfig):
        self.config = config
        self.history: list[dict] = []

    def collect(
        self,
        grid: GridStore,
        statistics: Statistics,
        phase_totals: dict[str, int],
    ) -> dict:
        """
        Compute all KPIs for the current generation and append to history.

        Args:
            grid: Live grid after the generation.
            statistics: Statistics returned by advance_generation().
            phase_totals: Summed phase counters (engine.get_accumulated_stats()).

        Returns:
            Dict of KPI_name -> value.
        """
        kpis: dict = {}

        # --- Population ---
        kpis["generation"] = statistics.generation
        kpis["alive_count"] = statistics.alive_count
        kpis["mutated_count"] = statistics.mutated_count
        kpis["warrior_count"] = statistics.warrior_count
        kpis["dead_count"] = statistics.dead_count
        kpis["live_count"] = statistics.live_count
        total = statistics.total
        kpis["population_ratio"] = statistics.live_count / total if total > 0 else 0.0
        kpis["extinction_flag"] = statistics.live_count == 0

        # --- Energy / age distribution over live cells ---
        states = grid.state_array()
        live_mask = states != int(CellState.DEAD)
        energies = grid.energy_array()[live_mask]
        ages = grid.age_array()[live_mask]

        if energies.size > 0:
            kpis["avg_energy"] = float(np.mean(energies))
            kpis["median_energy"] = float(np.median(energies))
            kpis["min_energy"] = int(np.min(energies))
            kpis["max_energy"] = int(np.max(energies))
            kpis["std_energy"] = float(np.std(energies))
            kpis["avg_age"] = float(np.mean(ages))
            kpis["max_age"] = int(np.max(ages))
        else:
            kpis["avg_energy"] = 0.0
            kpis["median_energy"] = 0.0
            kpis["min_energy"] = 0
            kpis["max_energy"] = 0
            kpis["std_energy"] = 0.0
            kpis["avg_age"] = 0.0
            kpis["max_age"] = 0

        # --- Births / deaths ---
        kpis["births_reproduction"] = phase_totals.get("births_reproduction", 0)
        kpis["births_transition"] = phase_totals.get("births_transition", 0)
        kpis["births_total"] = kpis["births_reproduction"] + kpis["births_transition"]

        kpis["deaths_stagnation"] = phase_totals.get("deaths_stagnation", 0)
        kpis["deaths_combat"] = phase_totals.get("deaths_combat", 0)
        kpis["deaths_reproduction"] = phase_totals.get("deaths_reproduction", 0)
        kpis["deaths_transition"] = phase_totals.get("deaths_transition", 0)
        kpis["deaths_total"] = (
            kpis["deaths_stagnation"]
            + kpis["deaths_combat"]
            + kpis["deaths_reproduction"]
            + kpis["deaths_transition"]
        )

        # --- Movement / combat / caste ---
        kpis["moves"] = phase_totals.get("moves", 0)
        kpis["moves_blocked"] = phase_totals.get("moves_blocked", 0)
        kpis["displacements"] = phase_totals.get("displacements", 0)
        kpis["attacks"] = phase_totals.get("attacks", 0)
        kpis["mutations"] = phase_totals.get("mutations", 0)
        kpis["promotions"] = phase_totals.get("promotions", 0)

        self.history.append(kpis)
        return kpis

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_history(self) -> list[dict]:
        """Return all collected KPI snapshots."""
        return list(self.history)

    def get_last(self) -> Optional[dict]:
        """Return the last collected KPI snapshot, or None."""
        return self.history[-1] if self.history else None

    def get_kpi_series(self, kpi_name: str) -> list:
        """Extract a single KPI as a list across all generations."""
        return [snap[kpi_name] for snap in self.history if kpi_name in snap]

    @staticmethod
    def kpi_names() -> list[str]:
        """Return the ordered list of all KPI names."""
        return [
            "generation",
            "alive_count",
            "mutated_count",
            "warrior_count",
            "dead_count",
            "live_count",
            "population_ratio",
            "extinction_flag",
            "avg_energy",
            "median_energy",
            "min_energy",
            "max_energy",
            "std_energy",
            "avg_age",
            "max_age",
            "births_reproduction",
            "births_transition",
            "births_total",
            "deaths_stagnation",
            "deaths_combat",
            "deaths_reproduction",
            "deaths_transition",
            "deaths_total",
            "moves",
            "moves_blocked",
            "displacements",
            "attacks",
            "mutations",
            "promotions",
        ]
