"""
Parameter Sweep for Project Pandora.

Runs the simulation over the cartesian product of variable parameters,
repeating each combination with several seeds. A run is "stable" when its
live population stays inside a band relative to the initial live count
(after a warm-up) and never goes extinct.

Runs are independent, so they are spread over a ProcessPoolExecutor.
"""

from __future__ import annotations

import itertools
import json
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import numpy as np
import pandas as pd

from pandora.core.config import (
    SimConfig,
    SweepConfig,
    apply_param_override,
    get_default_config,
)
from pandora.simulation.engine import SimulationEngine
from pandora.simulation.metrics import MetricsCollector


ProgressCallback = Callable[[int, int], None]


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------

@dataclass
class SingleRunResult:
    """One seeded run of one combination."""
    combination_id: int
    combination_params: dict[str, Any]
    seed: int
    run_index: int
    initial_live: int = 0
    total_generations: int = 0
    final_live: int = 0
    extinct: bool = False
    extinction_generation: Optional[int] = None
    stable: bool = False
    instability_generation: Optional[int] = None
    generation_kpis: list[dict] = field(default_factory=list)


@dataclass
class CombinationResult:
    """All runs of one parameter combination plus their aggregates."""
    combination_id: int
    params: dict[str, Any]
    runs: list[SingleRunResult] = field(default_factory=list)

    total_runs: int = 0
    extinction_count: int = 0
    survival_rate: float = 0.0
    stable_count: int = 0
    stability_rate: float = 0.0
    avg_final_live: float = 0.0
    std_final_live: float = 0.0
    avg_generations: float = 0.0
    kpi_aggregates: dict[str, dict[str, float]] = field(default_factory=dict)

    def aggregate(self) -> None:
        self.total_runs = len(self.runs)
        if self.total_runs == 0:
            return

        self.extinction_count = sum(1 for r in self.runs if r.extinct)
        self.survival_rate = 1.0 - self.extinction_count / self.total_runs
        self.stable_count = sum(1 for r in self.runs if r.stable)
        self.stability_rate = self.stable_count / self.total_runs

        finals = np.array([r.final_live for r in self.runs], dtype=float)
        self.avg_final_live = float(finals.mean())
        self.std_final_live = float(finals.std())
        self.avg_generations = float(np.mean([r.total_generations for r in self.runs]))

        self.kpi_aggregates = {}
        last_rows = [r.generation_kpis[-1] for r in self.runs if r.generation_kpis]
        if not last_rows:
            return
        frame = pd.DataFrame(last_rows).select_dtypes(include="number")
        for column in frame.columns:
            values = frame[column].to_numpy(dtype=float)
            self.kpi_aggregates[column] = {
                "mean": float(np.mean(values)),
                "std": float(np.std(values)),
                "min": float(np.min(values)),
                "max": float(np.max(values)),
            }


@dataclass
class SweepResult:
    """Every combination of a sweep."""
    combinations: list[CombinationResult] = field(default_factory=list)
    total_combinations: int = 0
    total_runs: int = 0
    elapsed_seconds: float = 0.0

    def best_stable_combination(self) -> Optional[CombinationResult]:
        """Highest stability rate; ties by survival rate, then final population."""
        candidates = [c for c in self.combinations if c.stability_rate > 0]
        if not candidates:
            return None
        return max(
            candidates,
            key=lambda c: (c.stability_rate, c.survival_rate, c.avg_final_live),
        )


# ---------------------------------------------------------------------------
# Sweep settings
# ---------------------------------------------------------------------------

@dataclass
class SweepSettings:
    """A sweep file: fixed overrides, variable lists and run settings."""
    fixed_params: dict[str, Any]
    variable_params: dict[str, list[Any]]
    runs_per_set: int = 5
    max_generations: int = 200
    base_seed: int = 42
    parallel_workers: int = 4
    stability_band_min_pct: float = 0.20
    stability_band_max_pct: float = 3.00
    check_after_generation: int = 10
    early_termination_on_extinction: bool = True
    stability_required_pct: float = 0.6

    @classmethod
    def from_dict(cls, data: dict, defaults: Optional[SweepConfig] = None) -> SweepSettings:
        """
        Parse a sweep dict.

        Missing run settings fall back to `defaults` (the `sweep` section of a
        SimConfig), so a sweep file only needs to name what it changes.
        """
        defaults = defaults or SweepConfig()
        ss = data.get("sweep_settings", {})
        band = ss.get("stability_band", {})
        return cls(
            fixed_params=data.get("fixed_params", {}),
            variable_params=data.get("variable_params", {}),
            runs_per_set=ss.get("runs_per_set", defaults.runs_per_set),
            max_generations=ss.get("max_generations", defaults.max_generations),
            base_seed=ss.get("base_seed", defaults.base_seed),
            parallel_workers=ss.get("parallel_workers", defaults.parallel_workers),
            stability_band_min_pct=band.get(
                "min_population_pct", defaults.stability.min_population_pct),
            stability_band_max_pct=band.get(
                "max_population_pct", defaults.stability.max_population_pct),
            check_after_generation=band.get(
                "check_after_generation", defaults.stability.check_after_generation),
            early_termination_on_extinction=ss.get("early_termination_on_extinction", True),
            stability_required_pct=ss.get("stability_required_pct", 0.6),
        )

    @classmethod
    def from_file(cls, path: str | Path, defaults: Optional[SweepConfig] = None) -> SweepSettings:
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f), defaults)

    def to_dict(self) -> dict:
        return {
            "fixed_params": self.fixed_params,
            "variable_params": self.variable_params,
            "sweep_settings": {
                "runs_per_set": self.runs_per_set,
                "max_generations": self.max_generations,
                "base_seed": self.base_seed,
                "parallel_workers": self.parallel_workers,
                "stability_band": {
                    "min_population_pct": self.stability_band_min_pct,
                    "max_population_pct": self.stability_band_max_pct,
                    "check_after_generation": self.check_after_generation,
                },
                "early_termination_on_extinction": self.early_termination_on_extinction,
                "stability_required_pct": self.stability_required_pct,
            },
        }

    def validate(self) -> list[str]:
        errors = []
        if self.runs_per_set < 1:
            errors.append(f"runs_per_set must be >= 1, got {self.runs_per_set}")
        if self.max_generations < 1:
            errors.append(f"max_generations must be >= 1, got {self.max_generations}")
        if self.parallel_workers < 1:
            errors.append(f"parallel_workers must be >= 1, got {self.parallel_workers}")
        if self.stability_band_min_pct < 0:
            errors.append(
                f"stability_band_min_pct must be >= 0, got {self.stability_band_min_pct}")
        if self.stability_band_max_pct <= self.stability_band_min_pct:
            errors.append("stability_band_max_pct must be > stability_band_min_pct")
        if self.check_after_generation < 0:
            errors.append(
                f"check_after_generation must be >= 0, got {self.check_after_generation}")
        if not (0.0 <= self.stability_required_pct <= 1.0):
            errors.append(
                f"stability_required_pct must be in [0, 1], got {self.stability_required_pct}")
        if not self.variable_params:
            errors.append("variable_params must have at least one parameter")
        for key, values in self.variable_params.items():
            if not isinstance(values, list) or len(values) == 0:
                errors.append(f"variable_params['{key}'] must be a non-empty list")
        return errors


def generate_combinations(variable_params: dict[str, list[Any]]) -> list[dict[str, Any]]:
    """
    Cartesian product of the variable parameters, in key order.

    {"a": [1, 2], "b": [3]} -> [{"a": 1, "b": 3}, {"a": 2, "b": 3}]
    """
    if not variable_params:
        return [{}]
    keys = list(variable_params)
    return [
        dict(zip(keys, values))
        for values in itertools.product(*(variable_params[k] for k in keys))
    ]


# ---------------------------------------------------------------------------
# Worker (top-level so it pickles)
# ---------------------------------------------------------------------------

def _run_single_simulation(job: dict) -> SingleRunResult:
    config = SimConfig.from_dict(job["base_config"])
    for key, value in job["fixed_params"].items():
        apply_param_override(config, key, value)
    for key, value in job["combination_params"].items():
        apply_param_override(config, key, value)
    config.world.seed = job["seed"]

    engine = SimulationEngine(config)
    engine.initialize()
    metrics = MetricsCollector(config)

    initial_live = engine.live_count
    pop_min = initial_live * job["band_min"]
    pop_max = initial_live * job["band_max"]

    result = SingleRunResult(
        combination_id=job["combination_id"],
        combination_params=job["combination_params"],
        seed=job["seed"],
        run_index=job["run_index"],
        initial_live=initial_live,
    )
    stable = True

    def on_generation(generation: int, eng: SimulationEngine) -> None:
        nonlocal stable
        kpis = metrics.collect(eng.grid, eng.statistics(), eng.get_accumulated_stats())
        eng.reset_accumulated_stats()
        result.generation_kpis.append(kpis)

        if stable and generation >= job["check_after"]:
            live = kpis["live_count"]
            if live < pop_min or live > pop_max:
                stable = False
                result.instability_generation = generation

    engine.on_generation = on_generation
    run_result = engine.run(
        max_generations=job["max_generations"],
        stop_on_extinction=job["stop_on_extinction"],
    )

    result.total_generations = run_result.total_generations
    result.final_live = run_result.final_live_count
    result.extinct = run_result.extinct
    result.extinction_generation = run_result.extinction_generation
    result.stable = stable and not run_result.extinct
    return result


# ---------------------------------------------------------------------------
# ParameterSweep
# ---------------------------------------------------------------------------

class ParameterSweep:
    """
    Runs every combination `runs_per_set` times and aggregates the outcome.

    Seeds are `base_seed + combination_id * 1000 + run_index`, so each run
    is reproducible on its own.
    """

    def __init__(self, settings: SweepSettings, base_config: Optional[SimConfig] = None):
        self.settings = settings
        self.base_config = base_config or get_default_config()
        self.combinations = generate_combinations(settings.variable_params)

    @property
    def total_combinations(self) -> int:
        return len(self.combinations)

    @property
    def total_runs(self) -> int:
        return self.total_combinations * self.settings.runs_per_set

    def run(
        self,
        parallel: bool = True,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SweepResult:
        start = time.time()
        jobs = self._build_jobs()

        if parallel and self.settings.parallel_workers > 1 and len(jobs) > 1:
            runs = self._run_parallel(jobs, progress_callback)
        else:
            runs = self._run_sequential(jobs, progress_callback)

        result = self._aggregate_results(runs)
        result.elapsed_seconds = time.time() - start
        return result

    def _build_jobs(self) -> list[dict]:
        base = self.base_config.to_dict()
        s = self.settings
        return [
            {
                "base_config": base,
                "combination_id": combo_id,
                "combination_params": params,
                "fixed_params": s.fixed_params,
                "seed": s.base_seed + combo_id * 1000 + run_idx,
                "run_index": run_idx,
                "max_generations": s.max_generations,
                "band_min": s.stability_band_min_pct,
                "band_max": s.stability_band_max_pct,
                "check_after": s.check_after_generation,
                "stop_on_extinction": s.early_termination_on_extinction,
            }
            for combo_id, params in enumerate(self.combinations)
            for run_idx in range(s.runs_per_set)
        ]

    def _run_sequential(self, jobs, progress_callback) -> list[SingleRunResult]:
        results = []
        for i, job in enumerate(jobs):
            results.append(_run_single_simulation(job))
            if progress_callback is not None:
                progress_callback(i + 1, len(jobs))
        return results

    def _run_parallel(self, jobs, progress_callback) -> list[SingleRunResult]:
        results = []
        with ProcessPoolExecutor(max_workers=self.settings.parallel_workers) as executor:
            futures = [executor.submit(_run_single_simulation, job) for job in jobs]
            for future in as_completed(futures):
                results.append(future.result())
                if progress_callback is not None:
                    progress_callback(len(results), len(jobs))
        return results

    def _aggregate_results(self, runs: list[SingleRunResult]) -> SweepResult:
        by_combo: dict[int, list[SingleRunResult]] = {}
        for r in runs:
            by_combo.setdefault(r.combination_id, []).append(r)

        combinations = []
        for combo_id, params in enumerate(self.combinations):
            combo_runs = sorted(by_combo.get(combo_id, []), key=lambda r: r.run_index)
            combo = CombinationResult(combination_id=combo_id, params=params, runs=combo_runs)
            combo.aggregate()
            combinations.append(combo)

        return SweepResult(
            combinations=combinations,
            total_combinations=len(combinations),
            total_runs=sum(len(c.runs) for c in combinations),
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_results(self, result: SweepResult, output_dir: str | Path) -> dict[str, Path]:
        """
        Write summary.csv, detailed.csv, stability_report.json and
        sweep_config.json into output_dir.
        """
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)

        paths = {
            "summary": self._export_summary_csv(result, out / "summary.csv"),
            "detailed": self._export_detailed_csv(result, out / "detailed.csv"),
            "stability_report": self._export_stability_report(
                result, out / "stability_report.json"),
        }

        config_path = out / "sweep_config.json"
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.settings.to_dict(), f, indent=2)
        paths["config"] = config_path
        return paths

    def _param_columns(self, params: dict[str, Any]) -> dict[str, Any]:
        return {f"param_{k}": params.get(k, "") for k in sorted(self.settings.variable_params)}

    def _export_summary_csv(self, result: SweepResult, path: Path) -> Path:
        rows = []
        for combo in result.combinations:
            row = self._param_columns(combo.params)
            row.update({
                "combination_id": combo.combination_id,
                "total_runs": combo.total_runs,
                "extinction_count": combo.extinction_count,
                "survival_rate": round(combo.survival_rate, 4),
                "stable_count": combo.stable_count,
                "stability_rate": round(combo.stability_rate, 4),
                "avg_final_live": round(combo.avg_final_live, 2),
                "std_final_live": round(combo.std_final_live, 2),
                "avg_generations": round(combo.avg_generations, 2),
            })
            rows.append(row)
        pd.DataFrame(rows).to_csv(path, index=False)
        return path

    def _export_detailed_csv(self, result: SweepResult, path: Path) -> Path:
        rows = []
        for combo in result.combinations:
            params = self._param_columns(combo.params)
            for run in combo.runs:
                for kpis in run.generation_kpis:
                    row = {
                        "combination_id": combo.combination_id,
                        "run_index": run.run_index,
                        "seed": run.seed,
                    }
                    row.update(params)
                    row.update(kpis)
                    rows.append(row)
        pd.DataFrame(rows).to_csv(path, index=False)
        return path

    def _export_stability_report(self, result: SweepResult, path: Path) -> Path:
        required = self.settings.stability_required_pct
        entries = [
            {
                "combination_id": c.combination_id,
                "params": c.params,
                "total_runs": c.total_runs,
                "extinction_count": c.extinction_count,
                "survival_rate": round(c.survival_rate, 4),
                "stable_count": c.stable_count,
                "stability_rate": round(c.stability_rate, 4),
                "is_stable": c.stability_rate >= required,
                "avg_final_live": round(c.avg_final_live, 2),
            }
            for c in result.combinations
        ]
        stable = [e for e in entries if e["is_stable"]]
        report = {
            "total_combinations": result.total_combinations,
            "total_runs": result.total_runs,
            "elapsed_seconds": round(result.elapsed_seconds, 2),
            "stability_required_pct": required,
            "combinations": entries,
            "stable_combinations_count": len(stable),
            "best_combination": (
                max(stable, key=lambda e: (e["stability_rate"], e["survival_rate"]))
                if stable else None
            ),
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        return path

    def __repr__(self) -> str:
        return (
            f"ParameterSweep(combinations={self.total_combinations}, "
            f"runs_per_set={self.settings.runs_per_set}, total_runs={self.total_runs})"
        )
