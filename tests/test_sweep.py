"""
Unit tests for the parameter sweep.

Tests cover:
- Settings parsing (explicit values and fallbacks to SweepConfig)
- Settings validation
- Cartesian combination generation
- Seed derivation per combination and run
- Sequential execution and aggregation
- Result exports
"""

import json

import pytest

from pandora.core.config import SimConfig, SweepConfig
from pandora.simulation.sweep import (
    CombinationResult,
    ParameterSweep,
    SingleRunResult,
    SweepResult,
    SweepSettings,
    generate_combinations,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sweep_dict() -> dict:
    return {
        "fixed_params": {"world.width": 10, "world.height": 10},
        "variable_params": {"energy.upkeep": [1, 3]},
        "sweep_settings": {
            "runs_per_set": 2,
            "max_generations": 5,
            "base_seed": 100,
            "parallel_workers": 1,
            "stability_band": {
                "min_population_pct": 0.01,
                "max_population_pct": 50.0,
                "check_after_generation": 1,
            },
        },
    }


@pytest.fixture
def settings(sweep_dict) -> SweepSettings:
    return SweepSettings.from_dict(sweep_dict)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestSweepSettings:

    def test_from_dict(self, settings):
        assert settings.runs_per_set == 2
        assert settings.max_generations == 5
        assert settings.stability_band_max_pct == 50.0
        assert settings.check_after_generation == 1

    def test_defaults_come_from_sweep_config(self):
        defaults = SweepConfig(runs_per_set=7, max_generations=33)
        s = SweepSettings.from_dict({"variable_params": {"energy.upkeep": [1]}}, defaults)
        assert s.runs_per_set == 7
        assert s.max_generations == 33
        assert s.stability_band_min_pct == defaults.stability.min_population_pct

    def test_from_file(self, sweep_dict, tmp_path):
        path = tmp_path / "sweep.json"
        path.write_text(json.dumps(sweep_dict))
        assert SweepSettings.from_file(path).base_seed == 100

    def test_to_dict_roundtrip(self, settings):
        assert SweepSettings.from_dict(settings.to_dict()) == settings

    def test_valid(self, settings):
        assert settings.validate() == []

    def test_invalid(self):
        s = SweepSettings(fixed_params={}, variable_params={"a": []}, runs_per_set=0)
        errors = s.validate()
        assert any("runs_per_set" in e for e in errors)
        assert any("variable_params['a']" in e for e in errors)

    def test_requires_variable_params(self):
        s = SweepSettings(fixed_params={}, variable_params={})
        assert any("at least one" in e for e in s.validate())


# ---------------------------------------------------------------------------
# Combinations
# ---------------------------------------------------------------------------

class TestCombinations:

    def test_cartesian_product(self):
        combos = generate_combinations({"a": [1, 2], "b": [3, 4]})
        assert combos == [
            {"a": 1, "b": 3}, {"a": 1, "b": 4},
            {"a": 2, "b": 3}, {"a": 2, "b": 4},
        ]

    def test_empty(self):
        assert generate_combinations({}) == [{}]

    def test_seeds(self, settings):
        jobs = ParameterSweep(settings, SimConfig())._build_jobs()
        assert [job["seed"] for job in jobs] == [100, 101, 1100, 1101]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

class TestAggregation:

    def _run(self, final_live: int, extinct: bool, stable: bool) -> SingleRunResult:
        return SingleRunResult(
            combination_id=0, combination_params={}, seed=0, run_index=0,
            total_generations=10, final_live=final_live, extinct=extinct, stable=stable,
            generation_kpis=[{"live_count": final_live, "extinction_flag": extinct}],
        )

    def test_aggregate(self):
        combo = CombinationResult(combination_id=0, params={}, runs=[
            self._run(10, False, True),
            self._run(0, True, False),
            self._run(20, False, True),
            self._run(30, False, False),
        ])
        combo.aggregate()
        assert combo.total_runs == 4
        assert combo.extinction_count == 1
        assert combo.survival_rate == pytest.approx(0.75)
        assert combo.stability_rate == pytest.approx(0.5)
        assert combo.avg_final_live == pytest.approx(15.0)
        assert combo.kpi_aggregates["live_count"]["max"] == 30.0
        assert "extinction_flag" not in combo.kpi_aggregates

    def test_best_stable_combination(self):
        a = CombinationResult(0, {"x": 1}, stability_rate=0.5, survival_rate=1.0)
        b = CombinationResult(1, {"x": 2}, stability_rate=0.8, survival_rate=0.9)
        c = CombinationResult(2, {"x": 3}, stability_rate=0.0, survival_rate=1.0)
        assert SweepResult(combinations=[a, b, c]).best_stable_combination() is b
        assert SweepResult(combinations=[c]).best_stable_combination() is None


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class TestSweepRun:

    def test_sequential_run(self, settings):
        sweep = ParameterSweep(settings, SimConfig())
        assert sweep.total_runs == 4
        progress = []
        result = sweep.run(parallel=False, progress_callback=lambda d, t: progress.append((d, t)))

        assert progress[-1] == (4, 4)
        assert result.total_combinations == 2
        assert result.total_runs == 4
        for combo in result.combinations:
            assert [r.run_index for r in combo.runs] == [0, 1]
            for run in combo.runs:
                assert run.initial_live > 0
                assert 1 <= len(run.generation_kpis) <= 5
                assert run.generation_kpis[-1]["live_count"] == run.final_live

    def test_same_seed_same_outcome(self, settings):
        first = ParameterSweep(settings, SimConfig()).run(parallel=False)
        second = ParameterSweep(settings, SimConfig()).run(parallel=False)
        assert [r.final_live for c in first.combinations for r in c.runs] == \
               [r.final_live for c in second.combinations for r in c.runs]

    def test_export(self, settings, tmp_path):
        sweep = ParameterSweep(settings, SimConfig())
        result = sweep.run(parallel=False)
        paths = sweep.export_results(result, tmp_path / "out")

        assert set(paths) == {"summary", "detailed", "stability_report", "config"}
        assert all(p.exists() for p in paths.values())

        summary = paths["summary"].read_text().splitlines()
        assert summary[0].startswith("param_energy.upkeep,combination_id")
        assert len(summary) == 3

        with open(paths["stability_report"], encoding="utf-8") as f:
            report = json.load(f)
        assert report["total_runs"] == 4
        assert len(report["combinations"]) == 2

        with open(paths["config"], encoding="utf-8") as f:
            assert json.load(f)["variable_params"] == {"energy.upkeep": [1, 3]}
