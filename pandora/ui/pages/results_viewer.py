"""
Results Viewer page for the Pandora UI.

Allows users to:
  - Browse single runs written by RunManager
  - Plot their metrics.csv
  - Inspect parameter sweep outputs
"""

import json
from pathlib import Path

import pandas as pd
import streamlit as st

from pandora.logging.run_manager import RunManager
from pandora.ui.components.charts import (
    energy_over_time,
    events_over_time,
    population_over_time,
    sweep_comparison_bars,
)


def _discover_sweeps(base_dir: Path) -> list[str]:
    if not base_dir.exists():
        return []
    return sorted(
        (d.name for d in base_dir.iterdir() if (d / "summary.csv").exists()),
        reverse=True,
    )


def _read_json(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def render_results_viewer() -> None:
    """Render the results viewer page."""
    st.title("📊 Results Viewer")

    base_dir = Path(st.text_input("Output directory", value="runs", key="rv_basedir"))
    tab_runs, tab_sweeps = st.tabs(["📁 Runs", "🔄 Sweeps"])

    with tab_runs:
        _render_runs(base_dir)
    with tab_sweeps:
        _render_sweeps(base_dir)


def _render_runs(base_dir: Path) -> None:
    runs = sorted(RunManager.list_runs(base_dir), reverse=True)
    if not runs:
        st.info("No runs found. Run a simulation first!")
        return

    name = st.selectbox("Select run", options=runs, key="rv_run_sel")
    run_dir = base_dir / name

    summary = _read_json(run_dir / RunManager.SUMMARY_FILE)
    if summary:
        cols = st.columns(min(len(summary), 4))
        for col, (key, value) in zip(cols, list(summary.items())[:4]):
            col.metric(key.replace("_", " ").title(), value)

    metrics_path = run_dir / RunManager.METRICS_FILE
    if not metrics_path.exists():
        st.warning("This run has no metrics.csv.")
        return

    df = pd.read_csv(metrics_path)
    if df.empty:
        st.warning("metrics.csv is empty.")
        return

    st.plotly_chart(population_over_time(df), use_container_width=True)
    st.plotly_chart(energy_over_time(df), use_container_width=True)
    st.plotly_chart(events_over_time(df), use_container_width=True)

    with st.expander("⚙️ Config"):
        st.json(_read_json(run_dir / RunManager.CONFIG_FILE))
    with st.expander("📋 Raw Data Table"):
        st.dataframe(df, use_container_width=True)


def _render_sweeps(base_dir: Path) -> None:
    sweeps = _discover_sweeps(base_dir)
    if not sweeps:
        st.info("No sweep results found. Run a parameter sweep first!")
        return

    name = st.selectbox("Select sweep", options=sweeps, key="rv_sw_sel")
    sweep_dir = base_dir / name

    df = pd.read_csv(sweep_dir / "summary.csv")
    st.subheader("Sweep Summary")
    st.dataframe(df, use_container_width=True)

    report = _read_json(sweep_dir / "stability_report.json")
    if report:
        combos = report.get("combinations", [])
        st.plotly_chart(sweep_comparison_bars(combos, "stability_rate"), use_container_width=True)
        st.plotly_chart(sweep_comparison_bars(combos, "avg_final_live"), use_container_width=True)
        best = report.get("best_combination")
        if best:
            st.success(f"Best stable combination: {best['params']}")
        with st.expander("📋 Stability Report"):
            st.json(report)
