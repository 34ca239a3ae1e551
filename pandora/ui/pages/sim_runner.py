"""
Live Grid page for the Pandora UI.

Allows users to:
  - Seed a new grid from the current configuration
  - Step a single generation or play a batch at the configured tick interval
  - Watch the grid heatmap with the statistics overlay
  - Follow KPI charts and optionally log the run to disk
"""

import time
from copy import deepcopy

import pandas as pd
import streamlit as st

from pandora.core.config import SimConfig, get_default_config
from pandora.logging.run_manager import RunManager
from pandora.simulation.engine import SimulationEngine
from pandora.simulation.metrics import MetricsCollector
from pandora.ui.components.charts import energy_over_time, events_over_time, population_over_time
from pandora.ui.components.grid_view import render_grid


_STATE_KEYS = {
    "sim_engine": None,
    "sim_metrics": None,
    "sim_run_manager": None,
    "sim_generation_data": [],
}


def _init_session_state() -> None:
    for key, default in _STATE_KEYS.items():
        if key not in st.session_state:
            st.session_state[key] = deepcopy(default)


def _reset_session_state() -> None:
    for key, default in _STATE_KEYS.items():
        st.session_state[key] = deepcopy(default)


def render_sim_runner() -> None:
    """Render the live grid page."""
    _init_session_state()
    st.title("▶️ Live Grid")

    config: SimConfig = deepcopy(st.session_state.get("config", get_default_config()))
    st.markdown(
        f"Ruleset **{config.rules.ruleset}**, grid "
        f"**{config.world.width}×{config.world.height}**, "
        f"tick **{config.viz.tick_interval_ms} ms**."
    )

    col1, col2, col3 = st.columns(3)
    with col1:
        seed = st.number_input(
            "Seed", min_value=0, max_value=999999999,
            value=config.world.seed, step=1, key="sr_seed",
        )
    with col2:
        batch = st.number_input(
            "Generations per Play", min_value=1, max_value=10000,
            value=50, step=10, key="sr_batch",
        )
    with col3:
        log_to_disk = st.checkbox("Log run to disk", value=False, key="sr_log")

    btn_new, btn_step, btn_play = st.columns(3)
    if btn_new.button("🌱 New Grid", key="sr_new"):
        _start_engine(config, int(seed), log_to_disk)

    engine: SimulationEngine = st.session_state.sim_engine
    if engine is None:
        st.info("Seed a new grid to begin.")
        return

    step = btn_step.button("⏭️ Step", key="sr_step", disabled=engine.is_extinct)
    play = btn_play.button("▶️ Play", key="sr_play", disabled=engine.is_extinct)

    grid_placeholder = st.empty()
    status = st.empty()
    _draw(grid_placeholder, engine)

    if step:
        _advance(engine)
        _draw(grid_placeholder, engine)
    elif play:
        delay = engine.config.viz.tick_interval_ms / 1000.0
        progress = st.progress(0.0, text="Playing...")
        for i in range(int(batch)):
            _advance(engine)
            _draw(grid_placeholder, engine)
            progress.progress((i + 1) / batch, text=f"Generation {engine.generation}")
            if engine.is_extinct:
                break
            time.sleep(delay)

    if engine.is_extinct:
        status.warning(f"⚠️ Extinct at generation {engine.generation}.")
        run_manager = st.session_state.sim_run_manager
        if run_manager is not None:
            run_manager.finalize(_summary(engine))

    _display_kpis()


def _start_engine(config: SimConfig, seed: int, log_to_disk: bool) -> None:
    _reset_session_state()
    try:
        engine = SimulationEngine(config, seed=seed)
    except ValueError as e:
        st.error(str(e))
        return
    engine.initialize()
    st.session_state.sim_engine = engine
    st.session_state.sim_metrics = MetricsCollector(engine.config)
    if log_to_disk:
        st.session_state.sim_run_manager = RunManager(engine.config)


def _advance(engine: SimulationEngine) -> None:
    statistics = engine.advance_generation()
    kpis = st.session_state.sim_metrics.collect(
        engine.grid, statistics, engine.get_accumulated_stats(),
    )
    engine.reset_accumulated_stats()
    st.session_state.sim_generation_data.append(kpis)

    run_manager = st.session_state.sim_run_manager
    if run_manager is not None:
        run_manager.log_generation(kpis)


def _draw(placeholder, engine: SimulationEngine) -> None:
    viz = engine.config.viz
    fig = render_grid(
        engine.grid,
        statistics=engine.statistics(),
        cell_size=viz.cell_size,
        show_overlay=viz.show_overlay,
    )
    placeholder.plotly_chart(fig, use_container_width=False)


def _summary(engine: SimulationEngine) -> dict:
    stats = engine.statistics()
    return {
        "generations": engine.generation,
        "final_live": stats.live_count,
        "alive": stats.alive_count,
        "mutated": stats.mutated_count,
        "warrior": stats.warrior_count,
        "extinct": engine.is_extinct,
        "seed": engine.config.world.seed,
        "ruleset": engine.ruleset,
    }


def _display_kpis() -> None:
    data = st.session_state.sim_generation_data
    if not data:
        return

    st.markdown("---")
    st.subheader("📈 Generation KPIs")
    df = pd.DataFrame(data)

    tab_pop, tab_energy, tab_events = st.tabs(["Population", "Energy", "Events"])
    with tab_pop:
        st.plotly_chart(population_over_time(df), use_container_width=True)
    with tab_energy:
        st.plotly_chart(energy_over_time(df), use_container_width=True)
    with tab_events:
        st.plotly_chart(events_over_time(df), use_container_width=True)

    with st.expander("📋 Raw Data Table"):
        st.dataframe(df, use_container_width=True)

    st.download_button(
        "⬇️ Download CSV",
        data=df.to_csv(index=False),
        file_name="pandora_kpis.csv",
        mime="text/csv",
        key="sr_dl_csv",
    )
