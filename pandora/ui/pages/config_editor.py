"""
Config Editor page for the Pandora UI.

Allows users to:
  - Load a config from JSON
  - Edit every section with live validation
  - Apply a preset
  - Save to file
"""

import json

import streamlit as st

from pandora.core.config import (
    AttackProfile,
    RULESETS,
    SimConfig,
    apply_param_override,
    get_default_config,
    save_config,
)


PRESETS = {
    "Default": {},
    "Classic (minimal ruleset)": {
        "rules.ruleset": "minimal",
    },
    "Small arena (40×30)": {
        "world.width": 40, "world.height": 30,
        "world.initial_population_ratio": 0.35,
    },
    "Warrior-heavy": {
        "mutation.warrior_threshold": 120,
        "mutation.warrior_promotion_probability": 0.2,
        "mutation.spontaneous_warrior_probability": 0.005,
    },
}


def render_config_editor() -> None:
    """Render the configuration editor page."""
    st.title("⚙️ Configuration Editor")

    if "config" not in st.session_state:
        st.session_state.config = get_default_config()
    config: SimConfig = st.session_state.config

    col_load, col_save, col_preset = st.columns(3)

    with col_load:
        uploaded = st.file_uploader("Load config JSON", type=["json"], key="config_upload")
        if uploaded is not None:
            try:
                data = json.loads(uploaded.read().decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                st.error(f"Failed to load config: {e}")
            else:
                st.session_state.config = SimConfig.from_dict(data)
                config = st.session_state.config
                st.success("Config loaded!")

    with col_save:
        save_path = st.text_input("Save path", value="config/my_config.json", key="save_path")
        if st.button("💾 Save Config", key="save_btn"):
            try:
                save_config(config, save_path)
            except OSError as e:
                st.error(f"Save failed: {e}")
            else:
                st.success(f"Saved to {save_path}")

    with col_preset:
        preset_name = st.selectbox("Load preset", options=list(PRESETS), key="preset_sel")
        if st.button("📋 Apply Preset", key="preset_btn"):
            cfg = get_default_config()
            for key, value in PRESETS[preset_name].items():
                apply_param_override(cfg, key, value)
            st.session_state.config = cfg
            st.rerun()

    st.markdown("---")

    errors = config.validate()
    if errors:
        st.error("⚠️ Configuration has validation errors:")
        for err in errors:
            st.markdown(f"- `{err}`")
    else:
        st.success("✅ Configuration is valid")

    tabs = st.tabs([
        "🌍 World",
        "⚡ Energy",
        "🧬 Mutation",
        "🐣 Reproduction",
        "⚔️ Combat",
        "🧭 Movement",
        "📺 Display",
    ])
    with tabs[0]:
        _render_world_section(config)
    with tabs[1]:
        _render_energy_section(config)
    with tabs[2]:
        _render_mutation_section(config)
    with tabs[3]:
        _render_reproduction_section(config)
    with tabs[4]:
        _render_combat_section(config)
    with tabs[5]:
        _render_movement_section(config)
    with tabs[6]:
        _render_viz_section(config)


def _render_world_section(config: SimConfig) -> None:
    st.subheader("World")
    col1, col2, col3 = st.columns(3)
    with col1:
        config.world.width = st.number_input(
            "Grid Width", min_value=3, max_value=2000,
            value=config.world.width, step=10, key="world_width",
        )
        config.world.height = st.number_input(
            "Grid Height", min_value=3, max_value=2000,
            value=config.world.height, step=10, key="world_height",
        )
    with col2:
        config.world.seed = st.number_input(
            "Random Seed", min_value=0, max_value=999999999,
            value=config.world.seed, step=1, key="world_seed",
        )
        config.world.initial_population_ratio = st.slider(
            "Initial Population Ratio", 0.0, 1.0,
            value=float(config.world.initial_population_ratio), step=0.01, key="world_ratio",
        )
    with col3:
        config.rules.ruleset = st.selectbox(
            "Ruleset", options=list(RULESETS),
            index=list(RULESETS).index(config.rules.ruleset),
            key="rules_ruleset",
        )


def _render_energy_section(config: SimConfig) -> None:
    st.subheader("Energy")
    col1, col2, col3 = st.columns(3)
    with col1:
        config.energy.initial_energy = st.number_input(
            "Initial Energy", min_value=1, value=config.energy.initial_energy, key="en_init",
        )
    with col2:
        config.energy.upkeep = st.number_input(
            "Upkeep / generation", min_value=0, value=config.energy.upkeep, key="en_upkeep",
        )
    with col3:
        config.energy.crowding_penalty = st.number_input(
            "Crowding Penalty", min_value=0,
            value=config.energy.crowding_penalty, key="en_penalty",
        )


def _render_mutation_section(config: SimConfig) -> None:
    st.subheader("Mutation & Warrior Caste")
    m = config.mutation
    col1, col2 = st.columns(2)
    with col1:
        m.mutation_probability = st.number_input(
            "Mutation Probability", min_value=0.0, max_value=1.0,
            value=m.mutation_probability, step=0.001, format="%.4f", key="mut_p",
        )
        m.birth_mutation_probability = st.number_input(
            "Birth Mutation Probability", min_value=0.0, max_value=1.0,
            value=m.birth_mutation_probability, step=0.001, format="%.4f", key="mut_birth",
        )
    with col2:
        m.warrior_threshold = st.number_input(
            "Warrior Energy Threshold", min_value=0, value=m.warrior_threshold, key="war_thr",
        )
        m.warrior_promotion_probability = st.number_input(
            "Warrior Promotion Probability", min_value=0.0, max_value=1.0,
            value=m.warrior_promotion_probability, step=0.01, format="%.4f", key="war_p",
        )
        m.spontaneous_warrior_probability = st.number_input(
            "Spontaneous Warrior Probability", min_value=0.0, max_value=1.0,
            value=m.spontaneous_warrior_probability, step=0.0001, format="%.5f", key="war_sp",
        )


def _render_reproduction_section(config: SimConfig) -> None:
    st.subheader("Reproduction")
    r = config.reproduction
    col1, col2 = st.columns(2)
    with col1:
        r.threshold = st.number_input("Energy Threshold", min_value=0, value=r.threshold, key="rep_thr")
        r.cost = st.number_input("Cost to Parent", min_value=0, value=r.cost, key="rep_cost")
    with col2:
        r.offspring_energy = st.number_input(
            "Offspring Energy", min_value=1, value=r.offspring_energy, key="rep_off",
        )
        r.warrior_demotion_probability = st.number_input(
            "Warrior Offspring Demotion", min_value=0.0, max_value=1.0,
            value=r.warrior_demotion_probability, step=0.01, key="rep_dem",
        )


def _render_attack_profile(label: str, profile: AttackProfile, key: str) -> None:
    st.markdown(f"**{label}**")
    profile.damage = st.number_input("Damage", min_value=0, value=profile.damage, key=f"{key}_dmg")
    profile.range = st.number_input("Range", min_value=1, value=profile.range, key=f"{key}_rng")
    profile.energy_gain = st.number_input(
        "Energy Gain", min_value=0, value=profile.energy_gain, key=f"{key}_gain",
    )
    profile.cooldown = st.number_input(
        "Cooldown", min_value=0, value=profile.cooldown, key=f"{key}_cd",
    )


def _render_combat_section(config: SimConfig) -> None:
    st.subheader("Combat")
    col1, col2, col3 = st.columns(3)
    with col1:
        _render_attack_profile("Warrior", config.combat.warrior, "cb_war")
    with col2:
        _render_attack_profile("Alive", config.combat.alive, "cb_alive")
    with col3:
        _render_attack_profile("Mutated", config.combat.mutated, "cb_mut")


def _render_movement_section(config: SimConfig) -> None:
    st.subheader("Movement")
    mv = config.movement
    col1, col2 = st.columns(2)
    with col1:
        mv.speed_divisor = st.number_input(
            "Speed Divisor", min_value=0.1, value=float(mv.speed_divisor), key="mv_div",
        )
        mv.max_speed = st.number_input(
            "Max Speed", min_value=0.0, value=float(mv.max_speed), key="mv_max",
        )
        mv.momentum_weight = st.slider(
            "Momentum Weight", 0.0, 1.0, value=float(mv.momentum_weight), key="mv_mom",
        )
        mv.field_weight = st.slider(
            "Field Weight", 0.0, 1.0, value=float(mv.field_weight), key="mv_field",
        )
    with col2:
        mv.field_radius = st.number_input(
            "Field Radius", min_value=1, value=mv.field_radius, key="mv_rad",
        )
        mv.jitter = st.number_input(
            "Jitter", min_value=0.0, value=float(mv.jitter), step=0.05, key="mv_jit",
        )
        mv.displacement_probability = st.slider(
            "Displacement Probability", 0.0, 1.0,
            value=float(mv.displacement_probability), key="mv_disp",
        )
        mv.max_stagnant_cycles = st.number_input(
            "Max Stagnant Cycles", min_value=1, value=mv.max_stagnant_cycles, key="mv_stag",
        )


def _render_viz_section(config: SimConfig) -> None:
    st.subheader("Display / Output")
    col1, col2 = st.columns(2)
    with col1:
        config.viz.tick_interval_ms = st.number_input(
            "Tick Interval (ms)", min_value=0, max_value=10000,
            value=config.viz.tick_interval_ms, step=10, key="viz_tick",
        )
        config.viz.cell_size = st.number_input(
            "Cell Size (px)", min_value=1, max_value=50,
            value=config.viz.cell_size, key="viz_cell",
        )
    with col2:
        config.viz.show_overlay = st.checkbox(
            "Show statistics overlay", value=config.viz.show_overlay, key="viz_overlay",
        )
        config.viz.output_dir = st.text_input(
            "Output Directory", value=config.viz.output_dir, key="viz_outdir",
        )
