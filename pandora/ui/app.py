"""
Project Pandora - Streamlit Web UI

Sidebar navigation between:
  1. Config Editor  - load/edit/save the simulation configuration
  2. Live Grid      - step the automaton and watch the grid evolve
  3. Results Viewer - browse past runs and sweeps
"""

from pathlib import Path

import streamlit as st

# Must be the very first Streamlit command
st.set_page_config(
    page_title="Project Pandora",
    page_icon="🧫",
    layout="wide",
    initial_sidebar_state="expanded",
)


def main() -> None:
    st.sidebar.title("🧫 Project Pandora")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        options=[
            "🏠 Home",
            "⚙️ Config Editor",
            "▶️ Live Grid",
            "📊 Results Viewer",
        ],
        index=0,
    )

    if page == "🏠 Home":
        _render_home()
    elif page == "⚙️ Config Editor":
        from pandora.ui.pages.config_editor import render_config_editor
        render_config_editor()
    elif page == "▶️ Live Grid":
        from pandora.ui.pages.sim_runner import render_sim_runner
        render_sim_runner()
    elif page == "📊 Results Viewer":
        from pandora.ui.pages.results_viewer import render_results_viewer
        render_results_viewer()


def _render_home() -> None:
    st.title("🧫 Project Pandora")
    st.markdown("""
    A grid-based artificial-life automaton. Every cell is **Dead**, **Alive**,
    **Mutated** or **Warrior**, carries an energy budget, moves under momentum
    and a repulsion field, fights its neighbours and reproduces when rich.

    ### Generation pipeline

    | Phase | What happens |
    |-------|--------------|
    | **Movement** | Live cells step along momentum + repulsion; stagnant cells die |
    | **Interaction** | Rich cells reproduce, the rest attack the first valid target in range |
    | **Transition** | Upkeep, crowding penalty, mutation and warrior promotion; births on exactly 3 neighbours |

    The **minimal** ruleset swaps all of this for the classic three-state rule
    with random steps.
    """)

    st.markdown("---")
    runs_dir = Path("runs")
    run_count = len([d for d in runs_dir.iterdir() if d.is_dir()]) if runs_dir.exists() else 0
    col1, col2 = st.columns(2)
    col1.metric("📁 Past Runs", run_count)
    col2.metric("🧩 Rulesets", 2)


if __name__ == "__main__":
    main()
