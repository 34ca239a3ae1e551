"""
Reusable chart components for the Pandora UI.

Each helper takes a DataFrame of generation KPIs (one row per generation,
columns from MetricsCollector.kpi_names()) and returns a Plotly figure.
"""

from typing import Optional

import pandas as pd
import plotly.graph_objects as go


_LEGEND = dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)


def _x_axis(df: pd.DataFrame):
    return df["generation"] if "generation" in df.columns else df.index


def _line_chart(
    df: pd.DataFrame,
    columns: dict[str, tuple[str, str]],
    title: str,
    y_title: str,
) -> go.Figure:
    fig = go.Figure()
    x = _x_axis(df)
    for col, (label, color) in columns.items():
        if col in df.columns:
            fig.add_trace(go.Scatter(
                x=x, y=df[col],
                mode="lines",
                name=label,
                line=dict(color=color, width=2),
            ))
    fig.update_layout(
        title=title,
        xaxis_title="Generation",
        yaxis_title=y_title,
        template="plotly_white",
        legend=_LEGEND,
    )
    return fig


def population_over_time(df: pd.DataFrame, title: str = "Population by State") -> go.Figure:
    """Alive / mutated / warrior counts per generation."""
    return _line_chart(
        df,
        {
            "alive_count": ("Alive", "#e74c3c"),
            "mutated_count": ("Mutated", "#8e44ad"),
            "warrior_count": ("Warrior", "#2980b9"),
            "live_count": ("Total live", "#2c3e50"),
        },
        title,
        "Cells",
    )


def energy_over_time(df: pd.DataFrame, title: str = "Energy of Live Cells") -> go.Figure:
    """Mean energy with a shaded min..max band."""
    fig = _line_chart(
        df,
        {
            "avg_energy": ("Mean", "#f39c12"),
            "median_energy": ("Median", "#d35400"),
        },
        title,
        "Energy",
    )
    if "min_energy" in df.columns and "max_energy" in df.columns:
        x = pd.Series(_x_axis(df)).reset_index(drop=True)
        fig.add_trace(go.Scatter(
            x=pd.concat([x, x[::-1]]),
            y=pd.concat([
                df["max_energy"].reset_index(drop=True),
                df["min_energy"].reset_index(drop=True)[::-1],
            ]),
            fill="toself",
            fillcolor="rgba(243, 156, 18, 0.15)",
            line=dict(color="rgba(255,255,255,0)"),
            showlegend=False,
            name="Range",
        ))
    return fig


def events_over_time(df: pd.DataFrame, title: str = "Events per Generation") -> go.Figure:
    """Births, deaths, attacks and moves per generation."""
    return _line_chart(
        df,
        {
            "births_total": ("Births", "#27ae60"),
            "deaths_total": ("Deaths", "#c0392b"),
            "attacks": ("Attacks", "#7f8c8d"),
            "displacements": ("Displacements", "#16a085"),
        },
        title,
        "Events",
    )


def sweep_comparison_bars(
    combinations: list[dict],
    metric: str = "stability_rate",
    title: Optional[str] = None,
) -> go.Figure:
    """Bar per sweep combination for one aggregate metric."""
    labels = [str(c.get("params", c.get("combination_id", ""))) for c in combinations]
    values = [c.get(metric, 0) for c in combinations]
    fig = go.Figure(go.Bar(
        x=labels,
        y=values,
        marker_color="#3498db",
        text=[f"{v:.2f}" for v in values],
        textposition="auto",
    ))
    fig.update_layout(
        title=title or f"Sweep Comparison: {metric}",
        xaxis_title="Parameter Combination",
        yaxis_title=metric.replace("_", " ").title(),
        template="plotly_white",
        xaxis_tickangle=-45,
    )
    return fig
