"""
Grid View component for the Pandora UI.

Turns the grid's state and age arrays into an RGB image and wraps it in a
Plotly figure:
  - DEAD cells are black
  - ALIVE cells fade from white towards red as they age
  - MUTATED cells brighten from red towards white as they age
  - WARRIOR cells brighten from blue towards white as they age

Ages wrap every 255 generations so long-lived regions pulse instead of
saturating.
"""

from typing import Optional

import numpy as np
import plotly.graph_objects as go

from pandora.core.cell import CellState
from pandora.core.grid import GridStore
from pandora.simulation.statistics import Statistics


def cell_colors(states: np.ndarray, ages: np.ndarray) -> np.ndarray:
    """
    Map (height, width) state/age arrays to a (height, width, 3) uint8 image.
    """
    shade = (np.asarray(ages, dtype=np.int64) % 255).astype(np.uint8)
    inverse = (255 - shade).astype(np.uint8)
    image = np.zeros(states.shape + (3,), dtype=np.uint8)

    alive = states == int(CellState.ALIVE)
    image[alive, 0] = 255
    image[alive, 1] = inverse[alive]
    image[alive, 2] = inverse[alive]

    mutated = states == int(CellState.MUTATED)
    image[mutated, 0] = 255
    image[mutated, 1] = shade[mutated]
    image[mutated, 2] = shade[mutated]

    warrior = states == int(CellState.WARRIOR)
    image[warrior, 0] = shade[warrior]
    image[warrior, 1] = shade[warrior]
    image[warrior, 2] = 255

    return image


def render_grid(
    grid: GridStore,
    statistics: Optional[Statistics] = None,
    cell_size: int = 10,
    show_overlay: bool = True,
) -> go.Figure:
    """
    Render the grid as an image figure.

    Args:
        grid: Grid to draw.
        statistics: Counts for the text overlay (skipped when None).
        cell_size: Pixels per cell used to size the figure.
        show_overlay: Draw the statistics line in the top-left corner.
    """
    image = cell_colors(grid.state_array(), grid.age_array())
    fig = go.Figure(go.Image(z=image, hovertemplate="(%{x}, %{y})<extra></extra>"))

    if show_overlay and statistics is not None:
        fig.add_annotation(
            x=0, y=0, xref="paper", yref="paper",
            xanchor="left", yanchor="bottom",
            text=statistics.overlay_text(),
            showarrow=False,
            font=dict(color="white", size=12),
            bgcolor="rgba(0, 0, 0, 0.6)",
        )

    fig.update_layout(
        width=grid.width * cell_size + 40,
        height=grid.height * cell_size + 40,
        margin=dict(l=20, r=20, t=20, b=20),
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
    )
    return fig
