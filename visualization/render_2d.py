"""
render_2d.py

Simple 2D visualization of actuator board state.

Renders board snapshots as heatmaps and per-actuator histories as time
series. Performs no simulation or data modification.

All rendering is deterministic given the same inputs.
"""

from typing import Dict, Optional, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.colors import Colormap


def render_board(
    targets: np.ndarray,
    title: str = "Actuator Targets",
    cmap: Union[str, Colormap] = "viridis",
    annotate: bool = False,
    figsize: Tuple[float, float] = (6, 6),
    show: bool = False,
) -> Figure:
    """
    Render a board snapshot as a heatmap.

    Parameters
    ----------
    targets : np.ndarray
        2D array of normalized targets indexed [column, row].
    title : str, optional
        Plot title. Defaults to "Actuator Targets".
    cmap : Union[str, Colormap], optional
        Colormap name or instance. Defaults to "viridis".
    annotate : bool, optional
        If True, print each target value in its cell. Defaults to False.
    figsize : Tuple[float, float], optional
        Figure size in inches. Defaults to (6, 6).
    show : bool, optional
        If True, call plt.show(). Defaults to False.

    Returns
    -------
    Figure
        Matplotlib figure object.

    Raises
    ------
    ValueError
        If targets is not 2D.
    """
    if targets.ndim != 2:
        raise ValueError(
            f"targets must be 2D. Got {targets.ndim} dimensions."
        )

    fig, ax = plt.subplots(figsize=figsize)

    # imshow wants [row, column]; origin at lower-left puts cell (0, 0) in the corner
    im = ax.imshow(
        targets.T,
        cmap=cmap,
        vmin=0.0,
        vmax=1.0,
        origin="lower",
        aspect="equal",
    )

    if annotate:
        columns, rows = targets.shape
        for x in range(columns):
            for y in range(rows):
                ax.text(x, y, f"{targets[x, y]:.2f}", ha="center", va="center", color="w", fontsize=8)

    ax.set_title(title)
    ax.set_xlabel("Column")
    ax.set_ylabel("Row")

    cbar = fig.colorbar(im, ax=ax)
    cbar.set_label("Extension (normalized)")

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def render_actuator_history(
    history: Dict[str, np.ndarray],
    timestamps: Optional[np.ndarray] = None,
    title: str = "Actuator History",
    figsize: Tuple[float, float] = (10, 4),
    show: bool = False,
) -> Figure:
    """
    Render the target history of one or more actuators.

    Parameters
    ----------
    history : Dict[str, np.ndarray]
        Mapping from label (e.g. "(1, 1)") to 1D arrays of targets.
    timestamps : Optional[np.ndarray], optional
        1D array of timestamps shared by all series. If None, uses
        step indices.
    title : str, optional
        Plot title.
    figsize : Tuple[float, float], optional
        Figure size in inches.
    show : bool, optional
        If True, call plt.show().

    Returns
    -------
    Figure
        Matplotlib figure object.
    """
    fig, ax = plt.subplots(figsize=figsize)

    for label, values in history.items():
        if values.ndim != 1:
            raise ValueError(f"history[{label!r}] must be 1D. Got {values.ndim} dimensions.")
        x = timestamps if timestamps is not None else np.arange(len(values))
        ax.plot(x, values, label=label, linewidth=1)

    ax.set_title(title)
    ax.set_xlabel("Time (s)" if timestamps is not None else "Step")
    ax.set_ylabel("Extension (normalized)")
    ax.set_ylim(-0.05, 1.05)
    ax.grid(True, alpha=0.3)
    if history:
        ax.legend(loc="upper right")

    fig.tight_layout()

    if show:
        plt.show()

    return fig


def save_figure(
    fig: Figure,
    filepath: str,
    dpi: int = 150,
    transparent: bool = False,
) -> None:
    """
    Save a figure to file.

    Parameters
    ----------
    fig : Figure
        Matplotlib figure to save.
    filepath : str
        Output file path (e.g., "output.png").
    dpi : int, optional
        Resolution in dots per inch. Defaults to 150.
    transparent : bool, optional
        If True, save with transparent background. Defaults to False.
    """
    fig.savefig(filepath, dpi=dpi, transparent=transparent, bbox_inches="tight")


def close_figure(fig: Figure) -> None:
    """Close a figure to free memory."""
    plt.close(fig)
