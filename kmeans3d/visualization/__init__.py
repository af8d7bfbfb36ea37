"""
Visualization module for KMeans3D.

Provides:
- Snapshot drawing onto 3D axes and headless PNG frames
- Objective history plots
- JSON run summaries
- KMeansViewer, the interactive control surface
"""

from .plot_utils import (
    draw_snapshot,
    plot_snapshot,
    plot_objective_history,
    save_results_json,
    cluster_color,
    snapshot_summary,
    CLUSTER_COLORS,
    STYLE_CONFIG,
)
from .viewer import KMeansViewer

__all__ = [
    "draw_snapshot",
    "plot_snapshot",
    "plot_objective_history",
    "save_results_json",
    "cluster_color",
    "snapshot_summary",
    "CLUSTER_COLORS",
    "STYLE_CONFIG",
    "KMeansViewer",
]
