"""
Plotting utilities for KMeans3D sessions.

Draws session snapshots onto matplotlib 3D axes (used by both the
interactive viewer and the headless frame writer) and saves run summaries.

Saved figures are 150 DPI, bbox_inches='tight', with consistent style.
The backend is left to the caller; headless scripts select "Agg".
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d.art3d import Line3DCollection

from ..config import ViewerConfig
from ..clustering.controller import SessionSnapshot


# ── Style config ──────────────────────────────────────────────────────
STYLE_CONFIG = {
    "figure.figsize": (10, 8),
    "figure.dpi": 150,
    "figure.facecolor": "white",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.size": 10,
    "axes.titlesize": 14,
    "axes.labelsize": 12,
    "legend.fontsize": 10,
    "lines.linewidth": 2,
    "lines.markersize": 8,
}

# Cluster palette, cycled by label index
CLUSTER_COLORS = [
    "#ff0000",  # red
    "#00ff00",  # green
    "#0000ff",  # blue
    "#ffff00",  # yellow
    "#00ffff",  # cyan
    "#ff00ff",  # magenta
]

COLORS = {
    "unassigned": "#808080",
    "centroid": "#000000",
    "link": "#aaaaaa",
    "objective": "#4363d8",
}


def _apply_style():
    """Apply rcParams."""
    plt.rcParams.update(STYLE_CONFIG)


def cluster_color(label: int) -> str:
    """Colour for a cluster label; grey for unassigned."""
    if label < 0:
        return COLORS["unassigned"]
    return CLUSTER_COLORS[label % len(CLUSTER_COLORS)]


def point_colors(labels: np.ndarray) -> List[str]:
    return [cluster_color(int(label)) for label in labels]


def link_segments(snapshot: SessionSnapshot) -> np.ndarray:
    """Segments from each assigned point to its centroid, shape (m, 2, 3)."""
    assigned = snapshot.labels >= 0
    if not np.any(assigned) or len(snapshot.centroids) == 0:
        return np.zeros((0, 2, 3))
    starts = snapshot.positions[assigned]
    ends = snapshot.centroids[snapshot.labels[assigned]]
    return np.stack([starts, ends], axis=1)


def _add_info_box(ax, text: str):
    """Add a semi-transparent info box in the upper-left corner."""
    props = dict(boxstyle="round,pad=0.4", facecolor="white", alpha=0.85,
                 edgecolor="#cccccc")
    ax.text2D(0.02, 0.98, text, transform=ax.transAxes, fontsize=8,
              verticalalignment="top", horizontalalignment="left",
              bbox=props, family="monospace")


def snapshot_summary(snapshot: SessionSnapshot) -> str:
    """One-glance description of a snapshot for info boxes and notices."""
    lines = [
        f"state: {snapshot.state.value}",
        f"N = {snapshot.n_points}  |  K = {snapshot.k}",
        f"iteration: {snapshot.iteration}",
    ]
    if len(snapshot.centroids):
        lines.append(f"objective: {snapshot.objective:.4f}")
    return "\n".join(lines)


def set_axes_bounds(ax, bound: float):
    """Fix the axis limits to the generator cube."""
    ax.set_xlim(-bound, bound)
    ax.set_ylim(-bound, bound)
    ax.set_zlim(-bound, bound)


# ─────────────────────────────────────────────────────────────────────
# Scene drawing
# ─────────────────────────────────────────────────────────────────────

def draw_snapshot(
    ax,
    snapshot: SessionSnapshot,
    viewer_config: Optional[ViewerConfig] = None,
    bound: Optional[float] = None,
    show_info: bool = True,
):
    """Draw a snapshot onto 3D axes, replacing whatever was there.

    Points are coloured by cluster (grey when unassigned), centroids are
    black markers, and optional grey segments join points to centroids.
    The current view angles are preserved.

    Args:
        ax: A matplotlib Axes3D.
        snapshot: Session snapshot to draw.
        viewer_config: Marker sizes and line settings.
        bound: Axis half-width. Keeps limits fixed across redraws.
        show_info: Add the state/iteration info box.
    """
    cfg = viewer_config or ViewerConfig()
    elev, azim = ax.elev, ax.azim
    ax.cla()

    if snapshot.n_points:
        pos = snapshot.positions
        ax.scatter(
            pos[:, 0], pos[:, 1], pos[:, 2],
            c=point_colors(snapshot.labels), s=cfg.point_size,
            depthshade=False,
        )

    if cfg.show_lines:
        segments = link_segments(snapshot)
        if len(segments):
            ax.add_collection3d(Line3DCollection(
                segments, colors=COLORS["link"], alpha=cfg.line_alpha,
                linewidths=0.6,
            ))

    if len(snapshot.centroids):
        c = snapshot.centroids
        ax.scatter(
            c[:, 0], c[:, 1], c[:, 2],
            c=COLORS["centroid"], marker="X", s=cfg.centroid_size,
            edgecolors="white", linewidths=1.0, depthshade=False,
        )

    if bound is not None:
        set_axes_bounds(ax, bound)
    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.set_zlabel("Z")
    ax.view_init(elev=elev, azim=azim)
    if show_info:
        _add_info_box(ax, snapshot_summary(snapshot))


def plot_snapshot(
    snapshot: SessionSnapshot,
    out_path: Union[str, Path] = "snapshot.png",
    bound: Optional[float] = None,
    viewer_config: Optional[ViewerConfig] = None,
    title: str = "K-Means Clustering",
):
    """Render a single snapshot to an image file."""
    _apply_style()
    cfg = viewer_config or ViewerConfig()

    fig = plt.figure(figsize=cfg.figsize)
    ax = fig.add_subplot(projection="3d")
    ax.view_init(elev=cfg.camera_elev, azim=cfg.camera_azim)
    draw_snapshot(ax, snapshot, cfg, bound=bound)
    ax.set_title(f"{title} (iteration {snapshot.iteration})")
    fig.savefig(str(out_path), dpi=150, bbox_inches="tight")
    plt.close(fig)


def plot_objective_history(
    history: List[float],
    out_path: Union[str, Path] = "objective_history.png",
    title: str = "Objective per Iteration",
):
    """Plot the k-means objective against iteration."""
    _apply_style()

    fig, ax = plt.subplots(figsize=(10, 6))
    iterations = list(range(len(history)))
    ax.plot(iterations, history, "o-", color=COLORS["objective"],
            label="Total squared distance")
    if len(history) > 1 and history[0] != 0:
        delta = history[0] - history[-1]
        pct = delta / history[0] * 100
        ax.text(0.98, 0.98, f"Δ = {delta:.4f} ({pct:.1f}%)",
                transform=ax.transAxes, fontsize=8, ha="right", va="top",
                family="monospace",
                bbox=dict(boxstyle="round,pad=0.4", facecolor="white",
                          alpha=0.85, edgecolor="#cccccc"))

    ax.set_xlabel("Iteration")
    ax.set_ylabel("Objective (lower is better)")
    ax.legend(loc="upper left")
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(str(out_path), dpi=150, bbox_inches="tight")
    plt.close(fig)


# ─────────────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────────────

def _make_serializable(obj: Any) -> Any:
    """Recursively convert numpy types for JSON serialization."""
    if isinstance(obj, dict):
        return {k: _make_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_make_serializable(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


def save_results_json(
    results: Dict[str, Any],
    out_path: Union[str, Path],
):
    """Save a run summary to JSON with numpy-safe conversion."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w") as f:
        json.dump(_make_serializable(results), f, indent=2)
