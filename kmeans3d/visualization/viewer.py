"""Interactive matplotlib viewer for step-driven k-means.

The viewer is a thin presentation adapter: each control maps to one
controller transition, and the render loop only ever reads the latest
snapshot. Controller errors are shown in the notice line.
"""

import logging
from typing import Optional

import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.widgets import Button, TextBox

from ..clustering.controller import AlgorithmState, ClusteringController, SessionSnapshot
from ..config import KMeans3DConfig
from ..errors import KMeans3DError
from .plot_utils import draw_snapshot, set_axes_bounds


logger = logging.getLogger(__name__)


class KMeansViewer:
    """3D scene plus the control surface for one clustering session."""

    def __init__(
        self,
        controller: Optional[ClusteringController] = None,
        config: Optional[KMeans3DConfig] = None,
    ):
        """Build the figure and widgets.

        Args:
            controller: Controller to drive. Created from config if omitted.
            config: Used only when no controller is given.
        """
        self.controller = controller or ClusteringController(config)
        self.config = self.controller.config
        vcfg = self.config.viewer

        self.fig = plt.figure(figsize=vcfg.figsize)
        self.ax = self.fig.add_axes([0.0, 0.14, 1.0, 0.86], projection="3d")

        self.points_box = TextBox(
            self.fig.add_axes([0.08, 0.05, 0.08, 0.05]), "Points ",
            initial=str(self.config.generator.n_points),
        )
        self.k_box = TextBox(
            self.fig.add_axes([0.22, 0.05, 0.06, 0.05]), "k ",
            initial=str(self.config.clustering.n_clusters),
        )
        self.generate_button = Button(self.fig.add_axes([0.31, 0.05, 0.15, 0.05]), "Generate Data")
        self.start_button = Button(self.fig.add_axes([0.48, 0.05, 0.14, 0.05]), "Start")
        self.step_button = Button(self.fig.add_axes([0.64, 0.05, 0.14, 0.05]), "Next Step")
        self.camera_button = Button(self.fig.add_axes([0.80, 0.05, 0.15, 0.05]), "Reset Camera")
        self.notice = self.fig.text(0.02, 0.01, "", fontsize=9, color="#444444")

        self.points_box.on_submit(self.on_points_submit)
        self.k_box.on_submit(self.on_k_submit)
        self.generate_button.on_clicked(self.on_generate)
        self.start_button.on_clicked(self.on_start)
        self.step_button.on_clicked(self.on_step)
        self.camera_button.on_clicked(self.on_reset_camera)

        self.animation: Optional[FuncAnimation] = None
        self._drawn_version = -1

        self.reset_camera()
        if not self.controller.session.points:
            self.controller.generate_data()
        self.snapshot = self.controller.snapshot()
        self.render()

    # ── Rendering ───────────────────────────────────────────────────────

    def render(self, force: bool = False) -> bool:
        """Redraw the scene if the snapshot changed. Returns True on redraw."""
        if not force and self.snapshot.version == self._drawn_version:
            return False
        draw_snapshot(
            self.ax, self.snapshot, self.config.viewer,
            bound=self.config.generator.bound,
        )
        self._drawn_version = self.snapshot.version
        self.fig.canvas.draw_idle()
        return True

    def _on_frame(self, _frame):
        self.render()
        return []

    def show(self):
        """Start the render loop and block on the matplotlib event loop."""
        self.animation = FuncAnimation(
            self.fig, self._on_frame,
            interval=self.config.viewer.frame_interval_ms,
            cache_frame_data=False,
        )
        plt.show()

    def set_notice(self, text: str):
        self.notice.set_text(text)
        self.fig.canvas.draw_idle()

    def _apply(self, transition, *args) -> bool:
        """Run a controller transition and surface any error as a notice."""
        try:
            transition(*args)
        except KMeans3DError as e:
            logger.info("Rejected %s: %s", transition.__name__, e)
            self.set_notice(str(e))
            return False
        self.snapshot = self.controller.snapshot()
        self.set_notice(self._status_text(self.snapshot))
        self.render()
        return True

    @staticmethod
    def _status_text(snapshot: SessionSnapshot) -> str:
        if snapshot.state is AlgorithmState.CONVERGED:
            return f"Converged after {snapshot.iteration} iterations"
        if snapshot.state is AlgorithmState.RUNNING:
            return f"Iteration {snapshot.iteration}"
        return f"{snapshot.n_points} points ready"

    # ── Controls ────────────────────────────────────────────────────────

    def on_points_submit(self, text: str):
        """Store a new point count; applied on the next Generate Data."""
        try:
            count = int(text)
        except ValueError:
            self.set_notice(f"Point count must be an integer, got {text!r}")
            return
        self.config.generator.n_points = self.config.generator.clamp_count(count)
        self.set_notice(f"{self.config.generator.n_points} points on next generate")

    def on_k_submit(self, text: str):
        """Change k; an existing run is reset so the new k applies."""
        try:
            k = int(text)
        except ValueError:
            self.set_notice(f"Cluster count must be an integer, got {text!r}")
            return
        if not self._apply(self.controller.set_cluster_count, k):
            return
        if self.controller.state is not AlgorithmState.INITIAL:
            self._apply(self.controller.reset_clustering)

    def on_generate(self, _event=None):
        self._apply(self.controller.generate_data, self.config.generator.n_points)

    def on_start(self, _event=None):
        self._apply(self.controller.start_clustering)

    def on_step(self, _event=None):
        self._apply(self.controller.step)

    def on_reset_camera(self, _event=None):
        self.reset_camera()
        self.fig.canvas.draw_idle()

    def reset_camera(self):
        """Restore default view angles and axis limits."""
        vcfg = self.config.viewer
        self.ax.view_init(elev=vcfg.camera_elev, azim=vcfg.camera_azim)
        set_axes_bounds(self.ax, self.config.generator.bound)
