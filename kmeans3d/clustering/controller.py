"""Step-driven k-means controller.

Owns a single ClusteringSession and exposes it as a small state machine:

    INITIAL --start_clustering--> RUNNING --step--> RUNNING | CONVERGED

generate_data, load_points and reset_clustering return to INITIAL from any
state. Every transition either completes or raises before touching the
session. The presentation layer reads immutable snapshots only.
"""

import logging
import threading
import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, NamedTuple, Optional

from ..config import KMeans3DConfig
from ..data.synthetic import Point, PointGenerator, points_from_array, points_to_array, labels_of
from ..errors import InvalidTransition, PreconditionError
from .lloyd import (
    Centroid,
    assign_points,
    centroids_to_array,
    initialize_centroids,
    reset_labels,
    update_centroids,
)
from .metrics import total_squared_distance


logger = logging.getLogger(__name__)

Initializer = Callable[[List[Point], int, np.random.Generator], List[Centroid]]


class AlgorithmState(Enum):
    """Lifecycle of a clustering run."""
    INITIAL = "initial"
    RUNNING = "running"
    CONVERGED = "converged"


@dataclass
class ClusteringSession:
    """Full mutable state of one clustering run.

    Attributes:
        points: Current point set.
        centroids: Current centroids (empty while INITIAL).
        iteration: Number of steps taken in the current run.
        state: Current AlgorithmState.
        k: Cluster count frozen at the start of the run.
        objective_history: Objective after every assignment of the run.
    """
    points: List[Point] = field(default_factory=list)
    centroids: List[Centroid] = field(default_factory=list)
    iteration: int = 0
    state: AlgorithmState = AlgorithmState.INITIAL
    k: int = 1
    objective_history: List[float] = field(default_factory=list)

    def objective(self) -> float:
        if not self.centroids:
            return 0.0
        return total_squared_distance(
            points_to_array(self.points),
            centroids_to_array(self.centroids),
            labels_of(self.points),
        )


@dataclass(frozen=True, eq=False)
class SessionSnapshot:
    """Read-only view of a session after a transition.

    Attributes:
        positions: Point coordinates (n x 3).
        labels: Cluster labels (n,), -1 for unassigned.
        centroids: Centroid coordinates (k x 3), empty while INITIAL.
        iteration: Step count of the current run.
        state: AlgorithmState.
        k: Cluster count of the run.
        objective: Total squared distance (0.0 while INITIAL).
        version: Increases with every committed transition.
    """
    positions: np.ndarray
    labels: np.ndarray
    centroids: np.ndarray
    iteration: int
    state: AlgorithmState
    k: int
    objective: float
    version: int

    @property
    def n_points(self) -> int:
        return len(self.positions)


class StepResult(NamedTuple):
    """Outcome of a single step.

    Attributes:
        iteration: Iteration count after the step.
        moved: Whether any centroid moved beyond the threshold.
        converged: Whether the run is now finished.
        objective: Objective after the step's assignment.
    """
    iteration: int
    moved: bool
    converged: bool
    objective: float


class ClusteringController:
    """Orchestrates generation, seeding, assignment and update steps.

    All public transitions hold one re-entrant lock for their full duration.
    """

    def __init__(
        self,
        config: Optional[KMeans3DConfig] = None,
        initializer: Optional[Initializer] = None,
    ):
        """Initialize controller with an empty INITIAL session.

        Args:
            config: Configuration. Defaults to KMeans3DConfig().
            initializer: Optional override for centroid seeding, called as
                initializer(points, k, rng). Defaults to the configured
                init_method.
        """
        self.config = config if config is not None else KMeans3DConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self.generator = PointGenerator(bound=self.config.generator.bound, rng=self.rng)
        self._initializer = initializer
        self._lock = threading.RLock()
        self._version = 0
        self.session = ClusteringSession(k=self.config.clustering.n_clusters)

    # ── Read side ───────────────────────────────────────────────────────

    @property
    def state(self) -> AlgorithmState:
        return self.session.state

    @property
    def iteration(self) -> int:
        return self.session.iteration

    def snapshot(self) -> SessionSnapshot:
        """Immutable snapshot of the current session."""
        with self._lock:
            s = self.session
            positions = points_to_array(s.points)
            labels = labels_of(s.points)
            centroids = centroids_to_array(s.centroids)
            for arr in (positions, labels, centroids):
                arr.setflags(write=False)
            return SessionSnapshot(
                positions=positions,
                labels=labels,
                centroids=centroids,
                iteration=s.iteration,
                state=s.state,
                k=s.k,
                objective=s.objective(),
                version=self._version,
            )

    # ── Transitions ─────────────────────────────────────────────────────

    def generate_data(
        self,
        count: Optional[int] = None,
        bound: Optional[float] = None,
    ) -> SessionSnapshot:
        """Replace the point set with fresh random points.

        Always permitted; returns to INITIAL.

        Args:
            count: Point count (clamped to the configured range).
            bound: Half-width of the sampling cube.
        """
        with self._lock:
            gen_cfg = self.config.generator
            new_bound = gen_cfg.bound
            if bound is not None:
                try:
                    new_bound = float(bound)
                except (TypeError, ValueError) as e:
                    raise PreconditionError(f"bound must be a number, got {bound!r}") from e
                if not np.isfinite(new_bound) or new_bound <= 0:
                    raise PreconditionError(f"bound must be positive, got {bound}")
            requested = gen_cfg.n_points if count is None else count
            try:
                new_count = gen_cfg.clamp_count(requested)
            except (TypeError, ValueError, OverflowError) as e:
                raise PreconditionError(f"point count must be an integer, got {requested!r}") from e

            points = PointGenerator(bound=new_bound, rng=self.rng).generate(new_count)

            # commit
            gen_cfg.bound = new_bound
            gen_cfg.n_points = new_count
            self.generator.bound = new_bound
            self._replace_points(points)
            logger.info(
                "Generated %d points in [-%.2f, %.2f]^3",
                len(points), gen_cfg.bound, gen_cfg.bound,
            )
            return self.snapshot()

    def load_points(self, coordinates: np.ndarray) -> SessionSnapshot:
        """Replace the point set with explicit (n, 3) coordinates."""
        with self._lock:
            arr = np.asarray(coordinates, dtype=float)
            if arr.ndim != 2 or arr.shape[1] != 3:
                raise PreconditionError(
                    f"Expected coordinates of shape (n, 3), got {arr.shape}"
                )
            self._replace_points(points_from_array(arr))
            logger.info("Loaded %d points", len(arr))
            return self.snapshot()

    def set_cluster_count(self, k: int) -> None:
        """Change k for the next run. An active run keeps its own k."""
        with self._lock:
            if int(k) < 1:
                raise PreconditionError(f"Cluster count must be >= 1, got {k}")
            self.config.clustering.n_clusters = int(k)
            if self.session.state is AlgorithmState.INITIAL:
                self.session.k = int(k)
                self._version += 1

    def start_clustering(self) -> SessionSnapshot:
        """Seed centroids and run the first assignment.

        Permitted from INITIAL and CONVERGED.
        """
        with self._lock:
            self._start()
            return self.snapshot()

    def step(self) -> StepResult:
        """Advance the run by one update + assignment.

        Starts the run first when called from INITIAL.

        Raises:
            InvalidTransition: If the run has already converged.
            PreconditionError: If an implicit start has no points.
        """
        with self._lock:
            s = self.session
            if s.state is AlgorithmState.CONVERGED:
                raise InvalidTransition(
                    f"Run converged after {s.iteration} iterations; "
                    "start a new run or generate new data"
                )
            if s.state is AlgorithmState.INITIAL:
                self._start()

            s.iteration += 1
            moved = update_centroids(
                s.centroids, self.config.clustering.convergence_threshold
            )
            assign_points(s.points, s.centroids)
            objective = s.objective()
            s.objective_history.append(objective)

            if not moved:
                s.state = AlgorithmState.CONVERGED
                logger.info("Converged after %d iterations", s.iteration)
            else:
                logger.debug("Iteration %d: objective=%.6f", s.iteration, objective)
            self._version += 1

            return StepResult(
                iteration=s.iteration,
                moved=moved,
                converged=not moved,
                objective=objective,
            )

    def reset_clustering(self) -> SessionSnapshot:
        """Return to INITIAL on the same points."""
        with self._lock:
            s = self.session
            reset_labels(s.points)
            s.centroids = []
            s.iteration = 0
            s.state = AlgorithmState.INITIAL
            s.k = self.config.clustering.n_clusters
            s.objective_history = []
            self._version += 1
            logger.debug("Clustering reset")
            return self.snapshot()

    def run_to_convergence(
        self,
        max_iter: Optional[int] = None,
        verbose: bool = False,
    ) -> StepResult:
        """Step until the run converges or max_iter steps have been taken.

        Args:
            max_iter: Step limit. Defaults to the configured max_iter.
            verbose: Whether to print progress.

        Returns:
            Result of the last step taken.

        Raises:
            PreconditionError: If max_iter is below one.
        """
        with self._lock:
            limit = max_iter if max_iter is not None else self.config.clustering.max_iter
            if limit < 1:
                raise PreconditionError(f"max_iter must be >= 1, got {limit}")
            result = None
            for _ in range(limit):
                result = self.step()
                if verbose:
                    print(
                        f"Iteration {result.iteration:4d} | "
                        f"objective: {result.objective:.4f} | "
                        f"moved: {result.moved}"
                    )
                if result.converged:
                    break
            if result is not None and not result.converged:
                logger.warning("No convergence within %d steps", limit)
            return result

    # ── Internals ───────────────────────────────────────────────────────

    def _replace_points(self, points: List[Point]) -> None:
        self.session = ClusteringSession(
            points=points,
            k=self.config.clustering.n_clusters,
        )
        self._version += 1

    def _start(self) -> None:
        s = self.session
        if s.state is AlgorithmState.RUNNING:
            raise InvalidTransition("A run is already in progress; reset it first")
        if not s.points:
            raise PreconditionError("Cannot start clustering without points")

        k = self.config.clustering.n_clusters
        if self._initializer is not None:
            centroids = list(self._initializer(s.points, k, self.rng))
            if len(centroids) != k:
                raise PreconditionError(
                    f"Initializer returned {len(centroids)} centroids, expected {k}"
                )
        else:
            centroids = initialize_centroids(
                s.points,
                k,
                self.rng,
                method=self.config.clustering.init_method,
                bound=self.config.generator.bound,
            )

        # commit
        reset_labels(s.points)
        s.k = k
        s.centroids = centroids
        s.iteration = 0
        assign_points(s.points, s.centroids)
        s.objective_history = [s.objective()]
        s.state = AlgorithmState.RUNNING
        self._version += 1
        logger.info("Started clustering with k=%d on %d points", k, len(s.points))
