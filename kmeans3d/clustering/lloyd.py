"""Lloyd's k-means steps over explicit point and centroid records.

The steps are kept separate (initialize, assign, update) so the controller
can run them one at a time and the viewer can show every intermediate state.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Sequence

from ..data.synthetic import UNASSIGNED, Point, points_to_array
from ..errors import PreconditionError


logger = logging.getLogger(__name__)


@dataclass
class Centroid:
    """A cluster centre.

    Attributes:
        x: X-coordinate.
        y: Y-coordinate.
        z: Z-coordinate.
        points: Points assigned by the latest assignment step.
    """
    x: float
    y: float
    z: float
    points: List[Point] = field(default_factory=list, repr=False)

    def to_array(self) -> np.ndarray:
        """Convert to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z])

    def move_to(self, position: np.ndarray) -> float:
        """Move to `position` and return the displacement."""
        shift = float(np.linalg.norm(np.asarray(position) - self.to_array()))
        self.x, self.y, self.z = (float(v) for v in position)
        return shift


def centroids_to_array(centroids: Sequence[Centroid]) -> np.ndarray:
    """Stack centroid coordinates into a (k, 3) array."""
    if len(centroids) == 0:
        return np.zeros((0, 3))
    return np.array([c.to_array() for c in centroids], dtype=float)


def distance_matrix(data: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Compute distances from all points to all centroids.

    Args:
        data: Data points (n x 3).
        centroids: Centroids (k x 3).

    Returns:
        Distance matrix (n x k).
    """
    # (n, 1, 3) - (1, k, 3) -> (n, k, 3) -> (n, k)
    diff = data[:, np.newaxis, :] - centroids[np.newaxis, :, :]
    return np.linalg.norm(diff, axis=2)


def initialize_centroids(
    points: Sequence[Point],
    k: int,
    rng: np.random.Generator,
    method: str = "sample",
    bound: float = 2.0,
) -> List[Centroid]:
    """Seed `k` centroids.

    Args:
        points: Current point set; must be non-empty.
        k: Number of centroids. May exceed the number of points.
        rng: Random generator.
        method: "sample" draws seed positions from the points with
            replacement; "uniform" draws them inside [-bound, bound]^3.
        bound: Half-width of the cube used by "uniform".

    Returns:
        k centroids with empty assignment lists.
    """
    if len(points) == 0:
        raise PreconditionError("Cannot initialize centroids without points")
    if k < 1:
        raise PreconditionError(f"Need at least one centroid, got k={k}")

    if method == "sample":
        idx = rng.integers(len(points), size=k)
        seeds = points_to_array(points)[idx]
    elif method == "uniform":
        seeds = rng.uniform(-bound, bound, size=(k, 3))
    else:
        raise ValueError(f"Unknown initialization method {method!r}")

    logger.debug("Seeded %d centroids with method=%s", k, method)
    return [Centroid(x=float(s[0]), y=float(s[1]), z=float(s[2])) for s in seeds]


def assign_points(points: Sequence[Point], centroids: Sequence[Centroid]) -> np.ndarray:
    """Label every point with its nearest centroid.

    Ties go to the lowest centroid index. Each centroid's `points` list is
    rebuilt to hold exactly the points carrying its index.

    Args:
        points: Point set (labels are mutated).
        centroids: Non-empty centroid list (assignment lists are replaced).

    Returns:
        New labels (n,).
    """
    if len(centroids) == 0:
        raise PreconditionError("Cannot assign points without centroids")

    for c in centroids:
        c.points = []
    if len(points) == 0:
        return np.zeros(0, dtype=int)

    distances = distance_matrix(points_to_array(points), centroids_to_array(centroids))
    # argmin returns the first minimum, i.e. the lowest index on ties
    labels = np.argmin(distances, axis=1)

    for point, label in zip(points, labels):
        point.cluster = int(label)
        centroids[int(label)].points.append(point)

    return labels


def update_centroids(
    centroids: Sequence[Centroid],
    convergence_threshold: float = 0.01,
) -> bool:
    """Move every non-empty centroid to the mean of its assigned points.

    Centroids with no assigned points stay where they are.

    Args:
        centroids: Centroids carrying their latest assignment lists.
        convergence_threshold: Shift above which a centroid counts as moved.

    Returns:
        True if any centroid moved by more than the threshold.
    """
    any_moved = False
    for c in centroids:
        if not c.points:
            continue
        new_position = points_to_array(c.points).mean(axis=0)
        shift = c.move_to(new_position)
        if shift > convergence_threshold:
            any_moved = True
    return any_moved


def reset_labels(points: Sequence[Point]) -> None:
    """Mark every point as unassigned."""
    for p in points:
        p.cluster = UNASSIGNED
