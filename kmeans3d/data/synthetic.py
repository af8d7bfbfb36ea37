"""Random 3D point generation.

Points are drawn independently and uniformly per axis inside a symmetric
cube. Every generated point starts unassigned.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence


UNASSIGNED = -1


@dataclass
class Point:
    """A 3D point with a cluster label.

    Attributes:
        x: X-coordinate.
        y: Y-coordinate.
        z: Z-coordinate.
        cluster: Index of the assigned centroid, or UNASSIGNED.
    """
    x: float
    y: float
    z: float
    cluster: int = UNASSIGNED

    def to_array(self) -> np.ndarray:
        """Convert to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z])


def points_to_array(points: Sequence[Point]) -> np.ndarray:
    """Stack point coordinates into an (n, 3) array."""
    if len(points) == 0:
        return np.zeros((0, 3))
    return np.array([p.to_array() for p in points], dtype=float)


def points_from_array(arr: np.ndarray) -> List[Point]:
    """Create unassigned points from an (n, 3) array."""
    arr = np.asarray(arr, dtype=float)
    return [Point(x=float(row[0]), y=float(row[1]), z=float(row[2])) for row in arr]


def labels_of(points: Sequence[Point]) -> np.ndarray:
    """Cluster labels of the given points as an int array."""
    return np.array([p.cluster for p in points], dtype=int)


class PointGenerator:
    """Generator for uniformly distributed 3D point clouds."""

    def __init__(
        self,
        bound: float = 2.0,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        """Initialize generator.

        Args:
            bound: Half-width of the sampling cube.
            rng: Shared random generator. Takes precedence over seed.
            seed: Seed used when no rng is supplied.
        """
        self.bound = bound
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def sample_coordinates(self, count: int) -> np.ndarray:
        """Draw an (count, 3) array of uniform coordinates."""
        return self.rng.uniform(-self.bound, self.bound, size=(count, 3))

    def generate(self, count: int) -> List[Point]:
        """Generate `count` fresh, unassigned points."""
        return points_from_array(self.sample_coordinates(count))


def generate_points(
    count: int = 300,
    bound: float = 2.0,
    seed: Optional[int] = None,
) -> List[Point]:
    """Convenience function to generate a random point set.

    Args:
        count: Number of points.
        bound: Half-width of the sampling cube.
        seed: Random seed.

    Returns:
        List of unassigned points.
    """
    return PointGenerator(bound=bound, seed=seed).generate(count)
