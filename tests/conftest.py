"""Shared fixtures for KMeans3D tests."""

import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from kmeans3d.clustering.controller import ClusteringController
from kmeans3d.clustering.lloyd import Centroid
from kmeans3d.config import KMeans3DConfig


@pytest.fixture
def scenario_points():
    """Two well-separated pairs of points along z."""
    return np.array([
        [0.0, 0.0, 0.0],
        [0.0, 0.0, 1.0],
        [10.0, 0.0, 0.0],
        [10.0, 0.0, 1.0],
    ])


@pytest.fixture
def fixed_initializer():
    """Factory for initializers that always seed at the given positions."""
    def make(*positions):
        def _init(points, k, rng):
            return [Centroid(x=p[0], y=p[1], z=p[2]) for p in positions[:k]]
        return _init
    return make


@pytest.fixture
def scenario_controller(scenario_points, fixed_initializer):
    """Controller over the scenario points, k=2, seeded at x=0 and x=10."""
    config = KMeans3DConfig(seed=0)
    config.clustering.n_clusters = 2
    controller = ClusteringController(
        config,
        initializer=fixed_initializer((0.0, 0.0, 0.0), (10.0, 0.0, 0.0)),
    )
    controller.load_points(scenario_points)
    return controller


@pytest.fixture
def small_config():
    """Seeded config with a small point set."""
    config = KMeans3DConfig(seed=7)
    config.generator.n_points = 60
    config.clustering.n_clusters = 3
    return config
