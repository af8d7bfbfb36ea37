"""Clustering module: Lloyd steps, metrics and the session controller."""

from .lloyd import (
    Centroid,
    initialize_centroids,
    assign_points,
    update_centroids,
)
from .metrics import (
    total_squared_distance,
    overall_distance,
    silhouette_score,
    cluster_sizes,
)
from .controller import (
    AlgorithmState,
    ClusteringController,
    ClusteringSession,
    SessionSnapshot,
    StepResult,
)

__all__ = [
    "Centroid",
    "initialize_centroids",
    "assign_points",
    "update_centroids",
    "total_squared_distance",
    "overall_distance",
    "silhouette_score",
    "cluster_sizes",
    "AlgorithmState",
    "ClusteringController",
    "ClusteringSession",
    "SessionSnapshot",
    "StepResult",
]
