"""Clustering quality metrics.

Provides metrics for:
- Total squared distance - the k-means objective
- Overall distance (OD) - RMS distance from points to their centroid
- Silhouette score - cluster separation quality
- Cluster sizes

Points labelled -1 (unassigned) are ignored everywhere.
"""

import numpy as np


def _assigned(data: np.ndarray, labels: np.ndarray):
    data = np.asarray(data, dtype=float)
    labels = np.asarray(labels, dtype=int)
    mask = labels >= 0
    return data[mask], labels[mask]


def total_squared_distance(
    data: np.ndarray,
    centroids: np.ndarray,
    labels: np.ndarray,
) -> float:
    """Compute the k-means objective.

    sum_i ||x_i - c_{y_i}||^2

    Args:
        data: Data points (n x 3).
        centroids: Cluster centroids (k x 3).
        labels: Cluster assignments (n,).

    Returns:
        Total squared distance. 0.0 when nothing is assigned.
    """
    data, labels = _assigned(data, labels)
    if len(data) == 0:
        return 0.0
    centroids = np.asarray(centroids, dtype=float)
    diff = data - centroids[labels]
    return float(np.sum(diff ** 2))


def overall_distance(
    data: np.ndarray,
    centroids: np.ndarray,
    labels: np.ndarray,
) -> float:
    """Compute overall distance (OD) metric.

    OD = sqrt(mean(||x_i - c_{y_i}||^2))

    Lower is better.
    """
    n_assigned = int(np.sum(np.asarray(labels) >= 0))
    if n_assigned == 0:
        return 0.0
    return float(np.sqrt(total_squared_distance(data, centroids, labels) / n_assigned))


def silhouette_score(
    data: np.ndarray,
    labels: np.ndarray,
) -> float:
    """Compute mean silhouette coefficient.

    Range: [-1, 1], higher is better. Returns 0.0 when there are fewer than
    two clusters or every point sits in its own cluster.

    Args:
        data: Data points (n x 3).
        labels: Cluster assignments.

    Returns:
        Mean silhouette coefficient.
    """
    data, labels = _assigned(data, labels)
    n_samples = len(data)
    clusters = np.unique(labels)

    if len(clusters) <= 1 or len(clusters) >= n_samples:
        return 0.0

    pairwise = np.linalg.norm(data[:, np.newaxis, :] - data[np.newaxis, :, :], axis=2)

    # mean distance from every point to every cluster (n x c)
    mean_to_cluster = np.zeros((n_samples, len(clusters)))
    sizes = np.zeros(len(clusters))
    for j, cluster in enumerate(clusters):
        members = labels == cluster
        sizes[j] = members.sum()
        mean_to_cluster[:, j] = pairwise[:, members].sum(axis=1)

    own = np.searchsorted(clusters, labels)
    own_size = sizes[own]

    # a(i) excludes the point itself
    a = np.where(
        own_size > 1,
        mean_to_cluster[np.arange(n_samples), own] / np.maximum(own_size - 1, 1),
        0.0,
    )
    mean_to_cluster = mean_to_cluster / sizes
    mean_to_cluster[np.arange(n_samples), own] = np.inf
    b = mean_to_cluster.min(axis=1)

    denom = np.maximum(a, b)
    values = np.where(denom > 0, (b - a) / np.where(denom > 0, denom, 1.0), 0.0)
    # singletons score 0 by convention
    values[own_size <= 1] = 0.0
    return float(np.mean(values))


def cluster_sizes(labels: np.ndarray, k: int) -> np.ndarray:
    """Number of points assigned to each of the k centroids."""
    labels = np.asarray(labels, dtype=int)
    return np.bincount(labels[labels >= 0], minlength=k)[:k]
