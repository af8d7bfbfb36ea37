"""Data module for point generation."""

from .synthetic import (
    UNASSIGNED,
    Point,
    PointGenerator,
    generate_points,
    points_to_array,
    points_from_array,
    labels_of,
)

__all__ = [
    "UNASSIGNED",
    "Point",
    "PointGenerator",
    "generate_points",
    "points_to_array",
    "points_from_array",
    "labels_of",
]
