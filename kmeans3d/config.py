"""Configuration dataclasses for KMeans3D."""

from dataclasses import dataclass, field, asdict
from typing import Literal, Optional, Dict, Any, Tuple


INIT_METHODS = ("sample", "uniform")


@dataclass
class GeneratorConfig:
    """Configuration for random point generation.

    Attributes:
        n_points: Number of points to generate.
        min_points: Lower clamp for the point count.
        max_points: Upper clamp for the point count.
        bound: Half-width of the sampling cube; each axis is in [-bound, bound].
    """
    n_points: int = 300
    min_points: int = 10
    max_points: int = 1000
    bound: float = 2.0

    def __post_init__(self):
        if self.min_points < 1 or self.max_points < self.min_points:
            raise ValueError(
                f"Invalid point range [{self.min_points}, {self.max_points}]"
            )
        if self.bound <= 0:
            raise ValueError(f"bound must be positive, got {self.bound}")
        self.n_points = self.clamp_count(self.n_points)

    def clamp_count(self, count: int) -> int:
        """Clamp a requested point count into [min_points, max_points]."""
        return int(min(max(int(count), self.min_points), self.max_points))


@dataclass
class ClusteringConfig:
    """Configuration for the step-driven k-means run.

    Attributes:
        n_clusters: Number of clusters (k), read at the start of each run.
        convergence_threshold: Centroid shift at or below which a centroid
            counts as unmoved.
        init_method: "sample" draws seeds from existing points (with
            replacement); "uniform" draws them from the generator bounds.
        max_iter: Upper bound on steps for run_to_convergence.
    """
    n_clusters: int = 3
    convergence_threshold: float = 0.01
    init_method: Literal["sample", "uniform"] = "sample"
    max_iter: int = 1000

    def __post_init__(self):
        if self.n_clusters < 1:
            raise ValueError(f"n_clusters must be >= 1, got {self.n_clusters}")
        if self.convergence_threshold < 0:
            raise ValueError("convergence_threshold must be non-negative")
        if self.init_method not in INIT_METHODS:
            raise ValueError(
                f"Unknown init_method {self.init_method!r}, "
                f"expected one of {INIT_METHODS}"
            )
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")


@dataclass
class ViewerConfig:
    """Configuration for the matplotlib presentation layer.

    Attributes:
        point_size: Marker size for data points.
        centroid_size: Marker size for centroids.
        show_lines: Draw segments from each point to its centroid.
        line_alpha: Opacity of those segments.
        frame_interval_ms: Render loop period.
        camera_elev: Default camera elevation (degrees).
        camera_azim: Default camera azimuth (degrees).
        figsize: Figure size in inches.
    """
    point_size: float = 12.0
    centroid_size: float = 140.0
    show_lines: bool = True
    line_alpha: float = 0.5
    frame_interval_ms: int = 33
    camera_elev: float = 20.0
    camera_azim: float = -60.0
    figsize: Tuple[float, float] = (10.0, 8.0)


@dataclass
class KMeans3DConfig:
    """Master configuration for KMeans3D.

    Combines all sub-configurations into a single object.

    Attributes:
        seed: Seed for the session's random generator (None = fresh entropy).
    """
    seed: Optional[int] = None
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    viewer: ViewerConfig = field(default_factory=ViewerConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to nested dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "KMeans3DConfig":
        """Create config from dictionary."""
        viewer = dict(d.get("viewer", {}))
        if "figsize" in viewer:
            viewer["figsize"] = tuple(viewer["figsize"])
        return cls(
            seed=d.get("seed"),
            generator=GeneratorConfig(**d.get("generator", {})),
            clustering=ClusteringConfig(**d.get("clustering", {})),
            viewer=ViewerConfig(**viewer),
        )
