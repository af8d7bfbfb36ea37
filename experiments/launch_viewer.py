#!/usr/bin/env python3
"""Open the interactive KMeans3D viewer.

Usage:
    python experiments/launch_viewer.py --points 300 --k 3
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging

from rich.logging import RichHandler

from kmeans3d.config import KMeans3DConfig
from kmeans3d.visualization.viewer import KMeansViewer


def main():
    parser = argparse.ArgumentParser(description="KMeans3D interactive viewer")
    parser.add_argument("--points", type=int, default=300, help="Initial point count")
    parser.add_argument("--k", type=int, default=3, help="Initial number of clusters")
    parser.add_argument("--init", type=str, default="sample", choices=["sample", "uniform"],
                        help="Centroid seeding policy")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--no-lines", action="store_true", help="Hide point-to-centroid segments")
    args = parser.parse_args()

    logging.basicConfig(
        level="INFO",
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )

    config = KMeans3DConfig(seed=args.seed)
    config.generator.n_points = config.generator.clamp_count(args.points)
    config.clustering.n_clusters = args.k
    config.clustering.init_method = args.init
    config.viewer.show_lines = not args.no_lines

    KMeansViewer(config=config).show()


if __name__ == "__main__":
    main()
