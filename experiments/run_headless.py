#!/usr/bin/env python3
"""Run a k-means session to convergence without a display.

Writes one PNG frame per iteration, an objective plot and a JSON summary.

Usage:
    python experiments/run_headless.py --points 300 --k 4 --seed 7
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging
import time
from datetime import datetime

import matplotlib
matplotlib.use("Agg")  # non-interactive backend

from rich.logging import RichHandler

from kmeans3d.config import ClusteringConfig, GeneratorConfig, KMeans3DConfig
from kmeans3d.clustering.controller import ClusteringController
from kmeans3d.clustering.metrics import cluster_sizes, overall_distance, silhouette_score
from kmeans3d.visualization.plot_utils import (
    plot_objective_history,
    plot_snapshot,
    save_results_json,
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="KMeans3D headless runner")
    parser.add_argument("--points", type=int, default=300, help="Point count (clamped to [10, 1000])")
    parser.add_argument("--bound", type=float, default=2.0, help="Half-width of the point cube")
    parser.add_argument("--k", type=int, default=3, help="Number of clusters")
    parser.add_argument("--init", type=str, default="sample", choices=["sample", "uniform"],
                        help="Centroid seeding policy")
    parser.add_argument("--threshold", type=float, default=0.01, help="Convergence threshold")
    parser.add_argument("--max-iter", type=int, default=1000, help="Step limit")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--output-dir", type=str, default="./outputs", help="Output directory")
    parser.add_argument("--no-frames", action="store_true", help="Skip per-iteration PNGs")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    """Run one session and save its frames and summary."""
    args = parse_args(argv)
    logging.basicConfig(
        level="DEBUG" if args.verbose else "INFO",
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )

    config = KMeans3DConfig(
        seed=args.seed,
        generator=GeneratorConfig(n_points=args.points, bound=args.bound),
        clustering=ClusteringConfig(
            n_clusters=args.k,
            convergence_threshold=args.threshold,
            init_method=args.init,
            max_iter=args.max_iter,
        ),
    )

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_dir = Path(args.output_dir) / f"kmeans3d_{timestamp}"
    out_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("KMeans3D: step-driven k-means")
    print("=" * 60)

    controller = ClusteringController(config)
    controller.generate_data()
    print(f"  Points: {config.generator.n_points} in [-{args.bound}, {args.bound}]^3")
    print(f"  k: {args.k} ({args.init} seeding)")
    print()

    start = time.time()
    snapshot = controller.start_clustering()
    if not args.no_frames:
        plot_snapshot(snapshot, out_dir / "frame_0000.png", bound=config.generator.bound)

    result = None
    for _ in range(config.clustering.max_iter):
        result = controller.step()
        snapshot = controller.snapshot()
        print(f"  Iteration {result.iteration:4d} | objective: {result.objective:.4f}")
        if not args.no_frames:
            plot_snapshot(
                snapshot,
                out_dir / f"frame_{result.iteration:04d}.png",
                bound=config.generator.bound,
            )
        if result.converged:
            break
    runtime = time.time() - start

    history = list(controller.session.objective_history)
    plot_objective_history(history, out_dir / "objective_history.png")

    summary = {
        "config": config.to_dict(),
        "converged": bool(result.converged),
        "iterations": result.iteration,
        "objective": result.objective,
        "overall_distance": overall_distance(snapshot.positions, snapshot.centroids, snapshot.labels),
        "silhouette": silhouette_score(snapshot.positions, snapshot.labels),
        "cluster_sizes": cluster_sizes(snapshot.labels, snapshot.k),
        "centroids": snapshot.centroids,
        "objective_history": history,
        "runtime_seconds": runtime,
    }
    save_results_json(summary, out_dir / "summary.json")

    print()
    status = "Converged" if result.converged else "Stopped (step limit)"
    print(f"{status} after {result.iteration} iterations in {runtime:.2f}s")
    print(f"Outputs saved to: {out_dir}")
    print("=" * 60)
    return summary


if __name__ == "__main__":
    main()
