"""
Main Entry Point for the KCapFL Clustering Engine

This script provides a command-line interface for partitioning a 2D point
set into clusters of exactly k points. It orchestrates:

1. Point set generation or loading (JSON / CSV)
2. Index build and greedy cluster extraction
3. Reporting, JSON export and optional plotting
4. Benchmarks of kd-tree searches against brute force

Usage:
    # Generate 60 points in blobs and cluster them in groups of 3
    python -m kcapfl.main --generate-data --num-points 60 --pattern blobs -k 3

    # Cluster an existing point file with a saved configuration
    python -m kcapfl.main --input data/points.json --config config.json

    # Run benchmark comparison
    python -m kcapfl.main --benchmark --sizes 1000,5000,20000
"""

import argparse
import csv
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from .config import ClusteringConfig
from .clustering.kcap_fl import cluster_points
from .data_models import ClusteringResult, LabeledPoint2D, Point2D, Rectangle2D
from .errors import KCapFLError
from .geometry.xkd_tree import XkdTree, brute_force_k_nearest
from .hpc.timing import BenchmarkResult, benchmark_function, print_comparison
from .logger import set_debug
from .synthetic_data import (
    PointPattern,
    generate_points,
    load_points,
    save_points_to_json,
    visualize_clusters
)


def print_header():
    """Print application header."""
    print("=" * 70)
    print("  K-CAPACITATED FACILITY LOCATION CLUSTERING")
    print("  Extended kd-tree + leftist heap greedy extractor")
    print("=" * 70)
    print()


def build_config(args) -> ClusteringConfig:
    """
    Merge a config file (if any) with command line overrides.

    Args:
        args: Command line arguments

    Returns:
        Validated ClusteringConfig
    """
    config = ClusteringConfig.load_from_json(args.config) if args.config else ClusteringConfig()
    if args.capacity is not None:
        config.capacity = args.capacity
    if args.bucket_size is not None:
        config.bucket_size = args.bucket_size
    if args.padding is not None:
        config.padding = args.padding
    if args.seed is not None:
        config.seed = args.seed
    return config.validate()


def generate_data(args, config: ClusteringConfig) -> List[LabeledPoint2D]:
    """
    Generate a synthetic point set.

    Args:
        args: Command line arguments
        config: Run configuration (provides the seed)

    Returns:
        Generated points
    """
    print("Generating Synthetic Data...")
    print("-" * 40)
    print(f"  Points: {args.num_points}")
    print(f"  Pattern: {args.pattern}")
    print(f"  Extent: {args.extent}")
    print(f"  Random seed: {config.seed}")
    print()

    points = generate_points(
        num_points=args.num_points,
        pattern=PointPattern(args.pattern),
        extent=args.extent,
        num_blobs=args.num_blobs,
        seed=config.seed
    )

    if args.save_data:
        output_path = Path(args.output_dir) / f"points_{args.pattern}_{args.num_points}.json"
        save_points_to_json(points, str(output_path))
        print(f"Data saved to: {output_path}")
        print()

    return points


def run_clustering(points: List[LabeledPoint2D], config: ClusteringConfig) -> ClusteringResult:
    """
    Run build + extraction on the point set.

    Args:
        points: Points to cluster
        config: Run configuration

    Returns:
        ClusteringResult
    """
    print("Running KCapFL Clustering...")
    print("-" * 40)
    print(f"  Capacity (k): {config.capacity}")
    print(f"  Bucket size: {config.bucket_size}")
    print()

    result = cluster_points(points, config)

    print(f"  Build time: {result.metadata['build_time_ms']:.2f} ms")
    print(f"  Repaired candidates: {result.metadata['repaired_candidates']}")
    print(f"  Discarded candidates: {result.metadata['discarded_candidates']}")
    print()
    return result


def print_report(result: ClusteringResult, verbose: bool = False):
    """Print the clustering report."""
    print(result.summary())

    if verbose and result.clusters:
        print("\nClusters (first 20):")
        print("-" * 40)
        for i, cluster in enumerate(result.clusters[:20]):
            print(f"  {i + 1:4}. center={cluster.center.label} "
                  f"radius={cluster.radius:.4f} members={cluster.labels}")
        if len(result.clusters) > 20:
            print(f"  ... and {len(result.clusters) - 20} more clusters")
    print()


def run_benchmark(args, config: ClusteringConfig):
    """Benchmark kd-tree k-NN queries against brute force, and a full run."""
    print("Running Performance Benchmarks...")
    print("-" * 40)

    sizes = [int(s.strip()) for s in args.sizes.split(',')]
    k = config.capacity
    print(f"  Problem sizes: {sizes}")
    print(f"  Trials per size: {args.trials}")
    print(f"  k: {k}")
    print()

    rows = []
    for size in sizes:
        size -= size % k
        if size <= 0:
            continue
        print(f"\nBenchmarking size: {size}")

        points = generate_points(size, PointPattern.UNIFORM, extent=args.extent,
                                 seed=config.seed + size)
        coords = np.array([[p.x, p.y] for p in points])
        queries = [Point2D(float(x), float(y))
                   for x, y in np.random.RandomState(config.seed).uniform(0, args.extent, (100, 2))]

        tree = XkdTree(config.bucket_size, Rectangle2D.from_bounds(0, 0, args.extent, args.extent))
        tree.bulk_insert(points)

        def tree_queries():
            for q in queries:
                tree.k_nearest_neighbor(q, k)

        def brute_queries():
            for q in queries:
                brute_force_k_nearest(coords, q.as_array(), k)

        def full_run():
            cluster_points(points, config)

        results: List[BenchmarkResult] = [
            benchmark_function(brute_queries, n_trials=args.trials,
                               name="Brute-force k-NN", num_points=size),
            benchmark_function(tree_queries, n_trials=args.trials,
                               name="XkdTree k-NN", num_points=size),
            benchmark_function(full_run, n_trials=args.trials, warmup=0,
                               name="KCapFL build+extract", num_points=size),
        ]
        print_comparison(results, baseline="Brute-force k-NN")
        rows.extend(r.to_dict() for r in results)

    if args.save_benchmark:
        output_path = Path('benchmarks/benchmark_results.csv')
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fieldnames = ['name', 'num_points', 'mean_ms', 'std_ms', 'min_ms', 'us_per_point', 'num_trials']
        with open(output_path, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction='ignore')
            writer.writeheader()
            writer.writerows(rows)
        print(f"\nResults saved to: {output_path}")

    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='k-Capacitated Facility Location clustering',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate data and cluster it in groups of 3
  python -m kcapfl.main --generate-data --num-points 60 -k 3

  # Load existing data
  python -m kcapfl.main --input data/points.json --output result.json

  # Run benchmarks
  python -m kcapfl.main --benchmark --sizes 1000,5000
        """
    )

    data_group = parser.add_mutually_exclusive_group()
    data_group.add_argument('--generate-data', '-g', action='store_true',
                            help='Generate synthetic data')
    data_group.add_argument('--input', '-i', type=str,
                            help='Path to input point set (.json or .csv)')
    data_group.add_argument('--benchmark', '-b', action='store_true',
                            help='Run performance benchmarks')

    cfg_group = parser.add_argument_group('Clustering')
    cfg_group.add_argument('--config', type=str,
                           help='Path to a ClusteringConfig JSON file')
    cfg_group.add_argument('--capacity', '-k', type=int, default=None,
                           help='Points per cluster (default: 3)')
    cfg_group.add_argument('--bucket-size', type=int, default=None,
                           help='Max points per kd-tree leaf (default: 4)')
    cfg_group.add_argument('--padding', type=float, default=None,
                           help='Margin around a derived bounding box (default: 0)')
    cfg_group.add_argument('--seed', type=int, default=None,
                           help='Random seed (default: 42)')

    gen_group = parser.add_argument_group('Data Generation')
    gen_group.add_argument('--num-points', type=int, default=60,
                           help='Number of points (default: 60)')
    gen_group.add_argument('--pattern', type=str, default='uniform',
                           choices=[p.value for p in PointPattern],
                           help='Spatial pattern (default: uniform)')
    gen_group.add_argument('--extent', type=float, default=100.0,
                           help='Side of the square region (default: 100)')
    gen_group.add_argument('--num-blobs', type=int, default=5,
                           help='Blob count for the blobs pattern (default: 5)')

    bench_group = parser.add_argument_group('Benchmarking')
    bench_group.add_argument('--sizes', type=str, default='1000,5000,10000',
                             help='Comma-separated problem sizes')
    bench_group.add_argument('--trials', type=int, default=3,
                             help='Number of timing trials (default: 3)')
    bench_group.add_argument('--save-benchmark', action='store_true',
                             help='Save benchmark results to CSV')

    out_group = parser.add_argument_group('Output')
    out_group.add_argument('--output', '-o', type=str,
                           help='Write the clustering result to this JSON file')
    out_group.add_argument('--output-dir', type=str, default='data',
                           help='Output directory for generated data (default: data)')
    out_group.add_argument('--save-data', action='store_true',
                           help='Save generated data to files')
    out_group.add_argument('--visualize', '-v', action='store_true',
                           help='Show visualization plot')
    out_group.add_argument('--plot-file', type=str,
                           help='Save the plot to this file instead of showing it')
    out_group.add_argument('--verbose', action='store_true',
                           help='List individual clusters')
    out_group.add_argument('--quiet', '-q', action='store_true',
                           help='Minimal output')
    out_group.add_argument('--debug', action='store_true',
                           help='Enable debug logging')

    args = parser.parse_args(argv)
    set_debug(args.debug)

    try:
        config = build_config(args)
    except (KCapFLError, ValueError, OSError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    if not args.quiet:
        print_header()

    if args.benchmark:
        run_benchmark(args, config)
        return 0

    if args.input:
        print(f"Loading data from: {args.input}")
        try:
            points = load_points(args.input)
        except (OSError, ValueError, KeyError) as e:
            print(f"Could not load points from {args.input}: {e!r}", file=sys.stderr)
            return 2
        print(f"  Loaded {len(points)} points")
        print()
    else:
        points = generate_data(args, config)

    try:
        result = run_clustering(points, config)
    except KCapFLError as e:
        print(f"Clustering failed: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print_report(result, verbose=args.verbose)

    if args.output:
        result.save_to_json(args.output)
        print(f"Result saved to: {args.output}")

    if args.visualize or args.plot_file:
        visualize_clusters(result, save_path=args.plot_file)

    return 0


if __name__ == "__main__":
    sys.exit(main())
