#!/usr/bin/env python3
"""
Benchmark Script: Extended kd-tree vs Brute Force

This script measures the building blocks of a KCapFL run and how they
scale with the number of points:

1. Brute force k-NN: one full distance scan per query
2. XkdTree k-NN: branch-and-bound search in the extended kd-tree
3. XkdTree build: bulk load of the whole point set
4. KCapFL: build + greedy extraction of all clusters

Usage:
    python benchmarks/benchmark_xkd_vs_brute.py
    python benchmarks/benchmark_xkd_vs_brute.py --sizes 300,3000,30000 --trials 5 -k 4

Output:
    - Console table with timing results
    - CSV file with one row per problem size
"""

import argparse
import csv
import sys
from pathlib import Path
from typing import List, Dict, Any

import numpy as np

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kcapfl.clustering.kcap_fl import KCapFL
from kcapfl.data_models import Point2D, Rectangle2D, points_to_array
from kcapfl.geometry.xkd_tree import XkdTree, brute_force_k_nearest
from kcapfl.hpc.timing import BenchmarkResult, Timer, compute_speedup
from kcapfl.synthetic_data import PointPattern, generate_points

EXTENT = 1000.0
NUM_QUERIES = 200


def benchmark_brute_force(coords: np.ndarray, queries: np.ndarray, k: int,
                          n_trials: int = 3) -> BenchmarkResult:
    """
    Benchmark brute-force k-NN.

    Complexity: O(m × n log n) for m queries over n points
    """
    result = BenchmarkResult("Brute force k-NN", num_points=len(coords))
    for _ in range(n_trials):
        with Timer(verbose=False) as t:
            for q in queries:
                brute_force_k_nearest(coords, q, k)
        result.add_trial(t.elapsed_ms)
    return result


def benchmark_tree_queries(tree: XkdTree, queries: np.ndarray, k: int,
                           n_trials: int = 3) -> BenchmarkResult:
    """
    Benchmark XkdTree k-NN on a prebuilt tree.

    Complexity: O(m × (log n + k log k)) on average
    """
    result = BenchmarkResult("XkdTree k-NN", num_points=len(tree))
    points = [Point2D(float(x), float(y)) for x, y in queries]
    for _ in range(n_trials):
        with Timer(verbose=False) as t:
            for q in points:
                tree.k_nearest_neighbor(q, k)
        result.add_trial(t.elapsed_ms)
    return result


def benchmark_tree_build(points, bucket_size: int, n_trials: int = 3) -> BenchmarkResult:
    result = BenchmarkResult("XkdTree build", num_points=len(points))
    bbox = Rectangle2D.from_bounds(0, 0, EXTENT, EXTENT)
    for _ in range(n_trials):
        with Timer(verbose=False) as t:
            XkdTree(bucket_size, bbox).bulk_insert(points)
        result.add_trial(t.elapsed_ms)
    return result


def benchmark_kcapfl(points, k: int, bucket_size: int, n_trials: int = 3) -> BenchmarkResult:
    """Benchmark a full build + extraction run."""
    result = BenchmarkResult("KCapFL", num_points=len(points))
    bbox = Rectangle2D.from_bounds(0, 0, EXTENT, EXTENT)
    for _ in range(n_trials):
        locator = KCapFL(k, bucket_size, bbox)
        with Timer(verbose=False) as t:
            locator.build(points)
            locator.extract_all()
        result.add_trial(t.elapsed_ms)
        result.metadata['repaired'] = locator.repaired
    return result


def run_benchmark_suite(
    sizes: List[int],
    k: int = 3,
    bucket_size: int = 4,
    n_trials: int = 3,
    verbose: bool = True
) -> List[Dict[str, Any]]:
    """
    Run complete benchmark suite for multiple problem sizes.

    Args:
        sizes: List of problem sizes (rounded down to a multiple of k)
        k: Cluster capacity and number of neighbors per query
        bucket_size: Leaf capacity of the kd-tree
        n_trials: Number of timing trials per benchmark
        verbose: Print progress information

    Returns:
        List of result dictionaries
    """
    results = []

    for size in sizes:
        size -= size % k
        if size <= 0:
            continue
        if verbose:
            print(f"\n{'='*60}")
            print(f"Benchmarking size: {size}")
            print('='*60)

        points = generate_points(size, PointPattern.UNIFORM, extent=EXTENT, seed=42 + size)
        coords = points_to_array(points)
        queries = np.random.RandomState(size).uniform(0, EXTENT, size=(NUM_QUERIES, 2))

        tree = XkdTree(bucket_size, Rectangle2D.from_bounds(0, 0, EXTENT, EXTENT))
        tree.bulk_insert(points)

        brute = benchmark_brute_force(coords, queries, k, n_trials)
        knn = benchmark_tree_queries(tree, queries, k, n_trials)
        build = benchmark_tree_build(points, bucket_size, n_trials)
        full = benchmark_kcapfl(points, k, bucket_size, n_trials)

        entry = {
            'num_points': size,
            'tree_height': tree.height(),
            'brute_knn_ms': brute.mean_ms,
            'tree_knn_ms': knn.mean_ms,
            'tree_build_ms': build.mean_ms,
            'kcapfl_ms': full.mean_ms,
            'kcapfl_repaired': full.metadata['repaired'],
            'speedup_knn': compute_speedup(brute.mean_ms, knn.mean_ms)
        }
        if verbose:
            for r in (brute, knn, build, full):
                print(f"  {r.name:<20} {r.mean_ms:>10.2f} ± {r.std_ms:.2f} ms")
        results.append(entry)

    return results


def save_results_csv(results: List[Dict[str, Any]], filepath: str):
    """Save benchmark results to CSV file."""
    if not results:
        return

    with open(filepath, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=list(results[0].keys()))
        writer.writeheader()
        writer.writerows(results)

    print(f"\nResults saved to: {filepath}")


def print_results_table(results: List[Dict[str, Any]]):
    """Print formatted results table."""
    print("\n" + "=" * 78)
    print("BENCHMARK RESULTS SUMMARY")
    print("=" * 78)
    print(f"{'Size':>8} {'Height':>7} {'Brute(ms)':>11} {'Tree(ms)':>10} "
          f"{'Build(ms)':>10} {'KCapFL(ms)':>11} {'Speedup':>9}")
    print("-" * 78)
    for r in results:
        print(f"{r['num_points']:>8} {r['tree_height']:>7} {r['brute_knn_ms']:>11.2f} "
              f"{r['tree_knn_ms']:>10.2f} {r['tree_build_ms']:>10.2f} "
              f"{r['kcapfl_ms']:>11.2f} {r['speedup_knn']:>8.2f}×")
    print("=" * 78)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Benchmark extended kd-tree searches and KCapFL runs'
    )
    parser.add_argument(
        '--sizes', type=str, default='300,1500,6000,15000',
        help='Comma-separated problem sizes (default: 300,1500,6000,15000)'
    )
    parser.add_argument('-k', type=int, default=3, help='Cluster capacity (default: 3)')
    parser.add_argument('--bucket-size', type=int, default=4,
                        help='Leaf capacity (default: 4)')
    parser.add_argument(
        '--trials', type=int, default=3,
        help='Number of timing trials per benchmark (default: 3)'
    )
    parser.add_argument(
        '--output', type=str, default='benchmarks/benchmark_results.csv',
        help='Output CSV file path'
    )
    parser.add_argument('--quiet', '-q', action='store_true', help='Minimal output')

    args = parser.parse_args()
    sizes = [int(s.strip()) for s in args.sizes.split(',')]

    if not args.quiet:
        print("=" * 60)
        print("  EXTENDED KD-TREE BENCHMARK")
        print("  Brute force vs XkdTree vs full KCapFL")
        print("=" * 60)
        print(f"\nProblem sizes: {sizes}")
        print(f"k: {args.k}, bucket size: {args.bucket_size}")
        print(f"Trials per size: {args.trials}")

    results = run_benchmark_suite(sizes, args.k, args.bucket_size, args.trials,
                                  verbose=not args.quiet)
    print_results_table(results)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    save_results_csv(results, str(output_path))

    return 0


if __name__ == "__main__":
    sys.exit(main())
