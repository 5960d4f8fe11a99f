"""
Performance Measurement Module

Timing and benchmarking utilities for index build, k-NN queries and full
clustering runs.
"""

from .timing import (
    Timer,
    compute_speedup,
    BenchmarkResult,
    benchmark_function,
    print_comparison
)

__all__ = [
    'Timer',
    'compute_speedup',
    'BenchmarkResult',
    'benchmark_function',
    'print_comparison'
]
