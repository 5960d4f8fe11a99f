"""
Timing and Benchmarking Utilities

Wall-clock measurement for the clustering engine: index build, k-NN query
batches and complete build + extraction runs, plus a small table printer
for setting the kd-tree searches against the brute-force baselines.

Example:
    >>> with Timer("bulk_insert") as t:
    ...     tree.bulk_insert(points)
    >>> t.elapsed_ms > 0
    True
"""

import time
import statistics
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


class Timer:
    """
    Context manager measuring one block with time.perf_counter().

    When verbose and named, the elapsed time is printed on exit.

    Attributes:
        name: Label of the timed block
        elapsed: Seconds spent in the block (0 until the block exits)
    """

    def __init__(self, name: Optional[str] = None, verbose: bool = True):
        self.name = name
        self.verbose = verbose
        self.elapsed = 0.0
        self._t0 = 0.0

    def __enter__(self) -> "Timer":
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, *exc) -> None:
        self.elapsed = time.perf_counter() - self._t0
        if self.name and self.verbose:
            print(f"[{self.name}] {self.elapsed_ms:.3f} ms")

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1e3


def compute_speedup(baseline_time: float, optimized_time: float) -> float:
    """Ratio baseline / optimized (above 1 when optimized is faster)."""
    if optimized_time <= 0:
        return float("inf")
    return baseline_time / optimized_time


@dataclass
class BenchmarkResult:
    """
    Repeated timings of one operation on a fixed point set.

    Attributes:
        name: Operation label shown in tables
        times_ms: One entry per timed trial
        num_points: Size of the point set the trials ran on
        metadata: Extra figures (e.g. repaired candidates of a KCapFL run)
    """
    name: str
    times_ms: List[float] = field(default_factory=list)
    num_points: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_trial(self, time_ms: float) -> None:
        self.times_ms.append(time_ms)

    @property
    def num_trials(self) -> int:
        return len(self.times_ms)

    @property
    def mean_ms(self) -> float:
        return statistics.mean(self.times_ms) if self.times_ms else 0.0

    @property
    def std_ms(self) -> float:
        # Sample standard deviation needs two trials
        return statistics.stdev(self.times_ms) if self.num_trials > 1 else 0.0

    @property
    def min_ms(self) -> float:
        return min(self.times_ms, default=0.0)

    @property
    def us_per_point(self) -> float:
        """Mean time per input point in microseconds."""
        if self.num_points <= 0:
            return 0.0
        return self.mean_ms * 1e3 / self.num_points

    def summary(self) -> str:
        return (f"{self.name} [n={self.num_points}]: "
                f"{self.mean_ms:.2f} ms ± {self.std_ms:.2f} "
                f"(best {self.min_ms:.2f}, {self.num_trials} trials, "
                f"{self.us_per_point:.2f} µs/point)")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "num_points": self.num_points,
            "mean_ms": self.mean_ms,
            "std_ms": self.std_ms,
            "min_ms": self.min_ms,
            "us_per_point": self.us_per_point,
            "num_trials": self.num_trials,
            "metadata": self.metadata
        }


def benchmark_function(
    func: Callable,
    args: tuple = (),
    n_trials: int = 5,
    warmup: int = 1,
    name: Optional[str] = None,
    num_points: int = 0
) -> BenchmarkResult:
    """
    Time func(*args) n_trials times after `warmup` untimed calls.

    Args:
        func: Callable under test; its return value is discarded
        args: Positional arguments passed on every call
        n_trials: Timed repetitions
        warmup: Untimed repetitions run first
        name: Label of the result (defaults to func.__name__)
        num_points: Size of the point set, stored on the result

    Returns:
        BenchmarkResult holding one time per trial
    """
    result = BenchmarkResult(name or func.__name__, num_points=num_points)
    for _ in range(warmup):
        func(*args)
    for _ in range(n_trials):
        with Timer(verbose=False) as timer:
            func(*args)
        result.add_trial(timer.elapsed_ms)
    return result


def print_comparison(results: List[BenchmarkResult], baseline: Optional[str] = None) -> None:
    """
    Print one row per result with its speedup over the baseline.

    The baseline is the result named `baseline`, or the first one.
    """
    if not results:
        return
    base = next((r for r in results if r.name == baseline), results[0])

    header = f"{'Operation':<24} {'Mean (ms)':>12} {'Std (ms)':>10} {'µs/pt':>8} {'Speedup':>10}"
    print(header)
    print("-" * len(header))
    for r in results:
        if r is base:
            rel = "(baseline)"
        else:
            rel = f"{compute_speedup(base.mean_ms, r.mean_ms):.2f}x"
        print(f"{r.name:<24} {r.mean_ms:>12.2f} {r.std_ms:>10.2f} "
              f"{r.us_per_point:>8.2f} {rel:>10}")
    print()
