"""
Tests for Timing and Benchmarking Utilities

Run with: pytest tests/test_timing.py -v
"""

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kcapfl.hpc.timing import BenchmarkResult, Timer, benchmark_function, compute_speedup


class TestTiming:

    def test_timer_measures_block(self, capsys):
        with Timer("block") as t:
            sum(range(1000))
        assert t.elapsed_ms >= 0.0
        assert "[block]" in capsys.readouterr().out

    def test_silent_timer(self, capsys):
        with Timer("block", verbose=False):
            pass
        assert capsys.readouterr().out == ""

    def test_speedup(self):
        assert compute_speedup(10.0, 2.0) == 5.0
        assert compute_speedup(1.0, 0.0) == float("inf")

    def test_result_statistics(self):
        result = BenchmarkResult("op", [2.0, 4.0], num_points=1000)
        assert result.mean_ms == 3.0
        assert result.min_ms == 2.0
        assert result.std_ms == pytest.approx(2 ** 0.5)
        assert result.us_per_point == 3.0
        assert result.to_dict()["num_trials"] == 2

    def test_empty_result(self):
        result = BenchmarkResult("op")
        assert result.mean_ms == 0.0
        assert result.std_ms == 0.0
        assert result.min_ms == 0.0
        assert result.us_per_point == 0.0

    def test_benchmark_function_counts_calls(self):
        calls = []
        result = benchmark_function(calls.append, args=(1,), n_trials=3, warmup=2,
                                    num_points=10)
        assert len(calls) == 5
        assert result.num_trials == 3
        assert result.name == "append"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
