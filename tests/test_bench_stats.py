"""Tests for scalebench.bench.stats — latency and throughput statistics."""

from __future__ import annotations

import math
import random
import unittest

from scalebench.bench.stats import (
    LatencyStats,
    compute_latency_stats,
    mean,
    percentile,
    std_dev,
)


# ---------------------------------------------------------------------------
# Percentile
# ---------------------------------------------------------------------------


class TestPercentile(unittest.TestCase):
    """Tests for percentile() — nearest-rank method."""

    def test_empty_returns_zero(self) -> None:
        for p in (0, 50, 95, 99, 100):
            self.assertEqual(percentile([], p), 0)

    def test_single_value(self) -> None:
        self.assertEqual(percentile([10.0], 50), 10.0)
        self.assertEqual(percentile([10.0], 99), 10.0)

    def test_nearest_rank_no_interpolation(self) -> None:
        """p50 of [1, 2, 3, 4] is 2, not the interpolated 2.5."""
        self.assertEqual(percentile([1.0, 2.0, 3.0, 4.0], 50), 2.0)

    def test_known_ranks(self) -> None:
        values = [float(v) for v in range(1, 101)]
        self.assertEqual(percentile(values, 50), 50.0)
        self.assertEqual(percentile(values, 95), 95.0)
        self.assertEqual(percentile(values, 99), 99.0)
        self.assertEqual(percentile(values, 100), 100.0)

    def test_small_sample_high_percentiles_select_max(self) -> None:
        """With 10 samples, p95 and p99 both land on the largest value."""
        values = [float(v) for v in range(10)]
        self.assertEqual(percentile(values, 50), 4.0)
        self.assertEqual(percentile(values, 95), 9.0)
        self.assertEqual(percentile(values, 99), 9.0)

    def test_zero_percentile_clamps_to_first(self) -> None:
        self.assertEqual(percentile([3.0, 1.0, 2.0], 0), 1.0)

    def test_unsorted_input(self) -> None:
        self.assertEqual(percentile([5.0, 1.0, 4.0, 2.0, 3.0], 50), 3.0)

    def test_input_not_mutated(self) -> None:
        values = [3.0, 1.0, 2.0]
        percentile(values, 50)
        self.assertEqual(values, [3.0, 1.0, 2.0])


# ---------------------------------------------------------------------------
# Mean and standard deviation
# ---------------------------------------------------------------------------


class TestMeanAndStdDev(unittest.TestCase):
    """Tests for mean() and std_dev()."""

    def test_mean_empty(self) -> None:
        self.assertEqual(mean([]), 0)

    def test_mean_basic(self) -> None:
        self.assertAlmostEqual(mean([1.0, 2.0, 3.0, 4.0]), 2.5)

    def test_std_dev_empty(self) -> None:
        self.assertEqual(std_dev([]), 0)

    def test_std_dev_is_population(self) -> None:
        """Divides by n: [2, 4, 4, 4, 5, 5, 7, 9] has population sigma 2."""
        self.assertAlmostEqual(std_dev([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]), 2.0)

    def test_std_dev_three_throughputs(self) -> None:
        self.assertAlmostEqual(std_dev([100, 120, 110]), 8.16496, places=4)

    def test_std_dev_identical_values(self) -> None:
        self.assertEqual(std_dev([50.0, 50.0, 50.0]), 0.0)

    def test_std_dev_single_value(self) -> None:
        self.assertEqual(std_dev([42.0]), 0.0)


# ---------------------------------------------------------------------------
# LatencyStats
# ---------------------------------------------------------------------------


class TestComputeLatencyStats(unittest.TestCase):
    """Tests for compute_latency_stats() and LatencyStats."""

    def test_empty_is_all_zero(self) -> None:
        stats = compute_latency_stats([])
        self.assertEqual(stats, LatencyStats.empty())
        self.assertEqual(stats.to_dict(), {k: 0 for k in ("min", "avg", "p50", "p95", "p99", "max")})

    def test_known_values(self) -> None:
        stats = compute_latency_stats([10.0, 20.0, 30.0, 40.0])
        self.assertEqual(stats.min, 10.0)
        self.assertEqual(stats.max, 40.0)
        self.assertAlmostEqual(stats.avg, 25.0)
        self.assertEqual(stats.p50, 20.0)
        self.assertEqual(stats.p95, 40.0)
        self.assertEqual(stats.p99, 40.0)

    def test_identical_samples(self) -> None:
        stats = compute_latency_stats([50.0] * 20)
        self.assertEqual(stats.min, 50.0)
        self.assertEqual(stats.avg, 50.0)
        self.assertEqual(stats.max, 50.0)

    def test_ordering_invariant_random_samples(self) -> None:
        """min <= p50 <= p95 <= p99 <= max for many random sample sets."""
        rng = random.Random(1234)
        for _ in range(200):
            n = rng.randint(1, 60)
            samples = [rng.expovariate(1 / 40) for _ in range(n)]
            s = compute_latency_stats(samples)
            self.assertLessEqual(s.min, s.p50)
            self.assertLessEqual(s.p50, s.p95)
            self.assertLessEqual(s.p95, s.p99)
            self.assertLessEqual(s.p99, s.max)
            self.assertLessEqual(s.min, s.avg)
            self.assertLessEqual(s.avg, s.max)

    def test_from_dict_defaults_missing_fields(self) -> None:
        stats = LatencyStats.from_dict({"avg": 12.5})
        self.assertEqual(stats.avg, 12.5)
        self.assertEqual(stats.min, 0.0)
        self.assertEqual(stats.p99, 0.0)

    def test_to_dict_rounds(self) -> None:
        d = LatencyStats(avg=1.23456789).to_dict()
        self.assertEqual(d["avg"], 1.235)
        self.assertTrue(all(not math.isnan(v) for v in d.values()))


if __name__ == "__main__":
    unittest.main()
