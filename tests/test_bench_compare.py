"""Tests for scalebench.bench.compare — report comparison."""

from __future__ import annotations

import math
import unittest

from scalebench.bench.compare import OperationComparison, compare_reports

from bench_test_helpers import make_report, make_result, make_suite


class TestOperationComparison(unittest.TestCase):
    """Tests for OperationComparison."""

    def _comparison(self, base_ops: int, treat_ops: int) -> OperationComparison:
        return OperationComparison(
            "scrape", make_result(ops=base_ops), make_result(ops=treat_ops)
        )

    def test_diff_pct_faster(self) -> None:
        self.assertAlmostEqual(self._comparison(100, 125).diff_pct, 25.0)

    def test_diff_pct_slower(self) -> None:
        self.assertAlmostEqual(self._comparison(100, 80).diff_pct, -20.0)

    def test_zero_baseline(self) -> None:
        c = self._comparison(0, 50)
        self.assertTrue(math.isnan(c.diff_pct))
        self.assertEqual(c.winner("redis", "valkey"), "")

    def test_winner(self) -> None:
        self.assertEqual(self._comparison(100, 125).winner("redis", "valkey"), "valkey")
        self.assertEqual(self._comparison(100, 80).winner("redis", "valkey"), "redis")


class TestCompareReports(unittest.TestCase):
    """Tests for compare_reports()."""

    def test_matches_by_name_in_baseline_order(self) -> None:
        baseline = make_report("redis", results=make_suite({"scrape": 100, "map": 40}))
        treatment = make_report("valkey", results=make_suite({"map": 50, "scrape": 90}))
        comparisons = compare_reports(baseline, treatment)
        self.assertEqual([c.name for c in comparisons], ["scrape", "map"])
        self.assertEqual(comparisons[1].treatment.avg_ops_per_second, 50)

    def test_skips_missing_operations(self) -> None:
        baseline = make_report("redis", results=make_suite({"scrape": 100, "crawl": 5}))
        treatment = make_report("valkey", results=make_suite({"scrape": 110}))
        comparisons = compare_reports(baseline, treatment)
        self.assertEqual([c.name for c in comparisons], ["scrape"])

    def test_nothing_in_common(self) -> None:
        baseline = make_report("redis", results=make_suite({"scrape": 100}))
        treatment = make_report("valkey", results=make_suite({"map": 10}))
        self.assertEqual(compare_reports(baseline, treatment), [])


if __name__ == "__main__":
    unittest.main()
