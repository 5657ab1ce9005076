"""Comparison of two benchmark reports.

Typically a Redis-backed run against a Valkey-backed run of the same
suite.  Operations are matched by name; throughput difference is
reported relative to the baseline report.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from scalebench.bench.results import BenchmarkResult, BenchReport

log = logging.getLogger("scalebench")


@dataclass(frozen=True)
class OperationComparison:
    """One operation measured in both reports."""

    name: str
    baseline: BenchmarkResult
    treatment: BenchmarkResult

    @property
    def diff_pct(self) -> float:
        """Throughput change of treatment over baseline, in percent.

        NaN when the baseline throughput is zero.
        """
        base = self.baseline.avg_ops_per_second
        if base == 0:
            return float("nan")
        return (self.treatment.avg_ops_per_second - base) / base * 100

    def winner(self, baseline_label: str, treatment_label: str) -> str:
        """Label of the faster side, or ``""`` if undetermined."""
        diff = self.diff_pct
        if math.isnan(diff):
            return ""
        return treatment_label if diff >= 0 else baseline_label


def compare_reports(baseline: BenchReport, treatment: BenchReport) -> list[OperationComparison]:
    """Pair up operations present in both reports, in baseline order.

    Operations missing from *treatment* are skipped.
    """
    comparisons: list[OperationComparison] = []
    for result in baseline.results:
        other = treatment.result_for(result.name)
        if other is None:
            log.debug("Operation %s missing from %s, skipping", result.name, treatment.label)
            continue
        comparisons.append(OperationComparison(result.name, result, other))
    return comparisons
