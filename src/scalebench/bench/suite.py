"""Suite execution and cross-suite aggregation.

A suite is one pass over a fixed, ordered list of named operations,
each benchmarked by :func:`~scalebench.bench.executor.run_benchmark`.
Operations run one after another; only an operation's own iterations
overlap.

Repeating a suite ``suite_runs`` times and aggregating with
:func:`aggregate_suites` gives a second-order view of variance: the
spread of per-suite average throughput, as opposed to the spread of
per-run throughput inside one suite.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from scalebench.bench.executor import Operation, run_benchmark
from scalebench.bench.results import BenchmarkResult, merge_errors
from scalebench.bench.stats import LatencyStats, mean, std_dev

log = logging.getLogger("scalebench")


# ---------------------------------------------------------------------------
# Suite runner
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NamedOperation:
    """One entry in a suite: what to call and how many times per run."""

    name: str
    iterations: int
    operation: Operation


@dataclass
class SuiteResult:
    """Results of one suite execution, in operation order."""

    results: list[BenchmarkResult] = field(default_factory=list)
    # One resource sample (e.g. store memory in MB) per completed operation.
    resource_samples: list[float] = field(default_factory=list)

    @property
    def peak_resource(self) -> float:
        """Largest resource sample, or 0.0 if none were taken."""
        return max(self.resource_samples, default=0.0)


async def run_suite(
    operations: Sequence[NamedOperation],
    *,
    runs: int,
    concurrency: int,
    resource_probe: Callable[[], float] | None = None,
    on_result: Callable[[BenchmarkResult], None] | None = None,
) -> SuiteResult:
    """Benchmark each operation in order and collect the results.

    A failing operation does not stop the suite; its result simply
    carries a low success rate.

    Args:
        operations: The named operations, in execution order.
        runs: Runs per operation.
        concurrency: In-flight ceiling for each operation.
        resource_probe: Optional callable sampled once after each
            operation completes.
        on_result: Optional hook called with each BenchmarkResult as
            soon as it is available.
    """
    suite = SuiteResult()
    for op in operations:
        result = await run_benchmark(
            op.name,
            op.operation,
            iterations=op.iterations,
            runs=runs,
            concurrency=concurrency,
        )
        suite.results.append(result)
        if on_result is not None:
            on_result(result)
        if resource_probe is not None:
            suite.resource_samples.append(resource_probe())
    return suite


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def _check_operation_names(suites: Sequence[Sequence[BenchmarkResult]]) -> list[str]:
    """Return the shared operation names, or raise if suites disagree."""
    if not suites:
        raise ValueError("Cannot aggregate zero suites.")
    names = [r.name for r in suites[0]]
    if len(set(names)) != len(names):
        raise ValueError(f"Suite 1 has duplicate operation names: {names}")
    for idx, suite in enumerate(suites[1:], start=2):
        other = [r.name for r in suite]
        if other != names:
            raise ValueError(
                f"Suite {idx} has operations {other}, expected {names} "
                f"(every suite must run the same operations in the same order)."
            )
    return names


def _aggregate_latency(latencies: Sequence[LatencyStats]) -> LatencyStats:
    # Averaging percentiles is not the percentile of the pooled samples;
    # raw samples are not retained across suites.
    return LatencyStats(
        min=min(lat.min for lat in latencies),
        avg=mean([lat.avg for lat in latencies]),
        p50=mean([lat.p50 for lat in latencies]),
        p95=mean([lat.p95 for lat in latencies]),
        p99=mean([lat.p99 for lat in latencies]),
        max=max(lat.max for lat in latencies),
    )


def aggregate_suites(
    suites: Sequence[Sequence[BenchmarkResult]],
) -> list[BenchmarkResult]:
    """Combine repeated suite executions into one result per operation.

    For each operation:

    - throughput is the rounded mean of the per-suite averages, and its
      deviation is the rounded population standard deviation of those
      averages (variance across suites);
    - latency takes the smallest min, the largest max, and the mean of
      the per-suite avg/p50/p95/p99;
    - success rate is the mean of per-suite rates;
    - errors are the capped, deduplicated union;
    - iterations and runs are multiplied by the suite count.

    Inputs are never modified, so repeated calls on the same suites
    return equal results.

    Raises:
        ValueError: If *suites* is empty or the suites do not share the
            same operation names in the same order.
    """
    names = _check_operation_names(suites)
    suite_count = len(suites)

    aggregated: list[BenchmarkResult] = []
    for pos, name in enumerate(names):
        per_suite = [suite[pos] for suite in suites]
        throughputs = [r.avg_ops_per_second for r in per_suite]
        aggregated.append(
            BenchmarkResult(
                name=name,
                iterations=per_suite[0].iterations * suite_count,
                runs=per_suite[0].runs * suite_count,
                avg_ops_per_second=round(mean(throughputs)),
                ops_per_second_std_dev=round(std_dev(throughputs)),
                latency=_aggregate_latency([r.latency for r in per_suite]),
                success_rate=mean([r.success_rate for r in per_suite]),
                errors=tuple(merge_errors(*(r.errors for r in per_suite))),
            )
        )
    log.debug("Aggregated %d operations across %d suites", len(aggregated), suite_count)
    return aggregated
