"""Benchmark experiment orchestration.

Orchestrates:
1. Configuration validation
2. API reachability check and store version capture
3. Baseline measurement (once, before any suite)
4. ``suite_runs`` repetitions of the operation suite
5. Cross-suite aggregation and memory sampling
6. Progress reporting

The runner owns no connections.  The API client and store probe are
injected so the whole experiment can run against fakes.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from scalebench.bench.baseline import measure_baselines
from scalebench.bench.config import BenchConfig, validate_config
from scalebench.bench.results import BaselineMetrics, BenchmarkResult, BenchReport, TargetLatency
from scalebench.bench.suite import NamedOperation, SuiteResult, aggregate_suites, run_suite

log = logging.getLogger("scalebench")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class BenchProgress:
    """Progress info passed to the callback."""

    phase: str  # "baseline", "operation", "suite", "done"
    suite: int = 0  # 1-based; 0 outside the suite phase
    suites_total: int = 0
    operation: str = ""
    detail: str = ""


ProgressCallback = Callable[[BenchProgress], None]


# ---------------------------------------------------------------------------
# BenchRunner
# ---------------------------------------------------------------------------


class BenchRunner:
    """Executes a benchmark experiment according to a BenchConfig.

    Usage::

        config = config_from_env()
        client = CrawlClient.from_config(config)
        store = StoreProbe.connect(config.store_host, config.store_port)
        runner = BenchRunner(config, client, store, build_operations(client, config))
        report = runner.run()

    *client* needs ``check_reachable()``; *store* needs ``ping()``,
    ``used_memory_mb()`` and ``server_info()``; *network_probe* is called
    with each baseline target URL.
    """

    def __init__(
        self,
        config: BenchConfig,
        client: Any,
        store: Any,
        operations: list[NamedOperation],
        *,
        network_probe: Callable[[str], Any] | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.store = store
        self.operations = operations
        self.network_probe = network_probe or self._default_network_probe
        self.progress: ProgressCallback = progress_callback or self._default_progress

    def run(self) -> BenchReport:
        """Execute the full experiment.

        Returns:
            The BenchReport, with results aggregated across suites.

        Raises:
            ValueError: If configuration is invalid.
            RuntimeError: If the API is not reachable.
        """
        # Phase 1: Validate configuration.
        errors = validate_config(self.config)
        fatal = [e for e in errors if e.severity == "error"]
        for w in (e for e in errors if e.severity == "warning"):
            log.warning("Config warning: %s: %s", w.field, w.message)
        if fatal:
            messages = [f"  {e.field}: {e.message}" for e in fatal]
            raise ValueError("Invalid benchmark configuration:\n" + "\n".join(messages))

        # Phase 2: Target and store identity.
        try:
            self.client.check_reachable()
        except Exception as exc:  # noqa: BLE001
            raise RuntimeError(
                f"API not reachable at {self.config.api_url}: {exc}"
            ) from exc
        log.info("API connected: %s", self.config.api_url)
        server_info = self.store.server_info()
        log.info("Store: %s", server_info)

        # Phase 3: Baselines.
        baselines = self.measure_baselines()

        # Phase 4: Suites.
        suites = asyncio.run(self._run_suites())
        memory_peak = max((s.peak_resource for s in suites), default=0.0)

        # Phase 5: Aggregate.
        results = aggregate_suites([s.results for s in suites])
        memory_final = self.store.used_memory_mb()
        self.progress(BenchProgress(phase="done", suites_total=len(suites)))

        return BenchReport(
            label=self.config.label,
            timestamp=datetime.now(timezone.utc).isoformat(),
            config=self.config.snapshot(),
            server_info=server_info,
            baselines=baselines,
            results=results,
            peak_memory_mb=memory_peak,
            final_memory_mb=memory_final,
        )

    def measure_baselines(self) -> BaselineMetrics:
        """Sample store and network latency once."""
        log.info("Measuring baseline latencies...")

        def on_target(summary: TargetLatency) -> None:
            self.progress(
                BenchProgress(
                    phase="baseline",
                    operation=summary.target,
                    detail=f"avg {summary.avg_ms:.0f}ms ({summary.sample_count} samples)",
                )
            )

        baselines = measure_baselines(
            self.store.ping,
            self.network_probe,
            self.config.baseline_targets,
            store_samples=self.config.store_samples,
            network_samples=self.config.network_samples,
            on_target=on_target,
        )
        log.info(
            "Store PING: avg %.2fms, p99 %.2fms",
            baselines.store_latency.avg,
            baselines.store_latency.p99,
        )
        return baselines

    async def _run_suites(self) -> list[SuiteResult]:
        # Size the worker pool so threaded operations are never the
        # bottleneck below the configured concurrency.
        loop = asyncio.get_running_loop()
        pool = ThreadPoolExecutor(max_workers=self.config.concurrency)
        loop.set_default_executor(pool)

        total = self.config.suite_runs
        log.info("Running %d benchmark suite(s)...", total)
        suites: list[SuiteResult] = []
        try:
            for suite_num in range(1, total + 1):
                self.progress(BenchProgress(phase="suite", suite=suite_num, suites_total=total))

                def on_result(result: BenchmarkResult, suite_num: int = suite_num) -> None:
                    self.progress(
                        BenchProgress(
                            phase="operation",
                            suite=suite_num,
                            suites_total=total,
                            operation=result.name,
                            detail=(
                                f"{result.avg_ops_per_second} ops/sec "
                                f"({result.success_rate:.0f}% success)"
                            ),
                        )
                    )

                suites.append(
                    await run_suite(
                        self.operations,
                        runs=self.config.runs,
                        concurrency=self.config.concurrency,
                        resource_probe=self.store.used_memory_mb,
                        on_result=on_result,
                    )
                )
        finally:
            pool.shutdown(wait=True)
        return suites

    def _default_network_probe(self, url: str) -> None:
        from scalebench.target import probe_url

        probe_url(url, timeout=self.config.probe_timeout)

    @staticmethod
    def _default_progress(progress: BenchProgress) -> None:
        """Default progress callback: log one line per event."""
        if progress.phase == "suite":
            log.info("── Suite Run %d/%d ──", progress.suite, progress.suites_total)
        elif progress.phase == "operation":
            log.info("  %-22s %s", progress.operation, progress.detail)
        elif progress.phase == "baseline":
            log.info("  Network to %s: %s", progress.operation, progress.detail)
        elif progress.phase == "done":
            log.info("Completed %d suite(s)", progress.suites_total)
