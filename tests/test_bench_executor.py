"""Tests for scalebench.bench.executor — bounded-concurrency executor."""

from __future__ import annotations

import asyncio
import threading
import unittest

from scalebench.bench.executor import OperationOutcome, invoke, run_benchmark
from scalebench.bench.results import MAX_ERRORS
from scalebench.bench.stats import LatencyStats

from bench_test_helpers import fixed_outcome


class TestInvoke(unittest.IsolatedAsyncioTestCase):
    """Tests for invoke()."""

    async def test_sync_operation(self) -> None:
        outcome = await invoke(fixed_outcome(12.0), 0)
        self.assertEqual(outcome, OperationOutcome.ok(12.0))

    async def test_async_operation(self) -> None:
        async def op(index: int) -> OperationOutcome:
            await asyncio.sleep(0)
            return OperationOutcome.ok(float(index))

        outcome = await invoke(op, 7)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.duration_ms, 7.0)

    async def test_exception_becomes_failed_outcome(self) -> None:
        def op(index: int) -> OperationOutcome:
            raise RuntimeError("boom")

        outcome = await invoke(op, 0)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "boom")
        self.assertGreaterEqual(outcome.duration_ms, 0.0)

    async def test_exception_without_message_uses_class_name(self) -> None:
        def op(index: int) -> OperationOutcome:
            raise KeyError()

        outcome = await invoke(op, 0)
        self.assertEqual(outcome.error, "KeyError")

    async def test_wrong_return_type_is_failure(self) -> None:
        outcome = await invoke(lambda i: None, 0)  # type: ignore[arg-type, return-value]
        self.assertFalse(outcome.success)
        self.assertIn("NoneType", outcome.error or "")


class TestRunBenchmark(unittest.IsolatedAsyncioTestCase):
    """Tests for run_benchmark()."""

    async def test_fixed_duration_success(self) -> None:
        result = await run_benchmark(
            "scrape", fixed_outcome(50.0), iterations=10, runs=2, concurrency=5
        )
        self.assertEqual(result.name, "scrape")
        self.assertEqual(result.iterations, 10)
        self.assertEqual(result.runs, 2)
        self.assertEqual(result.latency.min, 50.0)
        self.assertEqual(result.latency.avg, 50.0)
        self.assertEqual(result.latency.max, 50.0)
        self.assertEqual(result.success_rate, 100.0)
        self.assertEqual(result.errors, ())
        self.assertGreater(result.avg_ops_per_second, 0)

    async def test_all_failures(self) -> None:
        result = await run_benchmark(
            "scrape",
            fixed_outcome(5.0, success=False, error="boom"),
            iterations=10,
            runs=1,
            concurrency=3,
        )
        self.assertEqual(result.success_rate, 0.0)
        self.assertEqual(result.errors, ("boom",))
        # Failed attempts still count as latency samples.
        self.assertEqual(result.latency.avg, 5.0)

    async def test_partial_failures(self) -> None:
        def op(index: int) -> OperationOutcome:
            if index % 4 == 0:
                return OperationOutcome.failed(1.0, "timeout")
            return OperationOutcome.ok(1.0)

        result = await run_benchmark("map", op, iterations=8, runs=1, concurrency=2)
        self.assertAlmostEqual(result.success_rate, 75.0)
        self.assertEqual(result.errors, ("timeout",))

    async def test_failure_without_message_not_recorded(self) -> None:
        result = await run_benchmark(
            "scrape",
            fixed_outcome(1.0, success=False),
            iterations=4,
            runs=1,
            concurrency=2,
        )
        self.assertEqual(result.success_rate, 0.0)
        self.assertEqual(result.errors, ())

    async def test_raising_operation_is_counted(self) -> None:
        def op(index: int) -> OperationOutcome:
            raise ConnectionError("refused")

        result = await run_benchmark("crawl", op, iterations=3, runs=2, concurrency=2)
        self.assertEqual(result.success_rate, 0.0)
        self.assertEqual(result.errors, ("refused",))

    async def test_error_list_capped(self) -> None:
        def op(index: int) -> OperationOutcome:
            return OperationOutcome.failed(1.0, f"error {index}")

        result = await run_benchmark("scrape", op, iterations=12, runs=1, concurrency=1)
        self.assertEqual(len(result.errors), MAX_ERRORS)
        self.assertEqual(result.errors, tuple(f"error {i}" for i in range(MAX_ERRORS)))

    async def test_concurrency_ceiling(self) -> None:
        in_flight = 0
        peak = 0

        async def op(index: int) -> OperationOutcome:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.002)
            in_flight -= 1
            return OperationOutcome.ok(2.0)

        await run_benchmark("scrape", op, iterations=30, runs=2, concurrency=4)
        self.assertLessEqual(peak, 4)
        self.assertEqual(peak, 4)
        self.assertEqual(in_flight, 0)

    async def test_threaded_blocking_operations_overlap(self) -> None:
        """Blocking calls wrapped with to_thread occupy every slot at once."""
        barrier = threading.Barrier(4, timeout=5)

        def blocking(index: int) -> OperationOutcome:
            barrier.wait()
            return OperationOutcome.ok(1.0)

        async def op(index: int) -> OperationOutcome:
            return await asyncio.to_thread(blocking, index)

        result = await run_benchmark("scrape", op, iterations=8, runs=1, concurrency=4)
        self.assertEqual(result.success_rate, 100.0)
        self.assertEqual(result.errors, ())

    async def test_concurrency_one_is_sequential(self) -> None:
        seen: list[int] = []

        async def op(index: int) -> OperationOutcome:
            seen.append(index)
            await asyncio.sleep(0)
            return OperationOutcome.ok(1.0)

        await run_benchmark("scrape", op, iterations=5, runs=2, concurrency=1)
        self.assertEqual(seen, list(range(10)))

    async def test_indices_are_run_offset(self) -> None:
        seen: list[int] = []

        def op(index: int) -> OperationOutcome:
            seen.append(index)
            return OperationOutcome.ok(1.0)

        await run_benchmark("scrape", op, iterations=7, runs=3, concurrency=3)
        self.assertEqual(sorted(seen), list(range(21)))

    async def test_zero_iterations(self) -> None:
        calls: list[int] = []
        result = await run_benchmark(
            "crawl", lambda i: calls.append(i), iterations=0, runs=3, concurrency=2  # type: ignore[arg-type, return-value]
        )
        self.assertEqual(calls, [])
        self.assertEqual(result.avg_ops_per_second, 0)
        self.assertEqual(result.ops_per_second_std_dev, 0)
        self.assertEqual(result.latency, LatencyStats.empty())
        self.assertEqual(result.success_rate, 0.0)

    async def test_zero_runs(self) -> None:
        result = await run_benchmark(
            "scrape", fixed_outcome(), iterations=10, runs=0, concurrency=2
        )
        self.assertEqual(result.avg_ops_per_second, 0)
        self.assertEqual(result.latency, LatencyStats.empty())

    async def test_non_positive_concurrency_raises(self) -> None:
        for concurrency in (0, -1):
            with self.assertRaises(ValueError):
                await run_benchmark(
                    "scrape", fixed_outcome(), iterations=1, runs=1, concurrency=concurrency
                )

    async def test_negative_counts_raise(self) -> None:
        with self.assertRaises(ValueError):
            await run_benchmark("scrape", fixed_outcome(), iterations=-1, runs=1, concurrency=1)
        with self.assertRaises(ValueError):
            await run_benchmark("scrape", fixed_outcome(), iterations=1, runs=-1, concurrency=1)

    async def test_latency_ordering(self) -> None:
        def op(index: int) -> OperationOutcome:
            return OperationOutcome.ok(float((index * 37) % 101))

        result = await run_benchmark("scrape", op, iterations=50, runs=2, concurrency=8)
        lat = result.latency
        self.assertLessEqual(lat.min, lat.p50)
        self.assertLessEqual(lat.p50, lat.p95)
        self.assertLessEqual(lat.p95, lat.p99)
        self.assertLessEqual(lat.p99, lat.max)


if __name__ == "__main__":
    unittest.main()
