"""Bounded-concurrency benchmark executor.

Runs one labeled operation ``iterations`` times per run, for ``runs``
independent runs, with at most ``concurrency`` invocations in flight.
Each invocation yields an :class:`OperationOutcome`; the executor folds
them into a single :class:`~scalebench.bench.results.BenchmarkResult`.

Admission uses an ``asyncio.Semaphore``: a new invocation is started
only after the semaphore is acquired, and the slot is released when
the invocation finishes.  Invocations are admitted in index order, and
invocation ``i`` of run ``r`` always receives index ``r * iterations + i``
so operations can vary their input deterministically (round-robin
target selection, for instance).

Operation failures never escape this module.  An operation that
reports ``success=False`` or raises is counted as a failed attempt; it
still contributes its duration to the latency samples and its share of
the elapsed time to the run throughput, because the target had to
absorb that load.  Only contract errors (non-positive concurrency,
negative counts) raise.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from scalebench.bench.results import BenchmarkResult, add_error
from scalebench.bench.stats import compute_latency_stats, mean, std_dev

log = logging.getLogger("scalebench")


# ---------------------------------------------------------------------------
# OperationOutcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OperationOutcome:
    """Result of one invocation of a timed operation."""

    success: bool
    duration_ms: float
    error: str | None = None

    @classmethod
    def ok(cls, duration_ms: float) -> OperationOutcome:
        """A successful invocation."""
        return cls(success=True, duration_ms=duration_ms)

    @classmethod
    def failed(cls, duration_ms: float, error: str | None) -> OperationOutcome:
        """A failed invocation, timed from start to failure."""
        return cls(success=False, duration_ms=duration_ms, error=error)


# An operation maps an invocation index to an outcome, either directly
# or through an awaitable.  Synchronous operations run on the event loop
# itself, so a blocking one serializes the run regardless of concurrency;
# blocking work must be async or wrapped with asyncio.to_thread (see
# scalebench.target._threaded).
Operation = Callable[[int], Union[OperationOutcome, Awaitable[OperationOutcome]]]


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _describe_exception(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


async def invoke(operation: Operation, index: int) -> OperationOutcome:
    """Call *operation* and always return an outcome.

    Awaits the result if the operation is asynchronous.  Exceptions are
    converted into a failed outcome whose duration runs from the call
    to the raise.
    """
    start = time.perf_counter()
    try:
        result = operation(index)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:  # noqa: BLE001
        return OperationOutcome.failed(_elapsed_ms(start), _describe_exception(exc))
    if not isinstance(result, OperationOutcome):
        return OperationOutcome.failed(
            _elapsed_ms(start),
            f"operation returned {type(result).__name__}, expected OperationOutcome",
        )
    return result


# ---------------------------------------------------------------------------
# Per-run accumulator
# ---------------------------------------------------------------------------


class _Accumulator:
    """Samples and counters for one run_benchmark call.

    Owned by a single executor invocation.  All tasks run on one event
    loop, so appends and increments need no locking.
    """

    def __init__(self) -> None:
        self.durations: list[float] = []
        self.run_throughputs: list[float] = []
        self.successes = 0
        self.errors: list[str] = []

    def record(self, outcome: OperationOutcome) -> None:
        self.durations.append(outcome.duration_ms)
        if outcome.success:
            self.successes += 1
        else:
            add_error(self.errors, outcome.error)


def _throughput(iterations: int, elapsed_ms: float) -> int:
    """Ops/sec for one run, rounded.  0 when nothing ran or no time passed."""
    if iterations == 0 or elapsed_ms <= 0:
        return 0
    return round(iterations / elapsed_ms * 1000)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


async def _run_once(
    operation: Operation,
    *,
    offset: int,
    iterations: int,
    gate: asyncio.Semaphore,
    acc: _Accumulator,
) -> float:
    """Execute one run and return its wall-clock duration in ms."""

    async def _admitted(index: int) -> None:
        try:
            acc.record(await invoke(operation, index))
        finally:
            gate.release()

    tasks: list[asyncio.Task[None]] = []
    start = time.perf_counter()
    for i in range(iterations):
        await gate.acquire()
        tasks.append(asyncio.ensure_future(_admitted(offset + i)))
    await asyncio.gather(*tasks)
    return _elapsed_ms(start)


async def run_benchmark(
    name: str,
    operation: Operation,
    *,
    iterations: int,
    runs: int,
    concurrency: int,
) -> BenchmarkResult:
    """Benchmark *operation* over ``runs`` runs of ``iterations`` calls.

    Args:
        name: Label recorded in the result.
        operation: Callable taking the invocation index and returning an
            OperationOutcome, or an awaitable of one.
        iterations: Invocations per run.  May be 0.
        runs: Number of independent runs.
        concurrency: Maximum invocations in flight at once.

    Returns:
        A BenchmarkResult covering all ``runs * iterations`` invocations.

    Raises:
        ValueError: If *concurrency* is not positive, or *iterations* or
            *runs* is negative.
    """
    if concurrency <= 0:
        raise ValueError(f"concurrency must be positive (got {concurrency})")
    if iterations < 0:
        raise ValueError(f"iterations cannot be negative (got {iterations})")
    if runs < 0:
        raise ValueError(f"runs cannot be negative (got {runs})")

    acc = _Accumulator()
    gate = asyncio.Semaphore(concurrency)

    for run in range(runs):
        elapsed_ms = await _run_once(
            operation,
            offset=run * iterations,
            iterations=iterations,
            gate=gate,
            acc=acc,
        )
        ops = _throughput(iterations, elapsed_ms)
        acc.run_throughputs.append(ops)
        log.debug(
            "%s run %d/%d: %d ops/sec (%.1f ms)",
            name,
            run + 1,
            runs,
            ops,
            elapsed_ms,
        )

    attempts = runs * iterations
    success_rate = acc.successes / attempts * 100 if attempts > 0 else 0.0

    return BenchmarkResult(
        name=name,
        iterations=iterations,
        runs=runs,
        avg_ops_per_second=round(mean(acc.run_throughputs)),
        ops_per_second_std_dev=round(std_dev(acc.run_throughputs)),
        latency=compute_latency_stats(acc.durations),
        success_rate=success_rate,
        errors=tuple(acc.errors),
    )
