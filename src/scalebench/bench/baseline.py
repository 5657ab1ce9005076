"""Baseline latency sampling.

Measures reference latencies that do not depend on the operations
under test: a trivial round trip to the backing store (PING) and a
trivial network round trip (HEAD) to each target page.  These put the
benchmark throughput in context; when the store itself takes 0.3ms
per PING, no queue operation can beat that.

Baselines are informational.  A probe that raises is simply not
counted.  If every sample of a baseline fails, its LatencyStats is the
all-zero empty value, which readers must treat as missing data.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Sequence

from scalebench.bench.results import BaselineMetrics, TargetLatency
from scalebench.bench.stats import compute_latency_stats, mean

log = logging.getLogger("scalebench")


def sample_latencies(probe: Callable[[], Any], samples: int) -> list[float]:
    """Time *samples* sequential calls to *probe*, in milliseconds.

    Calls that raise are dropped from the result.
    """
    latencies: list[float] = []
    for _ in range(samples):
        start = time.perf_counter()
        try:
            probe()
        except Exception as exc:  # noqa: BLE001
            log.debug("Baseline sample discarded: %s", exc)
            continue
        latencies.append((time.perf_counter() - start) * 1000)
    return latencies


def measure_baselines(
    store_ping: Callable[[], Any],
    network_probe: Callable[[str], Any],
    targets: Sequence[str],
    *,
    store_samples: int = 100,
    network_samples: int = 10,
    on_target: Callable[[TargetLatency], None] | None = None,
) -> BaselineMetrics:
    """Measure store and network baselines.

    Args:
        store_ping: Zero-argument round trip to the backing store.
        network_probe: Round trip to one target, called with its URL.
        targets: Network targets, probed in order.
        store_samples: Number of store round trips.
        network_samples: Number of round trips per target.
        on_target: Optional hook called with each target's summary.

    Returns:
        BaselineMetrics with the store stats, pooled network stats, and
        one TargetLatency per target.

    Raises:
        ValueError: If a sample count is negative.
    """
    if store_samples < 0 or network_samples < 0:
        raise ValueError(
            f"Sample counts cannot be negative "
            f"(store={store_samples}, network={network_samples})."
        )

    store_latency = compute_latency_stats(sample_latencies(store_ping, store_samples))
    log.debug(
        "Store baseline: avg %.2fms, p99 %.2fms", store_latency.avg, store_latency.p99
    )

    pooled: list[float] = []
    per_target: list[TargetLatency] = []
    for target in targets:
        latencies = sample_latencies(functools.partial(network_probe, target), network_samples)
        pooled.extend(latencies)
        summary = TargetLatency(
            target=target,
            avg_ms=mean(latencies),
            sample_count=len(latencies),
        )
        per_target.append(summary)
        if on_target is not None:
            on_target(summary)

    return BaselineMetrics(
        network_latency=compute_latency_stats(pooled),
        store_latency=store_latency,
        per_target_latency=tuple(per_target),
    )
