"""Latency and throughput statistics for benchmark samples.

All functions are pure and accept any sequence of numbers (durations in
milliseconds, or per-run throughputs in ops/sec).  Empty input is not an
error: every function returns 0 so that a run in which nothing was
measured still produces a fully formed result.

Percentiles use the nearest-rank method rather than linear
interpolation.  On small sample sets this matters: with 10 samples,
p95 and p99 both select the largest value.  The choice is kept so that
reports stay comparable with earlier runs produced by the same method.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence


# ---------------------------------------------------------------------------
# LatencyStats
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LatencyStats:
    """Latency distribution summary, in milliseconds.

    All fields are 0 when no samples were collected.  Callers reading a
    0ms baseline must treat it as missing data, not a true zero.
    """

    min: float = 0.0
    avg: float = 0.0
    p50: float = 0.0
    p95: float = 0.0
    p99: float = 0.0
    max: float = 0.0

    @classmethod
    def empty(cls) -> LatencyStats:
        """The all-zero value used for empty sample sets."""
        return cls()

    def to_dict(self) -> dict[str, float]:
        """Serialize to a dict with rounded values."""
        return {
            "min": round(self.min, 3),
            "avg": round(self.avg, 3),
            "p50": round(self.p50, 3),
            "p95": round(self.p95, 3),
            "p99": round(self.p99, 3),
            "max": round(self.max, 3),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LatencyStats:
        """Deserialize from a dict; missing fields default to 0."""
        return cls(
            min=float(data.get("min", 0.0)),
            avg=float(data.get("avg", 0.0)),
            p50=float(data.get("p50", 0.0)),
            p95=float(data.get("p95", 0.0)),
            p99=float(data.get("p99", 0.0)),
            max=float(data.get("max", 0.0)),
        )


# ---------------------------------------------------------------------------
# Sample statistics
# ---------------------------------------------------------------------------


def percentile(samples: Sequence[float], p: float) -> float:
    """Return the *p*-th percentile of *samples* by nearest rank.

    Sorts ascending and picks the element at index
    ``ceil(p / 100 * n) - 1``, clamped to the valid index range.  No
    interpolation is performed, so the result is always one of the
    samples.

    Args:
        samples: Values to rank.  Need not be sorted.
        p: Percentile in the range 0-100.

    Returns:
        The selected sample, or 0 if *samples* is empty.
    """
    if not samples:
        return 0.0
    sorted_v = sorted(samples)
    idx = math.ceil(p / 100 * len(sorted_v)) - 1
    idx = min(max(idx, 0), len(sorted_v) - 1)
    return sorted_v[idx]


def mean(samples: Sequence[float]) -> float:
    """Arithmetic mean, or 0 for an empty sequence."""
    if not samples:
        return 0.0
    return math.fsum(samples) / len(samples)


def std_dev(samples: Sequence[float]) -> float:
    """Population standard deviation (divides by n, not n - 1).

    Returns 0 for an empty sequence.
    """
    if not samples:
        return 0.0
    avg = mean(samples)
    return math.sqrt(math.fsum((v - avg) ** 2 for v in samples) / len(samples))


def compute_latency_stats(samples: Sequence[float]) -> LatencyStats:
    """Build a LatencyStats record from one sample set."""
    if not samples:
        return LatencyStats.empty()
    return LatencyStats(
        min=min(samples),
        avg=mean(samples),
        p50=percentile(samples, 50),
        p95=percentile(samples, 95),
        p99=percentile(samples, 99),
        max=max(samples),
    )
