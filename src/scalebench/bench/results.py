"""Benchmark result data structures and serialization.

Hierarchy::

    BenchReport (top level — one experiment)
      → baselines: BaselineMetrics
        → network_latency / store_latency: LatencyStats
        → per_target_latency: list[TargetLatency]
      → results: list[BenchmarkResult] (one per operation, aggregated
        across suite repetitions)
        → latency: LatencyStats

Files produced::

    <label>-scale.json   — one BenchReport, indented JSON

JSON keys are camelCase so reports stay readable by the comparison
tooling that consumed earlier runs.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from scalebench.bench.stats import LatencyStats

log = logging.getLogger("scalebench")

MAX_ERRORS = 5


# ---------------------------------------------------------------------------
# Bounded error list
# ---------------------------------------------------------------------------


def add_error(errors: list[str], message: str | None) -> None:
    """Record *message* in *errors* if it is new and there is room.

    Keeps the first ``MAX_ERRORS`` distinct messages in arrival order.
    Later distinct messages are dropped.
    """
    if not message or message in errors or len(errors) >= MAX_ERRORS:
        return
    errors.append(message)


def merge_errors(*error_lists: Iterable[str]) -> list[str]:
    """Ordered, deduplicated union of *error_lists*, capped at ``MAX_ERRORS``."""
    merged: list[str] = []
    for errors in error_lists:
        for message in errors:
            add_error(merged, message)
    return merged


# ---------------------------------------------------------------------------
# Operation-level result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchmarkResult:
    """Throughput and latency of one operation over all its iterations and runs."""

    name: str
    iterations: int
    runs: int
    avg_ops_per_second: int
    ops_per_second_std_dev: int
    latency: LatencyStats
    success_rate: float  # percent, 0-100
    errors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "iterations": self.iterations,
            "runs": self.runs,
            "avgOpsPerSecond": self.avg_ops_per_second,
            "opsPerSecondStdDev": self.ops_per_second_std_dev,
            "latency": self.latency.to_dict(),
            "successRate": round(self.success_rate, 4),
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchmarkResult:
        """Deserialize from a dict."""
        return cls(
            name=data["name"],
            iterations=int(data.get("iterations", 0)),
            runs=int(data.get("runs", 0)),
            avg_ops_per_second=int(data.get("avgOpsPerSecond", 0)),
            ops_per_second_std_dev=int(data.get("opsPerSecondStdDev", 0)),
            latency=LatencyStats.from_dict(data.get("latency", {})),
            success_rate=float(data.get("successRate", 0.0)),
            errors=tuple(data.get("errors", [])),
        )


# ---------------------------------------------------------------------------
# Baselines
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TargetLatency:
    """Average round trip to one network target."""

    target: str
    avg_ms: float
    sample_count: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "target": self.target,
            "avgMs": round(self.avg_ms, 3),
            "samples": self.sample_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetLatency:
        """Deserialize from a dict."""
        return cls(
            target=data.get("target", data.get("url", "")),
            avg_ms=float(data.get("avgMs", 0.0)),
            sample_count=int(data.get("samples", 0)),
        )


@dataclass(frozen=True)
class BaselineMetrics:
    """Reference latencies measured once, before any suite runs."""

    network_latency: LatencyStats = field(default_factory=LatencyStats)
    store_latency: LatencyStats = field(default_factory=LatencyStats)
    per_target_latency: tuple[TargetLatency, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "networkLatency": self.network_latency.to_dict(),
            "storeLatency": self.store_latency.to_dict(),
            "perTargetLatency": [t.to_dict() for t in self.per_target_latency],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BaselineMetrics:
        """Deserialize from a dict.  Accepts the older redis/url key names."""
        store = data.get("storeLatency", data.get("redisLatency", {}))
        targets = data.get("perTargetLatency", data.get("urlLatencies", []))
        return cls(
            network_latency=LatencyStats.from_dict(data.get("networkLatency", {})),
            store_latency=LatencyStats.from_dict(store),
            per_target_latency=tuple(TargetLatency.from_dict(t) for t in targets),
        )


# ---------------------------------------------------------------------------
# Experiment report
# ---------------------------------------------------------------------------


@dataclass
class BenchReport:
    """Everything one benchmark experiment produced."""

    label: str
    timestamp: str = ""
    config: dict[str, Any] = field(default_factory=dict)
    server_info: str = "unknown"
    baselines: BaselineMetrics = field(default_factory=BaselineMetrics)
    results: list[BenchmarkResult] = field(default_factory=list)
    peak_memory_mb: float = 0.0
    final_memory_mb: float = 0.0

    def result_for(self, name: str) -> BenchmarkResult | None:
        """Look up an operation's result by name."""
        for result in self.results:
            if result.name == name:
                return result
        return None

    def distinct_errors(self) -> list[str]:
        """First few distinct error messages across all operations."""
        return merge_errors(*(r.errors for r in self.results))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "label": self.label,
            "timestamp": self.timestamp,
            "config": self.config,
            "serverInfo": self.server_info,
            "baselines": self.baselines.to_dict(),
            "results": [r.to_dict() for r in self.results],
            "memoryPeakMB": round(self.peak_memory_mb, 3),
            "memoryFinalMB": round(self.final_memory_mb, 3),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchReport:
        """Deserialize from a dict."""
        return cls(
            label=data["label"],
            timestamp=data.get("timestamp", ""),
            config=data.get("config", {}),
            server_info=data.get("serverInfo", "unknown"),
            baselines=BaselineMetrics.from_dict(data.get("baselines") or {}),
            results=[BenchmarkResult.from_dict(r) for r in data.get("results", [])],
            peak_memory_mb=float(data.get("memoryPeakMB", 0.0)),
            final_memory_mb=float(data.get("memoryFinalMB", 0.0)),
        )


# ---------------------------------------------------------------------------
# I/O functions
# ---------------------------------------------------------------------------


def report_path(results_dir: Path, label: str) -> Path:
    """Where the report for *label* lives inside *results_dir*."""
    return results_dir / f"{label}-scale.json"


def save_report(report: BenchReport, results_dir: Path) -> Path:
    """Write *report* to ``results_dir/<label>-scale.json``.

    Creates *results_dir* if needed and returns the written path.
    """
    results_dir.mkdir(parents=True, exist_ok=True)
    path = report_path(results_dir, report.label)
    path.write_text(json.dumps(report.to_dict(), indent=2) + "\n")
    log.info("Wrote %s", path)
    return path


def load_report(path: Path) -> BenchReport:
    """Load a report written by :func:`save_report`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a JSON object.
    """
    if not path.exists():
        raise FileNotFoundError(f"Report not found: {path}")
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Report must be a JSON object, got {type(data).__name__}")
    return BenchReport.from_dict(data)
