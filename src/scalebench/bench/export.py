"""Export benchmark reports to CSV and Markdown.

CSV format: one row per operation (wide format, suitable for pandas or
a spreadsheet).

Markdown format: a summary table plus baselines, suitable for READMEs
and GitHub issues.
"""

from __future__ import annotations

import csv
import io

from scalebench.bench.results import BenchReport

_CSV_COLUMNS = [
    "label",
    "operation",
    "iterations",
    "runs",
    "avg_ops_per_second",
    "ops_per_second_std_dev",
    "latency_min_ms",
    "latency_avg_ms",
    "latency_p50_ms",
    "latency_p95_ms",
    "latency_p99_ms",
    "latency_max_ms",
    "success_rate",
    "errors",
]


def export_csv(report: BenchReport) -> str:
    """Export one row per operation.

    The ``errors`` column joins the distinct messages with ``" | "``.
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(_CSV_COLUMNS)

    for r in report.results:
        lat = r.latency
        writer.writerow(
            [
                report.label,
                r.name,
                r.iterations,
                r.runs,
                r.avg_ops_per_second,
                r.ops_per_second_std_dev,
                f"{lat.min:.3f}",
                f"{lat.avg:.3f}",
                f"{lat.p50:.3f}",
                f"{lat.p95:.3f}",
                f"{lat.p99:.3f}",
                f"{lat.max:.3f}",
                f"{r.success_rate:.2f}",
                " | ".join(r.errors),
            ]
        )

    return output.getvalue()


def export_markdown(report: BenchReport) -> str:
    """Export a Markdown summary of the report."""
    lines: list[str] = []
    lines.append(f"# Benchmark results: {report.label}")
    lines.append("")
    if report.timestamp:
        lines.append(f"- **Timestamp:** {report.timestamp}")
    lines.append(f"- **Server:** {report.server_info}")
    cfg = report.config
    if cfg:
        lines.append(
            f"- **Scale:** {cfg.get('iterations', '?')} iterations, "
            f"{cfg.get('runs', '?')} runs, {cfg.get('suite_runs', '?')} suite runs, "
            f"concurrency {cfg.get('concurrency', '?')}"
        )
    lines.append(
        f"- **Memory:** peak {report.peak_memory_mb:.2f} MB, "
        f"final {report.final_memory_mb:.2f} MB"
    )
    lines.append("")

    lines.append("| Operation | Ops/sec | ±σ | p50 (ms) | p95 (ms) | p99 (ms) | Success |")
    lines.append("|-----------|--------:|---:|---------:|---------:|---------:|--------:|")
    for r in report.results:
        lat = r.latency
        lines.append(
            f"| {r.name} | {r.avg_ops_per_second:,} | {r.ops_per_second_std_dev} "
            f"| {lat.p50:.1f} | {lat.p95:.1f} | {lat.p99:.1f} | {r.success_rate:.1f}% |"
        )

    b = report.baselines
    lines.append("")
    lines.append("## Baselines")
    lines.append("")
    lines.append(f"- Store PING: avg {b.store_latency.avg:.2f} ms, p99 {b.store_latency.p99:.2f} ms")
    lines.append(
        f"- Network: avg {b.network_latency.avg:.0f} ms, p99 {b.network_latency.p99:.0f} ms"
    )

    errors = report.distinct_errors()
    if errors:
        lines.append("")
        lines.append("## Errors")
        lines.append("")
        lines.extend(f"- `{e}`" for e in errors)

    return "\n".join(lines) + "\n"
