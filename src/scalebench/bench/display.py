"""Terminal display formatting for benchmark reports.

Produces aligned tables and summaries using Unicode box-drawing
characters.  No external dependencies.
"""

from __future__ import annotations

from scalebench.bench.compare import OperationComparison, compare_reports
from scalebench.bench.results import BaselineMetrics, BenchReport

_RULE = "═"


# ---------------------------------------------------------------------------
# Cell formatting
# ---------------------------------------------------------------------------


def _format_ms(value: float, precision: int = 0) -> str:
    return f"{value:.{precision}f} ms"


def _format_throughput(ops: int, std_dev: int) -> str:
    return f"{ops:,} ±{std_dev}"


def _format_diff(
    comparison: OperationComparison, baseline_label: str, treatment_label: str
) -> str:
    winner = comparison.winner(baseline_label, treatment_label)
    if not winner:
        return "N/A"
    return f"+{abs(comparison.diff_pct):.1f}% {winner}"


def _box(widths: list[int], left: str, mid: str, right: str) -> str:
    return left + mid.join("─" * (w + 2) for w in widths) + right


def _row(cells: list[str], widths: list[int]) -> str:
    # First column left-aligned, the rest right-aligned.
    parts = [f" {cells[0]:<{widths[0]}} "]
    parts.extend(f" {cell:>{w}} " for cell, w in zip(cells[1:], widths[1:]))
    return "│" + "│".join(parts) + "│"


def _table(headers: list[str], rows: list[list[str]], widths: list[int]) -> str:
    widths = [
        max([w, len(h)] + [len(r[i]) for r in rows]) for i, (h, w) in enumerate(zip(headers, widths))
    ]
    lines = [_box(widths, "┌", "┬", "┐"), _row(headers, widths)]
    lines.append(_box(widths, "├", "┼", "┤"))
    lines.extend(_row(r, widths) for r in rows)
    lines.append(_box(widths, "└", "┴", "┘"))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Single report
# ---------------------------------------------------------------------------


def format_results_table(report: BenchReport) -> str:
    """Table of per-operation throughput, latency and success rate."""
    rows = [
        [
            r.name,
            _format_throughput(r.avg_ops_per_second, r.ops_per_second_std_dev),
            _format_ms(r.latency.p99),
            _format_ms(r.latency.avg),
            f"{r.success_rate:.1f}%",
        ]
        for r in report.results
    ]
    return _table(
        ["Operation", "Throughput (±σ)", "p99 Latency", "Avg Latency", "Success Rate"],
        rows,
        [22, 19, 15, 15, 12],
    )


def format_baselines(baselines: BaselineMetrics, *, indent: str = "   ") -> str:
    """Store and network baseline lines.

    A 0ms baseline means no sample succeeded, and is shown as such.
    """
    store = baselines.store_latency
    network = baselines.network_latency
    lines = []
    if store.max == 0:
        lines.append(f"{indent}Store PING:      no successful samples")
    else:
        lines.append(f"{indent}Store PING:      avg {store.avg:.2f}ms, p99 {store.p99:.2f}ms")
    if network.max == 0:
        lines.append(f"{indent}Network latency: no successful samples")
    else:
        lines.append(f"{indent}Network latency: avg {network.avg:.0f}ms, p99 {network.p99:.0f}ms")
    for t in baselines.per_target_latency:
        lines.append(f"{indent}  {t.target}: avg {t.avg_ms:.0f}ms ({t.sample_count} samples)")
    return "\n".join(lines)


def format_results(report: BenchReport) -> str:
    """Format a complete report for display.

    Shows the results table, baselines, memory, and the first few
    distinct errors across all operations.
    """
    lines: list[str] = []
    lines.append(_RULE * 100)
    lines.append(f"  BENCHMARK RESULTS ({report.label.upper()})")
    lines.append(_RULE * 100)
    if report.server_info and report.server_info != "unknown":
        lines.append(f"  {report.server_info}")
    if report.timestamp:
        lines.append(f"  {report.timestamp}")
    lines.append("")
    lines.append(format_results_table(report))
    lines.append("")
    lines.append("Baselines:")
    lines.append(format_baselines(report.baselines))
    lines.append("")
    lines.append(
        f"Memory: Peak {report.peak_memory_mb:.2f} MB, Final {report.final_memory_mb:.2f} MB"
    )

    errors = report.distinct_errors()
    if errors:
        lines.append("")
        lines.append("Errors encountered:")
        lines.extend(f"   - {e}" for e in errors)

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def format_comparison(baseline: BenchReport, treatment: BenchReport) -> str:
    """Side-by-side throughput table for two reports, plus memory and baselines."""
    b_label = baseline.label
    t_label = treatment.label

    lines: list[str] = []
    lines.append(f"{b_label}: {baseline.server_info}")
    lines.append(f"{t_label}: {treatment.server_info}")
    lines.append("")

    comparisons = compare_reports(baseline, treatment)
    if not comparisons:
        lines.append("No operations in common.")
    else:
        rows = [
            [
                c.name,
                _format_throughput(
                    c.baseline.avg_ops_per_second, c.baseline.ops_per_second_std_dev
                ),
                _format_throughput(
                    c.treatment.avg_ops_per_second, c.treatment.ops_per_second_std_dev
                ),
                _format_diff(c, b_label, t_label),
            ]
            for c in comparisons
        ]
        lines.append(
            _table(
                ["Operation", f"{b_label} (ops/sec)", f"{t_label} (ops/sec)", "Difference"],
                rows,
                [22, 19, 19, 15],
            )
        )

    lines.append("")
    lines.append("Memory:")
    for report in (baseline, treatment):
        lines.append(
            f"   {report.label}: Peak {report.peak_memory_mb:.2f} MB, "
            f"Final {report.final_memory_mb:.2f} MB"
        )

    lines.append("")
    lines.append("Baselines (context for variance):")
    for report in (baseline, treatment):
        lines.append(f"   {report.label} run:")
        lines.append(format_baselines(report.baselines, indent="     "))

    return "\n".join(lines)
