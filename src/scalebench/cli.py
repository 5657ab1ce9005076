"""Command-line interface for scalebench.

Subcommands:
    scalebench run       Execute a benchmark experiment
    scalebench show      Display a saved report
    scalebench compare   Compare two saved reports
    scalebench export    Export a report to CSV/markdown
"""

from __future__ import annotations

from pathlib import Path

import click

from scalebench import __version__
from scalebench.logging import setup_logging


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """scalebench — throughput and latency benchmarks for crawl APIs under load."""


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, path_type=Path),
    help="YAML profile with BenchConfig settings.",
)
@click.option("--label", type=str, default=None, help="Run label; names the report file.")
@click.option("--api-url", type=str, default=None, help="Base URL of the API under test.")
@click.option("--iterations", type=int, default=None, help="Scrape iterations per run.")
@click.option("--runs", type=int, default=None, help="Runs per operation.")
@click.option("--suite-runs", type=int, default=None, help="Repetitions of the whole suite.")
@click.option("--concurrency", type=int, default=None, help="Maximum requests in flight.")
@click.option("--batch-size", type=int, default=None, help="URLs per batch scrape.")
@click.option("--crawl-limit", type=int, default=None, help="Page limit per crawl.")
@click.option("--store-host", type=str, default=None, help="Redis/Valkey host.")
@click.option("--store-port", type=int, default=None, help="Redis/Valkey port.")
@click.option(
    "--results-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Report output directory.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show per-run detail.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(path_type=Path), default=None)
def run(  # noqa: PLR0913
    profile_path: Path | None,
    label: str | None,
    api_url: str | None,
    iterations: int | None,
    runs: int | None,
    suite_runs: int | None,
    concurrency: int | None,
    batch_size: int | None,
    crawl_limit: int | None,
    store_host: str | None,
    store_port: int | None,
    results_dir: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run the benchmark suite against a live API.

    Settings come from environment variables (FIRECRAWL_API_URL,
    SCRAPE_ITERATIONS, CONCURRENCY, RUNS, SUITE_RUNS, LABEL, ...),
    then the profile, then command-line options.

    \b
    Examples:
        LABEL=redis scalebench run
        scalebench run --label valkey --store-port 6380 --suite-runs 5
        scalebench run --profile bench-valkey.yaml -v
    """
    from scalebench.bench.config import (
        config_from_env,
        config_from_profile,
        load_profile,
        validate_config,
    )
    from scalebench.bench.display import format_results
    from scalebench.bench.results import save_report
    from scalebench.bench.runner import BenchRunner
    from scalebench.store import StoreProbe
    from scalebench.target import CrawlClient, build_operations

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    cli_overrides: dict[str, object] = {
        "label": label,
        "api_url": api_url,
        "iterations": iterations,
        "runs": runs,
        "suite_runs": suite_runs,
        "concurrency": concurrency,
        "batch_size": batch_size,
        "crawl_limit": crawl_limit,
        "store_host": store_host,
        "store_port": store_port,
        "results_dir": results_dir,
    }

    try:
        base = config_from_env()
        profile_data = load_profile(profile_path) if profile_path else {}
        config = config_from_profile(profile_data, base=base, cli_overrides=cli_overrides)
    except (ValueError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    fatal = [e for e in validate_config(config) if e.severity == "error"]
    if fatal:
        click.echo("Invalid benchmark configuration:", err=True)
        for e in fatal:
            click.echo(f"  {e.field}: {e.message}", err=True)
        raise SystemExit(1)

    click.echo(f"Benchmark ({config.label.upper()})")
    click.echo(f"API: {config.api_url}")
    click.echo(
        f"Scrape iterations: {config.iterations} | Batch size: {config.batch_size} "
        f"| Crawl limit: {config.crawl_limit}"
    )
    click.echo(
        f"Concurrency: {config.concurrency} | Runs per op: {config.runs} "
        f"| Suite runs: {config.suite_runs}"
    )

    client = CrawlClient.from_config(config)
    store = StoreProbe.connect(config.store_host, config.store_port)
    try:
        runner = BenchRunner(config, client, store, build_operations(client, config))
        report = runner.run()
    except (ValueError, RuntimeError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904
    finally:
        store.close()
        client.close()

    click.echo()
    click.echo(format_results(report))
    path = save_report(report, config.results_dir)
    click.echo()
    click.echo(f"Results saved to {path}")


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@main.command("show")
@click.argument("report_path", type=click.Path(exists=True, path_type=Path))
def show(report_path: Path) -> None:
    """Display a saved benchmark report.

    REPORT_PATH is a ``<label>-scale.json`` file written by ``run``.
    """
    from scalebench.bench.display import format_results
    from scalebench.bench.results import load_report

    try:
        report = load_report(report_path)
    except (ValueError, KeyError) as exc:
        click.echo(f"Error: cannot read {report_path}: {exc}", err=True)
        raise SystemExit(1) from exc
    click.echo(format_results(report))


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


@main.command("compare")
@click.argument("baseline_path", type=click.Path(exists=True, path_type=Path))
@click.argument("treatment_path", type=click.Path(exists=True, path_type=Path))
def compare(baseline_path: Path, treatment_path: Path) -> None:
    """Compare two saved reports, e.g. a Redis run against a Valkey run.

    \b
    Examples:
        scalebench compare benchmark-results/redis-scale.json \\
            benchmark-results/valkey-scale.json
    """
    from scalebench.bench.display import format_comparison
    from scalebench.bench.results import load_report

    try:
        baseline = load_report(baseline_path)
        treatment = load_report(treatment_path)
    except (ValueError, KeyError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    click.echo(f"Benchmark comparison: {baseline.label} vs {treatment.label}")
    click.echo("═" * 100)
    click.echo(format_comparison(baseline, treatment))


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------


@main.command("export")
@click.argument("report_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "markdown"]),
    default="csv",
    help="Export format.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file (default: stdout).",
)
def export(report_path: Path, fmt: str, output: Path | None) -> None:
    """Export a saved report to CSV or Markdown.

    \b
    Examples:
        scalebench export benchmark-results/redis-scale.json > redis.csv
        scalebench export benchmark-results/redis-scale.json --format markdown -o redis.md
    """
    from scalebench.bench.export import export_csv, export_markdown
    from scalebench.bench.results import load_report

    try:
        report = load_report(report_path)
    except (ValueError, KeyError) as exc:
        click.echo(f"Error: cannot read {report_path}: {exc}", err=True)
        raise SystemExit(1) from exc
    text = export_csv(report) if fmt == "csv" else export_markdown(report)

    if output:
        output.write_text(text)
        click.echo(f"Exported to {output}")
    else:
        click.echo(text, nl=False)
