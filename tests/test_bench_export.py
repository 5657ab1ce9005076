"""Tests for scalebench.bench.export — CSV and Markdown export."""

from __future__ import annotations

import csv
import io
import unittest

from scalebench.bench.export import export_csv, export_markdown

from bench_test_helpers import make_report, make_result


class TestExportCsv(unittest.TestCase):
    """Tests for export_csv()."""

    def test_header_and_rows(self) -> None:
        rows = list(csv.DictReader(io.StringIO(export_csv(make_report("valkey")))))
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["label"], "valkey")
        self.assertEqual(rows[0]["operation"], "scrape")
        self.assertEqual(rows[0]["avg_ops_per_second"], "100")
        self.assertEqual(rows[0]["latency_avg_ms"], "50.000")
        self.assertEqual(rows[0]["success_rate"], "100.00")
        self.assertEqual(rows[1]["operation"], "map")

    def test_errors_joined(self) -> None:
        report = make_report(results=[make_result("crawl", errors=("timeout", "502, bad gateway"))])
        rows = list(csv.DictReader(io.StringIO(export_csv(report))))
        self.assertEqual(rows[0]["errors"], "timeout | 502, bad gateway")

    def test_empty_report(self) -> None:
        text = export_csv(make_report(results=[]))
        self.assertEqual(len(text.strip().splitlines()), 1)


class TestExportMarkdown(unittest.TestCase):
    """Tests for export_markdown()."""

    def test_structure(self) -> None:
        text = export_markdown(make_report("redis"))
        self.assertTrue(text.startswith("# Benchmark results: redis\n"))
        self.assertIn("| Operation |", text)
        self.assertIn("| scrape | 100 | 5 |", text)
        self.assertIn("## Baselines", text)
        self.assertIn("20 iterations, 2 runs, 3 suite runs, concurrency 5", text)
        self.assertNotIn("## Errors", text)

    def test_errors_section(self) -> None:
        report = make_report(results=[make_result("map", errors=("refused",))])
        text = export_markdown(report)
        self.assertIn("## Errors", text)
        self.assertIn("- `refused`", text)


if __name__ == "__main__":
    unittest.main()
