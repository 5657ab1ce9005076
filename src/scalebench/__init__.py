"""scalebench — throughput and latency benchmarks for crawl APIs under load."""

__version__ = "0.1.0"
