"""Measurement core for scalebench.

Provides the bounded executor, latency/throughput statistics, the
suite runner and cross-suite aggregator, and baseline sampling.
Nothing in this subpackage knows what an operation actually does.
"""
