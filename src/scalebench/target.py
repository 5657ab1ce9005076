"""HTTP operations against the crawl API under test.

Each :class:`CrawlClient` method performs one blocking request and
returns an :class:`~scalebench.bench.executor.OperationOutcome`.
Request failures (connection errors, timeouts, non-2xx responses) are
captured in the outcome, never raised, since under load they are the
measurement rather than a bug.

:func:`build_operations` turns a client into the fixed, ordered suite
of named operations.  The blocking calls are dispatched to worker
threads with ``asyncio.to_thread`` so the executor's semaphore stays
the only limit on in-flight requests.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Sequence

import requests

from scalebench.bench.config import BenchConfig
from scalebench.bench.executor import OperationOutcome
from scalebench.bench.suite import NamedOperation
from scalebench.logging import get_logger

log = get_logger("target")

_USER_AGENT = "scalebench/0.1"


def error_message(exc: requests.RequestException) -> str:
    """Best description of a failed request.

    Prefers the ``error`` field of a JSON error body, falling back to
    the exception text.
    """
    response = getattr(exc, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
    return str(exc) or type(exc).__name__


class CrawlClient:
    """Thin timed wrapper around the crawl API's v1 endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 120.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "User-Agent": _USER_AGENT,
            }
        )

    @classmethod
    def from_config(cls, config: BenchConfig) -> CrawlClient:
        return cls(config.api_url, config.api_key, timeout=config.request_timeout)

    def _timed(self, method: str, path: str, payload: dict[str, Any] | None = None) -> OperationOutcome:
        start = time.perf_counter()
        try:
            resp = self.session.request(
                method,
                f"{self.base_url}{path}",
                json=payload,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            return OperationOutcome.failed(
                (time.perf_counter() - start) * 1000,
                error_message(exc),
            )
        return OperationOutcome.ok((time.perf_counter() - start) * 1000)

    def check_reachable(self) -> None:
        """GET the API root.

        Raises:
            requests.RequestException: If the API cannot be reached or
                answers with a non-2xx status (a rejected API key, say).
        """
        log.debug("Checking API at %s", self.base_url)
        resp = self.session.get(f"{self.base_url}/", timeout=self.timeout)
        resp.raise_for_status()

    def scrape(self, url: str) -> OperationOutcome:
        return self._timed("POST", "/v1/scrape", {"url": url, "formats": ["markdown"]})

    def batch_scrape(self, urls: Sequence[str]) -> OperationOutcome:
        return self._timed(
            "POST", "/v1/batch/scrape", {"urls": list(urls), "formats": ["markdown"]}
        )

    def start_crawl(self, url: str, limit: int) -> OperationOutcome:
        return self._timed(
            "POST",
            "/v1/crawl",
            {"url": url, "limit": limit, "scrapeOptions": {"formats": ["markdown"]}},
        )

    def map_url(self, url: str) -> OperationOutcome:
        return self._timed("POST", "/v1/map", {"url": url})

    def close(self) -> None:
        self.session.close()


def probe_url(url: str, *, timeout: float = 5.0, session: requests.Session | None = None) -> None:
    """HEAD *url*, raising on connection failure or a non-2xx status.

    Used as the network baseline probe.
    """
    http = session or requests
    resp = http.head(url, timeout=timeout)
    resp.raise_for_status()


# ---------------------------------------------------------------------------
# Suite definition
# ---------------------------------------------------------------------------


def _threaded(call: Callable[[int], OperationOutcome]) -> Callable[[int], Any]:
    """Adapt a blocking per-index call into an async operation."""

    async def operation(index: int) -> OperationOutcome:
        return await asyncio.to_thread(call, index)

    return operation


def build_operations(client: CrawlClient, config: BenchConfig) -> list[NamedOperation]:
    """The benchmark suite, in execution order.

    Iteration counts derive from ``config.iterations``: batch scrape
    runs a fifth as often, crawl a tenth, map half.  The mixed workload
    cycles scrape, map, single-URL batch scrape and scrape again by
    invocation index.
    """
    targets = list(config.targets)
    if not targets:
        raise ValueError("At least one target URL is required.")
    first = targets[0]
    batch = [targets[i % len(targets)] for i in range(config.batch_size)]

    def target_for(index: int) -> str:
        return targets[index % len(targets)]

    def mixed(index: int) -> OperationOutcome:
        url = target_for(index)
        kind = index % 4
        if kind == 1:
            return client.map_url(url)
        if kind == 2:
            return client.batch_scrape([url])
        return client.scrape(url)

    n = config.iterations
    return [
        NamedOperation("scrape", n, _threaded(lambda i: client.scrape(target_for(i)))),
        NamedOperation("batchScrape", n // 5, _threaded(lambda i: client.batch_scrape(batch))),
        NamedOperation(
            "crawl", n // 10, _threaded(lambda i: client.start_crawl(first, config.crawl_limit))
        ),
        NamedOperation("map", n // 2, _threaded(lambda i: client.map_url(first))),
        NamedOperation("mixedWorkload", n, _threaded(mixed)),
    ]
