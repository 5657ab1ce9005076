"""Logging setup for scalebench.

Reports and tables go to stdout through click; log records go to stderr
so ``scalebench show report.json > out.txt`` stays clean.  The optional
log file always records DEBUG output, including per-run throughput and
discarded baseline samples, tagged with the worker thread that produced
them.

Warnings from urllib3 (connection pool exhaustion, retries) are routed
to the same handlers.  Under load they explain throughput dips that the
report alone does not.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "scalebench"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(threadName)s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(message)s"

# Third-party loggers whose warnings belong in a benchmark log.
_CAPTURED_LOGGERS = ("urllib3",)


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the root scalebench logger.

    Args:
        verbose: Console at DEBUG (per-run throughput lines).
        quiet: Console at WARNING.  Ignored if *verbose* is True.
        log_file: DEBUG log destination; parent directories are created.

    Returns:
        The configured ``scalebench`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    # The CLI can be invoked repeatedly in one process.
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    if verbose:
        console.setLevel(logging.DEBUG)
    elif quiet:
        console.setLevel(logging.WARNING)
    else:
        console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    handlers: list[logging.Handler] = [console]

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(fh)

    for handler in handlers:
        logger.addHandler(handler)

    for name in _CAPTURED_LOGGERS:
        captured = logging.getLogger(name)
        captured.handlers.clear()
        captured.setLevel(logging.WARNING)
        captured.propagate = False
        for handler in handlers:
            captured.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under the scalebench namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
