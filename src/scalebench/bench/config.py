"""Benchmark configuration loading and validation.

Handles:
- Reading configuration from environment variables.
- Loading benchmark profiles from YAML files.
- Merging CLI options with profile and environment defaults.
- Validating the final configuration before execution.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

log = logging.getLogger("scalebench")

# Target pages as the API (inside the container network) sees them.
DEFAULT_TARGETS = [
    "http://benchmark-nginx/simple.html",
    "http://benchmark-nginx/article.html",
    "http://benchmark-nginx/complex.html",
]

# The same pages as reachable from the host running the baselines.
DEFAULT_BASELINE_TARGETS = [
    "http://localhost:8080/simple.html",
    "http://localhost:8080/article.html",
    "http://localhost:8080/complex.html",
]


# ---------------------------------------------------------------------------
# BenchConfig
# ---------------------------------------------------------------------------


@dataclass
class BenchConfig:
    """Resolved configuration for a benchmark experiment."""

    # Identity
    label: str = "redis"

    # Target API
    api_url: str = "http://localhost:3002"
    api_key: str = "fc-test"
    request_timeout: float = 120.0

    # Scale
    iterations: int = 300  # Scrape iterations; other operations derive from it
    batch_size: int = 10
    crawl_limit: int = 20
    concurrency: int = 10
    runs: int = 5  # Runs per operation within one suite
    suite_runs: int = 3  # Repetitions of the whole suite

    # Backing store (baselines and memory sampling only)
    store_host: str = "localhost"
    store_port: int = 6379

    # Baselines
    targets: list[str] = field(default_factory=lambda: list(DEFAULT_TARGETS))
    baseline_targets: list[str] = field(default_factory=lambda: list(DEFAULT_BASELINE_TARGETS))
    store_samples: int = 100
    network_samples: int = 10
    probe_timeout: float = 5.0

    # Paths
    results_dir: Path = field(default_factory=lambda: Path("benchmark-results"))

    def snapshot(self) -> dict[str, Any]:
        """Serializable view of the configuration, without the API key."""
        data: dict[str, Any] = {}
        for f in fields(self):
            if f.name == "api_key":
                continue
            value = getattr(self, f.name)
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, list):
                value = list(value)
            data[f.name] = value
        return data


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

# env var -> (BenchConfig field, converter)
_ENV_FIELDS: dict[str, tuple[str, Any]] = {
    "FIRECRAWL_API_URL": ("api_url", str),
    "FIRECRAWL_API_KEY": ("api_key", str),
    "SCRAPE_ITERATIONS": ("iterations", int),
    "BATCH_SIZE": ("batch_size", int),
    "CRAWL_LIMIT": ("crawl_limit", int),
    "CONCURRENCY": ("concurrency", int),
    "RUNS": ("runs", int),
    "SUITE_RUNS": ("suite_runs", int),
    "REDIS_HOST": ("store_host", str),
    "REDIS_PORT": ("store_port", int),
    "LABEL": ("label", str),
    "RESULTS_DIR": ("results_dir", Path),
}


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Extract BenchConfig values from environment variables.

    Only variables that are set appear in the result.

    Raises:
        ValueError: If an integer variable does not parse.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for var, (name, convert) in _ENV_FIELDS.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            values[name] = convert(raw)
        except ValueError as exc:
            raise ValueError(f"{var} must be an integer (got {raw!r})") from exc
    return values


def config_from_env(environ: Mapping[str, str] | None = None) -> BenchConfig:
    """Build a BenchConfig from defaults plus environment variables."""
    values = env_overrides(environ)
    if values:
        log.debug("Configuration from environment: %s", ", ".join(sorted(values)))
    return BenchConfig(**values)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: BenchConfig) -> list[ValidationError]:
    """Validate a benchmark configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    for name in ("iterations", "runs", "suite_runs", "concurrency", "batch_size", "crawl_limit"):
        value = getattr(config, name)
        if value <= 0:
            errors.append(
                ValidationError(
                    field=name,
                    message=f"{name} must be a positive integer (got {value}).",
                )
            )

    if config.store_samples < 0 or config.network_samples < 0:
        errors.append(
            ValidationError(
                field="store_samples",
                message="Baseline sample counts cannot be negative.",
            )
        )

    if not config.label or not config.label.strip():
        errors.append(
            ValidationError(
                field="label",
                message="Label must be non-empty; it names the results file.",
            )
        )

    if not config.targets:
        errors.append(
            ValidationError(
                field="targets",
                message="At least one target URL is required.",
            )
        )

    if 0 < config.iterations < 10:
        errors.append(
            ValidationError(
                field="iterations",
                message=(
                    f"With {config.iterations} iterations the derived crawl "
                    f"operation runs 0 times per run."
                ),
                severity="warning",
            )
        )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a benchmark profile from a YAML file.

    Profile format::

        label: valkey
        api_url: http://localhost:3002
        iterations: 300
        concurrency: 10
        runs: 5
        suite_runs: 3
        store_host: localhost
        store_port: 6380
        targets:
          - http://benchmark-nginx/simple.html

    Keys match BenchConfig field names.

    Returns:
        The parsed YAML as a dict.
    """
    try:
        import yaml
    except ImportError as exc:
        raise ImportError(
            "PyYAML is required for loading benchmark profiles. "
            "Install it with: pip install pyyaml"
        ) from exc

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())

    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def _integer(value: Any) -> int:
    # YAML gives bools and floats for "yes" and "2.5"; neither is a count.
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(value)
    return int(value)


def _url_list(value: Any) -> list[str]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(value)
    return [str(v) for v in value]


# BenchConfig annotation -> converter for profile values.
_PROFILE_CONVERTERS: dict[str, Any] = {
    "int": _integer,
    "float": float,
    "str": str,
    "Path": Path,
    "list[str]": _url_list,
}


def _coerce_profile_value(name: str, value: Any) -> Any:
    """Convert one profile value to its BenchConfig field type.

    Raises:
        ValueError: If the value cannot be converted.
    """
    type_name = {f.name: f.type for f in fields(BenchConfig)}[name]
    try:
        return _PROFILE_CONVERTERS[type_name](value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Profile setting {name} must be of type {type_name} (got {value!r})"
        ) from exc


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    base: BenchConfig | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchConfig:
    """Build a BenchConfig from a parsed YAML profile.

    Precedence, highest first: CLI overrides (``None`` values are
    ignored), the profile, then *base* (usually the environment).

    Raises:
        ValueError: If the profile names an unknown setting or a value
            of the wrong type.
    """
    known = {f.name for f in fields(BenchConfig)}
    unknown = sorted(set(profile_data) - known)
    if unknown:
        raise ValueError(f"Unknown profile settings: {', '.join(unknown)}")

    values = asdict(base) if base is not None else {}
    for key, value in profile_data.items():
        values[key] = _coerce_profile_value(key, value)
    for key, value in (cli_overrides or {}).items():
        if value is not None:
            values[key] = value

    if "results_dir" in values:
        values["results_dir"] = Path(values["results_dir"])
    return BenchConfig(**values)
