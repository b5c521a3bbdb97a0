"""Configuration management for web-perftest.

This module provides the HarnessConfig dataclass for configuring
the performance test harness.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError

METRIC_NAMES = ("wall_time", "process_time", "memory", "objects", "gc_runs", "gc_time")
PROFILE_FORMATS = ("flat", "graph", "graph_html", "tree")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_BENCHMARK_METRICS = ["wall_time", "memory", "objects", "gc_runs", "gc_time"]
DEFAULT_PROFILE_METRICS = ["process_time", "memory", "objects"]
DEFAULT_PROFILE_FORMATS = ["flat", "graph", "tree"]


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise ConfigurationError(
        f"Invalid {name} value: {value}. Must be true/false, 1/0, yes/no or on/off"
    )


@dataclass
class HarnessConfig:
    """Global harness configuration.

    Controls run counts, metric sets, report output and the test
    environment applied before any test case executes.

    Attributes:
        output_path: Directory for history CSV files and profile reports.
            Default: "tmp/performance"
        log_path: Directory for the harness log file. Default: "/tmp"
        log_level: Logging verbosity floor applied to the root logger
            before tests run. Default: "INFO"
        benchmark_runs: Number of measured runs in benchmark mode. Default: 4
        profile_runs: Number of measured runs in profile mode. Default: 1
        benchmark_metrics: Metric names collected in benchmark mode.
        profile_metrics: Metric names collected in profile mode. Must
            include "process_time", which carries the call graph.
        profile_formats: Report formats written by the profile sink.
        min_percent: Methods below this share of total time (in percent)
            are hidden from flat and graph reports. Default: 0.01
        instrumentation: Master switch for capability-gated metrics
            (memory, objects, gc_runs, gc_time). Default: True
        trace_memory: Start tracemalloc before the capability detection so
            memory metrics become available. Default: False
        timeout_seconds: Optional wall-clock deadline per execution.
        collect_garbage: Run a full GC collection before each execution,
            outside the timed window. Default: True
        perform_caching: Ask web framework adapters to enable
            production-like caching. Default: True
        eager_load: Import preload_modules before tests run. Default: True
        preload_modules: Application modules imported eagerly.
        include_tests: Glob patterns selecting test names to run.
        exclude_tests: Glob patterns of test names to skip. Ignored if
            include_tests is non-empty.
        app_version: Application version recorded in history rows. Falls
            back to the short git revision of the working directory.
    """

    output_path: str = "tmp/performance"
    log_path: str = "/tmp"
    log_level: str = "INFO"
    benchmark_runs: int = 4
    profile_runs: int = 1
    benchmark_metrics: List[str] = field(
        default_factory=lambda: list(DEFAULT_BENCHMARK_METRICS)
    )
    profile_metrics: List[str] = field(
        default_factory=lambda: list(DEFAULT_PROFILE_METRICS)
    )
    profile_formats: List[str] = field(
        default_factory=lambda: list(DEFAULT_PROFILE_FORMATS)
    )
    min_percent: float = 0.01
    instrumentation: bool = True
    trace_memory: bool = False
    timeout_seconds: Optional[float] = None
    collect_garbage: bool = True
    perform_caching: bool = True
    eager_load: bool = True
    preload_modules: List[str] = field(default_factory=list)
    include_tests: List[str] = field(default_factory=list)
    exclude_tests: List[str] = field(default_factory=list)
    app_version: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.log_level = str(self.log_level).upper()
        self._validate()

    def _validate(self) -> None:
        """Validate all configuration values.

        Raises:
            ConfigurationError: If any configuration value is invalid.
        """
        if self.benchmark_runs <= 0:
            raise ConfigurationError(
                f"benchmark_runs must be positive, got {self.benchmark_runs}"
            )

        if self.profile_runs <= 0:
            raise ConfigurationError(
                f"profile_runs must be positive, got {self.profile_runs}"
            )

        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {LOG_LEVELS}, got {self.log_level}"
            )

        for name in list(self.benchmark_metrics) + list(self.profile_metrics):
            if name not in METRIC_NAMES:
                raise ConfigurationError(
                    f"Unknown metric '{name}'. Available metrics: {METRIC_NAMES}"
                )

        if not self.benchmark_metrics:
            raise ConfigurationError("benchmark_metrics must not be empty")

        if "process_time" not in self.profile_metrics:
            raise ConfigurationError(
                "profile_metrics must include 'process_time', "
                f"got {self.profile_metrics}"
            )

        for name in self.profile_formats:
            if name not in PROFILE_FORMATS:
                raise ConfigurationError(
                    f"Unknown profile format '{name}'. "
                    f"Available formats: {PROFILE_FORMATS}"
                )

        if not 0 <= self.min_percent < 100:
            raise ConfigurationError(
                f"min_percent must be between 0 and 100, got {self.min_percent}"
            )

        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigurationError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        """Create configuration from environment variables.

        Environment variable mappings:
            PERF_OUTPUT_PATH -> output_path
            PERF_LOG_PATH -> log_path
            PERF_LOG_LEVEL -> log_level
            PERF_BENCHMARK_RUNS -> benchmark_runs
            PERF_PROFILE_RUNS -> profile_runs
            PERF_BENCHMARK_METRICS -> benchmark_metrics (comma-separated)
            PERF_PROFILE_METRICS -> profile_metrics (comma-separated)
            PERF_PROFILE_FORMATS -> profile_formats (comma-separated)
            PERF_MIN_PERCENT -> min_percent
            PERF_INSTRUMENTATION -> instrumentation (true/false)
            PERF_TRACE_MEMORY -> trace_memory (true/false)
            PERF_TIMEOUT -> timeout_seconds
            PERF_COLLECT_GARBAGE -> collect_garbage (true/false)
            PERF_PERFORM_CACHING -> perform_caching (true/false)
            PERF_EAGER_LOAD -> eager_load (true/false)
            PERF_PRELOAD_MODULES -> preload_modules (comma-separated)
            PERF_INCLUDE_TESTS -> include_tests (comma-separated)
            PERF_EXCLUDE_TESTS -> exclude_tests (comma-separated)
            PERF_APP_VERSION -> app_version

        Returns:
            HarnessConfig instance with values from environment.

        Raises:
            ConfigurationError: If environment values are invalid.
        """
        kwargs: Dict[str, Any] = {}

        if output_path := os.environ.get("PERF_OUTPUT_PATH"):
            kwargs["output_path"] = output_path

        if log_path := os.environ.get("PERF_LOG_PATH"):
            kwargs["log_path"] = log_path

        if log_level := os.environ.get("PERF_LOG_LEVEL"):
            kwargs["log_level"] = log_level

        if benchmark_runs := os.environ.get("PERF_BENCHMARK_RUNS"):
            try:
                kwargs["benchmark_runs"] = int(benchmark_runs)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid PERF_BENCHMARK_RUNS value: {benchmark_runs}"
                ) from e

        if profile_runs := os.environ.get("PERF_PROFILE_RUNS"):
            try:
                kwargs["profile_runs"] = int(profile_runs)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid PERF_PROFILE_RUNS value: {profile_runs}"
                ) from e

        if benchmark_metrics := os.environ.get("PERF_BENCHMARK_METRICS"):
            kwargs["benchmark_metrics"] = _split_list(benchmark_metrics)

        if profile_metrics := os.environ.get("PERF_PROFILE_METRICS"):
            kwargs["profile_metrics"] = _split_list(profile_metrics)

        if profile_formats := os.environ.get("PERF_PROFILE_FORMATS"):
            kwargs["profile_formats"] = _split_list(profile_formats)

        if min_percent := os.environ.get("PERF_MIN_PERCENT"):
            try:
                kwargs["min_percent"] = float(min_percent)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid PERF_MIN_PERCENT value: {min_percent}"
                ) from e

        if timeout := os.environ.get("PERF_TIMEOUT"):
            try:
                kwargs["timeout_seconds"] = float(timeout)
            except ValueError as e:
                raise ConfigurationError(f"Invalid PERF_TIMEOUT value: {timeout}") from e

        for env_name, field_name in (
            ("PERF_INSTRUMENTATION", "instrumentation"),
            ("PERF_TRACE_MEMORY", "trace_memory"),
            ("PERF_COLLECT_GARBAGE", "collect_garbage"),
            ("PERF_PERFORM_CACHING", "perform_caching"),
            ("PERF_EAGER_LOAD", "eager_load"),
        ):
            if value := os.environ.get(env_name):
                kwargs[field_name] = _parse_bool(env_name, value)

        if preload := os.environ.get("PERF_PRELOAD_MODULES"):
            kwargs["preload_modules"] = _split_list(preload)

        if include := os.environ.get("PERF_INCLUDE_TESTS"):
            kwargs["include_tests"] = _split_list(include)

        if exclude := os.environ.get("PERF_EXCLUDE_TESTS"):
            kwargs["exclude_tests"] = _split_list(exclude)

        if app_version := os.environ.get("PERF_APP_VERSION"):
            kwargs["app_version"] = app_version

        return cls(**kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HarnessConfig":
        """Create configuration from a dictionary.

        Unknown keys are ignored.

        Args:
            data: Configuration dictionary with field names as keys.

        Returns:
            HarnessConfig instance with values from dictionary.

        Raises:
            ConfigurationError: If dictionary values are invalid.
        """
        valid_fields = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in valid_fields}

        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary with copied list values."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = list(value) if isinstance(value, list) else value
        return result

    def merge(self, **kwargs: Any) -> "HarnessConfig":
        """Create a new config with some values overridden.

        Args:
            **kwargs: Configuration values to override.

        Returns:
            New HarnessConfig instance with merged values.
        """
        current = self.to_dict()
        current.update(kwargs)
        try:
            return HarnessConfig(**current)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration override: {e}") from e


# Default configuration instance
_default_config: Optional[HarnessConfig] = None


def get_default_config() -> HarnessConfig:
    """Get the default global configuration.

    Returns:
        The default HarnessConfig instance.
    """
    global _default_config
    if _default_config is None:
        _default_config = HarnessConfig()
    return _default_config


def set_default_config(config: HarnessConfig) -> None:
    """Set the default global configuration.

    Args:
        config: The HarnessConfig to use as default.
    """
    global _default_config
    _default_config = config
