"""Web Perftest - A performance test harness for Python web applications.

This package measures application code repeatedly under controlled
conditions, prints a per-test summary, appends benchmark values to CSV
history files and writes call-graph reports in profile mode. Flask and
FastAPI applications are driven through their test clients.

Quick Start:
    from web_perftest import PerformanceTest

    class CatalogTest(PerformanceTest):
        def setup(self):
            self.products = load_products()

        def test_search(self):
            search(self.products, "lamp")

    # perftest run perf/catalog_test.py

Integration Tests (Flask or FastAPI):
    from web_perftest import IntegrationPerformanceTest
    from myapp import app

    class BrowsingTest(IntegrationPerformanceTest):
        app = app

        def test_homepage(self):
            self.get("/")

Programmatic Use:
    from web_perftest import Harness, HarnessConfig

    config = HarnessConfig(benchmark_runs=10, output_path="tmp/perf")
    result = Harness(config, mode="profile").run_targets(["perf.browsing"])
"""

__version__ = "0.1.0"

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import HarnessConfig, get_default_config, set_default_config
from .exceptions import (
    ConfigurationError,
    ExecutionError,
    ExecutionTimeout,
    ProfilerError,
    ReportError,
    SetupError,
    WebPerfTestError,
)
from .harness import Harness, HarnessResult
from .models import MetricKind, ProfileReport, ResultBundle, TestCase, TestOutcome, TestStatus
from .testing import IntegrationPerformanceTest, PerformanceTest, performance_test

logger = logging.getLogger(__name__)

LOG_FILE_NAME = "perftest.log"

# Track if file logging has been set up
_file_handler_initialized = False


def setup_file_logging(log_path: str, log_level: int = logging.INFO) -> None:
    """Set up file logging for the web_perftest package.

    Creates a rotating log file in the specified directory. Only the
    first call has an effect.

    Args:
        log_path: Directory path for log files.
        log_level: Logging level (default: INFO).
    """
    global _file_handler_initialized

    if _file_handler_initialized:
        return

    try:
        log_dir = Path(log_path)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / LOG_FILE_NAME

        # 10MB max, keep 5 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)

        package_logger = logging.getLogger("web_perftest")
        package_logger.addHandler(file_handler)

        if package_logger.level == logging.NOTSET or package_logger.level > log_level:
            package_logger.setLevel(log_level)

        _file_handler_initialized = True
        logger.info(f"File logging initialized: {log_file}")

    except OSError as e:
        logger.warning(f"Failed to set up file logging: {e}")


def get_config() -> HarnessConfig:
    """Get the global harness configuration."""
    return get_default_config()


def set_config(config: Optional[HarnessConfig]) -> None:
    """Set the global harness configuration. None restores the defaults."""
    set_default_config(config or HarnessConfig())


__all__ = [
    # Main API
    "Harness",
    "HarnessResult",
    "HarnessConfig",
    "PerformanceTest",
    "IntegrationPerformanceTest",
    "performance_test",
    "setup_file_logging",
    "get_config",
    "set_config",
    # Models
    "MetricKind",
    "ProfileReport",
    "ResultBundle",
    "TestCase",
    "TestOutcome",
    "TestStatus",
    # Exceptions
    "WebPerfTestError",
    "ConfigurationError",
    "SetupError",
    "ExecutionError",
    "ExecutionTimeout",
    "ProfilerError",
    "ReportError",
    # Version
    "__version__",
]
