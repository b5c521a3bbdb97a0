"""Unit tests for the test environment and version information."""

import logging
import os
import platform
import sys
from datetime import datetime, timedelta, timezone

import pytest

from web_perftest import __version__
from web_perftest.config import HarnessConfig
from web_perftest.environment import (
    EnvironmentInfo,
    apply_test_environment,
    platform_name,
    runtime_version,
    utc_timestamp,
)
from web_perftest.exceptions import ConfigurationError


class TestVersionInfo:
    """Tests for version helpers."""

    def test_utc_timestamp(self) -> None:
        """Test the ISO-8601 UTC format."""
        now = datetime(2026, 10, 19, 10, 12, 44, tzinfo=timezone(timedelta(hours=2)))
        assert utc_timestamp(now) == "2026-10-19T08:12:44Z"

    def test_runtime_version(self) -> None:
        """Test the interpreter name and version."""
        expected = f"{platform.python_implementation().lower()}-{platform.python_version()}"
        assert runtime_version() == expected

    def test_platform_name(self) -> None:
        """Test that the platform includes the OS."""
        assert platform_name().endswith(sys.platform)

    def test_collect_uses_configured_app_version(self) -> None:
        """Test that app_version takes precedence over git."""
        info = EnvironmentInfo.collect(HarnessConfig(app_version="2.4.1"))
        assert info.app == "2.4.1"
        assert info.runtime == runtime_version()

    def test_describe(self) -> None:
        """Test the one-line description."""
        info = EnvironmentInfo(app="abc", runtime="cpython-3.12.1", platform="x86_64-linux")
        assert info.describe() == (
            f"web-perftest {__version__}, cpython-3.12.1, x86_64-linux, app abc"
        )


class TestApplyTestEnvironment:
    """Tests for apply_test_environment."""

    def test_exports_caching_flag(self) -> None:
        """Test that the caching flag is exported to the environment."""
        apply_test_environment(HarnessConfig(perform_caching=False))
        assert os.environ["PERF_PERFORM_CACHING"] == "false"

    def test_raises_log_level_floor(self) -> None:
        """Test that the root logger is raised to the configured level."""
        root = logging.getLogger()
        previous = root.level
        root.setLevel(logging.DEBUG)
        try:
            apply_test_environment(HarnessConfig(log_level="WARNING"))
            assert root.level == logging.WARNING
        finally:
            root.setLevel(previous)

    def test_preloads_modules(self) -> None:
        """Test that preload modules are imported."""
        apply_test_environment(HarnessConfig(preload_modules=["json.decoder"]))

    def test_preload_failure(self) -> None:
        """Test that a missing preload module raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            apply_test_environment(HarnessConfig(preload_modules=["no_such_module_xyz"]))

    def test_eager_load_disabled(self) -> None:
        """Test that preloading is skipped when eager loading is off."""
        apply_test_environment(
            HarnessConfig(eager_load=False, preload_modules=["no_such_module_xyz"])
        )

    def test_unknown_app_is_skipped(self, caplog) -> None:
        """Test that apps without an adapter only log a warning."""
        apply_test_environment(HarnessConfig(), apps=[object()])
        assert "No framework adapter" in caplog.text
