"""Test environment and version information.

This module applies the environment settings that must be in place
before any test case executes (logging floor, caching flag, eager
loading) and collects the version information recorded with every
history row.
"""

import importlib
import logging
import os
import platform
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from . import __version__
from .config import HarnessConfig
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def git_revision(cwd: Optional[str] = None) -> Optional[str]:
    """Short git revision of the working directory, if it is a checkout."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def framework_version() -> str:
    """Name and version of the web frameworks in use, e.g. "flask-3.0.3".

    Only frameworks that are already imported count as in use.
    """
    from . import frameworks  # noqa: F401
    from .core import FrameworkRegistry

    versions = []
    for name in FrameworkRegistry.list_frameworks():
        adapter = FrameworkRegistry.get_instance(name)
        if adapter.distribution not in sys.modules:
            continue
        version = adapter.get_framework_version()
        if version:
            versions.append(f"{name}-{version}")
    return " ".join(versions)


def runtime_version() -> str:
    """Interpreter name and version, e.g. "cpython-3.12.1"."""
    return f"{platform.python_implementation().lower()}-{platform.python_version()}"


def platform_name() -> str:
    """Machine and OS identifier, e.g. "x86_64-linux"."""
    machine = platform.machine() or "unknown"
    return f"{machine.lower()}-{sys.platform}"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with second precision."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class EnvironmentInfo:
    """Version information stored with each history row.

    Attributes:
        app: Application version or git revision.
        framework: Web framework name and version.
        runtime: Interpreter name and version.
        platform: Machine and OS identifier.
    """

    app: str = ""
    framework: str = ""
    runtime: str = ""
    platform: str = ""

    @classmethod
    def collect(cls, config: HarnessConfig) -> "EnvironmentInfo":
        """Collect version information for the current process."""
        app = config.app_version or git_revision() or ""
        return cls(
            app=app,
            framework=framework_version(),
            runtime=runtime_version(),
            platform=platform_name(),
        )

    def describe(self) -> str:
        parts = [
            f"web-perftest {__version__}",
            self.runtime,
            self.platform,
        ]
        if self.framework:
            parts.append(self.framework)
        if self.app:
            parts.append(f"app {self.app}")
        return ", ".join(parts)


def apply_test_environment(config: HarnessConfig, apps: Iterable[Any] = ()) -> None:
    """Apply environment settings before any test case executes.

    - Raises the root logger level to the configured verbosity floor.
    - Exports the caching flag as PERF_PERFORM_CACHING and hands it to
      the framework adapter of every application.
    - Imports preload_modules when eager loading is enabled.

    Args:
        config: The harness configuration.
        apps: Web applications driven by integration tests.

    Raises:
        ConfigurationError: If a preload module cannot be imported.
    """
    level = logging.getLevelName(config.log_level)
    root = logging.getLogger()
    if root.level == logging.NOTSET or root.level < level:
        root.setLevel(level)

    os.environ["PERF_PERFORM_CACHING"] = "true" if config.perform_caching else "false"

    if config.eager_load:
        for module_name in config.preload_modules:
            try:
                importlib.import_module(module_name)
            except ImportError as e:
                raise ConfigurationError(
                    f"Failed to preload module '{module_name}': {e}", cause=e
                ) from e
            logger.debug(f"Preloaded module: {module_name}")

    if apps:
        from . import frameworks  # noqa: F401
        from .core import FrameworkRegistry

        prepared = set()
        for app in apps:
            if id(app) in prepared:
                continue
            prepared.add(id(app))
            adapter = FrameworkRegistry.auto_detect(app)
            if adapter is None:
                logger.warning(
                    f"No framework adapter for {type(app).__name__}; "
                    "environment settings not applied to it"
                )
                continue
            adapter.prepare_app(app, config)
