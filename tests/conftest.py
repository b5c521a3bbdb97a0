"""Shared fixtures for web-perftest tests."""

import os
import tracemalloc
from typing import Iterator

import pytest

from web_perftest.capabilities import Capabilities, reset_capabilities, set_capabilities
from web_perftest.config import HarnessConfig, set_default_config


@pytest.fixture(autouse=True)
def _isolate_process_state() -> Iterator[None]:
    """Undo global state changed by the harness between tests."""
    saved_environ = os.environ.copy()
    reset_capabilities()
    yield
    reset_capabilities()
    set_default_config(HarnessConfig())
    os.environ.clear()
    os.environ.update(saved_environ)


@pytest.fixture
def no_capabilities() -> Capabilities:
    """An uninstrumented runtime: only wall_time and process_time."""
    capabilities = Capabilities.none()
    set_capabilities(capabilities)
    return capabilities


@pytest.fixture
def full_capabilities() -> Iterator[Capabilities]:
    """A fully instrumented runtime with tracemalloc tracing."""
    started = not tracemalloc.is_tracing()
    if started:
        tracemalloc.start()
    capabilities = Capabilities(gc_counters=True, allocation_counters=True)
    set_capabilities(capabilities)
    yield capabilities
    if started:
        tracemalloc.stop()


@pytest.fixture
def config(tmp_path) -> HarnessConfig:
    """Configuration writing into a temporary directory."""
    return HarnessConfig(
        output_path=str(tmp_path / "performance"),
        log_path=str(tmp_path / "logs"),
        app_version="abc1234",
    )
