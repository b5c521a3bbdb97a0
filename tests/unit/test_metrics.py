"""Unit tests for metric collectors."""

import gc
import time

import pytest

from web_perftest.capabilities import Capabilities
from web_perftest.exceptions import ConfigurationError
from web_perftest.metrics import (
    UNAVAILABLE,
    CallGraphCollector,
    GcRunsCollector,
    GcTimeCollector,
    MemoryCollector,
    ObjectCountCollector,
    ProcessTimeCollector,
    WallTimeCollector,
    available_metrics,
    create_collectors,
    parse_metrics,
)
from web_perftest.models import MetricKind


def _collect(collector, work=lambda: None):
    token = collector.arm()
    try:
        collector.invoke(token, work)
        return collector.measure(token)
    finally:
        collector.release(token)


class TestTimers:
    """Tests for the always-available timer collectors."""

    def test_wall_time(self, no_capabilities) -> None:
        """Test that wall time covers a sleep."""
        value = _collect(WallTimeCollector(no_capabilities), lambda: time.sleep(0.01))
        assert value >= 0.009

    def test_process_time(self, no_capabilities) -> None:
        """Test that process time is measured without capabilities."""
        value = _collect(ProcessTimeCollector(no_capabilities), lambda: sum(range(100000)))
        assert value is not UNAVAILABLE
        assert value >= 0.0


class TestGatedCollectors:
    """Tests for capability-gated collectors."""

    @pytest.mark.parametrize(
        "collector_cls",
        [MemoryCollector, ObjectCountCollector, GcRunsCollector, GcTimeCollector],
    )
    def test_unavailable_without_capability(self, collector_cls, no_capabilities) -> None:
        """Test that gated collectors report UNAVAILABLE, never zero."""
        collector = collector_cls(no_capabilities)

        assert collector.available is False
        assert collector.arm() is None
        assert collector.measure(None) is UNAVAILABLE
        assert not UNAVAILABLE

    def test_memory_reports_peak(self, full_capabilities) -> None:
        """Test that a large temporary allocation shows up as peak memory."""
        value = _collect(MemoryCollector(full_capabilities), lambda: bytearray(1_000_000))
        assert value >= 500_000

    def test_object_count(self, full_capabilities) -> None:
        """Test that retained objects increase the block count."""
        kept = []
        value = _collect(
            ObjectCountCollector(full_capabilities),
            lambda: kept.extend(object() for _ in range(1000)),
        )
        assert value > 0
        assert len(kept) == 1000

    def test_gc_runs_and_time(self, full_capabilities) -> None:
        """Test that an explicit collection is counted and timed."""
        runs = GcRunsCollector(full_capabilities)
        seconds = GcTimeCollector(full_capabilities)
        runs_token = runs.arm()
        seconds_token = seconds.arm()
        try:
            gc.collect()
            assert runs.measure(runs_token) >= 1
            assert seconds.measure(seconds_token) > 0.0
        finally:
            runs.release(runs_token)
            seconds.release(seconds_token)

        assert runs_token not in gc.callbacks
        assert seconds_token not in gc.callbacks


class TestCallGraphCollector:
    """Tests for the cProfile-backed collector."""

    def test_value_equals_report_total(self, no_capabilities) -> None:
        """Test that the measured value is the report's total self time."""
        collector = CallGraphCollector(no_capabilities)
        value = _collect(collector, lambda: sorted(range(100000), key=lambda x: -x))

        assert collector.kind is MetricKind.PROCESS_TIME
        assert collector.last_report is not None
        assert value == pytest.approx(collector.last_report.total_time)

    def test_profiler_runs_only_while_invoked(self, no_capabilities) -> None:
        """Test that the profiler is idle outside the invoked body."""
        collector = CallGraphCollector(no_capabilities)
        token = collector.arm()
        assert token.is_running is False

        seen = []
        collector.invoke(token, lambda: seen.append(token.is_running))

        assert seen == [True]
        assert token.is_running is False
        collector.release(token)

    def test_report_holds_only_the_invoked_body(self, no_capabilities) -> None:
        """Test that frames outside the body stay out of the report."""
        collector = CallGraphCollector(no_capabilities)
        _collect(collector, lambda: sorted(range(1000)))

        names = {node.key.name for node in collector.last_report}
        assert "<lambda>" in names
        assert "_collect" not in names
        assert "invoke" not in names


class TestFactories:
    """Tests for metric parsing and collector creation."""

    def test_parse_metrics_keeps_order(self) -> None:
        """Test that names are converted in order without duplicates."""
        kinds = parse_metrics(["gc_runs", "wall_time", "gc_runs"])
        assert kinds == [MetricKind.GC_RUNS, MetricKind.WALL_TIME]

    def test_parse_unknown_metric(self) -> None:
        """Test that an unknown name raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            parse_metrics(["heat"])

    def test_create_collectors_with_override(self) -> None:
        """Test that overrides replace the default collector."""
        capabilities = Capabilities.none()
        call_graph = CallGraphCollector(capabilities)
        collectors = create_collectors(
            [MetricKind.PROCESS_TIME, MetricKind.MEMORY],
            capabilities,
            overrides={MetricKind.PROCESS_TIME: call_graph},
        )

        assert collectors[0] is call_graph
        assert isinstance(collectors[1], MemoryCollector)

    def test_available_metrics(self) -> None:
        """Test filtering kinds by capability."""
        kinds = parse_metrics(["wall_time", "memory", "objects", "gc_runs", "gc_time"])

        assert available_metrics(kinds, Capabilities.none()) == [MetricKind.WALL_TIME]
        assert available_metrics(kinds, Capabilities(gc_counters=True)) == [
            MetricKind.WALL_TIME,
            MetricKind.GC_RUNS,
            MetricKind.GC_TIME,
        ]
