"""Unit tests for ExecutionWindow and the execution deadline."""

import os
import time
from typing import Any, List

import pytest

from web_perftest.capabilities import Capabilities
from web_perftest.exceptions import ExecutionTimeout
from web_perftest.metrics import (
    NEST_CALL_GRAPH,
    NEST_COUNTER,
    NEST_TIMER,
    CallGraphCollector,
    MetricCollector,
    WallTimeCollector,
)
from web_perftest.models import MetricKind
from web_perftest.window import ExecutionWindow, deadline, deadline_supported, timed


class RecordingCollector(MetricCollector):
    """Collector that logs its lifecycle calls."""

    def __init__(
        self,
        kind: MetricKind,
        nesting: int,
        log: List[str],
        fail_on: str = "",
    ) -> None:
        super().__init__(Capabilities(gc_counters=True, allocation_counters=True))
        self.kind = kind
        self.nesting = nesting
        self.log = log
        self.fail_on = fail_on

    def _arm(self) -> Any:
        self.log.append(f"arm {self.kind.value}")
        if self.fail_on == "arm":
            raise RuntimeError("arm failed")
        return self.kind

    def _measure(self, token: Any) -> float:
        self.log.append(f"measure {self.kind.value}")
        if self.fail_on == "measure":
            raise RuntimeError("measure failed")
        return 1.0

    def _release(self, token: Any) -> None:
        self.log.append(f"release {self.kind.value}")


class TestExecutionWindow:
    """Tests for ExecutionWindow."""

    def test_arms_in_nesting_order_and_measures_in_reverse(self) -> None:
        """Test that counters wrap timers, which wrap the call graph."""
        log: List[str] = []
        window = ExecutionWindow(
            [
                RecordingCollector(MetricKind.PROCESS_TIME, NEST_CALL_GRAPH, log),
                RecordingCollector(MetricKind.WALL_TIME, NEST_TIMER, log),
                RecordingCollector(MetricKind.MEMORY, NEST_COUNTER, log),
            ]
        )
        window.run(lambda: log.append("body"))

        assert log[:4] == [
            "arm memory",
            "arm wall_time",
            "arm process_time",
            "body",
        ]
        assert log[4:7] == [
            "measure process_time",
            "measure wall_time",
            "measure memory",
        ]
        assert sorted(log[7:]) == ["release memory", "release process_time", "release wall_time"]

    def test_returns_values_by_kind(self) -> None:
        """Test that measured values are keyed by metric kind."""
        log: List[str] = []
        run = ExecutionWindow(
            [
                RecordingCollector(MetricKind.WALL_TIME, NEST_TIMER, log),
                RecordingCollector(MetricKind.GC_RUNS, NEST_COUNTER, log),
            ]
        ).run(lambda: None)

        assert run.values == {MetricKind.WALL_TIME: 1.0, MetricKind.GC_RUNS: 1.0}

    def test_releases_collectors_when_body_raises(self) -> None:
        """Test that every armed collector is released on failure."""
        log: List[str] = []
        window = ExecutionWindow(
            [
                RecordingCollector(MetricKind.WALL_TIME, NEST_TIMER, log),
                RecordingCollector(MetricKind.GC_TIME, NEST_COUNTER, log),
            ]
        )

        def body() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            window.run(body)

        assert "release wall_time" in log
        assert "release gc_time" in log
        assert not any(entry.startswith("measure") for entry in log)

    def test_failing_collector_does_not_affect_others(self) -> None:
        """Test that arm and measure failures only drop that metric."""
        log: List[str] = []
        run = ExecutionWindow(
            [
                RecordingCollector(MetricKind.WALL_TIME, NEST_TIMER, log),
                RecordingCollector(MetricKind.GC_RUNS, NEST_COUNTER, log, fail_on="arm"),
                RecordingCollector(MetricKind.OBJECTS, NEST_COUNTER, log, fail_on="measure"),
            ]
        ).run(lambda: None)

        assert run.values == {MetricKind.WALL_TIME: 1.0}
        assert "release objects" in log

    def test_call_graph_holds_only_the_body(self, no_capabilities) -> None:
        """Test that window and collector frames stay out of the call graph."""
        call_graph = CallGraphCollector(no_capabilities)
        window = ExecutionWindow([WallTimeCollector(no_capabilities), call_graph])

        def body() -> None:
            sorted(range(1000))

        window.run(body)

        names = {node.key.name for node in call_graph.last_report}
        files = {node.key.filename for node in call_graph.last_report}
        assert "body" in names
        assert not names & {"run", "invoke", "deadline", "__enter__", "__exit__"}
        basenames = {os.path.basename(filename) for filename in files}
        assert not basenames & {"window.py", "metrics.py", "profiler.py", "contextlib.py"}

    def test_innermost_collector_invokes_body(self) -> None:
        """Test that the body runs once, through the innermost collector."""
        log: List[str] = []

        class InvokingCollector(RecordingCollector):
            def invoke(self, token: Any, body: Any) -> Any:
                self.log.append(f"invoke {self.kind.value}")
                return body()

        ExecutionWindow(
            [
                InvokingCollector(MetricKind.PROCESS_TIME, NEST_CALL_GRAPH, log),
                InvokingCollector(MetricKind.WALL_TIME, NEST_TIMER, log),
            ]
        ).run(lambda: log.append("body"))

        assert log[2:4] == ["invoke process_time", "body"]
        assert log.count("body") == 1

    def test_unavailable_metrics_are_omitted(self, no_capabilities) -> None:
        """Test that gated collectors leave no entry, not a zero."""
        from web_perftest.metrics import create_collectors

        kinds = [MetricKind.WALL_TIME, MetricKind.MEMORY, MetricKind.GC_RUNS]
        run = ExecutionWindow(create_collectors(kinds, no_capabilities)).run(lambda: None)

        assert list(run.values) == [MetricKind.WALL_TIME]


class TestDeadline:
    """Tests for the wall-clock deadline."""

    def test_no_deadline(self) -> None:
        """Test that None disables the deadline."""
        with deadline(None):
            time.sleep(0.001)

    def test_timed_returns_elapsed(self) -> None:
        """Test that timed() measures a sleep."""
        assert timed(lambda: time.sleep(0.01)) >= 0.009

    @pytest.mark.skipif(not deadline_supported(), reason="SIGALRM deadlines unsupported")
    def test_deadline_expires(self) -> None:
        """Test that a slow body is interrupted with ExecutionTimeout."""
        window = ExecutionWindow(
            [WallTimeCollector(Capabilities.none())], timeout=0.05, label="Slow#test"
        )
        start = time.perf_counter()

        with pytest.raises(ExecutionTimeout) as exc_info:
            window.run(lambda: time.sleep(2))

        assert time.perf_counter() - start < 1.5
        assert exc_info.value.test_name == "Slow#test"

    @pytest.mark.skipif(not deadline_supported(), reason="SIGALRM deadlines unsupported")
    def test_deadline_not_reached(self) -> None:
        """Test that a fast body completes and the timer is cleared."""
        import signal

        with deadline(1.0):
            pass

        assert signal.getitimer(signal.ITIMER_REAL) == (0.0, 0.0)
