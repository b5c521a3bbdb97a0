"""Unit tests for the profiler wrappers."""

import pytest

from web_perftest.exceptions import ProfilerError
from web_perftest.profiler import CallGraphProfiler, SamplingProfiler


def fib(n: int) -> int:
    if n < 2:
        return n
    return fib(n - 1) + fib(n - 2)


class TestCallGraphProfiler:
    """Tests for CallGraphProfiler."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.profiler = CallGraphProfiler()

    def test_counts_recursive_calls(self) -> None:
        """Test total and primitive call counts of a recursive function."""
        assert self.profiler.runcall(fib, 10) == 55

        report = self.profiler.create_report()
        node = next(node for node in report if node.key.name == "fib")

        assert node.calls == 177
        assert node.primitive_calls == 1
        assert any(edge.caller == node.key and edge.callee == node.key for edge in report.edges)

    def test_recursive_edge_counts_calls(self) -> None:
        """Test that an edge carries the number of calls along it."""
        self.profiler.runcall(fib, 10)

        report = self.profiler.create_report()
        key = next(node.key for node in report if node.key.name == "fib")
        edge = next(edge for edge in report.edges if edge.caller == key and edge.callee == key)

        # Every call but the outermost comes from fib itself
        assert edge.calls == 176

    def test_excludes_profiler_bookkeeping(self) -> None:
        """Test that cProfile's own disable() call is dropped."""
        self.profiler.runcall(fib, 5)
        names = {node.key.name for node in self.profiler.create_report()}
        assert "<method 'disable' of '_lsprof.Profiler' objects>" not in names

    def test_duration_is_report_total(self) -> None:
        """Test that duration equals the summed self time."""
        self.profiler.runcall(fib, 15)
        assert self.profiler.duration == pytest.approx(self.profiler.create_report().total_time)

    def test_report_is_cached(self) -> None:
        """Test that the report is built once."""
        self.profiler.runcall(fib, 3)
        assert self.profiler.create_report() is self.profiler.create_report()

    def test_start_twice(self) -> None:
        """Test that starting a running profiler raises ProfilerError."""
        self.profiler.start()
        try:
            with pytest.raises(ProfilerError):
                self.profiler.start()
        finally:
            self.profiler.stop()

    def test_report_before_completion(self) -> None:
        """Test that a report needs a completed session."""
        with pytest.raises(ProfilerError):
            self.profiler.create_report()

    def test_stop_without_start(self) -> None:
        """Test that stopping an idle profiler raises ProfilerError."""
        with pytest.raises(ProfilerError):
            self.profiler.stop()


class TestSamplingProfiler:
    """Tests for the pyinstrument wrapper."""

    def test_runcall_and_html_report(self) -> None:
        """Test sampling one call and rendering the HTML report."""
        profiler = SamplingProfiler()

        assert profiler.runcall(fib, 18) == 2584
        assert not profiler.is_running
        assert profiler.duration >= 0.0
        assert "<html" in profiler.get_html_report().lower()

    def test_start_twice(self) -> None:
        """Test that starting a running profiler raises ProfilerError."""
        profiler = SamplingProfiler()
        profiler.start()
        try:
            with pytest.raises(ProfilerError):
                profiler.start()
        finally:
            profiler.stop()

    def test_stop_without_start(self) -> None:
        """Test that stopping an idle profiler raises ProfilerError."""
        with pytest.raises(ProfilerError):
            SamplingProfiler().stop()

    def test_report_before_run(self) -> None:
        """Test that reports need a profiling session."""
        with pytest.raises(ProfilerError):
            SamplingProfiler().get_html_report()

    def test_duration_before_stop(self) -> None:
        """Test that duration needs a stopped session."""
        with pytest.raises(ProfilerError):
            SamplingProfiler().duration
