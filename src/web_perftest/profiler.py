"""Profiler wrappers for cProfile and pyinstrument.

This module provides two profilers with the same start/stop interface:

    - CallGraphProfiler: deterministic cProfile instrumentation measured
      with the process-time clock. Produces a ProfileReport with exact
      call counts and caller/callee edges.
    - SamplingProfiler: a wrapper around pyinstrument's Profiler for
      sampled call trees and its interactive HTML report.
"""

import cProfile
import logging
import pstats
import time
from typing import Any, Callable, Optional, Tuple

from pyinstrument import Profiler as PyInstrumentProfiler

from .exceptions import ProfilerError
from .models import MethodKey, ProfileEdge, ProfileNode, ProfileReport

logger = logging.getLogger(__name__)

# Entry cProfile records for its own disable() call
_PROFILER_DISABLE = "<method 'disable' of '_lsprof.Profiler' objects>"


def _method_key(func: Tuple[str, int, str]) -> MethodKey:
    filename, lineno, name = func
    return MethodKey(filename=filename, lineno=lineno, name=name)


def _is_profiler_frame(func: Tuple[str, int, str]) -> bool:
    return func[2] == _PROFILER_DISABLE


def report_from_stats(stats: pstats.Stats, measure: str = "process_time") -> ProfileReport:
    """Convert pstats data into a ProfileReport.

    Args:
        stats: Statistics loaded from a cProfile run.
        measure: Name of the clock the profile was taken with.

    Returns:
        The call graph with profiler bookkeeping frames removed.
    """
    report = ProfileReport(measure=measure)
    raw = stats.stats  # type: ignore[attr-defined]

    for func, (cc, nc, tt, ct, callers) in raw.items():
        if _is_profiler_frame(func):
            continue
        key = _method_key(func)
        report.nodes[key] = ProfileNode(
            key=key,
            calls=nc,
            primitive_calls=cc,
            self_time=tt,
            total_time=ct,
        )
        for caller, edge_stats in callers.items():
            if _is_profiler_frame(caller):
                continue
            # Caller entries are (calls, primitive calls, self time, total time)
            if isinstance(edge_stats, tuple):
                edge_calls, _, edge_tt, edge_ct = edge_stats
            else:
                edge_calls, edge_tt, edge_ct = edge_stats, 0.0, 0.0
            report.edges.append(
                ProfileEdge(
                    caller=_method_key(caller),
                    callee=key,
                    calls=edge_calls,
                    self_time=edge_tt,
                    total_time=edge_ct,
                )
            )

    return report


class CallGraphProfiler:
    """Wrapper around cProfile.Profile.

    Measures with ``time.process_time`` so the summed self time of the
    resulting report is the CPU time of the profiled code.

    Example:
        profiler = CallGraphProfiler()
        profiler.start()
        # ... code to profile ...
        profiler.stop()
        report = profiler.create_report()
    """

    def __init__(self, timer: Callable[[], float] = time.process_time) -> None:
        self._timer = timer
        self._profiler: Optional[cProfile.Profile] = None
        self._running = False
        self._report: Optional[ProfileReport] = None

    def start(self) -> None:
        """Start profiling.

        Raises:
            ProfilerError: If the profiler is already running or another
                profiler is active in this thread.
        """
        if self._running:
            raise ProfilerError("Profiler is already running")

        try:
            self._profiler = cProfile.Profile(timer=self._timer)
            self._profiler.enable()
            self._running = True
            self._report = None
        except Exception as e:
            self._profiler = None
            raise ProfilerError(f"Failed to start profiler: {e}", cause=e)

    def stop(self) -> None:
        """Stop profiling.

        Raises:
            ProfilerError: If the profiler is not running.
        """
        if not self._running or self._profiler is None:
            raise ProfilerError("Profiler is not running")

        try:
            self._profiler.disable()
        except Exception as e:
            raise ProfilerError(f"Failed to stop profiler: {e}", cause=e)
        finally:
            self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def create_report(self) -> ProfileReport:
        """Build the ProfileReport of the last profiling session.

        Returns:
            The call graph. Built once and cached.

        Raises:
            ProfilerError: If the profiler hasn't completed.
        """
        if self._profiler is None or self._running:
            raise ProfilerError("Profiler has not completed")

        if self._report is None:
            try:
                stats = pstats.Stats(self._profiler)
            except TypeError:
                # No functions were recorded
                self._report = ProfileReport()
            except Exception as e:
                raise ProfilerError(f"Failed to create profile report: {e}", cause=e)
            else:
                self._report = report_from_stats(stats)
        return self._report

    @property
    def duration(self) -> float:
        """Total profiled process time in seconds."""
        return self.create_report().total_time

    def runcall(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Profile a single call of ``func`` and return its result.

        Only ``func`` and its callees are recorded; the profiler is
        enabled and disabled directly around the call.

        Raises:
            ProfilerError: If the profiler is already running.
        """
        if self._running:
            raise ProfilerError("Profiler is already running")

        self._profiler = cProfile.Profile(timer=self._timer)
        self._report = None
        self._running = True
        try:
            return self._profiler.runcall(func, *args, **kwargs)
        finally:
            self._running = False


class SamplingProfiler:
    """Wrapper around pyinstrument.Profiler.

    Samples the stack of the profiled code at a fixed interval instead
    of instrumenting every call. Used for the interactive HTML call
    graph.

    Example:
        sampler = SamplingProfiler()
        sampler.runcall(render_page)
        html = sampler.get_html_report()
    """

    def __init__(self, interval: float = 0.001) -> None:
        """Initialize the profiler.

        Args:
            interval: Sampling interval in seconds.
        """
        self.interval = interval
        self._profiler: Optional[PyInstrumentProfiler] = None
        self._duration: Optional[float] = None

    def start(self) -> None:
        """Start sampling.

        Raises:
            ProfilerError: If the profiler is already running.
        """
        if self.is_running:
            raise ProfilerError("Profiler is already running")

        self._duration = None
        try:
            self._profiler = PyInstrumentProfiler(interval=self.interval)
            self._profiler.start()
        except Exception as e:
            self._profiler = None
            raise ProfilerError(f"Failed to start profiler: {e}", cause=e)

    def stop(self) -> None:
        """Stop sampling and record the wall-clock duration.

        Raises:
            ProfilerError: If the profiler is not running.
        """
        if not self.is_running:
            raise ProfilerError("Profiler is not running")

        try:
            session = self._profiler.stop()  # type: ignore[union-attr]
        except Exception as e:
            raise ProfilerError(f"Failed to stop profiler: {e}", cause=e)
        self._duration = session.duration if session is not None else 0.0

    @property
    def is_running(self) -> bool:
        return self._profiler is not None and self._profiler.is_running

    @property
    def duration(self) -> float:
        """Sampled wall-clock duration in seconds.

        Raises:
            ProfilerError: If the profiler hasn't been stopped yet.
        """
        if self._duration is None:
            raise ProfilerError("Profiler has not been stopped yet")
        return self._duration

    def runcall(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Sample a single call of ``func`` and return its result."""
        self.start()
        try:
            return func(*args, **kwargs)
        finally:
            self.stop()

    def get_html_report(self) -> str:
        """Render pyinstrument's interactive HTML call graph.

        Raises:
            ProfilerError: If no session has completed.
        """
        if self._profiler is None or self._duration is None:
            raise ProfilerError("Profiler has not completed")

        try:
            return self._profiler.output_html()
        except Exception as e:
            raise ProfilerError(f"Failed to generate HTML report: {e}", cause=e)
