"""Metric collectors.

A collector is armed immediately before an execution window and measured
immediately after it, producing one scalar value. Collectors whose metric
depends on a runtime capability turn into no-ops when the capability is
missing and report UNAVAILABLE instead of a number.

Example:
    collector = WallTimeCollector(get_capabilities())
    token = collector.arm()
    try:
        collector.invoke(token, do_work)
        value = collector.measure(token)
    finally:
        collector.release(token)
"""

import gc
import logging
import sys
import time
import tracemalloc
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, Union

from .capabilities import Capabilities
from .exceptions import ConfigurationError
from .models import Metric, MetricKind, ProfileReport, get_metric
from .profiler import CallGraphProfiler

logger = logging.getLogger(__name__)


class _Unavailable:
    """Sentinel for a metric the runtime cannot provide."""

    _instance: Optional["_Unavailable"] = None

    def __new__(cls) -> "_Unavailable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNAVAILABLE"

    def __bool__(self) -> bool:
        return False


UNAVAILABLE = _Unavailable()

MeasuredValue = Union[float, _Unavailable]

# Nesting levels: lower levels are armed first and measured last
NEST_COUNTER = 0
NEST_TIMER = 1
NEST_CALL_GRAPH = 2


class MetricCollector(ABC):
    """Abstract base class for metric collectors.

    Subclasses implement _arm() and _measure(), and _release() when they
    hold resources between arm and measure. A collector that has to
    wrap the body itself overrides invoke(). The public methods handle
    capability gating.

    Attributes:
        kind: The metric kind this collector produces.
        nesting: Arming order inside a window (see NEST_* constants).
    """

    kind: MetricKind
    nesting: int = NEST_COUNTER

    def __init__(self, capabilities: Capabilities) -> None:
        self.capabilities = capabilities

    @property
    def metric(self) -> Metric:
        return get_metric(self.kind)

    @property
    def available(self) -> bool:
        return self.metric.is_available(self.capabilities)

    def arm(self) -> Any:
        """Start measuring. Returns a token to pass to measure()."""
        if not self.available:
            return None
        return self._arm()

    def measure(self, token: Any) -> MeasuredValue:
        """Stop measuring and return the value, or UNAVAILABLE."""
        if not self.available:
            return UNAVAILABLE
        return self._measure(token)

    def release(self, token: Any) -> None:
        """Release collector-held resources. Safe to call after a failure."""
        if self.available and token is not None:
            self._release(token)

    def invoke(self, token: Any, body: Callable[[], Any]) -> Any:
        """Run the window body. The innermost armed collector does this."""
        return body()

    @abstractmethod
    def _arm(self) -> Any:
        pass

    @abstractmethod
    def _measure(self, token: Any) -> float:
        pass

    def _release(self, token: Any) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(available={self.available})"


class WallTimeCollector(MetricCollector):
    """Elapsed real time. Sensitive to concurrent system load."""

    kind = MetricKind.WALL_TIME
    nesting = NEST_TIMER

    def _arm(self) -> float:
        return time.perf_counter()

    def _measure(self, token: float) -> float:
        return time.perf_counter() - token


class ProcessTimeCollector(MetricCollector):
    """CPU time of the process. Insensitive to concurrent system load."""

    kind = MetricKind.PROCESS_TIME
    nesting = NEST_TIMER

    def _arm(self) -> float:
        return time.process_time()

    def _measure(self, token: float) -> float:
        return time.process_time() - token


class MemoryCollector(MetricCollector):
    """Peak traced memory above the baseline at arm time, in bytes."""

    kind = MetricKind.MEMORY

    def _arm(self) -> int:
        tracemalloc.reset_peak()
        current, _ = tracemalloc.get_traced_memory()
        return current

    def _measure(self, token: int) -> float:
        _, peak = tracemalloc.get_traced_memory()
        return float(max(peak - token, 0))


class ObjectCountCollector(MetricCollector):
    """Net change in allocated memory blocks."""

    kind = MetricKind.OBJECTS

    def _arm(self) -> int:
        return sys.getallocatedblocks()

    def _measure(self, token: int) -> float:
        return float(sys.getallocatedblocks() - token)


class _GcWatch:
    """gc.callbacks hook counting collections and their duration."""

    def __init__(self) -> None:
        self.runs = 0
        self.seconds = 0.0
        self._started: Optional[float] = None

    def __call__(self, phase: str, info: Dict[str, Any]) -> None:
        if phase == "start":
            self._started = time.perf_counter()
        elif phase == "stop" and self._started is not None:
            self.seconds += time.perf_counter() - self._started
            self.runs += 1
            self._started = None


class _GcCollector(MetricCollector):
    def _arm(self) -> _GcWatch:
        watch = _GcWatch()
        gc.callbacks.append(watch)
        return watch

    def _release(self, token: _GcWatch) -> None:
        try:
            gc.callbacks.remove(token)
        except ValueError:
            pass


class GcRunsCollector(_GcCollector):
    """Number of garbage collections during the window."""

    kind = MetricKind.GC_RUNS

    def _measure(self, token: _GcWatch) -> float:
        return float(token.runs)


class GcTimeCollector(_GcCollector):
    """Time spent in garbage collection during the window, in seconds."""

    kind = MetricKind.GC_TIME

    def _measure(self, token: _GcWatch) -> float:
        return token.seconds


class CallGraphCollector(MetricCollector):
    """Process time measured by cProfile instrumentation.

    The profiler is enabled only while the body runs, so the call graph
    holds the body and its callees and nothing of the window itself.
    The measured value is the total of that call graph, available
    afterwards as last_report.
    """

    kind = MetricKind.PROCESS_TIME
    nesting = NEST_CALL_GRAPH

    def __init__(self, capabilities: Capabilities) -> None:
        super().__init__(capabilities)
        self.last_report: Optional[ProfileReport] = None

    def _arm(self) -> CallGraphProfiler:
        self.last_report = None
        return CallGraphProfiler()

    def invoke(self, token: Any, body: Callable[[], Any]) -> Any:
        if token is None:
            return body()
        return token.runcall(body)

    def _measure(self, token: CallGraphProfiler) -> float:
        self.last_report = token.create_report()
        return self.last_report.total_time


COLLECTORS: Dict[MetricKind, Type[MetricCollector]] = {
    MetricKind.WALL_TIME: WallTimeCollector,
    MetricKind.PROCESS_TIME: ProcessTimeCollector,
    MetricKind.MEMORY: MemoryCollector,
    MetricKind.OBJECTS: ObjectCountCollector,
    MetricKind.GC_RUNS: GcRunsCollector,
    MetricKind.GC_TIME: GcTimeCollector,
}


def parse_metrics(names: Sequence[str]) -> List[MetricKind]:
    """Convert metric names into kinds, keeping order and dropping duplicates.

    Raises:
        ConfigurationError: If a name is unknown.
    """
    kinds: List[MetricKind] = []
    for name in names:
        try:
            kind = MetricKind.parse(name)
        except ValueError as e:
            raise ConfigurationError(f"Unknown metric '{name}'") from e
        if kind not in kinds:
            kinds.append(kind)
    return kinds


def create_collectors(
    kinds: Sequence[MetricKind],
    capabilities: Capabilities,
    overrides: Optional[Dict[MetricKind, MetricCollector]] = None,
) -> List[MetricCollector]:
    """Instantiate one collector per metric kind.

    Collectors for unavailable metrics are still created; they report
    UNAVAILABLE.

    Args:
        kinds: Metric kinds to collect.
        capabilities: Runtime capabilities used for gating.
        overrides: Pre-built collectors replacing the default for a kind.

    Returns:
        Collectors in the order of kinds.
    """
    overrides = overrides or {}
    collectors: List[MetricCollector] = []
    for kind in kinds:
        if kind in overrides:
            collectors.append(overrides[kind])
        else:
            collectors.append(COLLECTORS[kind](capabilities))
    return collectors


def available_metrics(
    kinds: Sequence[MetricKind], capabilities: Capabilities
) -> List[MetricKind]:
    """Filter metric kinds down to those the runtime can provide."""
    return [kind for kind in kinds if get_metric(kind).is_available(capabilities)]
