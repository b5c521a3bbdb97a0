"""Data models for web-perftest.

This module defines the core data structures used throughout the package,
including Metric, TestCase, MeasurementRun, ResultBundle, ProfileReport,
HistoryRecord and TestOutcome.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from .capabilities import ALLOCATION_COUNTERS, GC_COUNTERS, Capabilities


class MetricKind(Enum):
    """Kinds of measurement the harness can collect."""

    WALL_TIME = "wall_time"
    PROCESS_TIME = "process_time"
    MEMORY = "memory"
    OBJECTS = "objects"
    GC_RUNS = "gc_runs"
    GC_TIME = "gc_time"

    @classmethod
    def parse(cls, name: str) -> "MetricKind":
        """Look up a kind by its metric name (e.g. "wall_time")."""
        return cls(name)


@dataclass(frozen=True)
class Metric:
    """Static description of a metric.

    Attributes:
        kind: The metric kind.
        unit: Unit of the raw values ("seconds", "bytes" or "count").
        capability: Capability the metric depends on, or None if the
            metric is always available.
    """

    kind: MetricKind
    unit: str
    capability: Optional[str] = None

    @property
    def name(self) -> str:
        return self.kind.value

    def is_available(self, capabilities: Capabilities) -> bool:
        return capabilities.has(self.capability)

    def format(self, value: float) -> str:
        """Format a raw value for display."""
        if self.unit == "seconds":
            return f"{value * 1000:.2f} ms"
        if self.unit == "bytes":
            return f"{value / 1024:.2f} KB"
        return f"{int(round(value)):,}"


METRICS: Dict[MetricKind, Metric] = {
    MetricKind.WALL_TIME: Metric(MetricKind.WALL_TIME, "seconds"),
    MetricKind.PROCESS_TIME: Metric(MetricKind.PROCESS_TIME, "seconds"),
    MetricKind.MEMORY: Metric(MetricKind.MEMORY, "bytes", ALLOCATION_COUNTERS),
    MetricKind.OBJECTS: Metric(MetricKind.OBJECTS, "count", ALLOCATION_COUNTERS),
    MetricKind.GC_RUNS: Metric(MetricKind.GC_RUNS, "count", GC_COUNTERS),
    MetricKind.GC_TIME: Metric(MetricKind.GC_TIME, "seconds", GC_COUNTERS),
}


def get_metric(kind: MetricKind) -> Metric:
    return METRICS[kind]


@dataclass
class TestCase:
    """A named unit of application code to measure.

    The harness invokes the hooks but never interprets them.

    Attributes:
        name: Unique test name, e.g. "BrowsingTest#test_homepage".
        body: Zero-argument callable executed inside each window.
        setup: Optional hook run before every execution.
        teardown: Optional hook run after every execution.
        app: Web application the test drives, if any. The harness
            applies the test environment to it before running.
        options: Configuration overrides for this test case
            (e.g. {"benchmark_runs": 10}).
    """

    __test__ = False

    name: str
    body: Callable[[], Any]
    setup: Optional[Callable[[], Any]] = None
    teardown: Optional[Callable[[], Any]] = None
    app: Optional[Any] = None
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MeasurementRun:
    """Metric values of one measured execution."""

    values: Dict[MetricKind, float] = field(default_factory=dict)

    def __contains__(self, kind: object) -> bool:
        return kind in self.values

    def get(self, kind: MetricKind) -> Optional[float]:
        return self.values.get(kind)


@dataclass(frozen=True)
class MethodKey:
    """Identity of a profiled function."""

    filename: str
    lineno: int
    name: str

    @property
    def is_builtin(self) -> bool:
        return self.filename == "~"

    @property
    def label(self) -> str:
        """Short display label, e.g. "render (views.py:42)"."""
        if self.is_builtin:
            return self.name
        return f"{self.name} ({os.path.basename(self.filename)}:{self.lineno})"


@dataclass
class ProfileNode:
    """Per-method totals of a call graph.

    Attributes:
        key: Method identity.
        calls: Total number of calls.
        primitive_calls: Calls not induced by recursion.
        self_time: Time spent in the method itself, in seconds.
        total_time: Time including callees, in seconds.
    """

    key: MethodKey
    calls: int
    primitive_calls: int
    self_time: float
    total_time: float


@dataclass
class ProfileEdge:
    """A caller to callee relationship with the callee's time attributed
    to calls made from this caller."""

    caller: MethodKey
    callee: MethodKey
    calls: int
    self_time: float
    total_time: float


@dataclass
class ProfileReport:
    """Call graph of one measured run.

    Attributes:
        nodes: Methods keyed by identity.
        edges: Caller to callee edges.
        measure: Name of the clock the times were taken with.
    """

    nodes: Dict[MethodKey, ProfileNode] = field(default_factory=dict)
    edges: List[ProfileEdge] = field(default_factory=list)
    measure: str = "process_time"

    @property
    def total_time(self) -> float:
        """Total measured time: the sum of self time over all methods."""
        return sum(node.self_time for node in self.nodes.values())

    def callers_of(self, key: MethodKey) -> List[ProfileEdge]:
        return [edge for edge in self.edges if edge.callee == key]

    def callees_of(self, key: MethodKey) -> List[ProfileEdge]:
        return [edge for edge in self.edges if edge.caller == key]

    def sorted_nodes(self, by: str = "self_time") -> List[ProfileNode]:
        """Nodes sorted descending by the given attribute."""
        return sorted(
            self.nodes.values(),
            key=lambda node: (getattr(node, by), node.key.label),
            reverse=True,
        )

    def __iter__(self) -> Iterator[ProfileNode]:
        return iter(self.nodes.values())

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass
class ResultBundle:
    """Results of running one test case in one mode.

    Attributes:
        test_name: Name of the test case.
        mode: "benchmark" or "profile".
        warmup_seconds: Duration of the unmeasured warmup run.
        runs: Measured runs in execution order.
        metrics: Reported metric kinds in display order.
        profile: Call graph of the measured run (profile mode only).
    """

    test_name: str
    mode: str
    warmup_seconds: float
    runs: List[MeasurementRun] = field(default_factory=list)
    metrics: List[MetricKind] = field(default_factory=list)
    profile: Optional[ProfileReport] = None

    def values(self, kind: MetricKind) -> List[float]:
        """All measured values of a metric, one per run that reported it."""
        return [run.values[kind] for run in self.runs if kind in run.values]

    def mean(self, kind: MetricKind) -> Optional[float]:
        values = self.values(kind)
        if not values:
            return None
        return sum(values) / len(values)

    def means(self) -> Dict[MetricKind, float]:
        result: Dict[MetricKind, float] = {}
        for kind in self.metrics:
            value = self.mean(kind)
            if value is not None:
                result[kind] = value
        return result


HISTORY_HEADER = ("measurement", "created_at", "app", "framework", "runtime", "platform")


@dataclass(frozen=True)
class HistoryRecord:
    """One row of a per-(test, metric) history file."""

    measurement: float
    created_at: str
    app: str = ""
    framework: str = ""
    runtime: str = ""
    platform: str = ""

    def to_row(self) -> List[str]:
        return [
            repr(self.measurement),
            self.created_at,
            self.app,
            self.framework,
            self.runtime,
            self.platform,
        ]


class TestStatus(Enum):
    """Status of a test case after the harness ran it.

    Values:
        PASSED: A bundle was produced and reported.
        ERRORED: Setup or teardown failed; nothing was reported.
        FAILED: The body raised; the bundle was discarded.
    """

    __test__ = False

    PASSED = "passed"
    ERRORED = "errored"
    FAILED = "failed"


@dataclass
class TestOutcome:
    """Outcome of one test case."""

    __test__ = False

    test_name: str
    status: TestStatus
    bundle: Optional[ResultBundle] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is TestStatus.PASSED
