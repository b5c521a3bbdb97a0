"""Mode strategies.

A mode decides how many times a test body runs, which collectors are
active and what goes into the result bundle:

    - benchmark: one warmup plus ``benchmark_runs`` measured runs of
      wall time and the gated memory/objects/GC metrics.
    - profile: one warmup plus ``profile_runs`` measured runs under
      cProfile, producing a call graph.
"""

import gc
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, ContextManager, Dict, Iterator, List, Optional, Type, TypeVar

from .capabilities import Capabilities
from .config import HarnessConfig
from .exceptions import ExecutionError
from .metrics import (
    CallGraphCollector,
    MetricCollector,
    available_metrics,
    create_collectors,
    parse_metrics,
)
from .models import MeasurementRun, MetricKind, ProfileReport, ResultBundle, TestCase
from .window import ExecutionWindow, timed

logger = logging.getLogger(__name__)

Fixture = Callable[[], ContextManager[Any]]
T = TypeVar("T")

_mode_registry: Dict[str, Type["ModeStrategy"]] = {}


def register_mode(name: str) -> Callable[[Type["ModeStrategy"]], Type["ModeStrategy"]]:
    """Decorator to register a mode strategy under a name."""

    def decorator(cls: Type["ModeStrategy"]) -> Type["ModeStrategy"]:
        if name in _mode_registry:
            logger.warning(
                f"Mode '{name}' is already registered. Overwriting with {cls.__name__}"
            )
        cls.name = name
        _mode_registry[name] = cls
        logger.debug(f"Registered mode: {name} -> {cls.__name__}")
        return cls

    return decorator


def get_mode(
    name: str,
    config: HarnessConfig,
    capabilities: Capabilities,
) -> "ModeStrategy":
    """Create a mode strategy by name.

    Raises:
        KeyError: If the mode is not registered.
    """
    if name not in _mode_registry:
        raise KeyError(
            f"Mode '{name}' is not registered. Available modes: {list_modes()}"
        )
    return _mode_registry[name](config, capabilities)


def list_modes() -> List[str]:
    return list(_mode_registry.keys())


def history_modes() -> List[str]:
    """Names of the modes whose measurements go to the CSV history."""
    return [name for name, cls in _mode_registry.items() if cls.writes_history]


@contextmanager
def _no_fixture() -> Iterator[None]:
    yield


class ModeStrategy(ABC):
    """Abstract base class for mode strategies.

    Runs count and collector set are fixed per instance; only the
    measured values vary between calls to run().

    Attributes:
        config: The harness configuration.
        capabilities: Runtime capabilities used to gate collectors.
        writes_history: Whether the CSV history sink records the
            measured values.
    """

    name: str = ""
    writes_history: bool = False

    def __init__(self, config: HarnessConfig, capabilities: Capabilities) -> None:
        self.config = config
        self.capabilities = capabilities

    @property
    @abstractmethod
    def runs(self) -> int:
        """Number of measured runs."""

    @property
    @abstractmethod
    def metrics(self) -> List[MetricKind]:
        """Requested metric kinds in display order."""

    def create_collectors(self) -> List[MetricCollector]:
        return create_collectors(self.metrics, self.capabilities)

    def run(self, test_case: TestCase, fixture: Optional[Fixture] = None) -> ResultBundle:
        """Run the warmup and all measured windows of a test case.

        Args:
            test_case: The test case to run.
            fixture: Context manager factory wrapping each execution
                (setup before, teardown after).

        Returns:
            The completed ResultBundle.

        Raises:
            ExecutionError: If the body raises during warmup or any
                measured run. No partial bundle is returned.
        """
        fixture = fixture or _no_fixture

        with fixture():
            self._collect_garbage()
            warmup_seconds = self._invoke(
                test_case,
                "warmup",
                lambda: timed(test_case.body, self.config.timeout_seconds, test_case.name),
            )

        runs: List[MeasurementRun] = []
        for index in range(self.runs):
            with fixture():
                self._collect_garbage()
                window = ExecutionWindow(
                    self.create_collectors(),
                    timeout=self.config.timeout_seconds,
                    label=test_case.name,
                )
                measurement = self._invoke(
                    test_case, f"run {index + 1}", lambda: window.run(test_case.body)
                )
            runs.append(measurement)
            self._after_run(measurement)

        bundle = ResultBundle(
            test_name=test_case.name,
            mode=self.name,
            warmup_seconds=warmup_seconds,
            runs=runs,
            metrics=self._reported_metrics(runs),
            profile=self._profile_report(),
        )
        logger.debug(
            f"Completed {test_case.name} in {self.name} mode: "
            f"{len(runs)} runs, metrics {[k.value for k in bundle.metrics]}"
        )
        return bundle

    def _invoke(self, test_case: TestCase, phase: str, func: Callable[[], T]) -> T:
        try:
            return func()
        except ExecutionError as e:
            e.test_name = e.test_name or test_case.name
            e.phase = e.phase or phase
            raise
        except Exception as e:
            raise ExecutionError(
                f"{test_case.name} raised during {phase}: {e}",
                test_name=test_case.name,
                phase=phase,
                cause=e,
            ) from e

    def _collect_garbage(self) -> None:
        if self.config.collect_garbage:
            gc.collect()

    def _reported_metrics(self, runs: List[MeasurementRun]) -> List[MetricKind]:
        return [
            kind
            for kind in available_metrics(self.metrics, self.capabilities)
            if any(kind in run for run in runs)
        ]

    def _after_run(self, measurement: MeasurementRun) -> None:
        pass

    def _profile_report(self) -> Optional[ProfileReport]:
        return None


@register_mode("benchmark")
class BenchmarkMode(ModeStrategy):
    """Repeated measured runs; every value is persisted to history."""

    writes_history = True

    @property
    def runs(self) -> int:
        return self.config.benchmark_runs

    @property
    def metrics(self) -> List[MetricKind]:
        return parse_metrics(self.config.benchmark_metrics)


@register_mode("profile")
class ProfileMode(ModeStrategy):
    """Measured runs under call-graph instrumentation.

    Process time comes from the call graph itself, so the report's total
    self time equals the measured value.
    """

    def __init__(self, config: HarnessConfig, capabilities: Capabilities) -> None:
        super().__init__(config, capabilities)
        self._call_graph: Optional[CallGraphCollector] = None
        self._report: Optional[ProfileReport] = None

    @property
    def runs(self) -> int:
        return self.config.profile_runs

    @property
    def metrics(self) -> List[MetricKind]:
        return parse_metrics(self.config.profile_metrics)

    def run(self, test_case: TestCase, fixture: Optional[Fixture] = None) -> ResultBundle:
        self._report = None
        return super().run(test_case, fixture)

    def create_collectors(self) -> List[MetricCollector]:
        self._call_graph = CallGraphCollector(self.capabilities)
        return create_collectors(
            self.metrics,
            self.capabilities,
            overrides={MetricKind.PROCESS_TIME: self._call_graph},
        )

    def _after_run(self, measurement: MeasurementRun) -> None:
        if self._call_graph is not None and self._call_graph.last_report is not None:
            self._report = self._call_graph.last_report

    def _profile_report(self) -> Optional[ProfileReport]:
        return self._report
