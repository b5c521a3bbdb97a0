"""Harness entry point.

Runs a set of test cases sequentially in one mode and dispatches each
outcome to the report sinks:

    - passed: report() on every sink that accepts the bundle
    - failed: report_error() on every sink
    - errored: nothing is reported

A failing test case never stops its siblings, and a failing sink never
stops the other sinks.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .capabilities import Capabilities, get_capabilities
from .config import HarnessConfig, get_default_config
from .environment import EnvironmentInfo, apply_test_environment
from .exceptions import ConfigurationError
from .filter import TestFilter
from .models import TestCase, TestOutcome, TestStatus
from .modes import ModeStrategy, get_mode, list_modes
from .runner import TestCaseRunner
from .sinks import ReportSink, get_sink

logger = logging.getLogger(__name__)


@dataclass
class HarnessResult:
    """Outcomes of a harness run, in execution order."""

    outcomes: List[TestOutcome] = field(default_factory=list)

    def _with_status(self, status: TestStatus) -> List[TestOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is status]

    @property
    def passed(self) -> List[TestOutcome]:
        return self._with_status(TestStatus.PASSED)

    @property
    def errored(self) -> List[TestOutcome]:
        return self._with_status(TestStatus.ERRORED)

    @property
    def failed(self) -> List[TestOutcome]:
        return self._with_status(TestStatus.FAILED)

    @property
    def exit_code(self) -> int:
        return 0 if len(self.passed) == len(self.outcomes) else 1

    def summary(self) -> str:
        return (
            f"{len(self.outcomes)} tests, {len(self.passed)} passed, "
            f"{len(self.failed)} failed, {len(self.errored)} errored"
        )


class Harness:
    """Runs performance tests in benchmark or profile mode.

    Attributes:
        config: The harness configuration.
        mode: Name of the mode strategy ("benchmark" or "profile").
        sinks: Report sinks receiving every outcome.

    Example:
        harness = Harness(HarnessConfig.from_env(), mode="benchmark")
        result = harness.run_targets(["perf/browsing_test.py"])
        sys.exit(result.exit_code)
    """

    def __init__(
        self,
        config: Optional[HarnessConfig] = None,
        mode: str = "benchmark",
        sinks: Optional[Sequence[ReportSink]] = None,
        capabilities: Optional[Capabilities] = None,
    ) -> None:
        """Initialize the harness.

        Args:
            config: Harness configuration. Uses the default if None.
            mode: Mode name.
            sinks: Report sinks. Defaults to the console plus the CSV
                history sink (benchmark) or the profile sink (profile).
            capabilities: Runtime capabilities. Detected once if None.

        Raises:
            ConfigurationError: If the mode is unknown.
        """
        if mode not in list_modes():
            raise ConfigurationError(
                f"Unknown mode: {mode}. Available modes: {list_modes()}"
            )
        self.config = config or get_default_config()
        self.mode = mode
        self._capabilities = capabilities
        self.sinks: List[ReportSink] = (
            list(sinks) if sinks is not None else self.default_sinks()
        )

    def default_sinks(self) -> List[ReportSink]:
        names = ["console", "csv" if self.mode == "benchmark" else "profile"]
        return [get_sink(name, config=self.config) for name in names]

    @property
    def capabilities(self) -> Capabilities:
        if self._capabilities is None:
            self._capabilities = get_capabilities(
                instrumentation=self.config.instrumentation,
                trace_memory=self.config.trace_memory,
            )
        return self._capabilities

    def mode_for(self, test_case: TestCase) -> ModeStrategy:
        """Mode strategy for a test case, with its option overrides applied."""
        config = self.config
        if test_case.options:
            config = config.merge(**test_case.options)
        return get_mode(self.mode, config, self.capabilities)

    def select(self, test_cases: Iterable[TestCase]) -> List[TestCase]:
        test_filter = TestFilter(
            include=self.config.include_tests,
            exclude=self.config.exclude_tests,
        )
        return test_filter.select(test_cases)

    def run(self, test_cases: Iterable[TestCase]) -> HarnessResult:
        """Run test cases sequentially and report each outcome.

        Args:
            test_cases: The test cases to run.

        Returns:
            The HarnessResult with one outcome per selected test case.

        Raises:
            ConfigurationError: If the test environment cannot be applied.
        """
        from . import setup_file_logging

        setup_file_logging(self.config.log_path)

        selected = self.select(test_cases)
        apply_test_environment(
            self.config, [tc.app for tc in selected if tc.app is not None]
        )
        capabilities = self.capabilities
        logger.info(
            f"Running {len(selected)} tests in {self.mode} mode "
            f"({EnvironmentInfo.collect(self.config).describe()})"
        )
        logger.debug(f"Capabilities: {capabilities}")

        result = HarnessResult()
        try:
            for test_case in selected:
                try:
                    mode = self.mode_for(test_case)
                except ConfigurationError as e:
                    logger.error(f"Invalid options for {test_case.name}: {e}")
                    result.outcomes.append(
                        TestOutcome(test_case.name, TestStatus.ERRORED, error=e)
                    )
                    continue
                runner = TestCaseRunner(mode, on_outcome=self.dispatch)
                result.outcomes.append(runner.run(test_case))
        finally:
            self.close()

        logger.info(result.summary())
        return result

    def run_targets(self, targets: Iterable[str]) -> HarnessResult:
        """Load test cases from targets and run them."""
        from .loader import load_targets

        return self.run(load_targets(targets))

    def dispatch(self, outcome: TestOutcome) -> None:
        """Hand an outcome to the sinks."""
        if outcome.status is TestStatus.PASSED and outcome.bundle is not None:
            for sink in self.sinks:
                if not sink.accepts(outcome.bundle):
                    continue
                try:
                    sink.report(outcome.bundle)
                except Exception as e:
                    logger.error(f"Sink '{sink.name}' failed for {outcome.test_name}: {e}")
        elif outcome.status is TestStatus.FAILED and outcome.error is not None:
            for sink in self.sinks:
                try:
                    sink.report_error(outcome.test_name, outcome.error)
                except Exception as e:
                    logger.error(f"Sink '{sink.name}' failed for {outcome.test_name}: {e}")

    def close(self) -> None:
        for sink in self.sinks:
            try:
                sink.close()
            except Exception as e:
                logger.warning(f"Failed to close sink '{sink.name}': {e}")
