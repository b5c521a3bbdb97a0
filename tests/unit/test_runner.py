"""Unit tests for TestCaseRunner."""

from typing import List

from web_perftest.config import HarnessConfig
from web_perftest.exceptions import ExecutionError, SetupError
from web_perftest.models import TestCase, TestOutcome, TestStatus
from web_perftest.modes import get_mode
from web_perftest.runner import TestCaseRunner


class TestTestCaseRunner:
    """Tests for TestCaseRunner."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.events: List[str] = []
        self.outcomes: List[TestOutcome] = []

    def _runner(self, capabilities) -> TestCaseRunner:
        mode = get_mode("benchmark", HarnessConfig(), capabilities)
        return TestCaseRunner(mode, on_outcome=self.outcomes.append)

    def test_hooks_wrap_every_execution(self, no_capabilities) -> None:
        """Test that setup and teardown run around warmup and each run."""
        test_case = TestCase(
            "Hooks#test",
            body=lambda: self.events.append("body"),
            setup=lambda: self.events.append("setup"),
            teardown=lambda: self.events.append("teardown"),
        )

        outcome = self._runner(no_capabilities).run(test_case)

        assert outcome.status is TestStatus.PASSED
        assert outcome.ok
        assert self.events == ["setup", "body", "teardown"] * 5
        assert self.outcomes == [outcome]

    def test_setup_failure_errors_the_test(self, no_capabilities) -> None:
        """Test that a setup failure yields an errored outcome."""

        def setup() -> None:
            raise ConnectionError("login failed")

        outcome = self._runner(no_capabilities).run(
            TestCase("Login#test", body=lambda: self.events.append("body"), setup=setup)
        )

        assert outcome.status is TestStatus.ERRORED
        assert isinstance(outcome.error, SetupError)
        assert outcome.bundle is None
        assert self.events == []

    def test_teardown_failure_errors_the_test(self, no_capabilities) -> None:
        """Test that a teardown failure yields an errored outcome."""

        def teardown() -> None:
            raise RuntimeError("cleanup failed")

        outcome = self._runner(no_capabilities).run(
            TestCase("Cleanup#test", body=lambda: None, teardown=teardown)
        )

        assert outcome.status is TestStatus.ERRORED
        assert isinstance(outcome.error, SetupError)

    def test_body_failure_fails_the_test(self, no_capabilities) -> None:
        """Test that a body failure yields a failed outcome and still tears down."""

        def body() -> None:
            raise KeyError("missing")

        outcome = self._runner(no_capabilities).run(
            TestCase(
                "Broken#test",
                body=body,
                teardown=lambda: self.events.append("teardown"),
            )
        )

        assert outcome.status is TestStatus.FAILED
        assert isinstance(outcome.error, ExecutionError)
        assert outcome.bundle is None
        assert self.events == ["teardown"]

    def test_body_error_wins_over_teardown_error(self, no_capabilities) -> None:
        """Test that a teardown failure after a body failure is not reported."""

        def body() -> None:
            raise ValueError("body")

        def teardown() -> None:
            raise RuntimeError("teardown")

        outcome = self._runner(no_capabilities).run(
            TestCase("Both#test", body=body, teardown=teardown)
        )

        assert outcome.status is TestStatus.FAILED
        assert isinstance(outcome.error.cause, ValueError)
