"""Test case runner.

Runs one test case through a mode strategy, wrapping every execution in
the test's setup and teardown hooks, and hands the outcome to the
reporting layer.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from .exceptions import ExecutionError, SetupError
from .models import TestCase, TestOutcome, TestStatus
from .modes import ModeStrategy

logger = logging.getLogger(__name__)

OutcomeHandler = Callable[[TestOutcome], None]


class TestCaseRunner:
    """Orchestrates one test case.

    Setup and teardown run around every execution (warmup included),
    outside the timed window. A fixture failure marks the test as
    errored; a body failure marks it as failed. Neither propagates.

    Attributes:
        mode: The mode strategy used for every test case.
        on_outcome: Optional callback receiving each TestOutcome.

    Example:
        runner = TestCaseRunner(get_mode("benchmark", config, capabilities))
        outcome = runner.run(test_case)
        if outcome.ok:
            print(outcome.bundle.means())
    """

    __test__ = False

    def __init__(
        self,
        mode: ModeStrategy,
        on_outcome: Optional[OutcomeHandler] = None,
    ) -> None:
        self.mode = mode
        self.on_outcome = on_outcome

    def run(self, test_case: TestCase) -> TestOutcome:
        """Run a test case and report its outcome.

        Args:
            test_case: The test case to run.

        Returns:
            The TestOutcome. Its bundle is set only when the test passed.
        """
        logger.info(f"Running {test_case.name} ({self.mode.name})")

        try:
            bundle = self.mode.run(test_case, fixture=lambda: self._fixture(test_case))
        except SetupError as e:
            logger.error(f"Setup failed for {test_case.name}: {e}")
            outcome = TestOutcome(test_case.name, TestStatus.ERRORED, error=e)
        except ExecutionError as e:
            logger.error(f"Execution failed for {test_case.name} ({e.phase}): {e}")
            outcome = TestOutcome(test_case.name, TestStatus.FAILED, error=e)
        else:
            outcome = TestOutcome(test_case.name, TestStatus.PASSED, bundle=bundle)

        if self.on_outcome is not None:
            self.on_outcome(outcome)
        return outcome

    @contextmanager
    def _fixture(self, test_case: TestCase) -> Iterator[None]:
        if test_case.setup is not None:
            try:
                test_case.setup()
            except Exception as e:
                raise SetupError(
                    f"setup of {test_case.name} failed: {e}",
                    test_name=test_case.name,
                    cause=e,
                ) from e

        try:
            yield
        except BaseException:
            # The body's error wins over a teardown failure
            self._teardown(test_case, quiet=True)
            raise
        self._teardown(test_case)

    def _teardown(self, test_case: TestCase, quiet: bool = False) -> None:
        if test_case.teardown is None:
            return
        try:
            test_case.teardown()
        except Exception as e:
            if quiet:
                logger.warning(f"teardown of {test_case.name} failed: {e}")
                return
            raise SetupError(
                f"teardown of {test_case.name} failed: {e}",
                test_name=test_case.name,
                cause=e,
            ) from e
