"""Web Performance Test exceptions.

This module defines all custom exceptions used throughout the web-perftest package.
"""

from typing import Optional


class WebPerfTestError(Exception):
    """Base exception for all web-perftest errors.

    All custom exceptions in this package inherit from this class,
    allowing users to catch all package-specific errors with a single except clause.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            cause: Optional underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause!r})"
        return self.message


class ConfigurationError(WebPerfTestError):
    """Raised when there is a configuration error.

    This includes invalid configuration values, unknown metric or format
    names, or configuration validation failures.
    """

    pass


class SetupError(WebPerfTestError):
    """Raised when a test fixture fails.

    Covers setup and teardown hooks as well as login or state preparation
    performed by integration tests. The test case is skipped and the
    harness continues with the next one.
    """

    def __init__(
        self,
        message: str,
        test_name: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.test_name = test_name


class ExecutionError(WebPerfTestError):
    """Raised when a test body fails during warmup or a measured run.

    The result bundle of the test case is discarded.

    Attributes:
        test_name: Name of the failing test case.
        phase: "warmup" or "run N" (1-based).
    """

    def __init__(
        self,
        message: str,
        test_name: str = "",
        phase: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.test_name = test_name
        self.phase = phase


class ExecutionTimeout(ExecutionError):
    """Raised when a test body exceeds the configured wall-clock deadline."""

    pass


class ProfilerError(WebPerfTestError):
    """Raised when there is an error during call-graph profiling.

    This includes cProfile or pyinstrument start/stop failures and
    report generation issues.
    """

    pass


class ReportError(WebPerfTestError):
    """Raised when a report sink fails to render or persist results."""

    pass
