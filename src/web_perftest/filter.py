"""Test name filtering.

This module provides the TestFilter class for controlling which
test cases run, based on include/exclude rules.
"""

import fnmatch
import logging
from typing import Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TestFilter:
    """Test name filter with include and exclude support.

    Uses fnmatch for glob-style pattern matching (*, ?, []).

    Rules:
        - If include is set, only matching tests run
        - If only exclude is set, all tests except matching ones run
        - Include takes precedence over exclude

    Attributes:
        include: List of test name patterns to run.
        exclude: List of test name patterns to skip.

    Example:
        # Only run the browsing tests
        filter = TestFilter(include=["BrowsingTest#*"])

        # Run everything except slow reports
        filter = TestFilter(exclude=["*#test_*report*"])
    """

    __test__ = False

    def __init__(
        self,
        include: Optional[List[str]] = None,
        exclude: Optional[List[str]] = None,
    ) -> None:
        """Initialize the test filter.

        Args:
            include: List of test name patterns to include (glob syntax).
            exclude: List of test name patterns to exclude (glob syntax).
        """
        self.include = list(include or [])
        self.exclude = list(exclude or [])
        self._validate_patterns()

    def should_run(self, name: str) -> bool:
        """Determine if a test should run.

        Args:
            name: The test name (e.g., "BrowsingTest#test_homepage").

        Returns:
            True if the test should run, False otherwise.
        """
        if self.include:
            return self._matches_any(name, self.include)

        if self.exclude:
            return not self._matches_any(name, self.exclude)

        return True

    def select(self, items: Iterable[T], key: str = "name") -> List[T]:
        """Keep the items whose ``key`` attribute passes the filter."""
        return [item for item in items if self.should_run(getattr(item, key))]

    def _matches_any(self, name: str, patterns: List[str]) -> bool:
        for pattern in patterns:
            if name == pattern or fnmatch.fnmatchcase(name, pattern):
                return True
        return False

    def _validate_patterns(self) -> None:
        """Validate all patterns and log warnings for invalid ones."""
        for pattern in self.include:
            if not self._is_valid_pattern(pattern):
                logger.warning(f"Invalid include pattern: {pattern}")

        for pattern in self.exclude:
            if not self._is_valid_pattern(pattern):
                logger.warning(f"Invalid exclude pattern: {pattern}")

    @staticmethod
    def _is_valid_pattern(pattern: str) -> bool:
        """Check that a pattern is non-empty with balanced brackets."""
        if not pattern:
            return False

        bracket_depth = 0
        for char in pattern:
            if char == "[":
                bracket_depth += 1
            elif char == "]":
                bracket_depth -= 1
                if bracket_depth < 0:
                    return False

        return bracket_depth == 0
