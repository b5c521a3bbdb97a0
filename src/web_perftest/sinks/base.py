"""Base class for report sinks.

A sink consumes completed result bundles and renders them to its medium
(console, history files, profile reports).
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING

from ..config import HarnessConfig, get_default_config

if TYPE_CHECKING:
    from ..models import ResultBundle

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 120


def sanitize_name(name: str) -> str:
    """Make a test name safe for use in a file name."""
    sanitized = re.sub(r"[/\\?%*:|\"<>\s]", "_", name)
    sanitized = re.sub(r"_+", "_", sanitized)
    sanitized = sanitized.strip("_")
    if len(sanitized) > MAX_FILENAME_LENGTH:
        sanitized = sanitized[:MAX_FILENAME_LENGTH]
    return sanitized or "unknown"


class ReportSink(ABC):
    """Abstract base class for report sinks.

    Subclasses must implement:
        - report(): Render one result bundle

    Subclasses may override:
        - accepts(): Restrict the bundles the sink handles
        - report_error(): Surface a failed test case
        - close(): Release resources at the end of a harness run
    """

    name: str = ""

    def __init__(self, config: Optional[HarnessConfig] = None) -> None:
        """Initialize the sink.

        Args:
            config: The harness configuration. Uses the default if None.
        """
        self.config = config or get_default_config()

    def accepts(self, bundle: "ResultBundle") -> bool:
        """Whether this sink handles the given bundle."""
        return True

    @abstractmethod
    def report(self, bundle: "ResultBundle") -> None:
        """Render a completed result bundle.

        Raises:
            ReportError: If rendering fails.
        """
        pass

    def report_error(self, test_name: str, error: BaseException) -> None:
        """Surface an execution error. Ignored by default."""
        pass

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
