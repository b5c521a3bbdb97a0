"""Console sink.

Prints a summary of each test case as soon as it completes:

    BrowsingTest#test_homepage (31.42 ms warmup)
               wall_time: 6.18 ms
                  memory: 437.27 KB
                 objects: 5,514
                 gc_runs: 0
                 gc_time: 0.00 ms
"""

import sys
from typing import List, Optional, TextIO, TYPE_CHECKING

from ..models import get_metric
from . import register_sink
from .base import ReportSink

if TYPE_CHECKING:
    from ..config import HarnessConfig
    from ..models import ResultBundle


@register_sink("console")
class ConsoleSink(ReportSink):
    """Sink that writes one summary line per metric to a stream.

    Values are means over the measured runs. Output is flushed after
    every test case and never buffered across test cases.
    """

    def __init__(
        self,
        config: Optional["HarnessConfig"] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        super().__init__(config=config)
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def report(self, bundle: "ResultBundle") -> None:
        lines = [f"{bundle.test_name} ({bundle.warmup_seconds * 1000:.2f} ms warmup)"]
        for kind, value in bundle.means().items():
            lines.append(f"{kind.value:>20}: {get_metric(kind).format(value)}")
        self._write(lines)

    def report_error(self, test_name: str, error: BaseException) -> None:
        self._write([f"{test_name} ERROR: {error}"])

    def _write(self, lines: List[str]) -> None:
        self.stream.write("\n".join(lines) + "\n\n")
        self.stream.flush()
