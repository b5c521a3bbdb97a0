"""Profile report sink.

Writes the call graph of each profiled test case in every configured
format (flat, graph, graph_html, tree) to the output directory.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, TYPE_CHECKING

from ..exceptions import ReportError
from ..printers import get_printer
from . import register_sink
from .base import ReportSink, sanitize_name

if TYPE_CHECKING:
    from ..config import HarnessConfig
    from ..models import ResultBundle

logger = logging.getLogger(__name__)


@register_sink("profile")
class ProfileSink(ReportSink):
    """Sink that saves profile reports to local files.

    Files are named ``{test}_{measure}_{format}.{ext}``, e.g.
    ``BrowsingTest#test_homepage_process_time_flat.txt``.

    Attributes:
        output_dir: Directory where reports are saved.
        formats: Report formats to write.
        written: Paths written so far.
    """

    def __init__(
        self,
        config: Optional["HarnessConfig"] = None,
        output_dir: Optional[str] = None,
        formats: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(config=config)
        self.output_dir = Path(output_dir or self.config.output_path)
        self.formats = list(formats or self.config.profile_formats)
        self.written: List[Path] = []

    def accepts(self, bundle: "ResultBundle") -> bool:
        return bundle.profile is not None

    def report(self, bundle: "ResultBundle") -> None:
        """Render and save every configured format.

        Raises:
            ReportError: If a report cannot be written.
        """
        report = bundle.profile
        if report is None:
            return

        base = f"{sanitize_name(bundle.test_name)}_{report.measure}"
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            for format_name in self.formats:
                printer = get_printer(format_name, min_percent=self.config.min_percent)
                path = self.output_dir / f"{base}_{format_name}.{printer.extension}"
                path.write_text(printer.render(report), encoding="utf-8")
                self.written.append(path)
                logger.info(f"Profile report saved to: {path}")
        except OSError as e:
            error_msg = f"Failed to save profile report to {self.output_dir}: {e}"
            logger.error(error_msg)
            raise ReportError(error_msg, cause=e) from e
