"""CSV history sink.

Appends every measured benchmark value to a per-(test, metric) CSV file
so results can be compared across application, framework and runtime
versions over time. Files are append-only: existing rows are never
rewritten.

File layout (``<output_path>/<test name>_<metric>.csv``):

    measurement,created_at,app,framework,runtime,platform
    0.006182,2026-10-19T08:12:44Z,1a2b3c4,flask-3.0.3,cpython-3.12.1,x86_64-linux
"""

import csv
import io
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from ..environment import EnvironmentInfo, utc_timestamp
from ..exceptions import ReportError
from ..models import HISTORY_HEADER, HistoryRecord, MetricKind
from ..modes import history_modes
from . import register_sink
from .base import ReportSink, sanitize_name

if TYPE_CHECKING:
    from ..config import HarnessConfig
    from ..models import ResultBundle

logger = logging.getLogger(__name__)


def _csv_line(row: List[str]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(row)
    return buffer.getvalue()


def _write_all(fd: int, data: str, path: Path) -> None:
    payload = data.encode("utf-8")
    written = os.write(fd, payload)
    if written != len(payload):
        raise OSError(f"Short write to {path}: {written} of {len(payload)} bytes")


def _publish(path: Path, data: str) -> None:
    """Create ``path`` holding ``data``.

    The content is written to a temporary file which is then hard-linked
    into place, so the file never exists without its header.

    Raises:
        FileExistsError: If another writer created ``path`` first.
    """
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        try:
            _write_all(fd, data, path)
        finally:
            os.close(fd)
        os.chmod(temp_name, 0o644)
        os.link(temp_name, path)
    finally:
        os.unlink(temp_name)


def append_row(path: Path, row: List[str]) -> None:
    """Append one CSV row to a history file.

    A new file is published together with its header row. Rows are
    added to an existing file with a single O_APPEND write so that
    concurrent writers never interleave or overwrite rows, and only the
    writer that created the file writes a header.

    Raises:
        OSError: If the file cannot be created or written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    line = _csv_line(row)

    if not path.exists():
        try:
            _publish(path, _csv_line(list(HISTORY_HEADER)) + line)
            return
        except FileExistsError:
            logger.debug(f"{path} was created by another writer, appending")

    fd = os.open(path, os.O_WRONLY | os.O_APPEND)
    try:
        _write_all(fd, line, path)
    finally:
        os.close(fd)


def read_history(path: Path) -> List[HistoryRecord]:
    """Read all rows of a history file."""
    with open(path, newline="", encoding="utf-8") as f:
        return [
            HistoryRecord(
                measurement=float(row["measurement"]),
                created_at=row["created_at"],
                app=row.get("app") or "",
                framework=row.get("framework") or "",
                runtime=row.get("runtime") or "",
                platform=row.get("platform") or "",
            )
            for row in csv.DictReader(f)
        ]


@register_sink("csv")
class HistorySink(ReportSink):
    """Sink that appends benchmark measurements to CSV history files.

    One row per measured run per metric. A failed append is retried
    once and then logged as a warning; the harness run continues and
    the console still shows the values.

    Attributes:
        output_dir: Directory holding the history files.
        environment: Version information written with each row.
        failures: Paths whose append failed after the retry.
    """

    def __init__(
        self,
        config: Optional["HarnessConfig"] = None,
        output_dir: Optional[str] = None,
        environment: Optional[EnvironmentInfo] = None,
    ) -> None:
        super().__init__(config=config)
        self.output_dir = Path(output_dir or self.config.output_path)
        self._environment = environment
        self.failures: List[Path] = []

    @property
    def environment(self) -> EnvironmentInfo:
        if self._environment is None:
            self._environment = EnvironmentInfo.collect(self.config)
        return self._environment

    def accepts(self, bundle: "ResultBundle") -> bool:
        return bundle.mode in history_modes()

    def path_for(self, test_name: str, kind: MetricKind) -> Path:
        return self.output_dir / f"{sanitize_name(test_name)}_{kind.value}.csv"

    def report(self, bundle: "ResultBundle") -> None:
        created_at = utc_timestamp()
        env = self.environment

        for kind in bundle.metrics:
            path = self.path_for(bundle.test_name, kind)
            for value in bundle.values(kind):
                record = HistoryRecord(
                    measurement=value,
                    created_at=created_at,
                    app=env.app,
                    framework=env.framework,
                    runtime=env.runtime,
                    platform=env.platform,
                )
                if not self._append(path, record):
                    break

    def _append(self, path: Path, record: HistoryRecord) -> bool:
        for attempt in (1, 2):
            try:
                append_row(path, record.to_row())
                return True
            except OSError as e:
                if attempt == 1:
                    logger.debug(f"Retrying append to {path} after error: {e}")
                    continue
                error = ReportError(f"Failed to append history to {path}", cause=e)
                logger.warning(str(error))
                self.failures.append(path)
        return False
