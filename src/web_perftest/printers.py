"""Renderers for ProfileReport.

Every printer is a pure function of a report: collection happens once per
measured run and the same report can be rendered any number of times in
any format.

Formats:
    - flat: one row per method, sorted by self time
    - graph: per-method blocks with callers above and callees below
    - graph_html: the graph view as a standalone HTML page
    - tree: callgrind-compatible cost/callee records for external
      call-graph viewers
"""

import html
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Type

from .exceptions import ConfigurationError
from .models import MethodKey, ProfileNode, ProfileReport

logger = logging.getLogger(__name__)

_printer_registry: Dict[str, Type["BasePrinter"]] = {}

_RULE = "-" * 96


def register_printer(name: str) -> Callable[[Type["BasePrinter"]], Type["BasePrinter"]]:
    """Decorator to register a printer class under a format name."""

    def decorator(cls: Type["BasePrinter"]) -> Type["BasePrinter"]:
        cls.format_name = name
        _printer_registry[name] = cls
        return cls

    return decorator


def get_printer(name: str, min_percent: float = 0.0) -> "BasePrinter":
    """Create a printer by format name.

    Raises:
        ConfigurationError: If the format is unknown.
    """
    if name not in _printer_registry:
        raise ConfigurationError(
            f"Unknown profile format '{name}'. Available formats: {list_printers()}"
        )
    return _printer_registry[name](min_percent=min_percent)


def list_printers() -> List[str]:
    return list(_printer_registry.keys())


def render(report: ProfileReport, format: str = "flat", min_percent: float = 0.0) -> str:
    """Render a report in the given format."""
    return get_printer(format, min_percent=min_percent).render(report)


def _percent(part: float, total: float) -> float:
    if total <= 0:
        return 0.0
    return part / total * 100.0


class BasePrinter(ABC):
    """Abstract base class for report printers.

    Attributes:
        min_percent: Methods below this share of the total are hidden.
        extension: File extension used when the report is saved.
    """

    format_name: str = ""
    extension: str = "txt"

    def __init__(self, min_percent: float = 0.0) -> None:
        self.min_percent = min_percent

    @abstractmethod
    def render(self, report: ProfileReport) -> str:
        """Render the report as a string."""

    def _visible(self, value: float, total: float) -> bool:
        return _percent(value, total) >= self.min_percent


@register_printer("flat")
class FlatPrinter(BasePrinter):
    """One row per method sorted descending by self time."""

    def render(self, report: ProfileReport) -> str:
        total = report.total_time
        lines = [
            f"Measure Mode: {report.measure}",
            f"Total: {total:.6f}",
            "",
            f"{'%self':>7} {'total':>10} {'self':>10} {'calls':>9}  name",
        ]
        for node in report.sorted_nodes("self_time"):
            if not self._visible(node.self_time, total):
                continue
            lines.append(
                f"{_percent(node.self_time, total):7.2f} "
                f"{node.total_time:10.6f} "
                f"{node.self_time:10.6f} "
                f"{self._calls(node):>9}  "
                f"{node.key.label}"
            )
        lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _calls(node: ProfileNode) -> str:
        if node.primitive_calls != node.calls:
            return f"{node.calls}/{node.primitive_calls}"
        return str(node.calls)


@register_printer("graph")
class GraphPrinter(BasePrinter):
    """Call-graph adjacency view.

    Each block lists the callers of a method above it and its callees
    below it. Caller lines show the time the method spent when called
    from that caller; callee lines show the time the callee spent when
    called from the method.
    """

    def render(self, report: ProfileReport) -> str:
        total = report.total_time
        lines = [
            f"Measure Mode: {report.measure}",
            f"Total Time: {total:.6f}",
            "",
            f"{'%total':>8} {'%self':>8} {'total':>10} {'self':>10} {'calls':>13}   name",
            _RULE,
        ]
        for node in report.sorted_nodes("total_time"):
            if not self._visible(node.total_time, total):
                continue
            for edge in sorted(report.callers_of(node.key), key=lambda e: -e.total_time):
                lines.append(
                    f"{'':>8} {'':>8} {edge.total_time:10.6f} {edge.self_time:10.6f} "
                    f"{f'{edge.calls}/{node.calls}':>13}     {edge.caller.label}"
                )
            lines.append(
                f"{_percent(node.total_time, total):7.2f}% "
                f"{_percent(node.self_time, total):7.2f}% "
                f"{node.total_time:10.6f} {node.self_time:10.6f} "
                f"{node.calls:>13}   {node.key.label}"
            )
            for edge in sorted(report.callees_of(node.key), key=lambda e: -e.total_time):
                callee = report.nodes.get(edge.callee)
                callee_calls = callee.calls if callee is not None else edge.calls
                lines.append(
                    f"{'':>8} {'':>8} {edge.total_time:10.6f} {edge.self_time:10.6f} "
                    f"{f'{edge.calls}/{callee_calls}':>13}     {edge.callee.label}"
                )
            lines.append(_RULE)
        lines.append("")
        return "\n".join(lines)


@register_printer("graph_html")
class GraphHtmlPrinter(BasePrinter):
    """The graph view as a standalone HTML page."""

    extension = "html"

    def render(self, report: ProfileReport) -> str:
        total = report.total_time
        anchors = {key: f"m{index}" for index, key in enumerate(report.nodes)}
        rows: List[str] = []

        for node in report.sorted_nodes("total_time"):
            if not self._visible(node.total_time, total):
                continue
            for edge in report.callers_of(node.key):
                rows.append(
                    self._edge_row(edge.caller, edge.total_time, edge.self_time,
                                   f"{edge.calls}/{node.calls}", anchors)
                )
            rows.append(
                '<tr class="method">'
                f'<td>{_percent(node.total_time, total):.2f}%</td>'
                f'<td>{_percent(node.self_time, total):.2f}%</td>'
                f"<td>{node.total_time:.6f}</td>"
                f"<td>{node.self_time:.6f}</td>"
                f"<td>{node.calls}</td>"
                f'<td><a name="{anchors[node.key]}">{html.escape(node.key.label)}</a></td>'
                "</tr>"
            )
            for edge in report.callees_of(node.key):
                callee = report.nodes.get(edge.callee)
                callee_calls = callee.calls if callee is not None else edge.calls
                rows.append(
                    self._edge_row(edge.callee, edge.total_time, edge.self_time,
                                   f"{edge.calls}/{callee_calls}", anchors)
                )
            rows.append('<tr class="break"><td colspan="6"></td></tr>')

        table_rows = "\n        ".join(rows)

        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Call Graph ({html.escape(report.measure)})</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            color: #333;
            margin: 20px;
        }}
        table {{
            border-collapse: collapse;
            font-size: 12px;
        }}
        th, td {{
            padding: 2px 8px;
            text-align: right;
        }}
        td:last-child, th:last-child {{
            text-align: left;
        }}
        tr.method {{
            background-color: #f8f9fa;
            font-weight: 600;
        }}
        tr.edge td:last-child {{
            padding-left: 24px;
        }}
        tr.break td {{
            border-top: 1px solid #ddd;
        }}
    </style>
</head>
<body>
    <h1>Call Graph</h1>
    <p>Measure Mode: {html.escape(report.measure)} &middot; Total Time: {total:.6f}</p>
    <table>
        <tr><th>%total</th><th>%self</th><th>total</th><th>self</th><th>calls</th><th>name</th></tr>
        {table_rows}
    </table>
</body>
</html>"""

    @staticmethod
    def _edge_row(
        key: MethodKey,
        total_time: float,
        self_time: float,
        calls: str,
        anchors: Dict[MethodKey, str],
    ) -> str:
        label = html.escape(key.label)
        if key in anchors:
            label = f'<a href="#{anchors[key]}">{label}</a>'
        return (
            '<tr class="edge"><td></td><td></td>'
            f"<td>{total_time:.6f}</td><td>{self_time:.6f}</td>"
            f"<td>{calls}</td><td>{label}</td></tr>"
        )


@register_printer("tree")
class CallTreePrinter(BasePrinter):
    """Callgrind-format serialization.

    Costs are integer microseconds of the report's clock. Functions are
    named by name, file and line, built-ins by name only. Each function
    block holds its self cost line followed by one cfl/cfn/calls record
    per callee with the inclusive cost of those calls. Every method is
    written regardless of min_percent.
    """

    extension = "callgrind"

    def __init__(self, min_percent: float = 0.0, creator: str = "web-perftest") -> None:
        super().__init__(min_percent=min_percent)
        self.creator = creator

    @staticmethod
    def _cost(seconds: float) -> int:
        return int(round(seconds * 1_000_000))

    @staticmethod
    def _file(key: MethodKey) -> str:
        return "<built-in>" if key.is_builtin else key.filename

    @staticmethod
    def _function(key: MethodKey) -> str:
        # A name is unique only together with its location
        if key.is_builtin:
            return key.name
        return f"{key.name} {key.filename}:{key.lineno}"

    def render(self, report: ProfileReport) -> str:
        lines = [
            "version: 1",
            f"creator: {self.creator}",
            "positions: line",
            f"events: {report.measure}",
            f"summary: {self._cost(report.total_time)}",
            "",
        ]
        for node in report.sorted_nodes("total_time"):
            key = node.key
            lines.append(f"fl={self._file(key)}")
            lines.append(f"fn={self._function(key)}")
            lines.append(f"{key.lineno} {self._cost(node.self_time)}")
            for edge in report.callees_of(key):
                callee = edge.callee
                lines.append(f"cfl={self._file(callee)}")
                lines.append(f"cfn={self._function(callee)}")
                lines.append(f"calls={edge.calls} {callee.lineno}")
                lines.append(f"{key.lineno} {self._cost(edge.total_time)}")
            lines.append("")
        return "\n".join(lines)
