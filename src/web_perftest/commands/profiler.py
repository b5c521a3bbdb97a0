"""``perftest profiler``: profile a Python expression.

Example:
    $ perftest profiler "render_page()" 10 graph -o render.txt

The flat, graph and tree formats come from a cProfile call graph
measured in process time; graph_html is pyinstrument's interactive
sampled call tree.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable, List, Tuple

from ..config import PROFILE_FORMATS
from ..printers import render
from ..profiler import CallGraphProfiler, SamplingProfiler
from .common import EXIT_FAILURE, EXIT_OK, expression_namespace, parse_times, usage_error

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "flat"


def add_parser(subparsers: Any, name: str) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        name,
        help="Profile an expression",
        description="Run EXPR TIMES times (default 1) under the profiler and print a report.",
    )
    parser.add_argument("expr", help="Python statement to profile")
    parser.add_argument(
        "rest",
        nargs="*",
        metavar="[times] [format]",
        help=f"Repetition count and report format ({'|'.join(PROFILE_FORMATS)})",
    )
    parser.add_argument("-o", "--output", metavar="FILE", help="Write the report to FILE")
    parser.add_argument(
        "--min-percent",
        type=float,
        default=0.0,
        help="Hide methods below this share of total time",
    )
    parser.set_defaults(subparser=parser)
    return parser


def parse_rest(rest: List[str]) -> Tuple[int, str]:
    """Parse the optional ``[times] [format]`` arguments.

    Raises:
        ValueError: If an argument is neither a count nor a known format.
    """
    times, format_name = 1, DEFAULT_FORMAT
    if len(rest) > 2:
        raise ValueError(f"unexpected arguments: {' '.join(rest[2:])}")
    for value in rest:
        if value.isdigit():
            times = parse_times(value)
        elif value in PROFILE_FORMATS:
            format_name = value
        else:
            raise ValueError(
                f"invalid argument {value!r}: expected a count or one of {', '.join(PROFILE_FORMATS)}"
            )
    return times, format_name


def compile_body(expr: str, times: int) -> Callable[[], None]:
    code = compile(expr, "<perftest>", "exec")
    namespace = expression_namespace()

    def body() -> None:
        for _ in range(times):
            exec(code, namespace)

    return body


def profile_expression(
    expr: str,
    times: int = 1,
    format_name: str = DEFAULT_FORMAT,
    min_percent: float = 0.0,
) -> str:
    """Profile an expression and return the rendered report."""
    body = compile_body(expr, times)

    if format_name == "graph_html":
        sampler = SamplingProfiler()
        sampler.runcall(body)
        return sampler.get_html_report()

    profiler = CallGraphProfiler()
    profiler.runcall(body)
    return render(profiler.create_report(), format_name, min_percent=min_percent)


def execute(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        times, format_name = parse_rest(args.rest)
        compile(args.expr, "<perftest>", "exec")
    except (ValueError, SyntaxError) as e:
        return usage_error(args.subparser, str(e))

    try:
        output = profile_expression(args.expr, times, format_name, args.min_percent)
    except Exception as e:
        logger.debug(f"Profiling {args.expr!r} failed", exc_info=True)
        print(f"{args.expr}: ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Report written to {args.output}")
    else:
        sys.stdout.write(output)
    return EXIT_OK
