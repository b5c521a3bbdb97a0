"""``perftest benchmarker``: time Python expressions with timeit.

Example:
    $ perftest benchmarker 1000 "sorted(range(1000))" "list(range(1000))"
    sorted(range(1000)): 9.13 ms (1000 times)
    list(range(1000)): 4.02 ms (1000 times)
"""

import argparse
import logging
import sys
import timeit
from typing import Any

from .common import EXIT_FAILURE, EXIT_OK, expression_namespace, split_times, usage_error

logger = logging.getLogger(__name__)


def add_parser(subparsers: Any, name: str) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        name,
        help="Time expressions",
        description="Run each expression TIMES times (default 1) and print the elapsed wall time.",
    )
    parser.add_argument(
        "args",
        nargs="+",
        metavar="[times] expr",
        help="Optional repetition count followed by one or more expressions",
    )
    parser.add_argument("-s", "--setup", default="pass", help="Statement run once before timing")
    parser.set_defaults(subparser=parser)
    return parser


def benchmark(expression: str, times: int = 1, setup: str = "pass") -> float:
    """Total wall time in seconds of running an expression ``times`` times."""
    timer = timeit.Timer(expression, setup=setup, globals=expression_namespace())
    return timer.timeit(number=times)


def execute(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        times, expressions = split_times(args.args)
    except ValueError as e:
        return usage_error(args.subparser, str(e))
    if not expressions:
        return usage_error(args.subparser, "no expression given")

    status = EXIT_OK
    for expression in expressions:
        try:
            elapsed = benchmark(expression, times, args.setup)
        except Exception as e:
            logger.debug(f"Benchmark of {expression!r} failed", exc_info=True)
            print(f"{expression}: ERROR: {type(e).__name__}: {e}", file=sys.stderr)
            status = EXIT_FAILURE
            continue
        print(f"{expression}: {elapsed * 1000:.2f} ms ({times} times)")
    return status
