"""Command line interface.

Usage:
    perftest run [-m benchmark|profile] [-o DIR] [-k PATTERN] targets...
    perftest benchmarker [times] expr...
    perftest profiler expr [times] [flat|graph|graph_html|tree] [-o FILE]

Exit codes: 0 on success, 1 when an expression raises or a test case does
not pass, 2 on argument errors.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .. import __version__
from ..exceptions import WebPerfTestError
from . import benchmarker, profiler, run
from .common import EXIT_FAILURE, EXIT_OK, EXIT_USAGE

logger = logging.getLogger(__name__)

COMMANDS = {
    "run": run,
    "benchmarker": benchmarker,
    "profiler": profiler,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perftest",
        description="Performance test harness for Python web applications.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug messages to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True
    for name, command in COMMANDS.items():
        command.add_parser(subparsers, name)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the ``perftest`` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        return COMMANDS[args.command].execute(args, parser)
    except WebPerfTestError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"perftest: error: {e}", file=sys.stderr)
        return EXIT_FAILURE


__all__ = ["main", "build_parser", "EXIT_OK", "EXIT_FAILURE", "EXIT_USAGE"]
