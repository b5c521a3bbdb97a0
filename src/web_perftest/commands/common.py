"""Helpers shared by the command line tools."""

import argparse
import sys
from typing import Any, Dict, List, Tuple

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def parse_times(value: str) -> int:
    """Parse a repetition count; must be a positive integer."""
    times = int(value)
    if times < 1:
        raise ValueError(f"times must be positive, got {times}")
    return times


def split_times(args: List[str]) -> Tuple[int, List[str]]:
    """Split an optional leading repetition count off positional args.

    ``["10", "a()", "b()"]`` gives ``(10, ["a()", "b()"])``; without a
    leading count the default of 1 is used.
    """
    if args and args[0].isdigit():
        return parse_times(args[0]), args[1:]
    return 1, list(args)


def expression_namespace() -> Dict[str, Any]:
    """Globals for evaluating command line expressions.

    The working directory is importable so expressions can reference the
    application under test (e.g. ``import app; app.render()``).
    """
    if "" not in sys.path:
        sys.path.insert(0, "")
    return {"__name__": "__perftest__"}


def usage_error(parser: argparse.ArgumentParser, message: str) -> int:
    """Report an argument error and return the usage exit code."""
    parser.print_usage(sys.stderr)
    print(f"{parser.prog}: error: {message}", file=sys.stderr)
    return EXIT_USAGE
