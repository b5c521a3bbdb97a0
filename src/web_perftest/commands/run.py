"""``perftest run``: run performance tests through the harness."""

import argparse
from typing import Any, Dict

from ..config import PROFILE_FORMATS, HarnessConfig
from ..exceptions import ConfigurationError
from ..harness import Harness
from ..modes import list_modes
from .common import usage_error


def add_parser(subparsers: Any, name: str) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        name,
        help="Run performance tests",
        description=(
            "Run performance tests in benchmark or profile mode. Targets are "
            "module names, module:Class references or paths to .py files. "
            "Options default to the PERF_* environment variables."
        ),
    )
    parser.add_argument("targets", nargs="+", help="Test modules, classes or files")
    parser.add_argument(
        "-m",
        "--mode",
        default="benchmark",
        choices=sorted(list_modes()),
        help="Mode to run in (default: benchmark)",
    )
    parser.add_argument("-o", "--output", help="Directory for history files and reports")
    parser.add_argument(
        "-k",
        "--include",
        action="append",
        metavar="PATTERN",
        help="Only run tests matching this glob pattern (repeatable)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        metavar="PATTERN",
        help="Skip tests matching this glob pattern (repeatable)",
    )
    parser.add_argument("--timeout", type=float, help="Deadline per execution in seconds")
    parser.add_argument(
        "--format",
        action="append",
        choices=PROFILE_FORMATS,
        dest="formats",
        help="Profile report format (repeatable)",
    )
    parser.add_argument("--runs", type=int, help="Number of measured runs")
    parser.set_defaults(subparser=parser)
    return parser


def build_config(args: argparse.Namespace) -> HarnessConfig:
    """Environment configuration with command line overrides applied.

    Raises:
        ConfigurationError: If a value is invalid.
    """
    overrides: Dict[str, Any] = {}
    if args.output:
        overrides["output_path"] = args.output
    if args.include:
        overrides["include_tests"] = args.include
    if args.exclude:
        overrides["exclude_tests"] = args.exclude
    if args.timeout is not None:
        overrides["timeout_seconds"] = args.timeout
    if args.formats:
        overrides["profile_formats"] = args.formats
    if args.runs is not None:
        key = "profile_runs" if args.mode == "profile" else "benchmark_runs"
        overrides[key] = args.runs

    config = HarnessConfig.from_env()
    return config.merge(**overrides) if overrides else config


def execute(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        config = build_config(args)
    except ConfigurationError as e:
        return usage_error(args.subparser, e.message)
    result = Harness(config, mode=args.mode).run_targets(args.targets)
    print(result.summary())
    return result.exit_code
