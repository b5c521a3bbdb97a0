"""Test discovery.

Resolves command line targets into test cases. A target is one of:

    - a dotted module name: ``perf.browsing``
    - a module attribute: ``perf.browsing:BrowsingTest``
    - a path to a Python file: ``perf/browsing_test.py``

Within a module, every PerformanceTest subclass defined there and every
function marked with @performance_test is collected.
"""

import importlib
import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Iterable, List

from .exceptions import ConfigurationError
from .models import TestCase
from .testing import PerformanceTest, get_test_case

logger = logging.getLogger(__name__)


def load_module(target: str) -> ModuleType:
    """Import a module by dotted name or file path.

    Raises:
        ConfigurationError: If the module cannot be imported.
    """
    path = Path(target)
    if path.suffix == ".py":
        if not path.is_file():
            raise ConfigurationError(f"Test file not found: {target}")
        module_name = f"_perftest_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ConfigurationError(f"Cannot load test file: {target}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ConfigurationError(f"Failed to load {target}: {e}", cause=e) from e
        return module

    try:
        return importlib.import_module(target)
    except ImportError as e:
        raise ConfigurationError(f"Failed to import {target}: {e}", cause=e) from e


def collect_object(obj: Any) -> List[TestCase]:
    """Test cases defined by a single object, if any."""
    if inspect.isclass(obj) and issubclass(obj, PerformanceTest):
        return obj.test_cases()
    test_case = get_test_case(obj)
    if test_case is not None:
        return [test_case]
    return []


def collect_module(module: ModuleType) -> List[TestCase]:
    """Collect the test cases defined in a module, in definition order."""
    cases: List[TestCase] = []
    for _, obj in vars(module).items():
        if getattr(obj, "__module__", None) != module.__name__:
            continue
        if inspect.isclass(obj) and inspect.isabstract(obj):
            continue
        cases.extend(collect_object(obj))
    return cases


def load_target(target: str) -> List[TestCase]:
    """Resolve one target into its test cases.

    Raises:
        ConfigurationError: If the target cannot be resolved.
    """
    module_part, _, attr = target.partition(":")
    module = load_module(module_part)
    if not attr:
        return collect_module(module)

    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigurationError(f"{module_part} has no attribute {attr}", cause=e) from e

    cases = collect_object(obj)
    if not cases:
        raise ConfigurationError(f"{target} does not define any performance tests")
    return cases


def load_targets(targets: Iterable[str]) -> List[TestCase]:
    """Resolve targets into a list of uniquely named test cases.

    A test name seen twice keeps its first definition.
    """
    seen: Dict[str, TestCase] = {}
    for target in targets:
        for test_case in load_target(target):
            if test_case.name in seen:
                logger.warning(f"Duplicate test name {test_case.name} in {target}; skipped")
                continue
            seen[test_case.name] = test_case
    logger.debug(f"Loaded {len(seen)} test cases")
    return list(seen.values())
