"""Report sinks for harness results.

This module provides the sink registry and base class for rendering
result bundles to a medium.

Public API:
    - ReportSink: Abstract base class for sinks
    - register_sink: Decorator to register custom sinks
    - get_sink: Factory function to get a sink by name
    - list_sinks: List all registered sink names
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Type, TYPE_CHECKING

from .base import ReportSink

if TYPE_CHECKING:
    from ..config import HarnessConfig

logger = logging.getLogger(__name__)

# Registry of sink classes
_sink_registry: Dict[str, Type[ReportSink]] = {}


def register_sink(
    name: str,
) -> Callable[[Type[ReportSink]], Type[ReportSink]]:
    """Decorator to register a sink class.

    Registers a sink class with the given name, allowing it to be
    instantiated via the get_sink() factory function.

    Args:
        name: The sink name (e.g., "console", "csv", "profile").

    Returns:
        Decorator function that registers the sink class.

    Example:
        @register_sink("means")
        class MeansSink(ReportSink):
            def report(self, bundle):
                print(bundle.test_name, bundle.means())
    """

    def decorator(cls: Type[ReportSink]) -> Type[ReportSink]:
        if name in _sink_registry:
            logger.warning(
                f"Sink '{name}' is already registered. Overwriting with {cls.__name__}"
            )
        cls.name = name
        _sink_registry[name] = cls
        logger.debug(f"Registered sink: {name} -> {cls.__name__}")
        return cls

    return decorator


def get_sink(
    name: str,
    config: Optional["HarnessConfig"] = None,
    **kwargs: Any,
) -> ReportSink:
    """Create a sink instance by name.

    Args:
        name: The sink name.
        config: The harness configuration. Uses the default if None.
        **kwargs: Options passed to the sink constructor.

    Returns:
        A configured sink instance.

    Raises:
        KeyError: If the sink name is not registered.
    """
    if name not in _sink_registry:
        raise KeyError(
            f"Sink '{name}' is not registered. Available sinks: {list_sinks()}"
        )

    return _sink_registry[name](config=config, **kwargs)


def list_sinks() -> List[str]:
    """List all registered sink names."""
    return list(_sink_registry.keys())


__all__ = [
    "ReportSink",
    "register_sink",
    "get_sink",
    "list_sinks",
]

# Import sinks to trigger registration
from . import console  # noqa: E402,F401
from . import history  # noqa: E402,F401
from . import profile  # noqa: E402,F401
