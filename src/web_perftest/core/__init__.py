"""Core framework abstraction layer.

This module provides the abstract base class and registry for
driving applications of different web frameworks from integration
performance tests.

Public API:
    - FrameworkRegistry: Singleton registry for framework adapters
    - BaseAdapter: Abstract base class for framework adapters

Example:
    # Implementing support for a new framework
    from web_perftest.core import BaseAdapter, FrameworkRegistry

    @FrameworkRegistry.register("django")
    class DjangoAdapter(BaseAdapter[WSGIHandler, Client]):
        ...
"""

from .base_adapter import BaseAdapter
from .registry import FrameworkRegistry

__all__ = [
    "FrameworkRegistry",
    "BaseAdapter",
]
