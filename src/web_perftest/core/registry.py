"""Registry of web framework adapters.

Adapters register themselves by framework name when their package is
imported. Integration tests and the test environment look adapters up
by the application object they are given.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING, Type

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from .base_adapter import BaseAdapter

logger = logging.getLogger(__name__)

AdapterClass = Type["BaseAdapter"]


class FrameworkRegistry:
    """Class-level registry mapping framework names to adapters.

    One adapter instance is kept per framework and shared by every
    test case of a harness run.

    Example:
        @FrameworkRegistry.register("flask")
        class FlaskAdapter(BaseAdapter):
            ...

        client = FrameworkRegistry.for_app(app).create_client(app)
    """

    _adapters: Dict[str, AdapterClass] = {}
    _instances: Dict[str, "BaseAdapter"] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[AdapterClass], AdapterClass]:
        """Decorator registering an adapter class under a framework name.

        Registering a name again replaces the adapter and drops the
        cached instance.
        """

        def decorator(adapter_cls: AdapterClass) -> AdapterClass:
            adapter_cls.name = name
            cls._adapters[name] = adapter_cls
            cls._instances.pop(name, None)
            logger.debug(f"Registered framework adapter: {name} -> {adapter_cls.__name__}")
            return adapter_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> AdapterClass:
        """Adapter class registered for a framework.

        Raises:
            KeyError: If the framework is not registered.
        """
        try:
            return cls._adapters[name]
        except KeyError:
            raise KeyError(
                f"No adapter registered for framework '{name}'. "
                f"Available frameworks: {cls.list_frameworks()}"
            ) from None

    @classmethod
    def get_instance(cls, name: str) -> "BaseAdapter":
        """Shared adapter instance for a framework, created on first use."""
        if name not in cls._instances:
            cls._instances[name] = cls.get(name)()
        return cls._instances[name]

    @classmethod
    def list_frameworks(cls) -> List[str]:
        return list(cls._adapters)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._adapters

    @classmethod
    def auto_detect(cls, app: Any) -> Optional["BaseAdapter"]:
        """Adapter handling the given application, or None.

        Adapters are tried in registration order. An adapter whose
        detection raises is treated as not matching.
        """
        for name in cls.list_frameworks():
            adapter = cls.get_instance(name)
            try:
                matched = adapter.can_handle(app)
            except Exception as e:
                logger.debug(f"Adapter {name} failed to inspect {type(app).__name__}: {e}")
                continue
            if matched:
                logger.debug(f"Detected framework {name} for {type(app).__name__}")
                return adapter
        return None

    @classmethod
    def for_app(cls, app: Any) -> "BaseAdapter":
        """Adapter handling the given application.

        Raises:
            ConfigurationError: If no registered adapter handles the app.
        """
        adapter = cls.auto_detect(app)
        if adapter is None:
            raise ConfigurationError(
                f"Could not detect framework for application type: {type(app).__name__}. "
                f"Supported frameworks: {cls.list_frameworks()}"
            )
        return adapter

    @classmethod
    def clear(cls) -> None:
        """Forget every adapter (mainly for testing)."""
        cls._adapters.clear()
        cls._instances.clear()
