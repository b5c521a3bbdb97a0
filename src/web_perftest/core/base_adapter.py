"""Base adapter for framework integration.

This module defines the abstract base class for framework adapters,
which provide the interface between the test harness and specific
web frameworks like Flask or FastAPI.
"""

from abc import ABC, abstractmethod
from importlib import metadata
from typing import Any, Generic, Optional, TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from ..config import HarnessConfig

# Generic type variables for framework-specific types
AppType = TypeVar("AppType")
ClientType = TypeVar("ClientType")


class BaseAdapter(ABC, Generic[AppType, ClientType]):
    """Abstract base class for framework adapters.

    Adapters provide the bridge between the generic harness and
    framework-specific test clients. Each supported framework must have
    its own adapter implementation.

    Generic Parameters:
        AppType: The framework's application type (e.g., Flask).
        ClientType: The framework's test client type (e.g., FlaskClient).

    Example:
        @FrameworkRegistry.register("flask")
        class FlaskAdapter(BaseAdapter[Flask, FlaskClient]):
            def create_client(self, app: Flask) -> FlaskClient:
                return app.test_client()
            ...
    """

    #: Framework name, set by FrameworkRegistry.register
    name: str = ""
    #: Distribution name used to look up the framework version
    distribution: str = ""

    @abstractmethod
    def create_client(self, app: AppType) -> ClientType:
        """Create a test client that issues requests against the app.

        Args:
            app: The framework application instance.

        Returns:
            A client exposing get/post/put/patch/delete/head/options.
        """
        pass

    @abstractmethod
    def prepare_app(self, app: AppType, config: "HarnessConfig") -> None:
        """Apply the test environment to an application.

        Called once per harness invocation before any test case runs.

        Args:
            app: The framework application instance.
            config: The harness configuration (caching flag etc.).
        """
        pass

    def can_handle(self, app: Any) -> bool:
        """Whether ``app`` is an application of this framework."""
        return False

    def get_framework_version(self) -> Optional[str]:
        """Get the installed version of the framework, if known."""
        if not self.distribution:
            return None
        try:
            return metadata.version(self.distribution)
        except metadata.PackageNotFoundError:
            return None
