"""FastAPI framework adapter.

This module provides the FastAPI-specific implementation of the
framework adapter interface.
"""

import logging
from typing import Any, TYPE_CHECKING

from ...core import BaseAdapter, FrameworkRegistry

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.testclient import TestClient

    from ...config import HarnessConfig

logger = logging.getLogger(__name__)


@FrameworkRegistry.register("fastapi")
class FastAPIAdapter(BaseAdapter["FastAPI", "TestClient"]):
    """FastAPI framework adapter.

    Drives FastAPI applications through Starlette's TestClient, which
    runs the ASGI app in-process and re-raises server exceptions.
    """

    distribution = "fastapi"

    def create_client(self, app: "FastAPI") -> "TestClient":
        """Create a Starlette test client for the app.

        Args:
            app: The FastAPI application instance.

        Returns:
            A TestClient raising server-side exceptions.
        """
        from starlette.testclient import TestClient

        return TestClient(app, raise_server_exceptions=True)

    def prepare_app(self, app: "FastAPI", config: "HarnessConfig") -> None:
        """Apply production-like settings to a FastAPI app.

        Args:
            app: The FastAPI application instance.
            config: The harness configuration.
        """
        app.debug = False
        app.state.perform_caching = config.perform_caching
        logger.debug(
            f"Prepared FastAPI app {app.title} (perform_caching={config.perform_caching})"
        )

    def can_handle(self, app: Any) -> bool:
        try:
            from fastapi import FastAPI
        except ImportError:
            return False
        return isinstance(app, FastAPI)
