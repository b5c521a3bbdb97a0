"""Flask framework adapter.

This module provides the Flask-specific implementation of the
framework adapter interface.
"""

import logging
from typing import Any, TYPE_CHECKING

from ...core import BaseAdapter, FrameworkRegistry

if TYPE_CHECKING:
    from flask import Flask
    from flask.testing import FlaskClient

    from ...config import HarnessConfig

logger = logging.getLogger(__name__)


@FrameworkRegistry.register("flask")
class FlaskAdapter(BaseAdapter["Flask", "FlaskClient"]):
    """Flask framework adapter.

    Drives Flask applications through Werkzeug's test client.

    Example:
        from flask import Flask
        from web_perftest import IntegrationPerformanceTest

        app = Flask(__name__)

        class HomepageTest(IntegrationPerformanceTest):
            app = app

            def test_homepage(self):
                self.get("/")
    """

    distribution = "flask"

    def create_client(self, app: "Flask") -> "FlaskClient":
        """Create a Werkzeug test client for the app.

        Args:
            app: The Flask application instance.

        Returns:
            The app's test client.
        """
        return app.test_client()

    def prepare_app(self, app: "Flask", config: "HarnessConfig") -> None:
        """Apply production-like settings to a Flask app.

        Exceptions are propagated so a failing view surfaces as an
        execution error instead of a 500 response.

        Args:
            app: The Flask application instance.
            config: The harness configuration.
        """
        app.debug = False
        app.config["PROPAGATE_EXCEPTIONS"] = True
        app.config["PERFORM_CACHING"] = config.perform_caching
        app.config["TEMPLATES_AUTO_RELOAD"] = not config.perform_caching
        logger.debug(
            f"Prepared Flask app {app.name} (perform_caching={config.perform_caching})"
        )

    def can_handle(self, app: Any) -> bool:
        try:
            from flask import Flask
        except ImportError:
            return False
        return isinstance(app, Flask)
