"""Unit tests for FlaskAdapter."""

import pytest

pytest.importorskip("flask")

from flask import Flask
from flask.testing import FlaskClient

from web_perftest.config import HarnessConfig
from web_perftest.core import FrameworkRegistry
from web_perftest.exceptions import ConfigurationError
from web_perftest.frameworks.flask import FlaskAdapter


class TestFlaskAdapter:
    """Tests for FlaskAdapter class."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.adapter = FlaskAdapter()
        self.app = Flask(__name__)

        @self.app.route("/")
        def index() -> str:
            return "Hello World"

    def test_can_handle_flask_app(self) -> None:
        """Test that adapter can handle Flask applications."""
        assert self.adapter.can_handle(self.app) is True

    def test_cannot_handle_other_objects(self) -> None:
        """Test that adapter cannot handle non-app objects."""
        assert self.adapter.can_handle({}) is False
        assert self.adapter.can_handle(None) is False

    def test_framework_name(self) -> None:
        """Test that the registry named the adapter 'flask'."""
        assert self.adapter.name == "flask"

    def test_get_framework_version(self) -> None:
        """Test that a version string is reported."""
        assert self.adapter.get_framework_version()

    def test_registered_in_framework_registry(self) -> None:
        """Test that adapter is registered in FrameworkRegistry."""
        assert FrameworkRegistry.is_registered("flask")
        assert FrameworkRegistry.get("flask") == FlaskAdapter

    def test_create_client(self) -> None:
        """Test that the Werkzeug test client is returned."""
        client = self.adapter.create_client(self.app)

        assert isinstance(client, FlaskClient)
        assert client.get("/").data == b"Hello World"

    def test_prepare_app_with_caching(self) -> None:
        """Test production-like settings with caching enabled."""
        self.app.debug = True
        self.adapter.prepare_app(self.app, HarnessConfig(perform_caching=True))

        assert self.app.debug is False
        assert self.app.config["PROPAGATE_EXCEPTIONS"] is True
        assert self.app.config["PERFORM_CACHING"] is True
        assert self.app.config["TEMPLATES_AUTO_RELOAD"] is False

    def test_prepare_app_without_caching(self) -> None:
        """Test that disabling caching reloads templates."""
        self.adapter.prepare_app(self.app, HarnessConfig(perform_caching=False))

        assert self.app.config["PERFORM_CACHING"] is False
        assert self.app.config["TEMPLATES_AUTO_RELOAD"] is True


class TestFlaskAdapterAutoDetect:
    """Tests for auto-detection functionality."""

    def test_auto_detect_flask(self) -> None:
        """Test that Flask app is auto-detected."""
        from web_perftest import frameworks  # noqa: F401

        adapter = FrameworkRegistry.auto_detect(Flask(__name__))

        assert adapter is not None
        assert adapter.name == "flask"

    def test_for_app(self) -> None:
        """Test that for_app returns the Flask adapter."""
        from web_perftest import frameworks  # noqa: F401

        assert isinstance(FrameworkRegistry.for_app(Flask(__name__)), FlaskAdapter)

    def test_for_app_unsupported(self) -> None:
        """Test that an unsupported application raises ConfigurationError."""
        from web_perftest import frameworks  # noqa: F401

        with pytest.raises(ConfigurationError, match="Could not detect framework"):
            FrameworkRegistry.for_app(object())
