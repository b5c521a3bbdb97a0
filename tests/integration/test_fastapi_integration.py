"""Integration tests for FastAPI performance tests."""

import io

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi import FastAPI, Request

from web_perftest import Harness, IntegrationPerformanceTest, TestStatus
from web_perftest.models import MetricKind
from web_perftest.sinks.console import ConsoleSink
from web_perftest.sinks.history import read_history


def create_app() -> FastAPI:
    app = FastAPI(debug=True)

    @app.get("/")
    async def root() -> dict:
        return {"message": "Hello World"}

    @app.get("/api/data")
    async def get_data(request: Request) -> dict:
        return {"data": [1, 2, 3], "cached": request.app.state.perform_caching}

    @app.post("/api/submit")
    async def submit_data(data: dict) -> dict:
        return {"received": data}

    @app.get("/error")
    async def error() -> dict:
        raise RuntimeError("handler failed")

    return app


class TestFastAPIIntegration:
    """Integration tests running FastAPI requests through the harness."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.app = create_app()
        self.stream = io.StringIO()
        self.responses = []

    def _run(self, test_cls, config, capabilities, mode="benchmark"):
        harness = Harness(
            config,
            mode=mode,
            sinks=[ConsoleSink(config=config, stream=self.stream)],
            capabilities=capabilities,
        )
        return harness.run(test_cls.test_cases())

    def test_requests_are_measured(self, config, no_capabilities) -> None:
        """Test GET and POST requests through the TestClient."""
        responses = self.responses

        class ApiTest(IntegrationPerformanceTest):
            app = self.app

            def test_root(self) -> None:
                self.get("/")
                responses.append(self.response.json())

            def test_submit(self) -> None:
                self.post("/api/submit", json={"key": "value"})
                responses.append(self.response.json())

        result = self._run(ApiTest, config, no_capabilities)

        assert [o.status for o in result.outcomes] == [TestStatus.PASSED, TestStatus.PASSED]
        assert {"message": "Hello World"} in responses
        assert {"received": {"key": "value"}} in responses
        assert "ApiTest#test_root (" in self.stream.getvalue()

    def test_environment_applied_to_app(self, config, no_capabilities) -> None:
        """Test that the caching flag reaches the application."""
        responses = self.responses

        class DataTest(IntegrationPerformanceTest):
            app = self.app

            def test_data(self) -> None:
                responses.append(self.get("/api/data").json())

        self._run(DataTest, config.merge(perform_caching=False), no_capabilities)

        assert self.app.debug is False
        assert responses[-1]["cached"] is False

    def test_server_error_fails_the_test(self, config, no_capabilities) -> None:
        """Test that handler exceptions surface as execution errors."""

        class ErrorTest(IntegrationPerformanceTest):
            app = self.app

            def test_error(self) -> None:
                self.get("/error")

        result = self._run(ErrorTest, config, no_capabilities)

        assert result.outcomes[0].status is TestStatus.FAILED
        assert "ErrorTest#test_error ERROR:" in self.stream.getvalue()

    def test_benchmark_history(self, config, no_capabilities) -> None:
        """Test that default sinks persist request timings."""

        class RootTest(IntegrationPerformanceTest):
            app = self.app

            def test_root(self) -> None:
                self.get("/")

        harness = Harness(config, mode="benchmark", capabilities=no_capabilities)
        harness.sinks[0] = ConsoleSink(config=config, stream=self.stream)
        harness.run(RootTest.test_cases())

        records = read_history(harness.sinks[1].path_for("RootTest#test_root", MetricKind.WALL_TIME))
        assert len(records) == 4
        assert "fastapi-" in records[0].framework
