"""FastAPI framework integration for web-perftest.

Requests are issued through Starlette's TestClient, which requires httpx.

Example:
    from fastapi import FastAPI
    from web_perftest import IntegrationPerformanceTest

    app = FastAPI()

    class ApiTest(IntegrationPerformanceTest):
        app = app

        def test_items(self):
            self.get("/items")
"""

from .adapter import FastAPIAdapter

__all__ = [
    "FastAPIAdapter",
]
