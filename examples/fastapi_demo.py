"""FastAPI demo for web-perftest.

This example defines a FastAPI application with sync and async
endpoints together with its performance tests.

Usage:
    pip install "web-perftest[fastapi]"
    perftest run examples/fastapi_demo.py
    perftest run examples/fastapi_demo.py:ItemsTest -k list --runs 10
"""

import asyncio
import logging
import time
from typing import List, Optional

from fastapi import FastAPI
from pydantic import BaseModel

from web_perftest import IntegrationPerformanceTest

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="web-perftest demo")


class Item(BaseModel):
    name: str
    price: float
    description: Optional[str] = None


ITEMS: List[Item] = [Item(name=f"item-{i}", price=i * 1.5) for i in range(100)]


@app.get("/")
async def root():
    return {"message": "Hello, World!"}


@app.get("/slow")
def slow_endpoint():
    time.sleep(0.02)
    return {"message": "This was slow"}


@app.get("/async-slow")
async def async_slow_endpoint():
    await asyncio.sleep(0.02)
    return {"message": "This was slow too"}


@app.get("/items")
async def list_items(limit: int = 20):
    return ITEMS[:limit]


@app.post("/items", status_code=201)
async def create_item(item: Item):
    return item


class PagesTest(IntegrationPerformanceTest):
    app = app

    def test_root(self):
        self.get("/")

    def test_slow(self):
        self.get("/slow")

    def test_async_slow(self):
        self.get("/async-slow")


class ItemsTest(IntegrationPerformanceTest):
    app = app

    def test_list(self):
        self.get("/items", params={"limit": 100})

    def test_create(self):
        self.post("/items", json={"name": "lamp", "price": 19.9})
