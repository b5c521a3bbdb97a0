"""Flask demo for web-perftest.

This example defines a small Flask application together with its
performance tests.

Usage:
    pip install "web-perftest[flask]"
    perftest run examples/flask_demo.py
    perftest run examples/flask_demo.py --mode profile --format graph_html

Benchmark history is appended to tmp/performance/*.csv and profile
reports are written next to it.
"""

import logging
import time

from flask import Flask, jsonify, request

from web_perftest import IntegrationPerformanceTest, performance_test

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = Flask(__name__)

USERS = [{"id": i, "name": f"User {i}"} for i in range(200)]


@app.route("/")
def index():
    return jsonify({"message": "Hello, World!"})


@app.route("/slow")
def slow_endpoint():
    time.sleep(0.02)
    return jsonify({"message": "This was slow"})


@app.route("/api/users")
def list_users():
    limit = int(request.args.get("limit", 50))
    return jsonify({"users": sorted(USERS, key=lambda u: u["name"])[:limit]})


@app.route("/api/users", methods=["POST"])
def create_user():
    data = request.get_json() or {}
    return jsonify({"id": len(USERS), "name": data.get("name", "")}), 201


class BrowsingTest(IntegrationPerformanceTest):
    app = app

    def test_homepage(self):
        self.get("/")

    def test_slow_page(self):
        self.get("/slow")


class UsersApiTest(IntegrationPerformanceTest):
    app = app
    profile_options = {"benchmark_runs": 8}

    def test_list(self):
        self.get("/api/users", query_string={"limit": 100})

    def test_create(self):
        self.post("/api/users", json={"name": "Ada"})


@performance_test(name="Users#sort")
def sort_users():
    sorted(USERS, key=lambda u: u["name"], reverse=True)
