"""Flask framework integration for web-perftest.

Public API:
    - FlaskAdapter: Framework adapter for Flask applications
"""

from .adapter import FlaskAdapter

__all__ = [
    "FlaskAdapter",
]
