"""Framework integrations for web-perftest.

Importing this package registers an adapter for every supported web
framework that is installed:

    - flask: requests through Werkzeug's test client
    - fastapi: requests through Starlette's TestClient

Frameworks that are not installed are skipped.
"""

import importlib
import logging
from typing import List

logger = logging.getLogger(__name__)

# Framework name -> module that must be importable for the adapter
SUPPORTED_FRAMEWORKS = {
    "flask": "flask",
    "fastapi": "fastapi",
}

_registered: List[str] = []


def discover_frameworks() -> List[str]:
    """Register the adapters of all installed frameworks.

    Returns:
        Names of the frameworks with a registered adapter.
    """
    for name, requirement in SUPPORTED_FRAMEWORKS.items():
        if name in _registered:
            continue
        try:
            importlib.import_module(requirement)
        except ImportError:
            logger.debug(f"{name} is not installed, skipping its adapter")
            continue
        importlib.import_module(f"{__name__}.{name}")
        _registered.append(name)
        logger.debug(f"Registered {name} integration")
    return list(_registered)


discover_frameworks()


__all__ = [
    "SUPPORTED_FRAMEWORKS",
    "discover_frameworks",
]
