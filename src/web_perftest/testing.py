"""Test definition API.

Performance tests are written either as PerformanceTest subclasses,
where every ``test_*`` method is a test case, or as plain functions
marked with the @performance_test decorator.

Example:
    from web_perftest import PerformanceTest, performance_test

    class ReportTest(PerformanceTest):
        profile_options = {"benchmark_runs": 10}

        def setup(self):
            self.rows = load_rows()

        def test_render(self):
            render_report(self.rows)

    @performance_test(name="Serializer#dump")
    def dump_orders():
        serialize(ORDERS)
"""

import logging
from typing import Any, Callable, ClassVar, Dict, List, Optional, TypeVar

from .exceptions import ConfigurationError
from .models import TestCase

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

TEST_CASE_ATTR = "__perftest__"


class PerformanceTest:
    """Base class for class-based performance tests.

    A fresh instance is created per test method. setup() and teardown()
    run around every execution of the method, outside the measured
    window.

    Attributes:
        profile_options: Configuration overrides applied to every test
            case of the class (e.g. {"benchmark_runs": 10}).
    """

    __test__ = False

    profile_options: ClassVar[Dict[str, Any]] = {}

    def __init__(self, method_name: str = "") -> None:
        self.method_name = method_name

    def setup(self) -> None:
        """Prepare state before each execution. Override in subclasses."""

    def teardown(self) -> None:
        """Clean up after each execution. Override in subclasses."""

    @classmethod
    def test_names(cls) -> List[str]:
        """Names of the test methods, in alphabetical order."""
        return sorted(
            name
            for name in dir(cls)
            if name.startswith("test") and callable(getattr(cls, name, None))
            and name not in ("test_names", "test_cases")
        )

    @classmethod
    def test_cases(cls) -> List[TestCase]:
        """Build one TestCase per test method, named ``Class#method``."""
        cases = []
        for name in cls.test_names():
            instance = cls(name)
            cases.append(
                TestCase(
                    name=f"{cls.__name__}#{name}",
                    body=getattr(instance, name),
                    setup=instance.setup,
                    teardown=instance.teardown,
                    app=instance.get_app(),
                    options=dict(cls.profile_options),
                )
            )
        return cases

    def get_app(self) -> Optional[Any]:
        """Web application driven by this test, if any."""
        return None


class IntegrationPerformanceTest(PerformanceTest):
    """Performance test issuing requests against a web application.

    Set ``app`` to a Flask or FastAPI application. A test client is
    created in setup() through the matching framework adapter.

    Attributes:
        app: The web application under test.
        client: The framework's test client (set by setup()).
        response: The last response received.

    Example:
        class BrowsingTest(IntegrationPerformanceTest):
            app = create_app()

            def test_homepage(self):
                self.get("/")
    """

    app: ClassVar[Any] = None

    def __init__(self, method_name: str = "") -> None:
        super().__init__(method_name)
        self.client: Any = None
        self.response: Any = None

    def get_app(self) -> Optional[Any]:
        return type(self).app

    def setup(self) -> None:
        self.client = self.create_client()

    def teardown(self) -> None:
        close = getattr(self.client, "close", None)
        if callable(close):
            close()
        self.client = None

    def create_client(self) -> Any:
        """Create a test client for ``app`` via the framework registry.

        Raises:
            ConfigurationError: If app is unset or no adapter handles it.
        """
        from . import frameworks  # noqa: F401
        from .core import FrameworkRegistry

        app = self.get_app()
        if app is None:
            raise ConfigurationError(f"{type(self).__name__}.app is not set")
        return FrameworkRegistry.for_app(app).create_client(app)

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Issue a request and remember the response."""
        if self.client is None:
            self.client = self.create_client()
        self.response = getattr(self.client, method.lower())(path, **kwargs)
        return self.response

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Any:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def head(self, path: str, **kwargs: Any) -> Any:
        return self.request("HEAD", path, **kwargs)


def performance_test(
    name: Optional[str] = None,
    setup: Optional[Callable[[], Any]] = None,
    teardown: Optional[Callable[[], Any]] = None,
    **options: Any,
) -> Callable[[F], F]:
    """Decorator marking a zero-argument function as a performance test.

    The function itself is returned unchanged; the harness finds it
    through the attached TestCase when loading the module.

    Args:
        name: Test name. Uses the function's qualified name if None.
        setup: Optional hook run before every execution.
        teardown: Optional hook run after every execution.
        **options: Configuration overrides for this test.

    Returns:
        Decorator function that registers the target function.

    Example:
        @performance_test(benchmark_runs=10)
        def render_homepage():
            ...
    """

    def decorator(func: F) -> F:
        test_case = TestCase(
            name=name or func.__qualname__,
            body=func,
            setup=setup,
            teardown=teardown,
            options=dict(options),
        )
        setattr(func, TEST_CASE_ATTR, test_case)
        logger.debug(f"Registered performance test: {test_case.name}")
        return func

    return decorator


def get_test_case(func: Callable[..., Any]) -> Optional[TestCase]:
    """Return the TestCase attached by @performance_test, if any."""
    test_case = getattr(func, TEST_CASE_ATTR, None)
    return test_case if isinstance(test_case, TestCase) else None
