"""Execution window around one invocation of a test body.

The window arms every collector, invokes the body through the innermost
one, measures the collectors in reverse arming order and releases them,
even when the body raises.
"""

import logging
import signal
import threading
import time
from contextlib import ExitStack, contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from .exceptions import ExecutionTimeout
from .metrics import UNAVAILABLE, MetricCollector
from .models import MeasurementRun

logger = logging.getLogger(__name__)


def deadline_supported() -> bool:
    """Whether a wall-clock deadline can interrupt code in this thread."""
    return (
        hasattr(signal, "setitimer")
        and threading.current_thread() is threading.main_thread()
    )


@contextmanager
def deadline(seconds: Optional[float], label: str = "") -> Iterator[None]:
    """Abort the enclosed block with ExecutionTimeout after ``seconds``.

    Uses SIGALRM, so it only works on the main thread of POSIX systems.
    Elsewhere the block runs without a deadline and a warning is logged.

    Args:
        seconds: Deadline in seconds, or None for no deadline.
        label: Name of the test, used in the error message.

    Raises:
        ExecutionTimeout: If the deadline expires.
    """
    if not seconds:
        yield
        return

    if not deadline_supported():
        logger.warning(
            f"Deadline of {seconds}s for {label or 'execution'} is not supported "
            "outside the main thread of a POSIX system; running without it"
        )
        yield
        return

    def _expire(signum: int, frame: Any) -> None:
        raise ExecutionTimeout(
            f"Execution exceeded deadline of {seconds}s", test_name=label
        )

    previous = signal.signal(signal.SIGALRM, _expire)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


class ExecutionWindow:
    """Wraps one invocation of a test body with a set of collectors.

    Attributes:
        collectors: Collectors sorted by nesting level.
        timeout: Optional wall-clock deadline in seconds.

    Example:
        window = ExecutionWindow(create_collectors(kinds, capabilities))
        run = window.run(test_case.body)
        print(run.values)
    """

    def __init__(
        self,
        collectors: Sequence[MetricCollector] = (),
        timeout: Optional[float] = None,
        label: str = "",
    ) -> None:
        self.collectors: List[MetricCollector] = sorted(
            collectors, key=lambda collector: collector.nesting
        )
        self.timeout = timeout
        self.label = label

    def run(self, body: Callable[[], Any]) -> MeasurementRun:
        """Invoke ``body`` once inside the window.

        Args:
            body: The zero-argument callable to execute.

        Returns:
            The MeasurementRun with every available metric.

        Raises:
            Exception: Whatever ``body`` raises, after all collectors have
                been released.
        """
        measurement = MeasurementRun()

        with ExitStack() as stack:
            armed = self._arm_all(stack)
            with deadline(self.timeout, self.label):
                if armed:
                    innermost, token = armed[-1]
                    innermost.invoke(token, body)
                else:
                    body()

            for collector, token in reversed(armed):
                try:
                    value = collector.measure(token)
                except Exception as e:
                    logger.warning(
                        f"Collector {collector!r} failed to measure "
                        f"{self.label or 'execution'}: {e}",
                        exc_info=True,
                    )
                    continue
                if value is UNAVAILABLE:
                    continue
                measurement.values[collector.kind] = float(value)  # type: ignore[arg-type]

        return measurement

    def _arm_all(self, stack: ExitStack) -> List[Tuple[MetricCollector, Any]]:
        armed: List[Tuple[MetricCollector, Any]] = []
        for collector in self.collectors:
            try:
                token = collector.arm()
            except Exception as e:
                logger.warning(
                    f"Collector {collector!r} failed to arm: {e}", exc_info=True
                )
                continue
            stack.callback(self._release, collector, token)
            armed.append((collector, token))
        return armed

    def _release(self, collector: MetricCollector, token: Any) -> None:
        try:
            collector.release(token)
        except Exception as e:
            logger.warning(f"Collector {collector!r} failed to release: {e}")


def timed(body: Callable[[], Any], timeout: Optional[float] = None, label: str = "") -> float:
    """Run ``body`` once without collectors and return its wall time."""
    start = time.perf_counter()
    with deadline(timeout, label):
        body()
    return time.perf_counter() - start
