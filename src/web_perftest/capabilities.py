"""Runtime capability detection.

Determines once per process whether the interpreter exposes the extended
counters needed by the gated metrics:

    - GC counters (``gc.callbacks``) for gc_runs and gc_time
    - Allocation counters (an active ``tracemalloc`` trace plus
      ``sys.getallocatedblocks``) for memory and objects

A missing capability is not an error. It narrows the set of metrics the
collectors report.
"""

import gc
import logging
import sys
import tracemalloc
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

GC_COUNTERS = "gc_counters"
ALLOCATION_COUNTERS = "allocation_counters"

_capabilities: Optional["Capabilities"] = None


@dataclass(frozen=True)
class Capabilities:
    """Capability flags of the running interpreter.

    Attributes:
        gc_counters: GC start/stop callbacks are available.
        allocation_counters: Memory tracing and allocated-block counts
            are available.
    """

    gc_counters: bool = False
    allocation_counters: bool = False

    def has(self, capability: Optional[str]) -> bool:
        """Check a capability by name. ``None`` means always available."""
        if capability is None:
            return True
        return bool(getattr(self, capability, False))

    @classmethod
    def none(cls) -> "Capabilities":
        """Capabilities of an uninstrumented runtime."""
        return cls(gc_counters=False, allocation_counters=False)

    @classmethod
    def detect(cls, instrumentation: bool = True, trace_memory: bool = False) -> "Capabilities":
        """Inspect the running interpreter.

        Args:
            instrumentation: If False, report no gated capabilities at all.
            trace_memory: Start tracemalloc before detecting when it is not
                already tracing.

        Returns:
            The detected capabilities.
        """
        if not instrumentation:
            logger.info("Instrumentation disabled, gated metrics are unavailable")
            return cls.none()

        if trace_memory and not tracemalloc.is_tracing():
            tracemalloc.start()
            logger.debug("Started tracemalloc for memory metrics")

        gc_counters = isinstance(getattr(gc, "callbacks", None), list)
        allocation_counters = tracemalloc.is_tracing() and hasattr(
            sys, "getallocatedblocks"
        )

        capabilities = cls(
            gc_counters=gc_counters,
            allocation_counters=allocation_counters,
        )
        logger.debug(f"Detected runtime capabilities: {capabilities}")
        return capabilities


def get_capabilities(
    instrumentation: bool = True, trace_memory: bool = False
) -> Capabilities:
    """Get the process-wide capabilities, detecting on first use.

    Arguments only take effect on the first call; later calls return the
    cached result until reset_capabilities() is called.

    Returns:
        The cached Capabilities instance.
    """
    global _capabilities
    if _capabilities is None:
        _capabilities = Capabilities.detect(
            instrumentation=instrumentation,
            trace_memory=trace_memory,
        )
        if not _capabilities.gc_counters:
            logger.info("GC counters unavailable: gc_runs and gc_time disabled")
        if not _capabilities.allocation_counters:
            logger.info(
                "Allocation counters unavailable: memory and objects disabled "
                "(enable tracemalloc to collect them)"
            )
    return _capabilities


def set_capabilities(capabilities: Capabilities) -> None:
    """Override the process-wide capabilities (mainly for testing)."""
    global _capabilities
    _capabilities = capabilities


def reset_capabilities() -> None:
    """Clear the cached detection result (mainly for testing)."""
    global _capabilities
    _capabilities = None
