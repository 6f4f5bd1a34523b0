"""Timing instrumentation for graph construction phases.

``@profile_operation(name)`` wraps a function with ``perf_counter_ns``
timing, logs the duration at DEBUG level and records it in the
:class:`ProfileCollector` singleton::

    @profile_operation("graph.linearize")
    def linearize(graph):
        ...

The collector keeps the last ``max_results`` durations per operation and
summarises them with :meth:`ProfileCollector.get_stats`.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class ProfileResult:
    """One timed call."""

    operation: str
    duration_ms: float
    failed: bool = False


class ProfileCollector:
    """Thread-safe store of recent :class:`ProfileResult` records."""

    _instance: ProfileCollector | None = None
    _instance_lock = threading.Lock()

    def __init__(self, max_results: int = 100) -> None:
        self._max_results = max_results
        self._results: dict[str, deque[ProfileResult]] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProfileCollector:
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = ProfileCollector()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (for testing)."""
        with cls._instance_lock:
            cls._instance = None

    def record(self, result: ProfileResult) -> None:
        with self._lock:
            bucket = self._results.setdefault(result.operation, deque(maxlen=self._max_results))
            bucket.append(result)

    def operations(self) -> list[str]:
        with self._lock:
            return sorted(self._results)

    def get_stats(self, operation: str) -> dict[str, Any] | None:
        """Summarise recorded durations for *operation*.

        Returns ``None`` when nothing has been recorded, otherwise
        ``{"operation", "count", "failures", "mean_ms", "min_ms", "max_ms"}``.
        """
        with self._lock:
            results = list(self._results.get(operation, ()))
        if not results:
            return None

        durations = [r.duration_ms for r in results]
        return {
            "operation": operation,
            "count": len(results),
            "failures": sum(1 for r in results if r.failed),
            "mean_ms": round(sum(durations) / len(durations), 3),
            "min_ms": round(min(durations), 3),
            "max_ms": round(max(durations), 3),
        }


def profile_operation(name: str) -> Callable[[F], F]:
    """Decorator that times a synchronous function under *name*.

    Calls that raise are recorded with ``failed=True`` before the
    exception propagates.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_ns = time.perf_counter_ns()
            failed = True
            try:
                result = func(*args, **kwargs)
                failed = False
                return result
            finally:
                duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                ProfileCollector.get_instance().record(
                    ProfileResult(operation=name, duration_ms=round(duration_ms, 3), failed=failed)
                )
                logger.debug("PROFILE %s: %.3f ms%s", name, duration_ms, " (failed)" if failed else "")

        return wrapper  # type: ignore[return-value]

    return decorator
