from __future__ import annotations

import asyncio
import functools
import inspect
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Optional, TypeVar

from ui_resilience.utils.logger import get_logger

T = TypeVar("T")


class TimeConstants(IntEnum):
    """Common durations in milliseconds."""
    ZERO = 0
    QUARTER_A_SECOND = 250
    HALF_A_SECOND = 500
    FIVE_SECONDS = 5000
    TEN_SECONDS = 10000
    QUARTER_A_MINUTE = 15000
    HALF_A_MINUTE = 30000
    MINUTE = 60000


DEFAULT_TIMEOUT_MS = TimeConstants.QUARTER_A_MINUTE


# ---------------- Monotonic time helpers ----------------

def now_ms() -> int:
    """Monotonic time in milliseconds."""
    return time.monotonic_ns() // 1_000_000


async def async_sleep_ms(ms: int) -> None:
    """Async sleep for `ms` milliseconds."""
    if ms <= 0:
        return
    await asyncio.sleep(ms / 1000.0)


# ---------------- Timeout clock ----------------

def make_clock(timeout_ms: Optional[int] = None) -> Callable[[], bool]:
    """
    Capture the current time and return a predicate that stays true while
    no more than `timeout_ms` has elapsed. None means DEFAULT_TIMEOUT_MS.
    """
    budget = int(DEFAULT_TIMEOUT_MS if timeout_ms is None else timeout_ms)
    start = now_ms()

    def still_within_budget() -> bool:
        return now_ms() - start <= budget

    return still_within_budget


# ---------------- Stopwatch ----------------

@dataclass
class Stopwatch:
    """Simple stopwatch usable as a context manager."""
    start_ms: Optional[int] = None

    def start(self) -> "Stopwatch":
        self.start_ms = now_ms()
        return self

    def elapsed_ms(self) -> int:
        if self.start_ms is None:
            return 0
        return max(0, now_ms() - self.start_ms)

    def __enter__(self) -> "Stopwatch":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


# ---------------- measure decorator ----------------

def _human(ms: int) -> str:
    return f"{ms} ms" if ms < 1000 else f"{ms/1000:.3f} s"


def measure(label: str = "", level: str = "DEBUG") -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to log the execution time of a function or coroutine function.
    Example:
        @measure("open session")
        async def build_session(...): ...
    """
    log = get_logger(__name__)
    log_fn = getattr(log, level.lower(), log.debug)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = label or func.__name__

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with Stopwatch() as sw:
                    try:
                        return await func(*args, **kwargs)
                    finally:
                        log_fn(f"{name} took {_human(sw.elapsed_ms())}")
            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with Stopwatch() as sw:
                try:
                    return func(*args, **kwargs)
                finally:
                    log_fn(f"{name} took {_human(sw.elapsed_ms())}")
        return wrapper
    return decorator
