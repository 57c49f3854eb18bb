from __future__ import annotations

"""Retry engine
---------------
Two polling loops sharing one timeout clock:

- retry_until_success: await an operation until it returns; retryable failures
  are recorded and retried, fatal ones propagate on the spot.
- retry_expect: await an operation until its value deep-equals an expected
  value; a mismatch at timeout becomes an ExpectationError.

Both check the budget after each whole attempt, so the first attempt always
runs and an in-flight driver call is never interrupted: timeouts are lower
bounds.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ui_resilience.core.errors import (
    DriverError,
    ErrorKind,
    ExpectationError,
    annotate,
    error_kind,
)
from ui_resilience.selectors.locator import LocatorChain
from ui_resilience.utils.config import get_settings
from ui_resilience.utils.logger import get_logger, log_with_context
from ui_resilience.utils.timing import Stopwatch, async_sleep_ms, make_clock

T = TypeVar("T")

log = get_logger(__name__)

__all__ = ["RetryOutcome", "retry_until_success", "retry_expect", "deep_strict_equal"]


@dataclass
class RetryOutcome:
    """What one retry run observed; only surfaces as fields on the raised error."""
    attempts: int = 0
    elapsed_ms: int = 0
    last_error: Optional[BaseException] = None


def _budget(timeout_ms: Optional[int]) -> int:
    return get_settings().DEFAULT_TIMEOUT_MS if timeout_ms is None else timeout_ms


def _pause(interval_ms: Optional[int]) -> int:
    return get_settings().POLL_INTERVAL_MS if interval_ms is None else interval_ms


async def retry_until_success(
    op: Callable[[], Awaitable[T]],
    *,
    timeout_ms: Optional[int] = None,
    chain: Optional[LocatorChain] = None,
    classify: Callable[[BaseException], ErrorKind] = error_kind,
    interval_ms: Optional[int] = None,
) -> T:
    """
    Await `op()` until it succeeds or the budget runs out.

    Args:
        op: zero-argument coroutine function, called once per attempt
        timeout_ms: retry budget (settings DEFAULT_TIMEOUT_MS when None)
        chain: locator chain attached to failures not yet annotated
        classify: decides whether a failure is retried or propagated
        interval_ms: pause between attempts (settings POLL_INTERVAL_MS when None)

    Raises:
        The first FATAL failure immediately, or the last RETRYABLE failure once
        the budget is spent (with `attempts` / `elapsed_ms` set on DriverErrors).
    """
    __tracebackhide__ = True
    budget = _budget(timeout_ms)
    pause = _pause(interval_ms)
    still_within_budget = make_clock(budget)
    outcome = RetryOutcome()

    with Stopwatch() as sw:
        while True:
            outcome.attempts += 1
            try:
                return await op()
            except Exception as exc:
                annotate(exc, chain)
                if classify(exc) is ErrorKind.FATAL:
                    raise
                if outcome.last_error is None:
                    log.debug(f"Retrying for up to {budget} ms after: {exc!r}")
                outcome.last_error = exc
            if not still_within_budget():
                break
            await async_sleep_ms(pause)
        outcome.elapsed_ms = sw.elapsed_ms()

    exc = outcome.last_error
    if isinstance(exc, DriverError):
        exc.attempts = outcome.attempts
        exc.elapsed_ms = outcome.elapsed_ms
    scoped = log_with_context(
        log,
        chain=str(chain) if chain is not None else None,
        attempts=outcome.attempts,
        elapsed_ms=outcome.elapsed_ms,
    )
    scoped.debug(f"Gave up after {outcome.attempts} attempt(s) in {outcome.elapsed_ms} ms; last error: {exc!r}")
    raise exc


# ---------------- Expectations ----------------

def deep_strict_equal(actual: Any, expected: Any) -> bool:
    """Structural equality that also requires identical types at every level."""
    if type(actual) is not type(expected):
        return False
    if isinstance(actual, (list, tuple)):
        return len(actual) == len(expected) and all(
            deep_strict_equal(a, e) for a, e in zip(actual, expected)
        )
    if isinstance(actual, dict):
        return actual.keys() == expected.keys() and all(
            deep_strict_equal(actual[k], expected[k]) for k in actual
        )
    return actual == expected


def _mismatch(actual: Any, expected: Any) -> str:
    return (
        "Expected values to be strictly deep-equal:\n"
        f"+ actual:   {actual!r}\n"
        f"- expected: {expected!r}"
    )


async def retry_expect(
    op: Callable[[], Awaitable[T]],
    expected: T,
    *,
    message: Optional[str] = None,
    concatenate_messages: bool = False,
    timeout_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
) -> None:
    """
    Await `op()` until its result deep-equals `expected`.

    Errors raised by `op` propagate unchanged. On timeout raises
    ExpectationError whose message is `message`, `message` plus the last
    mismatch (with `concatenate_messages`), or the mismatch alone.
    """
    __tracebackhide__ = True
    budget = _budget(timeout_ms)
    pause = _pause(interval_ms)
    still_within_budget = make_clock(budget)
    attempts = 0
    actual: Any = None

    with Stopwatch() as sw:
        while True:
            attempts += 1
            actual = await op()
            if deep_strict_equal(actual, expected):
                return
            if not still_within_budget():
                break
            await async_sleep_ms(pause)
        elapsed = sw.elapsed_ms()

    detail = _mismatch(actual, expected)
    if message:
        text = "\n".join((message, detail)) if concatenate_messages else message
    else:
        text = detail
    raise ExpectationError(text, actual=actual, expected=expected, attempts=attempts, elapsed_ms=elapsed)
