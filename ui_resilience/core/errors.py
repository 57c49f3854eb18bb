from __future__ import annotations

"""Error taxonomy
-----------------
Every driver failure carries two tags set by whoever raises it: a kind
(retryable or fatal) that the retry engine dispatches on, and a reason used by
presence checks that treat an absent element as a valid answer. Diagnostic context
(locator chain, attempts, elapsed time) travels as data fields.
"""

from enum import Enum
from typing import Any, Optional

from ui_resilience.selectors.locator import LocatorChain


class ErrorKind(str, Enum):
    RETRYABLE = "retryable"
    FATAL = "fatal"


class ErrorReason(str, Enum):
    NOT_FOUND = "not_found"
    STALE = "stale"
    INVALID_SELECTOR = "invalid_selector"
    TIMEOUT = "timeout"
    NOT_INTERACTABLE = "not_interactable"
    CONDITION = "condition"
    SCRIPT = "script"
    SESSION = "session"
    UNKNOWN = "unknown"


_CHAIN_NOTE_ATTR = "__ui_resilience_chain__"


class DriverError(Exception):
    kind: ErrorKind = ErrorKind.RETRYABLE
    reason: ErrorReason = ErrorReason.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        reason: Optional[ErrorReason] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        if reason is not None:
            self.reason = reason
        self.chain: Optional[LocatorChain] = None
        self.attempts: Optional[int] = None
        self.elapsed_ms: Optional[int] = None
        self.chain_suffix = ""

    @property
    def annotated(self) -> bool:
        return self.chain is not None

    def __str__(self) -> str:
        if self.chain is None:
            return self.message
        return f"{self.message}\nLocators chain: {self.chain}{self.chain_suffix}"


class NoSuchElementError(DriverError):
    reason = ErrorReason.NOT_FOUND


class NoSuchFrameError(DriverError):
    reason = ErrorReason.NOT_FOUND


class NoSuchWindowError(DriverError):
    reason = ErrorReason.NOT_FOUND


class StaleElementReferenceError(DriverError):
    reason = ErrorReason.STALE


class InvalidSelectorError(DriverError):
    kind = ErrorKind.FATAL
    reason = ErrorReason.INVALID_SELECTOR


class DriverTimeoutError(DriverError):
    reason = ErrorReason.TIMEOUT


class ElementNotInteractableError(DriverError):
    reason = ErrorReason.NOT_INTERACTABLE


class ConditionNotMetError(DriverError):
    """A precondition (enabled, visible, gone...) did not hold on this attempt."""
    reason = ErrorReason.CONDITION


class JavascriptError(DriverError):
    """A script passed to execute_script threw or failed to compile."""
    reason = ErrorReason.SCRIPT


class SessionClosedError(DriverError):
    kind = ErrorKind.FATAL
    reason = ErrorReason.SESSION


class WaitTimeoutError(DriverError):
    kind = ErrorKind.FATAL
    reason = ErrorReason.TIMEOUT


class ExpectationError(AssertionError):
    """An expected value was not observed before the retry budget ran out."""

    def __init__(
        self,
        message: str,
        *,
        actual: Any = None,
        expected: Any = None,
        attempts: int = 0,
        elapsed_ms: int = 0,
    ) -> None:
        super().__init__(message)
        self.actual = actual
        self.expected = expected
        self.attempts = attempts
        self.elapsed_ms = elapsed_ms


# ---------- Classification helpers ----------

def error_kind(exc: BaseException) -> ErrorKind:
    """Tag of a DriverError; anything else raised inside a retry is transient."""
    if isinstance(exc, DriverError):
        return exc.kind
    return ErrorKind.RETRYABLE


def is_absent(exc: BaseException) -> bool:
    """True when the failure means the element is not (or no longer) in the page."""
    return isinstance(exc, DriverError) and exc.reason in (ErrorReason.NOT_FOUND, ErrorReason.STALE)


def is_annotated(exc: BaseException) -> bool:
    if isinstance(exc, DriverError):
        return exc.annotated
    return hasattr(exc, _CHAIN_NOTE_ATTR)


def annotate(exc: BaseException, chain: Optional[LocatorChain], suffix: str = "") -> BaseException:
    """Attach locator chain context exactly once; returns `exc` for re-raising."""
    if chain is None or is_annotated(exc):
        return exc
    if isinstance(exc, DriverError):
        exc.chain = chain
        exc.chain_suffix = f" {suffix}" if suffix else ""
        return exc
    setattr(exc, _CHAIN_NOTE_ATTR, chain)
    exc.add_note(f"Locators chain: {chain}{' ' + suffix if suffix else ''}")
    return exc
