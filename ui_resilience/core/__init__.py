"""
Core package for ui-resilience.
Retry engine, error taxonomy, Playwright adapter, driver facade and the
Element / collection handles built on them.

Consumers usually import from the top-level package:
  from ui_resilience import s, ss, xpath, get_driver
"""

from .errors import (
    ConditionNotMetError,
    DriverError,
    DriverTimeoutError,
    ErrorKind,
    ErrorReason,
    ExpectationError,
    InvalidSelectorError,
    JavascriptError,
    NoSuchElementError,
    SessionClosedError,
    StaleElementReferenceError,
    WaitTimeoutError,
)
from .retry import retry_expect, retry_until_success
from .web_element import Keys, WebElement
from .driver import Driver, SessionState, get_driver
from .element import Element
from .collections import ChainedElementAll, ElementAll

__all__ = [
    "ConditionNotMetError",
    "DriverError",
    "DriverTimeoutError",
    "ErrorKind",
    "ErrorReason",
    "ExpectationError",
    "InvalidSelectorError",
    "JavascriptError",
    "NoSuchElementError",
    "SessionClosedError",
    "StaleElementReferenceError",
    "WaitTimeoutError",
    "retry_expect",
    "retry_until_success",
    "Keys",
    "WebElement",
    "Driver",
    "SessionState",
    "get_driver",
    "Element",
    "ChainedElementAll",
    "ElementAll",
]
