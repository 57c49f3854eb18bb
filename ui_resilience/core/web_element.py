from __future__ import annotations

"""Playwright adapter
---------------------
Thin wrappers that give the retry layer a small, driver-shaped surface over
Playwright's async API: a PageContext for the document of the current frame
and a WebElement per resolved node. Playwright errors are translated into the
tagged taxonomy in `core.errors` at this boundary.
"""

import base64
import functools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, TypeVar, Union

from playwright.async_api import ElementHandle, Frame
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ui_resilience.core.errors import (
    DriverError,
    DriverTimeoutError,
    ElementNotInteractableError,
    ErrorKind,
    InvalidSelectorError,
    JavascriptError,
    NoSuchElementError,
    SessionClosedError,
    StaleElementReferenceError,
)
from ui_resilience.selectors.locator import Locator

T = TypeVar("T")


# ---------- Value types ----------

@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Location:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


class Keys(str, Enum):
    """Special keys accepted by send_keys, valued as Playwright key names."""
    ENTER = "Enter"
    RETURN = "Enter"
    TAB = "Tab"
    ESCAPE = "Escape"
    BACKSPACE = "Backspace"
    DELETE = "Delete"
    SPACE = "Space"
    ARROW_UP = "ArrowUp"
    ARROW_DOWN = "ArrowDown"
    ARROW_LEFT = "ArrowLeft"
    ARROW_RIGHT = "ArrowRight"
    HOME = "Home"
    END = "End"
    PAGE_UP = "PageUp"
    PAGE_DOWN = "PageDown"


KeyInput = Union[str, int, float, Keys]


# ---------- Error translation ----------

_INVALID_SELECTOR_MARKERS = (
    "is not a valid selector",
    "is not a valid xpath expression",
    "failed to parse",
    "unexpected token",
    "unknown engine",
    "unsupported token",
    "invalid selector",
)
_CLOSED_MARKERS = (
    "has been closed",
    "target closed",
    "browser has disconnected",
)
_STALE_MARKERS = (
    "not attached to the dom",
    "element is detached",
    "execution context was destroyed",
    "frame was detached",
    "cannot find context with specified id",
)
_NOT_INTERACTABLE_MARKERS = (
    "element is not visible",
    "element is not enabled",
    "element is outside of the viewport",
    "intercepts pointer events",
)


def translate_error(exc: PlaywrightError, *, script: bool = False) -> DriverError:
    """
    Map a Playwright error onto the retryable/fatal taxonomy.

    With `script`, the error came from evaluating caller JavaScript: selector
    markers do not apply there, and a compile failure is fatal while anything
    the script throws at run time is retried.
    """
    text = exc.message if getattr(exc, "message", None) else str(exc)
    lowered = text.lower()
    if isinstance(exc, PlaywrightTimeoutError):
        return DriverTimeoutError(text)
    if not script and any(m in lowered for m in _INVALID_SELECTOR_MARKERS):
        return InvalidSelectorError(text)
    if any(m in lowered for m in _CLOSED_MARKERS):
        return SessionClosedError(text)
    if any(m in lowered for m in _STALE_MARKERS):
        return StaleElementReferenceError(text)
    if script:
        if "syntaxerror" in lowered:
            return JavascriptError(text, kind=ErrorKind.FATAL)
        return JavascriptError(text)
    if any(m in lowered for m in _NOT_INTERACTABLE_MARKERS):
        return ElementNotInteractableError(text)
    return DriverError(text)


def _translating(script: bool) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except PlaywrightError as exc:
                raise translate_error(exc, script=script) from exc
        return wrapper
    return decorator


# Re-raise Playwright errors from the wrapped coroutine as DriverErrors
translated = _translating(script=False)
translated_script = _translating(script=True)


# ---------- Script helpers ----------

def _is_function_source(script: str) -> bool:
    head = script.lstrip()
    return head.startswith(("function", "async ")) or "=>" in head.split("\n", 1)[0]


def wrap_script(script: str) -> str:
    """
    Turn a Selenium-style script into a Playwright page function.
    Function bodies see their arguments as `arguments[i]`; function
    expressions receive them as regular parameters.
    """
    if _is_function_source(script):
        return f"(args) => ({script}).apply(null, args)"
    return f"(args) => (function () {{ {script}\n}}).apply(null, args)"


def script_args(args: tuple) -> List[Any]:
    return [a.handle if isinstance(a, WebElement) else a for a in args]


# ---------- Page context ----------

class PageContext:
    """The document of one frame: root of every locator chain resolution."""

    def __init__(self, frame: Frame):
        self._frame = frame

    @property
    def frame(self) -> Frame:
        return self._frame

    @translated
    async def find_element(self, locator: Locator) -> "WebElement":
        handle = await self._frame.query_selector(locator.to_selector())
        if handle is None:
            raise NoSuchElementError(f"no such element: Unable to locate element: {locator}")
        return WebElement(handle)

    @translated
    async def find_elements(self, locator: Locator) -> List["WebElement"]:
        return [WebElement(h) for h in await self._frame.query_selector_all(locator.to_selector())]

    @translated_script
    async def execute_script(self, script: str, *args: Any) -> Any:
        return await self._frame.evaluate(wrap_script(script), script_args(args))


# ---------- Element ----------

_SUBMIT_JS = """
el => {
  const form = el.tagName === 'FORM' ? el : (el.form || el.closest('form'));
  if (!form) { throw new Error('Unable to submit: element is not in a form'); }
  if (typeof form.requestSubmit === 'function') { form.requestSubmit(); } else { form.submit(); }
}
"""

_LIVE_PROPERTY_JS = "(el, name) => { const v = el[name]; return v === undefined || v === null ? el.getAttribute(name) : String(v); }"

# Attributes read from the live DOM property (what the user typed), not the markup
_LIVE_PROPERTIES = frozenset({"value"})


class WebElement:
    """One resolved node. Short-lived: re-resolve instead of holding on to it."""

    def __init__(self, handle: ElementHandle):
        self._handle = handle

    @property
    def handle(self) -> ElementHandle:
        return self._handle

    @translated
    async def find_element(self, locator: Locator) -> "WebElement":
        handle = await self._handle.query_selector(locator.to_selector())
        if handle is None:
            raise NoSuchElementError(f"no such element: Unable to locate element: {locator}")
        return WebElement(handle)

    @translated
    async def find_elements(self, locator: Locator) -> List["WebElement"]:
        return [WebElement(h) for h in await self._handle.query_selector_all(locator.to_selector())]

    @translated
    async def click(self) -> None:
        await self._handle.click()

    @translated
    async def send_keys(self, *values: KeyInput) -> None:
        for value in values:
            if isinstance(value, Keys):
                await self._handle.press(value.value)
            else:
                await self._handle.type(str(value))

    @translated
    async def clear(self) -> None:
        await self._handle.fill("")

    @translated
    async def get_text(self) -> str:
        return await self._handle.inner_text()

    @translated
    async def get_attribute(self, name: str) -> Optional[str]:
        if name in _LIVE_PROPERTIES:
            return await self._handle.evaluate(_LIVE_PROPERTY_JS, name)
        return await self._handle.get_attribute(name)

    async def _box(self) -> Rect:
        box = await self._handle.bounding_box()
        if box is None:
            return Rect(0, 0, 0, 0)
        return Rect(box["x"], box["y"], box["width"], box["height"])

    @translated
    async def get_size(self) -> Size:
        box = await self._box()
        return Size(box.width, box.height)

    @translated
    async def get_rect(self) -> Rect:
        return await self._box()

    @translated
    async def get_location(self) -> Location:
        box = await self._box()
        return Location(box.x, box.y)

    @translated
    async def take_screenshot(self) -> str:
        """Base64-encoded PNG of the element."""
        return base64.b64encode(await self._handle.screenshot(type="png")).decode("ascii")

    @translated
    async def submit(self) -> None:
        await self._handle.evaluate(_SUBMIT_JS)

    @translated
    async def is_selected(self) -> bool:
        return await self._handle.evaluate("el => !!(el.checked || el.selected)")

    @translated
    async def is_displayed(self) -> bool:
        return await self._handle.is_visible()

    @translated
    async def is_enabled(self) -> bool:
        return await self._handle.is_enabled()

    @translated
    async def content_frame(self) -> Optional[Frame]:
        return await self._handle.content_frame()

    def __repr__(self) -> str:
        return f"WebElement({self._handle!r})"
