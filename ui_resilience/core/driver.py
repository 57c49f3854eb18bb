from __future__ import annotations

"""Driver facade
----------------
Owns the one Playwright session of the process. The session is built lazily on
first use from settings (browser alias, hub URL or direct launch, proxy) and
the capability table, and torn down by `quit()`. Lifecycle:
uninitialized -> active -> closed; closed is terminal.
"""

import asyncio
import base64
import functools
import inspect
import sys
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from playwright.async_api import Browser, BrowserContext, Frame, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from ui_resilience.core.errors import (
    NoSuchElementError,
    NoSuchFrameError,
    NoSuchWindowError,
    SessionClosedError,
    WaitTimeoutError,
)
from ui_resilience.core.retry import retry_until_success
from ui_resilience.core.web_element import PageContext, WebElement, translate_error, translated
from ui_resilience.selectors.capabilities import BrowserCapabilities, capabilities_for
from ui_resilience.selectors.locator import By, Locator
from ui_resilience.utils.config import Settings, get_settings, resolve_browser
from ui_resilience.utils.logger import bind, get_logger, unbind
from ui_resilience.utils.timing import async_sleep_ms, make_clock, measure


class SessionState(str, Enum):
    uninitialized = "uninitialized"
    active = "active"
    closed = "closed"


_SCREEN_SIZE_JS = "() => ({width: window.screen.availWidth, height: window.screen.availHeight})"

Condition = Union[Awaitable[Any], Callable[["Driver"], Any]]


class Driver:
    """Process-wide browser session shared by every Element built against it."""

    def __init__(self, settings: Optional[Settings] = None, browser: Optional[str] = None):
        self._settings = settings
        self._browser_alias = browser
        self._state = SessionState.uninitialized
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._frame: Optional[Frame] = None
        self._capabilities: Optional[Dict[str, Any]] = None
        self.log = get_logger(__name__)

    # ---------- Session lifecycle ----------

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        """Event loop the live session's Playwright objects belong to."""
        return self._loop

    def _session_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock, self._lock_loop = asyncio.Lock(), loop
        return self._lock

    def _bound_elsewhere(self) -> bool:
        return self._state is SessionState.active and self._loop is not asyncio.get_running_loop()

    def _abandon(self) -> None:
        """
        Forget a session built on another event loop. Its Playwright objects can
        only be awaited on that loop, so nothing is closed from here.
        """
        self.log.warning("Event loop changed since the browser session was built; abandoning it")
        self._playwright = self._browser = self._context = None
        self._page = self._frame = None
        self._capabilities = None
        self._loop = None
        unbind("browser")

    async def _ensure_session(self) -> Page:
        if self._bound_elsewhere():
            self._abandon()
            self._state = SessionState.uninitialized
        if self._state is SessionState.uninitialized:
            async with self._session_lock():
                if self._state is SessionState.uninitialized:
                    await self._build_session()
        if self._state is SessionState.closed or self._page is None:
            raise SessionClosedError("Driver session has been quit")
        return self._page

    @measure("build session", level="INFO")
    async def _build_session(self) -> None:
        s = self.settings
        alias = resolve_browser(self._browser_alias, s)
        caps = capabilities_for(alias)
        hub_url = s.hub_url
        proxy = {"server": s.proxy_server} if s.proxy_server else None

        playwright = await async_playwright().start()
        try:
            browser_type = getattr(playwright, caps.engine)
            if hub_url:
                browser = await browser_type.connect(hub_url)
            else:
                launch_kwargs = caps.launch_kwargs()
                launch_kwargs["headless"] = s.HEADLESS
                if proxy:
                    launch_kwargs["proxy"] = proxy
                browser = await browser_type.launch(**launch_kwargs)

            context_kwargs = caps.context_kwargs(headless=s.HEADLESS)
            if hub_url and proxy:
                context_kwargs["proxy"] = proxy
            context = await browser.new_context(**context_kwargs)
            context.set_default_timeout(s.ACTION_TIMEOUT_MS)
            context.set_default_navigation_timeout(s.PAGE_LOAD_TIMEOUT)
            page = await context.new_page()
            await self._maximize_window(page, caps)
        except PlaywrightError as exc:
            await playwright.stop()
            raise translate_error(exc) from exc

        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._frame = None
        self._loop = asyncio.get_running_loop()
        self._state = SessionState.active
        bind(browser=alias.value)
        self.log.info(f"Started {alias.value} session via {hub_url or 'direct launch'}")

    async def _maximize_window(self, page: Page, caps: BrowserCapabilities) -> None:
        if caps.native_maximize(self.settings.HEADLESS):
            return
        size = await page.evaluate(_SCREEN_SIZE_JS)
        await page.set_viewport_size({"width": int(size["width"]), "height": int(size["height"])})

    async def quit(self) -> None:
        """Close the session. Safe to call repeatedly or before any session exists."""
        if self._state is not SessionState.active:
            return
        if self._bound_elsewhere():
            self._abandon()
            self._state = SessionState.closed
            return
        async with self._session_lock():
            if self._state is not SessionState.active:
                return
            self._state = SessionState.closed
            try:
                if self._browser is not None:
                    await self._browser.close()
            except PlaywrightError as exc:
                self.log.warning(f"Browser close failed: {exc.message}")
            finally:
                if self._playwright is not None:
                    await self._playwright.stop()
                self._playwright = self._browser = self._context = None
                self._page = self._frame = None
                self._loop = None
                unbind("browser")
        self.log.info("Driver session closed")

    # ---------- Resolution roots ----------

    async def page(self) -> Page:
        return await self._ensure_session()

    async def root(self) -> PageContext:
        """Document of the frame currently switched to."""
        page = await self._ensure_session()
        return PageContext(self._frame or page.main_frame)

    def _select(self, page: Optional[Page] = None, frame: Optional[Frame] = None) -> None:
        if page is not None:
            self._page = page
        self._frame = frame

    # ---------- Passthroughs ----------

    @translated
    async def get(self, url: str) -> None:
        page = await self._ensure_session()
        self._frame = None
        await page.goto(url)

    async def execute_script(self, script: str, *args: Any) -> Any:
        return await (await self.root()).execute_script(script, *args)

    async def retry_execute_script(self, script: str, *args: Any, timeout_ms: Optional[int] = None) -> Any:
        return await retry_until_success(lambda: self.execute_script(script, *args), timeout_ms=timeout_ms)

    async def wait(
        self,
        condition: Condition,
        timeout_ms: Optional[int] = None,
        message: Optional[str] = None,
    ) -> Any:
        """
        Wait for `condition` to become truthy and return its value.

        `condition` is either an awaitable (waited on once) or a callable that
        receives this driver and returns a value or an awaitable; it is polled.
        """
        budget = self.settings.DEFAULT_TIMEOUT_MS if timeout_ms is None else timeout_ms
        failure = message or f"Wait timed out after {budget} ms"
        if inspect.isawaitable(condition):
            try:
                return await asyncio.wait_for(condition, budget / 1000.0)
            except asyncio.TimeoutError:
                raise WaitTimeoutError(failure) from None

        still_within_budget = make_clock(budget)
        while True:
            value = condition(self)
            if inspect.isawaitable(value):
                value = await value
            if value:
                return value
            if not still_within_budget():
                raise WaitTimeoutError(failure)
            await async_sleep_ms(self.settings.POLL_INTERVAL_MS)

    async def get_current_url(self) -> str:
        page = await self._ensure_session()
        return page.url

    async def find_elements(self, locator: Locator) -> List[WebElement]:
        return await (await self.root()).find_elements(locator)

    def switch_to(self) -> "TargetLocator":
        return TargetLocator(self)

    @translated
    async def get_capabilities(self) -> Dict[str, Any]:
        if self._capabilities:
            return self._capabilities
        page = await self._ensure_session()
        caps = capabilities_for(resolve_browser(self._browser_alias, self.settings))
        self._capabilities = {
            "browserName": caps.browser_name,
            "browserVersion": self._browser.version if self._browser else None,
            "engine": caps.engine,
            "channel": caps.channel,
            "acceptInsecureCerts": caps.accept_insecure_certs,
            "platformName": sys.platform,
            "userAgent": await page.evaluate("() => navigator.userAgent"),
        }
        return self._capabilities

    @translated
    async def take_screenshot(self) -> str:
        """Base64-encoded PNG of the current viewport."""
        page = await self._ensure_session()
        return base64.b64encode(await page.screenshot(type="png")).decode("ascii")


class TargetLocator:
    """Frame / window switching, returned by `Driver.switch_to()`."""

    def __init__(self, driver: Driver):
        self._driver = driver

    async def _current_frame(self) -> Frame:
        return (await self._driver.root()).frame

    @translated
    async def frame(self, ref: Union[int, str, WebElement, Any]) -> None:
        """Switch into a child frame by index, name/id, WebElement or Element."""
        current = await self._current_frame()
        target: Optional[Frame] = None
        if isinstance(ref, int):
            children = current.child_frames
            if 0 <= ref < len(children):
                target = children[ref]
        elif isinstance(ref, str):
            target = next((f for f in current.child_frames if f.name == ref), None)
            if target is None:
                try:
                    element = await PageContext(current).find_element(By.id(ref))
                except NoSuchElementError:
                    element = None
                if element is not None:
                    target = await element.content_frame()
        else:
            element = ref if isinstance(ref, WebElement) else await ref.retry_get_element()
            target = await element.content_frame()
        if target is None:
            raise NoSuchFrameError(f"no such frame: {ref!r}")
        self._driver._select(frame=target)

    async def parent_frame(self) -> None:
        current = await self._current_frame()
        parent = current.parent_frame
        self._driver._select(frame=parent if parent is not None and parent.parent_frame is not None else None)

    async def default_content(self) -> None:
        await self._driver.root()
        self._driver._select(frame=None)

    @translated
    async def window(self, index: int) -> None:
        """Switch to the index-th open page of the session's context."""
        page = await self._driver.page()
        pages = page.context.pages
        if not 0 <= index < len(pages):
            raise NoSuchWindowError(f"no such window: index {index} of {len(pages)}")
        target = pages[index]
        await target.bring_to_front()
        self._driver._select(page=target, frame=None)

    @translated
    async def active_element(self) -> WebElement:
        frame = await self._current_frame()
        handle = (await frame.evaluate_handle("() => document.activeElement || document.body")).as_element()
        if handle is None:
            raise NoSuchElementError("no such element: document has no active element")
        return WebElement(handle)


@functools.lru_cache(maxsize=1)
def get_driver() -> Driver:
    """
    The process-wide driver facade. Creating it is cheap; the browser session
    starts on first use. Call `get_driver.cache_clear()` to drop it in tests.
    """
    return Driver()
