"""
In-memory stand-ins for the Playwright-backed Driver / WebElement, so the
element API can be exercised without a browser. Nodes match a locator when
their `selector` equals the locator value; lookups search all descendants.
"""

import asyncio
from typing import Any, Callable, List, Optional

from ui_resilience.core.errors import (
    ElementNotInteractableError,
    InvalidSelectorError,
    NoSuchElementError,
    StaleElementReferenceError,
)
from ui_resilience.core.web_element import Keys, Location, Rect, Size
from ui_resilience.selectors.locator import Locator

INVALID_PREFIX = "!!"


class FakeNode:
    def __init__(
        self,
        selector: Optional[str] = None,
        text: str = "",
        attributes: Optional[dict] = None,
        children: Optional[List["FakeNode"]] = None,
        enabled: bool = True,
        displayed: bool = True,
        selected: bool = False,
    ):
        self.selector = selector
        self.text = text
        self.attributes = dict(attributes or {})
        self.children: List[FakeNode] = list(children or [])
        self.enabled = enabled
        self.displayed = displayed
        self.selected = selected
        self.stale = False
        self.clicks = 0
        self.typed: List[Any] = []
        self.lookups = 0
        self.on_click: Optional[Callable[["FakeNode"], None]] = None

    def add(self, *nodes: "FakeNode") -> "FakeNode":
        self.children.extend(nodes)
        return self

    def remove(self, node: "FakeNode") -> None:
        self.children.remove(node)

    def _descendants(self):
        for child in self.children:
            yield child
            yield from child._descendants()

    def _check(self, locator: Locator) -> None:
        self.lookups += 1
        if locator.value.startswith(INVALID_PREFIX):
            raise InvalidSelectorError(f"invalid selector: {locator.value!r} is not a valid selector")
        if self.stale:
            raise StaleElementReferenceError("stale element reference: element is detached")

    # ---- driver surface ----

    async def find_element(self, locator: Locator) -> "FakeNode":
        self._check(locator)
        for node in self._descendants():
            if node.selector == locator.value:
                return node
        raise NoSuchElementError(f"no such element: Unable to locate element: {locator}")

    async def find_elements(self, locator: Locator) -> List["FakeNode"]:
        self._check(locator)
        return [node for node in self._descendants() if node.selector == locator.value]

    async def click(self) -> None:
        if not self.displayed:
            raise ElementNotInteractableError("element not interactable: element is not visible")
        self.clicks += 1
        if self.on_click is not None:
            self.on_click(self)

    async def send_keys(self, *values: Any) -> None:
        for value in values:
            self.typed.append(value)
            if not isinstance(value, Keys):
                self.attributes["value"] = self.attributes.get("value", "") + str(value)

    async def clear(self) -> None:
        self.attributes["value"] = ""

    async def get_text(self) -> str:
        return self.text

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    async def get_size(self) -> Size:
        return Size(10, 20)

    async def get_rect(self) -> Rect:
        return Rect(1, 2, 10, 20)

    async def get_location(self) -> Location:
        return Location(1, 2)

    async def take_screenshot(self) -> str:
        return "iVBORw0KGgo="

    async def submit(self) -> None:
        self.attributes["submitted"] = "true"

    async def is_selected(self) -> bool:
        return self.selected

    async def is_displayed(self) -> bool:
        return self.displayed

    async def is_enabled(self) -> bool:
        return self.enabled

    def __repr__(self) -> str:
        return f"FakeNode({self.selector!r})"


class FakeDriver:
    """Resolves every chain against one in-memory document."""

    def __init__(self, *children: FakeNode):
        self.document = FakeNode("html", children=list(children))
        self.root_calls = 0

    async def root(self) -> FakeNode:
        self.root_calls += 1
        return self.document

    async def find_elements(self, locator: Locator) -> List[FakeNode]:
        return await self.document.find_elements(locator)


# ---------- Fake Playwright (session building) ----------

class LoopBound:
    """Remembers the loop it was created on and refuses to be awaited elsewhere."""

    def __init__(self):
        self.loop = asyncio.get_running_loop()

    def _check(self) -> None:
        if asyncio.get_running_loop() is not self.loop:
            raise RuntimeError(f"{type(self).__name__} used on another event loop")


class FakeHandle:
    def as_element(self):
        return self


class FakeFrame(LoopBound):
    def __init__(self, name: str = "", parent: Optional["FakeFrame"] = None):
        super().__init__()
        self.name = name
        self.parent_frame = parent
        self.child_frames: List[FakeFrame] = []
        self.evaluations: List[str] = []
        self.on_evaluate: Optional[Callable[[str, Any], Any]] = None

    def add_child(self, name: str = "") -> "FakeFrame":
        child = FakeFrame(name, parent=self)
        self.child_frames.append(child)
        return child

    async def query_selector(self, selector: str):
        self._check()
        return None

    async def query_selector_all(self, selector: str):
        self._check()
        return []

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self._check()
        self.evaluations.append(script)
        if self.on_evaluate is not None:
            return self.on_evaluate(script, arg)
        return None

    async def evaluate_handle(self, script: str) -> FakeHandle:
        self._check()
        return FakeHandle()


class FakePage(LoopBound):
    def __init__(self, context: "FakeContext"):
        super().__init__()
        self.context = context
        self.main_frame = FakeFrame()
        self.url = "about:blank"
        self.evaluations: List[str] = []
        self.viewports: List[dict] = []

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self._check()
        self.evaluations.append(script)
        if "availWidth" in script:
            return {"width": 1600, "height": 900}
        if "userAgent" in script:
            return "FakeAgent/1.0"
        return None

    async def set_viewport_size(self, size: dict) -> None:
        self._check()
        self.viewports.append(size)

    async def goto(self, url: str) -> None:
        self._check()
        self.url = url

    async def bring_to_front(self) -> None:
        self._check()
        self.context.front = self

    async def screenshot(self, type: str = "png") -> bytes:
        self._check()
        return b"\x89PNG"


class FakeContext(LoopBound):
    def __init__(self, kwargs: dict):
        super().__init__()
        self.kwargs = kwargs
        self.pages: List[FakePage] = []
        self.front: Optional[FakePage] = None
        self.default_timeout: Optional[int] = None
        self.navigation_timeout: Optional[int] = None

    def set_default_timeout(self, ms: int) -> None:
        self.default_timeout = ms

    def set_default_navigation_timeout(self, ms: int) -> None:
        self.navigation_timeout = ms

    async def new_page(self) -> FakePage:
        self._check()
        page = FakePage(self)
        self.pages.append(page)
        return page


class FakeBrowser(LoopBound):
    version = "123.0"

    def __init__(self):
        super().__init__()
        self.contexts: List[FakeContext] = []
        self.closed = False

    async def new_context(self, **kwargs: Any) -> FakeContext:
        self._check()
        context = FakeContext(kwargs)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self._check()
        self.closed = True


class FakeBrowserType(LoopBound):
    def __init__(self):
        super().__init__()
        self.launches: List[dict] = []
        self.connects: List[str] = []
        self.browsers: List[FakeBrowser] = []
        self.fail_with: Optional[BaseException] = None

    async def _browser(self) -> FakeBrowser:
        self._check()
        if self.fail_with is not None:
            raise self.fail_with
        browser = FakeBrowser()
        self.browsers.append(browser)
        return browser

    async def launch(self, **kwargs: Any) -> FakeBrowser:
        self.launches.append(kwargs)
        return await self._browser()

    async def connect(self, ws_endpoint: str) -> FakeBrowser:
        self.connects.append(ws_endpoint)
        return await self._browser()


class FakePlaywright(LoopBound):
    def __init__(self):
        super().__init__()
        self.chromium = FakeBrowserType()
        self.firefox = FakeBrowserType()
        self.webkit = FakeBrowserType()
        self.stopped = False

    async def stop(self) -> None:
        self._check()
        self.stopped = True


class FakePlaywrightStarter:
    """Stands in for `async_playwright()`; every start() is a new connection."""

    def __init__(self):
        self.started: List[FakePlaywright] = []
        self.fail_launch_with: Optional[BaseException] = None

    def __call__(self) -> "FakePlaywrightStarter":
        return self

    async def start(self) -> FakePlaywright:
        playwright = FakePlaywright()
        for browser_type in (playwright.chromium, playwright.firefox, playwright.webkit):
            browser_type.fail_with = self.fail_launch_with
        self.started.append(playwright)
        return playwright

    @property
    def last(self) -> FakePlaywright:
        return self.started[-1]
