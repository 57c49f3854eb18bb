from __future__ import annotations

"""Element handle
-----------------
The object test code talks to. An Element is a locator chain plus a driver; it
never caches a node. Every call resolves the chain from the document root,
so page mutations between calls cannot leave it holding a stale reference.

Two execution modes:
  - single-shot: retry only the resolution, then perform the action once
    (send_keys, get_text, simple_click, ...)
  - retried: resolve, check the precondition and act inside one attempt of
    the retry engine (click, click_send_keys, wait_for_visible, ...)
"""

from typing import Awaitable, Callable, List, Optional, TypeVar, Union

from ui_resilience.core.collections import ChainedElementAll
from ui_resilience.core.driver import Driver, get_driver
from ui_resilience.core.errors import (
    ConditionNotMetError,
    ErrorKind,
    annotate,
    is_absent,
)
from ui_resilience.core.retry import retry_expect, retry_until_success
from ui_resilience.core.web_element import KeyInput, Location, Rect, Size, WebElement
from ui_resilience.selectors.locator import By, Locator, LocatorChain

LocatorLike = Union[Locator, "Element"]
T = TypeVar("T")


def _expect_message(fail_message: Optional[str], text: str) -> str:
    return "\n".join(part for part in (fail_message, text) if part)


class Element:
    def __init__(
        self,
        locator: Union[Locator, LocatorChain, List[Locator]],
        driver: Optional[Driver] = None,
    ):
        self._chain = LocatorChain.coerce(locator)
        self._driver = driver or get_driver()

    @property
    def chain(self) -> LocatorChain:
        return self._chain

    @property
    def current_locator(self) -> Locator:
        return self._chain.own

    @property
    def driver(self) -> Driver:
        return self._driver

    def __repr__(self) -> str:
        return f"Element({self._chain})"

    # ---------- Resolution ----------

    async def get_element(self) -> WebElement:
        """Resolve the chain once, one find_element per locator."""
        context = await self._driver.root()
        for index, locator in enumerate(self._chain):
            try:
                context = await context.find_element(locator)
            except Exception as exc:
                raise annotate(exc, self._chain.prefix(index + 1))
        return context

    async def retry_get_element(self, timeout_ms: Optional[int] = None) -> WebElement:
        return await retry_until_success(self.get_element, timeout_ms=timeout_ms, chain=self._chain)

    async def find_elements(self, locator: Locator) -> List[WebElement]:
        """Resolve once and return all matches of `locator` inside this element."""
        try:
            return await (await self.get_element()).find_elements(locator)
        except Exception as exc:
            raise annotate(exc, self._chain, suffix=f"All: {locator}")

    async def retry_find_elements(self, locator: Locator, timeout_ms: Optional[int] = None) -> List[WebElement]:
        async def attempt() -> List[WebElement]:
            return await (await self.get_element()).find_elements(locator)

        return await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain)

    async def is_present(self) -> bool:
        """True if the chain resolves now; absent or stale means False."""
        try:
            await self.get_element()
            return True
        except Exception as exc:
            if is_absent(exc):
                return False
            raise

    # ---------- Retried actions ----------

    async def click(self, timeout_ms: Optional[int] = None) -> None:
        """Click once the element is enabled; retries resolution and failed clicks."""
        async def attempt() -> None:
            web_element = await self.get_element()
            if not await web_element.is_enabled():
                raise ConditionNotMetError("Element is not enabled")
            await web_element.click()

        await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain)

    async def click_send_keys(self, *values: KeyInput, timeout_ms: Optional[int] = None) -> None:
        """
        Click, then type, in the same attempt. The click focuses inputs that
        drop keystrokes sent before they have focus (chromedriver #1771,
        angular #6977).
        """
        async def attempt() -> None:
            web_element = await self.get_element()
            if not await web_element.is_enabled():
                raise ConditionNotMetError("Element is not enabled")
            await web_element.click()
            await web_element.send_keys(*values)

        await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain)

    async def click_till_attribute_equal(self, name: str, value: str, timeout_ms: Optional[int] = None) -> None:
        """Click repeatedly until attribute `name` contains `value`."""
        async def attempt() -> None:
            web_element = await self.get_element()
            await web_element.click()
            actual = await web_element.get_attribute(name)
            if value not in (actual or ""):
                raise ConditionNotMetError(f"Attribute {name!r} is {actual!r}, expected it to contain {value!r}")

        await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain)

    async def click_till_element_present(self, element: "Element", timeout_ms: Optional[int] = None) -> None:
        """Click repeatedly until `element` resolves."""
        async def attempt() -> None:
            await (await self.get_element()).click()
            if not await element.is_present():
                raise ConditionNotMetError(f"Element {element.chain} is not present after click")

        await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain)

    # ---------- Single-shot passthroughs ----------

    async def _act(self, action: Callable[[WebElement], Awaitable[T]]) -> T:
        """Resolve with retries, then run `action` once; its failure names the chain."""
        web_element = await self.retry_get_element()
        try:
            return await action(web_element)
        except Exception as exc:
            raise annotate(exc, self._chain)

    async def simple_click(self) -> None:
        """Ordinary click: only resolving the element is retried."""
        await self._act(lambda el: el.click())

    async def send_keys(self, *values: KeyInput) -> None:
        await self._act(lambda el: el.send_keys(*values))

    async def clear(self) -> None:
        await self._act(lambda el: el.clear())

    async def get_text(self) -> str:
        return await self._act(lambda el: el.get_text())

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._act(lambda el: el.get_attribute(name))

    async def get_size(self) -> Size:
        return await self._act(lambda el: el.get_size())

    async def get_rect(self) -> Rect:
        return await self._act(lambda el: el.get_rect())

    async def get_location(self) -> Location:
        return await self._act(lambda el: el.get_location())

    async def take_screenshot(self) -> str:
        return await self._act(lambda el: el.take_screenshot())

    async def submit(self) -> None:
        await self._act(lambda el: el.submit())

    async def is_selected(self) -> bool:
        return await self._act(lambda el: el.is_selected())

    # ---------- Retried reads and waits ----------

    async def retry_is_displayed(self, timeout_ms: Optional[int] = None) -> bool:
        async def attempt() -> bool:
            return await (await self.get_element()).is_displayed()

        return await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain)

    async def retry_get_text(self, timeout_ms: Optional[int] = None) -> str:
        async def attempt() -> str:
            return await (await self.get_element()).get_text()

        return await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain)

    async def wait_for_visible(self, timeout_ms: Optional[int] = None) -> None:
        async def attempt() -> None:
            if not await (await self.get_element()).is_displayed():
                raise ConditionNotMetError("Element is not visible")

        await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain)

    async def wait_for_not_present(self, timeout_ms: Optional[int] = None) -> None:
        """Wait until the chain no longer resolves; other lookup errors fail fast."""
        async def attempt() -> None:
            try:
                await self.get_element()
            except Exception as exc:
                if is_absent(exc):
                    return
                raise
            raise ConditionNotMetError("Element is still present")

        def classify(exc: BaseException) -> ErrorKind:
            return ErrorKind.RETRYABLE if isinstance(exc, ConditionNotMetError) else ErrorKind.FATAL

        await retry_until_success(attempt, timeout_ms=timeout_ms, chain=self._chain, classify=classify)

    # ---------- Expectations ----------

    async def expect_to_be_selected(self, fail_message: Optional[str] = None) -> None:
        await retry_expect(
            self.is_selected,
            True,
            message=_expect_message(fail_message, f"Expected element to be selected {self._chain}"),
        )

    async def expect_to_be_unselected(self, fail_message: Optional[str] = None) -> None:
        await retry_expect(
            self.is_selected,
            False,
            message=_expect_message(fail_message, f"Expected element to be unselected {self._chain}"),
        )

    async def expect_to_be_present(self, fail_message: Optional[str] = None, timeout_ms: Optional[int] = None) -> None:
        await retry_expect(
            self.is_present,
            True,
            message=_expect_message(fail_message, f"Expected element to be present {self._chain}"),
            timeout_ms=timeout_ms,
        )

    async def expect_to_be_not_present(
        self, fail_message: Optional[str] = None, timeout_ms: Optional[int] = None
    ) -> None:
        await retry_expect(
            self.is_present,
            False,
            message=_expect_message(fail_message, f"Expected element not to be present {self._chain}"),
            timeout_ms=timeout_ms,
        )

    async def expect_to_be_not_displayed(self, fail_message: Optional[str] = None) -> None:
        await retry_expect(
            self.retry_is_displayed,
            False,
            message=_expect_message(fail_message, f"Expected element not to be displayed {self._chain}"),
        )

    async def expect_text_to_be(self, expected_text: str, fail_message: Optional[str] = None) -> None:
        await retry_expect(self.retry_get_text, expected_text, message=fail_message, concatenate_messages=True)

    async def expect_input_value_to_be(self, expected_text: str, fail_message: Optional[str] = None) -> None:
        await retry_expect(
            lambda: self.get_attribute("value"),
            expected_text,
            message=fail_message,
            concatenate_messages=True,
        )

    # ---------- Chaining ----------

    def _derive(self, locator: Locator) -> "Element":
        return Element(self._chain.append(locator), self._driver)

    def s(self, css_selector: str) -> "Element":
        """Descendant matching a CSS selector."""
        return self._derive(By.css(css_selector))

    def xpath(self, expression: str) -> "Element":
        return self._derive(By.xpath(expression))

    def element(self, locator: LocatorLike) -> "Element":
        """Descendant by raw locator, or by another Element's own locator."""
        if isinstance(locator, Element):
            return self._derive(locator.current_locator)
        return self._derive(locator)

    def ss(self, css_selector: str) -> ChainedElementAll:
        return ChainedElementAll(self, By.css(css_selector))

    def xpath_all(self, expression: str) -> ChainedElementAll:
        return ChainedElementAll(self, By.xpath(expression))

    async def all(self, locator: LocatorLike) -> List[WebElement]:
        """Every match inside this element; resolution retried, lookup not."""
        own = locator.current_locator if isinstance(locator, Element) else locator
        web_element = await self.retry_get_element()
        try:
            return await web_element.find_elements(own)
        except Exception as exc:
            raise annotate(exc, self._chain, suffix=f"All: {own}")
