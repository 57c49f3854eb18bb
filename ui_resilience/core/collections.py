from __future__ import annotations

"""Element collections
----------------------
"All elements matching a locator", either inside a parent Element
(ChainedElementAll) or from the document root (ElementAll). Like Element,
they hold no nodes and re-run the lookup on every call.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence

from ui_resilience.core.driver import Driver, get_driver
from ui_resilience.core.retry import retry_expect, retry_until_success
from ui_resilience.core.web_element import WebElement
from ui_resilience.selectors.locator import Locator, LocatorChain

if TYPE_CHECKING:
    from ui_resilience.core.element import Element


class _ElementCollection(ABC):
    locator: Locator

    @property
    @abstractmethod
    def chain(self) -> LocatorChain:
        """Chain named in failures: the parent's, or the collection locator itself."""

    @abstractmethod
    async def _fetch(self) -> List[WebElement]:
        """One lookup of every match, no retries."""

    async def find_elements(self, timeout_ms: Optional[int] = None) -> List[WebElement]:
        return await retry_until_success(self._fetch, timeout_ms=timeout_ms, chain=self.chain)

    async def get_sorted_elements_texts(self) -> List[str]:
        texts: List[str] = []
        for web_element in await self._fetch():
            texts.append(await web_element.get_text())
        return sorted(texts)

    async def retry_get_sorted_elements_texts(self, timeout_ms: Optional[int] = None) -> List[str]:
        return await retry_until_success(self.get_sorted_elements_texts, timeout_ms=timeout_ms, chain=self.chain)

    async def expect_sorted_list_to_equal(self, expected: Sequence[str], fail_message: Optional[str] = None) -> None:
        await retry_expect(
            self.retry_get_sorted_elements_texts,
            sorted(expected),
            message=fail_message,
            concatenate_messages=True,
        )

    async def expect_elements_count_to_be(self, expected_count: int, fail_message: Optional[str] = None) -> None:
        async def count() -> int:
            return len(await self.find_elements())

        await retry_expect(count, expected_count, message=fail_message, concatenate_messages=True)


class ChainedElementAll(_ElementCollection):
    """Matches of `locator` inside the node a parent Element resolves to."""

    def __init__(self, element: "Element", locator: Locator):
        self._element = element
        self.locator = locator

    @property
    def chain(self) -> LocatorChain:
        return self._element.chain

    async def _fetch(self) -> List[WebElement]:
        return await self._element.find_elements(self.locator)

    def __repr__(self) -> str:
        return f"ChainedElementAll({self._element.chain} All: {self.locator})"


class ElementAll(_ElementCollection):
    """Matches of `locator` in the document of the current frame."""

    def __init__(self, locator: Locator, driver: Optional[Driver] = None):
        self.locator = locator
        self._driver = driver or get_driver()

    @property
    def chain(self) -> LocatorChain:
        return LocatorChain.of(self.locator)

    async def _fetch(self) -> List[WebElement]:
        return await self._driver.find_elements(self.locator)

    async def expect_sorted_list_to_be(self, expected: Sequence[str], fail_message: Optional[str] = None) -> None:
        await self.expect_sorted_list_to_equal(expected, fail_message)

    def __repr__(self) -> str:
        return f"ElementAll({self.locator})"
