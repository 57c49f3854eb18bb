"""
ui-resilience
-------------
Retry-until-timeout wrappers around a Playwright browser session for UI tests.

    from ui_resilience import s, ss, get_driver

    await get_driver().get("https://example.com")
    await s("form#login").s("input[name=user]").click_send_keys("alice")
    await ss("ul.results li").expect_elements_count_to_be(3)
"""

from typing import Optional

from ui_resilience.core import (
    ChainedElementAll,
    Driver,
    Element,
    ElementAll,
    Keys,
    get_driver,
)
from ui_resilience.selectors.locator import By, Locator, LocatorChain

__version__ = "0.1.0"


def s(css_selector: str, driver: Optional[Driver] = None) -> Element:
    """Element located by a CSS selector."""
    return Element(By.css(css_selector), driver)


def xpath(expression: str, driver: Optional[Driver] = None) -> Element:
    """Element located by an XPath expression."""
    return Element(By.xpath(expression), driver)


def element(locator: Locator, driver: Optional[Driver] = None) -> Element:
    """Element located by a raw locator."""
    return Element(locator, driver)


def ss(css_selector: str, driver: Optional[Driver] = None) -> ElementAll:
    """All elements in the document matching a CSS selector."""
    return ElementAll(By.css(css_selector), driver)


def xx(expression: str, driver: Optional[Driver] = None) -> ElementAll:
    """All elements in the document matching an XPath expression."""
    return ElementAll(By.xpath(expression), driver)


__all__ = [
    "By",
    "ChainedElementAll",
    "Driver",
    "Element",
    "ElementAll",
    "Keys",
    "Locator",
    "LocatorChain",
    "element",
    "get_driver",
    "s",
    "ss",
    "xpath",
    "xx",
]
