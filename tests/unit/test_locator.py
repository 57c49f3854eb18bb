import pytest
from pydantic import ValidationError

from ui_resilience.selectors.capabilities import CAPABILITIES, BrowserAlias, capabilities_for
from ui_resilience.selectors.locator import By, Locator, LocatorChain, LocatorStrategy


def test_locator_renders_strategy_and_value():
    assert str(By.css("#login")) == "By(css selector, #login)"
    assert str(By.xpath("//a")) == "By(xpath, //a)"


@pytest.mark.parametrize(
    "locator, selector",
    [
        (By.css("div > a"), "css=div > a"),
        (By.xpath("//a[@href]"), "xpath=//a[@href]"),
        (By.text("Sign in"), "text=Sign in"),
        (By.id("user"), 'css=[id="user"]'),
        (By.name('q"x'), 'css=[name="q\\"x"]'),
    ],
)
def test_to_selector(locator, selector):
    assert locator.to_selector() == selector


def test_locator_rejects_blank_value_and_is_frozen():
    with pytest.raises(ValidationError):
        Locator(strategy=LocatorStrategy.css, value="  ")
    locator = By.css("a")
    with pytest.raises(ValidationError):
        locator.value = "b"


def test_chain_append_returns_new_chain():
    parent = LocatorChain.of(By.css("form"))
    child = parent.append(By.css("input"))
    assert len(parent) == 1
    assert len(child) == 2
    assert child.own == By.css("input")
    assert child.prefix(1) == parent


def test_chain_composition_is_associative():
    a, b, c = By.css("a"), By.css("b"), By.xpath("//c")
    assert LocatorChain.of(a).append(b).append(c) == LocatorChain.of(a, b, c)
    assert LocatorChain.coerce([a, b]) == LocatorChain.of(a).append(b)
    assert hash(LocatorChain.of(a, b)) == hash(LocatorChain.coerce([a, b]))


def test_chain_rejects_empty_and_non_locators():
    with pytest.raises(ValueError):
        LocatorChain([])
    with pytest.raises(TypeError):
        LocatorChain(["div"])


def test_chain_str_joins_locators():
    chain = LocatorChain.of(By.css("form"), By.xpath("//input"))
    assert str(chain) == "By(css selector, form), By(xpath, //input)"


def test_every_alias_has_capabilities():
    assert set(CAPABILITIES) == set(BrowserAlias)
    assert capabilities_for("safari").engine == "webkit"
    assert capabilities_for(BrowserAlias.edge).channel == "msedge"


def test_capabilities_maximize_headed_chromium_only():
    chrome = capabilities_for("chrome")
    firefox = capabilities_for("firefox")
    assert chrome.context_kwargs(headless=False) == {"ignore_https_errors": True, "no_viewport": True}
    assert chrome.context_kwargs(headless=True) == {"ignore_https_errors": True}
    assert not firefox.native_maximize(headless=False)
    assert chrome.launch_kwargs() == {"args": ["--start-maximized"], "channel": "chrome"}
