from __future__ import annotations

"""pytest integration
---------------------
Registered through the `pytest11` entry point. Adds command-line options that
override settings for the test run, so `pytest --browser=firefox` selects the
session browser the same way UIR_BROWSER does, and closes the shared browser
session when the run ends.

The shared session belongs to the event loop it was built on. Run async tests
on one session-wide loop (pytest-asyncio `asyncio_default_test_loop_scope =
"session"`) to keep a single browser for the whole run; with per-test loops the
driver rebuilds the session whenever the loop changes.
"""

import asyncio
from typing import Any, Dict

import pytest

from ui_resilience.core.driver import SessionState, get_driver
from ui_resilience.utils.config import resolve_browser, set_overrides


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("ui-resilience", "retrying browser element API")
    group.addoption("--browser", action="store", default=None, help="Browser alias for the driver session")
    group.addoption("--hub-url", action="store", default=None, help="Playwright server endpoint")
    group.addoption(
        "--direct-connect",
        action="store_true",
        default=None,
        help="Launch a local browser instead of connecting to the hub",
    )
    group.addoption("--webdriver-proxy", action="store", default=None, help="Proxy server for browser traffic")
    group.addoption(
        "--retry-timeout-ms",
        action="store",
        type=int,
        default=None,
        help="Default retry budget for element operations",
    )


def option_overrides(config: pytest.Config) -> Dict[str, Any]:
    return {
        "BROWSER": config.getoption("--browser"),
        "HUB_URL": config.getoption("--hub-url"),
        "DIRECT_CONNECT": config.getoption("--direct-connect"),
        "WEBDRIVER_PROXY": config.getoption("--webdriver-proxy"),
        "DEFAULT_TIMEOUT_MS": config.getoption("--retry-timeout-ms"),
    }


def pytest_configure(config: pytest.Config) -> None:
    overrides = option_overrides(config)
    set_overrides(**overrides)
    if overrides["BROWSER"]:
        # Fail the run at startup, not at the first element lookup
        resolve_browser(overrides["BROWSER"])


def close_shared_driver() -> None:
    """Quit the `get_driver()` session, on its own loop when that loop is still usable."""
    if not get_driver.cache_info().currsize:
        return
    driver = get_driver()
    if driver.state is not SessionState.active:
        return
    loop = driver.loop
    if loop is None or loop.is_closed():
        # Quitting from a fresh loop only drops the session's references
        loop = asyncio.new_event_loop()
        try:
            loop.run_until_complete(driver.quit())
        finally:
            loop.close()
        return
    loop.run_until_complete(driver.quit())


def pytest_unconfigure(config: pytest.Config) -> None:
    close_shared_driver()
