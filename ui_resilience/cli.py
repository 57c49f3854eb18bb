from __future__ import annotations

"""Command-line interface
------------------------
Convenience commands to inspect the effective configuration and capability
table, and to smoke-test a page through the retrying element API.
"""

import asyncio
import base64
import json
import sys
from pathlib import Path
from typing import Optional

import click

from ui_resilience import Driver, Element, s, xpath
from ui_resilience.core.errors import DriverError, ExpectationError
from ui_resilience.selectors.capabilities import CAPABILITIES
from ui_resilience.utils.config import get_settings, resolve_browser, set_overrides
from ui_resilience.utils.logger import get_logger, set_log_level


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _target(selector: str, use_xpath: bool, driver: Driver) -> Element:
    return xpath(selector, driver) if use_xpath else s(selector, driver)


def _run(coro) -> None:
    """Run a session coroutine; driver failures become exit code 1."""
    log = get_logger(__name__)
    try:
        asyncio.run(coro)
    except (DriverError, ExpectationError) as e:
        log.debug("command failed", exc_info=True)
        click.echo(f"ERR {type(e).__name__}: {e}")
        sys.exit(1)


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.option("--browser", type=str, default=None, help="Browser alias (overrides UIR_BROWSER)")
@click.option("--hub-url", type=str, default=None, help="Playwright server endpoint (overrides UIR_HUB_URL)")
@click.option("--direct-connect/--no-direct-connect", default=None, help="Launch a local browser instead of the hub")
@click.option("--headless/--headed", default=None, help="Override HEADLESS for direct launches")
@click.version_option(package_name="ui-resilience")
def cli(
    log_level: Optional[str],
    browser: Optional[str],
    hub_url: Optional[str],
    direct_connect: Optional[bool],
    headless: Optional[bool],
):
    set_overrides(BROWSER=browser, HUB_URL=hub_url, DIRECT_CONNECT=direct_connect, HEADLESS=headless)
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after overrides, env, .env and YAML)."""
    settings = get_settings()
    data = settings.model_dump(mode="json")
    data["hub_url"] = settings.hub_url
    _echo_json(data)


@cli.command("browsers")
def cmd_browsers():
    """List supported browser aliases and their capabilities."""
    _echo_json({alias.value: caps.model_dump() for alias, caps in CAPABILITIES.items()})


@cli.command("locate")
@click.argument("url")
@click.argument("selector")
@click.option("--xpath", "use_xpath", is_flag=True, default=False, help="Treat SELECTOR as XPath")
@click.option("--timeout-ms", type=int, default=None, help="Retry budget (defaults to DEFAULT_TIMEOUT_MS)")
@click.option("--attribute", type=str, default=None, help="Print this attribute instead of the text")
def cmd_locate(url: str, selector: str, use_xpath: bool, timeout_ms: Optional[int], attribute: Optional[str]):
    """
    Open URL, wait for SELECTOR to be present and print its text.

    Examples:
      ui-resilience --browser chromium --direct-connect locate https://example.com h1
      ui-resilience locate https://example.com "//a" --xpath --attribute href
    """
    alias = resolve_browser()

    async def locate() -> None:
        driver = Driver(browser=alias.value)
        try:
            await driver.get(url)
            target = _target(selector, use_xpath, driver)
            await target.expect_to_be_present(timeout_ms=timeout_ms)
            if attribute:
                value = await target.get_attribute(attribute)
            else:
                value = await target.retry_get_text(timeout_ms)
            click.echo(f"OK  {target.chain} -> {value!r}")
        finally:
            await driver.quit()

    _run(locate())


@cli.command("screenshot")
@click.argument("url")
@click.argument("out", type=click.Path(dir_okay=False))
@click.option("--selector", type=str, default=None, help="Capture only this element (CSS)")
@click.option("--xpath", "use_xpath", is_flag=True, default=False, help="Treat --selector as XPath")
def cmd_screenshot(url: str, out: str, selector: Optional[str], use_xpath: bool):
    """Save a PNG of URL (or of one element on it) to OUT."""
    alias = resolve_browser()
    outp = Path(out).resolve()

    async def capture() -> None:
        driver = Driver(browser=alias.value)
        try:
            await driver.get(url)
            if selector:
                encoded = await _target(selector, use_xpath, driver).take_screenshot()
            else:
                encoded = await driver.take_screenshot()
        finally:
            await driver.quit()
        outp.parent.mkdir(parents=True, exist_ok=True)
        outp.write_bytes(base64.b64decode(encoded))
        click.echo(f"Wrote screenshot: {outp}")

    _run(capture())


def main() -> None:
    cli(prog_name="ui-resilience")


if __name__ == "__main__":
    main()
