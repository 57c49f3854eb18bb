from __future__ import annotations

"""Browser capability table
---------------------------
Maps each supported browser alias to the Playwright engine, channel and
context options used to build the session. Read-only.
"""

from enum import Enum
from types import MappingProxyType
from typing import Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class BrowserAlias(str, Enum):
    chrome = "chrome"
    chromium = "chromium"
    firefox = "firefox"
    edge = "edge"
    safari = "safari"


class BrowserCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    browser_name: str = Field(..., description="Name reported in session capabilities")
    engine: Literal["chromium", "firefox", "webkit"]
    channel: Optional[str] = Field(default=None, description="Branded build, e.g. 'chrome' or 'msedge'")
    accept_insecure_certs: bool = False
    args: Tuple[str, ...] = ()

    @property
    def maximizes_natively(self) -> bool:
        """Chromium honours --start-maximized; other engines need an explicit viewport."""
        return self.engine == "chromium"

    def launch_kwargs(self) -> dict:
        kwargs: dict = {"args": list(self.args)}
        if self.channel:
            kwargs["channel"] = self.channel
        return kwargs

    def native_maximize(self, headless: bool) -> bool:
        return self.maximizes_natively and not headless

    def context_kwargs(self, headless: bool) -> dict:
        kwargs: dict = {"ignore_https_errors": self.accept_insecure_certs}
        if self.native_maximize(headless):
            kwargs["no_viewport"] = True
        return kwargs


_MAXIMIZED = ("--start-maximized",)

CAPABILITIES: Mapping[BrowserAlias, BrowserCapabilities] = MappingProxyType({
    BrowserAlias.chrome: BrowserCapabilities(
        browser_name="chrome",
        engine="chromium",
        channel="chrome",
        accept_insecure_certs=True,
        args=_MAXIMIZED,
    ),
    BrowserAlias.chromium: BrowserCapabilities(
        browser_name="chromium",
        engine="chromium",
        accept_insecure_certs=True,
        args=_MAXIMIZED,
    ),
    BrowserAlias.firefox: BrowserCapabilities(
        browser_name="firefox",
        engine="firefox",
        accept_insecure_certs=True,
    ),
    BrowserAlias.edge: BrowserCapabilities(
        browser_name="MicrosoftEdge",
        engine="chromium",
        channel="msedge",
        args=_MAXIMIZED,
    ),
    BrowserAlias.safari: BrowserCapabilities(
        browser_name="safari",
        engine="webkit",
    ),
})


def capabilities_for(alias: BrowserAlias | str) -> BrowserCapabilities:
    return CAPABILITIES[BrowserAlias(alias)]
