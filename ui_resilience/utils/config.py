from __future__ import annotations

import functools
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from ui_resilience.selectors.capabilities import BrowserAlias


# ---------- Enums ----------

class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for the resilience layer.

    Values load in this order of precedence:
      1) Explicit overrides (CLI / pytest options, see `set_overrides`)
      2) Environment variables prefixed with UIR_ (e.g. UIR_BROWSER=firefox)
      3) .env file in project root
      4) ui-resilience.yaml config store in project root
      5) Defaults below
    """

    # ---- Browser selection ----
    BROWSER: Optional[str] = Field(default=None, description="Browser alias for the session")
    BROWSERS: List[str] = Field(default_factory=list, description="Browser aliases for matrix runs")
    HEADLESS: bool = Field(default=True, description="Launch the browser headless (direct-connect only)")

    # ---- Remote driver ----
    DIRECT_CONNECT: bool = Field(default=False, description="Launch a local browser instead of using the hub")
    HUB_URL: Optional[str] = Field(default=None, description="Playwright server websocket endpoint")
    WEBDRIVER_PROXY: Optional[str] = Field(default=None, description="Proxy server for browser traffic")

    # ---- Retry policy ----
    DEFAULT_TIMEOUT_MS: int = Field(default=15000, ge=0, description="Retry budget when a call passes no timeout")
    POLL_INTERVAL_MS: int = Field(default=50, ge=0, description="Pause between retry attempts")
    PAGE_LOAD_TIMEOUT: int = Field(default=60000, ge=1000)
    ACTION_TIMEOUT_MS: int = Field(default=2000, ge=100, description="Playwright actionability wait per single driver call")

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./ui-resilience.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="UIR_",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="ui-resilience.yaml",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("BROWSER", "HUB_URL", "WEBDRIVER_PROXY", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("LOG_FILE", mode="after")
    @classmethod
    def _absolutize_log_file(cls, v: Path):
        return v if v.is_absolute() else Path.cwd() / v

    @property
    def hub_url(self) -> Optional[str]:
        """Hub endpoint, or None when the browser is launched directly."""
        if self.DIRECT_CONNECT:
            return None
        return self.HUB_URL

    @property
    def proxy_server(self) -> Optional[str]:
        return self.WEBDRIVER_PROXY

    def ensure_dirs(self) -> None:
        """Create the log directory when file logging is on (idempotent)."""
        if self.LOG_TO_FILE:
            self.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)


# --------- Public accessor (memoized) ---------

_overrides: Dict[str, Any] = {}


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` if you need to reload after changing env.
    """
    s = Settings(**_overrides)
    s.ensure_dirs()
    return s


def set_overrides(**kwargs: Any) -> None:
    """Force setting values (highest precedence); None values are ignored."""
    _overrides.update({k: v for k, v in kwargs.items() if v is not None})
    get_settings.cache_clear()


def clear_overrides() -> None:
    _overrides.clear()
    get_settings.cache_clear()


# --------- Browser resolution (fatal on misconfiguration) ---------

def _fatal(message: str) -> NoReturn:
    from ui_resilience.utils.logger import get_logger

    get_logger(__name__).critical(message)
    sys.exit(1)


def _aliases() -> str:
    return ", ".join(alias.value for alias in BrowserAlias)


def resolve_browser(value: Optional[str] = None, settings: Optional[Settings] = None) -> BrowserAlias:
    """
    Return the configured browser alias.

    An explicit `value` (e.g. from --browser) wins over settings. A missing or
    unknown browser terminates the process with exit code 1.
    """
    s = settings or get_settings()
    browser = value or s.BROWSER
    if not browser:
        _fatal(
            "Browser name is not set, please add UIR_BROWSER=[" + _aliases() + "] "
            "as env param or --browser=[" + _aliases() + "]"
        )
    try:
        return BrowserAlias(browser.lower())
    except ValueError:
        _fatal(f"Browser name {browser!r} is incorrect, please use one of these: {_aliases()}")


def resolve_browsers(settings: Optional[Settings] = None) -> List[BrowserAlias]:
    """Return the configured browser matrix; exits when unset or invalid."""
    s = settings or get_settings()
    if not s.BROWSERS:
        _fatal('Browsers are not set, please add UIR_BROWSERS=\'["chrome", "firefox"]\' as env param')
    resolved: List[BrowserAlias] = []
    for browser in s.BROWSERS:
        try:
            resolved.append(BrowserAlias(browser.lower()))
        except ValueError:
            _fatal(f"Browser name {browser!r} is incorrect, please use these values: {_aliases()}")
    return resolved

