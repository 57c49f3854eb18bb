import pytest

from ui_resilience.core.driver import get_driver
from ui_resilience.utils.config import clear_overrides, get_settings
from ui_resilience.utils.logger import unbind

from fakes import FakeDriver


_ENV_KEYS = (
    "UIR_BROWSER",
    "UIR_BROWSERS",
    "UIR_HUB_URL",
    "UIR_DIRECT_CONNECT",
    "UIR_WEBDRIVER_PROXY",
    "UIR_DEFAULT_TIMEOUT_MS",
    "UIR_POLL_INTERVAL_MS",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Fresh settings per test: no .env / YAML from the repo, fast polling."""
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("UIR_POLL_INTERVAL_MS", "10")
    monkeypatch.setenv("UIR_DEFAULT_TIMEOUT_MS", "500")
    clear_overrides()
    get_driver.cache_clear()
    yield
    clear_overrides()
    get_settings.cache_clear()
    get_driver.cache_clear()
    unbind("browser")


@pytest.fixture
def driver():
    return FakeDriver()
