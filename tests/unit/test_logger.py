import json
import logging

import pytest

from ui_resilience.core.errors import NoSuchElementError
from ui_resilience.core.retry import retry_until_success
from ui_resilience.selectors.locator import By, LocatorChain
from ui_resilience.utils.logger import ContextAdapter, JsonFormatter, bind, get_logger, log_with_context, unbind


class Capture(logging.Handler):
    def __init__(self):
        super().__init__(logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def capture():
    """Collects records of `name` at DEBUG; yields a function taking the logger name."""
    attached = []

    def attach(name):
        logger = logging.getLogger(name)
        handler = Capture()
        attached.append((logger, handler, logger.level))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        return handler

    yield attach
    for logger, handler, level in attached:
        logger.removeHandler(handler)
        logger.setLevel(level)


def test_records_carry_bound_and_scoped_context(capture):
    handler = capture("ui_resilience.tests")
    bind(browser="firefox")
    try:
        log = log_with_context(get_logger("ui_resilience.tests"), chain="By(css selector, #login)")
        log.info("retrying %s", "click")
    finally:
        unbind("browser")

    assert isinstance(log, ContextAdapter)
    (record,) = handler.records
    assert record.context == {"browser": "firefox", "chain": "By(css selector, #login)"}

    payload = json.loads(JsonFormatter().format(record))
    assert payload["msg"] == "retrying click"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "ui_resilience.tests"
    assert payload["browser"] == "firefox"
    assert payload["chain"] == "By(css selector, #login)"


def test_unbind_and_empty_fields_are_dropped(capture):
    handler = capture("ui_resilience.tests")
    bind(test_id="checkout")
    unbind("test_id", "missing")
    log_with_context(get_logger("ui_resilience.tests"), chain=None).warning("plain")

    (record,) = handler.records
    assert "test_id" not in record.context
    assert "chain" not in record.context
    assert "chain" not in json.loads(JsonFormatter().format(record))


def test_scoped_adapter_leaves_base_logger_unchanged():
    base = get_logger("ui_resilience.tests")
    scoped = log_with_context(base, attempts=3)
    assert base.extra == {}
    assert scoped.extra == {"attempts": 3}
    assert scoped.logger is base.logger


@pytest.mark.asyncio
async def test_retry_give_up_is_logged_with_chain_and_attempts(capture):
    handler = capture("ui_resilience.core.retry")
    chain = LocatorChain.of(By.css("#missing"))

    async def missing():
        raise NoSuchElementError("no such element")

    with pytest.raises(NoSuchElementError) as info:
        await retry_until_success(missing, timeout_ms=30, chain=chain)

    gave_up = [r for r in handler.records if r.getMessage().startswith("Gave up")]
    assert len(gave_up) == 1
    assert gave_up[0].context["chain"] == "By(css selector, #missing)"
    assert gave_up[0].context["attempts"] == info.value.attempts
