import asyncio
import time

import pytest

from ui_resilience.utils.timing import DEFAULT_TIMEOUT_MS, Stopwatch, TimeConstants, make_clock, measure, now_ms


def test_clock_true_before_budget_elapses():
    still_within_budget = make_clock(1000)
    assert still_within_budget()
    assert still_within_budget()


def test_clock_false_after_budget_elapses():
    still_within_budget = make_clock(30)
    time.sleep(0.06)
    assert not still_within_budget()


def test_zero_budget_allows_an_immediate_check_only():
    still_within_budget = make_clock(0)
    start = now_ms()
    while now_ms() == start:
        pass
    assert not still_within_budget()


def test_default_budget_is_quarter_minute():
    assert DEFAULT_TIMEOUT_MS == TimeConstants.QUARTER_A_MINUTE == 15000


def test_stopwatch_measures_elapsed():
    with Stopwatch() as sw:
        time.sleep(0.02)
    assert sw.elapsed_ms() >= 20
    assert Stopwatch().elapsed_ms() == 0


@pytest.mark.asyncio
async def test_measure_wraps_coroutines_and_plain_functions():
    @measure("async op")
    async def add(a, b):
        await asyncio.sleep(0)
        return a + b

    @measure()
    def mul(a, b):
        return a * b

    assert await add(2, 3) == 5
    assert mul(2, 3) == 6
    assert add.__name__ == "add"
