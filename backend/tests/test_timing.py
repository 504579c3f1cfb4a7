"""Tests for the cancellable delay helpers and the reentry guard."""

import asyncio
import time

import pytest

from axori.services.timing import InFlightGuard, cancellable_sleep, hold_minimum, ms


@pytest.mark.unit
@pytest.mark.asyncio
class TestCancellableSleep:

    async def test_full_delay_returns_true(self):
        started = time.monotonic()
        assert await cancellable_sleep(0.05, asyncio.Event()) is True
        assert time.monotonic() - started >= 0.045

    async def test_without_event(self):
        assert await cancellable_sleep(0.01) is True

    async def test_cancel_returns_early(self):
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, cancel.set)

        started = time.monotonic()
        assert await cancellable_sleep(5, cancel) is False
        assert time.monotonic() - started < 1.0

    async def test_already_cancelled(self):
        cancel = asyncio.Event()
        cancel.set()
        assert await cancellable_sleep(5, cancel) is False

    async def test_zero_delay(self):
        assert await cancellable_sleep(0, asyncio.Event()) is True


@pytest.mark.unit
@pytest.mark.asyncio
class TestHoldMinimum:

    async def test_holds_for_remaining_time(self):
        started = time.monotonic()
        assert await hold_minimum(started, 0.1) is True
        assert time.monotonic() - started >= 0.095

    async def test_no_hold_when_elapsed(self):
        clock_values = iter([10.0])
        started = time.monotonic()
        assert await hold_minimum(0.0, 3.0, clock=lambda: next(clock_values)) is True
        assert time.monotonic() - started < 0.5

    async def test_cancel_during_hold(self):
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, cancel.set)
        assert await hold_minimum(time.monotonic(), 5.0, cancel=cancel) is False


@pytest.mark.unit
class TestInFlightGuard:

    def test_enter_and_release(self):
        guard = InFlightGuard("work")
        with guard.enter() as entered:
            assert entered is True
            assert guard.busy is True
        assert guard.busy is False

    def test_nested_entry_rejected(self):
        guard = InFlightGuard("work")
        with guard.enter() as outer:
            with guard.enter() as inner:
                assert outer is True
                assert inner is False
            # Rejected entry must not release the outer hold
            assert guard.busy is True
        assert guard.busy is False

    def test_released_on_exception(self):
        guard = InFlightGuard("work")
        with pytest.raises(RuntimeError):
            with guard.enter():
                raise RuntimeError("boom")
        assert guard.busy is False


def test_ms():
    assert ms(3000) == 3.0
    assert ms(200) == 0.2
