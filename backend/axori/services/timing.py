"""Awaitable delay primitives shared by the wizard and migration controllers.

Delays are parameterized by an `asyncio.Event` used as a cancellation
signal: setting the event makes every pending delay return early, so a
torn-down controller stops waiting instead of sleeping out the remainder.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


async def cancellable_sleep(seconds: float, cancel: asyncio.Event | None = None) -> bool:
    """Sleep for `seconds` unless `cancel` is set first.

    Returns True if the full delay elapsed, False if it was cut short.
    """
    if cancel is None:
        if seconds > 0:
            await asyncio.sleep(seconds)
        return True
    if cancel.is_set():
        return False
    if seconds <= 0:
        return True
    try:
        await asyncio.wait_for(cancel.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return True
    return False


async def hold_minimum(
    started_at: float,
    minimum_seconds: float,
    clock: Clock = time.monotonic,
    cancel: asyncio.Event | None = None,
) -> bool:
    """Sleep until `minimum_seconds` have passed since `started_at`.

    `started_at` must come from the same `clock`.  Returns False only if
    cancelled while waiting.
    """
    remaining = minimum_seconds - (clock() - started_at)
    if remaining <= 0:
        return True
    logger.debug("Holding %.3fs to honour minimum display time", remaining)
    return await cancellable_sleep(remaining, cancel)


class InFlightGuard:
    """Single-flag reentry guard for one controller instance.

    Controllers run on one event loop, so checking and setting the flag
    happen without an intervening await.

        guard = InFlightGuard("advance")
        with guard.enter() as entered:
            if not entered:
                return
            ...
    """

    def __init__(self, name: str):
        self.name = name
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def enter(self) -> Iterator[bool]:
        if self._busy:
            logger.debug("Ignoring %s: previous call still in flight", self.name)
            yield False
            return
        self._busy = True
        try:
            yield True
        finally:
            self._busy = False


def ms(milliseconds: int | float) -> float:
    """Convert milliseconds to the seconds asyncio expects."""
    return milliseconds / 1000.0
