"""Observable snapshot holder.

Replaces module-level pub/sub singletons: each controller owns one
instance and hands out `subscribe()` to whoever renders its state.

    store = Observable(WizardState())
    unsubscribe = store.subscribe(lambda s: print(s.step))
    store._set(replace(store.get(), step=2))   # prints 2
    unsubscribe()
"""

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class Observable(Generic[T]):
    """Holds one immutable snapshot and notifies listeners on replacement."""

    def __init__(self, initial: T):
        self._value = initial
        self._listeners: list[Listener] = []

    def get(self) -> T:
        return self._value

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns a function that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, value: T) -> None:
        """Replace the snapshot and notify every listener with it."""
        self._value = value
        # Copy so a listener may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Listener %r failed", listener)
