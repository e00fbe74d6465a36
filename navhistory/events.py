"""Synchronous event emitters and subscription bookkeeping.

Every collaborator signal (active editor change, file events, storage flush,
exclusion changes) is modelled as an ``Emitter``. Dispatch is in-order and
run-to-completion: a listener finishes before the next one is called.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class Subscription:
    """Handle returned by ``Emitter.subscribe``; disposing it unsubscribes."""

    def __init__(self, release: Callable[[], None] | None = None) -> None:
        self._release = release

    @property
    def disposed(self) -> bool:
        return self._release is None

    def dispose(self) -> None:
        """Unsubscribe. Safe to call more than once."""
        release = self._release
        self._release = None
        if release is not None:
            release()


class Emitter(Generic[T]):
    """Fan out one payload to all current listeners."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[T], None]] = []
        self._disposed = False

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        if self._disposed:
            return Subscription()
        self._listeners.append(listener)

        def release() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return Subscription(release)

    def once(self, listener: Callable[[T], None]) -> Subscription:
        """Subscribe ``listener`` for the next ``fire`` only."""
        subscription: Subscription

        def wrapper(payload: T) -> None:
            subscription.dispose()
            listener(payload)

        subscription = self.subscribe(wrapper)
        return subscription

    def fire(self, payload: T = None) -> None:  # type: ignore[assignment]
        # Snapshot so listeners may unsubscribe (or subscribe) mid-dispatch.
        for listener in list(self._listeners):
            listener(payload)

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True


class SubscriptionStore:
    """Collect subscriptions and release them together."""

    def __init__(self) -> None:
        self._items: list[Subscription] = []

    def add(self, subscription: Subscription) -> Subscription:
        self._items.append(subscription)
        return subscription

    def clear(self) -> None:
        items = self._items
        self._items = []
        for item in items:
            item.dispose()

    def __len__(self) -> int:
        return len(self._items)

    dispose = clear


__all__ = ["Emitter", "Subscription", "SubscriptionStore"]
