"""
Realtime Subscription Manager

Each screen that listens to store updates owns one manager. Teardown
callables are registered as listeners are opened and released together when
the screen closes, typically through a with-block.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)


class SubscriptionManager:
    """Scoped owner of listener teardown callables."""

    def __init__(self, name: str = "subscriptions"):
        self.name = name
        self._unsubscribers: list[Callable[[], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._unsubscribers)

    def add(self, unsubscribe: Callable[[], None]) -> Callable[[], None]:
        """Register a teardown callable. Returns it for convenience."""
        if self._closed:
            raise RuntimeError(f"{self.name} is closed")
        if not callable(unsubscribe):
            raise TypeError(f"unsubscribe must be callable, got: {unsubscribe!r}")
        self._unsubscribers.append(unsubscribe)
        return unsubscribe

    def close(self) -> None:
        """
        Release every registered listener exactly once.

        All teardowns are attempted; the first failure is re-raised after
        the rest have run.
        """
        if self._closed:
            return
        self._closed = True

        pending, self._unsubscribers = self._unsubscribers, []
        first_error = None
        for unsubscribe in pending:
            try:
                unsubscribe()
            except Exception as e:
                logger.error(f"Teardown failed in {self.name}: {str(e)}")
                if first_error is None:
                    first_error = e

        logger.debug(f"Closed {self.name}: released {len(pending)} listener(s)")
        if first_error is not None:
            raise first_error

    def __enter__(self) -> "SubscriptionManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
