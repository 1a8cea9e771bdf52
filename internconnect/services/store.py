"""Shared plumbing for the per-session state stores."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from internconnect.core.exceptions import InternConnectError

logger = logging.getLogger(__name__)

Listener = Callable[[], Awaitable[None]]


class Store:
    """Observable state container.

    Operations that read or write a store's state run under its lock, one at a
    time. Listeners are awaited after every state change, in subscription order.
    """

    def __init__(self):
        self.loading = False
        self.error: InternConnectError | None = None
        self._lock = asyncio.Lock()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self) -> None:
        for listener in list(self._listeners):
            await listener()

    def _fail(self, error: InternConnectError) -> InternConnectError:
        self.error = error
        return error
