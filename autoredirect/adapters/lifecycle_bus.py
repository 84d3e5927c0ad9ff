"""In-process lifecycle event bus.

Implements LifecycleBusPort for a single process: storage adapters emit
mutation events, subscribers such as the auto-redirect hooks receive them in
subscription order.
"""

import logging
from collections.abc import Callable

from autoredirect.components.slug_redirects import LifecycleEvent, LifecycleHandler

logger = logging.getLogger(__name__)


class InProcessLifecycleBus:
    """Delivers every emitted event to every subscriber, one after another."""

    def __init__(self) -> None:
        self._handlers: list[LifecycleHandler] = []

    def subscribe(self, handler: LifecycleHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def emit(self, event: LifecycleEvent) -> None:
        """A failing subscriber is logged; the others and the emitter carry on."""
        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception:
                logger.exception("Lifecycle subscriber failed on %s", event.action)

    def __len__(self) -> int:
        return len(self._handlers)

    def clear(self) -> None:
        """Drop all subscribers - useful for testing."""
        self._handlers.clear()
