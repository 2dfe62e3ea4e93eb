"""
BOL Store — Change Subscriptions
==================================
In-memory registry of change handlers keyed by key prefix.

Rules:
- Handlers are notified AFTER a write is committed
- Multiple handlers per prefix allowed
- Duplicate handler for the same prefix forbidden
- A failing handler never breaks the write or other handlers
- Thread-safe
"""

import logging
from threading import Lock
from typing import Callable, Optional

from core.store.errors import StoreError

logger = logging.getLogger("bol.store")


class SubscriptionRegistry:
    """Maps key prefixes to change handlers."""

    def __init__(self):
        self._handlers: dict[str, list[Callable]] = {}
        self._lock = Lock()

    def subscribe(self, prefix: str, handler: Callable) -> Callable[[], None]:
        if not isinstance(prefix, str) or not prefix:
            raise StoreError("Subscription prefix must be a non-empty string.")
        if not callable(handler):
            raise StoreError(f"Handler must be callable, got {type(handler)}.")

        with self._lock:
            handlers = self._handlers.setdefault(prefix, [])
            if any(existing is handler for existing in handlers):
                raise StoreError(
                    f"Handler already subscribed to prefix '{prefix}'."
                )
            handlers.append(handler)

        def unsubscribe() -> None:
            with self._lock:
                current = self._handlers.get(prefix, [])
                self._handlers[prefix] = [h for h in current if h is not handler]

        return unsubscribe

    def matching(self, key: str) -> list[Callable]:
        with self._lock:
            return [
                handler
                for prefix, handlers in self._handlers.items()
                if key.startswith(prefix)
                for handler in handlers
            ]

    def notify(self, key: str, value: Optional[dict]) -> None:
        for handler in self.matching(key):
            handler_name = getattr(handler, "__qualname__", str(handler))
            try:
                handler(key, value)
            except Exception:
                logger.exception(
                    f"Change handler {handler_name} failed for key '{key}'"
                )
