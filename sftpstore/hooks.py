"""Storage event fan-out for instrumentation (audit logs, metrics, cache purges)."""

from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)


class StorageEvent(str, Enum):
    UPLOAD = "storage:upload"
    DELETE = "storage:delete"
    PRUNE = "storage:prune"  # an emptied directory was removed


class EventHandler(Protocol):
    def __call__(
        self, event: StorageEvent, payload: Mapping[str, object]
    ) -> None:  # pragma: no cover - protocol
        """Receive one storage event."""


class HookBus:
    """Deliver storage events to subscribers.

    A handler subscribed without an event receives every event. Handler
    failures are logged and never reach the adapter that emitted the event.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Optional[StorageEvent], List[EventHandler]] = defaultdict(list)

    def subscribe(
        self, handler: EventHandler, event: Optional[StorageEvent] = None
    ) -> Callable[[], None]:
        """Register ``handler``; the returned callable removes it again."""
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def emit(self, event: StorageEvent, **payload: object) -> None:
        for handler in [*self._handlers.get(event, ()), *self._handlers.get(None, ())]:
            try:
                handler(event, payload)
            except Exception:
                logger.warning("storage hook %r failed on %s", handler, event.value, exc_info=True)


hooks = HookBus()


def _log_event(event: StorageEvent, payload: Mapping[str, object]) -> None:
    logger.debug("%s %s", event.value, payload)


hooks.subscribe(_log_event)
