"""
Presence domain events and the in-process bus that delivers them.

The tracker publishes after its state change is committed; delivery to
clients is the subscriber's job (see src/api/utils/connection_manager.py).
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class PresenceEventKind(str, Enum):
    joined = "joined"
    left = "left"
    room_joined = "room_joined"
    room_left = "room_left"


class PresenceEvent(BaseModel):
    kind: PresenceEventKind
    user_id: str
    connection_id: str
    room: Optional[str] = None
    reason: Optional[str] = None


PresenceEventHandler = Callable[[PresenceEvent], Awaitable[None]]


class PresenceEventBus:
    def __init__(self):
        self._handlers: List[PresenceEventHandler] = []

    def subscribe(self, handler: PresenceEventHandler) -> Callable[[], None]:
        """Register a handler. Returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def publish(self, event: PresenceEvent) -> None:
        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception:
                # A failing subscriber must not undo a committed state change
                logger.exception(f"Presence event handler failed for {event.kind.value}")
