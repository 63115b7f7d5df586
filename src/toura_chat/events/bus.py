"""Event bus connecting the chat session to whatever renders it.

Usage:
    bus = EventBus()

    async def on_refresh(event):
        await view.reload_and_scroll_to_bottom(event.data["messages"])

    detach = bus.subscribe(MESSAGES_REFRESH, on_refresh)
    await bus.publish(MESSAGES_REFRESH, {"messages": store.messages})
    detach()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)

Handler = Callable[["Event"], Any]


@dataclass(frozen=True)
class Event:
    """A named notification and its payload."""

    name: str
    data: dict[str, Any]


class EventBus:
    """Publish/subscribe hub between the session controller and the UI.

    Handlers run in subscription order on the publishing task. A failing
    handler is logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, event_name: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``event_name``.

        Returns a callable that detaches the handler again; calling it more
        than once is harmless.
        """
        self._subscribers.setdefault(event_name, []).append(handler)
        LOGGER.debug("Subscribed to event: %s", event_name)

        def detach() -> None:
            self.unsubscribe(event_name, handler)

        return detach

    def unsubscribe(self, event_name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(event_name)
        if not handlers or handler not in handlers:
            return
        handlers.remove(handler)
        if not handlers:
            del self._subscribers[event_name]
        LOGGER.debug("Unsubscribed from event: %s", event_name)

    async def publish(self, event_name: str, data: dict[str, Any]) -> None:
        """Deliver ``data`` to every handler subscribed to ``event_name``."""
        handlers = list(self._subscribers.get(event_name, ()))
        if not handlers:
            LOGGER.debug("No subscribers for event: %s", event_name)
            return

        event = Event(name=event_name, data=data)
        for handler in handlers:
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                LOGGER.error(
                    "events.handler.failed",
                    extra={
                        "event": "events.handler.failed",
                        "event_name": event_name,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )
