"""Publish/subscribe seam between the session controller and the UI."""

from .bus import Event, EventBus
from .domain import (
    MESSAGE_APPENDED,
    MESSAGES_REFRESH,
    REPLY_FAILED,
    STATE_CHANGED,
    SUBMISSION_REJECTED,
)

__all__ = [
    "Event",
    "EventBus",
    "MESSAGE_APPENDED",
    "MESSAGES_REFRESH",
    "REPLY_FAILED",
    "STATE_CHANGED",
    "SUBMISSION_REJECTED",
]
