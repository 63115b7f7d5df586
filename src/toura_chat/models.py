"""Chat message records shared by the session controller and the UI."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import uuid


class Sender(str, Enum):
    """Which side of the conversation produced a message."""

    USER = "user"
    OPPONENT = "opponent"


@dataclass(frozen=True)
class Attachment:
    """Image downloaded from a URL mentioned in a reply."""

    url: str
    data: bytes
    mime_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)


def _new_message_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Message:
    """A single chat line.

    ``id`` is synthesized so rendered rows can be matched to stored messages
    without relying on list position.
    """

    sender: Sender
    content: str
    timestamp: datetime | None = None
    attachment: Attachment | None = None
    id: str = field(default_factory=_new_message_id)

    @classmethod
    def from_user(cls, content: str) -> Message:
        return cls(sender=Sender.USER, content=content, timestamp=_utcnow())

    @classmethod
    def from_opponent(
        cls, content: str, attachment: Attachment | None = None
    ) -> Message:
        return cls(
            sender=Sender.OPPONENT,
            content=content,
            timestamp=_utcnow(),
            attachment=attachment,
        )

    @property
    def is_user(self) -> bool:
        return self.sender is Sender.USER


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
