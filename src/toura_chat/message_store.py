"""Append-only message log backing the conversation view."""

from __future__ import annotations

from collections.abc import Iterable
import json

from .exceptions import MessageIndexError
from .models import Message, Sender


class MessageStore:
    """Ordered conversation history; insertion order is display order."""

    def __init__(self, seed: Iterable[Message] = ()) -> None:
        self._base_messages: tuple[Message, ...] = tuple(seed)
        self._messages: list[Message] = list(self._base_messages)

    @property
    def messages(self) -> tuple[Message, ...]:
        """Return an immutable snapshot of all stored messages."""
        return tuple(self._messages)

    def count(self) -> int:
        return len(self._messages)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def at(self, index: int) -> Message:
        """Return the message at ``index`` or raise :class:`MessageIndexError`."""
        if index < 0 or index >= len(self._messages):
            raise MessageIndexError(
                f"Message index {index} out of range for {len(self._messages)} messages."
            )
        return self._messages[index]

    def append(self, message: Message) -> int:
        """Append a message and return its index."""
        self._messages.append(message)
        return len(self._messages) - 1

    def clear(self) -> None:
        """Reset the store while preserving the seeded messages."""
        self._messages = list(self._base_messages)

    def rollback_last_user_append(self) -> Message | None:
        """Remove the last message if it is a user message.

        Used to undo a user-message append when a submission is rejected
        after it was recorded.
        """
        if self._messages and self._messages[-1].sender is Sender.USER:
            return self._messages.pop()
        return None

    def export_json(self) -> str:
        """Export the transcript using stable list and field ordering."""
        stable_messages = [
            {
                "sender": message.sender.value,
                "content": message.content,
                "timestamp": (
                    message.timestamp.isoformat() if message.timestamp else None
                ),
                "attachment_url": (
                    message.attachment.url if message.attachment else None
                ),
            }
            for message in self._messages
        ]
        return json.dumps(
            stable_messages, ensure_ascii=False, separators=(",", ":"), sort_keys=False
        )
