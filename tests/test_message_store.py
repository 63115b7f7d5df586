"""Tests for the ordered, append-only message store."""

from __future__ import annotations

import dataclasses
import json
import unittest

from toura_chat.exceptions import MessageIndexError
from toura_chat.message_store import MessageStore
from toura_chat.models import Attachment, Message, Sender


def _greeting() -> Message:
    return Message.from_opponent("Hi there, where do you want to go?")


class MessageStoreTests(unittest.TestCase):
    """Validate ordering, indexing and reset behavior."""

    def test_append_returns_new_index_and_keeps_order(self) -> None:
        store = MessageStore()
        first = Message.from_user("one")
        second = Message.from_opponent("two")
        third = Message.from_user("three")

        self.assertEqual(store.append(first), 0)
        self.assertEqual(store.append(second), 1)
        self.assertEqual(store.append(third), 2)

        self.assertEqual(
            [message.content for message in store.messages], ["one", "two", "three"]
        )
        self.assertIs(store.at(1), second)
        self.assertIs(store.last, third)

    def test_count_increases_by_exactly_one_per_append(self) -> None:
        store = MessageStore(seed=[_greeting()])
        for expected in range(2, 7):
            store.append(Message.from_user(f"line {expected}"))
            self.assertEqual(store.count(), expected)

    def test_at_out_of_range_raises(self) -> None:
        store = MessageStore(seed=[_greeting()])
        with self.assertRaises(MessageIndexError):
            store.at(1)
        with self.assertRaises(MessageIndexError):
            store.at(-1)
        # OutOfRange is also an IndexError for plain callers.
        with self.assertRaises(IndexError):
            store.at(5)

    def test_messages_snapshot_is_immutable(self) -> None:
        store = MessageStore()
        store.append(Message.from_user("hello"))
        snapshot = store.messages
        store.append(Message.from_user("again"))

        self.assertIsInstance(snapshot, tuple)
        self.assertEqual(len(snapshot), 1)

    def test_message_fields_are_frozen(self) -> None:
        message = Message.from_user("hello")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            message.content = "changed"  # type: ignore[misc]
        with self.assertRaises(dataclasses.FrozenInstanceError):
            message.sender = Sender.OPPONENT  # type: ignore[misc]

    def test_clear_restores_seeded_greeting(self) -> None:
        greeting = _greeting()
        store = MessageStore(seed=[greeting])
        store.append(Message.from_user("Jaipur"))
        store.append(Message.from_opponent("Great choice."))

        store.clear()

        self.assertEqual(store.messages, (greeting,))

    def test_rollback_only_removes_trailing_user_message(self) -> None:
        store = MessageStore(seed=[_greeting()])
        self.assertIsNone(store.rollback_last_user_append())
        self.assertEqual(store.count(), 1)

        user = Message.from_user("Udaipur")
        store.append(user)
        self.assertIs(store.rollback_last_user_append(), user)
        self.assertEqual(store.count(), 1)

    def test_last_is_none_for_empty_store(self) -> None:
        self.assertIsNone(MessageStore().last)

    def test_export_json_has_stable_fields(self) -> None:
        store = MessageStore(seed=[_greeting()])
        store.append(Message.from_user("Jodhpur"))
        store.append(
            Message.from_opponent(
                "See https://example.com/fort.png",
                attachment=Attachment(
                    url="https://example.com/fort.png",
                    data=b"\x89PNG",
                    mime_type="image/png",
                ),
            )
        )

        payload = json.loads(store.export_json())

        self.assertEqual([row["sender"] for row in payload], ["opponent", "user", "opponent"])
        self.assertEqual(
            list(payload[0].keys()), ["sender", "content", "timestamp", "attachment_url"]
        )
        self.assertIsNone(payload[1]["attachment_url"])
        self.assertEqual(payload[2]["attachment_url"], "https://example.com/fort.png")
        self.assertIsNotNone(payload[1]["timestamp"])

    def test_attachment_size_matches_payload(self) -> None:
        attachment = Attachment(url="https://example.com/a.jpg", data=b"12345")
        self.assertEqual(attachment.size, 5)


if __name__ == "__main__":
    unittest.main()
