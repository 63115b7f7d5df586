"""Unit tests for individual widget classes."""

from __future__ import annotations

from datetime import datetime, timezone
import unittest

from toura_chat.exceptions import MessageIndexError
from toura_chat.models import Attachment, Message, Sender
from toura_chat.sizing import SizingOracle

try:
    from textual.app import App, ComposeResult

    from toura_chat.widgets.activity_bar import ActivityBar
    from toura_chat.widgets.compose_bar import ComposeBar
    from toura_chat.widgets.conversation import ConversationView
    from toura_chat.widgets.message import MessageBubble, MessageRow, bubble_text
    from toura_chat.widgets.style import BubbleStyle
except ModuleNotFoundError:
    App = None  # type: ignore[assignment,misc]
    ActivityBar = None  # type: ignore[assignment,misc]
    ComposeBar = None  # type: ignore[assignment,misc]
    ConversationView = None  # type: ignore[assignment,misc]
    MessageBubble = None  # type: ignore[assignment,misc]
    MessageRow = None  # type: ignore[assignment,misc]
    BubbleStyle = None  # type: ignore[assignment,misc]
    bubble_text = None  # type: ignore[assignment]


def _conversation() -> list[Message]:
    return [
        Message.from_opponent("Hi there, where do you want to go?"),
        Message.from_user("Jaisalmer"),
        Message.from_opponent("The golden fort glows at sunset. " * 8),
    ]


@unittest.skipIf(MessageBubble is None, "textual is not installed")
class MessageBubbleTests(unittest.TestCase):
    """Validate bubble text, classes and self-sizing."""

    def setUp(self) -> None:
        self.oracle = SizingOracle()
        self.style = BubbleStyle()

    def _bubble(self, message: Message, **kwargs) -> MessageBubble:
        assert MessageBubble is not None
        return MessageBubble(message, oracle=self.oracle, bubble_style=self.style, **kwargs)

    def test_role_classes_applied(self) -> None:
        self.assertIn("role-user", self._bubble(Message.from_user("hi")).classes)
        self.assertIn("role-opponent", self._bubble(Message.from_opponent("hi")).classes)

    def test_role_prefix(self) -> None:
        self.assertEqual(self._bubble(Message.from_user("hi")).role_prefix, "You")
        self.assertEqual(self._bubble(Message.from_opponent("hi")).role_prefix, "Toura")

    def test_bubble_text_includes_attachment_caption(self) -> None:
        message = Message.from_opponent(
            "Amber Fort",
            attachment=Attachment(url="https://example.com/amber.png", data=b"1234"),
        )
        self.assertEqual(
            bubble_text(message), "Amber Fort\n[image: https://example.com/amber.png, 4 bytes]"
        )

    def test_bubble_text_timestamp_is_optional(self) -> None:
        message = Message(
            sender=Sender.USER,
            content="hello",
            timestamp=datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc),
        )
        self.assertEqual(bubble_text(message), "hello")
        self.assertEqual(len(bubble_text(message, show_timestamps=True).splitlines()), 2)

    def test_apply_size_uses_oracle_measure(self) -> None:
        content = "Camel safari " * 12
        bubble = self._bubble(Message.from_opponent(content))
        height = bubble.apply_size(40)
        self.assertEqual(height, self.oracle.measure(content, 40))
        self.assertEqual(bubble.styles.height.value, height)
        self.assertEqual(bubble.styles.width.value, 40)

    def test_short_bubble_shrinks_to_its_text(self) -> None:
        bubble = self._bubble(Message.from_user("Hi"))
        bubble.apply_size(40)
        self.assertEqual(bubble.styles.width.value, 2 + self.oracle.insets.horizontal)

    def test_colors_come_from_style(self) -> None:
        style = BubbleStyle(user_color="#112233", user_text_color="#445566")
        bubble = MessageBubble(Message.from_user("hi"), oracle=self.oracle, bubble_style=style)
        self.assertEqual(bubble.styles.background.hex, "#112233")
        self.assertEqual(bubble.styles.color.hex, "#445566")

    def test_row_height_matches_oracle(self) -> None:
        content = "Desert camp under the stars. " * 10
        message = Message.from_opponent(content)
        row = MessageRow(self._bubble(message))
        self.assertEqual(row.apply_size(100), self.oracle.row_height(content, 100))
        self.assertIn("row-opponent", row.classes)


@unittest.skipIf(App is None, "textual is not installed")
class ConversationViewTests(unittest.IsolatedAsyncioTestCase):
    """Validate reload, diffing and row measurement inside a running app."""

    def _app(self):
        oracle = SizingOracle()

        class _ViewApp(App[None]):
            def compose(self) -> ComposeResult:
                yield ConversationView(oracle=oracle, id="conversation")

        return _ViewApp()

    async def test_reload_mounts_one_row_per_message(self) -> None:
        app = self._app()
        async with app.run_test(size=(100, 40)) as pilot:
            view = app.query_one(ConversationView)
            messages = _conversation()

            await view.reload_and_scroll_to_bottom(messages)
            await pilot.pause()

            self.assertEqual(view.row_count, 3)
            self.assertEqual(
                [row.message.id for row in view.rows()], [m.id for m in messages]
            )

    async def test_reload_is_idempotent(self) -> None:
        app = self._app()
        async with app.run_test(size=(100, 40)) as pilot:
            view = app.query_one(ConversationView)
            messages = _conversation()
            await view.reload_and_scroll_to_bottom(messages)
            first_rows = view.rows()

            await view.reload_and_scroll_to_bottom(messages)
            await pilot.pause()

            self.assertEqual(view.rows(), first_rows)
            self.assertEqual(len(view.query(MessageRow)), 3)

    async def test_reload_appends_and_drops_missing_rows(self) -> None:
        app = self._app()
        async with app.run_test(size=(100, 40)) as pilot:
            view = app.query_one(ConversationView)
            messages = _conversation()
            await view.reload_and_scroll_to_bottom(messages[:2])
            await view.reload_and_scroll_to_bottom(messages)
            self.assertEqual(view.row_count, 3)

            # A reset keeps only the greeting.
            await view.reload_and_scroll_to_bottom(messages[:1])
            await pilot.pause()
            self.assertEqual(view.row_count, 1)
            self.assertEqual(len(view.query(MessageRow)), 1)

    async def test_empty_reload_is_noop(self) -> None:
        app = self._app()
        async with app.run_test(size=(100, 40)):
            view = app.query_one(ConversationView)
            await view.reload_and_scroll_to_bottom([])
            self.assertEqual(view.row_count, 0)

    async def test_row_height_matches_applied_row_height(self) -> None:
        app = self._app()
        async with app.run_test(size=(100, 40)) as pilot:
            view = app.query_one(ConversationView)
            await view.reload_and_scroll_to_bottom(_conversation())
            await pilot.pause()

            for index, row in enumerate(view.rows()):
                self.assertEqual(view.row_height(index), row.styles.height.value)
            with self.assertRaises(MessageIndexError):
                view.row_height(3)


@unittest.skipIf(App is None, "textual is not installed")
class ComposeBarTests(unittest.IsolatedAsyncioTestCase):
    """Validate the growing compose field and submission message."""

    def _app(self):
        class _ComposeApp(App[None]):
            def __init__(self) -> None:
                super().__init__()
                self.submitted: list[str] = []

            def compose(self) -> ComposeResult:
                yield ComposeBar(max_input_lines=3)

            def on_compose_bar_submitted(self, event: ComposeBar.Submitted) -> None:
                self.submitted.append(event.text)

        return _ComposeApp()

    async def test_send_enabled_only_for_non_blank_text(self) -> None:
        app = self._app()
        async with app.run_test(size=(80, 20)) as pilot:
            bar = app.query_one(ComposeBar)
            self.assertTrue(bar.send_button.disabled)

            bar.text_area.insert("   ")
            await pilot.pause()
            self.assertTrue(bar.send_button.disabled)
            self.assertFalse(bar.request_submit())

            bar.text_area.insert("Pushkar")
            await pilot.pause()
            self.assertFalse(bar.send_button.disabled)

    async def test_request_submit_posts_message(self) -> None:
        app = self._app()
        async with app.run_test(size=(80, 20)) as pilot:
            bar = app.query_one(ComposeBar)
            bar.text_area.insert("Take me to Bikaner")
            await pilot.pause()

            self.assertTrue(bar.request_submit())
            await pilot.pause()

            self.assertEqual(app.submitted, ["Take me to Bikaner"])

    async def test_input_grows_up_to_max_lines(self) -> None:
        app = self._app()
        async with app.run_test(size=(80, 20)) as pilot:
            bar = app.query_one(ComposeBar)
            self.assertEqual(bar.input_lines(), 1)

            bar.text_area.insert("one\ntwo")
            await pilot.pause()
            self.assertEqual(bar.input_lines(), 2)

            bar.text_area.insert("\nthree\nfour\nfive")
            await pilot.pause()
            self.assertEqual(bar.input_lines(), 3)
            self.assertEqual(bar.text_area.styles.height.value, 3 + 2)

            bar.clear()
            await pilot.pause()
            self.assertEqual(bar.text, "")
            self.assertEqual(bar.input_lines(), 1)
            self.assertTrue(bar.send_button.disabled)


@unittest.skipIf(App is None, "textual is not installed")
class ActivityBarTests(unittest.IsolatedAsyncioTestCase):
    async def test_start_and_stop_activity(self) -> None:
        class _ActivityApp(App[None]):
            def compose(self) -> ComposeResult:
                yield ActivityBar(shortcut_hints="ctrl+s send")

        app = _ActivityApp()
        async with app.run_test() as pilot:
            bar = app.query_one(ActivityBar)
            bar.start_activity()
            await pilot.pause()
            self.assertTrue(bar.running)
            self.assertIsNotNone(bar._animation_timer)
            before = bar._frame_index
            bar._advance_frame()
            self.assertEqual(bar._frame_index, (before + 1) % 8)

            bar.stop_activity()
            await pilot.pause()
            self.assertFalse(bar.running)
            self.assertIsNone(bar._animation_timer)


if __name__ == "__main__":
    unittest.main()
