"""Scrollable conversation view widget."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import Any

from textual import events
from textual.containers import VerticalScroll

from ..exceptions import MessageIndexError
from ..models import Message
from ..sizing import SizingOracle
from .message import MessageBubble, MessageRow, bubble_text
from .style import BubbleStyle

LOGGER = logging.getLogger(__name__)


class ConversationView(VerticalScroll):
    """A scrollable container that hosts one row per stored message.

    Rows are matched to messages by ``Message.id``; the store is append-only
    apart from a reset, so new rows always go at the end.
    """

    def __init__(
        self,
        *,
        oracle: SizingOracle | None = None,
        bubble_style: BubbleStyle | None = None,
        show_timestamps: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.oracle = oracle or SizingOracle()
        self.bubble_style = bubble_style or BubbleStyle()
        self.show_timestamps = show_timestamps
        self._messages: tuple[Message, ...] = ()
        self._rows: dict[str, MessageRow] = {}

    @property
    def available_width(self) -> int:
        return self.scrollable_content_region.width

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def rows(self) -> list[MessageRow]:
        return [self._rows[message.id] for message in self._messages]

    def row_height(self, index: int) -> int:
        """Height of the row at ``index`` for the current width."""
        if index < 0 or index >= len(self._messages):
            raise MessageIndexError(
                f"Row index {index} is out of range for {len(self._messages)} rows."
            )
        message = self._messages[index]
        return self.oracle.row_height(
            bubble_text(message, self.show_timestamps), self.available_width
        )

    def _build_row(self, message: Message) -> MessageRow:
        bubble = MessageBubble(
            message,
            oracle=self.oracle,
            bubble_style=self.bubble_style,
            show_timestamps=self.show_timestamps,
        )
        return MessageRow(bubble)

    async def reload_and_scroll_to_bottom(self, messages: Sequence[Message]) -> None:
        """Render ``messages``, re-apply row sizes and scroll to the last row."""
        snapshot = tuple(messages)
        if not snapshot and not self._rows:
            return

        wanted = {message.id for message in snapshot}
        stale = [row for key, row in self._rows.items() if key not in wanted]
        for row in stale:
            del self._rows[row.message.id]
            await row.remove()

        new_rows: list[MessageRow] = []
        for message in snapshot:
            if message.id not in self._rows:
                row = self._build_row(message)
                self._rows[message.id] = row
                new_rows.append(row)
        self._messages = snapshot
        if new_rows:
            await self.mount_all(new_rows)

        self._apply_sizes()
        LOGGER.debug(
            "view.reload",
            extra={
                "event": "view.reload",
                "rows": len(snapshot),
                "mounted": len(new_rows),
                "removed": len(stale),
            },
        )
        self.scroll_end(animate=False)

    def _apply_sizes(self) -> None:
        width = self.available_width
        for row in self._rows.values():
            row.apply_size(width)

    def on_resize(self, event: events.Resize) -> None:  # noqa: ARG002
        self._apply_sizes()
