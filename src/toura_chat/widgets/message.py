"""Message bubble widget for conversation rendering."""

from __future__ import annotations

from typing import Any

from rich.cells import cell_len
from rich.text import Text
from textual.containers import Horizontal
from textual.widgets import Static

from ..models import Message
from ..sizing import SizingOracle
from .style import BubbleStyle


def bubble_text(message: Message, show_timestamps: bool = False) -> str:
    """Return exactly the text a bubble displays, so it can be measured."""
    lines: list[str] = []
    if show_timestamps and message.timestamp is not None:
        lines.append(message.timestamp.astimezone().strftime("%H:%M"))
    lines.append(message.content)
    attachment = message.attachment
    if attachment is not None:
        lines.append(f"[image: {attachment.url}, {attachment.size} bytes]")
    return "\n".join(lines)


class MessageBubble(Static):
    """Render a single chat message as plain text inside a rounded bubble.

    Border and padding here must add up to the oracle's insets: one row of
    border above and below, border plus one column of padding at the sides.
    """

    DEFAULT_CSS = """
    MessageBubble {
        padding: 0 1;
    }
    """

    def __init__(
        self,
        message: Message,
        *,
        oracle: SizingOracle,
        bubble_style: BubbleStyle,
        show_timestamps: bool = False,
        **kwargs: Any,
    ) -> None:
        self.message = message
        self.oracle = oracle
        self.bubble_style = bubble_style
        self.display_text = bubble_text(message, show_timestamps)
        super().__init__(Text(self.display_text), **kwargs)
        self.add_class(f"role-{message.sender.value}")
        fill = bubble_style.bubble_color(message.sender)
        self.styles.background = fill
        self.styles.color = bubble_style.text_color(message.sender)
        self.styles.border = ("round", fill)

    @property
    def role_prefix(self) -> str:
        return "You" if self.message.is_user else "Toura"

    def fitted_width(self, max_width: int) -> int:
        """Shrink short messages to their longest line, up to ``max_width``."""
        insets = self.oracle.insets
        longest = max(
            (cell_len(line) for line in self.display_text.splitlines()), default=0
        )
        return min(max_width, max(longest, 1) + insets.horizontal)

    def apply_size(self, max_width: int) -> int:
        """Size the bubble for a ``max_width`` column and return its height."""
        height = self.oracle.measure(self.display_text, max_width)
        self.styles.width = self.fitted_width(max_width)
        self.styles.height = height
        return height


class MessageRow(Horizontal):
    """Full-width row that aligns a bubble to its sender's side."""

    DEFAULT_CSS = """
    MessageRow {
        width: 100%;
    }
    MessageRow.row-user {
        align-horizontal: right;
    }
    MessageRow.row-opponent {
        align-horizontal: left;
    }
    """

    def __init__(self, bubble: MessageBubble, **kwargs: Any) -> None:
        super().__init__(bubble, **kwargs)
        self.bubble = bubble
        self.add_class(f"row-{bubble.message.sender.value}")

    @property
    def message(self) -> Message:
        return self.bubble.message

    def apply_size(self, available_width: int) -> int:
        """Size the bubble and this row, returning the row height."""
        oracle = self.bubble.oracle
        bubble_height = self.bubble.apply_size(oracle.bubble_width(available_width))
        row_height = bubble_height + oracle.row_padding
        self.styles.height = row_height
        return row_height
