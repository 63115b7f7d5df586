"""Compose bar: a growing multi-line text field and a Send button."""

from __future__ import annotations

from typing import Any

from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Button, TextArea

from ..sizing import SizingOracle

# Rows taken by the text area's own border.
_TEXT_AREA_CHROME = 2


class ComposeBar(Horizontal):
    """Input row that posts :class:`ComposeBar.Submitted` for non-blank text."""

    DEFAULT_CSS = """
    ComposeBar {
        height: auto;
    }
    ComposeBar #compose_input {
        width: 1fr;
    }
    ComposeBar #send_button {
        margin-left: 1;
        min-width: 10;
    }
    """

    class Submitted(Message):
        """Posted when the user asks to send the current text."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    def __init__(
        self,
        *,
        oracle: SizingOracle | None = None,
        max_input_lines: int = 6,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.oracle = oracle or SizingOracle()
        self.max_input_lines = max(1, max_input_lines)

    def compose(self) -> ComposeResult:
        text_area = TextArea(id="compose_input", soft_wrap=True, show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send_button", variant="success", disabled=True)

    def on_mount(self) -> None:
        self._resize_input()

    @property
    def text_area(self) -> TextArea:
        return self.query_one("#compose_input", TextArea)

    @property
    def send_button(self) -> Button:
        return self.query_one("#send_button", Button)

    @property
    def text(self) -> str:
        return self.text_area.text

    def input_lines(self) -> int:
        """Visible text rows the field needs for its current contents."""
        text_area = self.text_area
        width = max(1, text_area.content_region.width)
        return self.oracle.input_height(text_area.text, width, self.max_input_lines)

    def _resize_input(self) -> None:
        self.text_area.styles.height = self.input_lines() + _TEXT_AREA_CHROME
        self.send_button.disabled = not self.text.strip()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        event.stop()
        self._resize_input()

    def on_resize(self, event: events.Resize) -> None:  # noqa: ARG002
        self._resize_input()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send_button":
            event.stop()
            self.request_submit()

    def request_submit(self) -> bool:
        """Post ``Submitted`` unless the field is blank."""
        text = self.text
        if not text.strip():
            return False
        self.post_message(self.Submitted(text))
        return True

    def clear(self) -> None:
        self.text_area.clear()
        self._resize_input()

    def focus_input(self) -> None:
        self.text_area.focus()
