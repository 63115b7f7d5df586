"""Activity bar widget showing the reply animation and keyboard shortcut hints."""

from __future__ import annotations

from typing import Any

from textual.app import ComposeResult
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widgets import Label, Static

REPLYING_HINT = "Toura is replying"

_ANIMATION_FRAMES: tuple[str, ...] = (
    "·······",
    "●······",
    "·●·····",
    "··●····",
    "···●···",
    "····●··",
    "·····●·",
    "······●",
)


class ActivityBar(Static):
    """Render the waiting-for-reply animation and shortcut hints."""

    DEFAULT_CSS = """
    ActivityBar {
        layout: horizontal;
        height: 1;
        padding: 0 1;
    }
    ActivityBar #activity_left {
        width: 1fr;
    }
    ActivityBar #activity_right {
        width: auto;
        text-align: right;
    }
    """

    def __init__(
        self,
        shortcut_hints: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._shortcut_hints = shortcut_hints
        self._animation_timer: Timer | None = None
        self._running = False
        self._frame_index = 0
        self._hint = REPLYING_HINT
        self._left_label: Label | None = None

    @property
    def running(self) -> bool:
        return self._running

    def compose(self) -> ComposeResult:
        """Compose left (animation) and right (shortcuts) labels."""
        yield Label("", id="activity_left")
        yield Label(self._shortcut_hints, id="activity_right")

    def on_mount(self) -> None:
        self._left_label = self.query_one("#activity_left", Label)

    def set_shortcut_hints(self, hints: str) -> None:
        """Update the right-side shortcut hint text."""
        self._shortcut_hints = hints
        try:
            self.query_one("#activity_right", Label).update(hints)
        except NoMatches:
            return

    def start_activity(self, hint: str = REPLYING_HINT) -> None:
        """Begin the animated dots next to ``hint``."""
        if self._running:
            return
        self._running = True
        self._hint = hint
        self._frame_index = 0
        self._update_left()
        self._animation_timer = self.set_interval(0.12, self._advance_frame)

    def stop_activity(self) -> None:
        """Stop the animation and clear the left label."""
        self._running = False
        if self._animation_timer is not None:
            self._animation_timer.stop()
            self._animation_timer = None
        if self._left_label is not None:
            self._left_label.update("")

    def _advance_frame(self) -> None:
        if not self._running:
            return
        self._frame_index = (self._frame_index + 1) % len(_ANIMATION_FRAMES)
        self._update_left()

    def _update_left(self) -> None:
        if self._left_label is None:
            return
        frame = _ANIMATION_FRAMES[self._frame_index % len(_ANIMATION_FRAMES)]
        self._left_label.update(f"{frame}  {self._hint}")
