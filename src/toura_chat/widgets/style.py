"""Explicit bubble appearance passed to the conversation widgets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models import Sender


@dataclass(frozen=True)
class BubbleStyle:
    """Colors for both sides of the conversation plus the view background."""

    background_color: str = "#F0F3F5"
    opponent_color: str = "#579FF3"
    opponent_text_color: str = "#FFFFFF"
    user_color: str = "#FFFFFF"
    user_text_color: str = "#4E5974"

    @classmethod
    def from_ui_config(cls, ui_config: dict[str, Any]) -> BubbleStyle:
        defaults = cls()
        return cls(
            background_color=str(
                ui_config.get("background_color", defaults.background_color)
            ),
            opponent_color=str(ui_config.get("opponent_color", defaults.opponent_color)),
            opponent_text_color=str(
                ui_config.get("opponent_text_color", defaults.opponent_text_color)
            ),
            user_color=str(ui_config.get("user_color", defaults.user_color)),
            user_text_color=str(
                ui_config.get("user_text_color", defaults.user_text_color)
            ),
        )

    def bubble_color(self, sender: Sender) -> str:
        return self.user_color if sender is Sender.USER else self.opponent_color

    def text_color(self, sender: Sender) -> str:
        return self.user_text_color if sender is Sender.USER else self.opponent_text_color
