"""Bubble and compose-bar height measurement.

The same :class:`SizingOracle` instance answers "how tall is this row" for the
conversation view and sizes the bubble widget itself, so the measured height
and the rendered height come from one routine.
"""

from __future__ import annotations

from dataclasses import dataclass
import io
import math

from rich.console import Console
from rich.text import Text

# Rows. A bordered single-line bubble is three rows tall.
MIN_BUBBLE_HEIGHT = 3
DEFAULT_WIDTH_FRACTION = 0.75

_MEASURE_CONSOLE = Console(
    file=io.StringIO(),
    width=10_000,
    color_system=None,
    force_terminal=False,
    legacy_windows=False,
)


@dataclass(frozen=True)
class BubbleInsets:
    """Space between a bubble's outer edge and its text (border + padding)."""

    top: int = 1
    right: int = 2
    bottom: int = 1
    left: int = 2

    @property
    def horizontal(self) -> int:
        return self.left + self.right

    @property
    def vertical(self) -> int:
        return self.top + self.bottom


NO_INSETS = BubbleInsets(0, 0, 0, 0)


def count_wrapped_lines(content: str, width: int) -> int:
    """Return how many lines ``content`` occupies when wrapped at ``width`` cells."""
    lines = Text(content).wrap(_MEASURE_CONSOLE, max(1, width))
    return max(1, len(lines))


class SizingOracle:
    """Compute bubble and input heights for a fixed set of metrics."""

    def __init__(
        self,
        *,
        insets: BubbleInsets | None = None,
        line_height: int = 1,
        min_height: int = MIN_BUBBLE_HEIGHT,
        width_fraction: float = DEFAULT_WIDTH_FRACTION,
        row_padding: int = 1,
        input_insets: BubbleInsets = NO_INSETS,
    ) -> None:
        self.insets = insets or BubbleInsets()
        self.line_height = max(1, line_height)
        self.min_height = max(0, min_height)
        self.width_fraction = min(1.0, max(0.05, width_fraction))
        self.row_padding = max(0, row_padding)
        self.input_insets = input_insets

    def _text_height(self, content: str, max_width: int, insets: BubbleInsets) -> int:
        text_width = max(1, max_width - insets.horizontal)
        lines = count_wrapped_lines(content, text_width)
        return lines * self.line_height + insets.vertical

    def measure(self, content: str, max_width: int) -> int:
        """Return the rendered bubble height for ``content`` at ``max_width``."""
        return max(self.min_height, self._text_height(content, max_width, self.insets))

    def bubble_width(self, available_width: int) -> int:
        """Widest a bubble may grow inside a row of ``available_width`` cells."""
        floor = self.insets.horizontal + 1
        return max(floor, math.floor(available_width * self.width_fraction))

    def row_height(self, content: str, available_width: int) -> int:
        """Height of a full conversation row, including the gap below the bubble."""
        return self.measure(content, self.bubble_width(available_width)) + self.row_padding

    def input_height(self, text: str, width: int, max_height: int) -> int:
        """Height of the growing compose field, capped at ``max_height``."""
        target = self._text_height(text, width, self.input_insets)
        return min(max(1, target), max(1, max_height))
