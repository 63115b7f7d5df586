"""Tests for bubble and compose-field height measurement."""

from __future__ import annotations

import unittest

from toura_chat.sizing import (
    MIN_BUBBLE_HEIGHT,
    NO_INSETS,
    BubbleInsets,
    SizingOracle,
    count_wrapped_lines,
)


class CountWrappedLinesTests(unittest.TestCase):
    def test_long_word_folds_at_width(self) -> None:
        self.assertEqual(count_wrapped_lines("x" * 10, 5), 2)

    def test_explicit_newlines_count_as_lines(self) -> None:
        self.assertEqual(count_wrapped_lines("a\nb\nc", 40), 3)

    def test_empty_text_is_one_line(self) -> None:
        self.assertEqual(count_wrapped_lines("", 40), 1)


class SizingOracleTests(unittest.TestCase):
    """Validate the measurement contract shared by the view and the bubble."""

    def setUp(self) -> None:
        self.oracle = SizingOracle()

    def test_measure_is_deterministic(self) -> None:
        content = "Jaisalmer is known as the golden city of Rajasthan. " * 4
        first = self.oracle.measure(content, 30)
        for _ in range(5):
            self.assertEqual(self.oracle.measure(content, 30), first)

    def test_single_line_bubble_is_min_height(self) -> None:
        self.assertEqual(self.oracle.measure("Hi", 40), MIN_BUBBLE_HEIGHT)

    def test_height_adds_vertical_insets_to_wrapped_lines(self) -> None:
        # 40 cells minus four columns of inset leaves 36 cells for text.
        self.assertEqual(self.oracle.measure("x" * 72, 40), 2 + 2)
        self.assertEqual(self.oracle.measure("x" * 73, 40), 3 + 2)

    def test_measure_never_below_floor(self) -> None:
        oracle = SizingOracle(insets=NO_INSETS)
        self.assertEqual(oracle.measure("hi", 10), MIN_BUBBLE_HEIGHT)
        self.assertEqual(oracle.measure("", 10), MIN_BUBBLE_HEIGHT)

    def test_line_height_scales_text_rows(self) -> None:
        oracle = SizingOracle(insets=BubbleInsets(1, 0, 1, 0), line_height=2)
        self.assertEqual(oracle.measure("a\nb\nc", 20), 3 * 2 + 2)

    def test_narrow_width_still_wraps_at_least_one_cell(self) -> None:
        self.assertEqual(self.oracle.measure("abc", 2), 3 + 2)

    def test_more_text_is_never_shorter(self) -> None:
        previous = 0
        for words in range(1, 40):
            height = self.oracle.measure(" ".join(["desert"] * words), 30)
            self.assertGreaterEqual(height, previous)
            previous = height

    def test_bubble_width_is_three_quarters_floor(self) -> None:
        self.assertEqual(self.oracle.bubble_width(100), 75)
        self.assertEqual(self.oracle.bubble_width(101), 75)
        self.assertEqual(self.oracle.bubble_width(2), 5)

    def test_custom_width_fraction(self) -> None:
        oracle = SizingOracle(width_fraction=0.5)
        self.assertEqual(oracle.bubble_width(81), 40)

    def test_row_height_adds_padding_to_bubble_height(self) -> None:
        content = "x" * 140
        expected = self.oracle.measure(content, self.oracle.bubble_width(80)) + 1
        self.assertEqual(self.oracle.row_height(content, 80), expected)
        self.assertEqual(self.oracle.row_height("hi", 80), MIN_BUBBLE_HEIGHT + 1)

    def test_input_height_grows_and_caps(self) -> None:
        self.assertEqual(self.oracle.input_height("", 40, 6), 1)
        self.assertEqual(self.oracle.input_height("a\nb", 40, 6), 2)
        self.assertEqual(self.oracle.input_height("\n".join(["x"] * 10), 40, 6), 6)
        self.assertEqual(self.oracle.input_height("x" * 80, 40, 6), 2)


if __name__ == "__main__":
    unittest.main()
