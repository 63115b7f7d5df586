"""Tests for link detection in reply text."""

from __future__ import annotations

import unittest

from toura_chat.links import find_first_url, find_urls


class FindUrlsTests(unittest.TestCase):
    def test_plain_text_has_no_links(self) -> None:
        self.assertEqual(find_urls("The Thar desert is beautiful at dusk."), [])
        self.assertIsNone(find_first_url(""))

    def test_finds_http_and_https_in_order(self) -> None:
        text = "Map: https://maps.example.com/jaipur then http://example.org/fort.jpg"
        self.assertEqual(
            find_urls(text),
            ["https://maps.example.com/jaipur", "http://example.org/fort.jpg"],
        )

    def test_first_url_wins(self) -> None:
        text = "See https://a.example.com/1.png and https://b.example.com/2.png"
        self.assertEqual(find_first_url(text), "https://a.example.com/1.png")

    def test_trailing_punctuation_is_trimmed(self) -> None:
        self.assertEqual(
            find_first_url("Look at https://example.com/palace.png."),
            "https://example.com/palace.png",
        )
        self.assertEqual(
            find_first_url("(photo: https://example.com/lake.jpg)"),
            "https://example.com/lake.jpg",
        )

    def test_balanced_parentheses_are_kept(self) -> None:
        self.assertEqual(
            find_first_url("https://en.example.org/wiki/Amber_(fort) is nearby"),
            "https://en.example.org/wiki/Amber_(fort)",
        )

    def test_www_prefix_gets_a_scheme(self) -> None:
        self.assertEqual(
            find_first_url("Book at www.example.com/stay"),
            "http://www.example.com/stay",
        )

    def test_host_without_dot_is_rejected(self) -> None:
        self.assertIsNone(find_first_url("http://intranet/path"))
        self.assertEqual(find_first_url("http://localhost:8000/x.png"), "http://localhost:8000/x.png")


if __name__ == "__main__":
    unittest.main()
