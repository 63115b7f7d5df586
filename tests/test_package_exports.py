"""Tests for top-level package lazy exports."""

from __future__ import annotations

import unittest

import toura_chat


class PackageExportTests(unittest.TestCase):
    """Ensure __getattr__ and exported symbols behave as expected."""

    def test_lazy_exports_resolve_known_symbols(self) -> None:
        self.assertTrue(callable(toura_chat.load_config))
        self.assertTrue(callable(toura_chat.ensure_config_dir))
        for name in toura_chat.__all__:
            if name == "TouraChatApp":
                continue
            self.assertIsNotNone(getattr(toura_chat, name), name)

    def test_exceptions_share_base(self) -> None:
        self.assertTrue(
            issubclass(toura_chat.ReplyTimeoutError, toura_chat.TouraChatError)
        )

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(toura_chat, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
