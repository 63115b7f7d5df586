"""Domain exception hierarchy for the Toura chat application."""

from __future__ import annotations


class TouraChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class DialogueBackendError(TouraChatError):
    """Raised when the dialogue backend cannot produce a reply."""


class ReplyTimeoutError(DialogueBackendError):
    """Raised when a reply does not arrive within the configured timeout."""


class AttachmentFetchError(TouraChatError):
    """Raised when an image referenced by a reply cannot be downloaded."""


class MessageIndexError(TouraChatError, IndexError):
    """Raised when a message index is outside the stored range."""


class InvalidTransitionError(TouraChatError):
    """Raised when a session transition is requested from the wrong state."""


class ConfigValidationError(TouraChatError):
    """Raised when configuration cannot be validated safely."""
