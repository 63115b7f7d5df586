"""Top-level package for toura-chat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import TouraChatApp
    from .config import ensure_config_dir, load_config
    from .exceptions import (
        AttachmentFetchError,
        ConfigValidationError,
        DialogueBackendError,
        InvalidTransitionError,
        MessageIndexError,
        ReplyTimeoutError,
        TouraChatError,
    )
    from .message_store import MessageStore
    from .models import Attachment, Message, Sender
    from .session import ChatSessionController, SubmitResult
    from .sizing import SizingOracle
    from .state import SessionState

__all__ = [
    "Attachment",
    "AttachmentFetchError",
    "ChatSessionController",
    "ConfigValidationError",
    "DialogueBackendError",
    "InvalidTransitionError",
    "Message",
    "MessageIndexError",
    "MessageStore",
    "ReplyTimeoutError",
    "Sender",
    "SessionState",
    "SizingOracle",
    "SubmitResult",
    "TouraChatApp",
    "TouraChatError",
    "ensure_config_dir",
    "load_config",
]

_EXCEPTION_NAMES = {
    "AttachmentFetchError",
    "ConfigValidationError",
    "DialogueBackendError",
    "InvalidTransitionError",
    "MessageIndexError",
    "ReplyTimeoutError",
    "TouraChatError",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep the Textual UI optional at import time."""
    if name in {"ensure_config_dir", "load_config"}:
        from . import config

        return getattr(config, name)
    if name in _EXCEPTION_NAMES:
        from . import exceptions

        return getattr(exceptions, name)
    if name in {"Attachment", "Message", "Sender"}:
        from . import models

        return getattr(models, name)
    if name == "MessageStore":
        from .message_store import MessageStore

        return MessageStore
    if name in {"ChatSessionController", "SubmitResult"}:
        from . import session

        return getattr(session, name)
    if name == "SizingOracle":
        from .sizing import SizingOracle

        return SizingOracle
    if name == "SessionState":
        from .state import SessionState

        return SessionState
    if name == "TouraChatApp":
        from .app import TouraChatApp

        return TouraChatApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
