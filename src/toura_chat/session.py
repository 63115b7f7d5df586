"""Chat session controller: message log, reply pipeline and its state machine.

The controller is the only writer of its :class:`MessageStore`. A single
``asyncio.Lock`` guards the store and the state machine together, and the
dialogue backend call runs as a task on the same event loop, so a reply is
always applied on the loop that owns the conversation.

Rendering surfaces observe the controller through its :class:`EventBus`
instead of being called directly.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum
import logging
from typing import Protocol
import uuid

from .backend import DialogueBackend
from .events import (
    MESSAGE_APPENDED,
    MESSAGES_REFRESH,
    REPLY_FAILED,
    STATE_CHANGED,
    SUBMISSION_REJECTED,
    EventBus,
)
from .exceptions import (
    DialogueBackendError,
    InvalidTransitionError,
    ReplyTimeoutError,
)
from .images import ImageSource
from .links import find_first_url
from .message_store import MessageStore
from .models import Attachment, Message
from .state import SessionState, SessionStateMachine
from .task_manager import TaskManager

LOGGER = logging.getLogger(__name__)

DEFAULT_GREETING = (
    "Hi there, welcome to the land of deserts! I am Toura and I am here to help you. "
    "To start, tell me where you want to go."
)
REPLY_TASK_NAME = "dialogue_reply"

Validator = Callable[[Message], bool]


class SpeechOutput(Protocol):
    async def speak(self, text: str, language_tag: str = ...) -> None: ...


class SubmitResult(str, Enum):
    """Outcome of :meth:`ChatSessionController.submit`."""

    ACCEPTED = "accepted"
    EMPTY = "empty"
    BUSY = "busy"
    REJECTED = "rejected"


def approve_all(message: Message) -> bool:  # noqa: ARG001
    """Default submission validator."""
    return True


class ChatSessionController:
    """Own the conversation and drive the Idle/AwaitingReply reply pipeline."""

    def __init__(
        self,
        backend: DialogueBackend,
        *,
        bus: EventBus | None = None,
        speech: SpeechOutput | None = None,
        image_source: ImageSource | None = None,
        validator: Validator | None = None,
        greeting: str = DEFAULT_GREETING,
        language_tag: str = "en-AU",
        reply_timeout_seconds: float | None = 30.0,
        keep_rejected_submissions: bool = True,
        task_manager: TaskManager | None = None,
    ) -> None:
        self.backend = backend
        self.bus = bus or EventBus()
        self.speech = speech
        self.image_source = image_source
        self.validator: Validator = validator or approve_all
        self.language_tag = language_tag
        self.reply_timeout_seconds = (
            reply_timeout_seconds
            if reply_timeout_seconds is not None and reply_timeout_seconds > 0
            else None
        )
        self.keep_rejected_submissions = keep_rejected_submissions
        self.store = MessageStore(seed=[Message.from_opponent(greeting.strip())])
        self._machine = SessionStateMachine()
        self._lock = asyncio.Lock()
        self._tasks = task_manager or TaskManager()
        self._pending_request: str | None = None

    @property
    def state(self) -> SessionState:
        return self._machine.state

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.store.messages

    @property
    def awaiting_reply(self) -> bool:
        return self._machine.state == SessionState.AWAITING_REPLY

    async def start(self) -> None:
        """Speak the greeting and ask observers to render the seeded history."""
        greeting = self.store.last
        if greeting is not None:
            self._speak(greeting.content)
        await self._publish_refresh()

    async def submit(self, text: str) -> SubmitResult:
        """Record a user utterance and, when approved, ask the dialogue backend."""
        normalized = text.strip()
        if not normalized:
            LOGGER.debug("session.submit.empty", extra={"event": "session.submit.empty"})
            return SubmitResult.EMPTY

        request_id = uuid.uuid4().hex
        async with self._lock:
            if not self._machine.can_send_message():
                LOGGER.info(
                    "session.submit.ignored",
                    extra={
                        "event": "session.submit.ignored",
                        "state": self._machine.state.value,
                    },
                )
                return SubmitResult.BUSY

            message = Message.from_user(normalized)
            index = self.store.append(message)
            try:
                accepted = bool(self.validator(message))
            except Exception:
                self.store.rollback_last_user_append()
                raise

            if accepted:
                self._pending_request = request_id
                self._machine.transition_to(SessionState.AWAITING_REPLY)
            elif not self.keep_rejected_submissions:
                self.store.rollback_last_user_append()

        if not accepted:
            kept = self.keep_rejected_submissions
            LOGGER.info(
                "session.submit.rejected",
                extra={"event": "session.submit.rejected", "kept": kept},
            )
            if kept:
                await self._publish_appended(message, index)
            await self.bus.publish(SUBMISSION_REJECTED, {"message": message, "kept": kept})
            await self._publish_refresh()
            return SubmitResult.REJECTED

        LOGGER.info(
            "session.submit.accepted",
            extra={"event": "session.submit.accepted", "index": index},
        )
        await self._publish_appended(message, index)
        await self._publish_state(SessionState.IDLE, SessionState.AWAITING_REPLY)
        await self._publish_refresh()
        self._dispatch(message, request_id)
        return SubmitResult.ACCEPTED

    def _dispatch(self, message: Message, request_id: str) -> None:
        self._tasks.spawn(
            self._exchange(message.content, request_id), name=REPLY_TASK_NAME
        )

    async def _exchange(self, utterance: str, request_id: str) -> None:
        try:
            if self.reply_timeout_seconds is None:
                reply = await self.backend.ask(utterance)
            else:
                reply = await asyncio.wait_for(
                    self.backend.ask(utterance), timeout=self.reply_timeout_seconds
                )
            reply_text = reply.speech_text
            if not isinstance(reply_text, str) or not reply_text.strip():
                raise DialogueBackendError("Dialogue backend returned no reply text.")
        except asyncio.TimeoutError:
            await self._resolve(
                request_id,
                error=ReplyTimeoutError(
                    f"No reply within {self.reply_timeout_seconds:g} seconds."
                ),
            )
            return
        except asyncio.CancelledError:
            LOGGER.info(
                "session.reply.cancelled", extra={"event": "session.reply.cancelled"}
            )
            raise
        except Exception as exc:  # noqa: BLE001 - backends can fail in many ways.
            error = (
                exc
                if isinstance(exc, DialogueBackendError)
                else DialogueBackendError(f"Dialogue backend failed: {exc}")
            )
            await self._resolve(request_id, error=error)
            return
        await self._resolve(request_id, reply_text=reply_text)

    async def _resolve(
        self,
        request_id: str,
        *,
        reply_text: str | None = None,
        error: Exception | None = None,
    ) -> None:
        if self._pending_request != request_id:
            LOGGER.info("session.reply.stale", extra={"event": "session.reply.stale"})
            return
        try:
            if error is not None:
                await self.on_reply_failed(error)
            else:
                await self.on_reply_received(reply_text or "")
        except InvalidTransitionError:
            # Resolved by another path while the attachment was downloading.
            LOGGER.info("session.reply.stale", extra={"event": "session.reply.stale"})

    async def on_reply_received(
        self, reply_text: str, image: Attachment | None = None
    ) -> Message:
        """Append the assistant reply and return to ``IDLE``."""
        self._machine.require(SessionState.AWAITING_REPLY, "on_reply_received")
        attachment = image if image is not None else await self._fetch_attachment(reply_text)

        async with self._lock:
            self._machine.require(SessionState.AWAITING_REPLY, "on_reply_received")
            message = Message.from_opponent(reply_text, attachment=attachment)
            index = self.store.append(message)
            self._pending_request = None
            self._machine.transition_to(SessionState.IDLE)

        LOGGER.info(
            "session.reply.received",
            extra={
                "event": "session.reply.received",
                "index": index,
                "has_attachment": attachment is not None,
            },
        )
        self._speak(message.content)
        await self._publish_appended(message, index)
        await self._publish_state(SessionState.AWAITING_REPLY, SessionState.IDLE)
        await self._publish_refresh()
        return message

    async def on_reply_failed(self, error: Exception) -> None:
        """Return to ``IDLE`` without appending anything."""
        async with self._lock:
            self._machine.require(SessionState.AWAITING_REPLY, "on_reply_failed")
            self._pending_request = None
            self._machine.transition_to(SessionState.IDLE)

        LOGGER.warning(
            "session.reply.failed",
            extra={
                "event": "session.reply.failed",
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        await self._publish_state(SessionState.AWAITING_REPLY, SessionState.IDLE)
        await self.bus.publish(REPLY_FAILED, {"error": error})

    async def _fetch_attachment(self, reply_text: str) -> Attachment | None:
        if self.image_source is None:
            return None
        url = find_first_url(reply_text)
        if url is None:
            return None
        try:
            return await self.image_source.fetch(url)
        except Exception as exc:  # noqa: BLE001 - attachments are best-effort.
            LOGGER.warning(
                "session.attachment.failed",
                extra={
                    "event": "session.attachment.failed",
                    "url": url,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return None

    def _speak(self, text: str) -> None:
        if self.speech is None or not text.strip():
            return
        self._tasks.spawn(self.speech.speak(text, self.language_tag))

    async def reset(self) -> None:
        """Drop the conversation back to the greeting, abandoning any pending reply."""
        await self._tasks.cancel(REPLY_TASK_NAME)
        async with self._lock:
            previous = self._machine.state
            self._pending_request = None
            if previous == SessionState.AWAITING_REPLY:
                self._machine.transition_to(SessionState.IDLE)
            self.store.clear()
        LOGGER.info("session.reset", extra={"event": "session.reset"})
        if previous != SessionState.IDLE:
            await self._publish_state(previous, SessionState.IDLE)
        await self._publish_refresh()

    async def drain(self) -> None:
        """Wait for the in-flight backend exchange, if any, to settle."""
        await self._tasks.wait(REPLY_TASK_NAME)

    async def aclose(self) -> None:
        """Cancel the pending reply and any speech still queued."""
        await self._tasks.cancel_all()

    async def _publish_appended(self, message: Message, index: int) -> None:
        await self.bus.publish(MESSAGE_APPENDED, {"message": message, "index": index})

    async def _publish_state(self, previous: SessionState, current: SessionState) -> None:
        await self.bus.publish(STATE_CHANGED, {"previous": previous, "current": current})

    async def _publish_refresh(self) -> None:
        await self.bus.publish(MESSAGES_REFRESH, {"messages": self.store.messages})

