"""Main Textual application for the Toura travel chat."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
import os
from pathlib import Path
from typing import Any
from uuid import uuid4

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, Header

from .backend import DialogueBackend, build_backend
from .config import load_config
from .events import (
    MESSAGES_REFRESH,
    REPLY_FAILED,
    STATE_CHANGED,
    SUBMISSION_REJECTED,
    Event,
    EventBus,
)
from .exceptions import ReplyTimeoutError
from .images import ImageFetcher, ImageSource
from .logging_utils import configure_logging
from .session import ChatSessionController, SubmitResult
from .sizing import SizingOracle
from .speech import SpeechSynthesizer
from .state import SessionState
from .widgets.activity_bar import REPLYING_HINT, ActivityBar
from .widgets.compose_bar import ComposeBar
from .widgets.conversation import ConversationView
from .widgets.style import BubbleStyle

LOGGER = logging.getLogger(__name__)


class TouraChatApp(App[None]):
    """Chat TUI talking to the Toura dialogue backend."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #app-root {
        layout: vertical;
        width: 100%;
        height: 1fr;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    ComposeBar {
        padding: 0 1 1 1;
        border-top: solid $panel;
        background: $surface;
    }

    #activity_bar {
        border-top: dashed $panel;
        background: $surface;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "send_message": "Send",
        "new_conversation": "New Chat",
        "export_transcript": "Export",
        "scroll_up": "Scroll Up",
        "scroll_down": "Scroll Down",
        "quit": "Quit",
    }

    def __init__(
        self,
        *,
        config: dict[str, dict[str, Any]] | None = None,
        config_path: Path | None = None,
        backend: DialogueBackend | None = None,
        speech: SpeechSynthesizer | None = None,
        image_source: ImageSource | None = None,
    ) -> None:
        if config is None:
            self.config = load_config(config_path)
            configure_logging(self.config["logging"])
        else:
            self.config = config
        self.window_title = str(self.config["app"]["title"])

        ui_cfg = self.config["ui"]
        self.bubble_style = BubbleStyle.from_ui_config(ui_cfg)
        self.oracle = SizingOracle(
            min_height=int(ui_cfg["min_bubble_height"]),
            width_fraction=float(ui_cfg["width_fraction"]),
            row_padding=int(ui_cfg["row_padding"]),
        )

        self.backend = backend or build_backend(self.config["backend"])
        speech_cfg = self.config["speech"]
        self.speech = speech or SpeechSynthesizer(
            enabled=bool(speech_cfg["enabled"]),
            engines=list(speech_cfg["engines"]),
            pre_utterance_delay_seconds=float(speech_cfg["pre_utterance_delay_seconds"]),
        )
        attachments_cfg = self.config["attachments"]
        if image_source is None and bool(attachments_cfg["enabled"]):
            image_source = ImageFetcher(
                timeout=float(attachments_cfg["timeout"]),
                max_bytes=int(attachments_cfg["max_bytes"]),
            )
        self.image_source = image_source

        session_cfg = self.config["session"]
        self.bus = EventBus()
        self.controller = ChatSessionController(
            self.backend,
            bus=self.bus,
            speech=self.speech,
            image_source=self.image_source,
            greeting=str(session_cfg["greeting"]),
            language_tag=str(speech_cfg["language_tag"]),
            reply_timeout_seconds=float(session_cfg["reply_timeout_seconds"]),
            keep_rejected_submissions=bool(session_cfg["keep_rejected_submissions"]),
        )
        self._detach_handlers = [
            self.bus.subscribe(MESSAGES_REFRESH, self._on_messages_refresh),
            self.bus.subscribe(STATE_CHANGED, self._on_state_changed),
            self.bus.subscribe(REPLY_FAILED, self._on_reply_failed),
            self.bus.subscribe(SUBMISSION_REJECTED, self._on_submission_rejected),
        ]

        self._binding_specs = self._binding_specs_from_config(self.config)
        self._w_conversation: ConversationView | None = None
        self._w_compose: ComposeBar | None = None
        self._w_activity: ActivityBar | None = None
        super().__init__()

    @classmethod
    def _binding_specs_from_config(
        cls, config: dict[str, dict[str, Any]]
    ) -> list[Binding]:
        keybinds = config.get("keybinds", {})
        bindings: list[Binding] = []
        for action_name, description in cls.DEFAULT_ACTION_DESCRIPTIONS.items():
            binding_key = keybinds.get(action_name)
            if isinstance(binding_key, str) and binding_key.strip():
                bindings.append(
                    Binding(
                        key=binding_key.strip(),
                        action=action_name,
                        description=description,
                        show=True,
                    )
                )
        return bindings

    def _shortcut_hints(self) -> str:
        hints = [
            f"{binding.key} {binding.description.lower()}"
            for binding in self._binding_specs
            if binding.action in {"send_message", "new_conversation"}
        ]
        return "  ".join(hints)

    def _set_idle_sub_title(self) -> None:
        self.sub_title = "Tell Toura where you want to go."

    def compose(self) -> ComposeResult:
        """Compose app widgets."""
        yield Header()
        with Container(id="app-root"):
            yield ConversationView(
                oracle=self.oracle,
                bubble_style=self.bubble_style,
                show_timestamps=bool(self.config["ui"]["show_timestamps"]),
                id="conversation",
            )
            yield ComposeBar(
                oracle=self.oracle,
                max_input_lines=int(self.config["ui"]["max_input_lines"]),
            )
            yield ActivityBar(shortcut_hints=self._shortcut_hints(), id="activity_bar")
        yield Footer()

    async def on_mount(self) -> None:
        """Register keybindings, then render and speak the greeting."""
        self.title = self.window_title
        self._set_idle_sub_title()
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
            )

        self._w_conversation = self.query_one(ConversationView)
        self._w_compose = self.query_one(ComposeBar)
        self._w_activity = self.query_one("#activity_bar", ActivityBar)
        self._w_conversation.styles.background = self.bubble_style.background_color

        LOGGER.info(
            "app.started",
            extra={
                "event": "app.started",
                "backend": type(self.backend).__name__,
                "speech_available": self.speech.available,
            },
        )
        await self.controller.start()
        self._w_compose.focus_input()

    async def _on_messages_refresh(self, event: Event) -> None:
        if self._w_conversation is None:
            return
        await self._w_conversation.reload_and_scroll_to_bottom(event.data["messages"])

    def _on_state_changed(self, event: Event) -> None:
        if self._w_activity is None:
            return
        if event.data["current"] == SessionState.AWAITING_REPLY:
            self._w_activity.start_activity(REPLYING_HINT)
            self.sub_title = "Waiting for Toura..."
        else:
            self._w_activity.stop_activity()
            self._set_idle_sub_title()

    def _on_reply_failed(self, event: Event) -> None:
        error = event.data["error"]
        if isinstance(error, ReplyTimeoutError):
            message = "Toura did not answer in time. Please try again."
        else:
            message = "Toura could not be reached. Please try again."
        self.sub_title = message
        self.notify(message, severity="warning")

    def _on_submission_rejected(self, event: Event) -> None:  # noqa: ARG002
        self.sub_title = "That message was not sent."

    async def on_compose_bar_submitted(self, event: ComposeBar.Submitted) -> None:
        event.stop()
        await self.send_user_message(event.text)

    async def send_user_message(self, text: str) -> SubmitResult:
        """Hand ``text`` to the controller and clear the compose bar when accepted."""
        result = await self.controller.submit(text)
        if result == SubmitResult.ACCEPTED and self._w_compose is not None:
            self._w_compose.clear()
        elif result == SubmitResult.BUSY:
            self.sub_title = "Toura is still replying."
        return result

    async def action_send_message(self) -> None:
        """Action invoked by keybinding for sending a message."""
        compose_bar = self._w_compose or self.query_one(ComposeBar)
        compose_bar.request_submit()

    async def action_new_conversation(self) -> None:
        """Drop back to the greeting, abandoning any pending reply."""
        await self.controller.reset()
        self.sub_title = "Started a new conversation."

    async def action_export_transcript(self) -> None:
        """Write the conversation as JSON to the export directory."""
        payload = self.controller.store.export_json()
        try:
            path = await asyncio.to_thread(self._write_transcript, payload)
        except OSError as exc:
            LOGGER.warning(
                "app.export.failed",
                extra={"event": "app.export.failed", "error": str(exc)},
            )
            self.sub_title = "Failed to export transcript."
            return
        LOGGER.info("app.export", extra={"event": "app.export", "path": str(path)})
        self.sub_title = f"Transcript exported: {path}"

    def _write_transcript(self, payload: str) -> Path:
        directory = Path(str(self.config["app"]["export_directory"])).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        filename = (
            f"{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{uuid4().hex[:8]}.json"
        )
        target = directory / filename
        target.write_text(payload, encoding="utf-8")
        if os.name == "posix":
            target.chmod(0o600)
        return target

    def action_scroll_up(self) -> None:
        """Scroll conversation up."""
        conversation = self._w_conversation or self.query_one(ConversationView)
        conversation.scroll_relative(y=-10, animate=False)

    def action_scroll_down(self) -> None:
        """Scroll conversation down."""
        conversation = self._w_conversation or self.query_one(ConversationView)
        conversation.scroll_relative(y=10, animate=False)

    async def action_quit(self) -> None:
        """Exit the app."""
        self.exit()

    async def on_unmount(self) -> None:
        """Cancel background work and release network clients."""
        await self.controller.aclose()
        for detach in self._detach_handlers:
            detach()
        self._detach_handlers.clear()
        await self.backend.aclose()
        closer = getattr(self.image_source, "aclose", None)
        if closer is not None:
            await closer()
