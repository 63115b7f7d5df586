"""Text-to-speech through whichever command-line engine is installed."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
import logging
import shutil

LOGGER = logging.getLogger(__name__)

DEFAULT_ENGINES: tuple[str, ...] = ("spd-say", "espeak-ng", "espeak", "say")


def _primary_language(language_tag: str) -> str:
    primary = language_tag.replace("_", "-").split("-", 1)[0].strip().lower()
    return primary or "en"


def build_command(engine_path: str, engine: str, text: str, language_tag: str) -> list[str]:
    """Return the argv used to speak ``text`` with ``engine``."""
    language = _primary_language(language_tag)
    if engine == "spd-say":
        return [engine_path, "--wait", "-l", language, text]
    if engine in {"espeak-ng", "espeak"}:
        return [engine_path, "-v", language, text]
    # macOS `say` picks the voice from system settings.
    return [engine_path, text]


def _kill_quietly(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass


class SpeechSynthesizer:
    """Queue utterances and play them one at a time.

    Playback is best-effort: a missing engine, a non-zero exit or a hung
    process is logged and otherwise ignored.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        engines: Sequence[str] = DEFAULT_ENGINES,
        pre_utterance_delay_seconds: float = 1.0,
        utterance_timeout_seconds: float = 120.0,
    ) -> None:
        self.enabled = enabled
        self.engines = tuple(engines)
        self.pre_utterance_delay_seconds = max(0.0, pre_utterance_delay_seconds)
        self.utterance_timeout_seconds = max(1.0, utterance_timeout_seconds)
        self._lock = asyncio.Lock()
        self._engine: tuple[str, str] | None = None
        self._resolved = False

    def _resolve_engine(self) -> tuple[str, str] | None:
        if not self._resolved:
            self._resolved = True
            for engine in self.engines:
                engine_path = shutil.which(engine)
                if engine_path is not None:
                    self._engine = (engine, engine_path)
                    break
            if self._engine is None:
                LOGGER.info(
                    "speech.engine.unavailable",
                    extra={"event": "speech.engine.unavailable", "engines": list(self.engines)},
                )
        return self._engine

    @property
    def available(self) -> bool:
        return self.enabled and self._resolve_engine() is not None

    async def speak(self, text: str, language_tag: str = "en-AU") -> None:
        """Speak ``text``; returns once playback finished or was abandoned."""
        if not self.enabled or not text.strip():
            return
        resolved = self._resolve_engine()
        if resolved is None:
            return
        engine, engine_path = resolved

        async with self._lock:
            if self.pre_utterance_delay_seconds:
                await asyncio.sleep(self.pre_utterance_delay_seconds)
            command = build_command(engine_path, engine, text, language_tag)
            try:
                proc = await asyncio.create_subprocess_exec(
                    *command,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as exc:
                LOGGER.warning(
                    "speech.spawn_failed",
                    extra={"event": "speech.spawn_failed", "engine": engine, "error": str(exc)},
                )
                return
            try:
                await asyncio.wait_for(proc.wait(), timeout=self.utterance_timeout_seconds)
            except asyncio.TimeoutError:
                _kill_quietly(proc)
                await proc.wait()
                LOGGER.warning(
                    "speech.timeout",
                    extra={"event": "speech.timeout", "engine": engine},
                )
                return
            except asyncio.CancelledError:
                _kill_quietly(proc)
                await asyncio.shield(proc.wait())
                raise
            if proc.returncode != 0:
                LOGGER.warning(
                    "speech.engine.failed",
                    extra={
                        "event": "speech.engine.failed",
                        "engine": engine,
                        "returncode": proc.returncode,
                    },
                )
