"""Dialogue backends that turn an utterance into an assistant reply."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Any, Protocol
import uuid

import httpx
from ollama import AsyncClient as OllamaAsyncClient

from .exceptions import DialogueBackendError

LOGGER = logging.getLogger(__name__)

DEFAULT_APIAI_BASE_URL = "https://api.api.ai/v1"
DEFAULT_APIAI_VERSION = "20150910"


@dataclass(frozen=True)
class DialogueReply:
    """Reply text returned by a dialogue backend."""

    speech_text: str


class DialogueBackend(Protocol):
    async def ask(self, utterance: str) -> DialogueReply: ...

    async def aclose(self) -> None: ...


class ApiAiBackend:
    """Client for an api.ai style ``/query`` endpoint authenticated by a client token."""

    def __init__(
        self,
        *,
        client_access_token: str,
        base_url: str = DEFAULT_APIAI_BASE_URL,
        api_version: str = DEFAULT_APIAI_VERSION,
        language: str = "en",
        session_id: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not client_access_token.strip():
            raise DialogueBackendError("A client access token is required.")
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.language = language
        self.session_id = session_id or uuid.uuid4().hex
        self.timeout = timeout
        self._token = client_access_token.strip()
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def ask(self, utterance: str) -> DialogueReply:
        """Send ``utterance`` and return the fulfillment speech of the reply."""
        client = self._get_client()
        try:
            response = await client.post(
                f"{self.base_url}/query",
                params={"v": self.api_version},
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
                json={
                    "query": utterance,
                    "lang": self.language,
                    "sessionId": self.session_id,
                },
            )
        except httpx.HTTPError as exc:
            raise DialogueBackendError(
                f"Unable to reach dialogue backend at {self.base_url}: {exc}"
            ) from exc

        if response.status_code >= 400:
            raise DialogueBackendError(
                f"Dialogue backend returned HTTP {response.status_code}."
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise DialogueBackendError("Dialogue backend returned invalid JSON.") from exc

        return DialogueReply(speech_text=self._extract_speech(payload))

    @staticmethod
    def _extract_speech(payload: Any) -> str:
        if not isinstance(payload, dict):
            raise DialogueBackendError("Dialogue backend returned an unexpected payload.")
        status = payload.get("status") or {}
        code = status.get("code", 200) if isinstance(status, dict) else 200
        if code != 200:
            details = status.get("errorDetails") or status.get("errorType") or "unknown"
            raise DialogueBackendError(f"Dialogue backend error {code}: {details}")

        result = payload.get("result") or {}
        fulfillment = result.get("fulfillment") if isinstance(result, dict) else None
        speech = fulfillment.get("speech") if isinstance(fulfillment, dict) else None
        if not isinstance(speech, str) or not speech.strip():
            raise DialogueBackendError("Dialogue backend reply has no speech text.")
        return speech.strip()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class OllamaBackend:
    """Dialogue backend backed by a local Ollama model."""

    def __init__(
        self,
        *,
        host: str = "http://localhost:11434",
        model: str = "llama3.2",
        system_prompt: str = "",
        timeout: float = 120.0,
        retries: int = 2,
        retry_backoff_seconds: float = 0.5,
        max_history_turns: int = 10,
        client: Any | None = None,
    ) -> None:
        self.host = host
        self.model = model
        self.system_prompt = system_prompt.strip()
        self.retries = max(0, retries)
        self.retry_backoff_seconds = max(0.0, retry_backoff_seconds)
        self.max_history_turns = max(0, max_history_turns)
        self._client = client if client is not None else OllamaAsyncClient(
            host=host, timeout=timeout
        )
        self._history: list[dict[str, str]] = []

    def _build_messages(self, utterance: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.extend(self._history)
        messages.append({"role": "user", "content": utterance})
        return messages

    def _remember(self, utterance: str, reply: str) -> None:
        self._history.append({"role": "user", "content": utterance})
        self._history.append({"role": "assistant", "content": reply})
        keep = self.max_history_turns * 2
        # Keep only the newest turns that fit within the limit.
        self._history = self._history[-keep:] if keep > 0 else []

    @staticmethod
    def _extract_content(response: Any) -> str:
        message = (
            response.get("message")
            if isinstance(response, dict)
            else getattr(response, "message", None)
        )
        content = (
            message.get("content")
            if isinstance(message, dict)
            else getattr(message, "content", None)
        )
        if not isinstance(content, str) or not content.strip():
            raise DialogueBackendError("Model returned an empty reply.")
        return content.strip()

    def _map_exception(self, exc: Exception) -> DialogueBackendError:
        if isinstance(exc, DialogueBackendError):
            return exc
        if isinstance(
            exc,
            (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout, httpx.NetworkError),
        ):
            return DialogueBackendError(f"Unable to connect to Ollama host {self.host}.")
        lower_message = str(exc).lower()
        if "model" in lower_message and "not found" in lower_message:
            return DialogueBackendError(
                f"Model {self.model!r} was not found on {self.host}."
            )
        return DialogueBackendError(f"Ollama request to {self.host} failed: {exc}")

    async def ask(self, utterance: str) -> DialogueReply:
        messages = self._build_messages(utterance)
        for attempt in range(self.retries + 1):
            try:
                response = await self._client.chat(
                    model=self.model, messages=messages, stream=False
                )
                reply = self._extract_content(response)
                break
            except asyncio.CancelledError:
                LOGGER.info(
                    "backend.request.cancelled",
                    extra={"event": "backend.request.cancelled"},
                )
                raise
            except Exception as exc:  # noqa: BLE001 - external API can fail in many ways.
                mapped_exc = self._map_exception(exc)
                LOGGER.warning(
                    "backend.request.retry",
                    extra={
                        "event": "backend.request.retry",
                        "attempt": attempt + 1,
                        "error_type": mapped_exc.__class__.__name__,
                    },
                )
                if attempt >= self.retries:
                    raise mapped_exc from exc
                await asyncio.sleep(self.retry_backoff_seconds * (attempt + 1))
        self._remember(utterance, reply)
        return DialogueReply(speech_text=reply)

    async def aclose(self) -> None:
        closer = getattr(self._client, "close", None) or getattr(self._client, "aclose", None)
        if closer is None:
            return
        result = closer()
        if asyncio.iscoroutine(result):
            await result


def build_backend(backend_config: dict[str, Any]) -> DialogueBackend:
    """Create the dialogue backend selected by ``backend.provider``."""
    provider = str(backend_config.get("provider", "apiai")).strip().lower()
    if provider == "ollama":
        return OllamaBackend(
            host=str(backend_config["ollama_host"]),
            model=str(backend_config["ollama_model"]),
            system_prompt=str(backend_config.get("system_prompt", "")),
            timeout=float(backend_config["timeout"]),
            retries=int(backend_config.get("retries", 2)),
        )
    if provider == "apiai":
        return ApiAiBackend(
            client_access_token=str(backend_config.get("client_access_token", "")),
            base_url=str(backend_config["base_url"]),
            api_version=str(backend_config["api_version"]),
            language=str(backend_config["language"]),
            timeout=float(backend_config["timeout"]),
        )
    raise DialogueBackendError(f"Unknown dialogue backend provider {provider!r}.")
