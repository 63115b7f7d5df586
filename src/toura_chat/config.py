"""Configuration loading and validation for the Toura chat TUI."""

from __future__ import annotations

from copy import deepcopy
import logging
import os
from pathlib import Path
import re
import tomllib
from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .backend import DEFAULT_APIAI_BASE_URL, DEFAULT_APIAI_VERSION
from .exceptions import ConfigValidationError
from .session import DEFAULT_GREETING
from .sizing import DEFAULT_WIDTH_FRACTION, MIN_BUBBLE_HEIGHT
from .speech import DEFAULT_ENGINES

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "toura"
CONFIG_PATH = CONFIG_DIR / "config.toml"

HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
LANGUAGE_TAG_PATTERN = re.compile(r"^[A-Za-z]{2,3}(?:[-_][A-Za-z0-9]{2,8})*$")
VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _require_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("Expected a string value.")
    normalized = value.strip()
    if not normalized:
        raise ValueError("String value must not be empty.")
    return normalized


class AppConfig(BaseModel):
    """Application metadata."""

    title: str = "Toura Chat"
    export_directory: str = "~/.local/state/toura/transcripts"

    @field_validator("title", "export_directory", mode="before")
    @classmethod
    def _validate_non_empty_string(cls, value: Any) -> str:
        return _require_string(value)


class BackendConfig(BaseModel):
    """Dialogue backend selection and connection settings."""

    provider: Literal["apiai", "ollama"] = "apiai"
    base_url: str = DEFAULT_APIAI_BASE_URL
    api_version: str = DEFAULT_APIAI_VERSION
    client_access_token: str = ""
    language: str = "en"
    timeout: int = Field(default=30, ge=1, le=3600)
    retries: int = Field(default=2, ge=0, le=10)
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"
    system_prompt: str = (
        "You are Toura, a friendly travel guide for Rajasthan. Keep replies short."
    )

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: Any) -> str:
        return _require_string(value).lower()

    @field_validator("api_version", "language", "ollama_model", mode="before")
    @classmethod
    def _validate_required_string(cls, value: Any) -> str:
        return _require_string(value)

    @field_validator("base_url", "ollama_host", mode="before")
    @classmethod
    def _validate_url(cls, value: Any) -> str:
        normalized = _require_string(value)
        parsed = urlparse(normalized)
        if parsed.scheme.lower() not in {"http", "https"} or not parsed.hostname:
            raise ValueError("URL must use http or https and include a hostname.")
        return normalized.rstrip("/")

    @field_validator("client_access_token", "system_prompt", mode="before")
    @classmethod
    def _normalize_optional_string(cls, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError("Expected a string value.")
        return value.strip()


class SessionConfig(BaseModel):
    """Conversation policy."""

    greeting: str = DEFAULT_GREETING
    reply_timeout_seconds: float = Field(default=30.0, ge=0, le=3600)
    keep_rejected_submissions: bool = True

    @field_validator("greeting", mode="before")
    @classmethod
    def _validate_greeting(cls, value: Any) -> str:
        return _require_string(value)


class SpeechConfig(BaseModel):
    """Text-to-speech playback of assistant messages."""

    enabled: bool = True
    language_tag: str = "en-AU"
    pre_utterance_delay_seconds: float = Field(default=1.0, ge=0, le=30)
    engines: list[str] = Field(default_factory=lambda: list(DEFAULT_ENGINES))

    @field_validator("language_tag", mode="before")
    @classmethod
    def _validate_language_tag(cls, value: Any) -> str:
        normalized = _require_string(value)
        if not LANGUAGE_TAG_PATTERN.match(normalized):
            raise ValueError(f"Invalid language tag {normalized!r}.")
        return normalized

    @field_validator("engines", mode="before")
    @classmethod
    def _validate_engines(cls, value: Any) -> list[str]:
        if value is None:
            return list(DEFAULT_ENGINES)
        if not isinstance(value, list):
            raise ValueError("engines must be a list of command names.")
        engines: list[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError("Each speech engine must be a string.")
            candidate = item.strip()
            if candidate and candidate not in engines:
                engines.append(candidate)
        return engines


class AttachmentsConfig(BaseModel):
    """Inline images fetched from links in replies."""

    enabled: bool = True
    max_bytes: int = Field(default=5 * 1024 * 1024, ge=1024, le=100 * 1024 * 1024)
    timeout: int = Field(default=10, ge=1, le=600)


class UIConfig(BaseModel):
    """Bubble style and sizing policy for Textual rendering."""

    background_color: str = "#F0F3F5"
    opponent_color: str = "#579FF3"
    opponent_text_color: str = "#FFFFFF"
    user_color: str = "#FFFFFF"
    user_text_color: str = "#4E5974"
    width_fraction: float = Field(default=DEFAULT_WIDTH_FRACTION, gt=0.1, le=1.0)
    min_bubble_height: int = Field(default=MIN_BUBBLE_HEIGHT, ge=1, le=100)
    row_padding: int = Field(default=1, ge=0, le=10)
    max_input_lines: int = Field(default=6, ge=1, le=50)
    show_timestamps: bool = False

    @field_validator(
        "background_color",
        "opponent_color",
        "opponent_text_color",
        "user_color",
        "user_text_color",
        mode="before",
    )
    @classmethod
    def _validate_hex_color(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Expected a string value.")
        normalized = value.strip()
        if not normalized.startswith("#"):
            normalized = f"#{normalized}"
        if not HEX_COLOR_PATTERN.match(normalized):
            raise ValueError("Color must use #RGB or #RRGGBB format.")
        return normalized.upper()


class KeybindsConfig(BaseModel):
    """Keyboard action mapping."""

    send_message: str = "ctrl+s"
    new_conversation: str = "ctrl+n"
    export_transcript: str = "ctrl+e"
    scroll_up: str = "ctrl+k"
    scroll_down: str = "ctrl+j"
    quit: str = "ctrl+q"

    @field_validator("*", mode="before")
    @classmethod
    def _validate_keybind(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Keybind must be a string.")
        return value.strip()


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.local/state/toura/app.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("log_file_path must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("log_file_path must not be empty.")
        return normalized


class Config(BaseModel):
    """Root configuration model for all sections."""

    model_config = ConfigDict(populate_by_name=True)
    app: AppConfig = AppConfig()
    backend: BackendConfig = BackendConfig()
    session: SessionConfig = SessionConfig()
    speech: SpeechConfig = SpeechConfig()
    attachments: AttachmentsConfig = AttachmentsConfig()
    ui: UIConfig = UIConfig()
    keybinds: KeybindsConfig = KeybindsConfig()
    logging: LoggingConfig = LoggingConfig()


DEFAULT_CONFIG: dict[str, dict[str, Any]] = Config().model_dump(by_alias=True)


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Ensure that the config directory exists and return its path."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create config directory %s: %s", directory, exc)
    return directory


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _enforce_private_permissions(path: Path) -> None:
    """Best-effort enforcement of private file permissions on POSIX systems.

    The config may hold the dialogue backend's access token.
    """
    if os.name != "posix" or not path.exists():
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning("Unable to enforce 0600 permissions for %s: %s", path, exc)


def _safe_default_config() -> dict[str, dict[str, Any]]:
    """Return a deep copy of validated default config data."""
    return deepcopy(DEFAULT_CONFIG)


def _validate_config(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate merged config and fallback to safe defaults when possible."""
    try:
        config = Config.model_validate(raw)
        return config.model_dump(by_alias=True)
    except ValidationError as exc:
        LOGGER.warning("Configuration validation failed, using safe defaults: %s", exc)
        return _safe_default_config()
    except Exception as exc:  # noqa: BLE001 - unexpected model construction failure.
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """
    Load configuration from TOML, merge with defaults, and validate.

    The optional ``config_path`` argument is intended for tests and tooling.
    """
    target_path = config_path or CONFIG_PATH
    ensure_config_dir(target_path.parent)

    raw_data: dict[str, Any] = {}
    if target_path.exists():
        _enforce_private_permissions(target_path)
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except (
            Exception
        ) as exc:  # noqa: BLE001 - we must not crash on invalid user config.
            LOGGER.warning("Failed to parse config at %s: %s", target_path, exc)
            raw_data = {}

    merged = (
        _deep_merge(DEFAULT_CONFIG, raw_data)
        if isinstance(raw_data, dict)
        else _safe_default_config()
    )
    return _validate_config(merged)
