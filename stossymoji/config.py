"""Configuration management for the custom emoji store."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

from dotenv import load_dotenv

from .common.constants import (
    BLOB_API_URL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_LIST_LIMIT,
    DEFAULT_TEXT_TEMPLATE,
)
from .common.types import Credentials
from .utils import ConfigError, atomic_write

ENV_ENABLED = "CUSTOM_EMOJI_ENABLED"
ENV_STORE_ID = "CUSTOM_EMOJI_STORE_ID"
ENV_TOKEN = "CUSTOM_EMOJI_BLOB_TOKEN"
ENV_BACKEND_URL = "CUSTOM_EMOJI_BACKEND_URL"
ENV_USE_BACKEND = "CUSTOM_EMOJI_USE_BACKEND"
ENV_HYPERLINK_TEXT = "CUSTOM_EMOJI_HYPERLINK_TEXT"
ENV_API_URL = "BLOB_API_URL"
ENV_LIST_LIMIT = "BLOB_LIST_LIMIT"
ENV_TIMEOUT = "HTTP_TIMEOUT"
ENV_PRIVACY_MODE = "PRIVACY_MODE"
ENV_PRIVACY_LOAD_EMOJIS = "PRIVACY_LOAD_CUSTOM_EMOJIS"
ENV_TEXT_TEMPLATE = "EMOJI_TEXT_TEMPLATE"

DEFAULT_BACKEND_URL = "https://stossymoji.vercel.app"
PRIVACY_MODES = ("standard", "privacy", "custom")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _base_dir() -> Path:
    return Path(__file__).resolve().parents[1]


def _env_path() -> Path:
    return _base_dir() / ".env"


@dataclass(frozen=True)
class Config:
    """Singleton configuration object."""

    enabled: bool
    store_id: str
    blob_token: str
    backend_url: str = DEFAULT_BACKEND_URL
    use_backend: bool = False
    hyperlink_text: str = ""
    api_url: str = BLOB_API_URL
    list_limit: int = DEFAULT_LIST_LIMIT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    privacy_mode: str = "standard"
    privacy_load_custom_emojis: bool = False
    text_template: str = DEFAULT_TEXT_TEMPLATE

    _instance: ClassVar[Optional["Config"]] = None

    @classmethod
    def get_instance(cls) -> "Config":
        """
        Retrieve a singleton instance of Config.

        Returns:
            Config singleton instance.
        """
        if cls._instance is None:
            cls._instance = load_config()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def credentials(self) -> Credentials:
        """Build credentials from the configured store id and token."""
        return Credentials(store_id=self.store_id, token=self.blob_token)


def _quote(value: str) -> str:
    # Quoted so dotenv reads " #" and quotes literally.
    escaped = value.replace("\\", "\\\\").replace("\"", "\\\"").replace("\n", "\\n")
    return f"\"{escaped}\""


def save_config(config: Config, env_file: Optional[Path] = None) -> None:
    """
    Persist configuration to the .env file.

    Args:
        config: Config instance to save.
        env_file: Destination, defaults to the project .env.
    """
    lines = [
        f"{ENV_ENABLED}={'1' if config.enabled else '0'}",
        f"{ENV_STORE_ID}={_quote(config.store_id)}",
        f"{ENV_TOKEN}={_quote(config.blob_token)}",
        f"{ENV_BACKEND_URL}={_quote(config.backend_url)}",
        f"{ENV_USE_BACKEND}={'1' if config.use_backend else '0'}",
        f"{ENV_HYPERLINK_TEXT}={_quote(config.hyperlink_text)}",
        f"{ENV_API_URL}={_quote(config.api_url)}",
        f"{ENV_LIST_LIMIT}={config.list_limit}",
        f"{ENV_TIMEOUT}={config.http_timeout}",
        f"{ENV_PRIVACY_MODE}={config.privacy_mode}",
        f"{ENV_PRIVACY_LOAD_EMOJIS}={'1' if config.privacy_load_custom_emojis else '0'}",
        f"{ENV_TEXT_TEMPLATE}={_quote(config.text_template)}",
    ]
    data = "\n".join(lines) + "\n"
    env_file = env_file or _env_path()
    atomic_write(env_file, data)
    os.chmod(env_file, 0o600)


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {name}.")


def _parse_int(value: str, name: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {name}.") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be greater than 0.")
    return parsed


def _parse_float(value: str, name: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid number for {name}.") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be greater than 0.")
    return parsed


def _parse_privacy_mode(value: str) -> str:
    mode = value.strip().lower() or "standard"
    if mode not in PRIVACY_MODES:
        raise ConfigError(
            f"{ENV_PRIVACY_MODE} must be one of: {', '.join(PRIVACY_MODES)}.")
    return mode


def load_config(env_file: Optional[Path] = None) -> Config:
    """
    Load and validate configuration from the .env file and environment.

    Args:
        env_file: Optional .env path, defaults to the project .env.

    Returns:
        Config instance.
    """
    env_file = env_file or _env_path()
    if env_file.exists():
        load_dotenv(env_file)

    store_id = os.getenv(ENV_STORE_ID, "").strip()
    blob_token = os.getenv(ENV_TOKEN, "").strip()
    enabled_raw = os.getenv(ENV_ENABLED, "1" if store_id and blob_token else "0")
    backend_url = os.getenv(ENV_BACKEND_URL, DEFAULT_BACKEND_URL).strip()
    use_backend = os.getenv(ENV_USE_BACKEND, "0")
    hyperlink_text = os.getenv(ENV_HYPERLINK_TEXT, "")
    api_url = os.getenv(ENV_API_URL, BLOB_API_URL).strip() or BLOB_API_URL
    list_limit = os.getenv(ENV_LIST_LIMIT, str(DEFAULT_LIST_LIMIT)).strip()
    timeout = os.getenv(ENV_TIMEOUT, str(DEFAULT_HTTP_TIMEOUT)).strip()
    privacy_mode = os.getenv(ENV_PRIVACY_MODE, "standard")
    privacy_load = os.getenv(ENV_PRIVACY_LOAD_EMOJIS, "0")
    text_template = os.getenv(ENV_TEXT_TEMPLATE, "") or DEFAULT_TEXT_TEMPLATE

    return Config(
        enabled=_parse_bool(enabled_raw, ENV_ENABLED),
        store_id=store_id,
        blob_token=blob_token,
        backend_url=backend_url.rstrip("/"),
        use_backend=_parse_bool(use_backend, ENV_USE_BACKEND),
        hyperlink_text=hyperlink_text,
        api_url=api_url.rstrip("/"),
        list_limit=_parse_int(list_limit, ENV_LIST_LIMIT),
        http_timeout=_parse_float(timeout, ENV_TIMEOUT),
        privacy_mode=_parse_privacy_mode(privacy_mode),
        privacy_load_custom_emojis=_parse_bool(privacy_load, ENV_PRIVACY_LOAD_EMOJIS),
        text_template=text_template,
    )
