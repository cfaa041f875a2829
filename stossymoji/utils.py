"""Shared utilities for the custom emoji pipeline."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional


class StossymojiError(Exception):
    """Base exception for custom emoji errors."""


class ConfigError(StossymojiError):
    """Raised when configuration is invalid or missing."""


class InvalidCredentials(StossymojiError):
    """Raised when the store id or blob token is empty."""

    def __init__(self, message: str = "Missing or invalid blob store credentials.") -> None:
        super().__init__(message)


class EmojiCryptoError(StossymojiError):
    """Base exception for emoji name encryption failures."""


class InvalidCiphertext(EmojiCryptoError):
    """Raised when an encrypted emoji name cannot be decoded or verified."""


class EncodingError(EmojiCryptoError):
    """Raised when an emoji name cannot be encoded for encryption."""


class BlobStoreError(StossymojiError):
    """Base exception for blob store failures."""


class HttpError(BlobStoreError):
    """Raised when the blob store answers with a non-2xx status."""

    def __init__(self, status: int, body: Optional[str] = None) -> None:
        self.status = status
        self.body = body
        if body:
            message = f"Request failed ({status}): {body}"
        else:
            message = f"Request failed with status code {status}."
        super().__init__(message)


class ResponseFormatError(BlobStoreError):
    """Raised when the blob store returns an unexpected payload."""


class LibraryError(StossymojiError):
    """Base exception for emoji library operations."""


class LibraryNotReady(LibraryError):
    """Raised when the library is disabled or missing credentials."""


class UnsupportedMediaType(LibraryError):
    """Raised when a selected file is not an image."""


class EmojiNotFound(LibraryError):
    """Raised when an emoji was removed before an operation on it could run."""


def setup_logging(log_level: int = logging.INFO) -> None:
    """
    Configure global logging.

    Args:
        log_level: Logging verbosity level.
    """
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


def format_bytes(size: Optional[int]) -> str:
    """
    Convert bytes to a human-readable string.

    Args:
        size: Size in bytes, or None when unknown.

    Returns:
        Human-readable size string.
    """
    if size is None:
        return "unknown"
    if size < 0:
        raise ValueError("Size must be non-negative.")

    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            if unit == "B":
                return f"{int(value)} {unit}"
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} GB"


def parse_timestamp(value: object) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp returned by the blob store.

    Args:
        value: Timestamp string such as ``2025-10-12T08:30:00.000Z``.

    Returns:
        Timezone-aware datetime, or None if missing or unparseable.
    """
    if not value or not isinstance(value, str):
        return None
    candidate = value.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def atomic_write(path: Path, data: str, mode: str = "w") -> None:
    """
    Write data atomically to a file.

    Args:
        path: Destination path.
        data: Data to write.
        mode: File mode.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    with open(temp_path, mode, encoding="utf-8") as file_handle:
        file_handle.write(data)
        file_handle.flush()
        os.fsync(file_handle.fileno())
    temp_path.replace(path)
