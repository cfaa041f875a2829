"""Object key naming: ``<encrypted name>.stossymoji.<ext>``."""

from __future__ import annotations

import posixpath
import re
import uuid
from typing import Optional, Tuple
from urllib.parse import unquote

from ..common.constants import (
    CONTENT_TYPE_EXTENSIONS,
    DEFAULT_EXTENSION,
    MARKER,
    MARKER_TOKEN,
)

_MARKER_PATTERN = re.compile(re.escape(MARKER_TOKEN), re.IGNORECASE)
# Segment stops at anything that can wrap a URL component in text or markdown.
_SEGMENT_PATTERN = re.compile(
    r"(?P<segment>[^/\\\s()\[\]<>?#&=]*)" + re.escape(MARKER_TOKEN),
    re.IGNORECASE,
)
_EXTENSION_PATTERN = re.compile(r"[A-Za-z0-9]+")
_NAME_SEPARATORS = re.compile(r"[^\w-]+")


def contains_marker(text: Optional[str]) -> bool:
    """Return True if text mentions the object key marker (any case, percent-decoded)."""
    if not text:
        return False
    return MARKER_TOKEN in unquote(text).lower()


def last_path_component(value: str) -> str:
    """
    Return the last path component of a pathname or URL.

    Query strings and fragments are dropped.
    """
    candidate = value.strip().split("#", 1)[0].split("?", 1)[0]
    candidate = candidate.rstrip("/")
    return candidate.rsplit("/", 1)[-1]


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and keep only ASCII alphanumerics."""
    cleaned = re.sub(r"[^a-z0-9]", "", extension.lower())
    return cleaned or DEFAULT_EXTENSION


def build_key(token: str, extension: str) -> str:
    """
    Build an object key from an encrypted name.

    Args:
        token: Encrypted emoji name.
        extension: File extension (normalised before use).

    Returns:
        Object key ``<token>.stossymoji.<ext>``.
    """
    if not token:
        raise ValueError("Encrypted name must not be empty.")
    if "/" in token or any(char.isspace() for char in token):
        raise ValueError("Encrypted name must be a single path segment.")
    if contains_marker(token):
        raise ValueError("Encrypted name must not contain the key marker.")
    return f"{token}.{MARKER}.{normalize_extension(extension)}"


def extract_encrypted_segment(candidate: str) -> Optional[str]:
    """
    Find the encrypted name inside a filename, path, URL or markdown link.

    Args:
        candidate: Text possibly holding an object key, percent-encoded or not.

    Returns:
        Encrypted segment, or None if there is no marker (the name is not
        encrypted and should be shown verbatim).
    """
    if not candidate:
        return None
    match = _SEGMENT_PATTERN.search(unquote(candidate))
    if match is None:
        return None
    return match.group("segment") or None


def split_scheme_filename(name: str) -> Optional[Tuple[str, str]]:
    """
    Split the last path component into (encrypted segment, extension).

    Only names whose marker is followed by a non-empty alphanumeric extension
    qualify; anything else in the store is treated as foreign.
    """
    component = last_path_component(name)
    match = _MARKER_PATTERN.search(component)
    if match is None:
        return None
    extension = component[match.end():]
    if not _EXTENSION_PATTERN.fullmatch(extension):
        return None
    return component[: match.start()], extension


def strip_extension(filename: str) -> str:
    """Drop a trailing ``.ext`` from a filename."""
    return posixpath.splitext(filename.strip())[0]


def sanitize_base_name(raw: str) -> str:
    """
    Reduce a user-chosen name to alphanumeric runs joined with ``-``.

    Args:
        raw: Raw name.

    Returns:
        Sanitized name, or ``emoji-<uuid>`` if nothing survives.
    """
    parts = [part for part in _NAME_SEPARATORS.split(raw) if part]
    cleaned = "-".join(parts)
    if not cleaned:
        cleaned = f"emoji-{uuid.uuid4()}"
    return cleaned


def extension_for(filename: str, content_type: Optional[str] = None) -> str:
    """
    Choose the object key extension for an upload.

    Args:
        filename: Original filename.
        content_type: MIME type, if known.

    Returns:
        Canonical extension.
    """
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        mapped = CONTENT_TYPE_EXTENSIONS.get(mime)
        if mapped:
            return mapped
    original = posixpath.splitext(filename.strip())[1].lstrip(".")
    return normalize_extension(original)
