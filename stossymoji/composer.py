"""Compose-side helpers: placeholders, links and emoji suggestions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .common.constants import (
    CONTENT_TYPE_EXTENSIONS,
    DEFAULT_EXTENSION,
    MARKER,
    MAX_SUGGESTIONS,
    PLACEHOLDER_CLOSE,
    PLACEHOLDER_OPEN,
    PUBLIC_HOST_SUFFIX,
    QUERY_TRIGGER,
)
from .common.types import EmojiRecord
from .core.naming import contains_marker

PLACEHOLDER_PATTERN = re.compile(r"::\{([^}]+)\}::")


@dataclass(frozen=True)
class ComposeSettings:
    """Settings used to turn placeholders into public links."""

    store_id: str
    hyperlink_text: str = ""
    backend_url: str = ""
    use_backend: bool = False

    @classmethod
    def from_config(cls, config: Any) -> "ComposeSettings":
        return cls(
            store_id=config.store_id,
            hyperlink_text=config.hyperlink_text,
            backend_url=config.backend_url,
            use_backend=config.use_backend,
        )


@dataclass(frozen=True)
class EmojiQuery:
    """An in-progress ``::query`` in a draft message."""

    text: str
    start: int
    end: int


def generate_link(
    key: str, store_id: str, backend_url: str = "", use_backend: bool = False
) -> str:
    """
    Build the public URL for an object key.

    Args:
        key: Object key.
        store_id: Store id.
        backend_url: Optional proxy backend base URL.
        use_backend: Whether to route through the backend.

    Returns:
        Public URL, or the key unchanged when no store id is set.
    """
    store = store_id.strip()
    backend = backend_url.strip().rstrip("/")
    if not store:
        return key
    if backend and use_backend:
        return f"{backend}/{store}/{key}"
    return f"https://{store}.{PUBLIC_HOST_SUFFIX}/{key}"


def expand_placeholders(message: str, settings: ComposeSettings) -> str:
    """Replace each ``::{key}::`` with its link before sending a message."""
    def _replace(match: re.Match) -> str:
        link = generate_link(
            match.group(1), settings.store_id, settings.backend_url, settings.use_backend)
        if settings.hyperlink_text:
            return f"[{settings.hyperlink_text}]({link})"
        return link

    return PLACEHOLDER_PATTERN.sub(_replace, message)


def placeholder_for(record: EmojiRecord) -> str:
    filename = record.filename
    if not contains_marker(filename):
        mime = (record.content_type or "").lower()
        extension = CONTENT_TYPE_EXTENSIONS.get(mime, DEFAULT_EXTENSION)
        filename = f"{filename}.{MARKER}.{extension}"
    return f"{PLACEHOLDER_OPEN}{filename}{PLACEHOLDER_CLOSE}"


def _is_query_character(char: str) -> bool:
    return char.isalpha() or char.isdigit() or char in "_-."


def current_query(text: str) -> Optional[EmojiQuery]:
    """
    Find the emoji query being typed at the end of a draft.

    The query starts at the last ``::`` (not the tail of a placeholder) and
    runs over letters, digits, ``_``, ``-`` and ``.`` up to whitespace or the
    end of the text.
    """
    start = text.rfind(QUERY_TRIGGER)
    if start < 0:
        return None
    if start > 0 and text[start - 1] == "}":
        return None

    query_start = start + len(QUERY_TRIGGER)
    end = query_start
    while end < len(text):
        char = text[end]
        if char.isspace():
            if end == query_start:
                return None
            break
        if not _is_query_character(char):
            return None
        end += 1
    return EmojiQuery(text=text[query_start:end], start=start, end=end)


def suggest(
    records: Sequence[EmojiRecord], query: str, limit: int = MAX_SUGGESTIONS
) -> List[EmojiRecord]:
    """Return up to ``limit`` emoji whose display name contains the query."""
    if not query:
        return list(records[:limit])
    needle = query.lower()
    return [record for record in records if needle in record.display_name.lower()][:limit]


def apply_suggestion(text: str, record: EmojiRecord) -> str:
    """Replace the current query with the emoji placeholder."""
    placeholder = placeholder_for(record)
    query = current_query(text)
    if query is None:
        return text + placeholder
    return text[: query.start] + placeholder + text[query.end:]
