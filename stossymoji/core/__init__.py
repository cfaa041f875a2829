"""Core naming and encryption logic (pure Python, no network code)."""

from .crypto import NameCipher, derive_name_key
from .naming import (
    build_key,
    contains_marker,
    extension_for,
    extract_encrypted_segment,
    sanitize_base_name,
    split_scheme_filename,
)

__all__ = [
    "NameCipher",
    "derive_name_key",
    "build_key",
    "contains_marker",
    "extension_for",
    "extract_encrypted_segment",
    "sanitize_base_name",
    "split_scheme_filename",
]
