"""Common constants and data models."""

from .constants import MARKER, MARKER_TOKEN
from .types import Credentials, EmojiRecord, RenameResult, RenameStatus, ResolvedName

__all__ = [
    "MARKER",
    "MARKER_TOKEN",
    "Credentials",
    "EmojiRecord",
    "RenameResult",
    "RenameStatus",
    "ResolvedName",
]
