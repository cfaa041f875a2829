"""Type definitions and data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from .constants import ANIMATED_CONTENT_TYPES, STORE_ID_PREFIX


@dataclass(frozen=True)
class Credentials:
    """Store id and blob token supplied by the settings layer."""
    store_id: str
    token: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "store_id", (self.store_id or "").strip())
        object.__setattr__(self, "token", (self.token or "").strip())

    @property
    def is_empty(self) -> bool:
        return not self.store_id or not self.token

    @property
    def full_store_identifier(self) -> str:
        if self.store_id.lower().startswith(STORE_ID_PREFIX):
            return self.store_id
        return f"{STORE_ID_PREFIX}{self.store_id}"

    @property
    def prefix_path(self) -> str:
        return ""

    def __repr__(self) -> str:
        return f"Credentials(store_id={self.store_id!r}, token='***')"


class ResolvedName(NamedTuple):
    """Outcome of a best-effort emoji name decryption."""
    text: str
    decrypted: bool


@dataclass(frozen=True)
class EmojiRecord:
    """A custom emoji stored in the blob store."""
    id: str
    filename: str
    encrypted_name: str
    display_name: str
    content_type: Optional[str]
    size: Optional[int]
    uploaded_at: Optional[datetime]
    download_url: str

    @property
    def is_animated(self) -> bool:
        return (self.content_type or "").lower() in ANIMATED_CONTENT_TYPES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "filename": self.filename,
            "encrypted_name": self.encrypted_name,
            "display_name": self.display_name,
            "content_type": self.content_type,
            "size": self.size,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "download_url": self.download_url,
            "animated": self.is_animated,
        }


class RenameStatus(str, Enum):
    RENAMED = "renamed"
    DELETED_BUT_UPLOAD_FAILED = "deleted_but_upload_failed"


@dataclass
class RenameResult:
    """
    Result of a delete-then-upload rename.

    ``DELETED_BUT_UPLOAD_FAILED`` means the old object is gone and no new
    object exists; ``error`` holds the upload failure.
    """
    status: RenameStatus
    old_id: str
    record: Optional[EmojiRecord] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is RenameStatus.RENAMED
