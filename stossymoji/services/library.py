"""Emoji library state and serialized mutations on top of the blob client."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiofiles
import aiohttp

from ..blob_client import BlobStoreClient
from ..common.constants import (
    BLOB_API_URL,
    CONTENT_TYPE_EXTENSIONS,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_LIST_LIMIT,
)
from ..common.types import Credentials, EmojiRecord, RenameResult
from ..composer import suggest
from ..utils import EmojiNotFound, LibraryNotReady, StossymojiError, UnsupportedMediaType

logger = logging.getLogger(__name__)

_EXTENSION_CONTENT_TYPES = {
    ext: mime for mime, ext in CONTENT_TYPE_EXTENSIONS.items() if mime != "image/apng"
}
_EXTENSION_CONTENT_TYPES.update({"jpg": "image/jpeg", "jpeg": "image/jpeg"})


def guess_content_type(filename: str) -> Optional[str]:
    """Guess an image content type from a filename."""
    content_type, _ = mimetypes.guess_type(filename)
    if content_type:
        return content_type
    extension = Path(filename).suffix.lstrip(".").lower()
    return _EXTENSION_CONTENT_TYPES.get(extension)


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class LibraryState(str, Enum):
    DISABLED = "disabled"
    MISSING_CREDENTIALS = "missing_credentials"
    READY = "ready"


class EmojiLibrary:
    """
    The user's custom emoji collection.

    Turns settings into credentials, keeps the listed records sorted by
    display name and serializes delete/rename per object key, since a rename
    is a delete followed by an upload with no isolation in between.
    """

    def __init__(
        self,
        base_url: str = BLOB_API_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        list_limit: int = DEFAULT_LIST_LIMIT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.state = LibraryState.DISABLED
        self.emojis: List[EmojiRecord] = []
        self.error_message: Optional[str] = None
        self._base_url = base_url
        self._timeout = timeout
        self._list_limit = list_limit
        self._session = session
        self._owns_session = session is None
        self._credentials: Optional[Credentials] = None
        self._client: Optional[BlobStoreClient] = None
        self._key_locks: Dict[str, _KeyLock] = {}

    @classmethod
    def from_config(cls, config: Any, session: Optional[aiohttp.ClientSession] = None) -> "EmojiLibrary":
        library = cls(
            base_url=config.api_url,
            timeout=config.http_timeout,
            list_limit=config.list_limit,
            session=session,
        )
        library.configure(config.enabled, config.store_id, config.blob_token)
        return library

    async def __aenter__(self) -> "EmojiLibrary":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._client = None

    def configure(self, enabled: bool, store_id: str, token: str) -> LibraryState:
        """
        Apply settings. A new client is built only when credentials change.

        Returns:
            The resulting state.
        """
        self.error_message = None
        if not enabled:
            self._reset(LibraryState.DISABLED)
            return self.state

        credentials = Credentials(store_id=store_id, token=token)
        if credentials.is_empty:
            self._reset(LibraryState.MISSING_CREDENTIALS)
            return self.state

        if credentials != self._credentials:
            self._credentials = credentials
            self._client = None
            self.emojis = []
        self.state = LibraryState.READY
        return self.state

    def _reset(self, state: LibraryState) -> None:
        self.state = state
        self._credentials = None
        self._client = None
        self.emojis = []

    def _require_client(self) -> BlobStoreClient:
        if self.state is not LibraryState.READY or self._credentials is None:
            raise LibraryNotReady(f"Custom emoji library is not ready ({self.state.value}).")
        if self._client is None:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=self._timeout))
                self._owns_session = True
            self._client = BlobStoreClient(
                self._credentials, session=self._session, base_url=self._base_url)
        return self._client

    @asynccontextmanager
    async def _serialized(self, record: EmojiRecord) -> AsyncIterator[None]:
        """
        Hold the lock for one object key.

        The entry is dropped once no caller holds or waits on it. Raises
        EmojiNotFound if an earlier holder removed the emoji.
        """
        entry = self._key_locks.get(record.id)
        if entry is None:
            entry = self._key_locks[record.id] = _KeyLock()
        entry.users += 1
        try:
            async with entry.lock:
                if all(item.id != record.id for item in self.emojis):
                    error = EmojiNotFound(f"'{record.display_name}' no longer exists.")
                    self._record_failure(error)
                    raise error
                yield
        finally:
            entry.users -= 1
            if not entry.users:
                del self._key_locks[record.id]

    def _sort(self) -> None:
        self.emojis.sort(key=lambda record: record.display_name.casefold())

    def _record_failure(self, exc: BaseException) -> None:
        self.error_message = str(exc) or exc.__class__.__name__

    def find(self, name_or_key: str) -> Optional[EmojiRecord]:
        """Find an emoji by display name, filename or pathname."""
        for record in self.emojis:
            if name_or_key in (record.id, record.filename):
                return record
        lowered = name_or_key.casefold()
        for record in self.emojis:
            if record.display_name.casefold() == lowered:
                return record
        return None

    def suggestions(self, query: str) -> List[EmojiRecord]:
        return suggest(self.emojis, query)

    async def reload(self) -> List[EmojiRecord]:
        client = self._require_client()
        self.error_message = None
        try:
            emojis = await client.list(limit=self._list_limit)
        except (StossymojiError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._record_failure(exc)
            raise
        self.emojis = list(emojis)
        self._sort()
        return self.emojis

    async def upload(
        self, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> EmojiRecord:
        client = self._require_client()
        self.error_message = None
        try:
            record = await client.upload(data, filename, content_type)
        except (StossymojiError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._record_failure(exc)
            raise
        self.emojis.append(record)
        self._sort()
        return record

    async def upload_file(self, path: Path, name: Optional[str] = None) -> EmojiRecord:
        """
        Upload an image file that has already been resized.

        Args:
            path: Image file path.
            name: Emoji name, defaults to the file name.

        Returns:
            The uploaded record.
        """
        content_type = guess_content_type(path.name)
        if content_type is None or not content_type.startswith("image/"):
            raise UnsupportedMediaType(f"{path.name} isn't a supported image type.")
        async with aiofiles.open(path, "rb") as infile:
            data = await infile.read()
        filename = f"{name}{path.suffix}" if name else path.name
        return await self.upload(data, filename, content_type)

    async def delete(self, record: EmojiRecord) -> None:
        client = self._require_client()
        self.error_message = None
        async with self._serialized(record):
            try:
                await client.delete(record.id)
            except (StossymojiError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
                self._record_failure(exc)
                raise
            self.emojis = [item for item in self.emojis if item.id != record.id]

    async def rename(self, record: EmojiRecord, new_name: str) -> RenameResult:
        """
        Rename an emoji: download its bytes, delete it, upload under the new name.

        Returns:
            The client's RenameResult. On DELETED_BUT_UPLOAD_FAILED the emoji
            is dropped from the list and ``error_message`` is set.
        """
        client = self._require_client()
        self.error_message = None
        async with self._serialized(record):
            try:
                data = await client.fetch_bytes(record)
                result = await client.rename(data, record.id, new_name, record.content_type)
            except (StossymojiError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
                self._record_failure(exc)
                raise
            remaining = [item for item in self.emojis if item.id != record.id]
            if result.ok and result.record is not None:
                remaining.append(result.record)
            else:
                self.error_message = (
                    f"'{record.display_name}' was deleted but could not be re-uploaded: {result.error}"
                )
            self.emojis = remaining
            self._sort()
            return result
