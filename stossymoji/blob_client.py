"""Blob store client for custom emoji objects."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

import aiohttp

from .common.constants import (
    BLOB_API_URL,
    BLOB_API_VERSION,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_LIST_LIMIT,
)
from .common.types import Credentials, EmojiRecord, RenameResult, RenameStatus
from .core.crypto import NameCipher
from .core.naming import (
    build_key,
    extension_for,
    sanitize_base_name,
    split_scheme_filename,
    strip_extension,
)
from .utils import (
    BlobStoreError,
    HttpError,
    InvalidCredentials,
    ResponseFormatError,
    StossymojiError,
    format_bytes,
    parse_timestamp,
)


logger = logging.getLogger(__name__)


async def _raise_for_status(resp: aiohttp.ClientResponse) -> None:
    if 200 <= resp.status < 300:
        return
    try:
        body: Optional[str] = (await resp.text(errors="replace")).strip()
    except aiohttp.ClientError:
        body = None
    raise HttpError(resp.status, body or None)


async def _read_json(resp: aiohttp.ClientResponse) -> Any:
    try:
        return await resp.json(content_type=None)
    except ValueError as exc:
        raise ResponseFormatError(
            "The blob store returned an unexpected response.") from exc


class BlobStoreClient:
    """
    List, upload, rename and delete emoji objects in the blob store.

    Only objects named ``<encrypted>.stossymoji.<ext>`` are surfaced; any
    other object sharing the store is ignored. Use as an async context
    manager, or pass an existing ``aiohttp.ClientSession``.
    """

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: str = BLOB_API_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._credentials = credentials
        self._session = session
        self._owns_session = session is None
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._cipher: Optional[NameCipher] = None
        if not credentials.is_empty:
            self._cipher = NameCipher(credentials)

    async def __aenter__(self) -> "BlobStoreClient":
        self._ensure_session()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    def _require_cipher(self) -> NameCipher:
        if self._cipher is None or self._credentials.is_empty:
            raise InvalidCredentials()
        return self._cipher

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._credentials.token}"}

    def object_key_for(self, filename: str, content_type: Optional[str] = None) -> str:
        """
        Build the encrypted object key for an upload.

        Args:
            filename: Chosen emoji name, with or without extension.
            content_type: MIME type of the image, if known.

        Returns:
            Object key ``<encrypted>.stossymoji.<ext>``.
        """
        cipher = self._require_cipher()
        base_name = sanitize_base_name(strip_extension(filename))
        extension = extension_for(filename, content_type)
        return build_key(cipher.encrypt(base_name), extension)

    async def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[EmojiRecord]:
        """
        List emoji objects in the store.

        Args:
            limit: Maximum number of objects requested from the store.

        Returns:
            Records for every object following the naming convention.
        """
        cipher = self._require_cipher()
        params = {"prefix": self._credentials.prefix_path, "limit": str(limit)}
        session = self._ensure_session()
        async with session.get(
            f"{self._base_url}/", params=params, headers=self._auth_headers()
        ) as resp:
            await _raise_for_status(resp)
            payload = await _read_json(resp)

        blobs = payload.get("blobs") if isinstance(payload, dict) else None
        if not isinstance(blobs, list):
            raise ResponseFormatError("Blob listing is missing the blobs array.")

        records: List[EmojiRecord] = []
        for item in blobs:
            if not isinstance(item, dict) or not isinstance(item.get("pathname"), str):
                logger.warning("Skipping malformed blob entry: %r", item)
                continue
            if split_scheme_filename(item["pathname"]) is None:
                logger.debug("Skipping foreign blob %s", item["pathname"])
                continue
            records.append(self._to_record(item, cipher))
        logger.debug("Listed %s emoji out of %s blobs", len(records), len(blobs))
        return records

    async def upload(
        self, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> EmojiRecord:
        """
        Upload emoji bytes under an encrypted object key.

        Args:
            data: Encoded image bytes.
            filename: Chosen emoji name (extension optional).
            content_type: MIME type of the image.

        Returns:
            Record for the stored object.
        """
        key = self.object_key_for(filename, content_type)
        return await self._put(data, self._credentials.prefix_path + key, content_type)

    async def rename(
        self,
        data: bytes,
        old_key: str,
        new_base_name: str,
        content_type: Optional[str] = None,
    ) -> RenameResult:
        """
        Rename an emoji by deleting it and uploading the bytes again.

        The store has no rename, and the name lives inside the encrypted key.
        This is not atomic: if the upload fails after the delete, the emoji
        no longer exists and the result says so.

        Args:
            data: Current emoji bytes.
            old_key: Pathname of the existing object.
            new_base_name: New emoji name.
            content_type: MIME type of the image.

        Returns:
            RenameResult tagged RENAMED or DELETED_BUT_UPLOAD_FAILED.
        """
        new_key = self.object_key_for(new_base_name, content_type)
        logger.info("Renaming emoji %s -> %s", old_key, new_key)
        await self.delete(old_key)
        try:
            record = await self._put(
                data, self._credentials.prefix_path + new_key, content_type)
        except (StossymojiError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error(
                "Emoji %s was deleted but re-uploading it failed; it is now missing: %s",
                old_key,
                exc,
            )
            return RenameResult(
                status=RenameStatus.DELETED_BUT_UPLOAD_FAILED, old_id=old_key, error=exc)
        return RenameResult(status=RenameStatus.RENAMED, old_id=old_key, record=record)

    async def delete(self, pathnames: Union[str, Sequence[str]]) -> None:
        """
        Delete one or more objects.

        Args:
            pathnames: Object pathname or pathnames.
        """
        self._require_cipher()
        urls = [pathnames] if isinstance(pathnames, str) else list(pathnames)
        if not urls:
            return
        logger.info("Deleting emoji %s", ", ".join(urls))
        session = self._ensure_session()
        async with session.post(
            f"{self._base_url}/delete", json={"urls": urls}, headers=self._auth_headers()
        ) as resp:
            await _raise_for_status(resp)

    async def fetch_bytes(self, record: EmojiRecord) -> bytes:
        """
        Download the current bytes of an emoji.

        Args:
            record: Emoji to download.

        Returns:
            Image bytes.

        Raises:
            BlobStoreError: If the size differs from the recorded size.
        """
        session = self._ensure_session()
        async with session.get(record.download_url) as resp:
            await _raise_for_status(resp)
            data = await resp.read()
        if record.size is not None and len(data) != record.size:
            raise BlobStoreError(
                f"Downloaded data size ({len(data)}) doesn't match original size ({record.size})."
            )
        return data

    async def _put(
        self, data: bytes, pathname: str, content_type: Optional[str]
    ) -> EmojiRecord:
        cipher = self._require_cipher()
        logger.info("Uploading emoji %s (%s)", pathname, format_bytes(len(data)))
        headers = self._auth_headers()
        headers.update({
            "Content-Type": content_type or DEFAULT_CONTENT_TYPE,
            "Content-Length": str(len(data)),
            "x-api-version": BLOB_API_VERSION,
            "x-add-random-suffix": "0",
        })
        session = self._ensure_session()
        async with session.put(
            f"{self._base_url}/{quote(pathname, safe='/')}",
            params={"access": "public"},
            data=data,
            headers=headers,
        ) as resp:
            await _raise_for_status(resp)
            payload = await _read_json(resp)

        if not isinstance(payload, dict) or not isinstance(payload.get("pathname"), str):
            raise ResponseFormatError("Upload response is missing the pathname.")
        item = dict(payload)
        if item.get("size") is None:
            item["size"] = len(data)
        if item.get("contentType") is None:
            item["contentType"] = content_type
        return self._to_record(item, cipher)

    def _to_record(self, item: Dict[str, Any], cipher: NameCipher) -> EmojiRecord:
        pathname: str = item["pathname"]
        prefix = self._credentials.prefix_path
        if prefix and pathname.startswith(prefix):
            filename = pathname[len(prefix):]
        elif "/" in pathname:
            filename = pathname.rsplit("/", 1)[-1]
        else:
            filename = pathname

        parts = split_scheme_filename(filename)
        if parts is not None:
            encrypted_name = parts[0]
            display_name = cipher.resolve_name(encrypted_name, fallback=encrypted_name).text
        else:
            encrypted_name = filename
            display_name = filename

        size = item.get("size")
        content_type = item.get("contentType")
        download_url = (
            item.get("url")
            or item.get("downloadUrl")
            or f"{self._base_url}/{quote(pathname, safe='/')}"
        )
        return EmojiRecord(
            id=pathname,
            filename=filename,
            encrypted_name=encrypted_name,
            display_name=display_name,
            content_type=content_type if isinstance(content_type, str) else None,
            size=size if isinstance(size, int) and not isinstance(size, bool) else None,
            uploaded_at=parse_timestamp(item.get("uploadedAt")),
            download_url=str(download_url),
        )
