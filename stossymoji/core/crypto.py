"""AES-256-GCM encryption of emoji names with a credential-derived key.

The key is a single SHA-256 pass over a password built from the store id and
the reversed blob token. There is no salt and no iterated KDF: the names are
obfuscated from anyone reading the URL, and the token itself is the secret.
Changing the derivation would orphan every object key already stored.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
from functools import lru_cache
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..common.constants import KEY_SEPARATOR
from ..common.types import Credentials, ResolvedName
from ..utils import EncodingError, InvalidCiphertext, InvalidCredentials

logger = logging.getLogger(__name__)

NONCE_SIZE = 12
TAG_SIZE = 16


def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded URL-safe base64."""
    encoded = base64.b64encode(data).decode("ascii")
    return encoded.replace("+", "-").replace("/", "_").replace("=", "")


def b64url_decode(value: str) -> bytes:
    """
    Decode unpadded URL-safe base64.

    Args:
        value: Encoded string, padding optional.

    Returns:
        Decoded bytes.

    Raises:
        InvalidCiphertext: If the value is not valid base64.
    """
    normalized = value.replace("-", "+").replace("_", "/")
    remainder = len(normalized) % 4
    if remainder:
        normalized += "=" * (4 - remainder)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidCiphertext("Unable to decode the encrypted emoji name.") from exc


def build_password(store_id: str, token: str) -> str:
    """
    Build the key derivation password ``<store_id>_token_<b64(reversed token)>``.

    Args:
        store_id: Trimmed store id.
        token: Trimmed blob token.

    Returns:
        Password string.
    """
    try:
        reversed_token = token[::-1].encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError("Unable to encode the blob token.") from exc
    encoded = base64.b64encode(reversed_token).decode("ascii")
    return f"{store_id}{KEY_SEPARATOR}{encoded}"


@lru_cache(maxsize=8)
def derive_name_key(store_id: str, token: str) -> bytes:
    """
    Derive the 256-bit emoji name key from credentials.

    Cached per credential pair, so new credentials always derive a new key.

    Args:
        store_id: Trimmed store id.
        token: Trimmed blob token.

    Returns:
        32-byte key.
    """
    password = build_password(store_id, token)
    try:
        password_bytes = password.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError("Unable to encode the store id.") from exc
    return hashlib.sha256(password_bytes).digest()


class NameCipher:
    """Encrypts and decrypts emoji names into URL-safe tokens."""

    def __init__(self, credentials: Credentials) -> None:
        if credentials.is_empty:
            raise InvalidCredentials()
        self._aesgcm = AESGCM(derive_name_key(credentials.store_id, credentials.token))

    @classmethod
    def from_strings(cls, store_id: str, token: str) -> "NameCipher":
        return cls(Credentials(store_id=store_id, token=token))

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt an emoji name.

        Args:
            plaintext: Name to encrypt.

        Returns:
            URL-safe token: nonce (12 bytes) + ciphertext + tag (16 bytes).

        Raises:
            EncodingError: If the name cannot be encoded as UTF-8.
        """
        try:
            data = plaintext.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodingError("Unable to encode the emoji name for encryption.") from exc
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aesgcm.encrypt(nonce, data, None)
        return b64url_encode(nonce + sealed)

    def decrypt(self, token: str) -> str:
        """
        Decrypt an emoji name token.

        Args:
            token: URL-safe token produced by encrypt.

        Returns:
            Original name.

        Raises:
            InvalidCiphertext: If the token is malformed, tampered with, or
                was encrypted under other credentials.
        """
        data = b64url_decode(token)
        if len(data) < NONCE_SIZE + TAG_SIZE:
            raise InvalidCiphertext("Encrypted emoji name is too short.")

        nonce = data[:NONCE_SIZE]
        sealed = data[NONCE_SIZE:]
        try:
            decrypted = self._aesgcm.decrypt(nonce, sealed, None)
        except InvalidTag as exc:
            raise InvalidCiphertext(
                "Emoji name integrity check failed. Wrong credentials or corrupted token."
            ) from exc
        try:
            return decrypted.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidCiphertext("Decrypted emoji name is not valid UTF-8.") from exc

    def resolve_name(self, token: str, fallback: Optional[str] = None) -> ResolvedName:
        """
        Decrypt a token, falling back to a display string on failure.

        Args:
            token: Encrypted segment.
            fallback: Text to use when decryption fails (defaults to the token).

        Returns:
            ResolvedName with ``decrypted`` False when the fallback was used.
        """
        try:
            return ResolvedName(self.decrypt(token), True)
        except InvalidCiphertext as exc:
            logger.debug("Falling back for undecryptable emoji name %r: %s", token, exc)
            return ResolvedName(token if fallback is None else fallback, False)
