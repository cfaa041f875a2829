"""Tests for emoji name encryption."""

from __future__ import annotations

import base64
import hashlib
import unittest

from stossymoji.common.types import Credentials
from stossymoji.core.crypto import (
    NONCE_SIZE,
    TAG_SIZE,
    NameCipher,
    b64url_decode,
    b64url_encode,
    build_password,
    derive_name_key,
)
from stossymoji.core.naming import build_key, extract_encrypted_segment
from stossymoji.utils import EncodingError, InvalidCiphertext, InvalidCredentials


class TestKeyDerivation(unittest.TestCase):
    def test_password_reverses_token(self) -> None:
        expected = "abc123_token_" + base64.b64encode(b"zyx_kot").decode("ascii")
        self.assertEqual(build_password("abc123", "tok_xyz"), expected)

    def test_key_is_sha256_of_password(self) -> None:
        password = build_password("abc123", "tok_xyz").encode("utf-8")
        self.assertEqual(derive_name_key("abc123", "tok_xyz"), hashlib.sha256(password).digest())
        self.assertEqual(len(derive_name_key("abc123", "tok_xyz")), 32)

    def test_different_tokens_derive_different_keys(self) -> None:
        self.assertNotEqual(derive_name_key("abc123", "tok_xyz"), derive_name_key("abc123", "tok_xyy"))


class TestNameCipher(unittest.TestCase):
    def setUp(self) -> None:
        self.cipher = NameCipher.from_strings("abc123", "tok_xyz")

    def test_encrypt_decrypt_name(self) -> None:
        token = self.cipher.encrypt("fire")
        self.assertEqual(self.cipher.decrypt(token), "fire")

    def test_token_layout(self) -> None:
        token = self.cipher.encrypt("fire")
        for char in "+/=":
            self.assertNotIn(char, token)
        self.assertEqual(len(b64url_decode(token)), NONCE_SIZE + len(b"fire") + TAG_SIZE)

    def test_unicode_name(self) -> None:
        token = self.cipher.encrypt("🔥 fuego")
        self.assertEqual(self.cipher.decrypt(token), "🔥 fuego")

    def test_fresh_nonce_per_encryption(self) -> None:
        self.assertNotEqual(self.cipher.encrypt("fire"), self.cipher.encrypt("fire"))

    def test_credentials_are_trimmed(self) -> None:
        token = self.cipher.encrypt("fire")
        padded = NameCipher.from_strings("  abc123 ", "tok_xyz\n")
        self.assertEqual(padded.decrypt(token), "fire")

    def test_other_credentials_fail(self) -> None:
        token = self.cipher.encrypt("fire")
        other = NameCipher.from_strings("abc123", "tok_other")
        with self.assertRaises(InvalidCiphertext):
            other.decrypt(token)

    def test_tampered_token_fails(self) -> None:
        data = bytearray(b64url_decode(self.cipher.encrypt("fire")))
        data[NONCE_SIZE] ^= 0x01
        with self.assertRaises(InvalidCiphertext):
            self.cipher.decrypt(b64url_encode(bytes(data)))

    def test_malformed_tokens_fail(self) -> None:
        for token in ("not base64!", "abc", b64url_encode(b"x" * (NONCE_SIZE + TAG_SIZE - 1))):
            with self.subTest(token=token):
                with self.assertRaises(InvalidCiphertext):
                    self.cipher.decrypt(token)

    def test_unencodable_name(self) -> None:
        with self.assertRaises(EncodingError):
            self.cipher.encrypt("\ud800")

    def test_empty_credentials_rejected(self) -> None:
        with self.assertRaises(InvalidCredentials):
            NameCipher(Credentials(store_id="", token="tok_xyz"))
        with self.assertRaises(InvalidCredentials):
            NameCipher.from_strings("abc123", "   ")

    def test_name_survives_object_key(self) -> None:
        key = build_key(self.cipher.encrypt("fire"), "png")
        self.assertTrue(key.endswith(".stossymoji.png"))
        self.assertEqual(self.cipher.decrypt(extract_encrypted_segment(key)), "fire")

    def test_resolve_name(self) -> None:
        resolved = self.cipher.resolve_name(self.cipher.encrypt("fire"))
        self.assertEqual(resolved.text, "fire")
        self.assertTrue(resolved.decrypted)

        fallback = self.cipher.resolve_name("garbage")
        self.assertEqual(fallback.text, "garbage")
        self.assertFalse(fallback.decrypted)
        self.assertEqual(self.cipher.resolve_name("garbage", fallback="emoji").text, "emoji")


if __name__ == "__main__":
    unittest.main()
