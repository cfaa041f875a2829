"""Tests for configuration loading."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from stossymoji.config import Config, load_config, save_config
from stossymoji.utils import ConfigError


class TestConfig(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.env_file = Path(self.temp_dir.name) / ".env"
        self.env_patch = mock.patch.dict(os.environ, {}, clear=True)
        self.env_patch.start()

    def tearDown(self) -> None:
        self.env_patch.stop()
        self.temp_dir.cleanup()

    def _write_env(self, *lines: str) -> None:
        self.env_file.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def test_defaults(self) -> None:
        config = load_config(self.env_file)
        self.assertFalse(config.enabled)
        self.assertEqual(config.store_id, "")
        self.assertEqual(config.list_limit, 200)
        self.assertEqual(config.privacy_mode, "standard")
        self.assertEqual(config.text_template, ":{n}:")
        self.assertTrue(config.credentials().is_empty)

    def test_load_from_env_file(self) -> None:
        self._write_env(
            "CUSTOM_EMOJI_STORE_ID= abc123 ",
            "CUSTOM_EMOJI_BLOB_TOKEN=tok_xyz",
            "CUSTOM_EMOJI_HYPERLINK_TEXT=emoji",
            "PRIVACY_MODE=Custom",
            "PRIVACY_LOAD_CUSTOM_EMOJIS=yes",
            "BLOB_API_URL=http://localhost:9000/",
        )
        config = load_config(self.env_file)
        self.assertTrue(config.enabled)
        self.assertEqual(config.store_id, "abc123")
        self.assertEqual(config.credentials().full_store_identifier, "store_abc123")
        self.assertEqual(config.hyperlink_text, "emoji")
        self.assertEqual(config.privacy_mode, "custom")
        self.assertTrue(config.privacy_load_custom_emojis)
        self.assertEqual(config.api_url, "http://localhost:9000")

    def test_explicitly_disabled(self) -> None:
        self._write_env(
            "CUSTOM_EMOJI_ENABLED=0",
            "CUSTOM_EMOJI_STORE_ID=abc123",
            "CUSTOM_EMOJI_BLOB_TOKEN=tok_xyz",
        )
        self.assertFalse(load_config(self.env_file).enabled)

    def test_invalid_values(self) -> None:
        for line in ("PRIVACY_MODE=paranoid", "BLOB_LIST_LIMIT=0", "HTTP_TIMEOUT=soon",
                     "CUSTOM_EMOJI_USE_BACKEND=maybe"):
            with self.subTest(line=line):
                with mock.patch.dict(os.environ, {}, clear=True):
                    self._write_env(line)
                    with self.assertRaises(ConfigError):
                        load_config(self.env_file)

    def test_save_config(self) -> None:
        config = Config(enabled=True, store_id="abc123", blob_token="tok_xyz", hyperlink_text="e")
        save_config(config, self.env_file)
        self.assertEqual(self.env_file.stat().st_mode & 0o777, 0o600)
        self.assertEqual(load_config(self.env_file), config)

    def test_save_config_keeps_free_text(self) -> None:
        config = Config(
            enabled=True,
            store_id="abc123",
            blob_token="tok_xyz",
            hyperlink_text="emoji #1",
            text_template='[{n}] "x" #',
        )
        save_config(config, self.env_file)
        loaded = load_config(self.env_file)
        self.assertEqual(loaded.hyperlink_text, "emoji #1")
        self.assertEqual(loaded.text_template, '[{n}] "x" #')

    def test_credentials_repr_hides_token(self) -> None:
        config = Config(enabled=True, store_id="abc123", blob_token="tok_xyz")
        self.assertNotIn("tok_xyz", repr(config.credentials()))


if __name__ == "__main__":
    unittest.main()
