"""Tests for CLI command handlers."""

from __future__ import annotations

import argparse
import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from stossymoji.cli import command_upload
from stossymoji.common.types import EmojiRecord
from stossymoji.config import Config
from stossymoji.services.library import EmojiLibrary
from stossymoji.utils import UnsupportedMediaType


def _record(name: str) -> EmojiRecord:
    return EmojiRecord(
        id=f"{name.upper()}.stossymoji.png",
        filename=f"{name.upper()}.stossymoji.png",
        encrypted_name=name.upper(),
        display_name=name,
        content_type="image/png",
        size=3,
        uploaded_at=None,
        download_url=f"https://abc123.public.blob.vercel-storage.com/{name.upper()}.stossymoji.png",
    )


class TestUploadCommand(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.paths = []
        for name in ("fire.png", "ice.png", "wave.png"):
            path = Path(self.temp_dir.name) / name
            path.write_bytes(b"img")
            self.paths.append(str(path))
        self.config = Config(enabled=True, store_id="abc123", blob_token="tok_xyz")

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _upload(self, side_effect: list, output: io.StringIO) -> None:
        args = argparse.Namespace(paths=self.paths, name=None)
        upload_file = mock.AsyncMock(side_effect=side_effect)
        with mock.patch.object(EmojiLibrary, "upload_file", upload_file):
            with contextlib.redirect_stdout(output):
                command_upload(args, self.config)

    def test_upload_all(self) -> None:
        buffer = io.StringIO()
        self._upload([_record("fire"), _record("ice"), _record("wave")], buffer)
        output = buffer.getvalue()
        for name in ("fire", "ice", "wave"):
            self.assertIn(f"Uploaded '{name}'", output)
        self.assertNotIn("of 3 files", output)

    def test_partial_upload_is_reported(self) -> None:
        output = io.StringIO()
        with self.assertRaises(UnsupportedMediaType):
            self._upload([_record("fire"), UnsupportedMediaType("ice.png is broken")], output)
        self.assertIn("Uploaded 'fire'", output.getvalue())
        self.assertIn("Uploaded 1 of 3 files.", output.getvalue())


if __name__ == "__main__":
    unittest.main()
