"""Tests for compose-side placeholders and suggestions."""

from __future__ import annotations

import unittest

from stossymoji.common.types import EmojiRecord
from stossymoji.composer import (
    ComposeSettings,
    EmojiQuery,
    apply_suggestion,
    current_query,
    expand_placeholders,
    generate_link,
    placeholder_for,
    suggest,
)


def _record(display_name: str, filename: str = "", content_type: str = "image/png") -> EmojiRecord:
    filename = filename or f"{display_name.upper()}.stossymoji.png"
    return EmojiRecord(
        id=filename,
        filename=filename,
        encrypted_name=filename.split(".", 1)[0],
        display_name=display_name,
        content_type=content_type,
        size=10,
        uploaded_at=None,
        download_url=f"https://abc.public.blob.vercel-storage.com/{filename}",
    )


class TestLinks(unittest.TestCase):
    def test_generate_link(self) -> None:
        self.assertEqual(
            generate_link("T.stossymoji.png", "abc"),
            "https://abc.public.blob.vercel-storage.com/T.stossymoji.png",
        )

    def test_generate_link_through_backend(self) -> None:
        self.assertEqual(
            generate_link("T.stossymoji.png", " abc ", "https://proxy.example/", True),
            "https://proxy.example/abc/T.stossymoji.png",
        )
        self.assertEqual(
            generate_link("T.stossymoji.png", "abc", "https://proxy.example", False),
            "https://abc.public.blob.vercel-storage.com/T.stossymoji.png",
        )

    def test_generate_link_without_store(self) -> None:
        self.assertEqual(generate_link("T.stossymoji.png", ""), "T.stossymoji.png")

    def test_expand_placeholders(self) -> None:
        settings = ComposeSettings(store_id="abc")
        self.assertEqual(
            expand_placeholders("gg ::{T.stossymoji.gif}:: wp", settings),
            "gg https://abc.public.blob.vercel-storage.com/T.stossymoji.gif wp",
        )

    def test_expand_placeholders_with_hyperlink_text(self) -> None:
        settings = ComposeSettings(store_id="abc", hyperlink_text="emoji")
        self.assertEqual(
            expand_placeholders("::{A.stossymoji.png}::::{B.stossymoji.png}::", settings),
            "[emoji](https://abc.public.blob.vercel-storage.com/A.stossymoji.png)"
            "[emoji](https://abc.public.blob.vercel-storage.com/B.stossymoji.png)",
        )

    def test_text_without_placeholders(self) -> None:
        settings = ComposeSettings(store_id="abc")
        self.assertEqual(expand_placeholders("a :: b ::{}::", settings), "a :: b ::{}::")


class TestSuggestions(unittest.TestCase):
    def setUp(self) -> None:
        self.records = [_record("party"), _record("parrot"), _record("fire")]

    def test_current_query(self) -> None:
        self.assertEqual(current_query("hello ::pa"), EmojiQuery(text="pa", start=6, end=10))
        self.assertEqual(current_query("::"), EmojiQuery(text="", start=0, end=2))
        self.assertIsNone(current_query("hello"))
        self.assertIsNone(current_query("hi ::{T.stossymoji.png}::"))
        self.assertIsNone(current_query("hi ::pa!"))

    def test_suggest(self) -> None:
        names = [record.display_name for record in suggest(self.records, "PAR")]
        self.assertEqual(names, ["party", "parrot"])
        self.assertEqual(len(suggest(self.records, "", limit=2)), 2)
        self.assertEqual(suggest(self.records, "zzz"), [])

    def test_apply_suggestion(self) -> None:
        self.assertEqual(
            apply_suggestion("hello ::pa", self.records[0]),
            "hello ::{PARTY.stossymoji.png}::",
        )
        self.assertEqual(
            apply_suggestion("hello ", self.records[2]),
            "hello ::{FIRE.stossymoji.png}::",
        )

    def test_placeholder_for_legacy_name(self) -> None:
        record = _record("legacy", filename="legacy", content_type="image/gif")
        self.assertEqual(placeholder_for(record), "::{legacy.stossymoji.gif}::")


if __name__ == "__main__":
    unittest.main()
