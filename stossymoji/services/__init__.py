"""Application services layer."""

from .library import EmojiLibrary, LibraryState

__all__ = ["EmojiLibrary", "LibraryState"]
