"""Encrypted custom emoji naming and storage for chat clients."""

__version__ = "0.1.0"
