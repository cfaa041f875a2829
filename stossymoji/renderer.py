"""Render-time rewriting of emoji references in message bodies."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

import discord

from .common.constants import (
    DEFAULT_TEXT_TEMPLATE,
    FALLBACK_ALT_TEXT,
    NATIVE_EMOJI_SCHEME,
)
from .core.crypto import NameCipher
from .core.naming import contains_marker, extract_encrypted_segment

NATIVE_EMOJI_PATTERN = re.compile(r"<(?P<animated>a?):(?P<name>[A-Za-z0-9_]+):(?P<id>[0-9]+)>")

# Markdown links/images are consumed whole so a URL inside one is never
# seen again as a bare URL.
_LINK_PATTERN = re.compile(
    r"(?P<bang>!?)\[(?P<alt>(?:\\.|[^\[\]\\\n])*)\]"
    r"\((?P<url>[^)\s]+)(?P<title>\s+\"[^\"\n]*\")?\)"
    r"|(?P<bare>https?://[^\s()<>\[\]]+)",
    re.IGNORECASE,
)
_TRAILING_PUNCTUATION = ".,;:!?'\""


def _bare_scheme_url(match: re.Match) -> Optional[str]:
    """Return the custom emoji URL of a bare match, without trailing punctuation."""
    # A URL opening a link target the markdown branch could not parse stays as is.
    if match.string.endswith("](", 0, match.start()):
        return None
    url = match.group("bare").rstrip(_TRAILING_PUNCTUATION)
    if not contains_marker(url):
        return None
    return url

_EMBED_URL_FIELDS = {
    "image": ("url", "proxy_url"),
    "thumbnail": ("url", "proxy_url"),
    "video": ("url", "proxy_url"),
    "provider": ("url",),
    "author": ("url", "icon_url", "proxy_icon_url"),
}


def escape_alt_text(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def _unescape_alt_text(text: str) -> str:
    return text.replace("\\[", "[").replace("\\]", "]")


def contains_scheme_link(text: Optional[str]) -> bool:
    """Return True if a message body references a custom emoji object."""
    return contains_marker(text)


def embed_contains_scheme_link(embed: Mapping[str, Any]) -> bool:
    """
    Check a message embed payload for custom emoji URLs.

    Link previews generated for emoji links duplicate the inline image, so
    the display layer hides embeds for which this returns True.
    """
    if contains_marker(embed.get("url")):
        return True
    for field_name, keys in _EMBED_URL_FIELDS.items():
        section = embed.get(field_name)
        if not isinstance(section, Mapping):
            continue
        if any(contains_marker(section.get(key)) for key in keys):
            return True
    return False


@dataclass(frozen=True)
class NativeEmoji:
    """A protocol-native custom emoji such as ``<a:wave:123>``."""

    name: str
    identifier: str
    animated: bool = False

    @classmethod
    def from_url(cls, url: str) -> Optional["NativeEmoji"]:
        """Parse the ``discord-emoji://<id>?name=..&animated=1`` form."""
        parts = urlsplit(url)
        if parts.scheme != NATIVE_EMOJI_SCHEME:
            return None
        identifier = parts.netloc or parts.path.rstrip("/").rsplit("/", 1)[-1]
        if not identifier:
            return None
        query = parse_qs(parts.query)
        name = (query.get("name") or [""])[0] or FALLBACK_ALT_TEXT
        animated = (query.get("animated") or [""])[0].lower() in ("1", "true")
        return cls(name=name, identifier=identifier, animated=animated)

    def to_url(self) -> str:
        query = {"name": self.name}
        if self.animated:
            query["animated"] = "1"
        return urlunsplit((NATIVE_EMOJI_SCHEME, self.identifier, "", urlencode(query), ""))

    def to_markdown(self) -> str:
        return f"![{escape_alt_text(self.name)}]({self.to_url()})"

    @property
    def cdn_url(self) -> str:
        """Image URL on the chat service CDN."""
        partial = discord.PartialEmoji(
            name=self.name, id=int(self.identifier), animated=self.animated)
        return partial.url


class PrivacyMode(str, Enum):
    STANDARD = "standard"
    PRIVACY = "privacy"
    CUSTOM = "custom"


@dataclass(frozen=True)
class RenderPolicy:
    """Decides whether emoji are rendered as images or as text."""

    privacy_mode: PrivacyMode = PrivacyMode.STANDARD
    load_custom_emojis: bool = False
    text_template: str = DEFAULT_TEXT_TEMPLATE

    @classmethod
    def from_config(cls, config: Any) -> "RenderPolicy":
        return cls(
            privacy_mode=PrivacyMode(config.privacy_mode),
            load_custom_emojis=config.privacy_load_custom_emojis,
            text_template=config.text_template,
        )

    @property
    def allows_images(self) -> bool:
        if self.privacy_mode is PrivacyMode.PRIVACY:
            return False
        if self.privacy_mode is PrivacyMode.CUSTOM:
            return self.load_custom_emojis
        return True

    def renders_images(self, content: str) -> bool:
        # Custom emoji links are the user's own store, so they always load.
        return self.allows_images or contains_scheme_link(content)


class LinkRewriter:
    """
    Rewrites native emoji codes and custom emoji links into image markup.

    Both passes are idempotent and independent of each other. Alt text for a
    custom emoji link is the existing link label, else the decrypted name,
    else ``emoji``.
    """

    def __init__(self, cipher: Optional[NameCipher] = None) -> None:
        self._cipher = cipher

    def resolve_alt_text(self, label: str, url: str) -> str:
        trimmed = _unescape_alt_text(label).strip()
        if trimmed:
            return trimmed
        segment = extract_encrypted_segment(url)
        if segment is None or self._cipher is None:
            return FALLBACK_ALT_TEXT
        return self._cipher.resolve_name(segment, fallback=FALLBACK_ALT_TEXT).text or FALLBACK_ALT_TEXT

    def rewrite_native(self, text: str) -> str:
        """Replace ``<a?:name:id>`` codes with inline image markup."""
        def _replace(match: re.Match) -> str:
            emoji = NativeEmoji(
                name=match.group("name"),
                identifier=match.group("id"),
                animated=bool(match.group("animated")),
            )
            return emoji.to_markdown()

        return NATIVE_EMOJI_PATTERN.sub(_replace, text)

    def rewrite_links(self, text: str) -> str:
        """Promote custom emoji links and bare URLs to markdown images."""
        def _replace(match: re.Match) -> str:
            bare = match.group("bare")
            if bare is not None:
                url = _bare_scheme_url(match)
                if url is None:
                    return match.group(0)
                alt = self.resolve_alt_text("", url)
                return f"![{escape_alt_text(alt)}]({url}){bare[len(url):]}"

            url = match.group("url")
            if match.group("bang") or not contains_marker(url):
                return match.group(0)
            alt = self.resolve_alt_text(match.group("alt"), url)
            title = match.group("title") or ""
            return f"![{escape_alt_text(alt)}]({url}{title})"

        return _LINK_PATTERN.sub(_replace, text)

    def rewrite(self, content: str) -> str:
        """Run both passes, producing markdown for the display layer."""
        if not content:
            return ""
        return self.rewrite_links(self.rewrite_native(content))

    def render_plain(self, content: str, template: str = DEFAULT_TEXT_TEMPLATE) -> str:
        """
        Text-only rendering: every emoji becomes ``template`` with ``{n}``
        replaced by its name. Nothing is fetched from a CDN.
        """
        if not content:
            return ""

        def _label(name: str) -> str:
            return template.replace("{n}", name)

        def _replace_link(match: re.Match) -> str:
            bare = match.group("bare")
            if bare is not None:
                url = _bare_scheme_url(match)
                if url is None:
                    return match.group(0)
                return _label(self.resolve_alt_text("", url)) + bare[len(url):]
            url = match.group("url")
            if not contains_marker(url):
                return match.group(0)
            return _label(self.resolve_alt_text(match.group("alt"), url))

        text = NATIVE_EMOJI_PATTERN.sub(lambda match: _label(match.group("name")), content)
        return _LINK_PATTERN.sub(_replace_link, text)

    def render(self, content: str, policy: Optional[RenderPolicy] = None) -> str:
        policy = policy or RenderPolicy()
        if policy.renders_images(content):
            return self.rewrite(content)
        return self.render_plain(content, policy.text_template)
