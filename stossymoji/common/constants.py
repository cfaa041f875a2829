"""Constants used throughout the application."""

# Literal embedded in every object key: <ciphertext>.stossymoji.<ext>
MARKER = "stossymoji"
MARKER_TOKEN = f".{MARKER}."

# Blob store HTTP API
BLOB_API_URL = "https://blob.vercel-storage.com"
BLOB_API_VERSION = "7"
PUBLIC_HOST_SUFFIX = "public.blob.vercel-storage.com"
DEFAULT_LIST_LIMIT = 200
DEFAULT_HTTP_TIMEOUT = 30.0

STORE_ID_PREFIX = "store_"

# Password separator used for the emoji name key derivation
KEY_SEPARATOR = "_token_"

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_EXTENSION = "png"

# Canonical file extension per image content type
CONTENT_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/apng": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/svg+xml": "svg",
    "image/x-icon": "ico",
    "image/vnd.microsoft.icon": "ico",
    "image/avif": "avif",
}

ANIMATED_CONTENT_TYPES = frozenset({"image/gif", "image/apng"})

# URL scheme carrying native emoji references to the display layer
NATIVE_EMOJI_SCHEME = "discord-emoji"

DEFAULT_TEXT_TEMPLATE = ":{n}:"
FALLBACK_ALT_TEXT = "emoji"

# Composer
PLACEHOLDER_OPEN = "::{"
PLACEHOLDER_CLOSE = "}::"
QUERY_TRIGGER = "::"
MAX_SUGGESTIONS = 8
