"""Header names and media types shared by envelopes, codecs and errors."""
from __future__ import annotations

import httpx

CONTENT_TYPE = "content-type"
CONTENT_LENGTH = "content-length"

APPLICATION_PROTOBUF = "application/protobuf"
APPLICATION_JSON = "application/json"
SUPPORTED_CONTENT_TYPES = (APPLICATION_PROTOBUF, APPLICATION_JSON)

DEFAULT_HTTP_VERSION = "HTTP/1.1"


def normalize_content_type(value: str | None) -> str | None:
    """Lower-case a Content-Type value and drop its parameters (``; charset=...``)."""
    if not value:
        return None
    media_type = value.split(";", 1)[0].strip().lower()
    return media_type or None


def default_headers(content_type: str = APPLICATION_PROTOBUF) -> httpx.Headers:
    """Fresh header map holding only ``Content-Type``."""
    return httpx.Headers({CONTENT_TYPE: content_type})


def http_version(value: str | None) -> str:
    """ASGI gives ``1.1``; envelopes carry ``HTTP/1.1``."""
    if not value:
        return DEFAULT_HTTP_VERSION
    return value if value.upper().startswith("HTTP/") else f"HTTP/{value}"
