"""MIME detection and media classification.

The adapter routes every upload by MIME type.  Detection is pluggable
through the :class:`MimeTypeDetector` protocol; the default
:class:`ExtensionMimeTypeDetector` guesses from the file extension and
falls back to sniffing well-known magic numbers in the content.
"""

from __future__ import annotations

import mimetypes
from enum import Enum
from typing import Protocol

from .constants import IMAGE_MIME_TYPES, MIME_OCTET_STREAM, VIDEO_MIME_TYPES


class MediaKind(str, Enum):
    """Upload pathway selected for a file."""

    IMAGE = "image"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"


class MimeTypeDetector(Protocol):
    """Anything that can guess a MIME type from a path or raw bytes."""

    def detect_from_path(self, path: str) -> str | None: ...

    def detect_from_buffer(self, contents: bytes) -> str | None: ...


# ftyp major brands that mark a QuickTime movie rather than MP4.
_QUICKTIME_BRANDS: frozenset[bytes] = frozenset({b"qt  "})

# (offset, signature, mime) checked in order.
_SIGNATURES: list[tuple[int, bytes, str]] = [
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"GIF87a", "image/gif"),
    (0, b"GIF89a", "image/gif"),
    (0, b"BM", "image/bmp"),
    (0, b"%PDF-", "application/pdf"),
    (0, b"\x1aE\xdf\xa3", "video/webm"),
]


def sniff_mime_type(contents: bytes) -> str:
    """Guess a MIME type from the leading bytes of *contents*.

    Returns ``application/octet-stream`` when nothing matches.
    """
    head = bytes(contents[:64])
    for offset, signature, mime in _SIGNATURES:
        if head[offset:offset + len(signature)] == signature:
            return mime
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    if head[4:8] == b"ftyp":
        if head[8:12] in _QUICKTIME_BRANDS:
            return "video/quicktime"
        return "video/mp4"
    return MIME_OCTET_STREAM


class ExtensionMimeTypeDetector:
    """Default detector: file extension first, magic numbers second."""

    def detect_from_path(self, path: str) -> str | None:
        mime, _ = mimetypes.guess_type(path, strict=False)
        return mime

    def detect_from_buffer(self, contents: bytes) -> str | None:
        return sniff_mime_type(contents)


def detect_mime_type(detector: MimeTypeDetector, file_name: str, contents: bytes) -> str | None:
    """Detect from *file_name* first; sniff *contents* if that is inconclusive."""
    return detector.detect_from_path(file_name) or detector.detect_from_buffer(contents)


def classify(mime_type: str | None) -> MediaKind:
    """Map a MIME type to its upload pathway."""
    if mime_type in IMAGE_MIME_TYPES:
        return MediaKind.IMAGE
    if mime_type in VIDEO_MIME_TYPES:
        return MediaKind.VIDEO
    return MediaKind.UNSUPPORTED
