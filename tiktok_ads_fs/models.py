"""Data models for the TikTok Ads filesystem adapter"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Capability(str, Enum):
    """Storage-adapter capabilities.  Only a few are backed by the platform."""

    WRITE = "write"
    MIME_TYPE = "mime_type"
    VISIBILITY = "visibility"
    READ = "read"
    EXISTENCE = "existence"
    DELETE = "delete"
    DIRECTORIES = "directories"
    MOVE = "move"
    COPY = "copy"
    LIST = "list"
    METADATA = "metadata"
    CHECKSUM = "checksum"
    URL = "url"


@dataclass
class FileAttributes:
    """Metadata for a path.  Fields the adapter cannot provide stay ``None``."""

    path: str
    file_size: int | None = None
    visibility: str | None = None
    last_modified: int | None = None
    mime_type: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
