"""Custom exceptions for the TikTok Ads filesystem adapter."""

from __future__ import annotations

from typing import Any


class TikTokAdsError(Exception):
    """Base exception for all TikTok Ads adapter errors."""


class ConfigurationError(TikTokAdsError):
    """Raised when credentials or settings are missing or invalid."""


class AuthenticationError(ConfigurationError):
    """Raised when a session cookie lacks a required field."""


class ResolutionError(TikTokAdsError):
    """Raised when the advertiser account id cannot be resolved."""


class ClassificationError(TikTokAdsError):
    """Raised when a file's MIME type has no upload pathway."""

    def __init__(self, mime_type: str | None, path: str = ""):
        super().__init__(f"Unsupported file type: {mime_type}")
        self.mime_type = mime_type
        self.path = path


class UploadError(TikTokAdsError):
    """Raised when the platform rejects an upload or returns no data."""

    def __init__(self, message: str, body: Any = None):
        super().__init__(message)
        self.body = body if body is not None else {}


class UnsupportedOperationError(TikTokAdsError):
    """Raised by every storage operation this adapter does not provide."""

    def __init__(self, operation: str, path: str, reason: str | None = None):
        msg = f"Adapter does not support {operation} (path: {path!r})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.operation = operation
        self.path = path
