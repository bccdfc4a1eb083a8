"""TikTok Ads filesystem adapter - upload images and videos to the TikTok Ads media library."""

from .adapter import TikTokAdapter
from .cache import AdvertiserCache
from .client import TikTokAdsClient
from .config import AdapterConfig
from .credentials import CookieAuth, TokenAuth, parse_cookie_string, resolve_credentials
from .exceptions import (
    AuthenticationError,
    ClassificationError,
    ConfigurationError,
    ResolutionError,
    TikTokAdsError,
    UnsupportedOperationError,
    UploadError,
)
from .identity import AdvertiserResolver
from .logging_config import setup_logging
from .mime import ExtensionMimeTypeDetector, MediaKind, MimeTypeDetector, classify
from .models import Capability, FileAttributes
from .urls import transform_image_url

__version__ = "1.0.0"
__all__ = [
    # Adapter & client
    "TikTokAdapter",
    "TikTokAdsClient",
    "AdapterConfig",
    # Credentials
    "TokenAuth",
    "CookieAuth",
    "parse_cookie_string",
    "resolve_credentials",
    # Advertiser identity
    "AdvertiserCache",
    "AdvertiserResolver",
    # Media
    "MediaKind",
    "MimeTypeDetector",
    "ExtensionMimeTypeDetector",
    "classify",
    "transform_image_url",
    # Models
    "Capability",
    "FileAttributes",
    # Logging
    "setup_logging",
    # Exceptions
    "TikTokAdsError",
    "ConfigurationError",
    "AuthenticationError",
    "ResolutionError",
    "ClassificationError",
    "UploadError",
    "UnsupportedOperationError",
]
