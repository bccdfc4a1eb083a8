"""Constants and default configuration for the TikTok Ads filesystem adapter."""

# ---------------------------------------------------------------------------
# HTTP / browser fingerprint
# ---------------------------------------------------------------------------
CHROME_VERSION = "120"
USER_AGENT = (
    f"Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    f"(KHTML, like Gecko) Chrome/{CHROME_VERSION}.0.0.0 Safari/537.36"
)

# ---------------------------------------------------------------------------
# Base URLs
# ---------------------------------------------------------------------------
BUSINESS_API_BASE_URI = "https://business-api.tiktok.com/open_api/v1.3/"
ADS_WEB_BASE_URI = "https://ads.tiktok.com/"
ADS_COOKIE_DOMAIN = "ads.tiktok.com"

# ---------------------------------------------------------------------------
# Business API endpoints (relative to the configured base URI)
# ---------------------------------------------------------------------------
ADVERTISER_LIST_PATH = "oauth2/advertiser/get/"
IMAGE_UPLOAD_PATH = "file/image/ad/upload/"
VIDEO_UPLOAD_PATH = "file/video/ad/upload/"
VIDEO_INFO_PATH = "file/video/ad/info/"

# ---------------------------------------------------------------------------
# Ads Manager web endpoints (cookie session)
# ---------------------------------------------------------------------------
COOKIE_IMAGE_UPLOAD_URL = "https://ads.tiktok.com/mi/api/v2/i18n/material/image/upload/"
COOKIE_ACCOUNT_DETAIL_URL = "https://ads.tiktok.com/api/v4/i18n/account/permission/detail/"

# ---------------------------------------------------------------------------
# Required session cookies
# ---------------------------------------------------------------------------
CSRF_COOKIE = "csrftoken"
SESSION_COOKIE = "sessionid_ss_ads"

# ---------------------------------------------------------------------------
# Upload defaults
# ---------------------------------------------------------------------------
UPLOAD_BY_FILE = "UPLOAD_BY_FILE"
DEFAULT_CONCURRENCY = 5
DEFAULT_VIDEO_POLL_INTERVAL = 1.0  # seconds before the single video info lookup
UNKNOWN_ERROR = "Unknown error"

# ---------------------------------------------------------------------------
# Advertiser cache
# ---------------------------------------------------------------------------
ADVERTISER_CACHE_TTL = 60 * 60 * 24  # seconds
COOKIE_CACHE_PREFIX = "tiktok_advertisers_cookie_"
TOKEN_CACHE_PREFIX = "tiktok_advertiser_"
CACHE_DIR_NAME = "tiktok_ads_fs"
CACHE_FILE_NAME = "advertisers.db"

# ---------------------------------------------------------------------------
# Media types
# ---------------------------------------------------------------------------
MIME_JPEG = "image/jpeg"
MIME_PNG = "image/png"
MIME_MP4 = "video/mp4"
MIME_OCTET_STREAM = "application/octet-stream"

IMAGE_MIME_TYPES = frozenset({MIME_JPEG, MIME_PNG})
VIDEO_MIME_TYPES = frozenset({MIME_MP4})
