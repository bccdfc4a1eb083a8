"""Credential resolution.

Turns an :class:`~tiktok_ads_fs.config.AdapterConfig` into one of two
credential variants, chosen once at construction:

* :class:`TokenAuth` -- Business API access token plus the optional app
  id/secret pair used to look up the advertiser.
* :class:`CookieAuth` -- a captured Ads Manager browser session.

Each variant knows the base URL, static headers and cookie jar the HTTP
client needs, and shapes the requests and responses that differ between
the Business API and the Ads Manager web API.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union
from urllib.parse import urljoin

from .config import AdapterConfig
from .constants import (
    ADS_COOKIE_DOMAIN,
    ADS_WEB_BASE_URI,
    ADVERTISER_LIST_PATH,
    BUSINESS_API_BASE_URI,
    COOKIE_ACCOUNT_DETAIL_URL,
    COOKIE_CACHE_PREFIX,
    COOKIE_IMAGE_UPLOAD_URL,
    CSRF_COOKIE,
    IMAGE_UPLOAD_PATH,
    SESSION_COOKIE,
    TOKEN_CACHE_PREFIX,
    USER_AGENT,
)
from .exceptions import AuthenticationError, ConfigurationError, UploadError
from .forms import FormField, cookie_image_form, token_image_form
from .urls import transform_image_url

# (url, query params, form) for one image upload.
ImageRequest = tuple[str, Optional[dict[str, str]], list[FormField]]
# (url, query params) for the advertiser lookup.
LookupRequest = tuple[str, Optional[dict[str, str]]]


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def parse_cookie_string(raw: str) -> dict[str, str]:
    """Split a raw ``Cookie`` header into a name -> value mapping.

    Fragments are separated by ``;`` and split on the first ``=``.  A
    fragment without ``=`` is taken as the value of ``sessionid_ss_ads``
    so a bare session id can be pasted in on its own.
    """
    cookies: dict[str, str] = {}
    for fragment in raw.split(";"):
        fragment = fragment.strip()
        if not fragment:
            continue
        if "=" in fragment:
            name, value = fragment.split("=", 1)
            cookies[name.strip()] = value.strip()
        else:
            cookies[SESSION_COOKIE] = fragment
    return cookies


@dataclass(frozen=True)
class TokenAuth:
    """Business API access-token credentials."""

    access_token: str
    base_uri: str = BUSINESS_API_BASE_URI
    app_id: str | None = None
    app_secret: str | None = None

    mode = "token"
    supports_video = True
    cookie_domain = None

    @property
    def headers(self) -> dict[str, str]:
        return {"Access-Token": self.access_token, "User-Agent": USER_AGENT}

    @property
    def cookies(self) -> dict[str, str]:
        return {}

    def _require_app_pair(self) -> None:
        if not self.app_id or not self.app_secret:
            raise ConfigurationError("App ID and secret are required for get advertisers")

    def cache_key(self) -> str:
        self._require_app_pair()
        digest = hashlib.md5(f"{self.app_id}:{self.app_secret}".encode()).hexdigest()
        return TOKEN_CACHE_PREFIX + digest

    def advertiser_lookup(self) -> LookupRequest:
        self._require_app_pair()
        params = {"app_id": self.app_id, "secret": self.app_secret}
        return urljoin(self.base_uri, ADVERTISER_LIST_PATH), params

    def advertiser_id_from(self, body: Mapping[str, Any]) -> Any:
        """First advertiser of the OAuth advertiser list."""
        advertisers = _mapping(body.get("data")).get("list") or []
        return _mapping(advertisers[0]).get("advertiser_id") if advertisers else None

    def image_request(
        self, advertiser_id: str, file_name: str, contents: bytes, include_file_name: bool = False,
    ) -> ImageRequest:
        form = token_image_form(advertiser_id, file_name, contents, include_file_name)
        return urljoin(self.base_uri, IMAGE_UPLOAD_PATH), None, form

    def image_result(self, data: Any, body: Mapping[str, Any]) -> Any:
        # The Business API upload record is handed back as is.
        return data


@dataclass(frozen=True)
class CookieAuth:
    """Ads Manager browser-session credentials."""

    raw_cookie: str
    cookies: dict[str, str] = field(default_factory=dict)
    base_uri: str = ADS_WEB_BASE_URI

    mode = "cookie"
    supports_video = False
    cookie_domain = ADS_COOKIE_DOMAIN

    @property
    def csrf_token(self) -> str:
        return self.cookies[CSRF_COOKIE]

    @property
    def headers(self) -> dict[str, str]:
        return {"x-csrftoken": self.csrf_token, "User-Agent": USER_AGENT}

    def cache_key(self) -> str:
        return COOKIE_CACHE_PREFIX + hashlib.md5(self.raw_cookie.encode()).hexdigest()

    def advertiser_lookup(self) -> LookupRequest:
        return COOKIE_ACCOUNT_DETAIL_URL, None

    def advertiser_id_from(self, body: Mapping[str, Any]) -> Any:
        """Account of the current Ads Manager session."""
        return _mapping(_mapping(body.get("data")).get("account")).get("id")

    def image_request(
        self, advertiser_id: str, file_name: str, contents: bytes, include_file_name: bool = False,
    ) -> ImageRequest:
        # The web endpoint takes no file_name field.
        return COOKIE_IMAGE_UPLOAD_URL, {"aadvid": advertiser_id}, cookie_image_form(file_name, contents)

    def image_result(self, data: Any, body: Mapping[str, Any]) -> str:
        """Return the unsigned form of the uploaded image URL.

        Raises:
            UploadError: If ``data`` carries neither ``url`` nor ``image_url``.
        """
        record = _mapping(data)
        url = record.get("url") or record.get("image_url")
        if not url or not isinstance(url, str):
            raise UploadError("Failed to upload image: response has no image URL", dict(body))
        return transform_image_url(url)


Credentials = Union[TokenAuth, CookieAuth]


def resolve_credentials(config: AdapterConfig) -> Credentials:
    """Select the authentication mode for *config*.

    The access token wins when both a token and a cookie are configured.

    Raises:
        ConfigurationError: If neither credential is present.
        AuthenticationError: If the cookie lacks ``csrftoken`` or
            ``sessionid_ss_ads``.
    """
    if config.access_token:
        return TokenAuth(
            access_token=config.access_token,
            base_uri=config.base_uri or BUSINESS_API_BASE_URI,
            app_id=config.app_id,
            app_secret=config.app_secret,
        )
    if config.cookie:
        cookies = parse_cookie_string(config.cookie)
        for required in (CSRF_COOKIE, SESSION_COOKIE):
            if required not in cookies:
                raise AuthenticationError(f"The cookie {required} is required")
        return CookieAuth(
            raw_cookie=config.cookie,
            cookies=cookies,
            base_uri=config.base_uri or ADS_WEB_BASE_URI,
        )
    raise ConfigurationError("Access token or cookie is required")
