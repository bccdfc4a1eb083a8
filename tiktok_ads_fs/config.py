"""Adapter configuration.

:class:`AdapterConfig` holds the raw settings the adapter is built from.
It can be created from a plain mapping (the shape host applications
usually keep in their storage configuration) or from environment
variables::

    config = AdapterConfig.from_mapping({"access_token": "...", "app_id": "...", "app_secret": "..."})
    config = AdapterConfig.from_env()
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from .constants import DEFAULT_CONCURRENCY, DEFAULT_VIDEO_POLL_INTERVAL

# Environment variable for each configuration field.
ENV_VARS: dict[str, str] = {
    "access_token": "TIKTOK_ACCESS_TOKEN",
    "cookie": "TIKTOK_COOKIE",
    "base_uri": "TIKTOK_BASE_URI",
    "advertiser_id": "TIKTOK_ADVERTISER_ID",
    "app_id": "TIKTOK_APP_ID",
    "app_secret": "TIKTOK_APP_SECRET",
    "cache_path": "TIKTOK_CACHE_PATH",
}


@dataclass
class AdapterConfig:
    """Settings for :class:`~tiktok_ads_fs.adapter.TikTokAdapter`.

    Attributes:
        access_token: Business API access token (token mode).
        cookie: Raw ``Cookie`` header captured from an Ads Manager
            browser session (cookie mode).  Ignored when
            ``access_token`` is set.
        base_uri: Override for the API root.  Defaults depend on the
            authentication mode.
        advertiser_id: Advertiser account id.  Resolved remotely when
            absent.
        app_id: App id, required to resolve the advertiser in token mode.
        app_secret: App secret, required together with ``app_id``.
        cache_path: SQLite file backing the advertiser id cache.
        video_poll_interval: Seconds to wait after a video upload before
            looking up the processed video.
        timeout: Per-request timeout in seconds, ``None`` for the HTTP
            client default.
        concurrency: Default number of in-flight requests for batch
            uploads.
    """

    access_token: str | None = None
    cookie: str | None = None
    base_uri: str | None = None
    advertiser_id: str | None = None
    app_id: str | None = None
    app_secret: str | None = None
    cache_path: str | None = None
    video_poll_interval: float = DEFAULT_VIDEO_POLL_INTERVAL
    timeout: float | None = None
    concurrency: int = DEFAULT_CONCURRENCY

    def __post_init__(self) -> None:
        # Empty strings behave like missing settings.
        for name in ENV_VARS:
            value = getattr(self, name)
            if value is not None:
                value = str(value).strip()
                setattr(self, name, value or None)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> AdapterConfig:
        """Build a config from a settings mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in mapping.items() if k in known and v is not None}
        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AdapterConfig:
        """Build a config from ``TIKTOK_*`` environment variables."""
        env = os.environ if environ is None else environ
        return cls(**{name: env.get(var) for name, var in ENV_VARS.items()})
