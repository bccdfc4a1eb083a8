"""Advertiser account resolution with a 24-hour cache."""

from __future__ import annotations

import logging

from .cache import AdvertiserCache
from .client import TikTokAdsClient
from .constants import ADVERTISER_CACHE_TTL
from .credentials import Credentials
from .exceptions import ResolutionError
from .logging_config import log_context

logger = logging.getLogger(__name__)


class AdvertiserResolver:
    """Resolve the advertiser id for a credential set, memoized per credential hash.

    Args:
        credentials: The credential variant the client was built from.
        client: Client used for the remote lookup.
        cache: Cache port storing resolved ids.
        ttl: Seconds a resolved id stays valid.
    """

    def __init__(
        self,
        credentials: Credentials,
        client: TikTokAdsClient,
        cache: AdvertiserCache,
        ttl: float = ADVERTISER_CACHE_TTL,
    ) -> None:
        self.credentials = credentials
        self.client = client
        self.cache = cache
        self.ttl = ttl

    def resolve(self, configured: str | None = None) -> str:
        """Return *configured* if set, otherwise the cached or freshly fetched id.

        Raises:
            ConfigurationError: Token mode without ``app_id``/``app_secret``.
            ResolutionError: If the lookup yields no advertiser.
        """
        if configured:
            return configured

        key = self.credentials.cache_key()
        advertiser_id = self.cache.get_or_compute(key, self.client.fetch_advertiser_id, self.ttl)
        if not advertiser_id:
            raise ResolutionError("Not found any advertisers")
        logger.info(
            "Resolved advertiser account",
            extra=log_context(auth_mode=self.credentials.mode, advertiser_id=advertiser_id),
        )
        return advertiser_id
