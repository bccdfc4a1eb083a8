"""Rewriting of signed CDN image URLs returned in cookie mode."""

from __future__ import annotations

import re

# https://p16-ad-site-sign-sg.ibyteimg.com/<bucket>/<object>~tplv-...?x-expires=...
_SIGNED_IMAGE_URL_RE = re.compile(
    r"^https://(p\d+)-ad-site-sign-(\w+)\.ibyteimg\.com/([^/]+)/([^~]+)~[^?]+\?.*$"
)


def transform_image_url(url: str) -> str:
    """Turn a signed, expiring image URL into its stable unsigned form.

    URLs that do not match the signed pattern, including URLs already in
    unsigned form, are returned unchanged.

    Example::

        >>> transform_image_url(
        ...     "https://p16-ad-site-sign-sg.ibyteimg.com/ad-site-i18n-sg/abc~tplv-noop.image?x-expires=1"
        ... )
        'https://p16-ad-sg.ibyteimg.com/obj/ad-site-i18n-sg/abc'
    """
    match = _SIGNED_IMAGE_URL_RE.match(url)
    if not match:
        return url
    node, region, bucket, obj = match.groups()
    return f"https://{node}-ad-{region}.ibyteimg.com/obj/{bucket}/{obj}"
