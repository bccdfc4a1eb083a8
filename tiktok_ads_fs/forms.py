"""Multipart form builders for the upload endpoints.

Forms are described as plain :class:`FormField` lists so they can be
inspected without a network round-trip, and converted to a
``curl_cffi`` :class:`CurlMime` only when the request is sent.
"""

from __future__ import annotations

import hashlib
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from curl_cffi import CurlMime

from .constants import UPLOAD_BY_FILE

# Boolean video options, all serialized as "true"/"false".
VIDEO_FLAGS: tuple[str, ...] = (
    "is_third_party",
    "flaw_detect",
    "auto_fix_enabled",
    "auto_bind_enabled",
)


@dataclass(frozen=True)
class FormField:
    """One part of a multipart body.  ``filename`` marks a file part."""

    name: str
    value: bytes | str
    filename: str | None = None

    @property
    def data(self) -> bytes:
        return self.value if isinstance(self.value, bytes) else self.value.encode("utf-8")


def content_signature(contents: bytes) -> str:
    """MD5 hex digest the Business API expects as the upload signature."""
    return hashlib.md5(contents).hexdigest()


def _flag(value: Any) -> str:
    return "true" if value else "false"


def cookie_image_form(file_name: str, contents: bytes) -> list[FormField]:
    return [FormField("Filedata", contents, filename=os.path.basename(file_name))]


def token_image_form(
    advertiser_id: str,
    file_name: str,
    contents: bytes,
    include_file_name: bool = False,
) -> list[FormField]:
    base_name = os.path.basename(file_name)
    form = [
        FormField("advertiser_id", advertiser_id),
        FormField("image_file", contents, filename=base_name),
        FormField("upload_type", UPLOAD_BY_FILE),
        FormField("image_signature", content_signature(contents)),
    ]
    if include_file_name:
        form.append(FormField("file_name", base_name))
    return form


def video_form(
    advertiser_id: str,
    file_name: str,
    contents: bytes,
    options: Mapping[str, Any] | None = None,
) -> list[FormField]:
    options = options or {}
    base_name = os.path.basename(file_name)
    form = [
        FormField("advertiser_id", advertiser_id),
        FormField("video_file", contents, filename=base_name),
        FormField("upload_type", UPLOAD_BY_FILE),
        FormField("video_signature", content_signature(contents)),
    ]
    form.extend(FormField(flag, _flag(options.get(flag, False))) for flag in VIDEO_FLAGS)
    if options.get("include_file_name"):
        form.append(FormField("file_name", base_name))
    return form


def to_curl_mime(form: list[FormField]) -> CurlMime:
    """Build a ``CurlMime`` body from *form*.  The caller closes it."""
    mime = CurlMime()
    for part in form:
        if part.filename is not None:
            mime.addpart(name=part.name, filename=part.filename, data=part.data)
        else:
            mime.addpart(name=part.name, data=part.data)
    return mime
