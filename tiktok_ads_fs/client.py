"""
TikTok Ads HTTP Client

Sends the upload, video-info and advertiser lookup requests for either
credential variant, and runs bounded-concurrency batch image uploads.
"""

import asyncio
import json
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Hashable, Optional
from urllib.parse import urljoin

from curl_cffi.requests import AsyncSession as CffiAsyncSession
from curl_cffi.requests import Session as CffiSession
from curl_cffi.requests.exceptions import RequestException as CffiRequestException

from .constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_VIDEO_POLL_INTERVAL,
    UNKNOWN_ERROR,
    VIDEO_INFO_PATH,
    VIDEO_UPLOAD_PATH,
)
from .credentials import Credentials
from .exceptions import ConfigurationError, ResolutionError, UploadError
from .forms import FormField, to_curl_mime, video_form
from .logging_config import log_context

logger = logging.getLogger(__name__)

# (key, file name, contents) for one batch upload.
BatchItem = tuple[Hashable, str, bytes]


def _decode_body(response: Any) -> dict[str, Any]:
    """Decode a JSON response body, keeping undecodable text under ``raw``."""
    try:
        body = response.json()
    except ValueError:
        return {"raw": response.text}
    if not isinstance(body, dict):
        return {"raw": body}
    return body


def _platform_message(body: Mapping[str, Any]) -> str:
    return body.get("message") or body.get("msg") or UNKNOWN_ERROR


class TikTokAdsClient:
    """
    HTTP client for the TikTok Business API and the Ads Manager web API.

    The credential variant decides base URL, headers, cookie jar and which
    endpoint each upload goes to.  Single uploads are blocking; batch image
    uploads run on an async session with at most ``concurrency`` requests
    in flight.
    """

    def __init__(
        self,
        credentials: Credentials,
        advertiser_id: Optional[str] = None,
        session: Optional[Any] = None,
        async_session_factory: Optional[Callable[..., Any]] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            credentials: A ``TokenAuth`` or ``CookieAuth`` instance.
            advertiser_id: Advertiser account id used by upload calls.  May
                be set later once resolved.
            session: An optional ``curl_cffi`` :class:`Session` to reuse.
            async_session_factory: Callable building the async session for
                batch uploads.  Defaults to ``curl_cffi``'s ``AsyncSession``.
            timeout: Request timeout in seconds, ``None`` for the default.
        """
        self.credentials = credentials
        self.advertiser_id = advertiser_id
        self.timeout = timeout
        self._async_session_factory = async_session_factory or CffiAsyncSession

        self.session: Any = session or CffiSession(impersonate="chrome")
        self._configure_session(self.session)

    def _configure_session(self, session: Any) -> None:
        """Apply static headers and the scoped cookie jar to *session*."""
        session.headers.update(self.credentials.headers)
        for name, value in self.credentials.cookies.items():
            session.cookies.set(name, value, domain=self.credentials.cookie_domain)

    def _url(self, path: str) -> str:
        return urljoin(self.credentials.base_uri, path)

    def _request_kwargs(self, **kwargs: Any) -> dict[str, Any]:
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return kwargs

    def _require_advertiser_id(self) -> str:
        if not self.advertiser_id:
            raise ConfigurationError("Advertiser id is not set")
        return self.advertiser_id

    def _context(self, **fields: Any) -> dict[str, Any]:
        return log_context(auth_mode=self.credentials.mode, advertiser_id=self.advertiser_id, **fields)

    def _send_form(self, url: str, form: list[FormField], params: Optional[dict[str, str]] = None) -> Any:
        mime = to_curl_mime(form)
        try:
            logger.debug("POST %s (%d form fields)", url, len(form), extra=self._context())
            return self.session.post(url, params=params, multipart=mime, **self._request_kwargs())
        finally:
            mime.close()

    @staticmethod
    def _response_data(response: Any) -> tuple[Any, dict[str, Any]]:
        """Return ``(data, body)``; ``data`` is ``None`` for non-2xx responses."""
        body = _decode_body(response)
        if not 200 <= response.status_code < 300:
            return None, body
        return body.get("data"), body

    # ------------------------------------------------------------------
    # Advertiser lookup
    # ------------------------------------------------------------------

    def fetch_advertiser_id(self) -> str:
        """
        Look up the advertiser account the credentials belong to.

        Token mode reads the first advertiser of the OAuth advertiser list,
        queried with the credentials' ``app_id``/``app_secret``; cookie mode
        reads the account of the current Ads Manager session.

        Returns:
            The advertiser id, or ``""`` if the response carried none.

        Raises:
            ConfigurationError: Token mode without ``app_id``/``app_secret``.
            ResolutionError: On transport failure.
        """
        url, params = self.credentials.advertiser_lookup()
        try:
            response = self.session.get(url, params=params, **self._request_kwargs())
        except CffiRequestException as exc:
            raise ResolutionError(f"Failed to get advertisers: {exc}") from exc

        body = _decode_body(response)
        value = self.credentials.advertiser_id_from(body)
        if not value:
            logger.warning(
                "Advertiser lookup returned no id: %s", _platform_message(body), extra=self._context(),
            )
            return ""
        return str(value)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _image_request(self, file_name: str, contents: bytes, include_file_name: bool = False) -> Any:
        return self.credentials.image_request(
            self._require_advertiser_id(), file_name, contents, include_file_name,
        )

    def _image_result(self, data: Any, body: dict[str, Any]) -> Any:
        """Shape accepted upload ``data``; raises :class:`UploadError` on an empty or malformed body."""
        if not data:
            raise UploadError(f"Failed to upload image: {_platform_message(body)}", body)
        return self.credentials.image_result(data, body)

    def upload_image(self, file_name: str, contents: bytes, include_file_name: bool = False) -> Any:
        """
        Upload a JPEG or PNG image.

        Returns:
            Cookie mode: the unsigned image URL string.  Token mode: the
            ``data`` object of the response (``image_id``, ``url``, ...).

        Raises:
            UploadError: Non-2xx response, empty or malformed ``data``, or
                transport failure.
        """
        url, params, form = self._image_request(file_name, contents, include_file_name)
        try:
            response = self._send_form(url, form, params)
        except CffiRequestException as exc:
            raise UploadError(f"Failed to upload image: {exc}") from exc

        result = self._image_result(*self._response_data(response))
        logger.info("Uploaded image %s", file_name, extra=self._context(file_name=file_name))
        return result

    def upload_images(
        self,
        items: Sequence[BatchItem],
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> dict[Hashable, Any]:
        """
        Upload several images with at most *concurrency* requests in flight.

        Failures never raise: a rejected request maps to the exception
        message and an error or malformed body maps to the error message.
        Runs its own event loop, so it cannot be called from a coroutine.

        Returns:
            ``{key: result_or_error_message}`` in the order of *items*.
        """
        if not items:
            return {}
        return asyncio.run(self._upload_images_async(items, max(1, concurrency)))

    async def _upload_images_async(self, items: Sequence[BatchItem], concurrency: int) -> dict[Hashable, Any]:
        semaphore = asyncio.Semaphore(concurrency)
        async with self._async_session_factory(impersonate="chrome", max_clients=concurrency) as session:
            self._configure_session(session)

            async def upload_one(key: Hashable, file_name: str, contents: bytes) -> tuple[Hashable, Any]:
                async with semaphore:
                    return key, await self._upload_image_async(session, file_name, contents)

            pairs = await asyncio.gather(*(upload_one(*item) for item in items))
        return dict(pairs)

    async def _upload_image_async(self, session: Any, file_name: str, contents: bytes) -> Any:
        context = self._context(file_name=file_name)
        url, params, form = self._image_request(file_name, contents)
        mime = to_curl_mime(form)
        try:
            logger.debug("POST %s (batch item)", url, extra=context)
            response = await session.post(url, params=params, multipart=mime, **self._request_kwargs())
        except CffiRequestException as exc:
            logger.warning("Batch upload failed: %s", exc, extra=context)
            return str(exc)
        finally:
            mime.close()

        data, body = self._response_data(response)
        try:
            return self._image_result(data, body)
        except UploadError as exc:
            message = _platform_message(body) if not data else str(exc)
            logger.warning("Batch upload rejected: %s", message, extra=context)
            return message

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    def upload_video(
        self,
        file_name: str,
        contents: bytes,
        options: Optional[Mapping[str, Any]] = None,
        poll_interval: float = DEFAULT_VIDEO_POLL_INTERVAL,
    ) -> dict[str, Any]:
        """
        Upload an MP4 video and return its processed info record.

        After the upload is acknowledged the client waits *poll_interval*
        seconds and performs exactly one info lookup.

        Args:
            options: ``is_third_party``, ``flaw_detect``, ``auto_fix_enabled``,
                ``auto_bind_enabled`` and ``include_file_name``.

        Raises:
            UploadError: In cookie mode, or when the upload or lookup fails.
        """
        if not self.credentials.supports_video:
            raise UploadError(f"Upload video with {self.credentials.mode} is not supported")

        form = video_form(self._require_advertiser_id(), file_name, contents, options)
        try:
            response = self._send_form(self._url(VIDEO_UPLOAD_PATH), form)
        except CffiRequestException as exc:
            raise UploadError(f"Failed to upload video: {exc}") from exc

        data, body = self._response_data(response)
        if not data:
            raise UploadError(f"Failed to upload video: {_platform_message(body)}", body)

        entry = data[0] if isinstance(data, list) else data
        video_id = entry.get("video_id") if isinstance(entry, Mapping) else None
        if not video_id:
            raise UploadError("Failed to upload video: response has no video_id", body)

        logger.info(
            "Uploaded video, waiting %.1fs for processing", poll_interval,
            extra=self._context(file_name=file_name, video_id=video_id),
        )
        if poll_interval > 0:
            time.sleep(poll_interval)
        return self.get_video_info(video_id)

    def get_video_info(self, video_id: str) -> dict[str, Any]:
        """Return the info record (``video_id``, ``preview_url``, ...) of a video."""
        params = {
            "advertiser_id": self._require_advertiser_id(),
            "video_ids": json.dumps([video_id]),
        }
        try:
            logger.debug("GET %s", VIDEO_INFO_PATH, extra=self._context(video_id=video_id))
            response = self.session.get(self._url(VIDEO_INFO_PATH), params=params, **self._request_kwargs())
        except CffiRequestException as exc:
            raise UploadError(f"Failed to get video info: {exc}") from exc

        data, body = self._response_data(response)
        videos = data.get("list") if isinstance(data, Mapping) else None
        if not videos:
            raise UploadError(f"Failed to get video info: {_platform_message(body)}", body)
        return videos[0]

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
