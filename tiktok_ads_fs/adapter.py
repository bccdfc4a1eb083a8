"""
TikTok Ads storage adapter

Presents the TikTok Ads media library as a write-only storage backend:
``put`` uploads an image or video and returns what the platform hands
back, every other storage operation is rejected with
:class:`~tiktok_ads_fs.exceptions.UnsupportedOperationError`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, BinaryIO, Hashable, Union

from .cache import AdvertiserCache
from .client import BatchItem, TikTokAdsClient
from .config import AdapterConfig
from .credentials import resolve_credentials
from .exceptions import ClassificationError, TikTokAdsError, UnsupportedOperationError
from .identity import AdvertiserResolver
from .mime import ExtensionMimeTypeDetector, MediaKind, MimeTypeDetector, classify, detect_mime_type
from .logging_config import log_context
from .models import Capability, FileAttributes

logger = logging.getLogger(__name__)

Contents = Union[bytes, bytearray, memoryview, str, BinaryIO]


def _read_contents(contents: Contents) -> bytes:
    """Normalize bytes, text or a binary file-like object to ``bytes``."""
    if isinstance(contents, (bytes, bytearray, memoryview)):
        return bytes(contents)
    if isinstance(contents, str):
        return contents.encode("utf-8")
    if hasattr(contents, "read"):
        return _read_contents(contents.read())
    raise TypeError(f"Unsupported contents type: {type(contents).__name__}")


class TikTokAdapter:
    """
    Write-only storage adapter backed by the TikTok Ads media library.

    Construction resolves credentials and, unless ``advertiser_id`` is
    configured, the advertiser account (cached for 24 hours per
    credential set).

    Example::

        adapter = TikTokAdapter({"access_token": "...", "app_id": "...", "app_secret": "..."})
        image = adapter.put("banner.png", png_bytes)
        video = adapter.put("clip.mp4", mp4_bytes, {"flaw_detect": True})
    """

    capabilities: frozenset[Capability] = frozenset({
        Capability.WRITE,
        Capability.MIME_TYPE,
        Capability.VISIBILITY,
    })

    def __init__(
        self,
        config: AdapterConfig | Mapping[str, Any],
        mime_type_detector: MimeTypeDetector | None = None,
        cache: AdvertiserCache | None = None,
        client: TikTokAdsClient | None = None,
    ) -> None:
        """
        Args:
            config: An :class:`AdapterConfig` or a raw settings mapping.
            mime_type_detector: Detector used to route uploads.  Defaults to
                extension lookup with content sniffing as fallback.
            cache: Advertiser id cache.  Defaults to the SQLite cache at
                ``config.cache_path``; only opened when a lookup is needed.
            client: Pre-built HTTP client, mainly for tests.

        Raises:
            ConfigurationError: Missing or malformed credentials.
            ResolutionError: The advertiser id could not be resolved.
        """
        self.config = config if isinstance(config, AdapterConfig) else AdapterConfig.from_mapping(config)
        self.credentials = resolve_credentials(self.config)
        self.mime_type_detector = mime_type_detector or ExtensionMimeTypeDetector()
        self.client = client or TikTokAdsClient(self.credentials, timeout=self.config.timeout)
        self.cache = cache
        self._owns_cache = cache is None

        try:
            self.advertiser_id = self._resolve_advertiser_id()
        except TikTokAdsError:
            self.close()
            raise
        self.client.advertiser_id = self.advertiser_id

    def _resolve_advertiser_id(self) -> str:
        if self.config.advertiser_id:
            return self.config.advertiser_id
        if self.cache is None:
            self.cache = AdvertiserCache(mode="persistent", db_path=self.config.cache_path)
        resolver = AdvertiserResolver(self.credentials, self.client, self.cache)
        return resolver.resolve()

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def put(self, file_name: str, contents: Contents, options: Mapping[str, Any] | None = None) -> Any:
        """
        Upload a file to the media library.

        Args:
            file_name: Name used for MIME detection and as the upload file name.
            contents: File bytes, text, or a binary file-like object.
            options: ``include_file_name`` adds a ``file_name`` form field;
                ``is_third_party``, ``flaw_detect``, ``auto_fix_enabled`` and
                ``auto_bind_enabled`` apply to videos only.

        Returns:
            Images: the unsigned URL (cookie mode) or the upload ``data``
            object (token mode).  Videos: the video info record.

        Raises:
            ClassificationError: The file is not JPEG, PNG or MP4.
            UploadError: The platform rejected the upload.
        """
        options = options or {}
        data = _read_contents(contents)
        mime_type = detect_mime_type(self.mime_type_detector, file_name, data)
        kind = classify(mime_type)
        logger.debug(
            "Classified upload as %s", kind.value,
            extra=log_context(advertiser_id=self.advertiser_id, file_name=file_name, mime_type=mime_type),
        )

        if kind is MediaKind.IMAGE:
            return self.client.upload_image(
                file_name, data, include_file_name=bool(options.get("include_file_name")),
            )
        if kind is MediaKind.VIDEO:
            return self.client.upload_video(
                file_name, data, options, poll_interval=self.config.video_poll_interval,
            )
        raise ClassificationError(mime_type, file_name)

    def put_many(
        self,
        files: Mapping[str, Contents] | Sequence[tuple[str, Contents]],
        options: Mapping[str, Any] | None = None,
    ) -> dict[Hashable, Any]:
        """
        Upload several images concurrently.

        A mapping is keyed by file name; a sequence of ``(name, contents)``
        pairs is keyed by position.  Per-item failures, including files that
        are not JPEG or PNG, are reported as the item's value (an error
        message string) instead of raising.

        Args:
            options: ``concurrency`` caps in-flight requests (default from
                the config, 5).

        Returns:
            ``{name_or_index: result_or_error_message}`` in input order.

        Raises:
            RuntimeError: When called from a running event loop; the batch
                runs its own loop via :func:`asyncio.run`.
        """
        options = options or {}
        concurrency = int(options.get("concurrency") or self.config.concurrency)
        entries: Iterable[tuple[Hashable, str, Contents]]
        if isinstance(files, Mapping):
            entries = ((name, name, contents) for name, contents in files.items())
        else:
            entries = ((index, name, contents) for index, (name, contents) in enumerate(files))

        results: dict[Hashable, Any] = {}
        uploads: list[BatchItem] = []
        for key, file_name, contents in entries:
            try:
                data = _read_contents(contents)
            except TypeError as exc:
                results[key] = str(exc)
                continue
            mime_type = detect_mime_type(self.mime_type_detector, file_name, data)
            if classify(mime_type) is not MediaKind.IMAGE:
                results[key] = str(ClassificationError(mime_type, file_name))
                continue
            results[key] = None
            uploads.append((key, file_name, data))

        logger.info(
            "Uploading %d of %d files with concurrency %d", len(uploads), len(results), concurrency,
            extra=log_context(advertiser_id=self.advertiser_id, batch_size=len(results)),
        )
        results.update(self.client.upload_images(uploads, concurrency))
        return results

    def get_video_info(self, video_id: str) -> dict[str, Any]:
        """Return the platform's info record for *video_id*."""
        return self.client.get_video_info(video_id)

    # ------------------------------------------------------------------
    # Supported read-only metadata
    # ------------------------------------------------------------------

    def mime_type(self, path: str) -> FileAttributes:
        """Return attributes carrying only the MIME type guessed from *path*."""
        return FileAttributes(path, mime_type=self.mime_type_detector.detect_from_path(path))

    def visibility(self, path: str) -> FileAttributes:
        # Noop
        return FileAttributes(path)

    # ------------------------------------------------------------------
    # Unsupported operations
    # ------------------------------------------------------------------

    @staticmethod
    def _unsupported(operation: str, path: str, reason: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(operation, path, reason)

    def write(self, path: str, contents: Contents, options: Mapping[str, Any] | None = None) -> None:
        raise self._unsupported("write", path, "use put() to upload media")

    def write_stream(self, path: str, contents: Any, options: Mapping[str, Any] | None = None) -> None:
        raise self._unsupported("write_stream", path, "use put() to upload media")

    def read(self, path: str) -> bytes:
        raise self._unsupported("read", path, "file reading")

    def read_stream(self, path: str) -> Any:
        raise self._unsupported("read_stream", path, "file reading")

    def file_exists(self, path: str) -> bool:
        raise self._unsupported("file_exists", path, "file existence check")

    def directory_exists(self, path: str) -> bool:
        raise self._unsupported("directory_exists", path, "directory existence check")

    def delete(self, path: str) -> None:
        raise self._unsupported("delete", path, "file deletion")

    def delete_directory(self, path: str) -> None:
        raise self._unsupported("delete_directory", path, "directory deletion")

    def create_directory(self, path: str, options: Mapping[str, Any] | None = None) -> None:
        raise self._unsupported("create_directory", path, "directory creation")

    def set_visibility(self, path: str, visibility: str) -> None:
        raise self._unsupported("set_visibility", path, "visibility controls")

    def list_contents(self, path: str, deep: bool = False) -> Iterable[FileAttributes]:
        raise self._unsupported("list_contents", path, "listing contents")

    def move(self, source: str, destination: str, options: Mapping[str, Any] | None = None) -> None:
        raise self._unsupported("move", source, "file moving")

    def copy(self, source: str, destination: str, options: Mapping[str, Any] | None = None) -> None:
        raise self._unsupported("copy", source, "file copying")

    def last_modified(self, path: str) -> FileAttributes:
        raise self._unsupported("last_modified", path, "last modified calculation")

    def checksum(self, path: str, options: Mapping[str, Any] | None = None) -> str:
        raise self._unsupported("checksum", path, "checksum calculation")

    def file_size(self, path: str) -> FileAttributes:
        raise self._unsupported("file_size", path, "file size calculation")

    def get_url(self, path: str) -> str:
        raise self._unsupported("get_url", path, "file URL retrieval")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP session and the cache this adapter opened."""
        self.client.close()
        if self._owns_cache and self.cache is not None:
            self.cache.close()

    def __enter__(self) -> TikTokAdapter:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
