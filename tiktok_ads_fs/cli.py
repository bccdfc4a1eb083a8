#!/usr/bin/env python3
"""
TikTok Ads filesystem adapter - CLI Entry Point

Usage:
    tiktok-ads-fs upload banner.png
    tiktok-ads-fs upload a.jpg b.jpg c.png --concurrency 3
    tiktok-ads-fs upload clip.mp4 --flaw-detect --auto-fix
    tiktok-ads-fs video-info v10033g50000abc
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from .adapter import TikTokAdapter
from .config import AdapterConfig
from .exceptions import TikTokAdsError
from .logging_config import setup_logging as _setup_logging

logger = logging.getLogger(__name__)

# CLI flag -> adapter option for video uploads.
_VIDEO_FLAGS = {
    "third_party": "is_third_party",
    "flaw_detect": "flaw_detect",
    "auto_fix": "auto_fix_enabled",
    "auto_bind": "auto_bind_enabled",
}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="tiktok-ads-fs",
        description="Upload images and videos to the TikTok Ads media library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Credentials are read from TIKTOK_ACCESS_TOKEN / TIKTOK_COOKIE,
TIKTOK_ADVERTISER_ID, TIKTOK_APP_ID, TIKTOK_APP_SECRET, TIKTOK_BASE_URI
and TIKTOK_CACHE_PATH unless given as flags.

Examples:
  # Upload one image with an access token
  TIKTOK_ACCESS_TOKEN=... TIKTOK_ADVERTISER_ID=... tiktok-ads-fs upload banner.png

  # Upload several images through an Ads Manager session
  tiktok-ads-fs --cookie "csrftoken=...; sessionid_ss_ads=..." upload a.jpg b.jpg
        """,
    )

    parser.add_argument("--access-token", default=None, help="Business API access token")
    parser.add_argument("--cookie", default=None, help="Raw Ads Manager Cookie header")
    parser.add_argument("--advertiser-id", default=None, help="Advertiser account id (resolved if omitted)")
    parser.add_argument("--app-id", default=None, help="App id used to resolve the advertiser")
    parser.add_argument("--app-secret", default=None, help="App secret used to resolve the advertiser")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log output format (default: text)",
    )
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload = subparsers.add_parser("upload", help="Upload one or more files")
    upload.add_argument("files", nargs="+", help="Files to upload (several files: images only)")
    upload.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Concurrent requests for multi-file uploads (default: 5)",
    )
    upload.add_argument("--include-file-name", action="store_true", help="Send the file name with the upload")
    upload.add_argument("--third-party", action="store_true", help="Video: mark as third-party content")
    upload.add_argument("--flaw-detect", action="store_true", help="Video: enable flaw detection")
    upload.add_argument("--auto-fix", action="store_true", help="Video: fix detected flaws automatically")
    upload.add_argument("--auto-bind", action="store_true", help="Video: bind the fixed video automatically")

    info = subparsers.add_parser("video-info", help="Show the info record of an uploaded video")
    info.add_argument("video_id", help="Video id returned by an upload")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AdapterConfig:
    """Environment settings overridden by any credential flags given."""
    config = AdapterConfig.from_env()
    for name in ("access_token", "cookie", "advertiser_id", "app_id", "app_secret"):
        value = getattr(args, name, None)
        if value:
            setattr(config, name, value)
    return config


def build_options(args: argparse.Namespace) -> dict[str, Any]:
    options: dict[str, Any] = {flag: bool(getattr(args, attr)) for attr, flag in _VIDEO_FLAGS.items()}
    if args.include_file_name:
        options["include_file_name"] = True
    if args.concurrency:
        options["concurrency"] = args.concurrency
    return options


def _run_upload(adapter: TikTokAdapter, args: argparse.Namespace) -> Any:
    options = build_options(args)
    paths = [Path(f) for f in args.files]
    if len(paths) == 1:
        return adapter.put(paths[0].name, paths[0].read_bytes(), options)
    # Keyed by position so files sharing a base name stay distinct.
    results = adapter.put_many([(p.name, p.read_bytes()) for p in paths], options)
    return {str(paths[index]): value for index, value in results.items()}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    _setup_logging(
        level="DEBUG" if args.verbose else "INFO",
        fmt=args.log_format,
        log_file=args.log_file,
    )

    try:
        with TikTokAdapter(build_config(args)) as adapter:
            if args.command == "upload":
                result = _run_upload(adapter, args)
            else:
                result = adapter.get_video_info(args.video_id)
    except TikTokAdsError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("Could not read file: %s", exc)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
