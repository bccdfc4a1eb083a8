"""Logging for the TikTok Ads adapter.

Upload code attaches a small set of context fields to its log records
(``extra=log_context(file_name=..., advertiser_id=...)``).  Both output
formats render them: JSON lines carry them under ``"upload"``, text lines
append them as ``key=value`` pairs.

Usage::

    from tiktok_ads_fs.logging_config import setup_logging

    setup_logging(level="INFO")
    setup_logging(level="DEBUG", fmt="json", log_file="/var/log/tiktok-uploads.log")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Record attributes rendered as upload context, in output order.
CONTEXT_FIELDS: tuple[str, ...] = (
    "auth_mode",
    "advertiser_id",
    "file_name",
    "mime_type",
    "video_id",
    "batch_size",
)

_HANDLER_MARKER = "_tiktok_ads_fs"


def log_context(**fields: Any) -> dict[str, Any]:
    """Build an ``extra`` mapping from upload context fields.

    ``None`` values are dropped.

    Raises:
        ValueError: On a name outside :data:`CONTEXT_FIELDS`.
    """
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
    return {name: value for name, value in fields.items() if value is not None}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the upload context fields present on *record*."""
    context: dict[str, Any] = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is None:
            continue
        if not isinstance(value, (str, int, float, bool)):
            value = str(value)
        context[name] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Keys: ``timestamp`` (ISO 8601 UTC), ``level``, ``logger``, ``message``,
    ``upload`` when the record carries context, and ``exception`` when it
    carries exception info.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = record_context(record)
        if context:
            payload["upload"] = context
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable lines with upload context appended as ``key=value``."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{name}={value}" for name, value in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def _build_handlers(log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(path), encoding="utf-8"))
    return handlers


def setup_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_file: str | None = None,
) -> None:
    """Configure the root logger for the CLI.

    Args:
        level: Log level name (``"DEBUG"``, ``"INFO"``, ...).
        fmt: ``"text"`` or ``"json"``.
        log_file: Optional log file, written in addition to stderr.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Leave host-application handlers alone.
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_MARKER, False)]:
        root.removeHandler(handler)
        handler.close()

    formatter = JSONFormatter() if fmt == "json" else TextFormatter()
    for handler in _build_handlers(log_file):
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
        root.addHandler(handler)
