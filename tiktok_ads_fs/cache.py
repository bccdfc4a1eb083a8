"""Key-value cache with per-entry expiry for advertiser ids.

Provides :class:`AdvertiserCache` with two modes:

* **memory** -- in-process ``dict``-based storage.  State is lost when
  the process exits.
* **persistent** -- SQLite-backed storage.  Entries survive across runs
  and are shared by every process pointing at the same file.

Concurrent refreshes of the same key are last-writer-wins.
"""

from __future__ import annotations

import logging
import sqlite3
import tempfile
import time
from pathlib import Path
from typing import Callable

from .constants import CACHE_DIR_NAME, CACHE_FILE_NAME

logger = logging.getLogger(__name__)


def default_cache_path() -> Path:
    """Return the default SQLite file under the system temp directory."""
    return Path(tempfile.gettempdir()) / CACHE_DIR_NAME / CACHE_FILE_NAME


class AdvertiserCache:
    """Cache string values under string keys with a time-to-live.

    Args:
        mode: Either ``"persistent"`` (default) or ``"memory"``.
        db_path: Path to the SQLite file for persistent mode.  Defaults to
            :func:`default_cache_path`.
        clock: Callable returning the current time in seconds.

    Example::

        cache = AdvertiserCache(mode="memory")
        advertiser_id = cache.get_or_compute(key, fetch_advertiser, ttl=86400)
    """

    def __init__(
        self,
        mode: str = "persistent",
        db_path: str | Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if mode not in ("memory", "persistent"):
            raise ValueError(f"Invalid mode: {mode!r}. Expected 'memory' or 'persistent'.")

        self._mode = mode
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._conn: sqlite3.Connection | None = None
        self._db_path: Path | None = None

        if mode == "persistent":
            self._db_path = Path(db_path) if db_path else default_cache_path()
            self._init_db()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> str | None:
        """Return the live value for *key*, or ``None`` if absent or expired."""
        now = self._clock()
        if self._conn is not None:
            row = self._conn.execute(
                "SELECT value, expires_at FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
        else:
            row = self._entries.get(key)
        if row is None:
            return None
        value, expires_at = row
        if expires_at <= now:
            logger.debug("Cache entry %s expired", key)
            self.delete(key)
            return None
        return value

    def set(self, key: str, value: str, ttl: float) -> None:
        """Store *value* under *key* for *ttl* seconds."""
        expires_at = self._clock() + ttl
        if self._conn is not None:
            self._conn.execute(
                "INSERT OR REPLACE INTO cache_entries (key, value, expires_at) VALUES (?, ?, ?)",
                (key, value, expires_at),
            )
            self._conn.commit()
        else:
            self._entries[key] = (value, expires_at)

    def get_or_compute(self, key: str, compute: Callable[[], str], ttl: float) -> str:
        """Return the cached value for *key*, computing and storing it on a miss.

        Empty computed values are returned but never stored, so the next
        call computes again.
        """
        value = self.get(key)
        if value is not None:
            logger.debug("Cache hit for %s", key)
            return value
        logger.debug("Cache miss for %s", key)
        value = compute()
        if value:
            self.set(key, value, ttl)
        return value

    def delete(self, key: str) -> None:
        if self._conn is not None:
            self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            self._conn.commit()
        else:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()
        if self._conn is not None:
            self._conn.execute("DELETE FROM cache_entries")
            self._conn.commit()

    def close(self) -> None:
        """Close the underlying database connection (persistent mode)."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> AdvertiserCache:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        """Create the SQLite database and table if they do not exist."""
        assert self._db_path is not None  # guaranteed by __init__
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS cache_entries ("
            "  key TEXT PRIMARY KEY,"
            "  value TEXT NOT NULL,"
            "  expires_at REAL NOT NULL"
            ")"
        )
        self._conn.commit()
