"""
Cache Store

Owns the on-disk city cache document:
- load(): lock-free read that never fails (missing/corrupt file -> empty document)
- save(): validate, serialize, take the write lock, atomic write, release
- clear(): delete the backing file
- resolve()/lookup(): resolution plus TTL freshness

Concurrent saves from separate processes serialize on <path>.lock. Loads may
see the document from before or after a concurrent save, never a torn one.
Saves replace the whole document, so callers should load immediately before
building an update (last writer wins).
"""

import json
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from city_cache.atomic_write import write_atomic
from city_cache.errors import CacheIOError, CorruptDocument, LockTimeout
from city_cache.file_lock import file_lock
from city_cache.resolution import find_entry, is_stale
from city_cache.types import CacheDocument, CacheEntry
from common.config import CACHE_FILE_NAME, CACHE_PATH_ENV, CACHE_TTL_DAYS, LOCK_TIMEOUT_SECONDS
from common.logging_config import get_logger
from common.metrics import cache_load_failures, cache_lock_wait, cache_lookups, cache_saves

logger = get_logger("city_cache_store")

CACHE_TTL = timedelta(days=CACHE_TTL_DAYS)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def cache_file_path() -> str:
    """
    Return the cache file path.

    CITY_CACHE_PATH wins if set; otherwise the file lives in the home
    directory, or the current directory when no home can be determined.
    """
    override = os.environ.get(CACHE_PATH_ENV)
    if override:
        return override
    try:
        home = Path.home()
    except (RuntimeError, KeyError):
        return CACHE_FILE_NAME
    return str(home / CACHE_FILE_NAME)


@dataclass
class CacheLookup:
    """A cache hit together with its freshness."""

    entry: CacheEntry
    stale: bool


class CacheStore:
    """File-backed city cache shared by every process using the same path."""

    def __init__(
        self,
        path: str | os.PathLike | None = None,
        ttl: timedelta = CACHE_TTL,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.path = os.fspath(path) if path is not None else cache_file_path()
        self.lock_path = self.path + ".lock"
        self.ttl = ttl
        self.lock_timeout = lock_timeout
        self.clock = clock

    def load(self) -> CacheDocument:
        """Read the cache document. Never raises: failures yield an empty document."""
        try:
            with open(self.path, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            logger.debug(f"No cache file at {self.path}, starting empty")
            return CacheDocument()
        except OSError as e:
            logger.warning(f"Cache file {self.path} is unreadable, starting empty: {e}")
            cache_load_failures.add(1, attributes={"reason": "unreadable"})
            return CacheDocument()

        try:
            doc = CacheDocument.from_dict(json.loads(raw))
        except (ValueError, RecursionError, CorruptDocument) as e:
            logger.warning(f"Cache file {self.path} is corrupt, starting empty: {e}")
            cache_load_failures.add(1, attributes={"reason": "corrupt"})
            return CacheDocument()

        logger.debug(f"Loaded {len(doc)} cache entries from {self.path}")
        return doc

    @staticmethod
    def serialize(doc: CacheDocument) -> bytes:
        """Deterministic UTF-8 JSON encoding of a document."""
        text = json.dumps(doc.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)
        return (text + "\n").encode("utf-8")

    def save(self, doc: CacheDocument, cancel: threading.Event | None = None) -> None:
        """
        Persist the whole document under the write lock.

        Args:
            doc: Document to write; it is not modified
            cancel: Event that aborts waiting for the lock

        Raises:
            CacheInvariantError: If an entry is stored under the wrong key
            LockTimeout: If the lock is not acquired within lock_timeout
            CacheIOError: If the directory or file cannot be written
        """
        doc.validate()
        data = self.serialize(doc)

        directory = os.path.dirname(self.path) or "."
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            cache_saves.add(1, attributes={"outcome": "io_error"})
            raise CacheIOError(f"Failed to create cache directory {directory}: {e}") from e

        start = time.monotonic()
        try:
            with file_lock(self.lock_path, timeout=self.lock_timeout, cancel=cancel):
                cache_lock_wait.record((time.monotonic() - start) * 1000)
                write_atomic(directory, self.path, data)
        except LockTimeout as e:
            logger.warning(f"Cache save aborted: {e}")
            cache_saves.add(1, attributes={"outcome": "lock_timeout"})
            raise
        except CacheIOError:
            cache_saves.add(1, attributes={"outcome": "io_error"})
            raise
        except OSError as e:
            cache_saves.add(1, attributes={"outcome": "io_error"})
            raise CacheIOError(f"Failed to take or release cache lock {self.lock_path}: {e}") from e

        cache_saves.add(1, attributes={"outcome": "ok"})
        logger.info(f"Saved {len(doc)} cache entries to {self.path}")

    def clear(self) -> bool:
        """
        Delete the backing file.

        Returns:
            False if there was no cache file to delete

        Raises:
            CacheIOError: If the file exists but cannot be removed
        """
        try:
            os.remove(self.path)
        except FileNotFoundError:
            logger.info(f"No cache file at {self.path}, nothing to clear")
            return False
        except OSError as e:
            raise CacheIOError(f"Failed to delete cache file {self.path}: {e}") from e
        logger.info(f"Cleared cache file {self.path}")
        return True

    def resolve(self, query: str, doc: CacheDocument | None = None) -> CacheEntry | None:
        """Find the entry for a city name in doc, or in a freshly loaded document."""
        if doc is None:
            doc = self.load()
        return find_entry(doc, query)

    def is_stale(self, entry: CacheEntry, now: datetime | None = None) -> bool:
        return is_stale(entry, now if now is not None else self.clock(), self.ttl)

    def lookup(
        self,
        query: str,
        doc: CacheDocument | None = None,
        now: datetime | None = None,
    ) -> CacheLookup | None:
        """Resolve a city name and report whether the hit is still fresh at `now`."""
        entry = self.resolve(query, doc)
        if entry is None:
            cache_lookups.add(1, attributes={"result": "miss"})
            return None

        stale = self.is_stale(entry, now)
        cache_lookups.add(1, attributes={"result": "stale" if stale else "hit"})
        return CacheLookup(entry=entry, stale=stale)

    def upsert(self, entry: CacheEntry, cancel: threading.Event | None = None) -> CacheDocument:
        """
        Load the current document, replace one entry, and save.

        Returns:
            The document that was written
        """
        doc = self.load()
        doc.upsert(entry)
        self.save(doc, cancel=cancel)
        return doc
