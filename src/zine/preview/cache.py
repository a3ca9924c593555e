"""Process-wide link-preview cache with single-flight fetching.

Lookups for a URL that is already being fetched await the same future instead of
issuing another request. Failed fetches are stored as short-lived negative records.
Records persist between runs in a ``diskcache`` store using JSON serialization.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

import diskcache
from pydantic import ValidationError

from zine.exceptions import PreviewFetchError
from zine.preview.fetcher import PreviewFetcher
from zine.preview.models import PreviewRecord
from zine.preview.urls import normalize_url

if TYPE_CHECKING:
    from zine.config.settings import PreviewSettings

logger = logging.getLogger(__name__)

DISABLED_REASON = "link previews are disabled"
CANCELLED_REASON = "preview fetch was cancelled"


class LinkPreviewCache:
    """Maps normalized URLs to :class:`PreviewRecord` objects."""

    def __init__(
        self,
        fetcher: PreviewFetcher | None = None,
        *,
        cache_dir: Path | None = None,
        success_ttl: float = 7 * 24 * 3600,
        failure_ttl: float = 3600,
        max_concurrency: int = 8,
        enabled: bool = True,
    ) -> None:
        self.fetcher = fetcher
        self.success_ttl = success_ttl
        self.failure_ttl = failure_ttl
        self.enabled = enabled and fetcher is not None
        self.fetch_count = 0

        self._records: dict[str, PreviewRecord] = {}
        self._inflight: dict[str, asyncio.Future[PreviewRecord]] = {}
        self._fetched_this_build: set[str] = set()
        self._dirty: set[str] = set()
        self._semaphore = asyncio.Semaphore(max_concurrency)

        self._disk: diskcache.Cache | None = None
        if cache_dir is not None:
            self._disk = self._open_disk(cache_dir)
            self._load()

    @classmethod
    def from_settings(
        cls, settings: PreviewSettings, cache_dir: Path, *, enabled: bool | None = None
    ) -> LinkPreviewCache:
        active = settings.enabled if enabled is None else enabled
        fetcher = PreviewFetcher(timeout=settings.timeout, user_agent=settings.user_agent) if active else None
        return cls(
            fetcher,
            cache_dir=cache_dir,
            success_ttl=settings.success_ttl,
            failure_ttl=settings.failure_ttl,
            max_concurrency=settings.max_concurrency,
            enabled=active,
        )

    # -- persistence -----------------------------------------------------------------

    @staticmethod
    def _open_disk(cache_dir: Path) -> diskcache.Cache | None:
        try:
            cache_dir.mkdir(parents=True, exist_ok=True)
            return diskcache.Cache(str(cache_dir), disk=diskcache.JSONDisk)
        except (OSError, sqlite3.Error) as exc:
            logger.warning("Preview cache at %s is unavailable, using memory only: %s", cache_dir, exc)
            return None

    def _load(self) -> None:
        if self._disk is None:
            return
        try:
            keys = list(self._disk.iterkeys())
            for key in keys:
                data = self._disk.get(key)
                try:
                    record = PreviewRecord.model_validate(data)
                except ValidationError:
                    logger.debug("Dropping undecodable preview record for %s", key)
                    self._disk.delete(key)
                    continue
                self._records[str(key)] = record
        except (OSError, sqlite3.Error, ValueError) as exc:
            logger.warning("Could not read preview cache, starting empty: %s", exc)
            self._records.clear()
            self._disk = None
            return
        logger.debug("Loaded %d preview record(s) from disk", len(self._records))

    def persist(self) -> None:
        """Write records fetched since the last call to disk."""
        if self._disk is None or not self._dirty:
            return
        try:
            for key in sorted(self._dirty):
                self._disk.set(key, self._records[key].model_dump(mode="json"))
        except (OSError, sqlite3.Error) as exc:
            logger.warning("Could not persist preview cache: %s", exc)
            return
        logger.debug("Persisted %d preview record(s)", len(self._dirty))
        self._dirty.clear()

    async def aclose(self) -> None:
        self.persist()
        if self.fetcher is not None:
            await self.fetcher.aclose()
        if self._disk is not None:
            self._disk.close()

    # -- lookups ---------------------------------------------------------------------

    def begin_build(self) -> None:
        """Start a new build: records fetched earlier become eligible for expiry again."""
        self._fetched_this_build.clear()

    def peek(self, url: str) -> PreviewRecord | None:
        """Return the stored record for ``url`` without any I/O."""
        return self._records.get(normalize_url(url))

    def __len__(self) -> int:
        return len(self._records)

    def _is_fresh(self, key: str, record: PreviewRecord) -> bool:
        if key in self._fetched_this_build:
            return True
        return record.is_live(success_ttl=self.success_ttl, failure_ttl=self.failure_ttl)

    async def lookup(self, url: str) -> PreviewRecord:
        """Return the record for ``url``, fetching it at most once at a time.

        Never raises for fetch problems; failures come back as failure records.
        """
        key = normalize_url(url)
        record = self._records.get(key)
        if record is not None and self._is_fresh(key, record):
            logger.debug("Preview cache hit for %s (%s)", key, record.outcome.value)
            return record

        if not self.enabled:
            return record or PreviewRecord.failure(key, DISABLED_REASON)

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug("Joining in-flight preview fetch for %s", key)
            return await asyncio.shield(pending)

        # The future is always settled, so joined callers never wait forever.
        future: asyncio.Future[PreviewRecord] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            record = await self._fetch(key)
        except asyncio.CancelledError:
            # Joined callers were not cancelled themselves; they get an uncached failure.
            future.set_result(PreviewRecord.failure(key, CANCELLED_REASON))
            raise
        finally:
            self._inflight.pop(key, None)
        future.set_result(record)
        return record

    async def _fetch(self, key: str) -> PreviewRecord:
        if self.fetcher is None:
            raise RuntimeError("LinkPreviewCache has no fetcher")
        logger.debug("Preview cache miss for %s", key)
        async with self._semaphore:
            self.fetch_count += 1
            try:
                metadata = await self.fetcher.fetch(key)
            except PreviewFetchError as exc:
                logger.warning("Link preview failed for %s: %s", key, exc.reason)
                record = PreviewRecord.failure(key, exc.reason)
            except Exception as exc:
                logger.warning("Link preview failed unexpectedly for %s: %r", key, exc)
                record = PreviewRecord.failure(key, str(exc) or type(exc).__name__)
            else:
                record = PreviewRecord.success(key, metadata)

        self._records[key] = record
        self._fetched_this_build.add(key)
        self._dirty.add(key)
        return record
