"""SQLite-backed FixtureStore.

Every operation opens its own connection through db_factory, so the store
can be shared by the refresh worker threads without extra locking.
"""

import logging
import sqlite3
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import datetime, timedelta

from formcache.config import MAX_SNAPSHOT_HOURS, SNAPSHOT_RETENTION_DAYS
from formcache.core.errors import StoreUnavailableError
from formcache.core.types import (
    CacheEntry,
    CacheStats,
    CronJobStatus,
    MonitoringSnapshot,
    utc_now,
)

from .connection import get_db
from .cron import get_cron_jobs
from .fixture_cache import (
    delete_expired_entries,
    get_cache_entry,
    get_cache_stats,
    list_league_entries,
    upsert_cache_entry,
)
from .monitoring import delete_snapshots_before, insert_snapshot, list_snapshots_since

logger = logging.getLogger(__name__)


def clamp_snapshot_hours(hours_back: int) -> int:
    """Clamp a look-back window to [1, MAX_SNAPSHOT_HOURS]."""
    return max(1, min(int(hours_back), MAX_SNAPSHOT_HOURS))


class SqliteFixtureStore:
    """FixtureStore implementation on the local SQLite database."""

    def __init__(
        self,
        db_factory: Callable = get_db,
        clock: Callable[[], datetime] = utc_now,
        retention_days: int = SNAPSHOT_RETENTION_DAYS,
    ) -> None:
        self._db = db_factory
        self._clock = clock
        self._retention_days = retention_days

    @contextmanager
    def _connect(self, operation: str) -> Generator[sqlite3.Connection, None, None]:
        try:
            with self._db() as conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Fixture store {operation} failed: {e}")
            raise StoreUnavailableError(f"Fixture store {operation} failed: {e}") from e

    def get(self, team_id: int, league_id: int, season: int) -> CacheEntry | None:
        with self._connect("get") as conn:
            return get_cache_entry(conn, team_id, league_id, season)

    def put(self, entry: CacheEntry) -> None:
        with self._connect("put") as conn:
            upsert_cache_entry(conn, entry)

    def delete_expired(self) -> int:
        with self._connect("delete_expired") as conn:
            deleted = delete_expired_entries(conn, self._clock())
        logger.info(f"Deleted {deleted} expired fixture cache entries")
        return deleted

    def list_all(self, league_id: int, season: int) -> dict[int, CacheEntry]:
        with self._connect("list_all") as conn:
            return list_league_entries(conn, league_id, season)

    def get_stats(self) -> CacheStats:
        with self._connect("get_stats") as conn:
            return get_cache_stats(conn, self._clock())

    def record_snapshot(self) -> MonitoringSnapshot:
        now = self._clock()
        with self._connect("record_snapshot") as conn:
            stats = get_cache_stats(conn, now)
            snapshot = insert_snapshot(conn, stats, now)
        logger.info(
            f"Cache snapshot recorded: {stats.total_entries} total, "
            f"{stats.valid_entries} valid, {stats.expired_entries} expired"
        )
        return snapshot

    def list_snapshots(self, hours_back: int) -> list[MonitoringSnapshot]:
        hours = clamp_snapshot_hours(hours_back)
        since = self._clock() - timedelta(hours=hours)
        with self._connect("list_snapshots") as conn:
            return list_snapshots_since(conn, since)

    def prune_snapshots(self) -> int:
        cutoff = self._clock() - timedelta(days=self._retention_days)
        with self._connect("prune_snapshots") as conn:
            deleted = delete_snapshots_before(conn, cutoff)
        logger.info(f"Cleaned up {deleted} old monitoring snapshots")
        return deleted

    def get_cron_status(self) -> list[CronJobStatus]:
        with self._connect("get_cron_status") as conn:
            return get_cron_jobs(conn)
