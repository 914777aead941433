"""Fixture cache service.

Facade over the refresher, the cache queries and the admin operations,
wired to one store and one fetcher. API routes use this instead of touching
the store directly.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from formcache.config import DEFAULT_SNAPSHOT_HOURS, RefreshSettings
from formcache.consumers.cache import CacheRefresher, TeamFixturesCache
from formcache.core import (
    CacheStats,
    CronJobStatus,
    FixtureFetcher,
    FixtureRecord,
    FixtureStore,
    MonitoringSnapshot,
    RefreshResult,
    TeamForm,
)
from formcache.core.types import utc_now
from formcache.database.store import clamp_snapshot_hours

logger = logging.getLogger(__name__)


@dataclass
class SnapshotWindow:
    """Snapshots returned for a (clamped) look-back window."""

    hours: int
    snapshots: list[MonitoringSnapshot]


class FixtureCacheService:
    """All team fixtures cache operations behind one object."""

    def __init__(
        self,
        store: FixtureStore,
        fetcher: FixtureFetcher,
        settings: RefreshSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._refresher = CacheRefresher(fetcher, store, settings, clock=clock)
        self._queries = TeamFixturesCache(store, clock)

    # Refresh

    def refresh(
        self,
        team_ids: Sequence[int],
        league_id: int,
        season: int,
        progress_callback: Callable[[str, int], None] | None = None,
    ) -> RefreshResult:
        return self._refresher.refresh_team_fixtures(
            team_ids, league_id, season, progress_callback=progress_callback
        )

    def get_standings_team_ids(self, league_id: int, season: int) -> list[int]:
        """Resolve the teams in a league from its standings table."""
        return self._fetcher.fetch_standings_team_ids(league_id, season)

    # Reads

    def get_all_team_fixtures(self, league_id: int, season: int) -> dict[int, list[FixtureRecord]]:
        return self._queries.get_all_team_fixtures(league_id, season)

    def get_league_form(self, league_id: int, season: int) -> dict[int, TeamForm]:
        return self._queries.get_league_form(league_id, season)

    def is_cache_stale(self, league_id: int, season: int) -> bool:
        return self._queries.is_cache_stale(league_id, season)

    # Admin

    def get_stats(self) -> CacheStats:
        return self._store.get_stats()

    def cleanup_expired(self) -> int:
        return self._store.delete_expired()

    def record_snapshot(self) -> MonitoringSnapshot:
        return self._store.record_snapshot()

    def list_snapshots(self, hours: int | None = None) -> SnapshotWindow:
        """List snapshots for a look-back window clamped to the maximum."""
        requested = DEFAULT_SNAPSHOT_HOURS if hours is None else hours
        clamped = clamp_snapshot_hours(requested)
        if clamped != requested:
            logger.debug(f"Snapshot window {requested}h clamped to {clamped}h")
        return SnapshotWindow(hours=clamped, snapshots=self._store.list_snapshots(clamped))

    def prune_snapshots(self) -> int:
        return self._store.prune_snapshots()

    def get_cron_status(self) -> list[CronJobStatus]:
        return self._store.get_cron_status()

    def close(self) -> None:
        """Release upstream connections held by the fetcher."""
        close = getattr(self._fetcher, "close", None)
        if close:
            close()
