"""Collaborator interfaces.

The refresh orchestrator and the admin service depend only on these
protocols. Concrete implementations live in formcache.providers (fetcher)
and formcache.database (store); tests pass their own doubles.
"""

from typing import Protocol, runtime_checkable

from formcache.core.types import (
    CacheEntry,
    CacheStats,
    CronJobStatus,
    FixtureRecord,
    MonitoringSnapshot,
)


@runtime_checkable
class FixtureFetcher(Protocol):
    """Upstream source of recent fixtures for a team.

    Implementations must bound every network call with a timeout and raise
    a formcache.core.errors.FetchError subclass on failure.
    """

    def fetch_fixtures_for_team(
        self,
        team_id: int,
        league_id: int,
        season: int,
        last_n: int,
    ) -> list[FixtureRecord]: ...

    def fetch_standings_team_ids(self, league_id: int, season: int) -> list[int]: ...


@runtime_checkable
class FixtureStore(Protocol):
    """Durable store for cache entries, monitoring snapshots and cron metadata.

    Implementations raise StoreUnavailableError when the backend fails.
    """

    def get(self, team_id: int, league_id: int, season: int) -> CacheEntry | None: ...

    def put(self, entry: CacheEntry) -> None: ...

    def delete_expired(self) -> int: ...

    def list_all(self, league_id: int, season: int) -> dict[int, CacheEntry]: ...

    def get_stats(self) -> CacheStats: ...

    def record_snapshot(self) -> MonitoringSnapshot: ...

    def list_snapshots(self, hours_back: int) -> list[MonitoringSnapshot]: ...

    def prune_snapshots(self) -> int: ...

    def get_cron_status(self) -> list[CronJobStatus]: ...
