"""Pydantic models for API requests and responses."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from formcache.core import CacheStats, CronJobStatus, MonitoringSnapshot

# Premier League
DEFAULT_LEAGUE_ID = 39


def current_season() -> int:
    return datetime.now(UTC).year


# =============================================================================
# Refresh
# =============================================================================


class RefreshStandingsRequest(BaseModel):
    """Request body for a standings fixtures refresh.

    Accepts the camelCase keys used by existing cron callers.
    """

    model_config = ConfigDict(populate_by_name=True)

    league_id: int = Field(DEFAULT_LEAGUE_ID, alias="leagueId", gt=0)
    season: int = Field(default_factory=current_season)
    team_ids: list[int] | None = Field(None, alias="teamIds")


# =============================================================================
# Admin
# =============================================================================


class CacheStatsResponse(BaseModel):
    """Response body for cache statistics."""

    model_config = ConfigDict(from_attributes=True)

    total_entries: int
    valid_entries: int
    expired_entries: int
    teams_count: int
    leagues_count: int
    fixtures_count: int
    oldest_fetched_at: datetime | None
    newest_fetched_at: datetime | None


class SnapshotResponse(BaseModel):
    """A monitoring snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    snapshot_at: datetime
    total_entries: int
    valid_entries: int
    expired_entries: int
    fixtures_count: int


class CronJobResponse(BaseModel):
    """An externally scheduled cache job."""

    model_config = ConfigDict(from_attributes=True)

    job_name: str
    schedule: str
    is_active: bool
    last_run: datetime | None
    next_run: datetime | None
    run_count: int


def stats_response(stats: CacheStats) -> CacheStatsResponse:
    return CacheStatsResponse.model_validate(stats)


def snapshot_response(snapshot: MonitoringSnapshot) -> SnapshotResponse:
    return SnapshotResponse.model_validate(snapshot)


def cron_job_response(job: CronJobStatus) -> CronJobResponse:
    return CronJobResponse.model_validate(job)
