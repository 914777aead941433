"""Core data types.

Dataclasses shared by the fetcher, the store, and the refresh orchestrator.
Boundary types validate themselves on construction so malformed upstream rows
never reach the cache.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Literal

# Finished-match status codes. API-Football uses FT/AET/PEN; the generic
# values cover fixtures built by hand or by other providers.
FINISHED_STATUSES = frozenset({"FT", "AET", "PEN", "FINISHED", "FINAL"})

FormScope = Literal["home", "away", "all"]
FORM_SCOPES: tuple[str, ...] = ("home", "away", "all")


def ensure_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime (naive values are assumed UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class FixtureRecord:
    """A scheduled or played match between two teams."""

    fixture_id: int
    date: datetime
    home_team_id: int
    away_team_id: int
    home_score: int | None
    away_score: int | None
    status: str

    def __post_init__(self) -> None:
        if not isinstance(self.fixture_id, int) or self.fixture_id <= 0:
            raise ValueError(f"Invalid fixture_id: {self.fixture_id!r}")
        if not isinstance(self.date, datetime):
            raise ValueError(f"Fixture {self.fixture_id} has no valid date")
        if self.home_team_id == self.away_team_id:
            raise ValueError(f"Fixture {self.fixture_id} has the same team on both sides")
        for score in (self.home_score, self.away_score):
            if score is not None and score < 0:
                raise ValueError(f"Fixture {self.fixture_id} has a negative score")
        if not self.status:
            raise ValueError(f"Fixture {self.fixture_id} has no status")
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "date", ensure_utc(self.date))
        object.__setattr__(self, "status", self.status.upper())

    @property
    def is_finished(self) -> bool:
        return (
            self.status in FINISHED_STATUSES
            and self.home_score is not None
            and self.away_score is not None
        )

    def involves(self, team_id: int) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)


@dataclass
class CacheEntry:
    """Cached fixtures for one (team, league, season)."""

    team_id: int
    league_id: int
    season: int
    fixtures: list[FixtureRecord]
    fetched_at: datetime
    ttl_seconds: int

    def __post_init__(self) -> None:
        self.fetched_at = ensure_utc(self.fetched_at)

    @property
    def expires_at(self) -> datetime:
        return self.fetched_at + timedelta(seconds=self.ttl_seconds)

    def is_stale(self, now: datetime | None = None) -> bool:
        """Stale once fetched_at + ttl is strictly in the past."""
        return self.expires_at < (now or utc_now())

    def age_seconds(self, now: datetime | None = None) -> float:
        return ((now or utc_now()) - self.fetched_at).total_seconds()


@dataclass
class RefreshResult:
    """Outcome of one batch refresh."""

    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: dict[int, str] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return self.success + self.failed + self.skipped

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": {str(team_id): reason for team_id, reason in self.errors.items()},
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass
class TeamForm:
    """Form strings for one team, oldest result first."""

    home: str = ""
    away: str = ""
    all: str = ""


@dataclass
class CacheStats:
    """Aggregate counts over the fixtures cache."""

    total_entries: int
    valid_entries: int
    expired_entries: int
    teams_count: int
    leagues_count: int
    fixtures_count: int
    oldest_fetched_at: datetime | None = None
    newest_fetched_at: datetime | None = None


@dataclass
class MonitoringSnapshot:
    """Point-in-time copy of cache stats."""

    id: int
    snapshot_at: datetime
    total_entries: int
    valid_entries: int
    expired_entries: int
    fixtures_count: int


@dataclass
class CronJobStatus:
    """Externally scheduled job as seen by the cache admin surface."""

    job_name: str
    schedule: str
    is_active: bool
    last_run: datetime | None
    next_run: datetime | None
    run_count: int
