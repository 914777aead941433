"""Shared fixtures: temporary SQLite store, controllable clock, fake fetcher."""

import threading
from datetime import UTC, datetime, timedelta

import pytest

from formcache.config import RefreshSettings
from formcache.core import FixtureRecord, UpstreamUnavailableError
from formcache.database import SqliteFixtureStore, init_db, make_db_factory

START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeFetcher:
    """FixtureFetcher double.

    responses maps team_id -> list of fixtures, or an exception instance to raise.
    Teams not in responses get an empty list.
    """

    def __init__(self, responses: dict | None = None, standings: list[int] | None = None):
        self.responses = responses or {}
        self.standings = standings or []
        self.calls: list[tuple[int, int, int, int]] = []
        self.standings_calls: list[tuple[int, int]] = []
        self._lock = threading.Lock()

    def fetch_fixtures_for_team(self, team_id, league_id, season, last_n):
        with self._lock:
            self.calls.append((team_id, league_id, season, last_n))
        response = self.responses.get(team_id, [])
        if isinstance(response, Exception):
            raise response
        return list(response)

    def fetch_standings_team_ids(self, league_id, season):
        self.standings_calls.append((league_id, season))
        if isinstance(self.standings, Exception):
            raise self.standings
        return list(self.standings)

    @property
    def called_team_ids(self) -> list[int]:
        return [call[0] for call in self.calls]


def make_fixture(
    fixture_id: int,
    home: int,
    away: int,
    home_score: int | None = None,
    away_score: int | None = None,
    status: str = "FT",
    days_ago: int = 0,
) -> FixtureRecord:
    return FixtureRecord(
        fixture_id=fixture_id,
        date=START - timedelta(days=days_ago),
        home_team_id=home,
        away_team_id=away,
        home_score=home_score,
        away_score=away_score,
        status=status,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_factory(tmp_path):
    db_path = tmp_path / "formcache.db"
    init_db(db_path)
    return make_db_factory(db_path)


@pytest.fixture
def store(db_factory, clock):
    return SqliteFixtureStore(db_factory, clock=clock)


@pytest.fixture
def refresh_settings():
    """Fast settings: no spacing between requests."""
    return RefreshSettings(
        ttl_seconds=3600,
        max_workers=3,
        min_spacing=0.0,
        max_spacing=0.0,
        last_n=10,
        request_timeout=1.0,
    )


@pytest.fixture
def unavailable():
    return UpstreamUnavailableError("HTTP 503")
