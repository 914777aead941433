"""Cache query interface.

Read-only queries against the team fixtures cache. Reads never wait on a
refresh: they return whatever is stored, stale entries included. Callers
that care can compare CacheEntry.fetched_at themselves.
"""

from collections.abc import Callable
from datetime import datetime

from formcache.core import FixtureRecord, FixtureStore, TeamForm
from formcache.core.types import utc_now
from formcache.utilities.form import calculate_team_form


class TeamFixturesCache:
    """Query interface for the team fixtures cache."""

    def __init__(self, store: FixtureStore, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock

    def get_all_team_fixtures(self, league_id: int, season: int) -> dict[int, list[FixtureRecord]]:
        """Get cached fixtures for every team in a league/season.

        Returns:
            Dict of team_id -> fixtures (empty dict when nothing is cached)
        """
        entries = self._store.list_all(league_id, season)
        return {team_id: entry.fixtures for team_id, entry in entries.items()}

    def get_team_fixtures(
        self, team_id: int, league_id: int, season: int
    ) -> list[FixtureRecord] | None:
        """Get cached fixtures for one team, or None if never cached."""
        entry = self._store.get(team_id, league_id, season)
        return entry.fixtures if entry else None

    def is_cache_stale(self, league_id: int, season: int) -> bool:
        """True when a league/season has no entries or any entry has expired."""
        entries = self._store.list_all(league_id, season)
        if not entries:
            return True
        now = self._clock()
        return any(entry.is_stale(now) for entry in entries.values())

    def get_league_form(self, league_id: int, season: int) -> dict[int, TeamForm]:
        """Home/away/overall form for every cached team in a league/season."""
        return {
            team_id: calculate_team_form(fixtures, team_id)
            for team_id, fixtures in self.get_all_team_fixtures(league_id, season).items()
        }


def get_all_team_fixtures_from_cache(
    store: FixtureStore, league_id: int, season: int
) -> dict[int, list[FixtureRecord]]:
    """Get cached fixtures for every team in a league/season."""
    return TeamFixturesCache(store).get_all_team_fixtures(league_id, season)


def get_team_fixtures_from_cache(
    store: FixtureStore, team_id: int, league_id: int, season: int
) -> list[FixtureRecord] | None:
    return TeamFixturesCache(store).get_team_fixtures(team_id, league_id, season)
