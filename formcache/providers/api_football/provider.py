"""API-Football fixture fetcher.

Fetches data from API-Football and normalizes it into FixtureRecord.
Implements the FixtureFetcher interface used by the refresh orchestrator.
"""

import logging

from dateutil import parser

from formcache.core import BadResponseError, FixtureRecord
from formcache.providers.api_football.client import ApiFootballClient

logger = logging.getLogger(__name__)


class ApiFootballFetcher:
    """API-Football implementation of FixtureFetcher."""

    def __init__(self, client: ApiFootballClient | None = None):
        self._client = client or ApiFootballClient()

    @property
    def name(self) -> str:
        return "api-football"

    def close(self) -> None:
        self._client.close()

    def fetch_fixtures_for_team(
        self,
        team_id: int,
        league_id: int,
        season: int,
        last_n: int,
    ) -> list[FixtureRecord]:
        """Get a team's most recent fixtures, ordered oldest first.

        Raises:
            FetchError subclass on any upstream or payload problem. A single
            malformed fixture fails the whole team so a partial list is never
            cached as if it were complete.
        """
        items = self._client.get_team_fixtures(team_id, league_id, season, last_n)
        fixtures = [self._parse_fixture(item) for item in items]
        fixtures.sort(key=lambda f: (f.date, f.fixture_id))
        return fixtures

    def fetch_standings_team_ids(self, league_id: int, season: int) -> list[int]:
        """Get team ids from the first standings table of a league/season."""
        items = self._client.get_standings(league_id, season)
        if not items:
            return []
        try:
            table = items[0]["league"]["standings"][0]
            return [int(row["team"]["id"]) for row in table]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise BadResponseError(f"Malformed standings payload: {e}") from e

    def _parse_fixture(self, item: dict) -> FixtureRecord:
        """Parse one API-Football fixture item."""
        try:
            fixture = item["fixture"]
            teams = item["teams"]
            goals = item.get("goals") or {}
            return FixtureRecord(
                fixture_id=int(fixture["id"]),
                date=parser.parse(fixture["date"]),
                home_team_id=int(teams["home"]["id"]),
                away_team_id=int(teams["away"]["id"]),
                home_score=_optional_int(goals.get("home")),
                away_score=_optional_int(goals.get("away")),
                status=fixture["status"]["short"],
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("[API-FOOTBALL] Malformed fixture item: %s", item)
            raise BadResponseError(f"Malformed fixture payload: {e}") from e


def _optional_int(value) -> int | None:
    return None if value is None else int(value)
