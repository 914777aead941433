"""Database operations for the team fixtures cache.

Serializes FixtureRecord lists to JSON for storage in team_fixtures_cache
and reads them back into validated dataclasses.
"""

import json
from datetime import datetime
from sqlite3 import Connection, Row

from formcache.core.types import CacheEntry, CacheStats, FixtureRecord, ensure_utc

# Fixed-width so timestamps compare correctly as strings in SQL
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_timestamp(value: datetime) -> str:
    """Format a datetime as a fixed-width UTC string."""
    return ensure_utc(value).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored timestamp back into an aware UTC datetime."""
    if not value:
        return None
    return ensure_utc(datetime.fromisoformat(value))


def fixture_to_dict(fixture: FixtureRecord) -> dict:
    """Serialize FixtureRecord to dict for JSON storage."""
    return {
        "fixture_id": fixture.fixture_id,
        "date": fixture.date.isoformat(),
        "home_team_id": fixture.home_team_id,
        "away_team_id": fixture.away_team_id,
        "home_score": fixture.home_score,
        "away_score": fixture.away_score,
        "status": fixture.status,
    }


def dict_to_fixture(data: dict) -> FixtureRecord:
    """Deserialize dict to FixtureRecord."""
    return FixtureRecord(
        fixture_id=data["fixture_id"],
        date=datetime.fromisoformat(data["date"]),
        home_team_id=data["home_team_id"],
        away_team_id=data["away_team_id"],
        home_score=data.get("home_score"),
        away_score=data.get("away_score"),
        status=data["status"],
    )


def _row_to_entry(row: Row) -> CacheEntry:
    return CacheEntry(
        team_id=row["team_id"],
        league_id=row["league_id"],
        season=row["season"],
        fixtures=[dict_to_fixture(item) for item in json.loads(row["fixtures"])],
        fetched_at=parse_timestamp(row["fetched_at"]),
        ttl_seconds=row["ttl_seconds"],
    )


def get_cache_entry(
    conn: Connection, team_id: int, league_id: int, season: int
) -> CacheEntry | None:
    """Get the cached entry for a team, fresh or stale."""
    row = conn.execute(
        """
        SELECT team_id, league_id, season, fixtures, fetched_at, ttl_seconds
        FROM team_fixtures_cache
        WHERE team_id = ? AND league_id = ? AND season = ?
        """,
        (team_id, league_id, season),
    ).fetchone()
    return _row_to_entry(row) if row else None


def upsert_cache_entry(conn: Connection, entry: CacheEntry) -> None:
    """Insert or wholesale-replace the entry for (team, league, season)."""
    conn.execute(
        """
        INSERT INTO team_fixtures_cache
            (team_id, league_id, season, fixtures, fixtures_count,
             fetched_at, ttl_seconds, expires_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(team_id, league_id, season) DO UPDATE SET
            fixtures = excluded.fixtures,
            fixtures_count = excluded.fixtures_count,
            fetched_at = excluded.fetched_at,
            ttl_seconds = excluded.ttl_seconds,
            expires_at = excluded.expires_at
        """,
        (
            entry.team_id,
            entry.league_id,
            entry.season,
            json.dumps([fixture_to_dict(f) for f in entry.fixtures]),
            len(entry.fixtures),
            format_timestamp(entry.fetched_at),
            entry.ttl_seconds,
            format_timestamp(entry.expires_at),
        ),
    )


def list_league_entries(conn: Connection, league_id: int, season: int) -> dict[int, CacheEntry]:
    """Get every cached entry for a league/season keyed by team id."""
    cursor = conn.execute(
        """
        SELECT team_id, league_id, season, fixtures, fetched_at, ttl_seconds
        FROM team_fixtures_cache
        WHERE league_id = ? AND season = ?
        ORDER BY team_id
        """,
        (league_id, season),
    )
    return {row["team_id"]: _row_to_entry(row) for row in cursor.fetchall()}


def delete_expired_entries(conn: Connection, now: datetime) -> int:
    """Delete entries whose expires_at is before now.

    Returns:
        Number of rows deleted
    """
    cursor = conn.execute(
        "DELETE FROM team_fixtures_cache WHERE expires_at < ?",
        (format_timestamp(now),),
    )
    return cursor.rowcount


def get_cache_stats(conn: Connection, now: datetime) -> CacheStats:
    """Aggregate counts over team_fixtures_cache."""
    row = conn.execute(
        """
        SELECT
            COUNT(*) AS total_entries,
            COALESCE(SUM(CASE WHEN expires_at < ? THEN 1 ELSE 0 END), 0) AS expired_entries,
            COUNT(DISTINCT team_id) AS teams_count,
            COUNT(DISTINCT league_id || ':' || season) AS leagues_count,
            COALESCE(SUM(fixtures_count), 0) AS fixtures_count,
            MIN(fetched_at) AS oldest_fetched_at,
            MAX(fetched_at) AS newest_fetched_at
        FROM team_fixtures_cache
        """,
        (format_timestamp(now),),
    ).fetchone()

    total = row["total_entries"]
    expired = row["expired_entries"]
    return CacheStats(
        total_entries=total,
        valid_entries=total - expired,
        expired_entries=expired,
        teams_count=row["teams_count"],
        leagues_count=row["leagues_count"],
        fixtures_count=row["fixtures_count"],
        oldest_fetched_at=parse_timestamp(row["oldest_fetched_at"]),
        newest_fetched_at=parse_timestamp(row["newest_fetched_at"]),
    )
