"""Database operations for cache monitoring snapshots."""

from datetime import datetime
from sqlite3 import Connection, Row

from formcache.core.types import CacheStats, MonitoringSnapshot

from .fixture_cache import format_timestamp, parse_timestamp


def _row_to_snapshot(row: Row) -> MonitoringSnapshot:
    return MonitoringSnapshot(
        id=row["id"],
        snapshot_at=parse_timestamp(row["snapshot_at"]),
        total_entries=row["total_entries"],
        valid_entries=row["valid_entries"],
        expired_entries=row["expired_entries"],
        fixtures_count=row["fixtures_count"],
    )


def insert_snapshot(conn: Connection, stats: CacheStats, snapshot_at: datetime) -> MonitoringSnapshot:
    """Append a snapshot of the given stats."""
    cursor = conn.execute(
        """
        INSERT INTO cache_monitoring
            (snapshot_at, total_entries, valid_entries, expired_entries, fixtures_count)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            format_timestamp(snapshot_at),
            stats.total_entries,
            stats.valid_entries,
            stats.expired_entries,
            stats.fixtures_count,
        ),
    )
    return MonitoringSnapshot(
        id=cursor.lastrowid,
        snapshot_at=snapshot_at,
        total_entries=stats.total_entries,
        valid_entries=stats.valid_entries,
        expired_entries=stats.expired_entries,
        fixtures_count=stats.fixtures_count,
    )


def list_snapshots_since(conn: Connection, since: datetime) -> list[MonitoringSnapshot]:
    """Snapshots taken at or after since, newest first."""
    cursor = conn.execute(
        """
        SELECT id, snapshot_at, total_entries, valid_entries, expired_entries, fixtures_count
        FROM cache_monitoring
        WHERE snapshot_at >= ?
        ORDER BY snapshot_at DESC, id DESC
        """,
        (format_timestamp(since),),
    )
    return [_row_to_snapshot(row) for row in cursor.fetchall()]


def delete_snapshots_before(conn: Connection, cutoff: datetime) -> int:
    """Delete snapshots older than cutoff. Returns rows deleted."""
    cursor = conn.execute(
        "DELETE FROM cache_monitoring WHERE snapshot_at < ?",
        (format_timestamp(cutoff),),
    )
    return cursor.rowcount
