"""Database connection management.

Simple SQLite connection handling with schema initialization.
"""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from formcache.config import FORMCACHE_DB_PATH

# Default database path
DEFAULT_DB_PATH = FORMCACHE_DB_PATH

# Schema file location
SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Get a database connection.

    Every call opens a new connection, so each refresh worker thread writes
    through its own. The 30s busy timeout lets concurrent upserts queue behind
    one another instead of failing with "database is locked". init_db switches
    the file to WAL, so cache reads do not wait on a refresh in progress.

    Args:
        db_path: Path to database file. Uses DEFAULT_DB_PATH if not specified.

    Returns:
        SQLite connection with row factory set to sqlite3.Row
    """
    path = Path(db_path) if db_path else DEFAULT_DB_PATH
    conn = sqlite3.connect(path, timeout=30.0)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db(db_path: Path | str | None = None) -> Generator[sqlite3.Connection, None, None]:
    """One transaction on a fresh connection.

    Commits when the block exits cleanly. On any exception the transaction is
    rolled back and the exception re-raised; SqliteFixtureStore turns
    sqlite3.Error into StoreUnavailableError, so a failed cache upsert never
    leaves a half-written entry.

    Usage:
        with get_db() as conn:
            entry = get_cache_entry(conn, team_id, league_id, season)
    """
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def make_db_factory(db_path: Path | str | None = None):
    """Return a zero-argument get_db bound to db_path."""

    def factory():
        return get_db(db_path)

    return factory


def init_db(db_path: Path | str | None = None) -> None:
    """Initialize database with schema.

    Creates tables if they don't exist. Safe to call multiple times.
    Enables WAL so cache reads never wait on a refresh in progress.

    Args:
        db_path: Path to database file. Uses DEFAULT_DB_PATH if not specified.
    """
    schema_sql = SCHEMA_PATH.read_text()

    with get_db(db_path) as conn:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.executescript(schema_sql)


def reset_db(db_path: Path | str | None = None) -> None:
    """Reset database - drops all tables and reinitializes.

    WARNING: This deletes all data!

    Args:
        db_path: Path to database file. Uses DEFAULT_DB_PATH if not specified.
    """
    path = Path(db_path) if db_path else DEFAULT_DB_PATH

    # Includes the WAL sidecar files
    for stale in (path, Path(f"{path}-wal"), Path(f"{path}-shm")):
        if stale.exists():
            stale.unlink()

    init_db(path)
