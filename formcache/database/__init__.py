"""Database layer."""

from formcache.database.connection import (
    get_connection,
    get_db,
    init_db,
    make_db_factory,
    reset_db,
)
from formcache.database.cron import get_cron_jobs, record_cron_run, register_cron_job
from formcache.database.fixture_cache import dict_to_fixture, fixture_to_dict
from formcache.database.store import SqliteFixtureStore, clamp_snapshot_hours

__all__ = [
    # Connection
    "get_connection",
    "get_db",
    "init_db",
    "make_db_factory",
    "reset_db",
    # Cron jobs
    "get_cron_jobs",
    "record_cron_run",
    "register_cron_job",
    # Serialization
    "dict_to_fixture",
    "fixture_to_dict",
    # Store
    "SqliteFixtureStore",
    "clamp_snapshot_hours",
]
