"""Service layer."""

from collections.abc import Callable

from formcache.config import Settings, get_settings
from formcache.database import SqliteFixtureStore, make_db_factory
from formcache.providers import ApiFootballClient, ApiFootballFetcher
from formcache.services.fixture_cache import FixtureCacheService, SnapshotWindow


def create_fixture_cache_service(
    db_factory: Callable | None = None,
    settings: Settings | None = None,
) -> FixtureCacheService:
    """Build a FixtureCacheService on SQLite and API-Football.

    Args:
        db_factory: Connection factory; defaults to get_db on settings.db_path
        settings: Settings; defaults to the current environment
    """
    settings = settings or get_settings()
    db_factory = db_factory or make_db_factory(settings.db_path)
    client = ApiFootballClient(
        api_key=settings.api_football_key,
        base_url=settings.api_football_base_url,
        timeout=settings.refresh.request_timeout,
        max_connections=max(settings.refresh.max_workers, 1),
    )
    return FixtureCacheService(
        store=SqliteFixtureStore(db_factory),
        fetcher=ApiFootballFetcher(client),
        settings=settings.refresh,
    )


__all__ = ["FixtureCacheService", "SnapshotWindow", "create_fixture_cache_service"]
