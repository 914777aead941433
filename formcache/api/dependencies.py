"""FastAPI dependencies."""

from fastapi import Request

from formcache.services import FixtureCacheService


def get_fixture_cache_service(request: Request) -> FixtureCacheService:
    """The service instance created at application startup."""
    return request.app.state.fixture_cache_service
