"""Team fixtures cache: refresh orchestration, rate limiting, and reads."""

from .queries import (
    TeamFixturesCache,
    get_all_team_fixtures_from_cache,
    get_team_fixtures_from_cache,
)
from .rate_limit import RateLimiter
from .refresh import (
    RATE_LIMIT_STOP_AFTER,
    CacheRefresher,
    refresh_team_fixtures_cache,
    validate_league_season,
    validate_refresh_request,
)

__all__ = [
    "RATE_LIMIT_STOP_AFTER",
    "CacheRefresher",
    "RateLimiter",
    "TeamFixturesCache",
    "get_all_team_fixtures_from_cache",
    "get_team_fixtures_from_cache",
    "refresh_team_fixtures_cache",
    "validate_league_season",
    "validate_refresh_request",
]
