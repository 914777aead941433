"""API-Football provider."""

from formcache.providers.api_football.client import ApiFootballClient
from formcache.providers.api_football.provider import ApiFootballFetcher

__all__ = ["ApiFootballClient", "ApiFootballFetcher"]
