"""Upstream fixture providers."""

from formcache.providers.api_football import ApiFootballClient, ApiFootballFetcher

__all__ = ["ApiFootballClient", "ApiFootballFetcher"]
