"""API-Football HTTP client.

Handles raw HTTP requests to API-Football endpoints.
No data transformation - just fetch, classify failures, and return JSON.

Unlike a typical scraping client this one raises instead of returning None:
the refresh orchestrator needs to know *why* a team failed (quota vs network
vs bad payload) to count it and to slow down on rate limits.

Configuration via environment variables (see formcache.config):
    API_FOOTBALL_KEY: API key sent as x-apisports-key
    API_FOOTBALL_BASE_URL: Base URL (default: https://v3.football.api-sports.io)
    API_FOOTBALL_TIMEOUT: Request timeout in seconds (default: 10)
"""

import logging
import random
import threading
import time

import httpx

from formcache.config import API_FOOTBALL_BASE_URL, API_FOOTBALL_KEY, API_FOOTBALL_TIMEOUT
from formcache.core.errors import BadResponseError, RateLimitedError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

# Retry backoff for transient network/5xx failures only.
# 429s are never retried here; the orchestrator decides what to do.
RETRY_BASE_DELAY = 0.5
RETRY_MAX_DELAY = 4.0
RETRY_JITTER = 0.3

FIXTURES_ENDPOINT = "/fixtures"
STANDINGS_ENDPOINT = "/standings"


class ApiFootballClient:
    """Low-level API-Football client.

    The underlying httpx.Client is created lazily and shared across threads.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_count: int = 2,
        max_connections: int = 10,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = api_key if api_key is not None else API_FOOTBALL_KEY
        self._base_url = (base_url or API_FOOTBALL_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else API_FOOTBALL_TIMEOUT
        self._retry_count = max(1, retry_count)
        self._max_connections = max_connections
        self._transport = transport
        self._client: httpx.Client | None = None
        self._lock = threading.Lock()

        if not self._api_key:
            logger.warning("[API-FOOTBALL] API_FOOTBALL_KEY not set - requests will fail")

    @property
    def timeout(self) -> float:
        return self._timeout

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = httpx.Client(
                        base_url=self._base_url,
                        timeout=self._timeout,
                        headers={"x-apisports-key": self._api_key or ""},
                        limits=httpx.Limits(
                            max_connections=self._max_connections,
                            max_keepalive_connections=self._max_connections,
                        ),
                        transport=self._transport,
                    )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        with self._lock:
            if self._client:
                self._client.close()
                self._client = None

    def _calculate_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter for transient failures."""
        base_delay = RETRY_BASE_DELAY * (2**attempt)
        capped = min(base_delay, RETRY_MAX_DELAY)
        jitter = capped * RETRY_JITTER * (2 * random.random() - 1)
        return max(0.1, capped + jitter)

    def _request(self, endpoint: str, params: dict) -> dict:
        """Make a GET request and return the decoded API envelope.

        Raises:
            RateLimitedError: HTTP 429 or an API-level rateLimit error
            UpstreamUnavailableError: network failure, timeout, or 5xx
            BadResponseError: non-JSON body, 4xx, or API-level errors
        """
        last_error: Exception | None = None

        for attempt in range(self._retry_count):
            try:
                response = self._get_client().get(endpoint, params=params)
            except httpx.TimeoutException as e:
                logger.warning("[API-FOOTBALL] Timeout for %s %s", endpoint, params)
                last_error = UpstreamUnavailableError(f"Timed out after {self._timeout}s: {e}")
            except (httpx.RequestError, OSError) as e:
                logger.warning("[API-FOOTBALL] Request failed for %s: %s", endpoint, e)
                last_error = UpstreamUnavailableError(f"Request failed: {e}")
            else:
                if response.status_code == 429:
                    retry_after = response.headers.get("Retry-After")
                    try:
                        delay = float(retry_after) if retry_after else None
                    except ValueError:
                        delay = None
                    logger.warning("[API-FOOTBALL] Rate limited (429) for %s", endpoint)
                    raise RateLimitedError("HTTP 429 Too Many Requests", retry_after=delay)

                if response.status_code >= 500:
                    logger.warning(
                        "[API-FOOTBALL] HTTP %d for %s", response.status_code, endpoint
                    )
                    last_error = UpstreamUnavailableError(f"HTTP {response.status_code}")
                elif response.status_code >= 400:
                    raise BadResponseError(f"HTTP {response.status_code}")
                else:
                    logger.debug("[FETCH] %s %s", endpoint, params)
                    return self._decode(response)

            if attempt < self._retry_count - 1:
                time.sleep(self._calculate_delay(attempt))

        raise last_error or UpstreamUnavailableError("Request failed")

    def _decode(self, response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise BadResponseError(f"Response is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise BadResponseError("Response envelope is not an object")

        # API-Football reports quota and parameter problems with HTTP 200
        # and a non-empty "errors" (dict or list)
        errors = data.get("errors")
        if errors:
            if isinstance(errors, dict) and "rateLimit" in errors:
                raise RateLimitedError(str(errors["rateLimit"]))
            if isinstance(errors, dict) and "requests" in errors:
                # Daily quota exhausted
                raise RateLimitedError(str(errors["requests"]))
            raise BadResponseError(f"API errors: {errors}")

        if "response" not in data:
            raise BadResponseError("Response envelope has no 'response' field")
        return data

    def get_team_fixtures(self, team_id: int, league_id: int, season: int, last: int) -> list:
        """Get a team's last N fixtures in a league/season (raw items)."""
        data = self._request(
            FIXTURES_ENDPOINT,
            {"team": team_id, "league": league_id, "season": season, "last": last},
        )
        items = data["response"]
        if not isinstance(items, list):
            raise BadResponseError("Fixtures 'response' is not a list")
        return items

    def get_standings(self, league_id: int, season: int) -> list:
        """Get raw standings response items for a league/season."""
        data = self._request(STANDINGS_ENDPOINT, {"league": league_id, "season": season})
        items = data["response"]
        if not isinstance(items, list):
            raise BadResponseError("Standings 'response' is not a list")
        return items
