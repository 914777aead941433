"""Exception hierarchy.

Per-team fetch failures are FetchError subclasses and are absorbed by the
refresh orchestrator. StoreUnavailableError and ValidationError abort a batch.
"""


class FormCacheError(Exception):
    """Base class for all formcache errors."""


class FetchError(FormCacheError):
    """Upstream fixture fetch failed for a single team."""


class UpstreamUnavailableError(FetchError):
    """Network error, timeout, or 5xx from the upstream API."""


class RateLimitedError(FetchError):
    """Upstream quota exhausted (HTTP 429 or API rateLimit error)."""

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class BadResponseError(FetchError):
    """Upstream answered but the payload could not be used."""


class StoreUnavailableError(FormCacheError):
    """The cache store could not be read or written."""


class ValidationError(FormCacheError, ValueError):
    """Invalid league, season, or team ids supplied by the caller."""


class AuthorizationError(FormCacheError):
    """Admin bearer token missing or wrong."""
