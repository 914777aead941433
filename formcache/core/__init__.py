"""Core types and interfaces."""

from formcache.core.errors import (
    AuthorizationError,
    BadResponseError,
    FetchError,
    FormCacheError,
    RateLimitedError,
    StoreUnavailableError,
    UpstreamUnavailableError,
    ValidationError,
)
from formcache.core.interfaces import FixtureFetcher, FixtureStore
from formcache.core.types import (
    FINISHED_STATUSES,
    FORM_SCOPES,
    CacheEntry,
    CacheStats,
    CronJobStatus,
    FixtureRecord,
    FormScope,
    MonitoringSnapshot,
    RefreshResult,
    TeamForm,
)

__all__ = [
    # Errors
    "AuthorizationError",
    "BadResponseError",
    "FetchError",
    "FormCacheError",
    "RateLimitedError",
    "StoreUnavailableError",
    "UpstreamUnavailableError",
    "ValidationError",
    # Interfaces
    "FixtureFetcher",
    "FixtureStore",
    # Types
    "FINISHED_STATUSES",
    "FORM_SCOPES",
    "CacheEntry",
    "CacheStats",
    "CronJobStatus",
    "FixtureRecord",
    "FormScope",
    "MonitoringSnapshot",
    "RefreshResult",
    "TeamForm",
]
