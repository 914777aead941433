"""Team fixtures cache refresh.

Refreshes cached recent fixtures for a batch of teams from the upstream
fetcher, skipping teams whose cache entry is still fresh.
"""

import logging
import math
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime

from formcache.config import RefreshSettings
from formcache.core import (
    CacheEntry,
    FetchError,
    FixtureFetcher,
    FixtureStore,
    RateLimitedError,
    RefreshResult,
    StoreUnavailableError,
    ValidationError,
)
from formcache.core.types import utc_now

from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)

MIN_SEASON = 1900
MAX_SEASON = 2100

# Remaining teams are skipped after this many rate limits in a row
RATE_LIMIT_STOP_AFTER = 3

# Failure reasons recorded in RefreshResult.errors
RATE_LIMITED = "rate limited"
CIRCUIT_OPEN = "rate limit circuit open"
CANCELLED = "cancelled"
TIMED_OUT = "timed out"


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_league_season(league_id: int, season: int) -> None:
    """Reject an invalid league or season before anything is fetched.

    Raises:
        ValidationError: league id is not a positive int, or season is out of range
    """
    if not _is_positive_int(league_id):
        raise ValidationError(f"Invalid league id: {league_id!r}")
    if not _is_positive_int(season) or not MIN_SEASON <= season <= MAX_SEASON:
        raise ValidationError(f"Invalid season: {season!r}")


def validate_refresh_request(team_ids: Sequence[int], league_id: int, season: int) -> None:
    """Reject a refresh request before any work starts.

    Raises:
        ValidationError: empty/invalid team ids, league id, or season
    """
    validate_league_season(league_id, season)
    if isinstance(team_ids, (str, bytes)) or not team_ids:
        raise ValidationError("At least one team id is required")
    invalid = [t for t in team_ids if not _is_positive_int(t)]
    if invalid:
        raise ValidationError(f"Invalid team ids: {invalid!r}")


@dataclass
class _BatchControl:
    """Signals shared between the calling thread and refresh workers.

    stop: no new upstream requests start
    abandoned: finished fetches are discarded instead of written
    circuit_open: upstream kept rate limiting; remaining teams are skipped
    """

    stop: threading.Event = field(default_factory=threading.Event)
    abandoned: threading.Event = field(default_factory=threading.Event)
    circuit_open: threading.Event = field(default_factory=threading.Event)

    def abandon(self) -> None:
        self.abandoned.set()
        self.stop.set()


class CacheRefresher:
    """Refreshes the team fixtures cache from an upstream fetcher.

    Stale teams are fetched on a bounded thread pool. Request starts are
    spaced by a shared RateLimiter. Outcomes are counted only in the calling
    thread as futures complete, so RefreshResult is never shared between
    threads. After RATE_LIMIT_STOP_AFTER consecutive rate limits the rest of
    the batch is skipped and counted failed.
    """

    # Extra seconds allowed on top of the computed batch deadline
    DEADLINE_GRACE_SECONDS = 5.0

    def __init__(
        self,
        fetcher: FixtureFetcher,
        store: FixtureStore,
        settings: RefreshSettings | None = None,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._settings = settings or RefreshSettings()
        self._limiter = rate_limiter or RateLimiter(
            min_spacing=self._settings.min_spacing,
            max_spacing=self._settings.max_spacing,
        )
        self._clock = clock

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    def refresh_team_fixtures(
        self,
        team_ids: Sequence[int],
        league_id: int,
        season: int,
        progress_callback: Callable[[str, int], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RefreshResult:
        """Refresh cached fixtures for a batch of teams.

        Args:
            team_ids: Teams to refresh; duplicates are processed independently
            league_id: Upstream league id
            season: Season year
            progress_callback: Optional callback(message, percent)
            cancel_event: Optional event; once set, teams not yet fetched are
                counted failed and in-flight requests finish on their own

        Returns:
            RefreshResult with success/failed/skipped counts and per-team errors

        Raises:
            ValidationError: invalid arguments (nothing is read or fetched)
            StoreUnavailableError: the store failed; the batch is aborted
        """
        validate_refresh_request(team_ids, league_id, season)

        start_time = time.time()
        result = RefreshResult()

        def report(msg: str, pct: int) -> None:
            logger.debug(f"Fixtures refresh: {msg}")
            if progress_callback:
                progress_callback(msg, pct)

        logger.info(
            f"Fixtures refresh starting: league={league_id} season={season} "
            f"teams={len(team_ids)}"
        )

        # Freshness check reads the store sequentially; a store failure here
        # aborts before any upstream request is made
        now = self._clock()
        stale: list[int] = []
        for team_id in team_ids:
            entry = self._store.get(team_id, league_id, season)
            if entry is not None and not entry.is_stale(now):
                logger.debug(f"Team {team_id} cache is fresh, skipping")
                result.skipped += 1
            else:
                stale.append(team_id)

        report(f"{result.skipped} fresh, {len(stale)} to fetch", 5)

        if stale:
            self._fetch_stale(stale, league_id, season, result, report, cancel_event)

        result.duration_seconds = time.time() - start_time
        report("Fixtures refresh complete", 100)
        logger.info(
            f"Fixtures refresh complete in {result.duration_seconds:.1f}s: "
            f"{result.success} success, {result.failed} failed, {result.skipped} skipped"
        )
        return result

    def _batch_deadline(self, stale_count: int, workers: int) -> float:
        """Upper bound on how long the stale fetches may take in total."""
        settings = self._settings
        spacing_total = stale_count * settings.max_spacing
        fetch_total = math.ceil(stale_count / workers) * settings.request_timeout
        return spacing_total + fetch_total + self.DEADLINE_GRACE_SECONDS

    def _fetch_stale(
        self,
        stale: list[int],
        league_id: int,
        season: int,
        result: RefreshResult,
        report: Callable[[str, int], None],
        cancel_event: threading.Event | None,
    ) -> None:
        workers = max(1, min(self._settings.max_workers, len(stale)))
        control = _BatchControl()
        total = len(stale)
        completed = 0
        consecutive_rate_limits = 0
        handled: set[Future] = set()
        abandoned = False

        def record(team_id: int, error: str | None) -> None:
            nonlocal completed, consecutive_rate_limits
            completed += 1
            if error is None:
                result.success += 1
                consecutive_rate_limits = 0
            else:
                result.failed += 1
                result.errors[team_id] = error
                if error.startswith(RATE_LIMITED):
                    consecutive_rate_limits += 1
                    if consecutive_rate_limits >= RATE_LIMIT_STOP_AFTER:
                        self._open_circuit(control, consecutive_rate_limits)
            report(f"{completed}/{total} teams fetched", 5 + int(completed / total * 90))

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fixtures-refresh")
        try:
            futures = {
                executor.submit(
                    self._refresh_team, team_id, league_id, season, control, cancel_event
                ): team_id
                for team_id in stale
            }

            try:
                for future in as_completed(futures, timeout=self._batch_deadline(total, workers)):
                    handled.add(future)
                    # StoreUnavailableError propagates from here
                    record(futures[future], future.result())
            except TimeoutError:
                abandoned = True
                control.abandon()
                for future, team_id in futures.items():
                    if future in handled:
                        continue
                    if future.done() and not future.cancelled():
                        record(team_id, future.result())
                    else:
                        future.cancel()
                        logger.warning(f"Fixtures refresh for team {team_id} timed out")
                        record(team_id, TIMED_OUT)
        except StoreUnavailableError:
            control.abandon()
            logger.error("Fixture store unavailable, aborting refresh batch")
            raise
        finally:
            # Abandoned workers are left to finish on their own; they will not
            # write because control.abandoned is set
            executor.shutdown(wait=not abandoned, cancel_futures=True)

    def _open_circuit(self, control: _BatchControl, count: int) -> None:
        if control.circuit_open.is_set():
            return
        logger.warning(
            f"{count} consecutive rate limits from upstream, "
            "skipping the rest of the refresh batch"
        )
        control.circuit_open.set()
        control.stop.set()

    def _refresh_team(
        self,
        team_id: int,
        league_id: int,
        season: int,
        control: _BatchControl,
        cancel_event: threading.Event | None,
    ) -> str | None:
        """Fetch and cache one team. Runs on a worker thread.

        Returns:
            None on success, otherwise the failure reason

        Raises:
            StoreUnavailableError: the write failed
        """
        if cancel_event is not None and cancel_event.is_set():
            return CANCELLED
        if control.circuit_open.is_set():
            return CIRCUIT_OPEN
        if not self._limiter.acquire(control.stop):
            return CIRCUIT_OPEN if control.circuit_open.is_set() else CANCELLED
        if cancel_event is not None and cancel_event.is_set():
            return CANCELLED
        if control.circuit_open.is_set():
            return CIRCUIT_OPEN

        try:
            fixtures = self._fetcher.fetch_fixtures_for_team(
                team_id, league_id, season, self._settings.last_n
            )
        except RateLimitedError as e:
            self._limiter.penalize(e.retry_after)
            logger.warning(f"Rate limited fetching fixtures for team {team_id}: {e}")
            return f"{RATE_LIMITED}: {e}"
        except FetchError as e:
            logger.warning(f"Failed to fetch fixtures for team {team_id}: {e}")
            return f"{type(e).__name__}: {e}"
        except Exception as e:
            logger.warning(f"Unexpected error fetching fixtures for team {team_id}: {e}")
            return f"{type(e).__name__}: {e}"

        if control.abandoned.is_set():
            return TIMED_OUT

        self._store.put(
            CacheEntry(
                team_id=team_id,
                league_id=league_id,
                season=season,
                fixtures=fixtures,
                fetched_at=self._clock(),
                ttl_seconds=self._settings.ttl_seconds,
            )
        )
        self._limiter.reward()
        logger.debug(f"Cached {len(fixtures)} fixtures for team {team_id}")
        return None


def refresh_team_fixtures_cache(
    team_ids: Sequence[int],
    league_id: int,
    season: int,
    fetcher: FixtureFetcher,
    store: FixtureStore,
    settings: RefreshSettings | None = None,
) -> RefreshResult:
    """Refresh the fixtures cache for a batch of teams with a fresh refresher."""
    return CacheRefresher(fetcher, store, settings).refresh_team_fixtures(
        team_ids, league_id, season
    )
