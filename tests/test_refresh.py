"""Tests for the team fixtures refresh orchestrator."""

import threading
from unittest.mock import MagicMock

import pytest

from conftest import FakeFetcher, make_fixture
from formcache.consumers.cache import (
    RATE_LIMIT_STOP_AFTER,
    CacheRefresher,
    RateLimiter,
    refresh_team_fixtures_cache,
    validate_league_season,
)
from formcache.core import (
    BadResponseError,
    RateLimitedError,
    StoreUnavailableError,
    UpstreamUnavailableError,
    ValidationError,
)

LEAGUE = 39
SEASON = 2025


def fixtures_for(team_id: int) -> list:
    return [
        make_fixture(team_id * 100 + 1, home=team_id, away=999, home_score=1, away_score=0, days_ago=7),
        make_fixture(team_id * 100 + 2, home=998, away=team_id, home_score=2, away_score=2, days_ago=3),
    ]


@pytest.fixture
def make_refresher(store, clock, refresh_settings):
    def factory(fetcher, **kwargs):
        return CacheRefresher(fetcher, store, refresh_settings, clock=clock, **kwargs)

    return factory


class TestValidation:
    """Bad input is rejected before the store or fetcher is touched."""

    @pytest.mark.parametrize(
        "team_ids, league_id, season",
        [
            ([], LEAGUE, SEASON),
            ([1, 0], LEAGUE, SEASON),
            ([1, -5], LEAGUE, SEASON),
            (["7"], LEAGUE, SEASON),
            ([1], 0, SEASON),
            ([1], LEAGUE, 1800),
            ([1], LEAGUE, True),
            ("123", LEAGUE, SEASON),
        ],
    )
    def test_rejects_invalid_arguments(self, team_ids, league_id, season, refresh_settings):
        store = MagicMock()
        fetcher = MagicMock()
        refresher = CacheRefresher(fetcher, store, refresh_settings)

        with pytest.raises(ValidationError):
            refresher.refresh_team_fixtures(team_ids, league_id, season)

        store.get.assert_not_called()
        fetcher.fetch_fixtures_for_team.assert_not_called()


class TestRefresh:
    def test_fetches_and_caches_stale_teams(self, make_refresher, store, clock):
        fetcher = FakeFetcher({1: fixtures_for(1), 2: fixtures_for(2)})

        result = make_refresher(fetcher).refresh_team_fixtures([1, 2], LEAGUE, SEASON)

        assert (result.success, result.failed, result.skipped) == (2, 0, 0)
        assert result.errors == {}
        assert sorted(fetcher.called_team_ids) == [1, 2]
        entry = store.get(1, LEAGUE, SEASON)
        assert entry is not None
        assert entry.fixtures == fixtures_for(1)
        assert entry.fetched_at == clock.now
        assert entry.ttl_seconds == 3600

    def test_passes_last_n_to_fetcher(self, make_refresher):
        fetcher = FakeFetcher()
        make_refresher(fetcher).refresh_team_fixtures([5], LEAGUE, SEASON)
        assert fetcher.calls == [(5, LEAGUE, SEASON, 10)]

    def test_second_refresh_is_all_skip(self, make_refresher):
        """Idempotence: an immediate rerun makes no upstream calls."""
        fetcher = FakeFetcher({1: fixtures_for(1), 2: fixtures_for(2), 3: fixtures_for(3)})
        refresher = make_refresher(fetcher)

        refresher.refresh_team_fixtures([1, 2, 3], LEAGUE, SEASON)
        fetcher.calls.clear()
        second = refresher.refresh_team_fixtures([1, 2, 3], LEAGUE, SEASON)

        assert (second.success, second.failed, second.skipped) == (0, 0, 3)
        assert fetcher.calls == []

    def test_fresh_entries_skip_until_ttl_elapses(self, make_refresher, clock):
        fetcher = FakeFetcher({1: fixtures_for(1)})
        refresher = make_refresher(fetcher)
        refresher.refresh_team_fixtures([1], LEAGUE, SEASON)

        # Exactly at expiry the entry is still fresh
        clock.advance(seconds=3600)
        assert refresher.refresh_team_fixtures([1], LEAGUE, SEASON).skipped == 1

        clock.advance(seconds=1)
        result = refresher.refresh_team_fixtures([1], LEAGUE, SEASON)
        assert result.success == 1
        assert fetcher.called_team_ids == [1, 1]

    def test_partial_failure_continues_batch(self, make_refresher, store, clock):
        """Team A fails, team B succeeds; A's existing entry is untouched."""
        seed = FakeFetcher({1: fixtures_for(1)})
        make_refresher(seed).refresh_team_fixtures([1], LEAGUE, SEASON)
        seeded_at = clock.now
        clock.advance(hours=2)

        fetcher = FakeFetcher({1: UpstreamUnavailableError("HTTP 503"), 2: fixtures_for(2)})
        result = make_refresher(fetcher).refresh_team_fixtures([1, 2], LEAGUE, SEASON)

        assert (result.success, result.failed, result.skipped) == (1, 1, 0)
        assert 1 in result.errors
        assert "HTTP 503" in result.errors[1]
        assert store.get(1, LEAGUE, SEASON).fetched_at == seeded_at
        assert store.get(2, LEAGUE, SEASON).fetched_at == clock.now

    def test_failed_team_without_entry_stays_absent(self, make_refresher, store):
        fetcher = FakeFetcher({1: BadResponseError("Malformed fixture payload")})
        result = make_refresher(fetcher).refresh_team_fixtures([1], LEAGUE, SEASON)
        assert result.failed == 1
        assert store.get(1, LEAGUE, SEASON) is None

    def test_unexpected_fetcher_exception_is_per_team(self, make_refresher):
        fetcher = FakeFetcher({1: KeyError("fixture"), 2: fixtures_for(2)})
        result = make_refresher(fetcher).refresh_team_fixtures([1, 2], LEAGUE, SEASON)
        assert (result.success, result.failed) == (1, 1)
        assert result.errors[1].startswith("KeyError")

    def test_rate_limited_counts_failed_and_penalizes(self, store, clock, refresh_settings):
        limiter = MagicMock(spec=RateLimiter)
        limiter.acquire.return_value = True
        fetcher = FakeFetcher({1: RateLimitedError("Too many requests", retry_after=3.0)})
        refresher = CacheRefresher(fetcher, store, refresh_settings, rate_limiter=limiter, clock=clock)

        result = refresher.refresh_team_fixtures([1], LEAGUE, SEASON)

        assert result.failed == 1
        assert result.errors[1].startswith("rate limited")
        limiter.penalize.assert_called_once_with(3.0)
        limiter.reward.assert_not_called()
        # No in-batch retry
        assert fetcher.called_team_ids == [1]

    def test_success_rewards_limiter(self, store, clock, refresh_settings):
        limiter = MagicMock(spec=RateLimiter)
        limiter.acquire.return_value = True
        refresher = CacheRefresher(
            FakeFetcher(), store, refresh_settings, rate_limiter=limiter, clock=clock
        )
        refresher.refresh_team_fixtures([1, 2], LEAGUE, SEASON)
        assert limiter.acquire.call_count == 2
        assert limiter.reward.call_count == 2

    def test_duplicate_team_ids_processed_independently(self, make_refresher):
        fetcher = FakeFetcher({7: fixtures_for(7)})
        result = make_refresher(fetcher).refresh_team_fixtures([7, 7], LEAGUE, SEASON)
        assert result.success == 2
        assert fetcher.called_team_ids == [7, 7]

    def test_mixed_fresh_and_stale(self, make_refresher):
        refresher = make_refresher(FakeFetcher())
        refresher.refresh_team_fixtures([1, 2], LEAGUE, SEASON)

        fetcher = FakeFetcher()
        result = make_refresher(fetcher).refresh_team_fixtures([1, 2, 3, 4], LEAGUE, SEASON)

        assert (result.success, result.skipped) == (2, 2)
        assert sorted(fetcher.called_team_ids) == [3, 4]

    def test_seasons_are_cached_separately(self, make_refresher):
        fetcher = FakeFetcher()
        refresher = make_refresher(fetcher)
        refresher.refresh_team_fixtures([1], LEAGUE, 2024)
        result = refresher.refresh_team_fixtures([1], LEAGUE, 2025)
        assert result.success == 1

    def test_progress_callback_reaches_100(self, make_refresher):
        progress = []
        make_refresher(FakeFetcher()).refresh_team_fixtures(
            [1, 2], LEAGUE, SEASON, progress_callback=lambda msg, pct: progress.append(pct)
        )
        assert progress[-1] == 100
        assert progress == sorted(progress)

    def test_concurrency_never_exceeds_max_workers(self, store, clock, refresh_settings):
        in_flight = 0
        peak = 0
        lock = threading.Lock()

        class SlowFetcher(FakeFetcher):
            def fetch_fixtures_for_team(self, team_id, league_id, season, last_n):
                nonlocal in_flight, peak
                with lock:
                    in_flight += 1
                    peak = max(peak, in_flight)
                threading.Event().wait(0.02)
                with lock:
                    in_flight -= 1
                return []

        refresher = CacheRefresher(SlowFetcher(), store, refresh_settings, clock=clock)
        result = refresher.refresh_team_fixtures(list(range(1, 11)), LEAGUE, SEASON)

        assert result.success == 10
        assert 1 <= peak <= refresh_settings.max_workers

    def test_module_level_helper(self, store, refresh_settings):
        result = refresh_team_fixtures_cache([1], LEAGUE, SEASON, FakeFetcher(), store, refresh_settings)
        assert result.success == 1


class TestFailureModes:
    def test_store_unavailable_on_read_aborts_before_fetch(self, refresh_settings):
        store = MagicMock()
        store.get.side_effect = StoreUnavailableError("database is locked")
        fetcher = FakeFetcher()

        with pytest.raises(StoreUnavailableError):
            CacheRefresher(fetcher, store, refresh_settings).refresh_team_fixtures(
                [1, 2], LEAGUE, SEASON
            )
        assert fetcher.calls == []

    def test_store_unavailable_on_write_aborts_batch(self, refresh_settings):
        store = MagicMock()
        store.get.return_value = None
        store.put.side_effect = StoreUnavailableError("disk I/O error")

        with pytest.raises(StoreUnavailableError):
            CacheRefresher(FakeFetcher(), store, refresh_settings).refresh_team_fixtures(
                [1, 2, 3], LEAGUE, SEASON
            )

    def test_hung_fetch_times_out_without_writing(self, store, clock, refresh_settings):
        release = threading.Event()

        class HangingFetcher(FakeFetcher):
            def fetch_fixtures_for_team(self, team_id, league_id, season, last_n):
                if team_id == 1:
                    release.wait(5)
                return super().fetch_fixtures_for_team(team_id, league_id, season, last_n)

        refresh_settings.request_timeout = 0.1
        refresher = CacheRefresher(HangingFetcher(), store, refresh_settings, clock=clock)
        refresher.DEADLINE_GRACE_SECONDS = 0.2

        try:
            result = refresher.refresh_team_fixtures([1, 2], LEAGUE, SEASON)
            assert result.success == 1
            assert result.failed == 1
            assert result.errors[1] == "timed out"
            assert store.get(1, LEAGUE, SEASON) is None
        finally:
            release.set()

    def test_cancel_event_marks_remaining_failed(self, store, clock, refresh_settings):
        cancel = threading.Event()
        cancel.set()
        fetcher = FakeFetcher()

        result = CacheRefresher(fetcher, store, refresh_settings, clock=clock).refresh_team_fixtures(
            [1, 2], LEAGUE, SEASON, cancel_event=cancel
        )

        assert result.failed == 2
        assert set(result.errors.values()) == {"cancelled"}
        assert fetcher.calls == []


class TestRateLimitCircuit:
    """Consecutive upstream rate limits stop the rest of the batch."""

    @pytest.fixture
    def make_sequential(self, store, clock, refresh_settings):
        refresh_settings.max_workers = 1

        def factory(fetcher, min_spacing=0.0):
            limiter = RateLimiter(min_spacing=min_spacing, max_spacing=1.0)
            return CacheRefresher(
                fetcher, store, refresh_settings, rate_limiter=limiter, clock=clock
            )

        return factory

    def test_stops_after_consecutive_rate_limits(self, make_sequential, store):
        team_ids = [1, 2, 3, 4, 5, 6]
        fetcher = FakeFetcher({t: RateLimitedError("HTTP 429 Too Many Requests") for t in team_ids})

        # Spacing gives the calling thread time to open the circuit before team 4 starts
        result = make_sequential(fetcher, min_spacing=0.2).refresh_team_fixtures(
            team_ids, LEAGUE, SEASON
        )

        assert RATE_LIMIT_STOP_AFTER == 3
        assert fetcher.called_team_ids == [1, 2, 3]
        assert (result.success, result.failed, result.skipped) == (0, 6, 0)
        assert all(result.errors[t].startswith("rate limited") for t in (1, 2, 3))
        assert {result.errors[t] for t in (4, 5, 6)} == {"rate limit circuit open"}
        assert store.list_all(LEAGUE, SEASON) == {}

    def test_success_resets_the_count(self, make_sequential):
        limited = RateLimitedError("HTTP 429 Too Many Requests")
        fetcher = FakeFetcher({1: limited, 2: limited, 3: [], 4: limited, 5: limited})

        result = make_sequential(fetcher).refresh_team_fixtures([1, 2, 3, 4, 5], LEAGUE, SEASON)

        assert fetcher.called_team_ids == [1, 2, 3, 4, 5]
        assert (result.success, result.failed) == (1, 4)
        assert "rate limit circuit open" not in result.errors.values()

    def test_other_failures_do_not_reset_the_count(self, make_sequential):
        limited = RateLimitedError("HTTP 429 Too Many Requests")
        fetcher = FakeFetcher(
            {
                1: limited,
                2: limited,
                3: UpstreamUnavailableError("HTTP 503"),
                4: limited,
                5: [],
                6: [],
            }
        )

        result = make_sequential(fetcher, min_spacing=0.2).refresh_team_fixtures(
            [1, 2, 3, 4, 5, 6], LEAGUE, SEASON
        )

        assert fetcher.called_team_ids == [1, 2, 3, 4]
        assert result.errors[5] == result.errors[6] == "rate limit circuit open"


class TestValidateLeagueSeason:
    @pytest.mark.parametrize("league_id, season", [(0, 2025), (-1, 2025), (39, 1899), (39, 2101), (39, None)])
    def test_rejects(self, league_id, season):
        with pytest.raises(ValidationError):
            validate_league_season(league_id, season)

    def test_accepts(self):
        validate_league_season(39, 2025)
