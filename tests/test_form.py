"""Tests for form calculation."""

import pytest

from conftest import make_fixture
from formcache.utilities.form import (
    FORM_WINDOW,
    calculate_form_from_fixtures,
    calculate_team_form,
    process_form_string,
)

TEAM = 10


class TestCalculateFormFromFixtures:
    """Filtering, windowing and ordering of form strings."""

    def test_example_excludes_unfinished(self):
        """Scheduled fixture is ignored; remaining results read oldest first."""
        fixtures = [
            make_fixture(1, home=10, away=20, home_score=2, away_score=1, days_ago=10),
            make_fixture(2, home=30, away=10, home_score=0, away_score=0, days_ago=5),
            make_fixture(3, home=10, away=40, home_score=1, away_score=3, status="NS"),
        ]
        assert calculate_form_from_fixtures(fixtures, TEAM, "all") == "WD"

    def test_empty_input_gives_empty_string(self):
        assert calculate_form_from_fixtures([], TEAM, "all") == ""

    def test_missing_score_is_not_finished(self):
        fixtures = [make_fixture(1, home=10, away=20, home_score=1, away_score=None)]
        assert calculate_form_from_fixtures(fixtures, TEAM, "all") == ""

    def test_in_progress_excluded(self):
        fixtures = [make_fixture(1, home=10, away=20, home_score=1, away_score=0, status="2H")]
        assert calculate_form_from_fixtures(fixtures, TEAM, "all") == ""

    def test_extra_time_and_penalties_count_as_finished(self):
        fixtures = [
            make_fixture(1, home=10, away=20, home_score=2, away_score=1, status="AET", days_ago=2),
            make_fixture(2, home=20, away=10, home_score=1, away_score=1, status="PEN", days_ago=1),
        ]
        assert calculate_form_from_fixtures(fixtures, TEAM, "all") == "WD"

    def test_away_fixture_scope_filter(self):
        """An away fixture is excluded from home scope but kept for away and all."""
        fixtures = [make_fixture(1, home=20, away=10, home_score=0, away_score=2)]
        assert calculate_form_from_fixtures(fixtures, TEAM, "home") == ""
        assert calculate_form_from_fixtures(fixtures, TEAM, "away") == "W"
        assert calculate_form_from_fixtures(fixtures, TEAM, "all") == "W"

    def test_results_from_team_perspective(self):
        fixtures = [
            make_fixture(1, home=20, away=10, home_score=3, away_score=1, days_ago=3),
            make_fixture(2, home=10, away=30, home_score=3, away_score=1, days_ago=2),
            make_fixture(3, home=40, away=10, home_score=0, away_score=1, days_ago=1),
        ]
        assert calculate_form_from_fixtures(fixtures, TEAM, "all") == "LWW"

    def test_fixtures_of_other_teams_ignored(self):
        fixtures = [make_fixture(1, home=20, away=30, home_score=3, away_score=1)]
        assert calculate_form_from_fixtures(fixtures, TEAM, "all") == ""

    def test_window_keeps_most_recent_in_chronological_order(self):
        """Seven results: the oldest two drop off, output is oldest -> newest."""
        scores = [(1, 0), (0, 1), (2, 2), (1, 0), (0, 3), (4, 1), (1, 1)]
        fixtures = [
            make_fixture(i + 1, home=10, away=20 + i, home_score=h, away_score=a, days_ago=7 - i)
            for i, (h, a) in enumerate(scores)
        ]
        # Input order should not matter
        fixtures.reverse()
        form = calculate_form_from_fixtures(fixtures, TEAM, "all")
        assert len(form) == FORM_WINDOW
        assert form == "DWLWD"

    def test_deterministic(self):
        fixtures = [
            make_fixture(1, home=10, away=20, home_score=1, away_score=0, days_ago=1),
            make_fixture(2, home=10, away=30, home_score=0, away_score=0, days_ago=1),
        ]
        first = calculate_form_from_fixtures(fixtures, TEAM, "all")
        second = calculate_form_from_fixtures(list(reversed(fixtures)), TEAM, "all")
        assert first == second == "WD"

    def test_invalid_scope_raises(self):
        with pytest.raises(ValueError):
            calculate_form_from_fixtures([], TEAM, "neutral")


class TestCalculateTeamForm:
    def test_home_away_all(self):
        fixtures = [
            make_fixture(1, home=10, away=20, home_score=2, away_score=0, days_ago=3),
            make_fixture(2, home=30, away=10, home_score=2, away_score=0, days_ago=2),
            make_fixture(3, home=10, away=40, home_score=1, away_score=1, days_ago=1),
        ]
        form = calculate_team_form(fixtures, TEAM)
        assert form.home == "WD"
        assert form.away == "L"
        assert form.all == "WLD"


class TestProcessFormString:
    def test_reverses_newest_first(self):
        assert process_form_string("WDLWW") == ["W", "W", "L", "D", "W"]

    def test_keeps_last_five(self):
        assert process_form_string("WWDLWDL") == ["W", "L", "D", "W", "W"]

    def test_empty(self):
        assert process_form_string("") == []
        assert process_form_string(None) == []
