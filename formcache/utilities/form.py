"""Form calculation.

Single source of truth for turning a list of fixtures into a W/D/L form
string. Pure functions: identical input always gives identical output.

Convention: form strings read oldest -> most recent, left to right, so the
last character is the team's latest result.

process_form_string serves standings display: API-Football standings carry
their own form string, newest result first, which it turns into that
convention. Nothing in the refresh path calls it.
"""

from collections.abc import Iterable

from formcache.core.types import FORM_SCOPES, FixtureRecord, FormScope, TeamForm

# Number of results in a form string
FORM_WINDOW = 5


def _in_scope(fixture: FixtureRecord, team_id: int, scope: FormScope) -> bool:
    if scope == "home":
        return fixture.home_team_id == team_id
    if scope == "away":
        return fixture.away_team_id == team_id
    return fixture.involves(team_id)


def _result_for(fixture: FixtureRecord, team_id: int) -> str:
    if fixture.home_team_id == team_id:
        team_goals, opponent_goals = fixture.home_score, fixture.away_score
    else:
        team_goals, opponent_goals = fixture.away_score, fixture.home_score

    if team_goals > opponent_goals:
        return "W"
    if team_goals < opponent_goals:
        return "L"
    return "D"


def calculate_form_from_fixtures(
    fixtures: Iterable[FixtureRecord],
    team_id: int,
    scope: FormScope = "all",
    window: int = FORM_WINDOW,
) -> str:
    """Calculate a team's form string from its fixtures.

    Only finished fixtures with both scores count. Takes the most recent
    `window` of them (by date, fixture id breaking ties) and returns their
    results oldest first.

    Args:
        fixtures: Fixtures in any order; fixtures not involving team_id are ignored
        team_id: Team whose perspective W/D/L is computed from
        scope: 'home', 'away', or 'all'
        window: Maximum number of results

    Returns:
        Form string such as "WDLWW", or "" when there are no finished fixtures

    Raises:
        ValueError: scope is not one of home/away/all
    """
    if scope not in FORM_SCOPES:
        raise ValueError(f"Invalid form scope: {scope!r}")

    relevant = [f for f in fixtures if f.is_finished and _in_scope(f, team_id, scope)]
    relevant.sort(key=lambda f: (f.date, f.fixture_id))
    recent = relevant[-window:] if window > 0 else []

    return "".join(_result_for(f, team_id) for f in recent)


def calculate_team_form(fixtures: Iterable[FixtureRecord], team_id: int) -> TeamForm:
    """Home, away and overall form for one team."""
    fixtures = list(fixtures)
    return TeamForm(
        home=calculate_form_from_fixtures(fixtures, team_id, "home"),
        away=calculate_form_from_fixtures(fixtures, team_id, "away"),
        all=calculate_form_from_fixtures(fixtures, team_id, "all"),
    )


def process_form_string(form: str | None, window: int = FORM_WINDOW) -> list[str]:
    """Convert an upstream newest-first form string to oldest-first.

    API-Football standings report form newest first ("WDLWW" where the first
    W is the latest match). Reverses it and keeps the last `window` results.

    >>> process_form_string("WWDLWDL")
    ['W', 'L', 'D', 'W', 'W']
    """
    if not form:
        return []
    return list(reversed(form))[-window:]
