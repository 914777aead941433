"""Team fixtures cache API endpoints.

Provides endpoints for cache refresh and reads:
- POST /cache/refresh-standings - Refresh fixtures for every team in a league
- GET /cache/refresh-standings - Same, with query parameters (cron friendly)
- GET /cache/fixtures/{league_id}/{season} - Cached fixtures per team
- GET /cache/form/{league_id}/{season} - Home/away/overall form per team
- GET /cache/status/{league_id}/{season} - Whether the league cache is stale
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from formcache.api.auth import require_admin
from formcache.api.dependencies import get_fixture_cache_service
from formcache.api.models import DEFAULT_LEAGUE_ID, RefreshStandingsRequest, current_season
from formcache.consumers.cache import validate_league_season
from formcache.core import FetchError
from formcache.database import fixture_to_dict
from formcache.services import FixtureCacheService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache")


def _run_refresh(
    service: FixtureCacheService,
    league_id: int,
    season: int,
    team_ids: list[int] | None,
) -> dict:
    # Checked before the standings request; an explicit empty team list is
    # left for validate_refresh_request to reject
    validate_league_season(league_id, season)

    if team_ids is None:
        try:
            team_ids = service.get_standings_team_ids(league_id, season)
        except FetchError as e:
            logger.error(f"[Cache Refresh] Could not load standings for league {league_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to load standings: {e}",
            ) from e
        if not team_ids:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="No standings found"
            )

    logger.info(
        f"[Cache Refresh] Starting for league {league_id}, season {season}: "
        f"{len(team_ids)} teams"
    )
    result = service.refresh(team_ids, league_id, season)

    return {
        "message": "Cache refresh completed",
        "leagueId": league_id,
        "season": season,
        "teamsProcessed": len(team_ids),
        **result.to_dict(),
    }


@router.post("/refresh-standings", dependencies=[Depends(require_admin)])
def refresh_standings(
    body: RefreshStandingsRequest,
    service: FixtureCacheService = Depends(get_fixture_cache_service),
) -> dict:
    """Refresh cached fixtures for every team in a league.

    Team ids come from the body, or from the league standings when omitted.
    Fresh teams are skipped; per-team failures are counted, not raised.
    """
    return _run_refresh(service, body.league_id, body.season, body.team_ids)


@router.get("/refresh-standings", dependencies=[Depends(require_admin)])
def refresh_standings_get(
    league_id: int = Query(DEFAULT_LEAGUE_ID, alias="leagueId", gt=0),
    season: int | None = Query(None),
    service: FixtureCacheService = Depends(get_fixture_cache_service),
) -> dict:
    """GET variant for schedulers that can only issue GET requests."""
    if season is None:
        season = current_season()
    return _run_refresh(service, league_id, season, None)


@router.get("/fixtures/{league_id}/{season}")
def get_league_fixtures(
    league_id: int,
    season: int,
    service: FixtureCacheService = Depends(get_fixture_cache_service),
) -> dict:
    """Cached fixtures for every team in a league/season (stale included)."""
    fixtures = service.get_all_team_fixtures(league_id, season)
    return {
        "league_id": league_id,
        "season": season,
        "count": len(fixtures),
        "teams": {
            str(team_id): [fixture_to_dict(f) for f in team_fixtures]
            for team_id, team_fixtures in fixtures.items()
        },
    }


@router.get("/form/{league_id}/{season}")
def get_league_form(
    league_id: int,
    season: int,
    service: FixtureCacheService = Depends(get_fixture_cache_service),
) -> dict:
    """Form strings (oldest result first) for every cached team."""
    forms = service.get_league_form(league_id, season)
    return {
        "league_id": league_id,
        "season": season,
        "count": len(forms),
        "teams": {
            str(team_id): {"home": form.home, "away": form.away, "all": form.all}
            for team_id, form in forms.items()
        },
    }


@router.get("/status/{league_id}/{season}")
def get_league_cache_status(
    league_id: int,
    season: int,
    service: FixtureCacheService = Depends(get_fixture_cache_service),
) -> dict:
    """Whether a league/season needs a refresh."""
    return {
        "league_id": league_id,
        "season": season,
        "is_stale": service.is_cache_stale(league_id, season),
    }
