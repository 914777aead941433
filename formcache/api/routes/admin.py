"""Cache admin API endpoints.

All endpoints require `Authorization: Bearer <CRON_SECRET>`:
- GET /admin/cache - Cache statistics
- POST /admin/cache/cleanup - Delete expired entries
- GET /admin/cache/monitoring - Snapshots for a look-back window (max 168h)
- POST /admin/cache/monitoring - Record a snapshot
- DELETE /admin/cache/monitoring - Prune snapshots older than 30 days
- GET /admin/cache/cron - Externally scheduled job status
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query

from formcache.api.auth import require_admin
from formcache.api.dependencies import get_fixture_cache_service
from formcache.api.models import cron_job_response, snapshot_response, stats_response
from formcache.config import DEFAULT_SNAPSHOT_HOURS
from formcache.services import FixtureCacheService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/cache", dependencies=[Depends(require_admin)])


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


@router.get("")
def get_cache_stats(service: FixtureCacheService = Depends(get_fixture_cache_service)) -> dict:
    """Entry counts for the fixtures cache."""
    return stats_response(service.get_stats()).model_dump(mode="json")


@router.post("/cleanup")
def cleanup_expired(service: FixtureCacheService = Depends(get_fixture_cache_service)) -> dict:
    """Delete every entry past its TTL."""
    deleted = service.cleanup_expired()
    return {
        "message": "Cache cleanup completed",
        "deleted": deleted,
        "timestamp": _timestamp(),
    }


@router.get("/monitoring")
def list_snapshots(
    hours: int = Query(DEFAULT_SNAPSHOT_HOURS, ge=1, description="Hours to look back"),
    service: FixtureCacheService = Depends(get_fixture_cache_service),
) -> dict:
    """Monitoring snapshots, newest first. Windows over 168 hours are clamped."""
    window = service.list_snapshots(hours)
    return {
        "timeRange": f"{window.hours} hours",
        "hours": window.hours,
        "count": len(window.snapshots),
        "snapshots": [
            snapshot_response(s).model_dump(mode="json") for s in window.snapshots
        ],
    }


@router.post("/monitoring")
def record_snapshot(service: FixtureCacheService = Depends(get_fixture_cache_service)) -> dict:
    """Record a snapshot of current cache stats."""
    snapshot = service.record_snapshot()
    return {
        "message": "Cache snapshot recorded",
        "snapshot": snapshot_response(snapshot).model_dump(mode="json"),
        "timestamp": _timestamp(),
    }


@router.delete("/monitoring")
def prune_snapshots(service: FixtureCacheService = Depends(get_fixture_cache_service)) -> dict:
    """Delete snapshots past the retention horizon."""
    deleted = service.prune_snapshots()
    return {
        "message": "Old monitoring data cleaned up",
        "deleted": deleted,
        "timestamp": _timestamp(),
    }


@router.get("/cron")
def get_cron_status(service: FixtureCacheService = Depends(get_fixture_cache_service)) -> dict:
    """Status of externally scheduled cache jobs."""
    jobs = service.get_cron_status()
    return {
        "jobs": [cron_job_response(job).model_dump(mode="json") for job in jobs],
        "count": len(jobs),
        "timestamp": _timestamp(),
    }
