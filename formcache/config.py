"""Runtime configuration.

Configuration via environment variables:
    API_FOOTBALL_KEY: API-Football key (requests fail upstream without it)
    API_FOOTBALL_BASE_URL: Upstream base URL
    API_FOOTBALL_TIMEOUT: Per-request timeout in seconds (default: 10)
    CRON_SECRET: Bearer token for admin and refresh endpoints
    FORMCACHE_DB_PATH: SQLite database path (default: ./formcache.db)
    FIXTURES_CACHE_TTL: Seconds a team's cached fixtures stay fresh (default: 3600)
    REFRESH_MAX_WORKERS: Max concurrent upstream requests per refresh (default: 4)
    REFRESH_MIN_SPACING: Minimum seconds between upstream request starts (default: 2.0)
    REFRESH_LAST_N: Number of recent fixtures fetched per team (default: 10)
    LOG_LEVEL: Root log level (default: INFO)
"""

import os
from dataclasses import dataclass
from pathlib import Path

API_FOOTBALL_KEY = os.environ.get("API_FOOTBALL_KEY")
API_FOOTBALL_BASE_URL = os.environ.get(
    "API_FOOTBALL_BASE_URL", "https://v3.football.api-sports.io"
)
API_FOOTBALL_TIMEOUT = float(os.environ.get("API_FOOTBALL_TIMEOUT", 10.0))

CRON_SECRET = os.environ.get("CRON_SECRET")

FORMCACHE_DB_PATH = Path(os.environ.get("FORMCACHE_DB_PATH", "./formcache.db"))

FIXTURES_CACHE_TTL = int(os.environ.get("FIXTURES_CACHE_TTL", 3600))  # 1 hour
REFRESH_MAX_WORKERS = int(os.environ.get("REFRESH_MAX_WORKERS", 4))
REFRESH_MIN_SPACING = float(os.environ.get("REFRESH_MIN_SPACING", 2.0))
REFRESH_LAST_N = int(os.environ.get("REFRESH_LAST_N", 10))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Monitoring
MAX_SNAPSHOT_HOURS = 168  # 7 days
DEFAULT_SNAPSHOT_HOURS = 24
SNAPSHOT_RETENTION_DAYS = 30


@dataclass
class RefreshSettings:
    """Batch refresh tuning."""

    ttl_seconds: int = FIXTURES_CACHE_TTL
    max_workers: int = REFRESH_MAX_WORKERS
    min_spacing: float = REFRESH_MIN_SPACING
    max_spacing: float = 10.0
    last_n: int = REFRESH_LAST_N
    request_timeout: float = API_FOOTBALL_TIMEOUT


@dataclass
class Settings:
    """All settings for the service."""

    api_football_key: str | None = API_FOOTBALL_KEY
    api_football_base_url: str = API_FOOTBALL_BASE_URL
    cron_secret: str | None = CRON_SECRET
    db_path: Path = FORMCACHE_DB_PATH
    log_level: str = LOG_LEVEL
    refresh: RefreshSettings | None = None

    def __post_init__(self) -> None:
        if self.refresh is None:
            self.refresh = RefreshSettings()


def get_settings() -> Settings:
    """Build settings from the current environment.

    Re-reads os.environ so tests and the API can change values at runtime.
    """
    return Settings(
        api_football_key=os.environ.get("API_FOOTBALL_KEY"),
        api_football_base_url=os.environ.get("API_FOOTBALL_BASE_URL", API_FOOTBALL_BASE_URL),
        cron_secret=os.environ.get("CRON_SECRET"),
        db_path=Path(os.environ.get("FORMCACHE_DB_PATH", str(FORMCACHE_DB_PATH))),
        log_level=os.environ.get("LOG_LEVEL", LOG_LEVEL),
        refresh=RefreshSettings(
            ttl_seconds=int(os.environ.get("FIXTURES_CACHE_TTL", FIXTURES_CACHE_TTL)),
            max_workers=int(os.environ.get("REFRESH_MAX_WORKERS", REFRESH_MAX_WORKERS)),
            min_spacing=float(os.environ.get("REFRESH_MIN_SPACING", REFRESH_MIN_SPACING)),
            last_n=int(os.environ.get("REFRESH_LAST_N", REFRESH_LAST_N)),
            request_timeout=float(os.environ.get("API_FOOTBALL_TIMEOUT", API_FOOTBALL_TIMEOUT)),
        ),
    )
