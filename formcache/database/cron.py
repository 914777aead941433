"""Database operations for externally scheduled cache jobs.

The scheduler that actually runs cleanup/snapshot jobs lives outside this
service. It is the only caller of register_cron_job and record_cron_run:
it registers its jobs and reports each run here. The admin surface only
reads them back through get_cron_jobs.
"""

from datetime import datetime
from sqlite3 import Connection

from formcache.core.types import CronJobStatus

from .fixture_cache import format_timestamp, parse_timestamp


def register_cron_job(
    conn: Connection, job_name: str, schedule: str, is_active: bool = True
) -> None:
    """Create or update a job definition. Run history is preserved."""
    conn.execute(
        """
        INSERT INTO cron_jobs (job_name, schedule, is_active)
        VALUES (?, ?, ?)
        ON CONFLICT(job_name) DO UPDATE SET
            schedule = excluded.schedule,
            is_active = excluded.is_active
        """,
        (job_name, schedule, 1 if is_active else 0),
    )


def record_cron_run(
    conn: Connection,
    job_name: str,
    ran_at: datetime,
    next_run: datetime | None = None,
) -> bool:
    """Record a completed run. Returns False if the job is not registered."""
    cursor = conn.execute(
        """
        UPDATE cron_jobs
        SET last_run = ?, next_run = ?, run_count = run_count + 1
        WHERE job_name = ?
        """,
        (
            format_timestamp(ran_at),
            format_timestamp(next_run) if next_run else None,
            job_name,
        ),
    )
    return cursor.rowcount > 0


def get_cron_jobs(conn: Connection) -> list[CronJobStatus]:
    """All registered jobs ordered by name."""
    cursor = conn.execute(
        """
        SELECT job_name, schedule, is_active, last_run, next_run, run_count
        FROM cron_jobs
        ORDER BY job_name
        """
    )
    return [
        CronJobStatus(
            job_name=row["job_name"],
            schedule=row["schedule"],
            is_active=bool(row["is_active"]),
            last_run=parse_timestamp(row["last_run"]),
            next_run=parse_timestamp(row["next_run"]),
            run_count=row["run_count"],
        )
        for row in cursor.fetchall()
    ]
