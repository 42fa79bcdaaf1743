"""
Cleanup Scheduler Service

Removes staged content that was never published.
Uses APScheduler for interval cleanup job execution.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .staging import StagingArea

logger = logging.getLogger(__name__)

JOB_ID = "cleanup_staged_content"


class CleanupScheduler:
    """
    Interval job deleting expired staging entries.

    An interval of 0 hours disables scheduling; run_cleanup() can still be
    called directly.
    """

    def __init__(self, staging: StagingArea, ttl_hours: float = 24, interval_hours: float = 1):
        self.staging = staging
        self.ttl_hours = ttl_hours
        self.interval_hours = interval_hours
        self.scheduler = AsyncIOScheduler()

    async def run_cleanup(self) -> dict:
        """
        Delete staged entries older than the TTL.

        Returns:
            dict: Summary of cleanup operation with counts
        """
        summary = self.staging.cleanup_expired(self.ttl_hours)
        logger.info(
            f"Cleanup completed: {summary['entries_deleted']} staged entries deleted, "
            f"{summary['errors']} errors"
        )
        return summary

    def start(self) -> None:
        """
        Start the scheduler.

        Safe to call multiple times - will not add duplicate jobs.
        """
        if self.interval_hours <= 0:
            logger.info("Cleanup scheduler disabled (CLEANUP_INTERVAL_HOURS=0)")
            return

        if self.scheduler.running:
            logger.debug("Scheduler already running")
            return

        if not self.scheduler.get_job(JOB_ID):
            self.scheduler.add_job(
                self.run_cleanup,
                "interval",
                hours=self.interval_hours,
                id=JOB_ID,
                name="Cleanup staged content",
                replace_existing=True,
            )
            logger.info(
                f"Scheduled cleanup job: every {self.interval_hours} hour(s), "
                f"TTL: {self.ttl_hours} hours"
            )

        self.scheduler.start()
        logger.info("Cleanup scheduler started")

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Cleanup scheduler stopped")

    def status(self) -> dict:
        """
        Get current scheduler status for health checks.

        Returns:
            dict: Scheduler status including running state and job info
        """
        job = self.scheduler.get_job(JOB_ID)
        return {
            "running": self.scheduler.running,
            "job_scheduled": job is not None,
            "next_run": str(job.next_run_time) if job else None,
            "interval_hours": self.interval_hours,
            "ttl_hours": self.ttl_hours,
        }
