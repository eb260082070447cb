"""APScheduler-based alert evaluation scheduler.

Runs ``AlertEvaluator.run_once`` on a fixed interval. The evaluator's own
run-in-progress guard and ``max_instances=1`` both keep passes from
overlapping.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import structlog

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.job import Job

from pricedrop.config import settings
from pricedrop.services.alert_evaluator import AlertEvaluator

logger = structlog.get_logger(__name__)

ALERT_JOB_ID = "evaluate_alerts"


class AlertScheduler:
    """Manages the periodic alert evaluation job using APScheduler."""

    def __init__(self, evaluator: AlertEvaluator, interval_minutes: Optional[int] = None):
        """Initialize alert scheduler.

        Args:
            evaluator: Evaluator whose ``run_once`` the job calls
            interval_minutes: Minutes between passes (ALERT_CHECK_INTERVAL_MINUTES by default)
        """
        self.evaluator = evaluator
        self.interval_minutes = interval_minutes or settings.ALERT_CHECK_INTERVAL_MINUTES
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.logger = logger.bind(service="alert_scheduler")

    def start(self, first_run_delay_seconds: int = 60) -> Optional[Job]:
        """Start the scheduler and register the evaluation job.

        Args:
            first_run_delay_seconds: Delay before the first pass after startup

        Returns:
            The APScheduler job, or None if already running
        """
        if self.scheduler.running:
            self.logger.warning("scheduler_already_running")
            return None

        trigger = IntervalTrigger(
            minutes=self.interval_minutes,
            start_date=datetime.now(timezone.utc),
            timezone="UTC",
        )

        job = self.scheduler.add_job(
            func=self._run_evaluation_wrapper,
            trigger=trigger,
            id=ALERT_JOB_ID,
            name="Evaluate price alerts",
            replace_existing=True,
            max_instances=1,  # Prevent overlapping passes
            coalesce=True,  # Collapse missed runs into one
            next_run_time=datetime.now(timezone.utc) + timedelta(seconds=first_run_delay_seconds),
        )
        self.scheduler.start()

        self.logger.info(
            "scheduler_started",
            interval_minutes=self.interval_minutes,
            next_run=job.next_run_time.isoformat() if job.next_run_time else None,
        )
        return job

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running pass."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            self.logger.info("scheduler_stopped")
        else:
            self.logger.warning("scheduler_not_running")

    async def _run_evaluation_wrapper(self) -> None:
        """Entry point APScheduler calls; a failing pass never stops the scheduler."""
        try:
            report = await self.evaluator.run_once()
            if report is None:
                self.logger.info("evaluation_pass_skipped")
        except Exception as e:
            self.logger.error("evaluation_job_failed", error=str(e), exc_info=True)

    def get_jobs_status(self) -> dict:
        """Get status of the evaluation job.

        Returns:
            Dict with job information keyed by job id
        """
        jobs = {}
        job = self.scheduler.get_job(ALERT_JOB_ID)
        if job:
            jobs[ALERT_JOB_ID] = {
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger),
                "evaluation_running": self.evaluator.is_running,
            }
        return jobs

    def is_running(self) -> bool:
        return self.scheduler.running
