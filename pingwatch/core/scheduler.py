"""Periodic probe-all runs using APScheduler."""

from typing import Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from pingwatch.core.engine import MonitorEngine
from pingwatch.models.probe_result import ProbeResult
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)

JOB_ID = "probe_all"


class MonitoringScheduler:
    """
    Runs ``engine.probe_all()`` on a fixed interval and saves the state.

    Only one run is in flight at a time; missed runs are coalesced.
    """

    def __init__(
        self,
        engine: MonitorEngine,
        interval_seconds: int = 60,
        scheduler: Optional[AsyncIOScheduler] = None
    ):
        """
        Initialize monitoring scheduler.

        Args:
            engine: Engine to drive
            interval_seconds: Seconds between runs
            scheduler: APScheduler instance (a new one when None)
        """
        if interval_seconds < 1:
            raise ValueError("interval_seconds must be at least 1")

        self.engine = engine
        self.interval_seconds = interval_seconds
        self.scheduler = scheduler or AsyncIOScheduler()
        self.runs = 0

        logger.info(
            "Monitoring scheduler initialized",
            extra={"interval_seconds": interval_seconds}
        )

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def start(self) -> None:
        """Add the probe job and start the scheduler. Must run inside an event loop."""
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            name="Probe all endpoints",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info("Monitoring scheduler started")

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running job."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Monitoring scheduler stopped")

    async def run_once(self) -> List[ProbeResult]:
        """
        Probe all endpoints and persist the result.

        Failures are logged and swallowed so the job keeps its schedule.
        The run is skipped when another probe-all (e.g. one started through
        the API) is still in flight.
        """
        if self.engine.is_probing:
            logger.info(
                "Skipping scheduled run, a probe run is already in progress",
                extra={"run": self.runs}
            )
            return []

        self.runs += 1
        try:
            results = await self.engine.probe_all()
            await self.engine.save()
        except Exception as e:
            logger.exception(
                "Scheduled probe run failed",
                extra={"run": self.runs, "error": str(e)}
            )
            return []

        logger.info(
            "Scheduled probe run finished",
            extra={"run": self.runs, "results": len(results), "last_error": self.engine.last_error}
        )
        return results

    def get_job_status(self) -> Optional[Dict]:
        """
        Status of the probe job.

        Returns:
            dict: Job status information or None if not scheduled
        """
        job = self.scheduler.get_job(JOB_ID)
        if not job:
            return None

        next_run_time = getattr(job, "next_run_time", None)
        return {
            "job_id": job.id,
            "name": job.name,
            "next_run_time": next_run_time.isoformat() if next_run_time else None,
            "trigger": str(job.trigger),
            "runs": self.runs,
        }
