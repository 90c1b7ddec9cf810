"""
Daily Trigger
Cron-driven activation of the missed sweep and the end-of-day report
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional
from datetime import datetime, timedelta

from croniter import croniter

from config import settings
from services.errors import NoDataError


logger = logging.getLogger(__name__)


JobAction = Callable[[datetime], Awaitable[Any]]


@dataclass
class ScheduledJob:
    """A named cron expression bound to an async action"""
    name: str
    cron: str
    action: JobAction
    next_fire: Optional[datetime] = None
    last_fired: Optional[datetime] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "cron": self.cron,
            "next_fire": self.next_fire.isoformat() if self.next_fire else None,
            "last_fired": self.last_fired.isoformat() if self.last_fired else None,
            "last_error": self.last_error,
        }


def next_fire(cron: str, now: datetime) -> datetime:
    """First instant strictly after ``now`` matching ``cron``"""
    return croniter(cron, now).get_next(datetime)


class DailyTrigger:
    """
    Thin timer driver. Holds no adherence logic: each job calls an
    idempotent service operation, so firing twice for one day is harmless.

    Fire times are computed from the current time when the trigger starts;
    a restart simply waits for the next fire, there is no catch-up.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        max_sleep_seconds: float = 60.0
    ):
        self.clock = clock or datetime.now
        self.max_sleep_seconds = max_sleep_seconds
        self.jobs: List[ScheduledJob] = []
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    def add_job(self, name: str, cron: str, action: JobAction) -> ScheduledJob:
        if not croniter.is_valid(cron):
            raise ValueError(f"Invalid cron expression for job {name}: {cron!r}")
        job = ScheduledJob(name=name, cron=cron, action=action)
        self.jobs.append(job)
        return job

    def schedule(self, now: Optional[datetime] = None) -> None:
        """(Re)compute every job's next fire time from ``now``"""
        now = now or self.clock()
        for job in self.jobs:
            job.next_fire = next_fire(job.cron, now)
            logger.info(f"Job {job.name} next fires at {job.next_fire}")

    def seconds_until_next(self, now: Optional[datetime] = None) -> Optional[float]:
        now = now or self.clock()
        pending = [job.next_fire for job in self.jobs if job.next_fire is not None]
        if not pending:
            return None
        return max(0.0, (min(pending) - now).total_seconds())

    async def run_pending(self, now: Optional[datetime] = None) -> List[str]:
        """
        Fire every job whose next fire time has passed.

        Each action receives the scheduled fire instant, not the wake-up
        time, so a late wake-up still acts on the intended day.

        Returns:
            Names of the jobs that fired
        """
        now = now or self.clock()
        fired = []
        for job in self.jobs:
            if job.next_fire is None:
                job.next_fire = next_fire(job.cron, now)
                continue
            if job.next_fire > now:
                continue

            fire_time = job.next_fire
            await self._fire(job, fire_time)
            job.next_fire = next_fire(job.cron, now)
            fired.append(job.name)
        return fired

    async def _fire(self, job: ScheduledJob, fire_time: datetime) -> None:
        logger.info(f"Firing job {job.name} scheduled for {fire_time}")
        job.last_fired = fire_time
        try:
            await job.action(fire_time)
            job.last_error = None
        except Exception as e:
            # The trigger must keep running for the next day
            job.last_error = str(e)
            logger.exception(f"Job {job.name} failed for {fire_time}")

    async def run_forever(self) -> None:
        if self._stop_event is None:
            self._stop_event = asyncio.Event()
        self.schedule()
        while not self._stop_event.is_set():
            await self.run_pending()
            delay = self.seconds_until_next()
            if delay is None:
                delay = self.max_sleep_seconds
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=min(delay, self.max_sleep_seconds)
                )
            except asyncio.TimeoutError:
                pass

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run_forever())
        logger.info(f"Daily trigger started with {len(self.jobs)} job(s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Daily trigger stopped")


def build_daily_trigger(
    adherence=None,
    reports=None,
    exporter=None,
    clock: Optional[Callable[[], datetime]] = None
) -> DailyTrigger:
    """
    Trigger with the two daily jobs wired to the services:

    - missed_sweep: finalizes the day the job fires on
    - daily_report: reports on the day that just ended and exports it
    """
    if adherence is None:
        from services.adherence_service import adherence_service as adherence
    if reports is None:
        from services.report_service import report_service as reports
    if exporter is None:
        from tools.report_exporter import report_exporter as exporter

    trigger = DailyTrigger(clock=clock)

    async def missed_sweep(fire_time: datetime):
        return await adherence.run_missed_sweep(target_date=fire_time.date())

    async def daily_report(fire_time: datetime):
        report_date = (fire_time - timedelta(days=1)).date()
        try:
            report = await reports.build_report(target_date=report_date)
        except NoDataError:
            logger.warning(f"No medicines registered, skipping report for {report_date}")
            return None
        return exporter.export(report)

    trigger.add_job("missed_sweep", settings.MISSED_SWEEP_CRON, missed_sweep)
    trigger.add_job("daily_report", settings.DAILY_REPORT_CRON, daily_report)
    return trigger
