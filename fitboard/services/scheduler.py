"""
fitboard.services.scheduler — Local-Time Jobs on UTC Cron Triggers
===================================================================

**Why this file exists:**
The community lives in one civil timezone ("8 AM in New York"), but the
trigger expressions run in UTC.  :func:`derive_trigger` converts a local
wall-clock time into a UTC :class:`CronSpec` using the offset in effect on
a given date, and :class:`CheckInScheduler` re-derives every trigger each
night so the jobs follow daylight-saving changes instead of keeping the
offset seen at startup.

Fixed schedule (local time):

========================  =========  ==========  ==================================
Job                       Time       Days        Action
========================  =========  ==========  ==================================
``weekday-prompt``        08:00      Mon–Fri     post the daily check-in thread
``weekend-prompt``        17:00      Sun         post the weekend check-in thread
``weekly-leaderboard``    08:00      Mon         post last week's board, reset
``monthly-leaderboard``   17:00      28th–31st   on the month's last day: post, reset
========================  =========  ==========  ==================================

Each firing starts the job's callback as its own ``asyncio.Task`` and
returns immediately.  A job whose previous run is still going skips the
firing.  Failures are logged in the task's done-callback and never reach
APScheduler or the other jobs; there are no retries.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

JobCallback = Callable[[], Awaitable[None]]

WEEKDAY_NAMES: list[str] = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]

REFRESH_JOB_ID = "refresh-triggers"
REFRESH_LOCAL_TIME = time(3, 0)  # just after the usual 02:00 DST switch

__all__ = [
    "CheckInScheduler",
    "CronSpec",
    "JobState",
    "derive_trigger",
    "is_last_day_of_month",
    "schedule_all",
]


# ---------------------------------------------------------------------------
# Cron spec
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CronSpec:
    """A UTC cron schedule: minute, hour, day-of-month, day-of-week."""

    minute: int
    hour: int
    day_of_week: str = "*"
    day: str = "*"

    @property
    def expression(self) -> str:
        """Five-field crontab form, e.g. ``"0 12 * * mon,tue"``."""
        return f"{self.minute} {self.hour} {self.day} * {self.day_of_week}"

    def to_trigger(self) -> CronTrigger:
        return CronTrigger(
            minute=self.minute,
            hour=self.hour,
            day=self.day,
            day_of_week=self.day_of_week,
            timezone="UTC",
        )


def _weekday_index(token: str) -> int:
    token = token.strip().lower()[:3]
    if token not in WEEKDAY_NAMES:
        raise ValueError(f"Unknown weekday {token!r}; use mon, tue, … sun")
    return WEEKDAY_NAMES.index(token)


def _expand_weekdays(spec: str) -> list[int] | None:
    """``"mon-fri"`` → ``[0, 1, 2, 3, 4]``; ``"*"`` → ``None``.  Ranges may wrap."""
    spec = spec.strip().lower()
    if spec == "*":
        return None
    days: set[int] = set()
    for part in spec.split(","):
        if "-" in part:
            first, last = (_weekday_index(p) for p in part.split("-", 1))
            i = first
            while True:
                days.add(i)
                if i == last:
                    break
                i = (i + 1) % 7
        else:
            days.add(_weekday_index(part))
    return sorted(days)


def _expand_month_days(spec: str) -> list[int] | None:
    spec = spec.strip()
    if spec == "*":
        return None
    days: set[int] = set()
    for part in spec.split(","):
        if "-" in part:
            first, last = (int(p) for p in part.split("-", 1))
            days.update(range(first, last + 1))
        else:
            days.add(int(part))
    if any(d < 1 or d > 31 for d in days):
        raise ValueError(f"Day of month out of range in {spec!r}")
    return sorted(days)


def _shift_month_days(days: list[int], shift: int) -> list[int]:
    """Move day-of-month values by *shift* (±1), widening at month edges.

    Month lengths vary, so the result may include extra days; callbacks
    that care about the exact civil date check it themselves.
    """
    out: set[int] = set()
    for d in days:
        n = d + shift
        if n < 1:
            out.update(range(28, 32))
        elif n > 31:
            out.add(1)
        else:
            out.add(n)
        if shift > 0 and d >= 28:
            out.add(1)
    return sorted(out)


def derive_trigger(
    local_hour: int,
    local_minute: int,
    day_of_week: str,
    civil_timezone: str | tzinfo,
    *,
    day: str = "*",
    on: date | None = None,
) -> CronSpec:
    """Convert a local wall-clock time into a UTC :class:`CronSpec`.

    The UTC offset is the one in effect on *on* (default: today in the
    civil timezone).  When the UTC time falls on a different calendar day
    than the local time, the weekday and day-of-month lists move with it.
    """
    zone = ZoneInfo(civil_timezone) if isinstance(civil_timezone, str) else civil_timezone
    if on is None:
        on = datetime.now(zone).date()

    local = datetime.combine(on, time(local_hour, local_minute), tzinfo=zone)
    utc = local.astimezone(timezone.utc)
    shift = (utc.date() - local.date()).days

    weekdays = _expand_weekdays(day_of_week)
    if weekdays is None:
        dow = "*"
    else:
        dow = ",".join(WEEKDAY_NAMES[d] for d in sorted({(d + shift) % 7 for d in weekdays}))

    month_days = _expand_month_days(day)
    if month_days is None:
        dom = "*"
    else:
        shifted = _shift_month_days(month_days, shift) if shift else month_days
        dom = ",".join(str(d) for d in shifted)

    return CronSpec(minute=utc.minute, hour=utc.hour, day_of_week=dow, day=dom)


def is_last_day_of_month(day: date) -> bool:
    return (day + timedelta(days=1)).day == 1


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------
class JobState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(slots=True)
class _Job:
    job_id: str
    callback: JobCallback
    hour: int
    minute: int
    day_of_week: str
    day: str
    spec: CronSpec | None = None
    task: asyncio.Task | None = None

    @property
    def state(self) -> JobState:
        if self.task is not None and not self.task.done():
            return JobState.RUNNING
        return JobState.IDLE


class CheckInScheduler:
    """Registers local-time jobs and dispatches them as independent tasks.

    Parameters
    ----------
    civil_timezone:
        IANA zone the schedule is expressed in.
    scheduler:
        Optional APScheduler instance (tests pass a mock).
    clock:
        Returns "now" as an aware datetime; defaults to the wall clock.
    """

    def __init__(
        self,
        civil_timezone: str,
        *,
        scheduler: AsyncIOScheduler | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.zone = ZoneInfo(civil_timezone)
        self._scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._jobs: dict[str, _Job] = {}

    # -------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------
    def local_today(self) -> date:
        return self._clock().astimezone(self.zone).date()

    def register(
        self,
        job_id: str,
        callback: JobCallback,
        *,
        hour: int,
        minute: int = 0,
        day_of_week: str = "*",
        day: str = "*",
    ) -> CronSpec:
        job = _Job(job_id, callback, hour, minute, day_of_week, day)
        job.spec = derive_trigger(hour, minute, day_of_week, self.zone, day=day, on=self.local_today())
        self._jobs[job_id] = job
        self._scheduler.add_job(
            self.fire,
            job.spec.to_trigger(),
            args=[job_id],
            id=job_id,
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=300,
        )
        logger.info(
            "Scheduled %s at %02d:%02d %s (%s) → UTC cron '%s'",
            job_id, hour, minute, day_of_week, self.zone.key, job.spec.expression,
        )
        return job.spec

    def state(self, job_id: str) -> JobState:
        return self._jobs[job_id].state

    def spec(self, job_id: str) -> CronSpec | None:
        return self._jobs[job_id].spec

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def start(self) -> None:
        self._scheduler.add_job(
            self._refresh_job,
            CronTrigger(
                hour=REFRESH_LOCAL_TIME.hour,
                minute=REFRESH_LOCAL_TIME.minute,
                timezone=self.zone.key,
            ),
            id=REFRESH_JOB_ID,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Scheduler started with %d jobs (%s)", len(self._jobs), self.zone.key)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        for job in self._jobs.values():
            if job.state is JobState.RUNNING and job.task is not None:
                job.task.cancel()
        logger.info("Scheduler stopped.")

    # -------------------------------------------------------------------
    # DST tracking
    # -------------------------------------------------------------------
    def refresh_triggers(self, on: date | None = None) -> list[str]:
        """Re-derive every trigger for *on*; returns the ids that changed."""
        on = on or self.local_today()
        changed: list[str] = []
        for job in self._jobs.values():
            spec = derive_trigger(job.hour, job.minute, job.day_of_week, self.zone, day=job.day, on=on)
            if spec == job.spec:
                continue
            self._scheduler.reschedule_job(job.job_id, trigger=spec.to_trigger())
            logger.info(
                "Rescheduled %s: UTC cron '%s' → '%s'",
                job.job_id, job.spec.expression if job.spec else "-", spec.expression,
            )
            job.spec = spec
            changed.append(job.job_id)
        return changed

    async def _refresh_job(self) -> None:
        try:
            self.refresh_triggers()
        except Exception:
            logger.exception("Trigger refresh failed", extra={"task": REFRESH_JOB_ID})

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    async def fire(self, job_id: str) -> asyncio.Task | None:
        """Start *job_id*'s callback as a detached task and return it."""
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning("Trigger fired for unknown job %s", job_id)
            return None
        if job.state is JobState.RUNNING:
            logger.warning("Skipping %s: previous run still in progress", job_id)
            return None

        logger.info("Job %s triggered", job_id)
        task = asyncio.create_task(job.callback(), name=f"job-{job_id}")
        job.task = task
        task.add_done_callback(lambda t: self._on_done(job_id, t))
        return task

    @staticmethod
    def _on_done(job_id: str, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.info("Job %s cancelled", job_id)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Job %s failed", job_id, exc_info=exc, extra={"task": job_id})
            return
        logger.info("Job %s finished", job_id)


# ---------------------------------------------------------------------------
# Fixed schedule
# ---------------------------------------------------------------------------
def schedule_all(
    scheduler: CheckInScheduler,
    *,
    post_weekday_prompt: JobCallback,
    post_weekend_prompt: JobCallback,
    post_weekly_leaderboard: JobCallback,
    post_monthly_leaderboard: JobCallback,
) -> None:
    """Register the four recurring jobs."""

    async def _month_end() -> None:
        today = scheduler.local_today()
        if not is_last_day_of_month(today):
            logger.debug("Monthly leaderboard skipped: %s is not the month's last day", today)
            return
        await post_monthly_leaderboard()

    scheduler.register("weekday-prompt", post_weekday_prompt, hour=8, day_of_week="mon-fri")
    scheduler.register("weekend-prompt", post_weekend_prompt, hour=17, day_of_week="sun")
    scheduler.register("weekly-leaderboard", post_weekly_leaderboard, hour=8, day_of_week="mon")
    scheduler.register("monthly-leaderboard", _month_end, hour=17, day="28-31")
