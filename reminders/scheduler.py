"""Daily reminder job and its cron trigger.

The trigger fires once per day at REMINDER_HOUR:REMINDER_MINUTE in the reminder
timezone. Each fire goes through the run guard; an overlapping fire is dropped.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config.settings import settings
from models.domain import period_for
from ops.metrics import Timer
from reminders.dispatch import BatchDispatcher, BatchSummary
from reminders.resolvers import resolve_due_groups
from reminders.run_guard import RunGuard
from repos.group_repo import GroupRepository
from utils.request_context import clear_run_id, set_run_id

log = logging.getLogger("coachpay.reminders.scheduler")

JOB_ID = "daily_payment_reminders"


def reminder_timezone() -> Optional[tzinfo]:
    # None means the process's local wall clock.
    if settings.REMINDER_TIMEZONE:
        return ZoneInfo(settings.REMINDER_TIMEZONE)
    return None


def local_today() -> date:
    tz = reminder_timezone()
    return datetime.now(tz).date() if tz else date.today()


class ReminderJob:
    def __init__(
        self,
        dispatcher: Optional[BatchDispatcher] = None,
        groups: Optional[GroupRepository] = None,
        guard: Optional[RunGuard] = None,
        clock: Callable[[], date] = local_today,
    ):
        self.dispatcher = dispatcher or BatchDispatcher()
        self.groups = groups or GroupRepository()
        self.guard = guard or RunGuard()
        self.clock = clock

    def run(self, today: Optional[date] = None) -> Optional[BatchSummary]:
        with self.guard.hold() as acquired:
            if not acquired:
                log.info("reminder_run_skipped", extra={"extra": {"event": "reminder_run_skipped", "reason": "already_running"}})
                return None

            run_id = str(uuid.uuid4())
            set_run_id(run_id)
            try:
                return self._run(today or self.clock())
            except Exception as e:
                # Logged, not raised: the scheduler thread must survive and the guard is released by hold().
                log.error(
                    "reminder_run_error",
                    extra={"extra": {"event": "reminder_run_error", "error_type": type(e).__name__, "message": str(e)}},
                    exc_info=True,
                )
                return None
            finally:
                clear_run_id()

    def _run(self, today: date) -> BatchSummary:
        t = Timer()
        period = period_for(today)
        log.info(
            "reminder_run_started",
            extra={"extra": {"event": "reminder_run_started", "day": today.day, "period": period}},
        )

        due = resolve_due_groups(self.groups, today)
        if not due:
            log.info(
                "reminder_run_no_groups",
                extra={"extra": {"event": "reminder_run_no_groups", "day": today.day, "period": period}},
            )
            return BatchSummary()

        summary = self.dispatcher.run_batch(due, period)
        log.info(
            "reminder_run_completed",
            extra={
                "extra": {
                    "event": "reminder_run_completed",
                    "period": period,
                    "groups": len(due),
                    "duration_ms": t.ms(),
                    **summary.to_dict(),
                }
            },
        )
        return summary


class ReminderScheduler:
    """APScheduler wrapper that fires `ReminderJob.run` once a day."""

    def __init__(
        self,
        job: Optional[ReminderJob] = None,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.job = job or ReminderJob()
        self.hour = settings.REMINDER_HOUR if hour is None else hour
        self.minute = settings.REMINDER_MINUTE if minute is None else minute
        self.scheduler = scheduler or BackgroundScheduler(timezone=reminder_timezone())
        self.running = False

    def start(self) -> None:
        if self.running:
            log.warning("reminder_scheduler_already_running")
            return

        self.scheduler.add_job(
            func=self.job.run,
            trigger=CronTrigger(hour=self.hour, minute=self.minute, timezone=reminder_timezone()),
            id=JOB_ID,
            name="Daily payment reminders",
            replace_existing=True,
            coalesce=True,
        )
        self.scheduler.start()
        self.running = True
        log.info(
            "reminder_scheduler_started",
            extra={"extra": {"event": "reminder_scheduler_started", "hour": self.hour, "minute": self.minute}},
        )

    def stop(self) -> None:
        if not self.running:
            return
        self.scheduler.shutdown(wait=True)
        self.running = False
        log.info("reminder_scheduler_stopped")

    def get_status(self) -> Dict[str, Any]:
        job = self.scheduler.get_job(JOB_ID) if self.running else None
        next_run = getattr(job, "next_run_time", None) if job else None
        return {
            "running": self.running,
            "guard": self.job.guard.state.value,
            "next_run_time": next_run.isoformat() if next_run else None,
        }
