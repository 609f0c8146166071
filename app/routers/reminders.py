from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from reminders.on_demand import (
    GroupReminderRequest,
    MemberReminderRequest,
    OnDemandReminders,
    ReminderResponse,
)
from reminders.run_guard import RunState
from reminders.scheduler import ReminderJob

log = logging.getLogger("coachpay.router.reminders")
router = APIRouter()

_service: Optional[OnDemandReminders] = None


def get_on_demand() -> OnDemandReminders:
    global _service
    if _service is None:
        _service = OnDemandReminders()
    return _service


def get_reminder_job(request: Request) -> ReminderJob:
    # The app owns the job so manual runs share the scheduler's run guard.
    return request.app.state.reminder_job


@router.post("/notifications/group-payment-reminders", response_model=ReminderResponse)
def group_payment_reminders(req: GroupReminderRequest, svc: OnDemandReminders = Depends(get_on_demand)):
    return svc.send_group(req)


@router.post("/notifications/payment-reminder", response_model=ReminderResponse)
def payment_reminder(req: MemberReminderRequest, svc: OnDemandReminders = Depends(get_on_demand)):
    return svc.send_member(req)


@router.post("/notifications/run-scheduled")
def run_scheduled(job: ReminderJob = Depends(get_reminder_job)) -> Dict[str, Any]:
    if job.guard.state is RunState.RUNNING:
        return {"success": False, "message": "already_running"}
    summary = job.run()
    if summary is None:
        # Lost the race to the scheduler, or the run failed; both are logged by the job.
        return {"success": False, "message": "run_skipped_or_failed"}
    return {"success": True, **summary.to_dict()}
