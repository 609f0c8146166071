from __future__ import annotations

import logging
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from messaging.sms import ConfigurationError
from models.domain import PaymentStatus, UnpaidMember, is_valid_period, period_for
from reminders.dispatch import BatchDispatcher, BatchSummary
from reminders.formatter import format_period
from reminders.scheduler import local_today
from repos.group_repo import GroupRepository
from repos.member_repo import MemberRepository

log = logging.getLogger("coachpay.reminders.on_demand")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_period(v: str) -> str:
    if not is_valid_period(v):
        raise ValueError("period must be YYYY-MM")
    return v


Period = Annotated[str, AfterValidator(_check_period)]


class GroupReminderRequest(_CamelModel):
    group_id: str = Field(min_length=1)
    period: Period
    custom_message: Optional[str] = None


class MemberReminderRequest(_CamelModel):
    member_id: str = Field(min_length=1)
    period: Optional[Period] = None
    custom_message: Optional[str] = None


class ReminderDetail(_CamelModel):
    member_name: str
    phone: str
    success: bool
    error: Optional[str] = None


class ReminderResponse(_CamelModel):
    success: bool
    sent: int = 0
    failed: int = 0
    skipped_no_phone: int = 0
    total: int = 0
    month: str = ""
    message: Optional[str] = None
    details: List[ReminderDetail] = Field(default_factory=list)


def _response(summary: BatchSummary, month: str, message: Optional[str] = None) -> ReminderResponse:
    details = [ReminderDetail(**o.to_detail()) for o in summary.outcomes + summary.skipped]
    return ReminderResponse(
        success=summary.failed_groups == 0,
        sent=summary.sent,
        failed=summary.failed,
        skipped_no_phone=summary.skipped_no_phone,
        total=summary.total,
        month=month,
        message=message,
        details=details,
    )


class OnDemandReminders:
    """
    "Send now" entry points. They share the batch dispatcher with the daily job but do
    not take the run guard, so a manual send can overlap a scheduled run.
    """

    def __init__(
        self,
        dispatcher: Optional[BatchDispatcher] = None,
        groups: Optional[GroupRepository] = None,
        members: Optional[MemberRepository] = None,
    ):
        self.dispatcher = dispatcher or BatchDispatcher()
        self.groups = groups or GroupRepository()
        self.members = members or self.dispatcher.members

    def _lookup_failed(self, e: Exception, month: str, **ids: str) -> ReminderResponse:
        log.error(
            "on_demand_lookup_failed",
            extra={"extra": {"event": "on_demand_lookup_failed", "error_type": type(e).__name__, **ids}},
            exc_info=True,
        )
        return ReminderResponse(success=False, month=month, message="lookup_failed")

    def send_group(self, req: GroupReminderRequest) -> ReminderResponse:
        month = format_period(req.period)
        try:
            group = self.groups.get(req.group_id)
        except Exception as e:
            return self._lookup_failed(e, month, group_id=req.group_id)
        if group is None:
            return ReminderResponse(success=False, month=month, message="group_not_found")

        try:
            summary = self.dispatcher.run_batch([group], req.period, custom_message=req.custom_message)
        except ConfigurationError as e:
            log.error("on_demand_config_error", extra={"extra": {"event": "on_demand_config_error", "message": str(e)}})
            return ReminderResponse(success=False, month=month, message=str(e))

        message = None
        if summary.failed_groups:
            message = "lookup_failed"
        elif summary.total == 0:
            message = "No unpaid members for this period"

        log.info(
            "on_demand_group_result",
            extra={"extra": {"event": "on_demand_group_result", "group_id": group.group_id, "period": req.period, **summary.to_dict()}},
        )
        return _response(summary, month, message)

    def send_member(self, req: MemberReminderRequest) -> ReminderResponse:
        period = req.period or period_for(local_today())
        month = format_period(period)

        try:
            self.dispatcher.gateway.ensure_configured()
        except ConfigurationError as e:
            return ReminderResponse(success=False, month=month, message=str(e))

        try:
            member = self.members.get(req.member_id)
            group = self.groups.get(member.group_id) if member else None
            record = self.dispatcher.billing.get(member.member_id, period) if member else None
        except Exception as e:
            return self._lookup_failed(e, month, member_id=req.member_id)
        if member is None:
            return ReminderResponse(success=False, month=month, message="member_not_found")
        if group is None:
            return ReminderResponse(success=False, month=month, message="group_not_found")

        candidate = UnpaidMember(member=member, record=record)
        if candidate.status is PaymentStatus.PAID:
            return ReminderResponse(success=True, month=month, message="Member has paid for this period")

        summary = self.dispatcher.dispatch_group(group, [candidate], period, custom_message=req.custom_message)
        return _response(summary, month)
