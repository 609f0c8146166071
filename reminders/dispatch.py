from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from config.settings import settings
from messaging.sms import SmsGateway
from models.domain import Group, UnpaidMember
from ops.metrics import Timer
from reminders.formatter import compose_reminder
from reminders.resolvers import ResolverError, resolve_unpaid
from repos.billing_repo import BillingRepository
from repos.member_repo import MemberRepository

log = logging.getLogger("coachpay.reminders.dispatch")


@dataclass(frozen=True)
class DispatchOutcome:
    member_id: str
    name: str
    phone: str
    succeeded: bool
    error: Optional[str] = None
    message_id: str = ""

    def to_detail(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"memberName": self.name, "phone": self.phone, "success": self.succeeded}
        if self.error:
            d["error"] = self.error
        return d


@dataclass
class BatchSummary:
    sent: int = 0
    failed: int = 0
    skipped_no_phone: int = 0
    total: int = 0
    failed_groups: int = 0
    outcomes: List[DispatchOutcome] = field(default_factory=list)
    skipped: List[DispatchOutcome] = field(default_factory=list)

    def merge(self, other: "BatchSummary") -> None:
        self.sent += other.sent
        self.failed += other.failed
        self.skipped_no_phone += other.skipped_no_phone
        self.total += other.total
        self.failed_groups += other.failed_groups
        self.outcomes.extend(other.outcomes)
        self.skipped.extend(other.skipped)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sent": self.sent,
            "failed": self.failed,
            "skipped_no_phone": self.skipped_no_phone,
            "total": self.total,
            "failed_groups": self.failed_groups,
        }


Composer = Callable[..., str]


class BatchDispatcher:
    def __init__(
        self,
        gateway: Optional[SmsGateway] = None,
        members: Optional[MemberRepository] = None,
        billing: Optional[BillingRepository] = None,
        max_workers: Optional[int] = None,
        composer: Composer = compose_reminder,
    ):
        self.gateway = gateway or SmsGateway()
        self.members = members or MemberRepository()
        self.billing = billing or BillingRepository()
        self.max_workers = max_workers or settings.REMINDER_MAX_WORKERS
        self.composer = composer

    def run_batch(
        self,
        groups: Sequence[Group],
        period: str,
        custom_message: Optional[str] = None,
    ) -> BatchSummary:
        # Fatal for the whole batch: raises ConfigurationError before any lookup.
        self.gateway.ensure_configured()

        summary = BatchSummary()
        for group in groups:
            try:
                unpaid = resolve_unpaid(group, period, self.members, self.billing)
            except ResolverError as e:
                summary.failed_groups += 1
                log.error(
                    "reminder_group_error",
                    extra={
                        "extra": {
                            "event": "reminder_group_error",
                            "group_id": group.group_id,
                            "group_name": group.name,
                            "period": period,
                            "message": str(e),
                        }
                    },
                    exc_info=True,
                )
                continue

            group_summary = self.dispatch_group(group, unpaid, period, custom_message)
            summary.merge(group_summary)
        return summary

    def dispatch_group(
        self,
        group: Group,
        unpaid: Sequence[UnpaidMember],
        period: str,
        custom_message: Optional[str] = None,
    ) -> BatchSummary:
        t = Timer()
        summary = BatchSummary(total=len(unpaid))

        reachable: List[UnpaidMember] = []
        for u in unpaid:
            if (u.member.phone or "").strip():
                reachable.append(u)
            else:
                summary.skipped.append(
                    DispatchOutcome(u.member.member_id, u.member.full_name, "", False, "no_phone")
                )
        summary.skipped_no_phone = len(summary.skipped)

        if reachable:
            workers = max(1, min(self.max_workers, len(reachable)))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reminder") as pool:
                # Each task runs in a copy of the caller's context so the run id reaches worker logs.
                futures = [
                    pool.submit(contextvars.copy_context().run, self._send_one, group, u, period, custom_message)
                    for u in reachable
                ]
                summary.outcomes = [f.result() for f in futures]

        summary.sent = sum(1 for o in summary.outcomes if o.succeeded)
        summary.failed = len(summary.outcomes) - summary.sent

        log.info(
            "reminder_group_result",
            extra={
                "extra": {
                    "event": "reminder_group_result",
                    "group_id": group.group_id,
                    "group_name": group.name,
                    "period": period,
                    "latency_ms": t.ms(),
                    **summary.to_dict(),
                }
            },
        )
        return summary

    def _send_one(
        self,
        group: Group,
        u: UnpaidMember,
        period: str,
        custom_message: Optional[str],
    ) -> DispatchOutcome:
        m = u.member
        try:
            text = self.composer(
                m,
                u.amount_due,
                u.amount_paid,
                period,
                group.payment_due_day,
                override=custom_message,
            )
            receipt = self.gateway.send(m.phone, text)
            return DispatchOutcome(m.member_id, m.full_name, m.phone, True, message_id=receipt.message_id)
        except Exception as e:
            # Isolated per recipient: recorded, never raised past the join.
            log.warning(
                "reminder_send_failed",
                extra={
                    "extra": {
                        "event": "reminder_send_failed",
                        "group_id": group.group_id,
                        "member_id": m.member_id,
                        "error_type": type(e).__name__,
                        "message": str(e),
                    }
                },
            )
            return DispatchOutcome(m.member_id, m.full_name, m.phone, False, str(e) or type(e).__name__)
