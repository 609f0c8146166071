from __future__ import annotations

import logging
from datetime import date
from typing import List

from models.domain import Group, PaymentStatus, UnpaidMember
from repos.billing_repo import BillingRepository
from repos.group_repo import GroupRepository
from repos.member_repo import MemberRepository

log = logging.getLogger("coachpay.reminders.resolvers")


class ResolverError(Exception):
    pass


def resolve_due_groups(groups: GroupRepository, today: date) -> List[Group]:
    # A due day of 31 never matches a 30-day month; that is accepted behavior.
    try:
        return groups.list_by_due_day(today.day)
    except Exception as e:
        raise ResolverError(f"due_groups_lookup_failed:{type(e).__name__}") from e


def resolve_unpaid(
    group: Group,
    period: str,
    members: MemberRepository,
    billing: BillingRepository,
) -> List[UnpaidMember]:
    """
    Members of `group` whose effective status for `period` is unpaid or partial.

    A member without a billing record for the period owes their current monthly fee.
    """
    try:
        roster = members.list_by_group(group.group_id)
        if not roster:
            return []
        records = billing.list_for_members([m.member_id for m in roster], period)
    except Exception as e:
        raise ResolverError(f"unpaid_lookup_failed:{group.group_id}:{type(e).__name__}") from e

    out: List[UnpaidMember] = []
    for m in roster:
        candidate = UnpaidMember(member=m, record=records.get(m.member_id))
        if candidate.status != PaymentStatus.PAID:
            out.append(candidate)

    log.info(
        "unpaid_members_resolved",
        extra={
            "extra": {
                "event": "unpaid_members_resolved",
                "group_id": group.group_id,
                "period": period,
                "members": len(roster),
                "unpaid": len(out),
            }
        },
    )
    return out
