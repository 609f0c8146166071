from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


def derive_status(amount_due: float, amount_paid: float) -> PaymentStatus:
    if amount_paid >= amount_due:
        return PaymentStatus.PAID
    if amount_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def period_for(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def is_valid_period(period: str) -> bool:
    return bool(PERIOD_RE.match(period or ""))


def _num(v: Any, default: float = 0) -> float:
    if v is None:
        return default
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Group:
    group_id: str
    name: str = ""
    payment_due_day: int = 1
    default_fee: float = 0
    coach_id: str = ""

    @classmethod
    def from_doc(cls, group_id: str, d: Dict[str, Any]) -> "Group":
        return cls(
            group_id=group_id,
            name=str(d.get("name") or ""),
            payment_due_day=int(d.get("payment_due_day") or 1),
            default_fee=_num(d.get("default_fee")),
            coach_id=str(d.get("coach_id") or ""),
        )


@dataclass(frozen=True)
class Member:
    member_id: str
    group_id: str
    full_name: str = ""
    phone: str = ""
    monthly_fee: float = 0

    @property
    def first_name(self) -> str:
        parts = (self.full_name or "").split()
        return parts[0] if parts else ""

    @classmethod
    def from_doc(cls, member_id: str, d: Dict[str, Any]) -> "Member":
        return cls(
            member_id=member_id,
            group_id=str(d.get("group_id") or ""),
            full_name=str(d.get("full_name") or ""),
            phone=str(d.get("phone") or ""),
            monthly_fee=_num(d.get("monthly_fee")),
        )


@dataclass(frozen=True)
class BillingRecord:
    member_id: str
    period: str
    amount_due: float
    amount_paid: float = 0

    @property
    def status(self) -> PaymentStatus:
        return derive_status(self.amount_due, self.amount_paid)

    @classmethod
    def from_doc(cls, d: Dict[str, Any]) -> "BillingRecord":
        return cls(
            member_id=str(d.get("member_id") or ""),
            period=str(d.get("period") or ""),
            amount_due=_num(d.get("amount_due")),
            amount_paid=_num(d.get("amount_paid")),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "member_id": self.member_id,
            "period": self.period,
            "amount_due": self.amount_due,
            "amount_paid": self.amount_paid,
            "status": self.status.value,
        }


def billing_doc_id(member_id: str, period: str) -> str:
    return f"{member_id}_{period}"


@dataclass(frozen=True)
class UnpaidMember:
    """A member who still owes for a period; `record` is None when nothing was billed yet."""

    member: Member
    record: Optional[BillingRecord] = None

    @property
    def amount_due(self) -> float:
        return self.record.amount_due if self.record else self.member.monthly_fee

    @property
    def amount_paid(self) -> float:
        return self.record.amount_paid if self.record else 0

    @property
    def remaining(self) -> float:
        return self.amount_due - self.amount_paid

    @property
    def status(self) -> PaymentStatus:
        if self.record is None:
            return PaymentStatus.UNPAID
        return self.record.status
