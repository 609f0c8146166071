from __future__ import annotations

from typing import Optional

from config.settings import settings
from models.domain import Member

_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def format_period(period: str) -> str:
    """'2025-12' -> 'December 2025'. Unparseable input is returned unchanged."""
    try:
        year, month = period.split("-")
        if not 1 <= int(month) <= 12:
            return period
        return f"{_MONTHS[int(month) - 1]} {int(year)}"
    except (ValueError, IndexError, AttributeError):
        return period


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _money(v: float) -> str:
    v = float(v)
    if v.is_integer():
        return str(int(v))
    return f"{v:.2f}"


def compose_reminder(
    member: Member,
    amount_due: float,
    amount_paid: float,
    period: str,
    due_day: int,
    override: Optional[str] = None,
    brand: Optional[str] = None,
) -> str:
    if override and override.strip():
        return override

    brand = brand or settings.REMINDER_BRAND
    name = member.first_name or "there"
    remaining = amount_due - amount_paid

    return (
        f"Hi {name}, payment reminder from {brand}. "
        f"{format_period(period)} payment due {ordinal(due_day)}. "
        f"Amount: ${_money(amount_due)}, Paid: ${_money(amount_paid)}, Remaining: ${_money(remaining)}. "
        f"Please pay soon. Thank you! -{brand}"
    )
