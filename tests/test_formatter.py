from models.domain import Member
from reminders.formatter import compose_reminder, format_period, ordinal


def test_format_period():
    assert format_period("2025-12") == "December 2025"
    assert format_period("2026-01") == "January 2026"
    assert format_period("bogus") == "bogus"


def test_ordinal():
    assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 23, 31)] == [
        "1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd", "23rd", "31st",
    ]


def test_compose_reminder_template():
    m = Member("m1", "g1", "Noa Cohen", "0526867838", 50)
    text = compose_reminder(m, 50, 20, "2025-12", 15, brand="CoachPay")
    assert text == (
        "Hi Noa, payment reminder from CoachPay. December 2025 payment due 15th. "
        "Amount: $50, Paid: $20, Remaining: $30. Please pay soon. Thank you! -CoachPay"
    )


def test_compose_reminder_keeps_cents():
    m = Member("m1", "g1", "Noa", "", 0)
    assert "Remaining: $12.50" in compose_reminder(m, 40.5, 28, "2025-12", 1)


def test_override_is_used_verbatim():
    m = Member("m1", "g1", "Noa Cohen")
    assert compose_reminder(m, 50, 0, "2025-12", 1, override="Reminder!") == "Reminder!"
    assert compose_reminder(m, 50, 0, "2025-12", 1, override="   ").startswith("Hi Noa")


def test_format_period_rejects_out_of_range_month():
    assert format_period("2025-00") == "2025-00"
    assert format_period("2025-13") == "2025-13"
