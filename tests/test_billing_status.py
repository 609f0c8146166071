from models.domain import BillingRecord, Member, PaymentStatus, UnpaidMember, derive_status


def test_derive_status_rules():
    assert derive_status(50, 50) is PaymentStatus.PAID
    assert derive_status(50, 70) is PaymentStatus.PAID
    assert derive_status(50, 20) is PaymentStatus.PARTIAL
    assert derive_status(50, 0) is PaymentStatus.UNPAID


def test_derive_status_is_stable():
    assert {derive_status(50, 20) for _ in range(5)} == {PaymentStatus.PARTIAL}


def test_missing_record_owes_monthly_fee():
    u = UnpaidMember(member=Member("m1", "g1", "Dana Levi", "0526867838", 120))
    assert u.status is PaymentStatus.UNPAID
    assert (u.amount_due, u.amount_paid, u.remaining) == (120, 0, 120)


def test_record_amounts_take_precedence_over_fee():
    rec = BillingRecord("m1", "2025-12", amount_due=50, amount_paid=20)
    u = UnpaidMember(member=Member("m1", "g1", monthly_fee=999), record=rec)
    assert u.status is PaymentStatus.PARTIAL
    assert u.remaining == 30
