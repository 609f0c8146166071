from datetime import date

import pytest

from fakes import FakeBilling, FakeGroups, FakeMembers
from models.domain import BillingRecord, Group, Member
from reminders.resolvers import ResolverError, resolve_due_groups, resolve_unpaid


def test_due_groups_match_day_of_month():
    repo = FakeGroups([Group("g15", payment_due_day=15), Group("g31", payment_due_day=31)])
    assert [g.group_id for g in resolve_due_groups(repo, date(2025, 12, 15))] == ["g15"]
    assert [g.group_id for g in resolve_due_groups(repo, date(2025, 12, 31))] == ["g31"]


def test_due_day_31_never_matches_february():
    repo = FakeGroups([Group("g31", payment_due_day=31)])
    for day in range(1, 29):
        assert resolve_due_groups(repo, date(2026, 2, day)) == []


def test_due_groups_lookup_failure():
    with pytest.raises(ResolverError):
        resolve_due_groups(FakeGroups([], fail=True), date(2025, 12, 15))


def test_resolve_unpaid_excludes_paid_and_keeps_partial_and_missing():
    group = Group("g1", payment_due_day=15)
    members = FakeMembers([
        Member("a", "g1", "Paid Up", "0501111111", 50),
        Member("b", "g1", "Part Payer", "0526867838", 50),
        Member("c", "g1", "No Record", "0502222222", 70),
        Member("x", "g2", "Other Group", "0503333333", 50),
    ])
    billing = FakeBilling([
        BillingRecord("a", "2025-12", 50, 50),
        BillingRecord("b", "2025-12", 50, 20),
        BillingRecord("c", "2025-11", 70, 70),
    ])
    unpaid = {u.member.member_id: u for u in resolve_unpaid(group, "2025-12", members, billing)}
    assert set(unpaid) == {"b", "c"}
    assert unpaid["b"].remaining == 30
    assert unpaid["c"].amount_due == 70


def test_resolve_unpaid_wraps_lookup_errors():
    members = FakeMembers([], failing_groups={"g1"})
    with pytest.raises(ResolverError):
        resolve_unpaid(Group("g1"), "2025-12", members, FakeBilling())
