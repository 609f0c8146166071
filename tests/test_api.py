from fastapi.testclient import TestClient

from app.api_service import app
from app.routers.reminders import get_on_demand
from fakes import FakeBilling, FakeGateway, FakeGroups, FakeMembers
from models.domain import Group, Member
from reminders.dispatch import BatchDispatcher
from reminders.on_demand import OnDemandReminders
from reminders.scheduler import ReminderJob


def _client():
    gw = FakeGateway()
    groups = FakeGroups([Group("g1", "U10", payment_due_day=15)])
    members = FakeMembers([Member("b", "g1", "Ben Owes", "0526867838", 50)])
    dispatcher = BatchDispatcher(gateway=gw, members=members, billing=FakeBilling())
    app.dependency_overrides[get_on_demand] = lambda: OnDemandReminders(dispatcher, groups, members)
    app.state.reminder_job = ReminderJob(dispatcher=dispatcher, groups=groups)
    return TestClient(app), gw


def test_group_payment_reminders_endpoint():
    client, gw = _client()
    r = client.post(
        "/api/notifications/group-payment-reminders",
        json={"groupId": "g1", "period": "2025-12", "customMessage": "Reminder!"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["sent"] == 1
    assert body["details"][0]["memberName"] == "Ben Owes"
    assert gw.sent[0]["text"] == "Reminder!"
    app.dependency_overrides.clear()


def test_invalid_period_is_rejected():
    client, gw = _client()
    r = client.post("/api/notifications/group-payment-reminders", json={"groupId": "g1", "period": "12-2025"})
    assert r.status_code == 422
    assert r.json()["success"] is False
    assert gw.sent == []
    app.dependency_overrides.clear()


def test_run_scheduled_endpoint_goes_through_guard():
    client, _ = _client()
    job = app.state.reminder_job
    assert job.guard.try_acquire()
    r = client.post("/api/notifications/run-scheduled")
    assert r.json() == {"success": False, "message": "already_running"}
    job.guard.release()

    r = client.post("/api/notifications/run-scheduled")
    assert r.json()["success"] is True
    app.dependency_overrides.clear()
