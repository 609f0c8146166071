import json
import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

from config.settings import settings
from fakes import FakeBilling, FakeGateway, FakeGroups, FakeMembers
from models.domain import Group, Member
from ops.structured_logger import JsonFormatter
from reminders.dispatch import BatchDispatcher
from reminders.scheduler import ReminderJob, local_today, reminder_timezone


def test_local_today_follows_configured_timezone(monkeypatch):
    monkeypatch.setattr(settings, "REMINDER_TIMEZONE", "Pacific/Kiritimati")  # UTC+14
    east = local_today()
    assert east == datetime.now(ZoneInfo("Pacific/Kiritimati")).date()

    monkeypatch.setattr(settings, "REMINDER_TIMEZONE", "Etc/GMT+12")  # UTC-12
    west = local_today()
    assert west == datetime.now(ZoneInfo("Etc/GMT+12")).date()
    assert east != west


def test_local_today_defaults_to_process_clock(monkeypatch):
    monkeypatch.setattr(settings, "REMINDER_TIMEZONE", "")
    assert reminder_timezone() is None
    assert local_today() == date.today()


class _JsonLines(logging.Handler):
    # Formats at emit time, on the emitting thread.
    def __init__(self):
        super().__init__()
        self.setFormatter(JsonFormatter())
        self.lines = []

    def emit(self, record):
        self.lines.append(json.loads(self.format(record)))


def test_worker_thread_logs_carry_run_id(caplog):
    caplog.set_level(logging.INFO, logger="coachpay")
    handler = _JsonLines()
    logging.getLogger("coachpay").addHandler(handler)
    try:
        gw = FakeGateway(fail_phones={"0526867838"})
        dispatcher = BatchDispatcher(
            gateway=gw,
            members=FakeMembers([Member("b", "g1", "Ben Owes", "0526867838", 50)]),
            billing=FakeBilling(),
        )
        job = ReminderJob(dispatcher=dispatcher, groups=FakeGroups([Group("g1", payment_due_day=15)]))
        summary = job.run(today=date(2025, 12, 15))
    finally:
        logging.getLogger("coachpay").removeHandler(handler)

    assert summary.failed == 1
    started = next(line for line in handler.lines if line["message"] == "reminder_run_started")
    failed = next(line for line in handler.lines if line["message"] == "reminder_send_failed")
    assert started["run_id"]
    assert failed["run_id"] == started["run_id"]
