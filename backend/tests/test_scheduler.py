from __future__ import annotations
from datetime import datetime, timezone
from types import SimpleNamespace

from app.core.errors import PipelineAlreadyRunning
from app.schemas.schedule import ScheduleUpdate
from app.services.scheduler import PipelineScheduler, compute_next_run
from app.storage.memory import MemoryStorage


class FakeRunner:
    def __init__(self):
        self.running = False
        self.batches = []
        self.orchestrator = SimpleNamespace(storage=MemoryStorage())

    @property
    def is_running(self):
        return self.running

    def start(self, batch_size):
        if self.running:
            raise PipelineAlreadyRunning(1)
        self.batches.append(batch_size)
        return len(self.batches)


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_next_run_is_today_when_time_is_still_ahead():
    config = {"time": "09:30", "timezone": "America/New_York"}

    # 08:00 EDT
    assert compute_next_run(config, _utc(2026, 6, 15, 12, 0)) == _utc(2026, 6, 15, 13, 30)


def test_next_run_rolls_to_tomorrow_once_time_has_passed():
    config = {"time": "09:30", "timezone": "America/New_York"}

    assert compute_next_run(config, _utc(2026, 6, 15, 14, 0)) == _utc(2026, 6, 16, 13, 30)
    # standard time in winter
    assert compute_next_run(config, _utc(2026, 1, 15, 15, 0)) == _utc(2026, 1, 16, 14, 30)


def test_one_time_schedule_uses_its_date():
    config = {"time": "10:00", "timezone": "UTC", "one_time": True, "date": "2026-07-01"}

    assert compute_next_run(config, _utc(2026, 6, 15, 12, 0)) == _utc(2026, 7, 1, 10, 0)


def _scheduler(session_factory, runner=None):
    return PipelineScheduler(runner or FakeRunner(), session_factory, batch_size=1000, poll_seconds=60)


def test_default_schedule_is_disabled(session_factory):
    scheduler = _scheduler(session_factory)

    config = scheduler.load_config()

    assert config["enabled"] is False
    assert scheduler.tick(_utc(2026, 6, 15, 12, 0)) is None


def test_tick_starts_run_when_due_and_advances(session_factory):
    runner = FakeRunner()
    scheduler = _scheduler(session_factory, runner)
    scheduler.configure({"enabled": True, "time": "09:30", "timezone": "UTC"}, now=_utc(2026, 6, 15, 8, 0))

    assert scheduler.tick(_utc(2026, 6, 15, 9, 0)) is None
    assert runner.batches == []

    assert scheduler.tick(_utc(2026, 6, 15, 9, 31)) == 1
    assert runner.batches == [1000]

    config = scheduler.load_config()
    assert config["last_run"] == _utc(2026, 6, 15, 9, 31).isoformat()
    assert datetime.fromisoformat(config["next_run"]) == _utc(2026, 6, 16, 9, 30)
    assert scheduler.tick(_utc(2026, 6, 15, 9, 40)) is None

    messages = [log.message for log in runner.orchestrator.storage.list_recent_logs(10)]
    assert any(m.startswith("Automated pipeline execution started") for m in messages)


def test_one_time_schedule_disables_after_running(session_factory):
    runner = FakeRunner()
    scheduler = _scheduler(session_factory, runner)
    scheduler.configure(
        {"enabled": True, "time": "10:00", "timezone": "UTC", "one_time": True, "date": "2026-07-01"},
        now=_utc(2026, 6, 15, 8, 0),
    )

    assert scheduler.tick(_utc(2026, 7, 1, 10, 0)) == 1

    config = scheduler.load_config()
    assert config["enabled"] is False
    assert config["next_run"] is None
    assert scheduler.tick(_utc(2026, 7, 2, 10, 0)) is None


def test_due_tick_while_running_is_skipped_with_warning(session_factory):
    runner = FakeRunner()
    runner.running = True
    scheduler = _scheduler(session_factory, runner)
    scheduler.configure({"enabled": True, "time": "09:30", "timezone": "UTC"}, now=_utc(2026, 6, 15, 8, 0))

    assert scheduler.tick(_utc(2026, 6, 15, 9, 45)) is None

    assert runner.batches == []
    latest = runner.orchestrator.storage.list_recent_logs(1)[0]
    assert latest.level == "warning"
    assert scheduler.load_config().get("last_run") is None


def test_disabling_clears_next_run(session_factory):
    scheduler = _scheduler(session_factory)
    scheduler.configure({"enabled": True, "time": "09:30", "timezone": "UTC"}, now=_utc(2026, 6, 15, 8, 0))

    config = scheduler.configure({"enabled": False})

    assert config["enabled"] is False
    assert config["next_run"] is None
    assert config["time"] == "09:30"


def test_partial_update_keeps_stored_time_and_timezone(session_factory):
    scheduler = _scheduler(session_factory)
    scheduler.configure({"time": "14:15", "timezone": "America/Chicago"}, now=_utc(2026, 6, 15, 8, 0))

    config = scheduler.configure(
        ScheduleUpdate(enabled=True).model_dump(exclude_unset=True), now=_utc(2026, 6, 15, 8, 0)
    )

    assert config["time"] == "14:15"
    assert config["timezone"] == "America/Chicago"
    assert datetime.fromisoformat(config["next_run"]) == _utc(2026, 6, 15, 19, 15)


def test_update_without_time_uses_seeded_defaults(session_factory):
    config = _scheduler(session_factory).configure({}, now=_utc(2026, 6, 15, 8, 0))

    assert config["enabled"] is True
    assert config["time"] == "09:30"
    assert config["timezone"] == "America/New_York"
