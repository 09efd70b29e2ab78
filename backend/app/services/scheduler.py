from __future__ import annotations
import logging
import threading
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.errors import PipelineAlreadyRunning
from app.db.database import SessionLocal
from app.services.pipeline_runner import PipelineRunner, get_pipeline_runner
from app.services.seed import default_schedule_config
from app.services.settings_service import get_setting, upsert_setting

logger = logging.getLogger(__name__)

SCHEDULE_KEY = "schedule"


def _utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _parse_time(value: str) -> time:
    hour, minute = (int(part) for part in (value or "09:30").split(":", 1))
    return time(hour, minute)


def compute_next_run(config: dict, now: datetime) -> datetime:
    """Next UTC start for a schedule config.

    Daily schedules take today's ``time`` in the schedule's timezone if it is
    still ahead, otherwise tomorrow's. One-time schedules with a ``date`` run
    on that date.
    """
    tz = ZoneInfo(config.get("timezone") or "UTC")
    at = _parse_time(config.get("time") or "09:30")

    if config.get("one_time") and config.get("date"):
        day = date.fromisoformat(str(config["date"]))
        return datetime.combine(day, at, tzinfo=tz).astimezone(timezone.utc)

    local_now = _utc(now).astimezone(tz)
    candidate = datetime.combine(local_now.date(), at, tzinfo=tz)
    if candidate <= local_now:
        candidate = datetime.combine(local_now.date() + timedelta(days=1), at, tzinfo=tz)
    return candidate.astimezone(timezone.utc)


class PipelineScheduler:
    def __init__(
        self,
        runner: PipelineRunner,
        session_factory: sessionmaker = SessionLocal,
        batch_size: int | None = None,
        poll_seconds: float | None = None,
    ):
        self.runner = runner
        self.session_factory = session_factory
        self.batch_size = batch_size or settings.scheduled_batch_size
        self.poll_seconds = poll_seconds or settings.scheduler_poll_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def load_config(self) -> dict:
        with self.session_factory() as db:
            return get_setting(db, SCHEDULE_KEY)

    def save_config(self, config: dict) -> dict:
        with self.session_factory() as db:
            return upsert_setting(db, SCHEDULE_KEY, config)

    def configure(self, update: dict, now: datetime | None = None) -> dict:
        current = self.load_config()
        defaults = default_schedule_config()
        config = {
            "enabled": bool(update.get("enabled", True)),
            "time": update.get("time") or current.get("time") or defaults["time"],
            "timezone": update.get("timezone") or current.get("timezone") or defaults["timezone"],
            "one_time": bool(update.get("one_time", False)),
            "date": str(update["date"]) if update.get("date") else None,
            "last_run": current.get("last_run"),
        }
        config["next_run"] = (
            compute_next_run(config, now or datetime.now(timezone.utc)).isoformat() if config["enabled"] else None
        )
        saved = self.save_config(config)
        if config["enabled"]:
            kind = "one-time" if config["one_time"] else "daily"
            self._log(f"Pipeline schedule activated ({kind} at {config['time']} {config['timezone']})")
        else:
            self._log("Pipeline schedule disabled")
        return saved

    def tick(self, now: datetime | None = None) -> int | None:
        """Start a scheduled run if one is due; returns the execution id started."""
        now = _utc(now or datetime.now(timezone.utc))
        config = self.load_config()
        if not config.get("enabled") or not config.get("next_run"):
            return None
        if now < _utc(datetime.fromisoformat(config["next_run"])):
            return None

        execution_id = None
        try:
            execution_id = self.runner.start(self.batch_size)
        except PipelineAlreadyRunning:
            self._log("Scheduled pipeline run skipped: a run is already in progress", "warning")
        else:
            self._log(f"Automated pipeline execution started at {now.isoformat()}")
            config["last_run"] = now.isoformat()

        if config.get("one_time"):
            config["enabled"] = False
            config["next_run"] = None
        else:
            config["next_run"] = compute_next_run(config, now).isoformat()
        self.save_config(config)
        return execution_id

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="pipeline-scheduler", daemon=True)
        self._thread.start()
        logger.info("scheduler started, polling every %ss", self.poll_seconds)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self.poll_seconds):
            try:
                self.tick()
            except Exception:  # noqa: BLE001
                logger.exception("scheduler tick failed")

    def _log(self, message: str, level: str = "info") -> None:
        logger.log(logging.WARNING if level == "warning" else logging.INFO, message)
        try:
            self.runner.orchestrator.storage.append_log(message, level=level)
        except Exception as exc:  # noqa: BLE001
            logger.warning("failed to write activity log: %s", exc)


_scheduler: PipelineScheduler | None = None
_scheduler_lock = threading.Lock()


def get_scheduler() -> PipelineScheduler:
    global _scheduler
    with _scheduler_lock:
        if _scheduler is None:
            _scheduler = PipelineScheduler(get_pipeline_runner())
        return _scheduler
