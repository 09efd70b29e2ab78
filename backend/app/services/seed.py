from __future__ import annotations
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.setting import Setting
from app.services.zipcodes import seed_zipcodes_if_empty


def default_schedule_config() -> dict:
    return {
        "enabled": False,
        "time": "09:30",
        "timezone": "America/New_York",
        "one_time": False,
        "date": None,
        "next_run": None,
        "last_run": None,
    }


def seed_settings_if_missing(db: Session) -> None:
    keys = {s.key for s in db.query(Setting).all()}
    if "schedule" not in keys:
        db.add(Setting(key="schedule", value=default_schedule_config(), updated_at=datetime.utcnow()))
        db.commit()


def seed_defaults(db: Session, zipcode_path: str | None = None) -> None:
    seed_zipcodes_if_empty(db, zipcode_path or settings.zipcode_data_path)
    seed_settings_if_missing(db)
