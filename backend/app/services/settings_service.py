from __future__ import annotations
from datetime import datetime

from sqlalchemy.orm import Session

from app.models.setting import Setting
from app.services.seed import default_schedule_config

DEFAULTS = {"schedule": default_schedule_config}


def get_setting(db: Session, key: str) -> dict:
    """Stored JSON value for ``key``, or a fresh copy of its default."""
    row = db.get(Setting, key)
    if row is not None:
        return dict(row.value)
    factory = DEFAULTS.get(key)
    return factory() if factory else {}


def upsert_setting(db: Session, key: str, value: dict) -> dict:
    row = db.get(Setting, key)
    if row is None:
        row = Setting(key=key)
        db.add(row)
    row.value = dict(value)
    row.updated_at = datetime.utcnow()
    db.commit()
    return dict(row.value)
