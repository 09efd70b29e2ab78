from __future__ import annotations
import re
import datetime as dt
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, field_validator

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ScheduleUpdate(BaseModel):
    """An omitted time or timezone keeps the stored value."""

    enabled: bool = True
    time: str | None = None
    timezone: str | None = None
    one_time: bool = False
    date: dt.date | None = None

    @field_validator("time")
    @classmethod
    def check_time(cls, value: str | None) -> str | None:
        if value is not None and not _TIME_RE.match(value):
            raise ValueError("time must be HH:MM")
        return value

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value}") from exc
        return value


class ScheduleOut(BaseModel):
    enabled: bool
    time: str
    timezone: str
    one_time: bool
    date: str | None = None
    next_run: str | None = None
    last_run: str | None = None
