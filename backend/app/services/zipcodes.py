from __future__ import annotations
import csv
import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from app.models.zipcode import UsZipcode
from app.utils.states import state_abbreviation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZipcodeRecord:
    postal_code: str
    city: str
    state: str
    state_abbrev: str
    latitude: float | None = None
    longitude: float | None = None


def _float_or_none(value: str | None) -> float | None:
    try:
        return float(value) if value not in (None, "") else None
    except ValueError:
        return None


def load_zipcode_records(path: str | Path) -> list[ZipcodeRecord]:
    records: list[ZipcodeRecord] = []
    with open(path, newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            postal_code = (row.get("postal_code") or "").strip()
            city = (row.get("city") or "").strip()
            abbrev = (row.get("state_abbrev") or "").strip().upper()
            if not (postal_code and city and abbrev):
                continue
            records.append(
                ZipcodeRecord(
                    postal_code=postal_code,
                    city=city,
                    state=(row.get("state") or "").strip(),
                    state_abbrev=abbrev,
                    latitude=_float_or_none(row.get("latitude")),
                    longitude=_float_or_none(row.get("longitude")),
                )
            )
    return records


class ZipcodeTable:
    """In-memory city+state -> postal code index, keyed by both state forms."""

    def __init__(self, records: list[ZipcodeRecord]):
        self._index: dict[str, str] = {}
        for record in records:
            city = record.city.lower()
            for state_key in (record.state_abbrev.lower(), record.state.lower()):
                if state_key:
                    self._index.setdefault(f"{city}|{state_key}", record.postal_code)

    @classmethod
    def from_csv(cls, path: str | Path) -> "ZipcodeTable":
        return cls(load_zipcode_records(path))

    def __len__(self) -> int:
        return len(self._index)

    def lookup(self, city: str, state: str) -> str:
        city_key = (city or "").strip().lower()
        state_key = (state or "").strip().lower()
        if not city_key or not state_key:
            return ""
        for key in (f"{city_key}|{state_key}", f"{city_key}|{state_abbreviation(state).lower()}"):
            postal_code = self._index.get(key)
            if postal_code:
                return postal_code
        return ""


class SqlZipcodeLookup:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def lookup(self, city: str, state: str) -> str:
        city_lower = (city or "").strip().lower()
        if not city_lower or not state:
            return ""
        abbrev = state_abbreviation(state)
        with self.session_factory() as db:
            row = self._first(db, city_lower, UsZipcode.state_abbrev == abbrev.upper())
            if row is None:
                row = self._first(db, city_lower, func.lower(UsZipcode.state) == state.strip().lower())
        return row.postal_code if row is not None else ""

    @staticmethod
    def _first(db: Session, city_lower: str, state_clause) -> UsZipcode | None:
        return (
            db.query(UsZipcode)
            .filter(func.lower(UsZipcode.city) == city_lower, state_clause)
            .order_by(UsZipcode.postal_code.asc())
            .first()
        )


def _apply(row: UsZipcode, record: ZipcodeRecord) -> UsZipcode:
    row.postal_code = record.postal_code
    row.city = record.city
    row.state = record.state
    row.state_abbrev = record.state_abbrev
    row.latitude = record.latitude
    row.longitude = record.longitude
    return row


def seed_zipcodes_if_empty(db: Session, path: str | Path) -> int:
    if db.query(UsZipcode.id).first() is not None:
        return 0
    try:
        records = load_zipcode_records(path)
    except OSError as exc:
        logger.warning("zipcode data unavailable at %s: %s", path, exc)
        return 0
    db.add_all(_apply(UsZipcode(), r) for r in records)
    db.commit()
    logger.info("seeded %s zipcode records", len(records))
    return len(records)


def load_zipcodes(db: Session, path: str | Path) -> tuple[int, int]:
    """Upsert every CSV row by postal code; returns (inserted, updated).

    Safe to repeat. A postal code that appears twice keeps the later row.
    """
    records = load_zipcode_records(path)
    existing = {row.postal_code: row for row in db.query(UsZipcode)}
    inserted = updated = 0
    for record in records:
        row = existing.get(record.postal_code)
        if row is None:
            row = existing[record.postal_code] = _apply(UsZipcode(), record)
            db.add(row)
            inserted += 1
        else:
            _apply(row, record)
            updated += 1
    db.commit()
    logger.info("loaded zipcodes from %s: %s inserted, %s updated", path, inserted, updated)
    return inserted, updated
