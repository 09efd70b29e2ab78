from __future__ import annotations
from datetime import datetime

from pydantic import BaseModel


class JobOut(BaseModel):
    id: int
    external_id: str
    source_url: str
    title: str
    city: str
    state: str
    state_abbrev: str
    country: str
    postal_code: str
    latitude: float | None
    longitude: float | None
    location_point: str | None
    description: str
    company_name: str
    created_at: datetime

    class Config:
        from_attributes = True


class EnrichedJobOut(BaseModel):
    external_id: str
    source_url: str
    title: str
    city: str
    state: str
    country: str
    postal_code: str
    latitude: float | None = None
    longitude: float | None = None
    description: str
    company_name: str

    class Config:
        from_attributes = True
