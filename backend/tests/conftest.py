from __future__ import annotations
import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.clients.base import ListingSource, UpstreamListing
from app.db.database import Base
from app.services.geocode_resolver import GeoResult
from app.services.location_parser import StandardizedLocation
from app.services.pipeline_service import PipelineOrchestrator
from app.services.progress import ProgressHub
from app.storage.base import EnrichedJob
from app.storage.memory import MemoryStorage


class FakeSource(ListingSource):
    source_name = "fake"

    def __init__(self, listings=None, error: Exception | None = None):
        self.listings = list(listings or [])
        self.error = error
        self.calls = 0

    def fetch_all(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.listings)


class FakeParser:
    def __init__(self, fail_ids=(), gate: threading.Event | None = None, on_parse=None):
        self.fail_ids = set(fail_ids)
        self.gate = gate
        self.on_parse = on_parse

    def parse(self, listing):
        if self.gate is not None:
            self.gate.wait(5)
        if self.on_parse is not None:
            self.on_parse(listing)
        if listing.external_id in self.fail_ids:
            raise RuntimeError(f"model unavailable for {listing.external_id}")
        return StandardizedLocation(city=listing.raw_city, state="Texas", country=listing.raw_country)


class FakeResolver:
    def resolve(self, location):
        return GeoResult(latitude="29.7604", longitude="-95.3698", postal_code="77002")


def make_listing(external_id: str) -> UpstreamListing:
    return UpstreamListing(
        external_id=external_id,
        title=f"Welder {external_id}",
        source_url=f"https://careers.example.com/job/{external_id}",
        raw_city="Houston",
        raw_country="United States",
        business_area="Manufacturing",
        company_name="Acme Industrial",
    )


def stored_job(external_id: str) -> EnrichedJob:
    return EnrichedJob(
        external_id=external_id,
        source_url=f"https://careers.example.com/job/{external_id}",
        title=f"Welder {external_id}",
        city="Houston",
        state="Texas",
        country="United States",
        postal_code="77002",
        latitude=29.76,
        longitude=-95.36,
    )


@pytest.fixture
def listings():
    def _make(*ids):
        return [make_listing(i) for i in ids]

    return _make


@pytest.fixture
def make_orchestrator():
    def _build(upstream=(), stored=(), storage=None, source_error=None, concurrency=4, **parser_kwargs):
        storage = storage if storage is not None else MemoryStorage()
        for external_id in stored:
            storage.insert_job(stored_job(external_id))
        return PipelineOrchestrator(
            storage=storage,
            source=FakeSource([make_listing(i) for i in upstream], error=source_error),
            parser=FakeParser(**parser_kwargs),
            resolver=FakeResolver(),
            progress=ProgressHub(),
            concurrency=concurrency,
        )

    return _build


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
