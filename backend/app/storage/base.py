from __future__ import annotations
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from app.models.activity_log import ActivityLog
from app.models.job_posting import JobPosting
from app.models.pipeline_execution import COUNTER_FIELDS, PipelineExecution
from app.utils.states import state_abbreviation


@dataclass(frozen=True)
class EnrichedJob:
    external_id: str
    source_url: str
    title: str
    city: str = ""
    state: str = ""
    country: str = ""
    postal_code: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: str = ""
    company_name: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    def to_posting(self) -> JobPosting:
        has_point = self.latitude is not None and self.longitude is not None
        return JobPosting(
            external_id=self.external_id,
            source_url=self.source_url,
            title=self.title,
            city=self.city,
            state=self.state,
            state_abbrev=_abbrev(self.state),
            country=self.country,
            postal_code=self.postal_code,
            latitude=self.latitude,
            longitude=self.longitude,
            location_point=f"POINT({self.longitude} {self.latitude})" if has_point else None,
            description=self.description,
            company_name=self.company_name,
            created_at=datetime.utcnow(),
        )


def _abbrev(state: str) -> str:
    abbrev = state_abbreviation(state) if state else ""
    # non-US regions have no two-letter code
    return abbrev if len(abbrev) == 2 else ""


def merge_counters(current: PipelineExecution, updates: dict) -> dict:
    """Drop counter updates that would move a counter backwards."""
    merged = dict(updates)
    for name in COUNTER_FIELDS:
        if name in merged and merged[name] is not None:
            merged[name] = max(int(getattr(current, name) or 0), int(merged[name]))
    return merged


class PipelineStorage:
    """Job postings, execution records and activity logs behind one interface."""

    def list_jobs(self) -> list[JobPosting]:
        raise NotImplementedError

    def get_job(self, external_id: str) -> JobPosting | None:
        raise NotImplementedError

    def insert_job(self, job: EnrichedJob) -> JobPosting:
        """Raises ``DuplicateJobError`` when the external id is already stored."""
        raise NotImplementedError

    def delete_job(self, external_id: str) -> None:
        raise NotImplementedError

    def delete_jobs(self, external_ids: list[str]) -> int:
        raise NotImplementedError

    def create_execution(self, **fields) -> PipelineExecution:
        raise NotImplementedError

    def update_execution(self, execution_id: int, **fields) -> PipelineExecution:
        raise NotImplementedError

    def get_latest_execution(self) -> PipelineExecution | None:
        raise NotImplementedError

    def append_log(self, message: str, level: str = "info", execution_id: int | None = None) -> ActivityLog:
        raise NotImplementedError

    def list_recent_logs(self, limit: int = 20) -> list[ActivityLog]:
        raise NotImplementedError

    def clear_logs(self) -> None:
        raise NotImplementedError
