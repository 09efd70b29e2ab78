from __future__ import annotations
from datetime import datetime

from sqlalchemy import delete, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.core.errors import DuplicateJobError
from app.models.activity_log import ActivityLog
from app.models.job_posting import JobPosting
from app.models.pipeline_execution import PipelineExecution
from app.storage.base import EnrichedJob, PipelineStorage, merge_counters


class SqlStorage(PipelineStorage):
    """SQLAlchemy-backed storage; every call runs in its own short session."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def list_jobs(self) -> list[JobPosting]:
        with self.session_factory() as db:
            return db.query(JobPosting).order_by(JobPosting.id.asc()).all()

    def get_job(self, external_id: str) -> JobPosting | None:
        with self.session_factory() as db:
            return db.query(JobPosting).filter(JobPosting.external_id == external_id).first()

    def insert_job(self, job: EnrichedJob) -> JobPosting:
        record = job.to_posting()
        with self.session_factory() as db:
            db.add(record)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                if self.get_job(job.external_id) is None:
                    raise
                raise DuplicateJobError(job.external_id) from exc
            db.refresh(record)
            return record

    def delete_job(self, external_id: str) -> None:
        with self.session_factory() as db:
            db.execute(delete(JobPosting).where(JobPosting.external_id == external_id))
            db.commit()

    def delete_jobs(self, external_ids: list[str]) -> int:
        if not external_ids:
            return 0
        with self.session_factory() as db:
            result = db.execute(delete(JobPosting).where(JobPosting.external_id.in_(list(external_ids))))
            db.commit()
            return int(result.rowcount or 0)

    def create_execution(self, **fields) -> PipelineExecution:
        fields.setdefault("status", "running")
        fields.setdefault("start_time", datetime.utcnow())
        record = PipelineExecution(**fields)
        with self.session_factory() as db:
            db.add(record)
            db.commit()
            db.refresh(record)
            return record

    def update_execution(self, execution_id: int, **fields) -> PipelineExecution:
        with self.session_factory() as db:
            record = db.get(PipelineExecution, execution_id)
            if record is None:
                raise LookupError(f"pipeline execution {execution_id} not found")
            for key, value in merge_counters(record, fields).items():
                setattr(record, key, value)
            db.commit()
            db.refresh(record)
            return record

    def get_latest_execution(self) -> PipelineExecution | None:
        with self.session_factory() as db:
            return db.query(PipelineExecution).order_by(desc(PipelineExecution.id)).first()

    def append_log(self, message: str, level: str = "info", execution_id: int | None = None) -> ActivityLog:
        record = ActivityLog(message=message, level=level, execution_id=execution_id, timestamp=datetime.utcnow())
        with self.session_factory() as db:
            db.add(record)
            db.commit()
            db.refresh(record)
            return record

    def list_recent_logs(self, limit: int = 20) -> list[ActivityLog]:
        with self.session_factory() as db:
            return (
                db.query(ActivityLog)
                .order_by(desc(ActivityLog.timestamp), desc(ActivityLog.id))
                .limit(limit)
                .all()
            )

    def clear_logs(self) -> None:
        with self.session_factory() as db:
            db.execute(delete(ActivityLog))
            db.commit()
