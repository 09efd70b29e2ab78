from __future__ import annotations
import threading
from datetime import datetime

from app.core.errors import DuplicateJobError
from app.models.activity_log import ActivityLog
from app.models.job_posting import JobPosting
from app.models.pipeline_execution import PipelineExecution
from app.storage.base import EnrichedJob, PipelineStorage, merge_counters

MAX_LOGS = 100


class MemoryStorage(PipelineStorage):
    """Process-local storage for tests and dry runs. Keeps the newest 100 log lines."""

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: dict[str, JobPosting] = {}
        self._executions: dict[int, PipelineExecution] = {}
        self._logs: list[ActivityLog] = []
        self._next_job_id = 1
        self._next_execution_id = 1
        self._next_log_id = 1

    def list_jobs(self) -> list[JobPosting]:
        with self._lock:
            return list(self._jobs.values())

    def get_job(self, external_id: str) -> JobPosting | None:
        with self._lock:
            return self._jobs.get(external_id)

    def insert_job(self, job: EnrichedJob) -> JobPosting:
        with self._lock:
            if job.external_id in self._jobs:
                raise DuplicateJobError(job.external_id)
            record = job.to_posting()
            record.id = self._next_job_id
            self._next_job_id += 1
            self._jobs[job.external_id] = record
            return record

    def delete_job(self, external_id: str) -> None:
        with self._lock:
            self._jobs.pop(external_id, None)

    def delete_jobs(self, external_ids: list[str]) -> int:
        with self._lock:
            return sum(1 for external_id in external_ids if self._jobs.pop(external_id, None) is not None)

    def create_execution(self, **fields) -> PipelineExecution:
        values = {
            "status": "running",
            "start_time": datetime.utcnow(),
            "total_jobs": 0,
            "processed_jobs": 0,
            "new_jobs": 0,
            "removed_jobs": 0,
            "current_step": "",
            **fields,
        }
        with self._lock:
            record = PipelineExecution(id=self._next_execution_id, **values)
            self._next_execution_id += 1
            self._executions[record.id] = record
            return record

    def update_execution(self, execution_id: int, **fields) -> PipelineExecution:
        with self._lock:
            record = self._executions.get(execution_id)
            if record is None:
                raise LookupError(f"pipeline execution {execution_id} not found")
            for key, value in merge_counters(record, fields).items():
                setattr(record, key, value)
            return record

    def get_latest_execution(self) -> PipelineExecution | None:
        with self._lock:
            if not self._executions:
                return None
            return self._executions[max(self._executions)]

    def append_log(self, message: str, level: str = "info", execution_id: int | None = None) -> ActivityLog:
        with self._lock:
            record = ActivityLog(
                id=self._next_log_id,
                message=message,
                level=level,
                execution_id=execution_id,
                timestamp=datetime.utcnow(),
            )
            self._next_log_id += 1
            self._logs.insert(0, record)
            del self._logs[MAX_LOGS:]
            return record

    def list_recent_logs(self, limit: int = 20) -> list[ActivityLog]:
        with self._lock:
            return self._logs[:limit]

    def clear_logs(self) -> None:
        with self._lock:
            self._logs.clear()
