from __future__ import annotations
import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import DuplicateJobError
from app.storage.base import EnrichedJob
from app.storage.memory import MAX_LOGS, MemoryStorage
from app.storage.sql import SqlStorage


def _job(external_id, **overrides):
    values = dict(
        external_id=external_id,
        source_url=f"https://careers.example.com/job/{external_id}",
        title="Maintenance Technician",
        city="Michigan City",
        state="Indiana",
        country="United States",
        postal_code="46360",
        latitude=41.7075,
        longitude=-86.895,
        description="Operations",
        company_name="Acme Industrial",
    )
    values.update(overrides)
    return EnrichedJob(**values)


@pytest.fixture(params=["sql", "memory"])
def storage(request, session_factory):
    if request.param == "sql":
        return SqlStorage(session_factory)
    return MemoryStorage()


def test_insert_and_get_job(storage):
    storage.insert_job(_job("A1"))

    job = storage.get_job("A1")
    assert job.title == "Maintenance Technician"
    assert job.state_abbrev == "IN"
    assert job.location_point == "POINT(-86.895 41.7075)"
    assert storage.get_job("missing") is None


def test_job_without_coordinates_has_no_point(storage):
    storage.insert_job(_job("A1", latitude=None, longitude=None, postal_code=""))

    job = storage.get_job("A1")
    assert job.location_point is None
    assert job.latitude is None


def test_duplicate_insert_raises(storage):
    storage.insert_job(_job("A1"))

    with pytest.raises(DuplicateJobError) as exc_info:
        storage.insert_job(_job("A1", title="Other"))

    assert exc_info.value.external_id == "A1"
    assert len(storage.list_jobs()) == 1
    assert storage.get_job("A1").title == "Maintenance Technician"


def test_sql_constraint_failure_other_than_duplicate_is_not_swallowed(session_factory):
    storage = SqlStorage(session_factory)

    with pytest.raises(IntegrityError):
        storage.insert_job(_job("A1", title=None))

    assert storage.get_job("A1") is None
    storage.insert_job(_job("A1"))
    assert storage.get_job("A1").title == "Maintenance Technician"


def test_delete_job_and_delete_jobs(storage):
    for external_id in ("A1", "A2", "A3", "A4"):
        storage.insert_job(_job(external_id))

    storage.delete_job("A1")
    storage.delete_job("missing")
    removed = storage.delete_jobs(["A2", "A3", "nope"])

    assert removed == 2
    assert [job.external_id for job in storage.list_jobs()] == ["A4"]
    assert storage.delete_jobs([]) == 0


def test_execution_counters_never_decrease(storage):
    execution = storage.create_execution(current_step="Initializing")
    assert execution.status == "running"
    assert execution.start_time is not None

    storage.update_execution(execution.id, processed_jobs=5, total_jobs=10)
    updated = storage.update_execution(execution.id, processed_jobs=3, current_step="Processing")

    assert updated.processed_jobs == 5
    assert updated.total_jobs == 10
    assert updated.current_step == "Processing"


def test_update_unknown_execution_raises(storage):
    with pytest.raises(LookupError):
        storage.update_execution(999, status="failed")


def test_latest_execution_is_the_newest(storage):
    assert storage.get_latest_execution() is None
    storage.create_execution()
    second = storage.create_execution()
    storage.update_execution(second.id, status="completed")

    latest = storage.get_latest_execution()
    assert latest.id == second.id
    assert latest.status == "completed"


def test_logs_are_newest_first_and_limited(storage):
    for i in range(5):
        storage.append_log(f"entry {i}", level="info")

    recent = storage.list_recent_logs(3)

    assert [log.message for log in recent] == ["entry 4", "entry 3", "entry 2"]
    storage.clear_logs()
    assert storage.list_recent_logs() == []


def test_log_keeps_execution_reference(storage):
    execution = storage.create_execution()

    storage.append_log("Pipeline started", level="success", execution_id=execution.id)

    log = storage.list_recent_logs(1)[0]
    assert log.execution_id == execution.id
    assert log.level == "success"


def test_memory_storage_caps_log_history():
    storage = MemoryStorage()
    for i in range(MAX_LOGS + 20):
        storage.append_log(f"entry {i}")

    logs = storage.list_recent_logs(MAX_LOGS + 50)

    assert len(logs) == MAX_LOGS
    assert logs[0].message == f"entry {MAX_LOGS + 19}"
