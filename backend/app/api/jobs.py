from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_storage, require_user
from app.schemas.job import JobOut
from app.storage.base import PipelineStorage

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=list[JobOut])
def list_jobs(
    q: str | None = None,
    state: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    _: str = Depends(require_user),
    storage: PipelineStorage = Depends(get_storage),
):
    jobs = storage.list_jobs()
    if q:
        needle = q.lower()
        jobs = [
            j for j in jobs
            if needle in j.title.lower() or needle in j.company_name.lower() or needle in j.city.lower()
        ]
    if state:
        wanted = state.lower()
        jobs = [j for j in jobs if wanted in (j.state.lower(), j.state_abbrev.lower())]
    jobs.sort(key=lambda j: j.created_at, reverse=True)
    return jobs[offset : offset + limit]


@router.get("/{external_id}", response_model=JobOut)
def get_job(external_id: str, _: str = Depends(require_user), storage: PipelineStorage = Depends(get_storage)):
    job = storage.get_job(external_id)
    if not job:
        raise HTTPException(status_code=404, detail="job not found")
    return job


@router.delete("")
def clear_jobs(_: str = Depends(require_user), storage: PipelineStorage = Depends(get_storage)):
    removed = storage.delete_jobs([j.external_id for j in storage.list_jobs()])
    storage.append_log(f"Cleared {removed} stored jobs", level="warning")
    return {"success": True, "removed_jobs": removed}
