from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_runner, get_storage, require_user
from app.core.config import settings
from app.core.errors import PipelineAlreadyRunning
from app.schemas.job import EnrichedJobOut
from app.schemas.pipeline import (
    ExecutionOut,
    PipelineCancelResponse,
    PipelineStartRequest,
    PipelineStartResponse,
)
from app.services.pipeline_runner import PipelineRunner
from app.storage.base import PipelineStorage

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.post("/start", response_model=PipelineStartResponse)
def start_pipeline(
    body: PipelineStartRequest | None = None,
    _: str = Depends(require_user),
    runner: PipelineRunner = Depends(get_runner),
):
    batch_size = (body.batch_size if body else None) or settings.default_batch_size
    try:
        execution_id = runner.start(batch_size)
    except PipelineAlreadyRunning as exc:
        raise HTTPException(status_code=409, detail="Pipeline is already running") from exc
    return PipelineStartResponse(
        execution_id=execution_id,
        batch_size=batch_size,
        message=f"Pipeline started with batch size {batch_size}",
    )


@router.post("/cancel", response_model=PipelineCancelResponse)
def cancel_pipeline(_: str = Depends(require_user), runner: PipelineRunner = Depends(get_runner)):
    cancelled = runner.cancel()
    message = "cancellation requested" if cancelled else "no pipeline run in progress"
    return PipelineCancelResponse(cancelled=cancelled, message=message)


@router.get("/status", response_model=ExecutionOut | None)
def pipeline_status(_: str = Depends(require_user), storage: PipelineStorage = Depends(get_storage)):
    return storage.get_latest_execution()


@router.get("/processed-jobs", response_model=list[EnrichedJobOut])
def processed_jobs(_: str = Depends(require_user), runner: PipelineRunner = Depends(get_runner)):
    return [job.to_dict() for job in runner.orchestrator.last_enriched]
