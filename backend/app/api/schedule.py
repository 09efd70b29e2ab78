from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_pipeline_scheduler, get_runner, require_user
from app.core.config import settings
from app.core.errors import PipelineAlreadyRunning
from app.schemas.pipeline import PipelineStartResponse
from app.schemas.schedule import ScheduleOut, ScheduleUpdate
from app.services.pipeline_runner import PipelineRunner
from app.services.scheduler import PipelineScheduler

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("", response_model=ScheduleOut)
def get_schedule(_: str = Depends(require_user), scheduler: PipelineScheduler = Depends(get_pipeline_scheduler)):
    return scheduler.load_config()


@router.put("", response_model=ScheduleOut)
def put_schedule(
    body: ScheduleUpdate,
    _: str = Depends(require_user),
    scheduler: PipelineScheduler = Depends(get_pipeline_scheduler),
):
    return scheduler.configure(body.model_dump(exclude_unset=True))


@router.post("/test", response_model=PipelineStartResponse)
def test_schedule(_: str = Depends(require_user), runner: PipelineRunner = Depends(get_runner)):
    batch_size = settings.scheduled_batch_size
    try:
        execution_id = runner.start(batch_size)
    except PipelineAlreadyRunning as exc:
        raise HTTPException(status_code=409, detail="Pipeline is already running") from exc
    runner.orchestrator.storage.append_log(f"Test run of scheduled pipeline started (execution {execution_id})")
    return PipelineStartResponse(
        execution_id=execution_id,
        batch_size=batch_size,
        message=f"Scheduled pipeline test started with batch size {batch_size}",
    )
