from __future__ import annotations
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_storage, require_user
from app.schemas.pipeline import ActivityLogOut
from app.storage.base import PipelineStorage

router = APIRouter(prefix="/activity-logs", tags=["activity"])


@router.get("", response_model=list[ActivityLogOut])
def list_activity_logs(
    limit: int = Query(default=20, ge=1, le=100),
    _: str = Depends(require_user),
    storage: PipelineStorage = Depends(get_storage),
):
    return storage.list_recent_logs(limit)


@router.delete("")
def clear_activity_logs(_: str = Depends(require_user), storage: PipelineStorage = Depends(get_storage)):
    storage.clear_logs()
    return {"success": True, "message": "activity logs cleared"}
