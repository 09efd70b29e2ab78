from __future__ import annotations
from fastapi import APIRouter, Depends

from app.api.deps import get_runner, require_user
from app.core.config import missing_required_settings, settings
from app.schemas.pipeline import SystemStatus
from app.services.pipeline_runner import PipelineRunner

router = APIRouter(prefix="/system-status", tags=["system"])


@router.get("", response_model=SystemStatus)
def system_status(_: str = Depends(require_user), runner: PipelineRunner = Depends(get_runner)):
    missing = missing_required_settings(settings)
    return SystemStatus(
        algolia="ALGOLIA_APPLICATION_ID" not in missing and "ALGOLIA_API_KEY" not in missing,
        azure_openai=not any(name.startswith("AZURE_OPENAI") for name in missing),
        google_geocoding="GOOGLE_GEOCODING_API_KEY" not in missing,
        database="DATABASE_URL" not in missing,
        missing=missing,
        pipeline_running=runner.is_running,
    )
