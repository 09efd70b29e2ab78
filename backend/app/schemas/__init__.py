from __future__ import annotations
from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.job import EnrichedJobOut, JobOut
from app.schemas.pipeline import (
    ActivityLogOut,
    ExecutionOut,
    PipelineCancelResponse,
    PipelineStartRequest,
    PipelineStartResponse,
    SystemStatus,
)
from app.schemas.progress import CompleteEvent, ErrorEvent, StatusEvent
from app.schemas.schedule import ScheduleOut, ScheduleUpdate

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "JobOut",
    "EnrichedJobOut",
    "ActivityLogOut",
    "ExecutionOut",
    "PipelineCancelResponse",
    "PipelineStartRequest",
    "PipelineStartResponse",
    "SystemStatus",
    "StatusEvent",
    "CompleteEvent",
    "ErrorEvent",
    "ScheduleOut",
    "ScheduleUpdate",
]
