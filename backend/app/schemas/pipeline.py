from __future__ import annotations
from datetime import datetime

from pydantic import BaseModel, Field


class PipelineStartRequest(BaseModel):
    batch_size: int | None = Field(default=None, gt=0)


class PipelineStartResponse(BaseModel):
    execution_id: int
    batch_size: int
    message: str


class PipelineCancelResponse(BaseModel):
    cancelled: bool
    message: str


class ExecutionOut(BaseModel):
    id: int
    status: str
    start_time: datetime
    end_time: datetime | None
    total_jobs: int
    processed_jobs: int
    new_jobs: int
    removed_jobs: int
    current_step: str
    error_message: str | None

    class Config:
        from_attributes = True


class ActivityLogOut(BaseModel):
    id: int
    message: str
    level: str
    timestamp: datetime
    execution_id: int | None

    class Config:
        from_attributes = True


class SystemStatus(BaseModel):
    algolia: bool
    azure_openai: bool
    google_geocoding: bool
    database: bool
    missing: list[str]
    pipeline_running: bool
