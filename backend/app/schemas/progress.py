from __future__ import annotations
from typing import Literal

from pydantic import BaseModel


class StatusEvent(BaseModel):
    type: Literal["status"] = "status"
    step: str
    progress: int
    total_jobs: int | None = None
    processed_jobs: int | None = None


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    total_jobs: int
    processed_jobs: int
    new_jobs: int
    removed_jobs: int
    message: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str
