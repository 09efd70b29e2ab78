from __future__ import annotations
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer

from app.core.config import settings
from app.services.pipeline_runner import PipelineRunner, get_pipeline_runner
from app.services.scheduler import PipelineScheduler, get_scheduler
from app.storage.base import PipelineStorage
from app.utils.auth import verify_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/auth/login")


def require_user(token: str = Depends(oauth2_scheme)) -> str:
    subject = verify_access_token(token)
    if not subject:
        raise HTTPException(status_code=401, detail="Invalid token")
    return subject


def verify_login(username: str, password: str) -> bool:
    return username == settings.auth_username and password == settings.auth_password


def get_runner() -> PipelineRunner:
    return get_pipeline_runner()


def get_storage(runner: PipelineRunner = Depends(get_runner)) -> PipelineStorage:
    return runner.orchestrator.storage


def get_pipeline_scheduler() -> PipelineScheduler:
    return get_scheduler()
