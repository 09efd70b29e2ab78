from __future__ import annotations
import logging

from fastapi import APIRouter, HTTPException

from app.api.deps import verify_login
from app.core.config import settings
from app.schemas.auth import LoginRequest, TokenResponse
from app.utils.auth import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest):
    if not verify_login(req.username, req.password):
        logger.warning("rejected dashboard login for %r", req.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenResponse(
        access_token=create_access_token(req.username),
        expires_in=settings.jwt_expire_minutes * 60,
    )
