from __future__ import annotations
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.core.config import settings


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    ttl = timedelta(minutes=expires_minutes if expires_minutes is not None else settings.jwt_expire_minutes)
    now = datetime.now(timezone.utc)
    claims = {"sub": subject, "iat": now, "exp": now + ttl, "scope": "pipeline"}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> str | None:
    """Subject of a valid pipeline token, or None for anything expired, forged or malformed."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if claims.get("scope") != "pipeline":
        return None
    return claims.get("sub")
