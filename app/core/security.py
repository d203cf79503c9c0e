# app/core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, HTTPException, Request
from jose import jwt, JWTError

from app.core.config import settings

logger = logging.getLogger(__name__)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign an owner token that :func:`get_current_owner` accepts.

    The gateway does not log owners in itself. This is the helper for
    whatever issues owner tokens outside the app, and for the test suite.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

async def get_current_owner(request: Request, access_token: Optional[str] = Cookie(None)) -> str:
    """Owner id (JWT ``sub``) from the access_token cookie or a Bearer header."""
    token = access_token

    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:].strip()

    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    if not settings.SECRET_KEY:
        logger.error("SECRET_KEY is not configured; refusing owner tokens")
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected owner token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")

    owner_id = payload.get("sub")
    if not owner_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return str(owner_id)
