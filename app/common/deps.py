"""Shared FastAPI dependencies for authentication and request context."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, EmailStr

from app.core.config import get_settings
from app.db.supabase import get_supabase


logger = logging.getLogger("auth.deps")
security = HTTPBearer(auto_error=True)


class CurrentUser(BaseModel):
    """Minimal user identity shared across endpoints."""
    id: str
    email: EmailStr
    role: str = "student"
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or str(self.email)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """Resolve and return the current authenticated user.

    Steps:
      1. Validate bearer token via Supabase Auth (clamped by AUTH_WHOAMI_TIMEOUT)
      2. Build the typed minimal identity object from the auth user
      3. Log request with X-Request-Id if provided
    """
    client = await get_supabase()
    token = credentials.credentials
    try:
        t0 = time.perf_counter()
        auth_user = await asyncio.wait_for(
            client.auth.get_user(token), timeout=get_settings().auth_whoami_timeout
        )
        ms = int((time.perf_counter() - t0) * 1000)
        if ms > 50:
            logger.info("auth.get_user_ms=%d", ms)
    except Exception as exc:  # noqa: BLE001
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials") from exc

    if not auth_user or not auth_user.user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials")

    sup_user = auth_user.user
    metadata = sup_user.user_metadata or {}
    email = sup_user.email or metadata.get("email")
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User email missing in token")

    role = (sup_user.app_metadata or {}).get("role") or metadata.get("role") or "student"
    current = CurrentUser(id=str(sup_user.id), email=email, role=role, full_name=metadata.get("full_name"))

    request_id = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    if request_id:
        request.state.request_id = request_id
    logger.info(
        "auth_resolved user_id=%s role=%s request_id=%s path=%s",
        current.id,
        current.role,
        request_id,
        request.url.path,
    )
    return current
