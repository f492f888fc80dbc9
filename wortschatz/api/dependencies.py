"""FastAPI dependencies shared by the library routers."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from wortschatz.db.connection import get_db
from wortschatz.services.auth_service import SessionService
from wortschatz.settings import get_settings


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_session_service(session: AsyncSession = Depends(get_db)) -> SessionService:
    return SessionService(session, lifetime_hours=get_settings().session_lifetime_hours)


async def get_current_user_id(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
) -> str:
    """Resolve the caller from ``Authorization: Bearer``; guests get a 401."""

    token = _bearer_token(request)
    user_id = await sessions.resolve_user_id(token) if token else None
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
