"""Bearer-token sessions backing the library API's authentication check."""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from wortschatz.db.models import UserSession

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionService:
    """Issue, resolve and revoke opaque bearer tokens."""

    def __init__(self, session: AsyncSession, *, lifetime_hours: int) -> None:
        self._session = session
        self._lifetime = timedelta(hours=lifetime_hours)

    async def issue_token(self, user_id: str) -> str:
        """Create a session for ``user_id`` and return the raw token once."""

        token = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        self._session.add(
            UserSession(
                token_hash=hash_token(token),
                user_id=user_id,
                created_at=now,
                expires_at=now + self._lifetime,
            )
        )
        await self._session.flush()
        return token

    async def resolve_user_id(self, token: str) -> str | None:
        """Return the owner of ``token``, or ``None`` when unknown or expired."""

        result = await self._session.execute(
            select(UserSession).where(UserSession.token_hash == hash_token(token))
        )
        record = result.scalars().one_or_none()
        if record is None:
            return None
        if _as_utc(record.expires_at) <= datetime.now(timezone.utc):
            logger.debug("Rejecting expired session for %s", record.user_id)
            await self.revoke(token)
            return None
        return record.user_id

    async def revoke(self, token: str) -> None:
        await self._session.execute(
            delete(UserSession).where(UserSession.token_hash == hash_token(token))
        )
        await self._session.flush()
