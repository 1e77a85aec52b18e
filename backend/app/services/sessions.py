"""
Server-side login sessions.

The cookie only carries a signed reference to a row here; deleting the row
(logout) revokes the cookie immediately. Lifetime is fixed at creation.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User, UserSession
from app.services.credentials import to_identity
from app.services.records import Identity

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, identity: Identity, lifetime: timedelta) -> UserSession:
        now = datetime.utcnow()
        await self.purge_expired(now)

        session = UserSession(
            id=secrets.token_urlsafe(32),
            user_id=identity.id,
            created_at=now,
            expires_at=now + lifetime,
        )
        self.db.add(session)
        await self.db.commit()
        return session

    async def resolve(self, session_id: str) -> Optional[Identity]:
        """Identity behind a live session, or None if unknown or expired"""
        result = await self.db.execute(
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(UserSession.id == session_id)
            .where(UserSession.expires_at > datetime.utcnow())
        )
        user = result.scalar_one_or_none()
        return to_identity(user) if user else None

    async def destroy(self, session_id: str) -> None:
        await self.db.execute(delete(UserSession).where(UserSession.id == session_id))
        await self.db.commit()

    async def purge_expired(self, now: Optional[datetime] = None) -> None:
        result = await self.db.execute(
            delete(UserSession).where(UserSession.expires_at <= (now or datetime.utcnow()))
        )
        if result.rowcount:
            logger.debug("Purged %d expired sessions", result.rowcount)
