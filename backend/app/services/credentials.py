"""
Credential store: user accounts, roles and password verification.
"""
import logging
from typing import Iterable, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DuplicateUsername, InvalidCredentials
from app.core.security import get_password_hash, verify_password
from app.db.models import Role, User
from app.services.records import Identity

logger = logging.getLogger(__name__)

# Demo accounts, created at startup when SEED_DEMO_USERS is on
DEMO_USERS: Tuple[Tuple[str, str, Role], ...] = (
    ("auditor", "auditor123", Role.AUDITOR),
    ("user", "user123", Role.USER),
)


def to_identity(user: User) -> Identity:
    return Identity(id=user.id, username=user.username, role=user.role)


class CredentialStore:
    """User persistence and login verification"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_identity(self, user_id: int) -> Optional[Identity]:
        user = await self.db.get(User, user_id)
        return to_identity(user) if user else None

    async def create_user(self, username: str, secret: str, role: Role) -> int:
        """
        Store a new account and return its id.

        Username match is case-sensitive. Hashing runs in the threadpool so it
        only blocks this request.
        """
        if await self.find_by_username(username) is not None:
            raise DuplicateUsername()

        password_hash = await run_in_threadpool(get_password_hash, secret)
        user = User(username=username, password_hash=password_hash, role=role)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            await self.db.rollback()
            raise DuplicateUsername() from None

        logger.info("Registered user %s (role=%s)", username, role.value)
        return user.id

    async def verify(self, username: str, secret: str) -> Identity:
        user = await self.find_by_username(username)
        if user is None:
            logger.info("Login failed for %s", username)
            raise InvalidCredentials()

        matches = await run_in_threadpool(verify_password, secret, user.password_hash)
        if not matches:
            logger.info("Login failed for %s", username)
            raise InvalidCredentials()

        return to_identity(user)

    async def seed_users(self, accounts: Iterable[Tuple[str, str, Role]] = DEMO_USERS) -> int:
        """Create missing accounts; existing usernames are left alone"""
        created = 0
        for username, secret, role in accounts:
            if await self.find_by_username(username) is not None:
                continue
            try:
                await self.create_user(username, secret, role)
            except DuplicateUsername:
                continue
            logger.info("Seeded user: %s (Role: %s)", username, role.value)
            created += 1
        return created
