"""
Authentication routes with server-side session management.

The httpOnly `session_token` cookie holds a signed reference to a row in the
`sessions` table. Logout deletes that row, so the cookie stops working even
before it expires.
"""
import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Response, Cookie, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import Unauthorized, ValidationError
from app.core.security import decode_session_token, encode_session_token
from app.db import get_db
from app.api.schemas.audits import (
    LoginRequest, LoginResponse, RegisterRequest, RegisterResponse,
)
from app.services.credentials import CredentialStore
from app.services.records import Identity
from app.services.sessions import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter()

# Cookie settings
COOKIE_NAME = "session_token"


def _get_cookie_settings() -> dict:
    """Get cookie settings based on environment"""
    is_prod = settings.ENV == "prod"
    return {
        "httponly": True,
        "secure": is_prod,  # HTTPS only in production
        "samesite": "lax",
        "max_age": settings.session_max_age,
    }


async def get_current_identity(
    session_token: Optional[str] = Cookie(default=None, alias=COOKIE_NAME),
    db: AsyncSession = Depends(get_db),
) -> Identity:
    """
    Resolve the session cookie to an identity.

    Missing, tampered, expired or logged-out sessions all raise Unauthorized.
    """
    session_id = decode_session_token(session_token) if session_token else None
    if not session_id:
        raise Unauthorized()

    identity = await SessionStore(db).resolve(session_id)
    if identity is None:
        raise Unauthorized()
    return identity


# Dependency to protect routes
require_identity = Depends(get_current_identity)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an account with a fixed role"""
    user_id = await CredentialStore(db).create_user(data.username, data.password, data.role)
    return RegisterResponse(userId=user_id)


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """
    Verify credentials, open a server-side session and set the session cookie.
    """
    if not data.username or not data.password:
        raise ValidationError("Missing fields")

    identity = await CredentialStore(db).verify(data.username, data.password)
    session = await SessionStore(db).create(
        identity, timedelta(hours=settings.SESSION_LIFETIME_HOURS)
    )

    response.set_cookie(
        key=COOKIE_NAME,
        value=encode_session_token(session.id, session.expires_at),
        **_get_cookie_settings()
    )
    logger.info("User %s logged in", identity.username)
    return LoginResponse(user=identity)


@router.post("/logout")
async def logout(
    response: Response,
    session_token: Optional[str] = Cookie(default=None, alias=COOKIE_NAME),
    db: AsyncSession = Depends(get_db),
):
    """Logout - destroy the session and clear the cookie"""
    session_id = decode_session_token(session_token) if session_token else None
    if session_id:
        await SessionStore(db).destroy(session_id)
    response.delete_cookie(COOKIE_NAME)
    return {"message": "Logged out"}


@router.get("/me", response_model=Identity)
async def get_current_user(identity: Identity = require_identity):
    """Current identity (also serves as session verification)"""
    return identity
