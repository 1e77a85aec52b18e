"""
Password hashing and session cookie signing.

Passwords are hashed with bcrypt through passlib. The session cookie holds a
signed JWT whose only claim of interest is the server-side session id.
"""
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import settings

JWT_ALGORITHM = "HS256"


@lru_cache
def _pwd_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password for storing."""
    return _pwd_context(rounds or settings.BCRYPT_ROUNDS).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    try:
        return _pwd_context(settings.BCRYPT_ROUNDS).verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognizable hash
        return False


def encode_session_token(session_id: str, expires_at: datetime) -> str:
    """Sign a session id into the cookie value"""
    now = datetime.now(timezone.utc)
    payload = {
        "sid": session_id,
        # Use numeric timestamps for compatibility across JWT libs
        "exp": int(expires_at.replace(tzinfo=timezone.utc).timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[str]:
    """Verify cookie signature and return the session id if valid"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None
