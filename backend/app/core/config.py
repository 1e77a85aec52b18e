from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


DEFAULT_SECRET_KEY = "audit-secret-key-change-in-production"


def _default_database_url() -> str:
    """
    Compute default DATABASE_URL when env var is not set.

    - In containers we usually mount the database file under /data.
    - In local dev we default to <repo_root>/data/audit_system.db to avoid requiring root perms.
    """
    docker_path = Path("/data")
    if docker_path.exists():
        return f"sqlite+aiosqlite:///{docker_path / 'audit_system.db'}"

    # backend/app/core/config.py -> repo_root is 3 levels up from `backend/`
    repo_root = Path(__file__).resolve().parents[3]
    return f"sqlite+aiosqlite:///{repo_root / 'data' / 'audit_system.db'}"


class Settings(BaseSettings):
    """Application settings"""

    # App
    APP_NAME: str = "Purchase Audit Desk"
    ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Database (single-file SQLite)
    DATABASE_URL: str = Field(default_factory=_default_database_url)
    AUTO_CREATE_SCHEMA: bool = True

    # Auth
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    SESSION_LIFETIME_HOURS: int = 24
    BCRYPT_ROUNDS: int = 10

    # Demo accounts (auditor/auditor123, user/user123)
    SEED_DEMO_USERS: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def session_max_age(self) -> int:
        """Session cookie lifetime in seconds"""
        return self.SESSION_LIFETIME_HOURS * 60 * 60

    @model_validator(mode="after")
    def _validate_prod_settings(self) -> "Settings":
        if self.ENV == "prod":
            if self.DEBUG:
                raise ValueError("DEBUG must be false when ENV=prod")

            if (
                not self.SECRET_KEY
                or self.SECRET_KEY == DEFAULT_SECRET_KEY
                or len(self.SECRET_KEY) < 32
            ):
                raise ValueError("SECRET_KEY must be set to a strong value (>= 32 chars) when ENV=prod")

            # Avoid accidentally allowing localhost origins in production.
            if "localhost" in self.CORS_ORIGINS or "127.0.0.1" in self.CORS_ORIGINS:
                raise ValueError("CORS_ORIGINS must not include localhost when ENV=prod")

            if self.SEED_DEMO_USERS:
                raise ValueError("SEED_DEMO_USERS must be false when ENV=prod")

        if self.BCRYPT_ROUNDS < 4 or self.BCRYPT_ROUNDS > 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")

        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
