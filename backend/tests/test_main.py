"""
Tests for main application
"""
import pytest
from httpx import AsyncClient, ASGITransport
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from app.core.config import DEFAULT_SECRET_KEY, Settings
from app.main import app
from app.services.audits import AuditRepository


class TestHealthCheck:
    """Tests for health check endpoint"""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        """Test health check returns healthy status"""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["app"] == "Purchase Audit Desk"


class TestAppConfiguration:
    """Tests for application configuration"""

    @pytest.mark.asyncio
    async def test_cors_headers(self, client: AsyncClient):
        """Test CORS preflight allows the configured frontend with credentials"""
        response = await client.options(
            "/api/audits",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            }
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-allow-credentials"] == "true"

    @pytest.mark.asyncio
    async def test_unknown_api_route(self, client: AsyncClient):
        response = await client.get("/api/nonexistent")

        assert response.status_code == 404
        assert response.json() == {"error": "API endpoint not found"}

    @pytest.mark.asyncio
    async def test_wrong_method(self, client: AsyncClient):
        response = await client.delete("/api/audits")

        assert response.status_code == 405
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_malformed_json_body(self, client: AsyncClient):
        response = await client.post(
            "/api/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert "error" in response.json()


class TestErrorEnvelope:
    """Unexpected failures never leak internals"""

    @pytest.mark.asyncio
    async def test_database_error(self, alice_client: AsyncClient, monkeypatch):
        async def broken(self, identity):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(AuditRepository, "list_for", broken)

        response = await alice_client.get("/api/audits")

        assert response.status_code == 500
        assert response.json() == {"error": "Database error"}

    @pytest.mark.asyncio
    async def test_unhandled_error(self, client_factory, alice, login_as, monkeypatch):
        async def broken(self, identity):
            raise RuntimeError("secret stack detail")

        monkeypatch.setattr(AuditRepository, "list_for", broken)

        # The server error middleware re-raises after responding
        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            await login_as(ac, "alice")
            response = await ac.get("/api/audits")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "secret" not in response.text


class TestSettings:
    """Tests for production settings guards"""

    PROD = {
        "ENV": "prod",
        "DEBUG": False,
        "SECRET_KEY": "x" * 40,
        "CORS_ORIGINS": "https://audit.example.com",
        "SEED_DEMO_USERS": False,
    }

    def test_valid_prod_settings(self):
        settings = Settings(**self.PROD)
        assert settings.session_max_age == 24 * 3600

    @pytest.mark.parametrize(
        "override",
        [
            {"DEBUG": True},
            {"SECRET_KEY": DEFAULT_SECRET_KEY},
            {"SECRET_KEY": "too-short"},
            {"CORS_ORIGINS": "http://localhost:3000"},
            {"SEED_DEMO_USERS": True},
        ],
    )
    def test_unsafe_prod_settings(self, override):
        with pytest.raises(ValidationError):
            Settings(**{**self.PROD, **override})

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_bcrypt_rounds_bounds(self, rounds):
        with pytest.raises(ValidationError):
            Settings(BCRYPT_ROUNDS=rounds)

    def test_dev_defaults(self):
        settings = Settings(ENV="dev")
        assert settings.SESSION_LIFETIME_HOURS == 24
        assert settings.DATABASE_URL.startswith("sqlite+aiosqlite:///")
