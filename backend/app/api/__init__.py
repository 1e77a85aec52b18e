from fastapi import APIRouter

from app.api.routes import audits, auth
from app.api.routes.auth import require_identity

router = APIRouter()

# Auth routes - register/login/logout are public, /me checks the session itself
router.include_router(auth.router, tags=["auth"])

# Protected routes - require an authenticated session
router.include_router(
    audits.router,
    prefix="/audits",
    tags=["audits"],
    dependencies=[require_identity],
)
