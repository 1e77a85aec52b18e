"""
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AuditAppError
from app.core.logging import configure_logging
from app.db.database import Database
from app.api import router as api_router
from app.services.credentials import CredentialStore

configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    logger.info("Starting %s", settings.APP_NAME)
    database = Database(settings.DATABASE_URL, echo=settings.DEBUG)
    database.ensure_storage_dir()

    # NOTE: Alembic owns the schema in production (`alembic upgrade head`).
    # AUTO_CREATE_SCHEMA bootstraps a fresh single-file database.
    if settings.AUTO_CREATE_SCHEMA:
        await database.create_schema()

    if settings.SEED_DEMO_USERS:
        async with database.session() as session:
            created = await CredentialStore(session).seed_users()
            logger.info("Demo users seeded: %d created", created)

    app.state.database = database

    yield

    # Shutdown
    await database.dispose()
    logger.info("Shutting down")


app = FastAPI(
    title=settings.APP_NAME,
    description="Purchase request submission and approval",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware - origins from env variable (comma-separated)
cors_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Error envelope: every failure is {"error": message} ===

def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


@app.exception_handler(AuditAppError)
async def app_error_handler(request: Request, exc: AuditAppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = str(exc.detail)
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found" and request.url.path.startswith("/api"):
        message = "API endpoint not found"
    return _error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request")

    first = errors[0]
    # Drop the "body" prefix so messages read "username: ..."
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first['msg']}" if field else first["msg"]
    logger.debug("Validation failed on %s: %s", request.url.path, message)
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.critical("Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path, exc_info=exc)
    # Don't expose internal error details
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "app": settings.APP_NAME}
