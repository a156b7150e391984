"""
User Management API - Main FastAPI Application.

Provides signup, login, profile editing and admin user management on top of
PostgreSQL with JWT authentication.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import asyncpg
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .database import db_manager
from .dependencies import get_optional_user
from .exceptions import AppError, TooManyRequestsError, ValidationError
from .logging_config import get_logger, setup_logging
from .models import CurrentUser
from .responses import send_error, send_success
from .routers import auth, users

# Setup logging
setup_logging(log_level=settings.LOG_LEVEL, service_name="user-management")
logger = get_logger(__name__)

START_TIME = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events for the application.
    """
    # Startup
    logger.info(
        "Starting User Management API",
        app_name=settings.APP_NAME,
        environment=settings.ENVIRONMENT,
        log_level=settings.LOG_LEVEL,
    )

    await db_manager.connect()
    logger.info("PostgreSQL connection pool initialized")

    yield

    # Shutdown
    logger.info("Shutting down User Management API...")
    await db_manager.disconnect()


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="User management API with JWT authentication and role-based access control",
    version=settings.APP_VERSION,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


if settings.is_development:

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its status and duration."""
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response


app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")


# Health & Info Endpoints


@app.get("/")
async def root(current_user: Optional[CurrentUser] = Depends(get_optional_user)):
    """Root endpoint with service information."""
    return send_success(
        message="User Management API",
        data={
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "documentation": "/api/docs" if settings.DEBUG else None,
            "authenticated": current_user is not None,
            "endpoints": {
                "auth": "/api/auth",
                "users": "/api/users",
                "health": "/api/health",
            },
        },
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    db_healthy = False
    try:
        result = await db_manager.fetchval("SELECT 1")
        db_healthy = result == 1
    except Exception as e:
        logger.error("Database health check failed", error=str(e))

    return send_success(
        message="Server is running" if db_healthy else "Server is running, database unavailable",
        data={
            "status": "healthy" if db_healthy else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.time() - START_TIME, 2),
            "environment": settings.ENVIRONMENT,
            "database": "connected" if db_healthy else "disconnected",
        },
    )


# Exception Handlers


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Render application errors in the error envelope."""
    log = logger.warning if exc.is_client_error else logger.error
    log(
        "Request failed",
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
        code=exc.code,
        reason=exc.message,
    )

    headers = None
    if isinstance(exc, TooManyRequestsError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}

    return send_error(
        status_code=exc.status_code,
        message=exc.message,
        code=exc.code,
        errors=exc.errors if isinstance(exc, ValidationError) else None,
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters answer 400 like any other validation failure."""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or "body",
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return send_error(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="Validation failed",
        code="VALIDATION_ERROR",
        errors=errors,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return send_error(
            status_code=status.HTTP_404_NOT_FOUND,
            message=f"Route not found: {request.method} {request.url.path}",
            code="NOT_FOUND",
        )
    return send_error(
        status_code=exc.status_code,
        message=str(exc.detail),
        code="HTTP_ERROR",
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(asyncpg.UniqueViolationError)
async def unique_violation_handler(request: Request, exc: asyncpg.UniqueViolationError):
    logger.warning("Unique constraint violated", constraint=getattr(exc, "constraint_name", None))
    return send_error(
        status_code=status.HTTP_409_CONFLICT,
        message="A record with this value already exists",
        code="DUPLICATE_ENTRY",
    )


@app.exception_handler(asyncpg.ForeignKeyViolationError)
async def foreign_key_violation_handler(
    request: Request, exc: asyncpg.ForeignKeyViolationError
):
    logger.warning(
        "Foreign key constraint violated", constraint=getattr(exc, "constraint_name", None)
    )
    return send_error(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="Referenced record does not exist",
        code="INVALID_REFERENCE",
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        exc_info=True,
    )
    return send_error(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=str(exc) if settings.is_development else "Internal server error",
        code="INTERNAL_ERROR",
    )


def main() -> None:
    import uvicorn

    uvicorn.run(
        "user_management.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
