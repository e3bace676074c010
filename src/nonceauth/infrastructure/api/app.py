"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
and lifecycle handlers.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nonceauth.core.config import Settings, get_settings
from nonceauth.core.exceptions import (
    AuthenticationError,
    ErrorDetail,
    NonceAuthError,
    TransportError,
    ValidationError,
)
from nonceauth.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from nonceauth.infrastructure.api.middleware import ForceHTTPSMiddleware
from nonceauth.infrastructure.persistence.database import DatabaseManager, init_database
from nonceauth.infrastructure.persistence.reaper import ExpiryReaper
from nonceauth.infrastructure.services.email_service import EmailService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes the database and runs the expired-token reaper while the
    application serves.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings = app.state.settings
    db: DatabaseManager = app.state.db
    configure_logging(settings)

    logger.info(
        "Starting NonceAuth",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        mode=settings.mode.value,
    )

    try:
        await init_database(db)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    reaper = ExpiryReaper(db, interval_seconds=settings.reaper_interval_seconds)
    reaper.start()
    app.state.reaper = reaper

    yield

    logger.info("Shutting down NonceAuth")
    await reaper.stop()
    await db.disconnect()
    logger.info("Database connection closed")


def create_app(settings: Settings | None = None, email_service: EmailService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to configure from. Defaults to the cached settings.
        email_service: Email service to inject. Defaults to one built from
            the settings.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Passwordless multi-device authentication",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = DatabaseManager(settings)
    app.state.email_service = email_service or EmailService.from_settings(settings)

    register_health_check(app)
    register_routes(app, settings)
    register_exception_handlers(app, settings)
    register_middleware(app, settings)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not check
        database connectivity.
        """
        return {
            "status": "healthy",
            "service": app.state.settings.app_name,
            "version": app.state.settings.app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check endpoint, including database connectivity."""
        db_healthy = await app.state.db.check_connection()

        if db_healthy:
            return {
                "status": "ready",
                "service": app.state.settings.app_name,
                "version": app.state.settings.app_version,
                "database": "connected",
            }
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": app.state.settings.app_name,
                "database": "disconnected",
            },
        )


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
        settings: Application settings.
    """
    from nonceauth.infrastructure.api.routes import user_router

    app.include_router(user_router, prefix=f"{settings.api_prefix}/user", tags=["user"])


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the structured error body shared by every failure."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "status": status_code,
                "code": code,
                "message": message,
                "details": [
                    {"field": d.field, "message": d.message, "code": d.code}
                    for d in details or []
                ],
            }
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance.
        settings: Application settings.
    """

    @app.exception_handler(TransportError)
    async def transport_error_handler(request: Request, exc: TransportError):
        """Log email failures and answer with a generic error."""
        logger.error(
            "Email transport failure",
            path=request.url.path,
            method=request.method,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
        return error_response(500, "server_error", "An unexpected error occurred")

    @app.exception_handler(NonceAuthError)
    async def nonceauth_error_handler(request: Request, exc: NonceAuthError):
        """Render service errors as structured responses."""
        headers = None
        if isinstance(exc, AuthenticationError):
            headers = {"WWW-Authenticate": "Bearer"}
        logger.info(
            "Request failed",
            path=request.url.path,
            status_code=exc.status_code,
            error_code=exc.error_code,
        )
        return error_response(exc.status_code, exc.error_code, exc.message, exc.details, headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Render malformed request bodies like service validation errors."""
        details = [
            ErrorDetail(
                field=".".join(str(part) for part in error.get("loc", ())[1:]) or "body",
                message=error.get("msg", "Invalid value"),
                code=error.get("type", "invalid"),
            )
            for error in exc.errors()
        ]
        return error_response(
            ValidationError.status_code,
            ValidationError.error_code,
            ValidationError.default_message,
            details,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return error_response(
            500,
            "server_error",
            str(exc) if settings.debug else "An unexpected error occurred",
        )


def register_middleware(app: FastAPI, settings: Settings) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
        settings: Application settings.
    """
    if settings.force_https and not settings.is_development:
        app.add_middleware(ForceHTTPSMiddleware)

    @app.middleware("http")
    async def logging_middleware(request, call_next):
        """Middleware to log all requests and add correlation ID."""
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()


# Create the application instance
app = create_app()
