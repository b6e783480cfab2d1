"""
SkillBridge API Server

FastAPI application for the SkillBridge tutoring marketplace.
Students browse and book tutors, tutors run their sessions and admins moderate.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillbridge.api.responses import error_body
from skillbridge.api.v1.api import api_router
from skillbridge.api.v1.endpoints import auth as auth_proxy
from skillbridge.core.auth import AuthProvider, RemoteAuthProvider, SessionStoreAuthProvider
from skillbridge.core.config import Settings, settings as default_settings
from skillbridge.core.database import Database
from skillbridge.core.exceptions import SkillBridgeException

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_auth_provider(settings: Settings, database: Database) -> AuthProvider:
    """Ask the provider over HTTP when its URL is configured, otherwise read its session table"""
    if settings.AUTH_PROVIDER_URL:
        return RemoteAuthProvider(settings.AUTH_PROVIDER_URL)
    return SessionStoreAuthProvider(database.session_factory, cookie_name=settings.SESSION_COOKIE_NAME)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(SkillBridgeException)
    async def skillbridge_exception_handler(request: Request, exc: SkillBridgeException):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors"""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("BAD_REQUEST", _validation_message(exc)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return JSONResponse(status_code=exc.status_code, content=error_body("NOT_FOUND", "Route not found."))
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body("METHOD_NOT_ALLOWED", "Method not allowed."),
            )
        return JSONResponse(status_code=exc.status_code, content=error_body("HTTP_ERROR", str(exc.detail)))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all uncaught exceptions"""
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                "INTERNAL_SERVER_ERROR",
                "An internal server error occurred.",
                details=str(exc) if settings.DEBUG else None,
            ),
        )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    auth_provider: Optional[AuthProvider] = None,
    auth_http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Build the application; tests hand in their own store and auth provider"""
    settings = settings or default_settings
    configure_logging(settings)

    database = database or Database.from_settings(settings)
    auth_provider = auth_provider or build_auth_provider(settings, database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}...")
        await database.create_all()

        yield

        # Shutdown
        logger.info(f"Shutting down {settings.APP_NAME}...")
        await database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Tutoring marketplace: tutor browsing, bookings, reviews and moderation",
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )

    app.state.settings = settings
    app.state.database = database
    app.state.auth_provider = auth_provider
    app.state.auth_http_client = auth_http_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing"""
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Duration: {duration_ms:.2f}ms"
        )
        return response

    register_exception_handlers(app, settings)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Returns server status and version information"""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.APP_VERSION,
            "service": "skillbridge-api",
        }

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/api/docs",
            "health": "/health",
        }

    app.include_router(api_router, prefix="/api/v1")
    app.include_router(auth_proxy.router, prefix="/api/auth", tags=["authentication"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "skillbridge.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level=default_settings.LOG_LEVEL.lower(),
    )
