from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from .config import Settings, get_settings
from .core.logger import setup_logging
from .core.security import PasswordHasher
from .database import Database
from .exceptions import EXCEPTION_HANDLERS
from .auth.jwt_handler import TokenService
from .auth.notifier import EmailNotifier
from .auth.service import Notifier
from . import APP_INFO

# Import routers
from .auth.routes import router as auth_router
from .catalog.routes import router as catalog_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    settings = app.state.settings
    logger.info(f"Starting {settings.app_name} backend...")

    if app.state.database is None:
        app.state.database = Database.from_settings(settings)
    database = app.state.database

    try:
        database.create_tables()
        logger.info("Database initialized")
    except Exception as e:
        # Keep serving; requests that need storage will fail with a server error
        logger.error(f"Database initialization error: {e}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name} backend...")
    database.dispose()
    logger.info("Shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """Build the application; collaborators default to ones built from settings"""
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=APP_INFO["title"],
        description=APP_INFO["description"],
        version=APP_INFO["version"],
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.database = database
    app.state.token_service = TokenService.from_settings(settings)
    app.state.password_hasher = PasswordHasher(settings.bcrypt_rounds)
    app.state.notifier = notifier or EmailNotifier.from_settings(settings)

    # Add exception handlers
    for exception_type, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_type, handler)

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests"""
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({process_time:.3f}s)"
        )
        response.headers["X-Process-Time"] = str(process_time)

        return response

    # Security headers middleware
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Add security headers to all responses"""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if settings.cookie_secure:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

    # Include routers
    app.include_router(
        auth_router,
        prefix="/api/auth",
        tags=["Authentication"]
    )

    app.include_router(
        catalog_router,
        prefix="/api/admin",
        tags=["Catalog Admin"]
    )

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint"""
        return {"ok": True}

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "success": True,
            "message": f"{settings.app_name} API is running",
            "data": {
                "app_name": settings.app_name,
                "version": settings.app_version,
            }
        }

    return app


def run() -> None:
    """Serve with uvicorn; HTTPS when local certificate files are present"""
    import uvicorn

    settings = get_settings()
    ssl_options = {}
    if settings.local_https_available:
        ssl_options = {"ssl_keyfile": settings.ssl_keyfile, "ssl_certfile": settings.ssl_certfile}
        logger.info(f"HTTPS enabled with certificates from {settings.ssl_certfile}")
    else:
        logger.info("No local HTTPS certs found, starting HTTP server")

    uvicorn.run(
        "herbal_garden.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        **ssl_options
    )


if __name__ == "__main__":
    run()
