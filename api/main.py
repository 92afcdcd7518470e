"""
Main FastAPI application for the Support Chat backend.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import chat
from .services import get_services, initialize_services
from .middleware.rate_limit import RateLimitMiddleware
from config.settings import get_settings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Support Chat starting up...")
    await initialize_services()
    logger.info("Support Chat ready")
    yield
    logger.info("Support Chat shutting down...")
    await get_services().shutdown()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    details = errors[0].get("msg", "Validation failed") if errors else "Validation failed"
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": details},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    # Never expose stack traces or internal details
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": "Please try again shortly."},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.api_title,
        description="Customer-support chat backend with bounded, retrying LLM reply generation.",
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Rate limiting middleware
    app.add_middleware(
        RateLimitMiddleware,
        chat_requests_per_minute=settings.rate_limit_per_minute,
        requests_per_window=settings.api_rate_limit_per_window,
        window_seconds=settings.api_rate_limit_window_seconds,
    )

    # CORS middleware (outermost, so 429s carry CORS headers too)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(chat.router, prefix="/chat", tags=["Chat"])

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "service": settings.brand_name,
            "version": settings.api_version,
            "status": "operational",
            "docs": "/docs",
        }

    # Health check
    @app.get("/health")
    async def health():
        services = get_services()
        status = "ok" if services.is_ready else "degraded"
        database = "disabled"
        redis = "enabled" if services.cache is not None else "disabled"

        if services.database_enabled:
            from database.session import ping_db
            if await ping_db():
                database = "connected"
            else:
                database = "disconnected"
                status = "degraded"

        return JSONResponse(
            status_code=200 if status == "ok" else 503,
            content={
                "status": status,
                "database": database,
                "redis": redis,
                "services": services.health(),
                "timestamp": datetime.utcnow().isoformat(),
            },
        )

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    s = get_settings()
    uvicorn.run(app, host=s.api_host, port=s.api_port)
