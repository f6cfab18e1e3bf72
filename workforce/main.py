"""K2 Workforce — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from workforce.attendance.router import router as attendance_router
from workforce.common.exceptions import register_exception_handlers
from workforce.common.rate_limit import limiter
from workforce.config import settings
from workforce.database import engine
from workforce.employees.router import router as employees_router
from workforce.fuel.router import router as fuel_router
from workforce.system_settings.router import router as settings_router

logger = logging.getLogger("workforce")


def configure_logging() -> None:
    """Root logging setup shared by the app and ad-hoc scripts."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Starting K2 Workforce (%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("K2 Workforce stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="K2 Workforce",
        description="Attendance cycles, late-arrival tracking and fuel reimbursement",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(attendance_router, prefix="/api/v1/attendance", tags=["attendance"])
    app.include_router(fuel_router, prefix="/api/v1/fuel", tags=["fuel"])
    app.include_router(settings_router, prefix="/api/v1/settings", tags=["settings"])

    return app


app = create_app()
