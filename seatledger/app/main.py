"""
FastAPI Application Entry Point.

This is the main application file for the SeatLedger Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from seatledger.app.core.config import settings
from seatledger.app.api.v1.router import router as api_v1_router
from seatledger.app.core.observability import ObservabilityMiddleware, configure_logging, logger
from seatledger.app.core.redis_client import ping_redis
from seatledger.app.db.session import engine, Base
from seatledger.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from seatledger.app.models.library import Library  # noqa: F401
from seatledger.app.models.user import User  # noqa: F401
from seatledger.app.models.payment_plan import PaymentPlan  # noqa: F401
from seatledger.app.models.seat import Seat  # noqa: F401
from seatledger.app.models.student import Student  # noqa: F401
from seatledger.app.models.payment import Payment  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging from settings.
    2. Creates database tables on startup.
    """
    configure_logging(settings.log_level)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Multi-library seat assignment and fee ledger backend",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": await ping_redis(),
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to SeatLedger Backend API",
        "docs": "/docs",
        "health": "/health",
    }
