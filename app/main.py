"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import auth, billings, health, main_meters, readings, sub_meters
from app.core.config import settings
from app.core.database import Base, engine
from app.core.logging import setup_logging

# Import models for Base.metadata.create_all - order matters for foreign keys
from app.models import (
    user,  # noqa: F401
    main_meter,  # noqa: F401
    sub_meter,  # noqa: F401
    sub_meter_reading,  # noqa: F401
    billing,  # noqa: F401
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    # Startup: Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Billing of main meter consumption to sub meters",
    lifespan=lifespan,
)

# Include API routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(auth.router, prefix="/api")
app.include_router(main_meters.router, prefix="/api")
app.include_router(sub_meters.router, prefix="/api")
app.include_router(readings.router, prefix="/api")
app.include_router(billings.router, prefix="/api")


@app.get("/")
def root():
    """Service information."""
    return {"message": f"Welcome to {settings.PROJECT_NAME}", "version": settings.VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
