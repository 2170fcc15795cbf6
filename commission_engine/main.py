"""
Commission Engine - referral tracking and commission accounting

Main FastAPI application with:
- Lead conversion with automatic commission calculation
- Commission listing and preview
- Read-only establishment commission configuration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from commission_engine import __version__
from commission_engine.api import api_router
from commission_engine.config import settings
from commission_engine.db import engine

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Shutdown:
    - Dispose database engine
    """
    logger.info("Starting Commission Engine...")

    yield

    logger.info("Shutting down Commission Engine...")
    await engine.dispose()


# Create FastAPI application
app = FastAPI(
    title="Commission Engine",
    description="Referral tracking and commission accounting",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "commission_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
