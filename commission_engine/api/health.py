"""
Health check endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.db import get_db
from commission_engine.models import EstablishmentCommission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Returns 200 while the process is serving requests."""
    return {"status": "healthy", "service": "commission-engine"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Readiness check against the commission tables.

    Returns 503 when the database is unreachable or the schema is missing.
    """
    try:
        await db.execute(
            select(literal(1)).select_from(EstablishmentCommission).limit(1)
        )
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not ready",
        )

    return {"status": "ready", "database": "connected"}
