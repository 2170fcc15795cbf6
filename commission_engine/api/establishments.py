"""Establishment commission configuration (read only)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.db import get_db
from commission_engine.schemas.establishment import CommissionConfig
from commission_engine.services.establishment_config import get_commission_config

router = APIRouter(prefix="/establishments", tags=["Establishments"])


@router.get("/{establishment_code}/commission-config", response_model=CommissionConfig)
async def get_establishment_config(
    establishment_code: str,
    db: AsyncSession = Depends(get_db),
):
    """Effective commission parameters, defaults included."""
    return await get_commission_config(db, establishment_code)
