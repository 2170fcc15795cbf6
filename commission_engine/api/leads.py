"""Lead conversion API endpoints.

- POST /leads/{lead_id}/convert - Convert a lead and record its commissions
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config import settings
from commission_engine.db import get_db
from commission_engine.models import OriginType
from commission_engine.schemas.conversion import (
    ConversionEvent,
    ConversionResult,
    ConvertLeadRequest,
)
from commission_engine.services.conversion import process_conversion
from commission_engine.services.errors import (
    InvalidConversionError,
    LeadAlreadyConvertedError,
    LeadNotFoundError,
)
from commission_engine.utils.audit import get_client_ip

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.post("/{lead_id}/convert", response_model=ConversionResult)
async def convert_lead(
    request: Request,
    lead_id: int,
    data: ConvertLeadRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Convert a lead and create its commission records.

    Referral conversions without an explicit split use the configured
    default referral percentage.
    """
    split_percentage = data.split_percentage
    if data.origin_type == OriginType.REFERRAL and split_percentage is None:
        split_percentage = settings.default_referral_percentage

    try:
        event = ConversionEvent(
            lead_id=lead_id,
            consultant_id=data.consultant_id,
            establishment_code=data.establishment_code,
            units_sold=data.units_sold,
            origin_type=data.origin_type,
            origin_lead_id=data.origin_lead_id,
            split_percentage=split_percentage,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )

    try:
        return await process_conversion(
            db,
            event,
            actor_id=data.consultant_id,
            ip_address=get_client_ip(request),
        )
    except LeadNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except LeadAlreadyConvertedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    except InvalidConversionError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
