"""Commission API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.db import get_db
from commission_engine.models import CommissionKind, CommissionRecord, CommissionStatus
from commission_engine.schemas.commission import (
    CommissionPreview,
    CommissionPreviewRequest,
    CommissionRecordResponse,
)
from commission_engine.services.commission import preview_commissions
from commission_engine.services.errors import InvalidConversionError

router = APIRouter(prefix="/commissions", tags=["Commissions"])


@router.get("")
async def list_commissions(
    db: AsyncSession = Depends(get_db),
    beneficiary_user_id: Optional[int] = Query(None),
    lead_id: Optional[int] = Query(None),
    commission_status: Optional[CommissionStatus] = Query(None, alias="status"),
    kind: Optional[CommissionKind] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List commission records, newest first."""
    query = select(CommissionRecord)

    if beneficiary_user_id is not None:
        query = query.where(CommissionRecord.beneficiary_user_id == beneficiary_user_id)

    if lead_id is not None:
        query = query.where(CommissionRecord.lead_id == lead_id)

    if commission_status is not None:
        query = query.where(CommissionRecord.status == commission_status)

    if kind is not None:
        query = query.where(CommissionRecord.kind == kind)

    # Count total
    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query)

    # Apply sorting and pagination
    query = query.order_by(CommissionRecord.created_at.desc(), CommissionRecord.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    records = result.scalars().all()

    return {
        "items": [CommissionRecordResponse.model_validate(r) for r in records],
        "total": total or 0,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page if total else 0,
    }


@router.post("/preview", response_model=CommissionPreview)
async def preview(
    data: CommissionPreviewRequest,
    db: AsyncSession = Depends(get_db),
):
    """Simulate the commissions of a conversion without saving anything."""
    try:
        return await preview_commissions(
            db,
            consultant_id=data.consultant_id,
            establishment_code=data.establishment_code,
            units_sold=data.units_sold,
            split_percentage=data.split_percentage,
        )
    except InvalidConversionError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
