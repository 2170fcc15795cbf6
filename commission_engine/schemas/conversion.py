"""
Lead conversion schemas.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from commission_engine.models.lead import OriginType

ALLOWED_UNITS = (1, 2)


class ConversionEvent(BaseModel):
    """
    A lead being converted into a sale.

    origin_lead_id and split_percentage are present iff the lead came
    from a referral.
    """

    lead_id: int
    consultant_id: int
    establishment_code: str = Field(..., min_length=1, max_length=50)
    units_sold: int = Field(..., ge=1, le=2)
    origin_type: OriginType = OriginType.DIRECT
    origin_lead_id: Optional[int] = None
    split_percentage: Optional[Decimal] = Field(None, ge=0, le=100)

    @model_validator(mode="after")
    def check_referral_fields(self) -> "ConversionEvent":
        if self.origin_type == OriginType.REFERRAL:
            if self.origin_lead_id is None or self.split_percentage is None:
                raise ValueError("referral conversions require origin_lead_id and split_percentage")
        elif self.origin_lead_id is not None or self.split_percentage is not None:
            raise ValueError("origin_lead_id and split_percentage are only allowed for referrals")
        return self


class ConvertLeadRequest(BaseModel):
    """Request body for converting a lead."""

    consultant_id: int
    establishment_code: str = Field(..., min_length=1, max_length=50)
    units_sold: int = Field(..., ge=1, le=2)
    origin_type: OriginType = OriginType.DIRECT
    origin_lead_id: Optional[int] = None
    split_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class ConversionResult(BaseModel):
    """Outcome of a conversion, returned for user feedback."""

    lead_id: int
    consultant_commission_amount: Decimal
    manager_commission_amount: Optional[Decimal] = None
    referral_commission_amount: Optional[Decimal] = None
    created_record_ids: List[int] = Field(default_factory=list)
    bonus_gained: bool = False
