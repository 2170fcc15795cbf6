"""
Commission calculation results and commission record schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from commission_engine.models.commission import (
    CommissionKind,
    CommissionRole,
    CommissionStatus,
)


class ConsultantCommission(BaseModel):
    """Consultant commission for a single conversion."""

    consultant_id: int
    establishment_code: str
    units_sold: int
    unit_rate: Decimal
    base_amount: Decimal
    bonus_amount: Decimal
    crossed_tiers: int
    prior_cumulative: int
    new_cumulative: int
    units_to_next_bonus: int

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        return self.base_amount + self.bonus_amount


class MilestoneCrossing(BaseModel):
    """How many times one milestone threshold was crossed."""

    threshold: int
    times: int
    value: Decimal

    @computed_field
    @property
    def amount(self) -> Decimal:
        return self.value * self.times


class NextMilestone(BaseModel):
    """Closest milestone the team has not reached yet."""

    threshold: int
    remaining: int


class ManagerCommission(BaseModel):
    """Manager override plus team milestone bonus for a single conversion."""

    manager_id: int
    establishment_code: str
    units_sold: int
    unit_rate: Decimal
    base_amount: Decimal
    bonus_amount: Decimal
    bonus_enabled: bool
    team_units_before: int
    team_units_after: int
    milestones: List[MilestoneCrossing] = Field(default_factory=list)
    next_milestone: NextMilestone

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        return self.base_amount + self.bonus_amount

    @property
    def milestones_crossed(self) -> int:
        return sum(m.times for m in self.milestones)


class CommissionPreviewRequest(BaseModel):
    """Simulate a conversion without persisting anything."""

    consultant_id: int
    establishment_code: str = Field(..., min_length=1, max_length=50)
    units_sold: int = Field(..., ge=1, le=2)
    split_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class CommissionPreview(BaseModel):
    """Commissions a conversion would produce right now."""

    consultant: ConsultantCommission
    referral_amount: Optional[Decimal] = None
    manager: Optional[ManagerCommission] = None


class CommissionRecordResponse(BaseModel):
    """Persisted commission record."""

    id: int
    lead_id: int
    beneficiary_user_id: int
    kind: CommissionKind
    role: CommissionRole
    is_referral_split: bool
    status: CommissionStatus
    establishment_code: str
    units_sold: int
    base_amount: Decimal
    bonus_amount: Decimal
    total_amount: Decimal
    unit_rate: Decimal
    tiers_crossed: int
    percentage: Optional[Decimal] = None
    origin_lead_id: Optional[int] = None
    created_at: datetime
    paid_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
