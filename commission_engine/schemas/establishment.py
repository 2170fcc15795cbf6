"""Establishment commission configuration schemas."""

from decimal import Decimal
from typing import Tuple

from pydantic import BaseModel, Field

# Manager milestone thresholds are fixed; only their values are configurable
MILESTONE_THRESHOLDS: Tuple[int, ...] = (35, 50, 75)


class Milestone(BaseModel):
    """Team-wide cumulative threshold and the bonus paid each time it is crossed."""

    model_config = {"frozen": True}

    threshold: int = Field(..., ge=1)
    value: Decimal = Field(..., ge=0)


class CommissionConfig(BaseModel):
    """
    Effective commission parameters for one establishment.

    Built from the establishment_commissions row with per-field fallback
    to the configured defaults; is_default is True when no row exists.
    """

    model_config = {"frozen": True}

    establishment_code: str
    consultant_unit_rate: Decimal = Field(..., ge=0)
    consultant_bonus_interval: int = Field(..., ge=1)
    consultant_bonus_value: Decimal = Field(..., ge=0)
    consultant_bonus_enabled: bool = True
    manager_milestones: Tuple[Milestone, ...]
    manager_bonus_enabled: bool = True
    is_default: bool = False

    def milestone_value(self, threshold: int) -> Decimal:
        for milestone in self.manager_milestones:
            if milestone.threshold == threshold:
                return milestone.value
        raise KeyError(threshold)
