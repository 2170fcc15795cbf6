"""
Commission calculation for consultants and managers.

Rules:
- Consultant: units sold x establishment unit rate, plus a flat bonus for
  every bonus interval crossed by the consultant's cumulative units
- Manager: the same per-unit rate on the triggering conversion, plus a
  milestone bonus for every 35/50/75 team threshold crossed
- Referral split: a percentage of the consultant's total commission

Nothing here writes to the database.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.schemas.commission import (
    CommissionPreview,
    ConsultantCommission,
    ManagerCommission,
    MilestoneCrossing,
)
from commission_engine.schemas.conversion import ALLOWED_UNITS
from commission_engine.schemas.establishment import MILESTONE_THRESHOLDS, CommissionConfig
from commission_engine.services.errors import InvalidConversionError
from commission_engine.services.establishment_config import get_commission_config
from commission_engine.services.hierarchy import manager_of, team_of
from commission_engine.services.ledger import sum_converted_units
from commission_engine.services.tiers import crossed_tiers, next_milestone, units_to_next_tier

CENTS = Decimal("0.01")


def assert_units(units_sold: int) -> None:
    """Reject unit counts outside the allowed set."""
    if units_sold not in ALLOWED_UNITS:
        raise InvalidConversionError(
            f"units_sold must be one of {ALLOWED_UNITS}, got {units_sold}"
        )


def compute_referral_split(consultant_total: Decimal, percentage: Decimal) -> Decimal:
    """Referral share of a consultant commission, rounded to cents.

    Args:
        consultant_total: Total consultant commission (base + bonus)
        percentage: Share in percent, 0..100

    Returns:
        consultant_total * percentage / 100
    """
    percentage = Decimal(percentage)
    if percentage < 0 or percentage > 100:
        raise InvalidConversionError(f"split percentage must be within 0..100, got {percentage}")
    split = Decimal(consultant_total) * percentage / Decimal("100")
    return split.quantize(CENTS, rounding=ROUND_HALF_UP)


async def compute_consultant_commission(
    db: AsyncSession,
    consultant_id: int,
    establishment_code: str,
    units_sold: int,
    *,
    config: Optional[CommissionConfig] = None,
    prior_units: Optional[int] = None,
    exclude_lead_id: Optional[int] = None,
) -> ConsultantCommission:
    """
    Calculate the consultant's commission for one conversion.

    Args:
        db: Database session
        consultant_id: Indicating consultant
        establishment_code: Establishment of the sale
        units_sold: Units in this conversion (1 or 2)
        config: Already loaded establishment config
        prior_units: Cumulative units before this conversion, when the
            caller holds a locked running counter
        exclude_lead_id: In-flight lead to leave out of the ledger scan

    Returns:
        Base and bonus amounts with the tier bookkeeping
    """
    assert_units(units_sold)
    if config is None:
        config = await get_commission_config(db, establishment_code)
    if prior_units is None:
        prior_units = await sum_converted_units(
            db, consultant_id, establishment_code, exclude_lead_id
        )

    new_units = prior_units + units_sold
    base_amount = config.consultant_unit_rate * units_sold

    tiers = crossed_tiers(prior_units, units_sold, config.consultant_bonus_interval)
    if config.consultant_bonus_enabled:
        bonus_amount = config.consultant_bonus_value * tiers
    else:
        bonus_amount = Decimal("0")

    return ConsultantCommission(
        consultant_id=consultant_id,
        establishment_code=establishment_code,
        units_sold=units_sold,
        unit_rate=config.consultant_unit_rate,
        base_amount=base_amount,
        bonus_amount=bonus_amount,
        crossed_tiers=tiers,
        prior_cumulative=prior_units,
        new_cumulative=new_units,
        units_to_next_bonus=units_to_next_tier(new_units, config.consultant_bonus_interval),
    )


async def compute_manager_commission(
    db: AsyncSession,
    manager_id: int,
    establishment_code: str,
    units_sold: int,
    *,
    config: Optional[CommissionConfig] = None,
    prior_team_units: Optional[int] = None,
    exclude_lead_id: Optional[int] = None,
) -> ManagerCommission:
    """
    Calculate the manager's override and milestone bonus for one conversion.

    The override is the consultant unit rate applied to the units of the
    triggering conversion only. Milestones look at the whole team's
    cumulative units (team members plus the manager's own sales); each
    threshold is checked independently, so several can fire at once.
    """
    assert_units(units_sold)
    if config is None:
        config = await get_commission_config(db, establishment_code)
    if prior_team_units is None:
        members = await team_of(db, manager_id)
        members.add(manager_id)
        prior_team_units = await sum_converted_units(
            db, members, establishment_code, exclude_lead_id
        )

    team_after = prior_team_units + units_sold
    base_amount = config.consultant_unit_rate * units_sold

    milestones = []
    bonus_amount = Decimal("0")
    if config.manager_bonus_enabled:
        for threshold in MILESTONE_THRESHOLDS:
            times = crossed_tiers(prior_team_units, units_sold, threshold)
            if times > 0:
                crossing = MilestoneCrossing(
                    threshold=threshold,
                    times=times,
                    value=config.milestone_value(threshold),
                )
                milestones.append(crossing)
                bonus_amount += crossing.amount

    return ManagerCommission(
        manager_id=manager_id,
        establishment_code=establishment_code,
        units_sold=units_sold,
        unit_rate=config.consultant_unit_rate,
        base_amount=base_amount,
        bonus_amount=bonus_amount,
        bonus_enabled=config.manager_bonus_enabled,
        team_units_before=prior_team_units,
        team_units_after=team_after,
        milestones=milestones,
        next_milestone=next_milestone(team_after),
    )


async def preview_commissions(
    db: AsyncSession,
    consultant_id: int,
    establishment_code: str,
    units_sold: int,
    split_percentage: Optional[Decimal] = None,
) -> CommissionPreview:
    """Simulate the commissions a conversion would produce right now."""
    config = await get_commission_config(db, establishment_code)

    consultant = await compute_consultant_commission(
        db, consultant_id, establishment_code, units_sold, config=config
    )

    referral_amount = None
    if split_percentage is not None:
        referral_amount = compute_referral_split(consultant.total_amount, split_percentage)

    manager = None
    manager_id = await manager_of(db, consultant_id)
    if manager_id is not None:
        manager = await compute_manager_commission(
            db, manager_id, establishment_code, units_sold, config=config
        )

    return CommissionPreview(
        consultant=consultant,
        referral_amount=referral_amount,
        manager=manager,
    )
