"""
Establishment commission configuration with default fallbacks.

A missing row means the whole default set applies; a row with NULL or
out-of-range columns falls back to the default for those columns only.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config import settings
from commission_engine.models import EstablishmentCommission
from commission_engine.schemas.establishment import CommissionConfig, Milestone

logger = logging.getLogger(__name__)


def default_config(establishment_code: str) -> CommissionConfig:
    """Commission parameters used when an establishment has no row."""
    return CommissionConfig(
        establishment_code=establishment_code,
        consultant_unit_rate=settings.default_unit_rate,
        consultant_bonus_interval=settings.default_bonus_interval,
        consultant_bonus_value=settings.default_bonus_value,
        consultant_bonus_enabled=True,
        manager_milestones=(
            Milestone(threshold=35, value=settings.default_milestone_35),
            Milestone(threshold=50, value=settings.default_milestone_50),
            Milestone(threshold=75, value=settings.default_milestone_75),
        ),
        manager_bonus_enabled=True,
        is_default=True,
    )


def _money_or_default(code: str, field: str, value: Optional[Decimal], default: Decimal) -> Decimal:
    if value is None:
        return default
    if value < 0:
        logger.warning(f"Establishment {code}: negative {field}={value}, using default {default}")
        return default
    return Decimal(value)


def config_from_row(row: EstablishmentCommission) -> CommissionConfig:
    """Build the effective config from a stored row."""
    code = row.establishment_code
    defaults = default_config(code)

    interval = row.consultant_bonus_interval
    if interval is None:
        interval = defaults.consultant_bonus_interval
    elif interval < 1:
        logger.warning(
            f"Establishment {code}: bonus interval {interval} < 1, "
            f"using default {defaults.consultant_bonus_interval}"
        )
        interval = defaults.consultant_bonus_interval

    milestones = tuple(
        Milestone(
            threshold=m.threshold,
            value=_money_or_default(
                code,
                f"manager_bonus_{m.threshold}",
                getattr(row, f"manager_bonus_{m.threshold}"),
                m.value,
            ),
        )
        for m in defaults.manager_milestones
    )

    return CommissionConfig(
        establishment_code=code,
        consultant_unit_rate=_money_or_default(
            code, "consultant_value_per_unit",
            row.consultant_value_per_unit, defaults.consultant_unit_rate,
        ),
        consultant_bonus_interval=interval,
        consultant_bonus_value=_money_or_default(
            code, "consultant_bonus_value",
            row.consultant_bonus_value, defaults.consultant_bonus_value,
        ),
        consultant_bonus_enabled=row.consultant_bonus_active,
        manager_milestones=milestones,
        manager_bonus_enabled=row.manager_bonus_active,
        is_default=False,
    )


async def get_commission_config(db: AsyncSession, establishment_code: str) -> CommissionConfig:
    """
    Get the effective commission config for an establishment.

    Never fails for a missing establishment; database errors propagate.
    """
    row = await db.scalar(
        select(EstablishmentCommission)
        .where(EstablishmentCommission.establishment_code == establishment_code)
    )
    if row is None:
        logger.info(f"No commission settings for establishment {establishment_code}, using defaults")
        return default_config(establishment_code)

    return config_from_row(row)
