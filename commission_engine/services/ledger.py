"""
Ledger reads and writes: converted leads, commission records, referral
records and the running unit counters.

Cumulative units are the sum of units_sold over converted leads. The
running counters hold that sum per (consultant, establishment) and per
(manager team, establishment). Their rows are the locks that serialize
conversions, and they are synced with the ledger while locked.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional, Union

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models import (
    CommissionKind,
    CommissionRecord,
    CommissionStatus,
    CounterScope,
    Lead,
    LeadReferral,
    LeadStatus,
    UnitCounter,
)
from commission_engine.services.hierarchy import team_of

logger = logging.getLogger(__name__)


async def sum_converted_units(
    db: AsyncSession,
    user_ids: Union[int, Iterable[int]],
    establishment_code: str,
    exclude_lead_id: Optional[int] = None,
) -> int:
    """
    Sum units sold over converted leads indicated by user_ids.

    Leads converted without a recorded unit count count as one unit.

    Args:
        db: Database session
        user_ids: One consultant id, or every member of a team
        establishment_code: Establishment the units were sold at
        exclude_lead_id: Lead to leave out (the one being converted)
    """
    if isinstance(user_ids, int):
        ids = [user_ids]
    else:
        ids = list(user_ids)
    if not ids:
        return 0

    conditions = [
        Lead.consultant_id.in_(ids),
        Lead.establishment_code == establishment_code,
        Lead.status == LeadStatus.CONVERTED,
    ]
    if exclude_lead_id is not None:
        conditions.append(Lead.id != exclude_lead_id)

    total = await db.scalar(
        select(func.coalesce(func.sum(func.coalesce(Lead.units_sold, 1)), 0))
        .where(and_(*conditions))
    )
    return int(total or 0)


async def _ledger_units(
    db: AsyncSession,
    scope: CounterScope,
    owner_id: int,
    establishment_code: str,
    exclude_lead_id: Optional[int] = None,
) -> int:
    if scope == CounterScope.TEAM:
        members = await team_of(db, owner_id)
        members.add(owner_id)
        return await sum_converted_units(db, members, establishment_code, exclude_lead_id)
    return await sum_converted_units(db, owner_id, establishment_code, exclude_lead_id)


async def lock_counter(
    db: AsyncSession,
    scope: CounterScope,
    owner_id: int,
    establishment_code: str,
    exclude_lead_id: Optional[int] = None,
) -> UnitCounter:
    """
    Fetch a running counter with a row lock and sync it with the ledger.

    The row lock serializes conversions for the same consultant or team.
    The ledger sum is taken while the lock is held, so units that entered
    or left a team through hierarchy edits are picked up before any tier
    decision. A missing counter is seeded from the same sum.

    Two transactions seeding the same counter collide on the unique
    constraint; the loser gets an IntegrityError and nothing is written.
    """
    counter = await db.scalar(
        select(UnitCounter)
        .where(
            and_(
                UnitCounter.scope == scope,
                UnitCounter.owner_id == owner_id,
                UnitCounter.establishment_code == establishment_code,
            )
        )
        .with_for_update()
    )
    units = await _ledger_units(db, scope, owner_id, establishment_code, exclude_lead_id)

    if counter is None:
        counter = UnitCounter(
            scope=scope,
            owner_id=owner_id,
            establishment_code=establishment_code,
            units=units,
        )
        db.add(counter)
        logger.debug(f"Seeded {scope.value} counter for user {owner_id} at {establishment_code}: {units}")
    elif counter.units != units:
        logger.warning(
            f"Counter {scope.value}/{owner_id}/{establishment_code} "
            f"out of sync with ledger: {counter.units} -> {units}"
        )
        counter.units = units

    await db.flush()
    return counter


async def advance_existing_counter(
    db: AsyncSession,
    scope: CounterScope,
    owner_id: int,
    establishment_code: str,
    units: int,
) -> None:
    """Add units to a counter if it exists; a missing one is seeded later."""
    await db.execute(
        update(UnitCounter)
        .where(
            and_(
                UnitCounter.scope == scope,
                UnitCounter.owner_id == owner_id,
                UnitCounter.establishment_code == establishment_code,
            )
        )
        .values(units=UnitCounter.units + units)
    )


async def rebuild_counters(db: AsyncSession) -> int:
    """
    Recompute every running counter from the converted-lead ledger.

    Needed after hierarchy edits move consultants between teams.

    Returns:
        Number of counters whose value changed
    """
    result = await db.execute(select(UnitCounter).with_for_update())
    counters = result.scalars().all()

    changed = 0
    for counter in counters:
        units = await _ledger_units(db, counter.scope, counter.owner_id, counter.establishment_code)
        if units != counter.units:
            logger.warning(
                f"Counter {counter.scope.value}/{counter.owner_id}/{counter.establishment_code} "
                f"drifted: {counter.units} -> {units}"
            )
            counter.units = units
            changed += 1

    await db.flush()
    return changed


async def update_lead_status(
    db: AsyncSession,
    lead: Lead,
    units_sold: int,
    establishment_code: str,
) -> Lead:
    """Mark a lead converted with its unit count and timestamp."""
    lead.status = LeadStatus.CONVERTED
    lead.units_sold = units_sold
    lead.establishment_code = establishment_code
    lead.converted_at = datetime.now(timezone.utc)
    await db.flush()
    return lead


async def has_commissions(db: AsyncSession, lead_id: int) -> bool:
    """Check whether any commission was already recorded for the lead."""
    count = await db.scalar(
        select(func.count())
        .select_from(CommissionRecord)
        .where(CommissionRecord.lead_id == lead_id)
    )
    return bool(count)


async def insert_commission_record(
    db: AsyncSession,
    *,
    lead_id: int,
    beneficiary_user_id: int,
    kind: CommissionKind,
    establishment_code: str,
    units_sold: int,
    base_amount: Decimal,
    bonus_amount: Decimal,
    unit_rate: Decimal,
    tiers_crossed: int = 0,
    percentage: Optional[Decimal] = None,
    origin_lead_id: Optional[int] = None,
) -> CommissionRecord:
    """Insert a pending commission record and return it with its id."""
    record = CommissionRecord(
        lead_id=lead_id,
        beneficiary_user_id=beneficiary_user_id,
        kind=kind,
        status=CommissionStatus.PENDING,
        establishment_code=establishment_code,
        units_sold=units_sold,
        base_amount=base_amount,
        bonus_amount=bonus_amount,
        total_amount=base_amount + bonus_amount,
        unit_rate=unit_rate,
        tiers_crossed=tiers_crossed,
        percentage=percentage,
        origin_lead_id=origin_lead_id,
    )
    db.add(record)
    await db.flush()
    return record


async def update_referral_record(
    db: AsyncSession,
    origin_lead_id: int,
    lead_id: int,
    amount: Decimal,
    percentage: Decimal,
    created_by_id: Optional[int] = None,
) -> LeadReferral:
    """Store the referral split on the (origin, new lead) referral record.

    The record is created when the referral was never registered.
    """
    referral = await db.scalar(
        select(LeadReferral)
        .where(
            and_(
                LeadReferral.original_lead_id == origin_lead_id,
                LeadReferral.new_lead_id == lead_id,
            )
        )
    )
    if referral is None:
        referral = LeadReferral(
            original_lead_id=origin_lead_id,
            new_lead_id=lead_id,
            commission_percentage=percentage,
            created_by_id=created_by_id,
        )
        db.add(referral)

    referral.commission_percentage = percentage
    referral.commission_amount = amount
    referral.processed_at = datetime.now(timezone.utc)
    await db.flush()
    return referral
