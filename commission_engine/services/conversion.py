"""
Lead conversion processing.

Converting a lead marks it converted and records every commission it
generates in one transaction:

1. Validate the request and lock the lead row
2. Lock (or seed) the consultant and manager-team running counters
3. Persist the lead's converted status
4. Consultant commission record
5. Referral split record for referral-origin leads
6. Manager commission record when the consultant has a manager
7. Advance the counters and write the audit log

Any failure rolls the whole transaction back. A lead that is already
converted (or already has commission records) is rejected, so retried
requests can never pay twice.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models import (
    AuditAction,
    CommissionKind,
    CounterScope,
    Lead,
    LeadStatus,
    OriginType,
)
from commission_engine.schemas.conversion import ConversionEvent, ConversionResult
from commission_engine.services.commission import (
    assert_units,
    compute_consultant_commission,
    compute_manager_commission,
    compute_referral_split,
)
from commission_engine.services.errors import (
    ConversionError,
    InvalidConversionError,
    LeadAlreadyConvertedError,
    LeadNotFoundError,
)
from commission_engine.services.establishment_config import get_commission_config
from commission_engine.services.hierarchy import manager_of
from commission_engine.services.ledger import (
    advance_existing_counter,
    has_commissions,
    insert_commission_record,
    lock_counter,
    update_lead_status,
    update_referral_record,
)
from commission_engine.utils.audit import log_action

logger = logging.getLogger(__name__)


async def _load_lead(db: AsyncSession, lead_id: int) -> Lead:
    lead = await db.scalar(
        select(Lead).where(Lead.id == lead_id).with_for_update()
    )
    if lead is None:
        raise LeadNotFoundError(lead_id)
    return lead


async def _validate(db: AsyncSession, event: ConversionEvent, lead: Lead) -> None:
    """Reject the conversion before anything is written."""
    assert_units(event.units_sold)

    if lead.status == LeadStatus.CONVERTED or await has_commissions(db, lead.id):
        raise LeadAlreadyConvertedError(lead.id)

    if not lead.can_transition_to(LeadStatus.CONVERTED):
        raise InvalidConversionError(
            f"Lead {lead.id} is {lead.status.value} and cannot be converted"
        )

    if lead.consultant_id != event.consultant_id:
        raise InvalidConversionError(
            f"Lead {lead.id} was indicated by user {lead.consultant_id}, "
            f"not {event.consultant_id}"
        )

    if event.origin_type == OriginType.REFERRAL:
        if event.origin_lead_id is None or event.split_percentage is None:
            raise InvalidConversionError("Referral conversions require origin lead and split percentage")
        if event.origin_lead_id == lead.id:
            raise InvalidConversionError(f"Lead {lead.id} cannot refer itself")
        origin = await db.get(Lead, event.origin_lead_id)
        if origin is None:
            raise LeadNotFoundError(event.origin_lead_id)
    elif event.origin_lead_id is not None or event.split_percentage is not None:
        raise InvalidConversionError("Direct conversions cannot carry referral fields")


async def _convert(
    db: AsyncSession,
    event: ConversionEvent,
    actor_id: Optional[int],
    ip_address: Optional[str],
) -> ConversionResult:
    lead = await _load_lead(db, event.lead_id)
    await _validate(db, event, lead)

    code = event.establishment_code
    units = event.units_sold
    config = await get_commission_config(db, code)
    manager_id = await manager_of(db, event.consultant_id)

    # Lock order: lead, consultant counter, team counter
    consultant_counter = await lock_counter(
        db, CounterScope.CONSULTANT, event.consultant_id, code, exclude_lead_id=lead.id
    )
    team_counter = None
    if manager_id is not None:
        team_counter = await lock_counter(
            db, CounterScope.TEAM, manager_id, code, exclude_lead_id=lead.id
        )

    lead.origin_type = event.origin_type
    lead.origin_lead_id = event.origin_lead_id
    lead.split_percentage = event.split_percentage
    await update_lead_status(db, lead, units, code)

    created_ids = []

    consultant = await compute_consultant_commission(
        db, event.consultant_id, code, units,
        config=config, prior_units=consultant_counter.units,
    )
    record = await insert_commission_record(
        db,
        lead_id=lead.id,
        beneficiary_user_id=event.consultant_id,
        kind=CommissionKind.CONSULTANT,
        establishment_code=code,
        units_sold=units,
        base_amount=consultant.base_amount,
        bonus_amount=consultant.bonus_amount,
        unit_rate=consultant.unit_rate,
        tiers_crossed=consultant.crossed_tiers,
    )
    created_ids.append(record.id)

    # Same beneficiary is paid the full commission and the split on top.
    # Kept as observed; pending product confirmation.
    referral_amount = None
    if event.origin_type == OriginType.REFERRAL:
        referral_amount = compute_referral_split(consultant.total_amount, event.split_percentage)
        record = await insert_commission_record(
            db,
            lead_id=lead.id,
            beneficiary_user_id=event.consultant_id,
            kind=CommissionKind.CONSULTANT_REFERRAL,
            establishment_code=code,
            units_sold=units,
            base_amount=referral_amount,
            bonus_amount=Decimal("0"),
            unit_rate=compute_referral_split(consultant.unit_rate, event.split_percentage),
            percentage=event.split_percentage,
            origin_lead_id=event.origin_lead_id,
        )
        created_ids.append(record.id)
        await update_referral_record(
            db,
            event.origin_lead_id,
            lead.id,
            referral_amount,
            event.split_percentage,
            created_by_id=actor_id,
        )

    manager = None
    manager_amount = None
    if manager_id is not None:
        manager = await compute_manager_commission(
            db, manager_id, code, units,
            config=config, prior_team_units=team_counter.units,
        )
        if manager.total_amount > 0:
            if manager.bonus_amount > 0:
                kind = CommissionKind.MANAGER_MILESTONE
            else:
                kind = CommissionKind.MANAGER_OVERRIDE
            record = await insert_commission_record(
                db,
                lead_id=lead.id,
                beneficiary_user_id=manager_id,
                kind=kind,
                establishment_code=code,
                units_sold=units,
                base_amount=manager.base_amount,
                bonus_amount=manager.bonus_amount,
                unit_rate=manager.unit_rate,
                tiers_crossed=manager.milestones_crossed,
            )
            created_ids.append(record.id)
            manager_amount = manager.total_amount

    consultant_counter.units += units
    if team_counter is not None:
        team_counter.units += units
    # A manager selling directly also grows their own team total
    await advance_existing_counter(db, CounterScope.TEAM, event.consultant_id, code, units)

    bonus_gained = consultant.bonus_amount > 0 or (
        manager is not None and manager.bonus_amount > 0
    )

    await log_action(
        db=db,
        user_id=actor_id if actor_id is not None else event.consultant_id,
        action=AuditAction.CONVERT_LEAD,
        target_type="lead",
        target_id=lead.id,
        action_metadata={
            "establishment_code": code,
            "units_sold": units,
            "origin_type": event.origin_type.value,
            "commission_ids": created_ids,
            "bonus_gained": bonus_gained,
        },
        ip_address=ip_address,
    )
    await db.flush()

    return ConversionResult(
        lead_id=lead.id,
        consultant_commission_amount=consultant.total_amount,
        manager_commission_amount=manager_amount,
        referral_commission_amount=referral_amount,
        created_record_ids=created_ids,
        bonus_gained=bonus_gained,
    )


async def process_conversion(
    db: AsyncSession,
    event: ConversionEvent,
    actor_id: Optional[int] = None,
    ip_address: Optional[str] = None,
) -> ConversionResult:
    """
    Convert a lead and record its commissions atomically.

    Args:
        db: Database session (the transaction is committed here)
        event: Validated conversion request
        actor_id: User performing the conversion, for the audit log
        ip_address: Client IP, for the audit log

    Returns:
        Amounts, created commission ids and whether any bonus fired

    Raises:
        InvalidConversionError: Request breaks a validation rule
        LeadNotFoundError: Lead or origin lead missing
        LeadAlreadyConvertedError: Lead was converted before
    """
    try:
        result = await _convert(db, event, actor_id, ip_address)
        await db.commit()
    except ConversionError as e:
        await db.rollback()
        logger.warning(f"Conversion of lead {event.lead_id} rejected: {e}")
        raise
    except Exception:
        await db.rollback()
        raise

    logger.info(
        f"Lead {result.lead_id} converted ({event.units_sold} units at "
        f"{event.establishment_code}): consultant {result.consultant_commission_amount}, "
        f"manager {result.manager_commission_amount}, referral {result.referral_commission_amount}"
        + (" [bonus]" if result.bonus_gained else "")
    )
    return result
