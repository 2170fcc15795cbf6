"""
Tests for lead conversion processing.

Covers:
- Commission records written per conversion (direct, referral, manager)
- Rejections (already converted, lost, wrong consultant, missing origin)
- Running counters driving tier decisions
- Rollback when a step fails midway
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from commission_engine.models import (
    AuditAction,
    AuditLog,
    CommissionKind,
    CommissionRecord,
    CounterScope,
    HierarchyEdge,
    Lead,
    LeadReferral,
    LeadStatus,
    OriginType,
    UnitCounter,
    UserRole,
)
from commission_engine.schemas.conversion import ConversionEvent
from commission_engine.services.conversion import process_conversion
from commission_engine.services.errors import (
    InvalidConversionError,
    LeadAlreadyConvertedError,
    LeadNotFoundError,
)
from commission_engine.services.ledger import lock_counter

from factories import CODE, add_converted, configure, link, make_lead, make_user


def direct(lead, units=1, consultant_id=None):
    return ConversionEvent(
        lead_id=lead.id,
        consultant_id=consultant_id or lead.consultant_id,
        establishment_code=CODE,
        units_sold=units,
    )


async def records_for(db, lead_id):
    result = await db.execute(
        select(CommissionRecord)
        .where(CommissionRecord.lead_id == lead_id)
        .order_by(CommissionRecord.id)
    )
    return result.scalars().all()


async def counter_units(db, scope, owner_id):
    return await db.scalar(
        select(UnitCounter.units).where(
            UnitCounter.scope == scope,
            UnitCounter.owner_id == owner_id,
            UnitCounter.establishment_code == CODE,
        )
    )


class TestDirectConversion:
    @pytest.mark.asyncio
    async def test_unmanaged_consultant(self, db_session):
        consultant = await make_user(db_session, "Ana")
        lead = await make_lead(db_session, consultant)

        result = await process_conversion(db_session, direct(lead, units=2))

        assert result.consultant_commission_amount == Decimal("1500")
        assert result.manager_commission_amount is None
        assert result.referral_commission_amount is None
        assert result.bonus_gained is False

        records = await records_for(db_session, lead.id)
        assert [r.kind for r in records] == [CommissionKind.CONSULTANT]
        assert records[0].beneficiary_user_id == consultant.id
        assert records[0].total_amount == Decimal("1500")
        assert result.created_record_ids == [records[0].id]

        status, units, converted_at = (
            await db_session.execute(
                select(Lead.status, Lead.units_sold, Lead.converted_at).where(Lead.id == lead.id)
            )
        ).one()
        assert status == LeadStatus.CONVERTED
        assert units == 2
        assert converted_at is not None

    @pytest.mark.asyncio
    async def test_tier_bonus(self, db_session):
        consultant = await make_user(db_session, "Ana")
        await add_converted(db_session, consultant, [2, 2, 2])
        lead = await make_lead(db_session, consultant)

        result = await process_conversion(db_session, direct(lead))

        assert result.consultant_commission_amount == Decimal("1500")
        assert result.bonus_gained is True
        record = (await records_for(db_session, lead.id))[0]
        assert record.bonus_amount == Decimal("750")
        assert record.tiers_crossed == 1

    @pytest.mark.asyncio
    async def test_manager_milestone(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        a = await make_user(db_session, "Ana")
        b = await make_user(db_session, "Bia")
        await link(db_session, manager, a, b)
        await add_converted(db_session, a, [2] * 10)
        await add_converted(db_session, b, [2] * 7)
        lead = await make_lead(db_session, a)

        result = await process_conversion(db_session, direct(lead, units=2))

        assert result.manager_commission_amount == Decimal("6500")
        assert result.bonus_gained is True
        records = await records_for(db_session, lead.id)
        manager_record = [r for r in records if r.beneficiary_user_id == manager.id][0]
        assert manager_record.kind == CommissionKind.MANAGER_MILESTONE
        assert manager_record.base_amount == Decimal("1500")
        assert manager_record.bonus_amount == Decimal("5000")
        assert manager_record.tiers_crossed == 1

    @pytest.mark.asyncio
    async def test_manager_override_without_bonus(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        consultant = await make_user(db_session, "Ana")
        await link(db_session, manager, consultant)
        await configure(db_session, manager_bonus_active=False)
        await add_converted(db_session, consultant, [2] * 17)
        lead = await make_lead(db_session, consultant)

        result = await process_conversion(db_session, direct(lead, units=2))

        assert result.manager_commission_amount == Decimal("1500")
        records = await records_for(db_session, lead.id)
        kinds = {r.kind for r in records}
        assert kinds == {CommissionKind.CONSULTANT, CommissionKind.MANAGER_OVERRIDE}

    @pytest.mark.asyncio
    async def test_audit_entry(self, db_session):
        consultant = await make_user(db_session, "Ana")
        lead = await make_lead(db_session, consultant)

        result = await process_conversion(
            db_session, direct(lead), actor_id=consultant.id, ip_address="10.0.0.1"
        )

        entry = await db_session.scalar(
            select(AuditLog).where(AuditLog.action == AuditAction.CONVERT_LEAD)
        )
        assert entry.target_id == lead.id
        assert entry.user_id == consultant.id
        assert entry.ip_address == "10.0.0.1"
        assert entry.action_metadata["commission_ids"] == result.created_record_ids


class TestReferralConversion:
    @pytest.mark.asyncio
    async def test_referral_pays_split_on_top(self, db_session):
        consultant = await make_user(db_session, "Ana")
        await add_converted(db_session, consultant, [2, 2, 2])
        origin = await make_lead(db_session, consultant, LeadStatus.CONVERTED, units_sold=1)
        lead = await make_lead(db_session, consultant)
        # origin lead already counts: 7 prior units, 1 more does not cross 14
        event = ConversionEvent(
            lead_id=lead.id,
            consultant_id=consultant.id,
            establishment_code=CODE,
            units_sold=1,
            origin_type=OriginType.REFERRAL,
            origin_lead_id=origin.id,
            split_percentage=Decimal("50"),
        )

        result = await process_conversion(db_session, event)

        assert result.consultant_commission_amount == Decimal("750")
        assert result.referral_commission_amount == Decimal("375.00")
        records = await records_for(db_session, lead.id)
        assert [r.kind for r in records] == [
            CommissionKind.CONSULTANT,
            CommissionKind.CONSULTANT_REFERRAL,
        ]
        referral_record = records[1]
        assert referral_record.beneficiary_user_id == consultant.id
        assert referral_record.total_amount == Decimal("375.00")
        assert referral_record.percentage == Decimal("50")
        assert referral_record.origin_lead_id == origin.id
        assert referral_record.is_referral_split

        referral = await db_session.scalar(
            select(LeadReferral).where(LeadReferral.new_lead_id == lead.id)
        )
        assert referral.original_lead_id == origin.id
        assert referral.commission_amount == Decimal("375.00")

    @pytest.mark.asyncio
    async def test_referral_with_tier_bonus(self, db_session):
        consultant = await make_user(db_session, "Ana")
        await add_converted(db_session, consultant, [2, 2, 1])
        origin = await make_lead(db_session, consultant, LeadStatus.CONVERTED, units_sold=1)
        lead = await make_lead(db_session, consultant)
        event = ConversionEvent(
            lead_id=lead.id,
            consultant_id=consultant.id,
            establishment_code=CODE,
            units_sold=1,
            origin_type=OriginType.REFERRAL,
            origin_lead_id=origin.id,
            split_percentage=Decimal("50"),
        )

        result = await process_conversion(db_session, event)

        assert result.consultant_commission_amount == Decimal("1500")
        assert result.referral_commission_amount == Decimal("750.00")

    @pytest.mark.asyncio
    async def test_missing_origin(self, db_session):
        consultant = await make_user(db_session, "Ana")
        lead = await make_lead(db_session, consultant)
        event = ConversionEvent(
            lead_id=lead.id,
            consultant_id=consultant.id,
            establishment_code=CODE,
            units_sold=1,
            origin_type=OriginType.REFERRAL,
            origin_lead_id=lead.id + 1000,
            split_percentage=Decimal("50"),
        )

        with pytest.raises(LeadNotFoundError):
            await process_conversion(db_session, event)

    @pytest.mark.asyncio
    async def test_self_referral(self, db_session):
        consultant = await make_user(db_session, "Ana")
        lead = await make_lead(db_session, consultant)
        event = ConversionEvent(
            lead_id=lead.id,
            consultant_id=consultant.id,
            establishment_code=CODE,
            units_sold=1,
            origin_type=OriginType.REFERRAL,
            origin_lead_id=lead.id,
            split_percentage=Decimal("50"),
        )

        with pytest.raises(InvalidConversionError):
            await process_conversion(db_session, event)


class TestRejections:
    @pytest.mark.asyncio
    async def test_missing_lead(self, db_session):
        event = ConversionEvent(lead_id=999, consultant_id=1, establishment_code=CODE, units_sold=1)
        with pytest.raises(LeadNotFoundError):
            await process_conversion(db_session, event)

    @pytest.mark.asyncio
    async def test_second_conversion_pays_nothing(self, db_session):
        consultant = await make_user(db_session, "Ana")
        lead = await make_lead(db_session, consultant)
        event = direct(lead)
        await process_conversion(db_session, event)

        with pytest.raises(LeadAlreadyConvertedError):
            await process_conversion(db_session, event)

        count = await db_session.scalar(
            select(func.count()).select_from(CommissionRecord)
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_lost_lead(self, db_session):
        consultant = await make_user(db_session, "Ana")
        lead = await make_lead(db_session, consultant, LeadStatus.LOST)

        with pytest.raises(InvalidConversionError):
            await process_conversion(db_session, direct(lead))

    @pytest.mark.asyncio
    async def test_wrong_consultant(self, db_session):
        consultant = await make_user(db_session, "Ana")
        other = await make_user(db_session, "Bia")
        lead = await make_lead(db_session, consultant)

        with pytest.raises(InvalidConversionError):
            await process_conversion(db_session, direct(lead, consultant_id=other.id))


class TestCounters:
    @pytest.mark.asyncio
    async def test_counters_advance(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        consultant = await make_user(db_session, "Ana")
        await link(db_session, manager, consultant)
        await add_converted(db_session, consultant, [2])
        lead = await make_lead(db_session, consultant)

        await process_conversion(db_session, direct(lead, units=2))

        assert await counter_units(db_session, CounterScope.CONSULTANT, consultant.id) == 4
        assert await counter_units(db_session, CounterScope.TEAM, manager.id) == 4

    @pytest.mark.asyncio
    async def test_drifted_counter_corrected_before_tier_decision(self, db_session):
        consultant = await make_user(db_session, "Ana")
        counter = await lock_counter(db_session, CounterScope.CONSULTANT, consultant.id, CODE)
        counter.units = 6
        lead = await make_lead(db_session, consultant)
        await db_session.commit()

        result = await process_conversion(db_session, direct(lead))

        # Ledger holds no prior sales, so 0 -> 1 crosses nothing
        assert result.bonus_gained is False
        assert await counter_units(db_session, CounterScope.CONSULTANT, consultant.id) == 1

    @pytest.mark.asyncio
    async def test_member_joining_team_counts_for_milestones(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        a = await make_user(db_session, "Ana")
        b = await make_user(db_session, "Bia")
        await link(db_session, manager, a)
        first = await make_lead(db_session, a)
        await process_conversion(db_session, direct(first))
        assert await counter_units(db_session, CounterScope.TEAM, manager.id) == 1

        # Bia brings 33 units sold before joining the team
        await add_converted(db_session, b, [2] * 16 + [1])
        await link(db_session, manager, b)
        lead = await make_lead(db_session, b)
        await db_session.commit()

        result = await process_conversion(db_session, direct(lead))

        assert result.manager_commission_amount == Decimal("5750")
        assert result.bonus_gained is True
        assert await counter_units(db_session, CounterScope.TEAM, manager.id) == 35

    @pytest.mark.asyncio
    async def test_member_leaving_team_stops_counting(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        a = await make_user(db_session, "Ana")
        b = await make_user(db_session, "Bia")
        await link(db_session, manager, a, b)
        await add_converted(db_session, b, [2] * 17)
        first = await make_lead(db_session, a)
        await process_conversion(db_session, direct(first))
        assert await counter_units(db_session, CounterScope.TEAM, manager.id) == 35

        edge = await db_session.scalar(
            select(HierarchyEdge).where(HierarchyEdge.consultant_id == b.id)
        )
        await db_session.delete(edge)
        lead = await make_lead(db_session, a)
        await db_session.commit()

        result = await process_conversion(db_session, direct(lead))

        # Team is Ana alone: 1 -> 2, no milestone
        assert result.manager_commission_amount == Decimal("750")
        assert await counter_units(db_session, CounterScope.TEAM, manager.id) == 2

    @pytest.mark.asyncio
    async def test_manager_direct_sale_grows_team(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        consultant = await make_user(db_session, "Ana")
        await link(db_session, manager, consultant)
        team_lead = await make_lead(db_session, consultant)
        own_lead = await make_lead(db_session, manager)

        await process_conversion(db_session, direct(team_lead, units=2))
        await process_conversion(db_session, direct(own_lead, units=1))

        assert await counter_units(db_session, CounterScope.TEAM, manager.id) == 3


class TestRollback:
    @pytest.mark.asyncio
    async def test_failure_leaves_nothing(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        consultant = await make_user(db_session, "Ana")
        await link(db_session, manager, consultant)
        lead = await make_lead(db_session, consultant)
        await db_session.commit()
        lead_id = lead.id
        event = direct(lead)

        with patch(
            "commission_engine.services.conversion.compute_manager_commission",
            AsyncMock(side_effect=RuntimeError("boom")),
        ):
            with pytest.raises(RuntimeError):
                await process_conversion(db_session, event)

        status = await db_session.scalar(select(Lead.status).where(Lead.id == lead_id))
        assert status == LeadStatus.NEW
        assert await db_session.scalar(select(func.count()).select_from(CommissionRecord)) == 0
        assert await db_session.scalar(select(func.count()).select_from(UnitCounter)) == 0
        assert await db_session.scalar(select(func.count()).select_from(AuditLog)) == 0

        # The lead can still be converted afterwards
        result = await process_conversion(db_session, event)
        assert result.manager_commission_amount == Decimal("750")
