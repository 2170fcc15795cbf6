"""
Tests for ledger reads/writes and running counters.

Covers:
- Converted unit sums (status, establishment, exclusion, NULL units)
- Counter seeding from the ledger and rebuild after drift
- Referral record upsert
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from commission_engine.models import CounterScope, LeadReferral, LeadStatus, UnitCounter, UserRole
from commission_engine.services.ledger import (
    advance_existing_counter,
    lock_counter,
    rebuild_counters,
    sum_converted_units,
    update_referral_record,
)

from factories import CODE, add_converted, link, make_lead, make_user


class TestSumConvertedUnits:
    @pytest.mark.asyncio
    async def test_only_converted_leads_count(self, db_session):
        consultant = await make_user(db_session, "Ana")
        await add_converted(db_session, consultant, [2, 1])
        await make_lead(db_session, consultant, LeadStatus.SCHEDULED, units_sold=2)
        await make_lead(db_session, consultant, LeadStatus.LOST, units_sold=2)

        assert await sum_converted_units(db_session, consultant.id, CODE) == 3

    @pytest.mark.asyncio
    async def test_scoped_to_establishment(self, db_session):
        consultant = await make_user(db_session, "Ana")
        await add_converted(db_session, consultant, [2])
        await add_converted(db_session, consultant, [2, 2], code="OTHER")

        assert await sum_converted_units(db_session, consultant.id, CODE) == 2
        assert await sum_converted_units(db_session, consultant.id, "OTHER") == 4

    @pytest.mark.asyncio
    async def test_null_units_count_as_one(self, db_session):
        consultant = await make_user(db_session, "Ana")
        await make_lead(db_session, consultant, LeadStatus.CONVERTED, units_sold=None)
        assert await sum_converted_units(db_session, consultant.id, CODE) == 1

    @pytest.mark.asyncio
    async def test_exclude_lead(self, db_session):
        consultant = await make_user(db_session, "Ana")
        lead = await make_lead(db_session, consultant, LeadStatus.CONVERTED, units_sold=2)
        await add_converted(db_session, consultant, [1])

        assert await sum_converted_units(db_session, consultant.id, CODE, exclude_lead_id=lead.id) == 1

    @pytest.mark.asyncio
    async def test_team_sum(self, db_session):
        a = await make_user(db_session, "Ana")
        b = await make_user(db_session, "Bia")
        await add_converted(db_session, a, [2, 2])
        await add_converted(db_session, b, [1])

        assert await sum_converted_units(db_session, [a.id, b.id], CODE) == 5

    @pytest.mark.asyncio
    async def test_empty_team(self, db_session):
        assert await sum_converted_units(db_session, [], CODE) == 0


class TestCounters:
    @pytest.mark.asyncio
    async def test_consultant_counter_seeded_from_ledger(self, db_session):
        consultant = await make_user(db_session, "Ana")
        await add_converted(db_session, consultant, [2, 2, 1])

        counter = await lock_counter(db_session, CounterScope.CONSULTANT, consultant.id, CODE)
        assert counter.units == 5

    @pytest.mark.asyncio
    async def test_team_counter_includes_manager(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        a = await make_user(db_session, "Ana")
        await link(db_session, manager, a)
        await add_converted(db_session, a, [2, 2])
        await add_converted(db_session, manager, [1])

        counter = await lock_counter(db_session, CounterScope.TEAM, manager.id, CODE)
        assert counter.units == 5

    @pytest.mark.asyncio
    async def test_existing_counter_is_resynced(self, db_session):
        consultant = await make_user(db_session, "Ana")
        first = await lock_counter(db_session, CounterScope.CONSULTANT, consultant.id, CODE)
        first.units = 40
        await db_session.flush()
        await add_converted(db_session, consultant, [2, 1])

        again = await lock_counter(db_session, CounterScope.CONSULTANT, consultant.id, CODE)
        assert again.id == first.id
        assert again.units == 3

    @pytest.mark.asyncio
    async def test_team_counter_follows_new_member(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        a = await make_user(db_session, "Ana")
        b = await make_user(db_session, "Bia")
        await link(db_session, manager, a)
        await add_converted(db_session, a, [1])
        await add_converted(db_session, b, [2, 2])

        counter = await lock_counter(db_session, CounterScope.TEAM, manager.id, CODE)
        assert counter.units == 1

        await link(db_session, manager, b)
        counter = await lock_counter(db_session, CounterScope.TEAM, manager.id, CODE)
        assert counter.units == 5

    @pytest.mark.asyncio
    async def test_advance_missing_counter_is_noop(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        await advance_existing_counter(db_session, CounterScope.TEAM, manager.id, CODE, 2)
        rows = (await db_session.execute(select(UnitCounter))).scalars().all()
        assert rows == []

    @pytest.mark.asyncio
    async def test_rebuild_fixes_drift(self, db_session):
        consultant = await make_user(db_session, "Ana")
        await add_converted(db_session, consultant, [2])
        counter = await lock_counter(db_session, CounterScope.CONSULTANT, consultant.id, CODE)
        counter.units = 99
        await db_session.flush()

        changed = await rebuild_counters(db_session)
        assert changed == 1
        assert counter.units == 2

        assert await rebuild_counters(db_session) == 0


class TestReferralRecord:
    @pytest.mark.asyncio
    async def test_creates_missing_record(self, db_session):
        consultant = await make_user(db_session, "Ana")
        origin = await make_lead(db_session, consultant, LeadStatus.CONVERTED, units_sold=1)
        new = await make_lead(db_session, consultant)

        referral = await update_referral_record(
            db_session, origin.id, new.id, Decimal("750"), Decimal("50")
        )
        assert referral.id is not None
        assert referral.commission_amount == Decimal("750")
        assert referral.processed_at is not None

    @pytest.mark.asyncio
    async def test_updates_existing_record(self, db_session):
        consultant = await make_user(db_session, "Ana")
        origin = await make_lead(db_session, consultant, LeadStatus.CONVERTED, units_sold=1)
        new = await make_lead(db_session, consultant)
        existing = LeadReferral(
            original_lead_id=origin.id,
            new_lead_id=new.id,
            commission_percentage=Decimal("30"),
        )
        db_session.add(existing)
        await db_session.flush()

        referral = await update_referral_record(
            db_session, origin.id, new.id, Decimal("450"), Decimal("30")
        )
        assert referral.id == existing.id
        assert referral.commission_amount == Decimal("450")
        count = len((await db_session.execute(select(LeadReferral))).scalars().all())
        assert count == 1
