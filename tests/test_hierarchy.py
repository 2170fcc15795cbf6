"""
Tests for manager/team lookups.
"""

import pytest

from commission_engine.models import UserRole
from commission_engine.services.hierarchy import manager_of, team_of

from factories import link, make_user


class TestHierarchy:
    @pytest.mark.asyncio
    async def test_unmanaged_consultant(self, db_session):
        consultant = await make_user(db_session, "Solo")
        assert await manager_of(db_session, consultant.id) is None

    @pytest.mark.asyncio
    async def test_manager_of(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        consultant = await make_user(db_session, "Ana")
        await link(db_session, manager, consultant)
        assert await manager_of(db_session, consultant.id) == manager.id

    @pytest.mark.asyncio
    async def test_team_excludes_manager(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        a = await make_user(db_session, "Ana")
        b = await make_user(db_session, "Bia")
        other = await make_user(db_session, "Other")
        await link(db_session, manager, a, b)

        team = await team_of(db_session, manager.id)
        assert team == {a.id, b.id}
        assert manager.id not in team
        assert other.id not in team

    @pytest.mark.asyncio
    async def test_empty_team(self, db_session):
        manager = await make_user(db_session, "Boss", UserRole.MANAGER)
        assert await team_of(db_session, manager.id) == set()
