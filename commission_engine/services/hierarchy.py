"""
Manager/team lookups over the single-level hierarchy.
"""

from typing import Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models import HierarchyEdge


async def manager_of(db: AsyncSession, consultant_id: int) -> Optional[int]:
    """Return the consultant's manager id, or None when unmanaged."""
    return await db.scalar(
        select(HierarchyEdge.manager_id)
        .where(HierarchyEdge.consultant_id == consultant_id)
    )


async def team_of(db: AsyncSession, manager_id: int) -> Set[int]:
    """Return the consultant ids managed by manager_id (manager excluded)."""
    result = await db.execute(
        select(HierarchyEdge.consultant_id)
        .where(HierarchyEdge.manager_id == manager_id)
    )
    return {row[0] for row in result.all()}
