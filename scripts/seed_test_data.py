"""
Seed test data for local commission testing.

Usage:
    python scripts/seed_test_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_test_data.py

This script creates:
- One manager with two consultants
- Commission settings for establishment CLINIC01
- Open leads for each consultant, ready to be converted
"""

import asyncio
import os
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from commission_engine.db import get_db_context
from commission_engine.models import (
    EstablishmentCommission,
    HierarchyEdge,
    Lead,
    LeadStatus,
    User,
    UserRole,
)

ESTABLISHMENT_CODE = "CLINIC01"

TEST_USERS = [
    {"full_name": "Marina Gerente", "email": "manager@example.com", "role": UserRole.MANAGER},
    {"full_name": "Paulo Consultor", "email": "paulo@example.com", "role": UserRole.CONSULTANT},
    {"full_name": "Ana Consultora", "email": "ana@example.com", "role": UserRole.CONSULTANT},
]

TEST_LEADS = [
    ("Carlos Souza", LeadStatus.NEW),
    ("Beatriz Lima", LeadStatus.CONTACTED),
    ("Joana Reis", LeadStatus.SCHEDULED),
]


async def get_or_create_user(db, data: dict) -> User:
    user = await db.scalar(select(User).where(User.email == data["email"]))
    if user:
        print(f"User exists: {user.email}")
        return user
    user = User(**data, is_active=True)
    db.add(user)
    await db.flush()
    print(f"Created user: {user.email} ({user.role.value})")
    return user


async def seed():
    async with get_db_context() as db:
        manager, *consultants = [await get_or_create_user(db, u) for u in TEST_USERS]

        for consultant in consultants:
            edge = await db.scalar(
                select(HierarchyEdge).where(HierarchyEdge.consultant_id == consultant.id)
            )
            if not edge:
                db.add(HierarchyEdge(manager_id=manager.id, consultant_id=consultant.id))

        settings_row = await db.scalar(
            select(EstablishmentCommission)
            .where(EstablishmentCommission.establishment_code == ESTABLISHMENT_CODE)
        )
        if not settings_row:
            db.add(EstablishmentCommission(
                establishment_code=ESTABLISHMENT_CODE,
                consultant_value_per_unit=Decimal("750"),
                consultant_bonus_interval=7,
                consultant_bonus_value=Decimal("750"),
                manager_bonus_35=Decimal("5000"),
                manager_bonus_50=Decimal("10000"),
                manager_bonus_75=Decimal("15000"),
            ))
            print(f"Created commission settings for {ESTABLISHMENT_CODE}")

        for consultant in consultants:
            for name, status in TEST_LEADS:
                db.add(Lead(
                    full_name=name,
                    status=status,
                    consultant_id=consultant.id,
                    establishment_code=ESTABLISHMENT_CODE,
                ))
        print(f"Created {len(TEST_LEADS) * len(consultants)} leads")


if __name__ == "__main__":
    asyncio.run(seed())
