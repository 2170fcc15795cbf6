"""
Running unit counters backing tier and milestone decisions.
"""

from enum import Enum

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base, TimestampMixin


class CounterScope(str, Enum):
    """Whose units a counter accumulates."""
    CONSULTANT = "consultant"   # Units indicated by owner_id
    TEAM = "team"               # Units of owner_id (a manager) plus their team


class UnitCounter(Base, TimestampMixin):
    """
    Cumulative converted units per (scope, owner, establishment).

    Seeded from the converted-lead ledger the first time it is needed, then
    advanced under a row lock in the same transaction that writes the
    commission records. Rebuild from the ledger after hierarchy changes.
    """

    __tablename__ = "unit_counters"
    __table_args__ = (
        UniqueConstraint(
            "scope", "owner_id", "establishment_code",
            name="uq_unit_counters_scope_owner_code",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    scope: Mapped[CounterScope] = mapped_column(
        SQLAlchemyEnum(
            CounterScope,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    establishment_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    units: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<UnitCounter(scope={self.scope}, owner_id={self.owner_id}, "
            f"code='{self.establishment_code}', units={self.units})>"
        )
