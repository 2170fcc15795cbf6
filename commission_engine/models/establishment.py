"""
Per-establishment commission parameters.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Integer, Numeric, String, true
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base, TimestampMixin


class EstablishmentCommission(Base, TimestampMixin):
    """
    Commission settings for one establishment code.

    Edited by clinic admins outside this service; the engine only reads it.
    Any NULL column falls back to the configured default for that field.
    """

    __tablename__ = "establishment_commissions"

    id: Mapped[int] = mapped_column(primary_key=True)
    establishment_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )

    # Consultant
    consultant_value_per_unit: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="Amount paid per arcada sold",
    )
    consultant_bonus_interval: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Arcadas needed for one consultant bonus",
    )
    consultant_bonus_value: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )
    consultant_bonus_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
    )

    # Manager milestones (thresholds are fixed, values are not)
    manager_bonus_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
    )
    manager_bonus_35: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )
    manager_bonus_50: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )
    manager_bonus_75: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<EstablishmentCommission(code='{self.establishment_code}')>"
