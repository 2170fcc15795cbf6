"""
Commission records produced by lead conversions.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from commission_engine.models.lead import Lead
    from commission_engine.models.user import User


class CommissionKind(str, Enum):
    """What the commission pays for."""
    CONSULTANT = "consultant"                    # Per-unit rate + tier bonus
    CONSULTANT_REFERRAL = "consultant_referral"  # Percentage split of CONSULTANT
    MANAGER_OVERRIDE = "manager_override"        # Per-unit rate only
    MANAGER_MILESTONE = "manager_milestone"      # Per-unit rate + team milestone bonus


class CommissionRole(str, Enum):
    """Beneficiary role, derived from the kind."""
    CONSULTANT = "consultant"
    MANAGER = "manager"


class CommissionStatus(str, Enum):
    """Payout status. Only pending → paid / cancelled after creation."""
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


_KIND_ROLES = {
    CommissionKind.CONSULTANT: CommissionRole.CONSULTANT,
    CommissionKind.CONSULTANT_REFERRAL: CommissionRole.CONSULTANT,
    CommissionKind.MANAGER_OVERRIDE: CommissionRole.MANAGER,
    CommissionKind.MANAGER_MILESTONE: CommissionRole.MANAGER,
}


class CommissionRecord(Base, TimestampMixin):
    """
    One commission owed to one beneficiary for one converted lead.

    A lead produces at most one record per kind, which is what makes
    conversions idempotent at the storage level.
    """

    __tablename__ = "commissions"
    __table_args__ = (
        UniqueConstraint("lead_id", "kind", name="uq_commissions_lead_kind"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    lead_id: Mapped[int] = mapped_column(
        ForeignKey("leads.id"),
        nullable=False,
        index=True,
    )
    beneficiary_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    kind: Mapped[CommissionKind] = mapped_column(
        SQLAlchemyEnum(
            CommissionKind,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    status: Mapped[CommissionStatus] = mapped_column(
        SQLAlchemyEnum(
            CommissionStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )
    establishment_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    units_sold: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Amounts
    base_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    bonus_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    # Calculation context
    unit_rate: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Per-unit rate applied",
    )
    tiers_crossed: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Bonus tiers or milestones crossed by this conversion",
    )
    percentage: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(5, 2),
        nullable=True,
        comment="Referral split percentage (referral records only)",
    )
    origin_lead_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("leads.id"),
        nullable=True,
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    lead: Mapped["Lead"] = relationship("Lead", foreign_keys=[lead_id])
    beneficiary: Mapped["User"] = relationship("User")

    @property
    def role(self) -> CommissionRole:
        return _KIND_ROLES[self.kind]

    @property
    def is_referral_split(self) -> bool:
        return self.kind == CommissionKind.CONSULTANT_REFERRAL

    def __repr__(self) -> str:
        return (
            f"<CommissionRecord(id={self.id}, lead_id={self.lead_id}, "
            f"kind={self.kind}, total={self.total_amount})>"
        )
