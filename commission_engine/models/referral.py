"""
Referral (indication) records linking an origin lead to the lead it referred.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base, TimestampMixin


class LeadReferral(Base, TimestampMixin):
    """
    A converted customer referred a new lead.

    commission_amount and processed_at stay NULL until the new lead is
    converted and its referral split is computed.
    """

    __tablename__ = "lead_referrals"
    __table_args__ = (
        UniqueConstraint("original_lead_id", "new_lead_id", name="uq_lead_referrals_pair"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    original_lead_id: Mapped[int] = mapped_column(
        ForeignKey("leads.id"),
        nullable=False,
        index=True,
    )
    new_lead_id: Mapped[int] = mapped_column(
        ForeignKey("leads.id"),
        nullable=False,
        index=True,
    )
    commission_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
    )
    commission_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<LeadReferral(original_lead_id={self.original_lead_id}, "
            f"new_lead_id={self.new_lead_id}, amount={self.commission_amount})>"
        )
