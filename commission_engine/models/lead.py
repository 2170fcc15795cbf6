"""
Lead model: a prospective patient indicated by a consultant.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from commission_engine.models.user import User


class LeadStatus(str, Enum):
    """Status of the lead in the sales funnel."""
    NEW = "new"
    CONTACTED = "contacted"
    SCHEDULED = "scheduled"
    CONVERTED = "converted"    # Terminal: sale closed
    LOST = "lost"              # Terminal: sale failed


class OriginType(str, Enum):
    """How the lead reached the consultant."""
    DIRECT = "direct"
    REFERRAL = "referral"      # Indicated by a previously converted customer


TERMINAL_STATUSES = frozenset({LeadStatus.CONVERTED, LeadStatus.LOST})

# Forward funnel moves; LOST is reachable from every non-terminal state
ALLOWED_TRANSITIONS = {
    LeadStatus.NEW: {LeadStatus.CONTACTED, LeadStatus.SCHEDULED, LeadStatus.CONVERTED, LeadStatus.LOST},
    LeadStatus.CONTACTED: {LeadStatus.SCHEDULED, LeadStatus.CONVERTED, LeadStatus.LOST},
    LeadStatus.SCHEDULED: {LeadStatus.CONVERTED, LeadStatus.LOST},
    LeadStatus.CONVERTED: set(),
    LeadStatus.LOST: set(),
}


class Lead(Base, TimestampMixin):
    """
    A lead indicated by a consultant for one establishment.

    units_sold is only meaningful once the lead is converted. Converted
    leads are the ledger the cumulative unit counters are built from.
    """

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(primary_key=True)
    full_name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    status: Mapped[LeadStatus] = mapped_column(
        SQLAlchemyEnum(
            LeadStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=LeadStatus.NEW,
        nullable=False,
        index=True,
    )

    # Indicating consultant (the commission beneficiary)
    consultant_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    establishment_code: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        index=True,
    )

    # Conversion data
    units_sold: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Arcadas sold (1 or 2) once converted",
    )
    converted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Referral origin
    origin_type: Mapped[OriginType] = mapped_column(
        SQLAlchemyEnum(
            OriginType,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=OriginType.DIRECT,
        nullable=False,
    )
    origin_lead_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("leads.id"),
        nullable=True,
        comment="Converted lead that referred this one",
    )
    split_percentage: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(5, 2),
        nullable=True,
        comment="Share of the commission paid as referral split",
    )

    # Relationships
    consultant: Mapped["User"] = relationship(
        "User",
        back_populates="indicated_leads",
        foreign_keys=[consultant_id],
    )
    origin_lead: Mapped[Optional["Lead"]] = relationship(
        "Lead",
        remote_side=[id],
    )

    def can_transition_to(self, target: LeadStatus) -> bool:
        """Check whether the funnel allows moving this lead to target."""
        return target in ALLOWED_TRANSITIONS[self.status]

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, status={self.status}, consultant_id={self.consultant_id})>"
