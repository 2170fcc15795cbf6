"""
User model for consultants, managers and clinic staff.
"""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from commission_engine.models.audit import AuditLog
    from commission_engine.models.lead import Lead


class UserRole(str, Enum):
    """Roles inside a clinic's sales organization."""
    CLINIC_ADMIN = "clinic_admin"
    CLINIC_VIEWER = "clinic_viewer"
    MANAGER = "manager"
    CONSULTANT = "consultant"


class User(Base, TimestampMixin):
    """
    User account model.

    - consultant: indicates leads and earns per-unit commissions
    - manager: leads a team of consultants, earns overrides and milestones
    - clinic_admin / clinic_viewer: clinic staff, never commission beneficiaries
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    full_name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SQLAlchemyEnum(
            UserRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    # Relationships
    indicated_leads: Mapped[List["Lead"]] = relationship(
        "Lead",
        back_populates="consultant",
        foreign_keys="Lead.consultant_id",
    )
    audit_logs: Mapped[List["AuditLog"]] = relationship(
        "AuditLog",
        back_populates="user",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
