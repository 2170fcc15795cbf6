"""
Manager → consultant hierarchy edges.
"""

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from commission_engine.models.user import User


class HierarchyEdge(Base, TimestampMixin):
    """
    One (manager, consultant) pair.

    A consultant has at most one manager (unique consultant_id) and the
    hierarchy is a single level: managers are not nested under managers.
    """

    __tablename__ = "hierarchies"
    __table_args__ = (
        CheckConstraint("manager_id <> consultant_id", name="ck_hierarchies_not_self"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    manager_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    consultant_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        unique=True,
    )

    # Relationships
    manager: Mapped["User"] = relationship("User", foreign_keys=[manager_id])
    consultant: Mapped["User"] = relationship("User", foreign_keys=[consultant_id])

    def __repr__(self) -> str:
        return f"<HierarchyEdge(manager_id={self.manager_id}, consultant_id={self.consultant_id})>"
