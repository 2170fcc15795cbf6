"""
Database models for the commission engine.

All models are exported here for convenient imports:
    from commission_engine.models import Lead, CommissionRecord, etc.
"""

from commission_engine.models.audit import AuditAction, AuditLog
from commission_engine.models.base import Base, TimestampMixin
from commission_engine.models.commission import (
    CommissionKind,
    CommissionRecord,
    CommissionRole,
    CommissionStatus,
)
from commission_engine.models.counter import CounterScope, UnitCounter
from commission_engine.models.establishment import EstablishmentCommission
from commission_engine.models.hierarchy import HierarchyEdge
from commission_engine.models.lead import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    Lead,
    LeadStatus,
    OriginType,
)
from commission_engine.models.referral import LeadReferral
from commission_engine.models.user import User, UserRole

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    "HierarchyEdge",
    # Establishment
    "EstablishmentCommission",
    # Lead
    "Lead",
    "LeadStatus",
    "OriginType",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "LeadReferral",
    # Commission
    "CommissionRecord",
    "CommissionKind",
    "CommissionRole",
    "CommissionStatus",
    "UnitCounter",
    "CounterScope",
    # Audit
    "AuditLog",
    "AuditAction",
]
