"""Pydantic schemas for request/response validation."""

from commission_engine.schemas.commission import (
    CommissionPreview,
    CommissionPreviewRequest,
    CommissionRecordResponse,
    ConsultantCommission,
    ManagerCommission,
    MilestoneCrossing,
    NextMilestone,
)
from commission_engine.schemas.conversion import (
    ALLOWED_UNITS,
    ConversionEvent,
    ConversionResult,
    ConvertLeadRequest,
)
from commission_engine.schemas.establishment import (
    MILESTONE_THRESHOLDS,
    CommissionConfig,
    Milestone,
)

__all__ = [
    # Establishment
    "CommissionConfig",
    "Milestone",
    "MILESTONE_THRESHOLDS",
    # Commission
    "ConsultantCommission",
    "ManagerCommission",
    "MilestoneCrossing",
    "NextMilestone",
    "CommissionPreview",
    "CommissionPreviewRequest",
    "CommissionRecordResponse",
    # Conversion
    "ALLOWED_UNITS",
    "ConversionEvent",
    "ConvertLeadRequest",
    "ConversionResult",
]
