"""Business logic services."""

from commission_engine.services.commission import (
    compute_consultant_commission,
    compute_manager_commission,
    compute_referral_split,
    preview_commissions,
)
from commission_engine.services.conversion import process_conversion
from commission_engine.services.establishment_config import get_commission_config
from commission_engine.services.hierarchy import manager_of, team_of
from commission_engine.services.tiers import crossed_tiers

__all__ = [
    "compute_consultant_commission",
    "compute_manager_commission",
    "compute_referral_split",
    "crossed_tiers",
    "get_commission_config",
    "manager_of",
    "preview_commissions",
    "process_conversion",
    "team_of",
]
