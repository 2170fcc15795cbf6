"""Referral tracking and commission accounting engine."""

__version__ = "1.0.0"
