"""
Conversion errors surfaced to callers.

Store failures are not wrapped: SQLAlchemy errors propagate unchanged.
"""


class ConversionError(Exception):
    """Base class for rejected conversions."""
    pass


class InvalidConversionError(ConversionError):
    """The conversion request breaks a validation rule."""
    pass


class LeadNotFoundError(ConversionError):
    """A referenced lead does not exist."""

    def __init__(self, lead_id: int):
        self.lead_id = lead_id
        super().__init__(f"Lead {lead_id} not found")


class LeadAlreadyConvertedError(ConversionError):
    """The lead was converted before; commissions are never recomputed."""

    def __init__(self, lead_id: int):
        self.lead_id = lead_id
        super().__init__(f"Lead {lead_id} is already converted")
