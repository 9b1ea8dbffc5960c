"""Error taxonomy for the pricing layer"""
from typing import Any, Optional


class PricingError(ValueError):
    """A quote request the engine refuses to price."""

    def __init__(self, field: str, value: Any, message: Optional[str] = None):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid value for {field}: {value!r}")


class InvalidEnumeration(PricingError):
    """A site type, design level, timeline or location outside its closed set."""

    def __init__(self, field: str, value: Any, allowed):
        self.allowed = sorted(str(a) for a in allowed)
        super().__init__(
            field,
            value,
            f"Invalid {field} {value!r}. Must be one of {self.allowed}",
        )


class InvalidQuantity(PricingError):
    """A page count that is not a finite integer in [1, upper]."""

    def __init__(self, field: str, value: Any, upper: Optional[int] = None):
        self.upper = upper
        bound = f"between 1 and {upper}" if upper is not None else "of at least 1"
        super().__init__(
            field,
            value,
            f"Invalid {field} {value!r}. Must be a whole number {bound}",
        )


class InvalidFeatures(PricingError):
    """Feature tags given as a bare string instead of a collection."""

    def __init__(self, field: str, value: Any):
        super().__init__(
            field,
            value,
            f"Invalid {field} {value!r}. Must be a list of feature tags",
        )


class PriceTableError(ValueError):
    """Raised when a price table fails validation at load time."""


class ProposalRenderError(RuntimeError):
    """Raised when a proposal document cannot be produced."""


class CrmDeliveryError(RuntimeError):
    """Raised when a saved quote could not be delivered to the CRM webhook."""
