"""
Error taxonomy for pricing operations.

Every error here is fatal for the current invocation.
"""

from typing import Iterable, Optional


class PricingError(Exception):
    """Base class for all pricing tool errors."""


class CatalogFetchError(PricingError):
    """Raised when the model catalog cannot be obtained or decoded."""


class CatalogFormatError(CatalogFetchError):
    """Raised when a catalog record is missing required fields."""


class InvalidPriceError(PricingError):
    """Raised when a price needed for a cost computation fails to parse."""
    def __init__(self, value: Optional[str], field: str = "price", model_id: Optional[str] = None):
        target = f" for {model_id}" if model_id else ""
        super().__init__(f"Invalid {field} price{target}: {value!r}")
        self.value = value
        self.field = field
        self.model_id = model_id


class UnsupportedTTLError(PricingError):
    """Raised when a cache TTL other than 5 or 60 minutes is requested."""
    def __init__(self, ttl: int, supported: Iterable[int] = (5, 60)):
        options = " or ".join(str(minutes) for minutes in supported)
        super().__init__(f"Unsupported cache TTL: {ttl} minutes (must be {options})")
        self.ttl = ttl


class InvalidSortKeyError(PricingError):
    """Raised for an unrecognized sort token."""
    def __init__(self, token: str, valid_tokens: Iterable[str]):
        valid = ", ".join(valid_tokens)
        super().__init__(f"Invalid sort key: {token!r}. Valid keys: {valid}")
        self.token = token


class SortScopeError(PricingError):
    """Raised when a sort key is used outside the flow that supports it."""
