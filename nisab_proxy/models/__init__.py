"""Pydantic and dataclass domain models for the Nisab Cache Proxy."""

from .constants import (
    SUPPORTED_CURRENCIES,
    STANDARDS,
    DEFAULT_CURRENCY,
    DEFAULT_STANDARD,
)  # re-export
from .nisab import (
    CacheKey,
    FallbackPriceTable,
    DEFAULT_PRICE_TABLE,
    NisabEntry,
    validate_entry,
)

__all__ = [
    "SUPPORTED_CURRENCIES",
    "STANDARDS",
    "DEFAULT_CURRENCY",
    "DEFAULT_STANDARD",
    "CacheKey",
    "FallbackPriceTable",
    "DEFAULT_PRICE_TABLE",
    "NisabEntry",
    "validate_entry",
]
