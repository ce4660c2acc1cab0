"""Inbound query normalization.

Malformed or unsupported values degrade to the defaults instead of producing a
client error, so the proxy always answers with some entry.
"""

from __future__ import annotations

from typing import Optional

from nisab_proxy.models.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_STANDARD,
    STANDARDS,
    SUPPORTED_CURRENCIES,
)
from nisab_proxy.models.nisab import CacheKey


def normalize_currency(currency: Optional[str]) -> str:
    value = (currency or "").strip().upper()
    return value if value in SUPPORTED_CURRENCIES else DEFAULT_CURRENCY


def normalize_standard(standard: Optional[str]) -> str:
    value = (standard or "").strip()
    return value if value in STANDARDS else DEFAULT_STANDARD


def normalize_key(currency: Optional[str], standard: Optional[str]) -> CacheKey:
    return CacheKey(
        currency=normalize_currency(currency), standard=normalize_standard(standard)
    )
