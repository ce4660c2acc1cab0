"""Money / rounding helpers.

Centralized so the fallback calculator and any future endpoints use identical
rounding semantics (half away from zero, as the upstream pricing API rounds).
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP


def _quantize(value: float, exp: str) -> float:
    return float(Decimal(str(value)).quantize(Decimal(exp), rounding=ROUND_HALF_UP))


def round2(value: float) -> float:
    return _quantize(value, "0.01")


def round4(value: float) -> float:
    return _quantize(value, "0.0001")
