from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    DEFAULT_STANDARD,
    EXCHANGE_RATES,
    GOLD_PER_GRAM_USD,
    SILVER_PER_GRAM_USD,
    STANDARD_WEIGHTS,
)


@dataclass(frozen=True)
class CacheKey:
    currency: str
    standard: str

    @property
    def location_name(self) -> str:
        return f"nisab_{self.currency.lower()}_{self.standard}"


@dataclass(frozen=True)
class FallbackPriceTable:
    """Reference weights, USD prices and FX rates used when upstream is down."""

    weights: Mapping[str, Mapping[str, float]]
    gold_per_gram_usd: float
    silver_per_gram_usd: float
    exchange_rates: Mapping[str, float]
    default_standard: str = field(default=DEFAULT_STANDARD)

    def weights_for(self, standard: str) -> Mapping[str, float]:
        return self.weights.get(standard) or self.weights[self.default_standard]

    def rate_for(self, currency: str) -> float:
        return self.exchange_rates.get(currency, 1)

    def price_per_gram_usd(self, metal: str) -> float:
        return self.gold_per_gram_usd if metal == "gold" else self.silver_per_gram_usd


DEFAULT_PRICE_TABLE = FallbackPriceTable(
    weights=MappingProxyType(
        {k: MappingProxyType(dict(v)) for k, v in STANDARD_WEIGHTS.items()}
    ),
    gold_per_gram_usd=GOLD_PER_GRAM_USD,
    silver_per_gram_usd=SILVER_PER_GRAM_USD,
    exchange_rates=MappingProxyType(dict(EXCHANGE_RATES)),
)


# Entry schema ---------------------------------------------------------------
# Unknown keys are preserved so upstream additions pass through untouched.


class MetalThreshold(BaseModel):
    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    weight: float = Field(..., ge=0)
    unit_price: float = Field(..., ge=0)
    nisab_amount: float = Field(..., ge=0)


class NisabThresholds(BaseModel):
    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    gold: MetalThreshold
    silver: MetalThreshold


class NisabData(BaseModel):
    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    nisab_thresholds: NisabThresholds
    zakat_rate: str
    notes: Optional[str] = None


class NisabEntry(BaseModel):
    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    code: int
    status: str
    calculation_standard: str
    currency: str
    weight_unit: str
    updated_at: str
    data: NisabData

    @field_validator("code")
    @classmethod
    def success_code(cls, v: int) -> int:
        if v != 200:
            raise ValueError(f"unsuccessful response code {v}")
        return v


def find_non_finite(value: Any, path: str = "") -> Optional[str]:
    """Path of the first inf/nan number anywhere in value, including extra keys."""
    if isinstance(value, float) and not math.isfinite(value):
        return path or "<root>"
    if isinstance(value, dict):
        items = value.items()
    elif isinstance(value, (list, tuple)):
        items = enumerate(value)
    else:
        return None
    for k, v in items:
        found = find_non_finite(v, f"{path}.{k}" if path else str(k))
        if found:
            return found
    return None


def validate_entry(payload: Any) -> Optional[str]:
    """Return None when payload is a well-formed entry, else a short reason."""
    if not isinstance(payload, dict):
        return f"expected JSON object, got {type(payload).__name__}"
    bad = find_non_finite(payload)
    if bad:
        return f"{bad}: non-finite number"
    try:
        NisabEntry.model_validate(payload)
    except ValidationError as e:
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
    return None
