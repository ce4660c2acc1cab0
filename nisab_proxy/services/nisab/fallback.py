from __future__ import annotations

"""Locally computed nisab approximation used when upstream is unavailable."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from nisab_proxy.models.constants import (
    ENTRY_WEIGHT_UNIT,
    SOURCE_FALLBACK,
    ZAKAT_RATE,
)
from nisab_proxy.models.nisab import CacheKey, FallbackPriceTable
from nisab_proxy.services.money import round2, round4

FALLBACK_NOTES = "Fallback calculation - API unavailable"
FALLBACK_DEBUG = "Using fallback calculation"


def metal_threshold(
    table: FallbackPriceTable, metal: str, weight: float, rate: float
) -> Dict[str, float]:
    unit_price = table.price_per_gram_usd(metal) * rate
    return {
        "weight": weight,
        "unit_price": round4(unit_price),
        # amount uses the unrounded unit price
        "nisab_amount": round2(unit_price * weight),
    }


def calculate_fallback(
    key: CacheKey, table: FallbackPriceTable, now: Optional[datetime] = None
) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    weights = table.weights_for(key.standard)
    rate = table.rate_for(key.currency)
    return {
        "code": 200,
        "status": "success",
        "calculation_standard": key.standard,
        "currency": key.currency,
        "weight_unit": ENTRY_WEIGHT_UNIT,
        "updated_at": now.isoformat(timespec="seconds"),
        "data": {
            "nisab_thresholds": {
                metal: metal_threshold(table, metal, weights[metal], rate)
                for metal in ("gold", "silver")
            },
            "zakat_rate": ZAKAT_RATE,
            "notes": FALLBACK_NOTES,
        },
        "source": SOURCE_FALLBACK,
        "debug": FALLBACK_DEBUG,
    }
