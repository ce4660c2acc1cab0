"""Domain constants for request normalization and the fallback price table.

Kept as immutable module-level values; the fallback table is assembled into a
single frozen object in `nisab_proxy.models.nisab.DEFAULT_PRICE_TABLE`.
"""

from typing import Dict, Tuple

SUPPORTED_CURRENCIES: Tuple[str, ...] = (
    "NGN",
    "USD",
    "EUR",
    "GBP",
    "SAR",
    "AED",
    "PKR",
    "INR",
    "MYR",
    "IDR",
)
STANDARDS: Tuple[str, ...] = ("classical", "common")

DEFAULT_CURRENCY = "NGN"
DEFAULT_STANDARD = "classical"

# Upstream query unit and the unit name reported in entries
UPSTREAM_WEIGHT_UNIT = "g"
ENTRY_WEIGHT_UNIT = "gram"

ZAKAT_RATE = "2.5%"

# Provenance tags
SOURCE_CACHE = "cache"
SOURCE_UPSTREAM = "islamicapi"
SOURCE_FALLBACK = "fallback"

# Reference weights in grams per calculation standard
STANDARD_WEIGHTS: Dict[str, Dict[str, float]] = {
    "classical": {"gold": 87.48, "silver": 612.36},
    "common": {"gold": 85, "silver": 595},
}

GOLD_PER_GRAM_USD = 62.75
SILVER_PER_GRAM_USD = 0.85

# Units of currency per 1 USD
EXCHANGE_RATES: Dict[str, float] = {
    "NGN": 1300,
    "USD": 1,
    "EUR": 0.92,
    "GBP": 0.79,
    "SAR": 3.75,
    "AED": 3.67,
    "PKR": 280,
    "INR": 83,
    "MYR": 4.75,
    "IDR": 15500,
}
