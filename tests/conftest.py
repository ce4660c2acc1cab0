from __future__ import annotations

import copy
from typing import Any, Dict, List

import pytest

from nisab_proxy.core.config import Settings
from nisab_proxy.models.nisab import CacheKey
from nisab_proxy.services.nisab.fetcher import UpstreamFailure

UPSTREAM_BODY: Dict[str, Any] = {
    "code": 200,
    "status": "success",
    "calculation_standard": "classical",
    "currency": "usd",
    "weight_unit": "gram",
    "updated_at": "2026-10-19T08:00:00+00:00",
    "data": {
        "nisab_thresholds": {
            "gold": {"weight": 87.48, "unit_price": 131.2, "nisab_amount": 11477.38},
            "silver": {"weight": 612.36, "unit_price": 1.62, "nisab_amount": 992.02},
        },
        "zakat_rate": "2.5%",
        "notes": "Live market prices",
    },
}


class FakeClock:
    def __init__(self, now: float = 1_800_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """Returns queued bodies or raises queued exceptions, recording each key."""

    def __init__(self, *results: Any):
        self.results: List[Any] = list(results)
        self.calls: List[CacheKey] = []

    def fetch(self, key: CacheKey) -> Dict[str, Any]:
        self.calls.append(key)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return copy.deepcopy(result)


@pytest.fixture
def upstream_body() -> Dict[str, Any]:
    return copy.deepcopy(UPSTREAM_BODY)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def failing_fetcher() -> FakeFetcher:
    return FakeFetcher(UpstreamFailure("request failed: timed out"))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(cache_dir=tmp_path / "cache", upstream_api_key="test-key")
