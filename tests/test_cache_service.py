from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from conftest import FakeClock, FakeFetcher
from nisab_proxy.models.nisab import CacheKey, validate_entry
from nisab_proxy.services.nisab.cache_service import NisabCacheService, build_nisab_service
from nisab_proxy.services.nisab.fetcher import UpstreamFailure
from nisab_proxy.services.nisab.store import FileNisabStore, MemoryNisabStore

WINDOW = 21600


def make_service(store, fetcher, clock) -> NisabCacheService:
    return NisabCacheService(store=store, fetcher=fetcher, max_age_seconds=WINDOW, clock=clock)


def test_miss_fetches_upstream_and_persists(tmp_path: Path, clock, upstream_body):
    fetcher = FakeFetcher(upstream_body)
    store = FileNisabStore(tmp_path)
    svc = make_service(store, fetcher, clock)

    entry = svc.get_nisab("usd", "classical")

    assert fetcher.calls == [CacheKey("USD", "classical")]
    assert entry["source"] == "islamicapi"
    assert entry["debug"] == "Fresh from IslamicAPI"
    assert entry["cached_at"] == "2027-01-15T08:00:00+00:00"
    stored = json.loads((tmp_path / "nisab_usd_classical.json").read_text(encoding="utf-8"))
    assert stored["data"] == upstream_body["data"]
    assert validate_entry(stored) is None


def test_fresh_entry_is_served_from_cache(clock, upstream_body):
    fetcher = FakeFetcher(upstream_body)
    svc = make_service(MemoryNisabStore(clock=clock), fetcher, clock)
    svc.get_nisab("USD", "classical")

    clock.advance(WINDOW - 1)
    entry = svc.get_nisab("USD", "classical")

    assert len(fetcher.calls) == 1
    assert entry["source"] == "cache"
    assert entry["debug"] == "Served from cache"
    assert entry["data"] == upstream_body["data"]


def test_stale_entry_triggers_refetch(clock, upstream_body):
    refreshed = json.loads(json.dumps(upstream_body))
    refreshed["data"]["nisab_thresholds"]["gold"]["unit_price"] = 140.0
    fetcher = FakeFetcher(upstream_body, refreshed)
    svc = make_service(MemoryNisabStore(clock=clock), fetcher, clock)
    svc.get_nisab("USD", "classical")

    clock.advance(WINDOW + 1)
    entry = svc.get_nisab("USD", "classical")

    assert len(fetcher.calls) == 2
    assert entry["source"] == "islamicapi"
    assert entry["data"]["nisab_thresholds"]["gold"]["unit_price"] == 140.0


def test_upstream_failure_returns_and_persists_fallback(tmp_path: Path, clock, failing_fetcher):
    svc = make_service(FileNisabStore(tmp_path), failing_fetcher, clock)

    entry = svc.get_nisab("USD", "classical")

    assert entry["source"] == "fallback"
    assert entry["data"]["nisab_thresholds"]["gold"]["nisab_amount"] == 5489.37
    assert entry["data"]["nisab_thresholds"]["silver"]["nisab_amount"] == 520.51
    stored = json.loads((tmp_path / "nisab_usd_classical.json").read_text(encoding="utf-8"))
    assert stored["data"] == entry["data"]


def test_persisted_fallback_is_served_from_cache_within_window(clock, failing_fetcher):
    svc = make_service(MemoryNisabStore(clock=clock), failing_fetcher, clock)
    svc.get_nisab("EUR", "common")

    clock.advance(60)
    entry = svc.get_nisab("EUR", "common")

    assert len(failing_fetcher.calls) == 1
    assert entry["source"] == "cache"
    assert entry["data"]["notes"] == "Fallback calculation - API unavailable"


def test_invalid_input_is_normalized_before_lookup(clock, failing_fetcher):
    svc = make_service(MemoryNisabStore(clock=clock), failing_fetcher, clock)

    entry = svc.get_nisab("doge", "whatever")

    assert failing_fetcher.calls == [CacheKey("NGN", "classical")]
    assert entry["currency"] == "NGN"
    assert entry["calculation_standard"] == "classical"


def test_corrupt_fresh_entry_falls_through_to_fetch(tmp_path: Path, clock, upstream_body):
    store = FileNisabStore(tmp_path)
    location = store.locate(CacheKey("USD", "classical"))
    Path(location).write_text("{truncated", encoding="utf-8")
    fetcher = FakeFetcher(upstream_body)
    real_clock_svc = make_service(store, fetcher, FakeClock(Path(location).stat().st_mtime + 5))

    entry = real_clock_svc.get_nisab("USD", "classical")

    assert len(fetcher.calls) == 1
    assert entry["source"] == "islamicapi"


def test_write_failure_still_returns_valid_entry(tmp_path: Path, clock, failing_fetcher, upstream_body):
    blocker = tmp_path / "readonly"
    blocker.write_text("", encoding="utf-8")
    store = FileNisabStore(blocker / "cache")

    fallback = make_service(store, failing_fetcher, clock).get_nisab("SAR", "common")
    live = make_service(store, FakeFetcher(upstream_body), clock).get_nisab("SAR", "common")

    assert fallback["source"] == "fallback"
    assert validate_entry(fallback) is None
    assert live["source"] == "islamicapi"
    assert validate_entry(live) is None


@pytest.mark.parametrize(
    "error", [UpstreamFailure("timed out"), RuntimeError("boom"), KeyError("code")]
)
def test_any_refresh_error_degrades_to_fallback(clock, error):
    svc = make_service(MemoryNisabStore(clock=clock), FakeFetcher(error), clock)

    entry = svc.get_nisab("INR", "classical")

    assert entry["source"] == "fallback"
    assert validate_entry(entry) is None


def test_concurrent_misses_each_produce_valid_entry(tmp_path: Path, clock, upstream_body):
    store = FileNisabStore(tmp_path)
    svc = make_service(store, FakeFetcher(upstream_body), clock)
    results = []

    def worker():
        results.append(svc.get_nisab("USD", "classical"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert all(validate_entry(r) is None for r in results)
    stored = json.loads((tmp_path / "nisab_usd_classical.json").read_text(encoding="utf-8"))
    assert validate_entry(stored) is None


def test_build_nisab_service_uses_settings(settings, clock, failing_fetcher):
    svc = build_nisab_service(settings, fetcher=failing_fetcher, clock=clock)

    svc.get_nisab("GBP", "classical")

    assert (settings.cache_dir / "nisab_gbp_classical.json").exists()


def test_non_finite_upstream_value_degrades_to_fallback(clock, upstream_body):
    upstream_body["data"]["nisab_thresholds"]["silver"]["nisab_amount"] = float("nan")
    store = MemoryNisabStore(clock=clock)
    svc = make_service(store, FakeFetcher(upstream_body), clock)

    entry = svc.get_nisab("USD", "classical")

    assert entry["source"] == "fallback"
    assert entry["data"]["nisab_thresholds"]["silver"]["nisab_amount"] == 520.51
    assert store.read("nisab_usd_classical")["data"]["notes"].startswith("Fallback")
