from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from nisab_proxy.core.config import Settings
from nisab_proxy.models.constants import SOURCE_UPSTREAM
from nisab_proxy.models.nisab import (
    DEFAULT_PRICE_TABLE,
    CacheKey,
    FallbackPriceTable,
    validate_entry,
)
from nisab_proxy.services.validation import normalize_key
from .base import NisabStore, SupportsFetch, isoformat_ts
from .fallback import calculate_fallback
from .fetcher import IslamicApiFetcher, UpstreamFailure
from .store import FileNisabStore

"""Read-through nisab cache (request orchestrator).

Per request:
    1. normalize (currency, standard) -> CacheKey
    2. fresh entry in the store -> serve it (source=cache)
    3. otherwise one upstream attempt -> persist + serve (source=islamicapi)
    4. on any upstream problem -> computed fallback, persisted best-effort
       (source=fallback)

Every path returns a well-formed entry; failures are logged and degraded,
never raised to the caller.
"""

logger = logging.getLogger("nisab_proxy.cache")

DEBUG_CACHE = "Served from cache"
DEBUG_UPSTREAM = "Fresh from IslamicAPI"


class NisabCacheService:
    def __init__(
        self,
        store: NisabStore,
        fetcher: SupportsFetch,
        price_table: FallbackPriceTable = DEFAULT_PRICE_TABLE,
        max_age_seconds: float = 21600,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._fetcher = fetcher
        self._price_table = price_table
        self._max_age = max_age_seconds
        self._clock = clock

    # Internal --------------------------------------------------
    def _from_cache(self, location: str) -> Optional[Dict[str, Any]]:
        if not self._store.is_fresh(location, self._max_age, self._clock()):
            return None
        entry = self._store.read(location)
        if entry is None:
            # fresh but unreadable; behave like a miss
            return None
        entry["debug"] = DEBUG_CACHE
        return entry

    def _from_upstream(self, key: CacheKey, location: str) -> Dict[str, Any]:
        entry = dict(self._fetcher.fetch(key))
        # injected fetchers may skip schema checks
        problem = validate_entry(entry)
        if problem:
            raise UpstreamFailure(f"malformed upstream body: {problem}", status=200)
        entry["source"] = SOURCE_UPSTREAM
        entry["cached_at"] = isoformat_ts(self._clock())
        entry["debug"] = DEBUG_UPSTREAM
        self._store.write(location, entry)
        return entry

    def _from_fallback(self, key: CacheKey, location: str) -> Dict[str, Any]:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        entry = calculate_fallback(key, self._price_table, now=now)
        if not self._store.write(location, entry):
            logger.warning("fallback entry for %s not persisted", location)
        return entry

    # Public API -----------------------------------------------
    def get_nisab(
        self, currency: Optional[str] = None, standard: Optional[str] = None
    ) -> Dict[str, Any]:
        key = normalize_key(currency, standard)
        logger.info(
            "nisab request currency=%s standard=%s -> %s/%s",
            currency,
            standard,
            key.currency,
            key.standard,
        )
        location = self._store.locate(key)

        cached = self._from_cache(location)
        if cached is not None:
            return cached

        try:
            return self._from_upstream(key, location)
        except UpstreamFailure as e:
            logger.warning("upstream unavailable for %s: %s", location, e)
        except Exception:
            logger.exception("unexpected error refreshing %s", location)
        return self._from_fallback(key, location)


def build_nisab_service(
    settings: Settings,
    *,
    store: NisabStore | None = None,
    fetcher: SupportsFetch | None = None,
    price_table: FallbackPriceTable = DEFAULT_PRICE_TABLE,
    clock: Callable[[], float] = time.time,
) -> NisabCacheService:
    """Wire the service from settings; store/fetcher/clock are injectable for tests."""
    return NisabCacheService(
        store=store or FileNisabStore(settings.cache_dir),
        fetcher=fetcher
        or IslamicApiFetcher(
            base_url=str(settings.upstream_base_url),
            api_key=settings.upstream_api_key,
            timeout=settings.http_timeout_seconds,
        ),
        price_table=price_table,
        max_age_seconds=settings.cache_ttl_seconds,
        clock=clock,
    )
