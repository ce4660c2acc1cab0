from __future__ import annotations

"""Cache store abstraction and fetcher protocol.

Backends only implement the key-value primitives (`locate`, `last_modified`,
`get`, `put`); the freshness check, provenance annotation and the
log-don't-raise failure policy live here so every backend behaves the same.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Tuple

from nisab_proxy.models.constants import SOURCE_CACHE
from nisab_proxy.models.nisab import CacheKey, validate_entry

logger = logging.getLogger("nisab_proxy.store")


def isoformat_ts(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec="seconds")


class SupportsFetch(Protocol):
    def fetch(self, key: CacheKey) -> Dict[str, Any]: ...


class NisabStore(ABC):
    @abstractmethod
    def locate(self, key: CacheKey) -> str:
        """Deterministic storage location for a key."""
        raise NotImplementedError

    @abstractmethod
    def last_modified(self, location: str) -> Optional[float]:
        """Epoch seconds of the last write, or None when absent."""
        raise NotImplementedError

    @abstractmethod
    def get(self, location: str) -> Tuple[Optional[Any], Optional[float]]:
        """Return (payload, last_modified); (None, None) when absent.

        Raises OSError / ValueError when the stored value is unreadable.
        """
        raise NotImplementedError

    @abstractmethod
    def put(self, location: str, entry: Dict[str, Any]) -> None:
        """Replace the whole entry at location. Raises OSError on failure."""
        raise NotImplementedError

    # Shared policy ---------------------------------------------
    def is_fresh(self, location: str, max_age_seconds: float, now: float) -> bool:
        try:
            modified = self.last_modified(location)
        except OSError as e:
            logger.warning("cannot stat cache entry %s: %s", location, e)
            return False
        return modified is not None and (now - modified) < max_age_seconds

    def read(self, location: str) -> Optional[Dict[str, Any]]:
        try:
            payload, modified = self.get(location)
        except (OSError, ValueError) as e:
            logger.warning("failed to read cache %s: %s", location, e)
            return None
        if payload is None:
            logger.info("cache entry not found: %s", location)
            return None
        problem = validate_entry(payload)
        if problem:
            logger.warning("discarding corrupt cache entry %s: %s", location, problem)
            return None
        entry = dict(payload)
        entry["source"] = SOURCE_CACHE
        entry["cached_at"] = isoformat_ts(modified) if modified is not None else None
        return entry

    def write(self, location: str, entry: Dict[str, Any]) -> bool:
        problem = validate_entry(entry)
        if problem:
            logger.error("refusing to persist malformed entry to %s: %s", location, problem)
            return False
        try:
            self.put(location, entry)
        except (OSError, TypeError, ValueError) as e:  # TypeError/ValueError from json
            logger.error("failed to write cache %s: %s", location, e)
            return False
        return True
