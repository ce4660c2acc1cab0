from __future__ import annotations

"""IslamicAPI zakat-nisab client.

One attempt, bounded by the configured timeout. Any problem (transport,
status, body) is reported as UpstreamFailure so the caller can fall back.
"""
import logging
from typing import Any, Dict, Optional

from nisab_proxy.models.constants import UPSTREAM_WEIGHT_UNIT
from nisab_proxy.models.nisab import CacheKey, validate_entry
from nisab_proxy.services.http_client import HttpError, build_url, get_json

logger = logging.getLogger("nisab_proxy.upstream")


class UpstreamFailure(Exception):
    def __init__(self, detail: str, status: Optional[int] = None):
        super().__init__(f"{detail} (HTTP status: {status})" if status else detail)
        self.detail = detail
        self.status = status


class IslamicApiFetcher:
    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout

    def _params(self, key: CacheKey) -> Dict[str, str]:
        return {
            "standard": key.standard,
            "currency": key.currency.lower(),
            "unit": UPSTREAM_WEIGHT_UNIT,
            "api_key": self.api_key,
        }

    def fetch(self, key: CacheKey) -> Dict[str, Any]:
        params = self._params(key)
        logger.info(
            "calling upstream %s", build_url(self.base_url, {**params, "api_key": "***"})
        )
        try:
            body = get_json(self.base_url, params=params, timeout=self.timeout, retries=0)
        except HttpError as e:
            raise UpstreamFailure(f"request failed: {e}", status=e.status) from e

        if not isinstance(body, dict) or body.get("code") != 200:
            code = body.get("code") if isinstance(body, dict) else None
            raise UpstreamFailure(f"upstream returned error code {code!r}", status=200)
        problem = validate_entry(body)
        if problem:
            raise UpstreamFailure(f"malformed upstream body: {problem}", status=200)
        return body
