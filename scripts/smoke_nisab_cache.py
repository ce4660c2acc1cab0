"""Smoke script for the nisab file cache.

Demonstrates against a throwaway cache directory:
 1. First request misses; upstream is tried once (unreachable here) and the
    fallback entry is persisted.
 2. Second request within the freshness window is served from the file.
 3. Backdating the file's mtime past the window forces another refresh.

NOTE: This is a lightweight diagnostic and not a formal test.
"""

import os
import sys
import tempfile
import time
from pprint import pprint

from fastapi.testclient import TestClient

from nisab_proxy.core.config import Settings
from nisab_proxy.main import create_app


def _summary(resp):
    body = resp.json()
    gold = body["data"]["nisab_thresholds"]["gold"]
    return {
        "source": body["source"],
        "debug": body.get("debug"),
        "cached_at": body.get("cached_at"),
        "gold_nisab": gold["nisab_amount"],
    }


def run():
    with tempfile.TemporaryDirectory() as d:
        settings = Settings(
            cache_dir=os.path.join(d, "cache"),
            # unroutable address so the fallback path is exercised deterministically
            upstream_base_url="http://127.0.0.1:9/zakat-nisab/",
            http_timeout_seconds=1.0,
        )
        client = TestClient(create_app(settings_override=settings))
        params = {"currency": "USD", "standard": "classical"}
        out = {}

        out["initial"] = _summary(client.get("/zakat-nisab", params=params))
        out["second"] = _summary(client.get("/zakat-nisab", params=params))

        cache_file = os.path.join(d, "cache", "nisab_usd_classical.json")
        stale = time.time() - settings.cache_ttl_seconds - 5
        os.utime(cache_file, (stale, stale))
        out["forced_refresh"] = _summary(client.get("/zakat-nisab", params=params))

        pprint(out)


if __name__ == "__main__":
    sys.path.append(os.getcwd())
    run()
