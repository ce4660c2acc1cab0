from __future__ import annotations

"""Lightweight HTTP client util.

Uses stdlib urllib so the outbound path carries no extra runtime deps. Focus:
GET JSON with an optional bounded number of retries.

`timeout` is a total budget per attempt: urllib's socket timeout only bounds a
single read, so the body is pulled in chunks against a monotonic deadline.
"""
import http.client
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Mapping, Optional

CHUNK_SIZE = 8192


class HttpError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def build_url(url: str, params: Optional[Mapping[str, Any]] = None) -> str:
    if not params:
        return url
    return f"{url}?{urllib.parse.urlencode(params)}"


def _read_body(resp, deadline: float) -> bytes:
    chunks = []
    while True:
        if time.monotonic() > deadline:
            raise TimeoutError("read deadline exceeded")
        chunk = resp.read1(CHUNK_SIZE)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def get_json(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    timeout: float = 5.0,
    retries: int = 2,
    backoff: float = 0.5,
) -> Dict[str, Any]:
    full_url = build_url(url, params)
    last_err: Optional[Exception] = None
    last_status: Optional[int] = None
    for attempt in range(retries + 1):
        deadline = time.monotonic() + timeout
        try:
            with urllib.request.urlopen(full_url, timeout=timeout) as resp:  # nosec B310
                last_status = resp.status
                if resp.status != 200:
                    raise HttpError(f"HTTP {resp.status}", status=resp.status)
                data = _read_body(resp, deadline)
                return json.loads(data.decode("utf-8"))
        except urllib.error.HTTPError as e:
            last_err = e
            last_status = e.code
        except (
            urllib.error.URLError,
            http.client.HTTPException,  # IncompleteRead, BadStatusLine, ...
            TimeoutError,
            ConnectionError,
            HttpError,
            ValueError,
        ) as e:  # ValueError for JSON decode
            last_err = e
        if attempt == retries:
            break
        time.sleep(backoff * (2**attempt))
    raise HttpError(f"Failed to fetch JSON: {last_err}", status=last_status)
