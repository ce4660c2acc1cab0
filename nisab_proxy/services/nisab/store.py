from __future__ import annotations

"""Concrete cache store backends.

FileNisabStore keeps one pretty-printed JSON document per key under a cache
directory and uses file mtime as the only freshness signal. Writes go to a
temp file in the same directory followed by os.replace, so readers see either
the old or the new document, never a partial one. No locking: concurrent
writers of the same key race and the last replace wins.
"""
import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from nisab_proxy.models.nisab import CacheKey
from .base import NisabStore


class FileNisabStore(NisabStore):
    def __init__(self, root: Path | str):
        self.root = Path(root)

    def locate(self, key: CacheKey) -> str:
        return str(self.root / f"{key.location_name}.json")

    def last_modified(self, location: str) -> Optional[float]:
        try:
            return os.stat(location).st_mtime
        except FileNotFoundError:
            return None

    def get(self, location: str) -> Tuple[Optional[Any], Optional[float]]:
        path = Path(location)
        try:
            modified = path.stat().st_mtime
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None, None
        return json.loads(content), modified

    def put(self, location: str, entry: Dict[str, Any]) -> None:
        path = Path(location)
        path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entry, fh, indent=4, ensure_ascii=False, allow_nan=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


class MemoryNisabStore(NisabStore):
    """In-process store; entries are kept serialized so callers can't mutate them."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    def locate(self, key: CacheKey) -> str:
        return key.location_name

    def last_modified(self, location: str) -> Optional[float]:
        item = self._entries.get(location)
        return item[1] if item else None

    def get(self, location: str) -> Tuple[Optional[Any], Optional[float]]:
        item = self._entries.get(location)
        if item is None:
            return None, None
        raw, modified = item
        return json.loads(raw), modified

    def put(self, location: str, entry: Dict[str, Any]) -> None:
        self._entries[location] = (json.dumps(entry, allow_nan=False), self._clock())
