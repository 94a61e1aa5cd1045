# User value: This file shares one fetch of a job list between every screen that polls it.
import hashlib
import json
import logging
import threading
from typing import Any, Callable, Optional

from redis.exceptions import RedisError

from config import POLL_INTERVAL_SEC
from utils.metrics import incr

logger = logging.getLogger("portal.query_cache")

CACHE_PREFIX = "portal:cache"


def cache_key(owner: str, endpoint: str, params: Optional[dict] = None) -> str:
    encoded = json.dumps(params or {}, sort_keys=True, default=str)
    digest = hashlib.sha1(encoded.encode("utf-8")).hexdigest()[:16]
    return f"{CACHE_PREFIX}:{owner}:{endpoint}:{digest}"


class QueryCache:
    """Read-through cache with one in-flight fetch per key.

    Entries live for one refresh interval. A Redis failure degrades to a
    direct fetch; errors from ``fetch`` itself always propagate.
    """

    def __init__(self, r, ttl_sec: int = POLL_INTERVAL_SEC, enabled: bool = True):
        self.r = r
        self.ttl_sec = max(1, int(ttl_sec))
        self.enabled = enabled
        # key -> [lock, callers holding or waiting on it]; dropped when the last caller leaves.
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    def _claim_lock(self, key: str) -> threading.Lock:
        with self._locks_guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = self._locks[key] = [threading.Lock(), 0]
            slot[1] += 1
            return slot[0]

    def _release_lock(self, key: str) -> None:
        with self._locks_guard:
            slot = self._locks.get(key)
            if slot is None:
                return
            slot[1] -= 1
            if slot[1] <= 0:
                del self._locks[key]

    def _read(self, key: str) -> tuple[bool, Any]:
        try:
            raw = self.r.get(key)
        except RedisError as e:
            logger.warning("query_cache_read_failed key=%s error=%s", key, e)
            return False, None
        if raw is None:
            return False, None
        try:
            return True, json.loads(raw)
        except ValueError:
            logger.warning("query_cache_corrupt key=%s", key)
            return False, None

    def _write(self, key: str, value: Any) -> None:
        try:
            self.r.setex(key, self.ttl_sec, json.dumps(value, default=str))
        except RedisError as e:
            logger.warning("query_cache_write_failed key=%s error=%s", key, e)

    def get_or_fetch(self, owner: str, endpoint: str, params: Optional[dict], fetch: Callable[[], Any]) -> Any:
        if not self.enabled:
            return fetch()

        key = cache_key(owner, endpoint, params)
        hit, value = self._read(key)
        if hit:
            incr("portal_query_cache_total", endpoint=endpoint, result="hit")
            return value

        lock = self._claim_lock(key)
        try:
            with lock:
                hit, value = self._read(key)
                if hit:
                    incr("portal_query_cache_total", endpoint=endpoint, result="shared")
                    return value
                value = fetch()
                self._write(key, value)
                incr("portal_query_cache_total", endpoint=endpoint, result="miss")
                return value
        finally:
            self._release_lock(key)

    # User value: after accepting, confirming or reporting, the next screen shows fresh data.
    def invalidate(self, owner: str) -> int:
        removed = 0
        try:
            for key in self.r.scan_iter(match=f"{CACHE_PREFIX}:{owner}:*"):
                removed += int(self.r.delete(key) or 0)
        except RedisError as e:
            logger.warning("query_cache_invalidate_failed owner=%s error=%s", owner, e)
        return removed
