import logging
import threading
import time

import redis

from config import REDIS_URL

# ---------------------------------------------------------
# LOGGING
# ---------------------------------------------------------
logger = logging.getLogger("portal.redis")

_client = None
_client_lock = threading.Lock()


# ---------------------------------------------------------
# REDIS INIT
# ---------------------------------------------------------
def get_redis():
    global _client
    if _client is not None:
        return _client
    with _client_lock:
        if _client is None:
            if not REDIS_URL:
                raise RuntimeError("REDIS_URL not set")
            logger.info("redis_client_init url=%s", REDIS_URL)
            _client = redis.from_url(REDIS_URL, decode_responses=True)
            _log_ping(_client)
    return _client


# ---------------------------------------------------------
# CONNECTION DIAGNOSTICS
# ---------------------------------------------------------
def _log_ping(client) -> None:
    try:
        t0 = time.time()
        pong = client.ping()
        ms = int((time.time() - t0) * 1000)
        logger.info("redis_connected ping=%s latency_ms=%s", pong, ms)
    except redis.RedisError as e:
        logger.error("redis_initial_ping_failed error=%s", e)


def ping() -> bool:
    try:
        return bool(get_redis().ping())
    except redis.RedisError as e:
        logger.warning("redis_ping_failed error=%s", e)
        return False
