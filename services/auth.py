# services/auth.py
import logging
import threading

from fastapi import Header, HTTPException

from config import POLL_INTERVAL_SEC, SESSION_TTL_SEC
from services.feature_flags import is_query_cache_enabled
from services.query_cache import QueryCache
from services.redis_client import get_redis
from services.session_store import SessionStore, SessionStoreUnavailable, session_owner_id

logger = logging.getLogger("portal.auth")

_lock = threading.Lock()
_store = None
_cache = None


# -----------------------------------------------------------------------------
# Shared session store / query cache
# -----------------------------------------------------------------------------

def get_query_cache() -> QueryCache:
    global _cache
    if _cache is None:
        with _lock:
            if _cache is None:
                _cache = QueryCache(get_redis(), ttl_sec=POLL_INTERVAL_SEC, enabled=is_query_cache_enabled())
    return _cache


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        cache = get_query_cache()
        with _lock:
            if _store is None:
                _store = SessionStore(get_redis(), ttl_sec=SESSION_TTL_SEC, cache=cache)
    return _store


def clear_session(token: str) -> None:
    get_session_store().logout(token)


# -----------------------------------------------------------------------------
# Session dependency
# -----------------------------------------------------------------------------

def _unauthorized(error_code: str, message: str) -> HTTPException:
    return HTTPException(status_code=401, detail={"error_code": error_code, "error_message": message, "redirect": "/login"})


def bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized("AUTH_MISSING_AUTH_HEADER", "Missing Authorization header")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise _unauthorized("AUTH_MISSING_TOKEN", "Missing token")
    return token


def require_session(authorization: str = Header(None)) -> dict:
    """
    Resolves the portal session for the bearer token.
    The remote API stays the authority on token validity; this only
    checks that the portal still holds a session for it.
    """
    token = bearer_token(authorization)
    try:
        session = get_session_store().read(token)
    except SessionStoreUnavailable:
        raise HTTPException(
            status_code=503,
            detail={
                "error_code": "INFRA_REDIS",
                "error_message": "Session backend temporarily unavailable",
            },
        )
    if session is None:
        raise _unauthorized("AUTH_SESSION_NOT_FOUND", "Please log in to continue")

    return {
        "token": token,
        "owner": session_owner_id(token),
        "user": session.get("user") or {},
        "profile": session.get("profile") or {},
    }
