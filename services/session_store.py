# User value: This file keeps interpreters signed in across visits and forgets everything on logout.
import hashlib
import json
import logging
import time
from typing import Any, Optional

from redis.exceptions import RedisError

from config import SESSION_TTL_SEC

logger = logging.getLogger("portal.session")

SESSION_PREFIX = "portal:session"
JOB_DETAIL_PREFIX = "/job/"
NO_RESTORE_ROUTES = {"/", "/dashboard"}
NO_RESTORE_PREFIXES = ("/apply", "/status", "/login")


class SessionStoreUnavailable(RuntimeError):
    pass


def session_owner_id(token: str) -> str:
    return hashlib.sha256(str(token or "").encode("utf-8")).hexdigest()[:32]


def _route_path(route: str) -> str:
    return str(route or "").split("?", 1)[0].split("#", 1)[0]


# User value: never sends a returning interpreter back to a public or landing page.
def is_restorable_route(route: Optional[str]) -> bool:
    if not route or not str(route).startswith("/"):
        return False
    if route in NO_RESTORE_ROUTES:
        return False
    return not str(route).startswith(NO_RESTORE_PREFIXES)


class SessionStore:
    """Session token, user and profile plus route memory, one key family per session."""

    PARTS = ("data", "route", "list_route")

    def __init__(self, r, ttl_sec: int = SESSION_TTL_SEC, cache=None):
        self.r = r
        self.ttl_sec = int(ttl_sec)
        self.cache = cache

    def _key(self, token: str, part: str) -> str:
        return f"{SESSION_PREFIX}:{session_owner_id(token)}:{part}"

    def _call(self, op: str, fn, *args):
        try:
            return fn(*args)
        except RedisError as e:
            logger.error("session_store_failed op=%s error=%s", op, e)
            raise SessionStoreUnavailable("Session store temporarily unavailable") from e

    def login(self, token: str, user: Any, profile: Any = None) -> dict:
        session = {
            "user": user,
            "profile": profile,
            "created_at": int(time.time()),
        }
        self._call("login", self.r.setex, self._key(token, "data"), self.ttl_sec, json.dumps(session))
        logger.info("session_created owner=%s", session_owner_id(token))
        return session

    def read(self, token: str) -> Optional[dict]:
        if not token:
            return None
        raw = self._call("read", self.r.get, self._key(token, "data"))
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("session_corrupt owner=%s", session_owner_id(token))
            return None

    def update_profile(self, token: str, profile: Any) -> Optional[dict]:
        session = self.read(token)
        if session is None:
            return None
        session["profile"] = profile
        self._call("update_profile", self.r.setex, self._key(token, "data"), self.ttl_sec, json.dumps(session))
        return session

    # User value: logout clears the token, user, profile, saved routes and cached job lists together.
    def logout(self, token: str) -> int:
        keys = [self._key(token, part) for part in self.PARTS]
        removed = int(self._call("logout", self.r.delete, *keys) or 0)
        cleared = 0
        if self.cache is not None:
            cleared = self.cache.invalidate(session_owner_id(token))
        logger.info("session_cleared owner=%s keys=%s cache_entries=%s", session_owner_id(token), removed, cleared)
        return removed

    def save_route(self, token: str, route: str) -> None:
        self._call("save_route", self.r.setex, self._key(token, "route"), self.ttl_sec, route)
        if not _route_path(route).startswith(JOB_DETAIL_PREFIX):
            self._call("save_route", self.r.setex, self._key(token, "list_route"), self.ttl_sec, route)

    def get_routes(self, token: str) -> dict:
        current = self._call("get_route", self.r.get, self._key(token, "route"))
        last_list = self._call("get_route", self.r.get, self._key(token, "list_route"))
        return {
            "current_route": current,
            "last_list_route": last_list,
            "restore_route": current if is_restorable_route(current) else None,
        }
