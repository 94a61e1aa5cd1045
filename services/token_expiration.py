# User value: This file signs interpreters out once, with a clear message, when their session expires.
import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger("portal.token_expiration")

EXPIRATION_KEYWORDS = (
    "token expired",
    "session expired",
    "authentication failed",
    "invalid token",
    "token invalid",
    "unauthorized",
    "access denied",
)

EXPIRATION_MESSAGES = {
    "customer": "Your session has expired. Please log in again to continue.",
    "admin": "Your admin session has expired. Please log in again to continue.",
    "interpreter": "Your interpreter session has expired. Please log in again to continue.",
    "app": "Your session has expired. Please log in again to continue.",
}

LOGIN_REDIRECT = "/login"


def response_message(body: Any) -> str:
    if isinstance(body, dict):
        for key in ("message", "error_message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    if isinstance(body, str):
        return body
    return ""


def is_expired_message(message: str) -> bool:
    text = (message or "").lower()
    return any(keyword in text for keyword in EXPIRATION_KEYWORDS)


# User value: treats a 401, or a 400/403 that says the token is bad, as an expired session.
def is_expired_response(status_code: int, body: Any) -> bool:
    if status_code == 401:
        return True
    if status_code in (400, 403):
        return is_expired_message(response_message(body))
    return False


class TokenExpirationHandler:
    """Runs the logout sequence at most once at a time per session token."""

    def __init__(self, portal_type: str = "interpreter"):
        self.portal_type = portal_type
        self._lock = threading.Lock()
        self._handling: set[str] = set()

    def default_message(self) -> str:
        return EXPIRATION_MESSAGES.get(self.portal_type, EXPIRATION_MESSAGES["app"])

    def is_handling(self, token: str) -> bool:
        with self._lock:
            return token in self._handling

    def handle(self, token: str, logout_fn: Optional[Callable[[str], Any]], custom_message: Optional[str] = None) -> dict:
        message = custom_message or self.default_message()
        with self._lock:
            if token in self._handling:
                logger.info("token_expiration_already_handling portal=%s", self.portal_type)
                return {"handled": False, "message": message, "redirect": LOGIN_REDIRECT}
            self._handling.add(token)

        try:
            if callable(logout_fn):
                logout_fn(token)
            logger.warning("token_expired_session_cleared portal=%s", self.portal_type)
        except Exception as exc:
            # The user is sent to login either way; a stale session expires on its TTL.
            logger.error(
                "token_expired_logout_failed portal=%s error=%s: %s",
                self.portal_type,
                exc.__class__.__name__,
                exc,
            )
        finally:
            with self._lock:
                self._handling.discard(token)
        return {"handled": True, "message": message, "redirect": LOGIN_REDIRECT}


expiration_handler = TokenExpirationHandler("interpreter")
