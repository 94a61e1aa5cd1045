# User value: This file ties every log line and upstream call of one portal request to a single id.
import re
import uuid
from contextvars import ContextVar, Token

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_PREFIX = "portal-"

_current: ContextVar[str | None] = ContextVar("portal_request_id", default=None)
# Ids minted by the browser client or a proxy are kept when they look sane.
_ACCEPTED = re.compile(r"^[A-Za-z0-9._:-]{8,128}$")


def new_request_id() -> str:
    return REQUEST_ID_PREFIX + uuid.uuid4().hex


def normalize_request_id(raw: str | None) -> str:
    candidate = (raw or "").strip()
    return candidate if _ACCEPTED.match(candidate) else new_request_id()


def bind_request_id(raw: str | None) -> tuple[str, Token]:
    request_id = normalize_request_id(raw)
    return request_id, _current.set(request_id)


def release_request_id(token: Token) -> None:
    _current.reset(token)


def set_request_id(value: str | None) -> None:
    _current.set(value)


def get_request_id() -> str | None:
    return _current.get()


# User value: the remote API logs the same id, so one failed screen can be traced across both services.
def upstream_headers() -> dict[str, str]:
    request_id = get_request_id()
    return {REQUEST_ID_HEADER: request_id} if request_id else {}
