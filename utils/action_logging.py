import json
import logging
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("portal.action")


def _norm(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def log_action(
    *,
    job_id: str | int | None,
    action: str,
    event: str,
    user: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "job_id": _norm(job_id),
        "action": action,
        "event": event.upper(),
    }
    if user:
        payload["user"] = user
    if error:
        payload["error"] = error

    for key, value in extra.items():
        norm = _norm(value)
        if norm is not None:
            payload[key] = norm

    msg = json.dumps(payload, ensure_ascii=False)
    if error or payload["event"] in {"FAILED", "REJECTED"}:
        logger.warning("job_action %s", msg)
    else:
        logger.info("job_action %s", msg)
