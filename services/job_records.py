# User value: This file cleans job records once at the API boundary so every screen reads the same times.
import logging
from typing import Any, Iterable

from config import PORTAL_TIMEZONE
from schemas.job_contract import TIMESTAMP_FIELDS
from utils.time_format import parse_timestamp, resolve_timezone, to_iso

logger = logging.getLogger("portal.job_records")

PORTAL_TZ = resolve_timezone(PORTAL_TIMEZONE)


def _norm_status(value: Any) -> str:
    return str(value or "").strip().lower()


# User value: rewrites every timestamp as strict ISO-8601 so countdowns never depend on string guessing.
def normalize_job_record(record: dict, tz=None) -> dict:
    zone = tz or PORTAL_TZ
    job = dict(record or {})
    job["status"] = _norm_status(job.get("status"))
    if job.get("assignment_status") is not None:
        job["assignment_status"] = _norm_status(job.get("assignment_status"))

    for field in TIMESTAMP_FIELDS:
        raw = job.get(field)
        if raw is None or raw == "":
            job[field] = None
            continue
        parsed = parse_timestamp(raw, zone)
        if parsed is None:
            logger.warning(
                "job_record_timestamp_invalid job_id=%s field=%s value=%r",
                job.get("id"),
                field,
                raw,
            )
        job[field] = to_iso(parsed)
    return job


def normalize_job_records(records: Iterable[dict] | None, tz=None) -> list[dict]:
    return [normalize_job_record(r, tz) for r in (records or []) if isinstance(r, dict)]


# User value: reads the job list out of the API envelope whatever shape the server returns.
def extract_jobs(payload: Any) -> list[dict]:
    if isinstance(payload, list):
        return [x for x in payload if isinstance(x, dict)]
    if not isinstance(payload, dict):
        return []
    data = payload.get("data", payload)
    if isinstance(data, list):
        return [x for x in data if isinstance(x, dict)]
    if isinstance(data, dict):
        for key in ("jobs", "items", "breakdown"):
            value = data.get(key)
            if isinstance(value, list):
                return [x for x in value if isinstance(x, dict)]
    return []


def extract_pagination(payload: Any) -> dict:
    if not isinstance(payload, dict):
        return {}
    data = payload.get("data", payload)
    if isinstance(data, dict) and isinstance(data.get("pagination"), dict):
        return dict(data["pagination"])
    return {}


def extract_data(payload: Any) -> Any:
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload
