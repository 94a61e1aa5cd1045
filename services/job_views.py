# User value: This file builds every job screen from one classifier so badges and lists always agree.
import logging
import os
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from schemas.job_contract import (
    BUCKET_NEEDS_CONFIRMATION,
    BUCKET_OVERDUE_REPORT,
    BUCKET_REPORT_DUE,
    BUCKET_STARTING_SOON,
    BUCKET_TODAY,
    BUCKET_UPCOMING_CONFIRMATION,
    FINISHED_JOB_STATUSES,
)
from services.earnings import estimate_earnings
from services.job_classifier import (
    blocking_notices,
    can_accept_jobs,
    classify_job,
    count_buckets,
    hours_since_completion,
    hours_until_start,
    partition_jobs,
    select_smart_action,
    sort_by_start,
)
from services.job_records import extract_jobs, normalize_job_records
from utils.status_rules import allowed_actions
from utils.time_format import format_clock_time, format_countdown, format_time_since

logger = logging.getLogger("portal.job_views")

MY_JOBS_LIMIT = int(os.getenv("MY_JOBS_LIMIT", "500"))
PAST_JOBS_PAGE_SIZE = int(os.getenv("PAST_JOBS_PAGE_SIZE", "20"))

CRITICAL_BUCKETS = (BUCKET_OVERDUE_REPORT, BUCKET_NEEDS_CONFIRMATION, BUCKET_STARTING_SOON)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def profile_service_rates(profile: Any) -> list:
    if not isinstance(profile, dict):
        return []
    data = profile.get("data") if isinstance(profile.get("data"), dict) else profile
    if isinstance(data.get("profile"), dict):
        data = data["profile"]
    rates = data.get("service_rates")
    if isinstance(rates, dict):
        return [dict(v, service_type_id=v.get("service_type_id", k)) for k, v in rates.items() if isinstance(v, dict)]
    return [r for r in rates if isinstance(r, dict)] if isinstance(rates, list) else []


# User value: one job with its buckets, countdown, earnings and usable actions, all computed the same way.
def job_view(job: dict, now: datetime, *, service_rates: Optional[list] = None, tz=None) -> dict:
    until = hours_until_start(job, now, tz)
    since = hours_since_completion(job, now)
    return {
        "job": job,
        "buckets": sorted(classify_job(job, now, tz)),
        "earnings": estimate_earnings(job, service_rates=service_rates),
        "starts_in": format_countdown(until * 60.0) if until is not None else None,
        "completed_ago": format_time_since(since) if since is not None and since >= 0 else None,
        "scheduled_time_display": format_clock_time(job.get("scheduled_time")),
        "allowed_actions": allowed_actions(job),
    }


def job_views(jobs: Iterable[dict], now: datetime, *, service_rates: Optional[list] = None, tz=None) -> list[dict]:
    return [job_view(job, now, service_rates=service_rates, tz=tz) for job in jobs or []]


def fetch_my_jobs(api, cache, session: dict, *, limit: int = MY_JOBS_LIMIT, page: Optional[int] = None, status: Optional[str] = None) -> tuple[list[dict], Any]:
    params = {"limit": limit, "page": page, "status": status}
    payload = cache.get_or_fetch(
        session["owner"],
        "my-jobs",
        params,
        lambda: api.list_my_jobs(session["token"], limit=limit, page=page, status=status),
    )
    jobs = normalize_job_records(extract_jobs(payload))
    logger.debug("my_jobs_loaded owner=%s count=%s", session["owner"], len(jobs))
    return jobs, payload


def _dedupe(jobs: Iterable[dict]) -> list[dict]:
    seen = set()
    out = []
    for job in jobs:
        key = job.get("id", id(job))
        if key in seen:
            continue
        seen.add(key)
        out.append(job)
    return out


# User value: the dashboard in one pass: what to do now, what is urgent, and what is on today.
def build_dashboard(jobs: list[dict], now: datetime, *, service_rates=None, monthly_earnings=None, tz=None) -> dict:
    partition = partition_jobs(jobs, now, tz)
    critical = _dedupe(job for bucket in CRITICAL_BUCKETS for job in partition[bucket])
    today = sort_by_start(partition[BUCKET_TODAY], tz)
    return {
        "generated_at": now.isoformat(),
        "smart_action": select_smart_action(jobs, now, tz),
        "critical_items": job_views(critical, now, service_rates=service_rates, tz=tz),
        "today": job_views(today, now, service_rates=service_rates, tz=tz),
        "counts": count_buckets(jobs, now, tz),
        "monthly_earnings": monthly_earnings,
        "blocking_notices": blocking_notices(partition),
        "can_accept_jobs": can_accept_jobs(partition),
    }


def build_pending_actions(jobs: list[dict], now: datetime, *, service_rates=None, tz=None) -> dict:
    partition = partition_jobs(jobs, now, tz)
    groups = {
        "overdue_reports": partition[BUCKET_OVERDUE_REPORT],
        "due_reports": partition[BUCKET_REPORT_DUE],
        "needs_confirmation": sort_by_start(partition[BUCKET_NEEDS_CONFIRMATION], tz),
        "upcoming_confirmations": sort_by_start(partition[BUCKET_UPCOMING_CONFIRMATION], tz),
    }
    out = {name: job_views(items, now, service_rates=service_rates, tz=tz) for name, items in groups.items()}
    out["generated_at"] = now.isoformat()
    out["total"] = sum(len(items) for items in groups.values())
    return out


def build_schedule(jobs: list[dict], now: datetime, *, service_rates=None, tz=None) -> list[dict]:
    open_jobs = [j for j in jobs if str(j.get("status") or "") not in FINISHED_JOB_STATUSES]
    return job_views(sort_by_start(open_jobs, tz), now, service_rates=service_rates, tz=tz)
