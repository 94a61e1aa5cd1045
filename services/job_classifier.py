# User value: This file decides which tab, badge, and prompt each job belongs to so every screen agrees.
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from config import PORTAL_TIMEZONE
from schemas.job_contract import (
    ASSIGNMENT_STATUS_ACCEPTED,
    ASSIGNMENT_STATUS_AVAILABLE,
    ASSIGNMENT_STATUS_PENDING_CONFIRMATION,
    BUCKETS,
    BUCKET_AVAILABLE,
    BUCKET_COMPLETED_HISTORY,
    BUCKET_IN_PROGRESS,
    BUCKET_NEEDS_CONFIRMATION,
    BUCKET_OVERDUE_REPORT,
    BUCKET_REPORT_DUE,
    BUCKET_STARTING_SOON,
    BUCKET_TODAY,
    BUCKET_UNCLASSIFIED,
    BUCKET_UPCOMING,
    BUCKET_UPCOMING_CONFIRMATION,
    COMPLETED_HISTORY_STATUSES,
    FINISHED_JOB_STATUSES,
    JOB_STATUS_ASSIGNED,
    JOB_STATUS_COMPLETED,
    JOB_STATUS_FINDING_INTERPRETER,
    JOB_STATUS_IN_PROGRESS,
    JOB_STATUS_REMINDERS_SENT,
    JOB_TABS,
    NOTICE_OVERDUE_REPORT,
    NOTICE_PENDING_CONFIRMATION,
    SMART_ACTION_FIND_JOBS,
    SMART_ACTION_JOB_IN_PROGRESS,
    SMART_ACTION_NEEDS_CONFIRMATION,
    SMART_ACTION_OVERDUE_REPORT,
    SMART_ACTION_REPORT_DUE,
    SMART_ACTION_START_JOB,
    UNASSIGNABLE_STATUSES,
    UNASSIGN_REASON_NO_SCHEDULE,
    UNASSIGN_REASON_OK,
    UNASSIGN_REASON_TOO_CLOSE,
    UNASSIGN_REASON_WRONG_STATUS,
)
from utils.time_format import (
    combine_local,
    parse_local_date,
    parse_time_of_day,
    parse_timestamp,
    resolve_timezone,
)

logger = logging.getLogger("portal.job_classifier")

REPORT_OVERDUE_HOURS = float(os.getenv("REPORT_OVERDUE_HOURS", "24"))
CONFIRMATION_WINDOW_HOURS = float(os.getenv("CONFIRMATION_WINDOW_HOURS", "48"))
ADVANCE_CONFIRMATION_HOURS = float(os.getenv("ADVANCE_CONFIRMATION_HOURS", "168"))
STARTING_SOON_HOURS = float(os.getenv("STARTING_SOON_HOURS", "2"))
SMART_START_MINUTES = float(os.getenv("SMART_START_MINUTES", "30"))
UNASSIGN_MIN_LEAD_HOURS = float(os.getenv("UNASSIGN_MIN_LEAD_HOURS", "48"))

PORTAL_TZ = resolve_timezone(PORTAL_TIMEZONE)

_SMART_ACTION_URGENCY = {
    SMART_ACTION_START_JOB: "critical",
    SMART_ACTION_JOB_IN_PROGRESS: "high",
    SMART_ACTION_OVERDUE_REPORT: "critical",
    SMART_ACTION_REPORT_DUE: "high",
    SMART_ACTION_NEEDS_CONFIRMATION: "medium",
    SMART_ACTION_FIND_JOBS: "low",
}

_NOTICE_COPY = {
    NOTICE_OVERDUE_REPORT: {
        "title": "Completion Report Required",
        "subtitle": "Submit overdue reports to maintain your account status",
        "message": (
            "Overdue completion reports must be submitted immediately. You can continue using the portal, "
            "but cannot accept new jobs until reports are submitted."
        ),
    },
    NOTICE_PENDING_CONFIRMATION: {
        "title": "Confirmation Required",
        "subtitle": "Please confirm your pending jobs before accepting new work",
        "message": (
            "You have jobs that need confirmation. Confirm your attendance before accepting new work "
            "to maintain your reliability score."
        ),
    },
}


def _aware(now: datetime) -> datetime:
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


def _status(job: dict) -> str:
    return str(job.get("status") or "").strip().lower()


def _assignment_status(job: dict) -> str:
    return str(job.get("assignment_status") or "").strip().lower()


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


# User value: combines the calendar date and local start time into one moment, or none when it is unreadable.
def scheduled_start(job: dict, tz=None) -> Optional[datetime]:
    zone = tz or PORTAL_TZ
    day = parse_local_date(job.get("scheduled_date"))
    at = parse_time_of_day(job.get("scheduled_time"))
    if day is None or at is None:
        return None
    return combine_local(day, at, zone)


def hours_until_start(job: dict, now: datetime, tz=None) -> Optional[float]:
    start = scheduled_start(job, tz)
    if start is None:
        return None
    return (start - _aware(now)).total_seconds() / 3600.0


def hours_since_completion(job: dict, now: datetime) -> Optional[float]:
    completed_at = parse_timestamp(job.get("completed_at"))
    if completed_at is None:
        return None
    return (_aware(now) - completed_at).total_seconds() / 3600.0


def _awaiting_report(job: dict) -> bool:
    return _status(job) == JOB_STATUS_COMPLETED and not _truthy(job.get("completion_report_submitted"))


def is_report_overdue(job: dict, now: datetime) -> bool:
    if not _awaiting_report(job):
        return False
    since = hours_since_completion(job, now)
    return since is not None and since > REPORT_OVERDUE_HOURS


def is_report_due(job: dict, now: datetime) -> bool:
    if not _awaiting_report(job):
        return False
    since = hours_since_completion(job, now)
    return since is not None and 0 < since <= REPORT_OVERDUE_HOURS


def needs_confirmation(job: dict, now: datetime, tz=None) -> bool:
    if _assignment_status(job) != ASSIGNMENT_STATUS_PENDING_CONFIRMATION:
        return False
    until = hours_until_start(job, now, tz)
    return until is not None and 0 < until <= CONFIRMATION_WINDOW_HOURS


def needs_upcoming_confirmation(job: dict, now: datetime, tz=None) -> bool:
    if _assignment_status(job) != ASSIGNMENT_STATUS_ACCEPTED:
        return False
    until = hours_until_start(job, now, tz)
    return until is not None and CONFIRMATION_WINDOW_HOURS < until <= ADVANCE_CONFIRMATION_HOURS


def is_starting_soon_unconfirmed(job: dict, now: datetime, tz=None) -> bool:
    if _status(job) in FINISHED_JOB_STATUSES or job.get("confirmed_at"):
        return False
    until = hours_until_start(job, now, tz)
    return until is not None and 0 < until < STARTING_SOON_HOURS


def is_available_to_claim(job: dict) -> bool:
    return _status(job) == JOB_STATUS_FINDING_INTERPRETER and _assignment_status(job) in {"", ASSIGNMENT_STATUS_AVAILABLE}


def is_completed_history(job: dict) -> bool:
    return _status(job) in COMPLETED_HISTORY_STATUSES or _truthy(job.get("completion_report_submitted"))


def _classify(job: dict, now: datetime, tz) -> set:
    buckets = set()
    if is_report_overdue(job, now):
        buckets.add(BUCKET_OVERDUE_REPORT)
    if is_report_due(job, now):
        buckets.add(BUCKET_REPORT_DUE)
    if needs_confirmation(job, now, tz):
        buckets.add(BUCKET_NEEDS_CONFIRMATION)
    if needs_upcoming_confirmation(job, now, tz):
        buckets.add(BUCKET_UPCOMING_CONFIRMATION)
    if is_starting_soon_unconfirmed(job, now, tz):
        buckets.add(BUCKET_STARTING_SOON)
    if _status(job) == JOB_STATUS_IN_PROGRESS:
        buckets.add(BUCKET_IN_PROGRESS)
    if is_available_to_claim(job):
        buckets.add(BUCKET_AVAILABLE)

    history = is_completed_history(job)
    if history:
        buckets.add(BUCKET_COMPLETED_HISTORY)
    else:
        start = scheduled_start(job, tz)
        if start is not None:
            local_now = _aware(now).astimezone(start.tzinfo)
            if start.date() == local_now.date():
                buckets.add(BUCKET_TODAY)
            if start > local_now:
                buckets.add(BUCKET_UPCOMING)
    return buckets


# User value: places one job into its buckets without ever failing the whole list.
def classify_job(job: dict, now: datetime, tz=None) -> frozenset:
    zone = tz or PORTAL_TZ
    try:
        if not isinstance(job, dict):
            raise TypeError(f"job record must be a dict, got {type(job).__name__}")
        return frozenset(_classify(job, now, zone))
    except Exception as exc:
        logger.warning(
            "job_classify_failed job_id=%s error=%s: %s",
            job.get("id") if isinstance(job, dict) else None,
            exc.__class__.__name__,
            exc,
        )
        return frozenset({BUCKET_UNCLASSIFIED})


def partition_jobs(jobs: Iterable[dict], now: datetime, tz=None) -> dict:
    partition = {bucket: [] for bucket in BUCKETS}
    for job in jobs or []:
        for bucket in classify_job(job, now, tz):
            partition[bucket].append(job)
    return partition


def count_buckets(jobs: Iterable[dict], now: datetime, tz=None) -> dict:
    return {bucket: len(items) for bucket, items in partition_jobs(jobs, now, tz).items()}


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def sort_by_start(jobs: Iterable[dict], tz=None) -> list[dict]:
    # Offsets from the epoch stay in range for any readable date.
    def key(job: dict):
        start = scheduled_start(job, tz)
        return (0, start - _EPOCH) if start else (1, timedelta(0))

    return sorted(jobs or [], key=key)


def _smart_action(action_type: str, job: Optional[dict]) -> dict:
    return {
        "type": action_type,
        "urgency": _SMART_ACTION_URGENCY[action_type],
        "job": job,
    }


# User value: surfaces the single most urgent thing the interpreter should do right now.
def select_smart_action(jobs: Iterable[dict], now: datetime, tz=None) -> dict:
    jobs = [j for j in (jobs or []) if isinstance(j, dict)]

    def first(predicate) -> Optional[dict]:
        for job in jobs:
            try:
                if predicate(job):
                    return job
            except Exception as exc:
                logger.warning("smart_action_check_failed job_id=%s error=%s", job.get("id"), exc)
        return None

    def starting_within_window(job: dict) -> bool:
        if _status(job) not in (JOB_STATUS_ASSIGNED, JOB_STATUS_REMINDERS_SENT):
            return False
        until = hours_until_start(job, now, tz)
        return until is not None and 0 < until * 60.0 <= SMART_START_MINUTES

    checks = (
        (SMART_ACTION_START_JOB, starting_within_window),
        (SMART_ACTION_JOB_IN_PROGRESS, lambda job: _status(job) == JOB_STATUS_IN_PROGRESS),
        (SMART_ACTION_OVERDUE_REPORT, lambda job: is_report_overdue(job, now)),
        (SMART_ACTION_REPORT_DUE, lambda job: is_report_due(job, now)),
        (SMART_ACTION_NEEDS_CONFIRMATION, lambda job: needs_confirmation(job, now, tz)),
    )
    for action_type, predicate in checks:
        match = first(predicate)
        if match is not None:
            return _smart_action(action_type, match)
    return _smart_action(SMART_ACTION_FIND_JOBS, None)


# User value: tells interpreters up front whether they can still drop a job, and why not.
def check_unassign_eligibility(job: dict, now: datetime, tz=None) -> tuple[bool, str]:
    if _status(job) not in UNASSIGNABLE_STATUSES:
        return False, UNASSIGN_REASON_WRONG_STATUS
    until = hours_until_start(job, now, tz)
    if until is None:
        return False, UNASSIGN_REASON_NO_SCHEDULE
    if until <= UNASSIGN_MIN_LEAD_HOURS:
        return False, UNASSIGN_REASON_TOO_CLOSE
    return True, UNASSIGN_REASON_OK


def can_accept_jobs(partition: dict) -> bool:
    return not partition.get(BUCKET_OVERDUE_REPORT)


# User value: raises the overdue-report and confirmation prompts; both stay dismissible.
def blocking_notices(partition: dict) -> list[dict]:
    notices = []
    for notice_type, bucket in (
        (NOTICE_OVERDUE_REPORT, BUCKET_OVERDUE_REPORT),
        (NOTICE_PENDING_CONFIRMATION, BUCKET_NEEDS_CONFIRMATION),
    ):
        jobs = partition.get(bucket) or []
        if not jobs:
            continue
        copy = _NOTICE_COPY[notice_type]
        notices.append(
            {
                "type": notice_type,
                "title": copy["title"],
                "subtitle": copy["subtitle"],
                "message": copy["message"],
                "dismissible": True,
                "job_ids": [job.get("id") for job in jobs],
            }
        )
    return notices


_UPCOMING_TAB_STATUSES = {
    JOB_STATUS_FINDING_INTERPRETER,
    JOB_STATUS_ASSIGNED,
    JOB_STATUS_REMINDERS_SENT,
    JOB_STATUS_IN_PROGRESS,
}


def in_tab(job: dict, tab: str) -> bool:
    if tab == "upcoming":
        return _status(job) in _UPCOMING_TAB_STATUSES
    if tab == "completion_reports":
        return _awaiting_report(job)
    if tab == "past":
        return _status(job) in COMPLETED_HISTORY_STATUSES
    return True


def tab_counts(jobs: Iterable[dict]) -> dict:
    jobs = [j for j in (jobs or []) if isinstance(j, dict)]
    return {tab: sum(1 for job in jobs if in_tab(job, tab)) for tab in JOB_TABS}
