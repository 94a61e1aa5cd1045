# User value: This file decides which job buttons to show; the remote API still makes the final call.
import logging
from typing import Optional

from schemas.job_contract import (
    ASSIGNMENT_STATUS_AVAILABLE,
    ASSIGNMENT_STATUS_PENDING,
    ASSIGNMENT_STATUS_PENDING_CONFIRMATION,
    JOB_STATUS_ASSIGNED,
    JOB_STATUS_COMPLETED,
    JOB_STATUS_FINDING_INTERPRETER,
    JOB_STATUS_IN_PROGRESS,
    JOB_STATUS_REMINDERS_SENT,
)

logger = logging.getLogger("portal.status_rules")

_STARTABLE = {JOB_STATUS_ASSIGNED, JOB_STATUS_REMINDERS_SENT}
_CLAIMABLE_ASSIGNMENTS = {None, ASSIGNMENT_STATUS_AVAILABLE, ASSIGNMENT_STATUS_PENDING}


def _norm(status: Optional[str]) -> Optional[str]:
    if status is None:
        return None
    s = str(status).strip().lower()
    return s or None


def _report_submitted(job: dict) -> bool:
    value = job.get("completion_report_submitted")
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def can_accept(job: dict) -> bool:
    return _norm(job.get("status")) == JOB_STATUS_FINDING_INTERPRETER and _norm(job.get("assignment_status")) in _CLAIMABLE_ASSIGNMENTS


def can_indicate_availability(job: dict) -> bool:
    return _norm(job.get("status")) == JOB_STATUS_FINDING_INTERPRETER


def can_confirm_availability(job: dict) -> bool:
    return _norm(job.get("assignment_status")) == ASSIGNMENT_STATUS_PENDING_CONFIRMATION


def can_start(job: dict) -> bool:
    return _norm(job.get("status")) in _STARTABLE


def can_end(job: dict) -> bool:
    return _norm(job.get("status")) == JOB_STATUS_IN_PROGRESS


def needs_completion_report(job: dict) -> bool:
    return _norm(job.get("status")) == JOB_STATUS_COMPLETED and not _report_submitted(job)


ACTION_RULES = {
    "accept": can_accept,
    "decline": can_accept,
    "indicate-available": can_indicate_availability,
    "indicate-not-available": can_indicate_availability,
    "confirm-availability": can_confirm_availability,
    "start": can_start,
    "end": can_end,
    "completion-report": needs_completion_report,
}


# User value: lists only the actions that make sense for the job so interpreters are not shown dead buttons.
def allowed_actions(job: dict) -> list[str]:
    return [name for name, rule in ACTION_RULES.items() if rule(job)]


def is_action_allowed(job: dict, action: str) -> bool:
    rule = ACTION_RULES.get(action)
    if rule is None:
        logger.warning("status_rule_unknown_action action=%s job_id=%s", action, job.get("id"))
        return True
    return rule(job)
