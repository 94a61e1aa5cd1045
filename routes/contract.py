# User value: This file publishes the status vocabulary and thresholds so every client classifies jobs the same way.
from fastapi import APIRouter

from schemas.job_contract import (
    ACTIVE_JOB_STATUSES,
    ASSIGNMENT_STATUSES,
    ASSIGNMENT_STATUS_LABELS,
    BUCKETS,
    COMPLETED_HISTORY_STATUSES,
    CONTRACT_VERSION,
    EARNINGS_PERIODS,
    JOB_STATUSES,
    JOB_STATUS_LABELS,
    JOB_TABS,
    SMART_ACTIONS,
)
from services import earnings, job_classifier
from services.feature_flags import (
    is_accept_restriction_enabled,
    is_live_streams_enabled,
    is_query_cache_enabled,
)

router = APIRouter()


@router.get("/contract/job-status")
# User value: keeps statuses, buckets and deadlines consistent across every portal view.
def job_status_contract():
    return {
        "contract_version": CONTRACT_VERSION,
        "job_statuses": list(JOB_STATUSES),
        "job_status_labels": dict(JOB_STATUS_LABELS),
        "assignment_statuses": list(ASSIGNMENT_STATUSES),
        "assignment_status_labels": dict(ASSIGNMENT_STATUS_LABELS),
        "active_job_statuses": list(ACTIVE_JOB_STATUSES),
        "completed_history_statuses": list(COMPLETED_HISTORY_STATUSES),
        "buckets": list(BUCKETS),
        "smart_actions": list(SMART_ACTIONS),
        "job_tabs": list(JOB_TABS),
        "earnings_periods": list(EARNINGS_PERIODS),
        "thresholds": {
            "report_overdue_hours": job_classifier.REPORT_OVERDUE_HOURS,
            "confirmation_window_hours": job_classifier.CONFIRMATION_WINDOW_HOURS,
            "advance_confirmation_hours": job_classifier.ADVANCE_CONFIRMATION_HOURS,
            "starting_soon_hours": job_classifier.STARTING_SOON_HOURS,
            "smart_start_minutes": job_classifier.SMART_START_MINUTES,
            "unassign_min_lead_hours": job_classifier.UNASSIGN_MIN_LEAD_HOURS,
            "federal_mileage_cap": earnings.FEDERAL_MILEAGE_CAP,
            "default_mileage_rate": earnings.DEFAULT_MILEAGE_RATE,
        },
        "capabilities": {
            "query_cache_enabled": is_query_cache_enabled(),
            "accept_restrictions_enabled": is_accept_restriction_enabled(),
            "live_streams_enabled": is_live_streams_enabled(),
        },
    }
