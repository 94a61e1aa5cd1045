# User value: This file lists, opens and acts on jobs, checking obvious mistakes before the server sees them.
# routes/jobs.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from starlette.concurrency import run_in_threadpool

from schemas.job_contract import JOB_TABS
from schemas.requests import AcceptJobRequest, DeclineJobRequest, UnassignRequest, UpdateDurationRequest
from schemas.responses import JobDetailResponse, JobListResponse
from services.auth import get_query_cache, require_session
from services.completion_report import completion_form, read_documents, validate_completion_report
from services.earnings import effective_mileage_rate
from services.feature_flags import is_accept_restriction_enabled
from services.job_classifier import (
    PORTAL_TZ,
    can_accept_jobs,
    check_unassign_eligibility,
    in_tab,
    partition_jobs,
    tab_counts,
)
from services.job_records import extract_data, extract_jobs, extract_pagination, normalize_job_record, normalize_job_records
from services.job_views import PAST_JOBS_PAGE_SIZE, fetch_my_jobs, job_view, job_views, profile_service_rates, utc_now
from services.portal_api import get_portal_api
from utils.action_logging import log_action
from utils.metrics import incr
from utils.request_id import get_request_id
from utils.status_rules import is_action_allowed

logger = logging.getLogger("portal.jobs")

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _conflict(error_code: str, message: str, **extra) -> HTTPException:
    detail = {"error_code": error_code, "error_message": message}
    detail.update(extra)
    return HTTPException(status_code=409, detail=detail)


def _load_job(api, session: dict, job_id: str) -> dict:
    data = extract_data(api.get_job(session["token"], job_id))
    if isinstance(data, dict) and isinstance(data.get("job"), dict):
        data = data["job"]
    if not isinstance(data, dict) or not data:
        raise HTTPException(
            status_code=404,
            detail={"error_code": "JOB_NOT_FOUND", "error_message": "Job not found"},
        )
    return normalize_job_record(data)


def _finish_action(session: dict, job_id: str, action: str, result, **extra) -> dict:
    cleared = get_query_cache().invalidate(session["owner"])
    log_action(
        job_id=job_id,
        action=action,
        event="SUCCEEDED",
        user=(session["user"] or {}).get("email"),
        request_id=get_request_id(),
        cache_cleared=cleared,
        **extra,
    )
    incr("portal_job_actions_total", action=action, outcome="ok")
    return {"job_id": job_id, "action": action, "result": extract_data(result)}


def _reject(session: dict, job_id: str, action: str, error_code: str, message: str, **extra) -> HTTPException:
    log_action(
        job_id=job_id,
        action=action,
        event="REJECTED",
        user=(session["user"] or {}).get("email"),
        error=error_code,
        **extra,
    )
    incr("portal_job_actions_total", action=action, outcome="rejected")
    return _conflict(error_code, message, **extra)


def _require_allowed(session: dict, job: dict, job_id: str, action: str) -> None:
    if not is_action_allowed(job, action):
        raise _reject(
            session,
            job_id,
            action,
            "ACTION_NOT_ALLOWED",
            f"The '{action}' action is not available while the job is {job.get('status') or 'unknown'}",
            status=job.get("status"),
        )


@router.get("/my-jobs", response_model=JobListResponse)
# User value: the job tabs with counts that always match the lists behind them.
def my_jobs(
    session=Depends(require_session),
    tab: str = Query(default="upcoming", description="upcoming, completion_reports, past or all"),
    page: int = Query(default=1, ge=1),
    status: Optional[str] = Query(default=None, description="Upstream status filter for paged tabs"),
):
    if tab not in JOB_TABS:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_TAB", "error_message": f"tab must be one of {', '.join(JOB_TABS)}"},
        )

    api = get_portal_api()
    cache = get_query_cache()
    all_jobs, _ = fetch_my_jobs(api, cache, session)
    pagination = {}
    if tab in ("past", "all"):
        listed, payload = fetch_my_jobs(api, cache, session, limit=PAST_JOBS_PAGE_SIZE, page=page, status=status)
        pagination = extract_pagination(payload)
    else:
        listed = all_jobs

    now = utc_now()
    visible = [job for job in listed if in_tab(job, tab)]
    return {
        "generated_at": now.isoformat(),
        "tab": tab,
        "jobs": job_views(visible, now, service_rates=profile_service_rates(session["profile"])),
        "tab_counts": tab_counts(all_jobs),
        "pagination": pagination,
        "can_accept_jobs": can_accept_jobs(partition_jobs(all_jobs, now)),
    }


@router.get("/available", response_model=JobListResponse)
def available_jobs(
    session=Depends(require_session),
    language: Optional[str] = Query(default=None),
    service_type: Optional[str] = Query(default=None),
    location: Optional[str] = Query(default=None),
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    remote_only: Optional[bool] = Query(default=None),
):
    api = get_portal_api()
    cache = get_query_cache()
    filters = {
        "language": language,
        "service_type": service_type,
        "location": location,
        "date_from": date_from,
        "date_to": date_to,
        "remote_only": remote_only,
    }
    payload = cache.get_or_fetch(
        session["owner"],
        "available",
        filters,
        lambda: api.list_available_jobs(session["token"], **filters),
    )
    jobs = normalize_job_records(extract_jobs(payload))
    now = utc_now()
    allowed = True
    if is_accept_restriction_enabled():
        mine, _ = fetch_my_jobs(api, cache, session)
        allowed = can_accept_jobs(partition_jobs(mine, now))
    return {
        "generated_at": now.isoformat(),
        "jobs": job_views(jobs, now, service_rates=profile_service_rates(session["profile"])),
        "pagination": extract_pagination(payload),
        "can_accept_jobs": allowed,
    }


@router.get("/{job_id}", response_model=JobDetailResponse)
def job_detail(job_id: str, session=Depends(require_session)):
    job = _load_job(get_portal_api(), session, job_id)
    now = utc_now()
    eligible, reason = check_unassign_eligibility(job, now)
    out = job_view(job, now, service_rates=profile_service_rates(session["profile"]))
    out["unassign"] = {"eligible": eligible, "reason": reason}
    return out


@router.post("/{job_id}/accept")
# User value: accepting is paused while reports are overdue, and mileage stays within the federal cap.
def accept_job(job_id: str, payload: AcceptJobRequest | None = None, session=Depends(require_session)):
    payload = payload or AcceptJobRequest()
    api = get_portal_api()
    if is_accept_restriction_enabled():
        mine, _ = fetch_my_jobs(api, get_query_cache(), session)
        if not can_accept_jobs(partition_jobs(mine, utc_now())):
            raise _reject(
                session,
                job_id,
                "accept",
                "JOBS_BLOCKED_OVERDUE_REPORTS",
                "Submit your overdue completion reports before accepting new jobs",
            )

    mileage_rate = None
    if payload.mileage_requested:
        mileage_rate = effective_mileage_rate(payload.mileage_rate)
    result = api.accept_job(
        session["token"],
        job_id,
        mileage_requested=payload.mileage_requested,
        mileage_rate=mileage_rate,
    )
    return _finish_action(session, job_id, "accept", result, mileage_rate=mileage_rate)


@router.post("/{job_id}/decline")
def decline_job(job_id: str, payload: DeclineJobRequest | None = None, session=Depends(require_session)):
    reason = payload.reason if payload else None
    result = get_portal_api().decline_job(session["token"], job_id, reason)
    return _finish_action(session, job_id, "decline", result)


@router.post("/{job_id}/indicate-available")
def indicate_available(job_id: str, session=Depends(require_session)):
    result = get_portal_api().indicate_available(session["token"], job_id)
    return _finish_action(session, job_id, "indicate-available", result)


@router.post("/{job_id}/indicate-not-available")
def indicate_not_available(job_id: str, session=Depends(require_session)):
    result = get_portal_api().indicate_not_available(session["token"], job_id)
    return _finish_action(session, job_id, "indicate-not-available", result)


@router.post("/{job_id}/confirm-availability")
def confirm_availability(job_id: str, session=Depends(require_session)):
    api = get_portal_api()
    job = _load_job(api, session, job_id)
    _require_allowed(session, job, job_id, "confirm-availability")
    result = api.confirm_availability(session["token"], job_id)
    return _finish_action(session, job_id, "confirm-availability", result)


@router.post("/{job_id}/unassign")
# User value: explains why a job can no longer be dropped instead of failing after the request.
def unassign_job(job_id: str, payload: UnassignRequest | None = None, session=Depends(require_session)):
    api = get_portal_api()
    job = _load_job(api, session, job_id)
    eligible, reason = check_unassign_eligibility(job, utc_now())
    if not eligible:
        raise _reject(
            session,
            job_id,
            "unassign",
            "UNASSIGN_NOT_ALLOWED",
            "This job can no longer be unassigned",
            reason=reason,
        )
    result = api.unassign_job(session["token"], job_id, payload.reason if payload else None)
    return _finish_action(session, job_id, "unassign", result)


@router.post("/{job_id}/start")
def start_job(job_id: str, session=Depends(require_session)):
    api = get_portal_api()
    job = _load_job(api, session, job_id)
    _require_allowed(session, job, job_id, "start")
    result = api.start_job(session["token"], job_id)
    return _finish_action(session, job_id, "start", result)


@router.post("/{job_id}/end")
def end_job(job_id: str, session=Depends(require_session)):
    api = get_portal_api()
    job = _load_job(api, session, job_id)
    _require_allowed(session, job, job_id, "end")
    result = api.end_job(session["token"], job_id)
    return _finish_action(session, job_id, "end", result)


@router.post("/{job_id}/update-duration")
def update_duration(job_id: str, payload: UpdateDurationRequest, session=Depends(require_session)):
    result = get_portal_api().update_duration(session["token"], job_id, payload.actual_duration_minutes)
    return _finish_action(session, job_id, "update-duration", result, minutes=payload.actual_duration_minutes)


@router.post("/{job_id}/completion-report")
# User value: incomplete reports are rejected with the exact field to fix before anything is uploaded.
async def submit_completion_report(
    job_id: str,
    fields: dict = Depends(completion_form),
    documents: List[UploadFile] | None = File(None),
    session=Depends(require_session),
):
    today = utc_now().astimezone(PORTAL_TZ).date()
    try:
        clean = validate_completion_report(fields, today=today)
    except HTTPException as e:
        log_action(job_id=job_id, action="completion-report", event="REJECTED", error=e.detail.get("error_message"))
        incr("portal_job_actions_total", action="completion-report", outcome="rejected")
        raise
    files = await read_documents(documents)
    result = await run_in_threadpool(get_portal_api().submit_completion_report, session["token"], job_id, clean, files)
    return await run_in_threadpool(_finish_action, session, job_id, "completion-report", result, documents=len(files))
