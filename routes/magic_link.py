# User value: This file lets interpreters run a job timer, confirm, and report from an emailed link without logging in.
import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from config import ELAPSED_TICK_SEC
from schemas.requests import TransportationReportRequest
from schemas.responses import ElapsedTimeResponse
from services.completion_report import (
    completion_form,
    read_documents,
    validate_completion_report,
    validate_transportation_report,
)
from services.feature_flags import is_live_streams_enabled
from services.job_classifier import PORTAL_TZ
from services.job_records import extract_data
from services.live_stream import tick_stream
from services.portal_api import PortalApiError, get_portal_api
from services.job_views import utc_now
from utils.action_logging import log_action
from utils.time_format import elapsed_seconds, format_elapsed, parse_timestamp, to_iso

logger = logging.getLogger("portal.magic_link")

router = APIRouter(prefix="/magic-link", tags=["magic-link"])

ALREADY_STARTED_PHRASES = ("already been started", "already in progress")
ALREADY_ENDED_PHRASES = ("already been ended", "already been completed")


def _timer_fields(payload) -> tuple:
    data = extract_data(payload)
    if not isinstance(data, dict):
        return None, None
    started = data.get("jobStartedAt") or data.get("job_started_at")
    ended = data.get("jobEndedAt") or data.get("job_ended_at")
    if started is None and isinstance(data.get("job"), dict):
        started = data["job"].get("job_started_at")
        ended = data["job"].get("job_ended_at")
    return parse_timestamp(started), parse_timestamp(ended)


# User value: the timer counts from the server's start time and never shows a negative value.
def elapsed_view(payload, now=None) -> dict:
    started, ended = _timer_fields(payload)
    seconds = elapsed_seconds(started, now or utc_now(), ended)
    return {
        "started_at": to_iso(started),
        "ended_at": to_iso(ended),
        "elapsed_seconds": seconds,
        "elapsed_display": format_elapsed(seconds),
        "running": started is not None and ended is None,
    }


def _with_timer(payload) -> dict:
    return {"data": extract_data(payload), "timer": elapsed_view(payload)}


@router.get("/validate/{token}")
def validate_link(token: str):
    return _with_timer(get_portal_api().validate_magic_link(token))


def _timer_action(token: str, action: str, phrases: tuple) -> dict:
    api = get_portal_api()
    call = api.start_magic_link if action == "start" else api.end_magic_link
    try:
        result = call(token)
    except PortalApiError as e:
        if not any(p in (e.message or "").lower() for p in phrases):
            raise
        logger.info("magic_link_%s_already_done", action)
        out = _with_timer(api.validate_magic_link(token))
        out["already"] = True
        return out
    log_action(job_id=None, action=f"magic-{action}", event="SUCCEEDED")
    out = _with_timer(result)
    if out["timer"]["started_at"] is None:
        out = _with_timer(api.validate_magic_link(token))
    out["already"] = False
    return out


@router.post("/start/{token}")
# User value: tapping start twice just shows the running timer instead of an error.
def start_timer(token: str):
    return _timer_action(token, "start", ALREADY_STARTED_PHRASES)


@router.post("/end/{token}")
def end_timer(token: str):
    return _timer_action(token, "end", ALREADY_ENDED_PHRASES)


@router.get("/elapsed/{token}", response_model=ElapsedTimeResponse)
def elapsed(token: str):
    return elapsed_view(get_portal_api().validate_magic_link(token))


@router.get("/elapsed/{token}/stream")
# User value: the on-job timer ticks every second from one lookup, with no extra server calls.
async def elapsed_stream(token: str, request: Request):
    if not is_live_streams_enabled():
        raise HTTPException(
            status_code=404,
            detail={"error_code": "FEATURE_DISABLED", "error_message": "Live updates are not enabled"},
        )
    payload = await run_in_threadpool(get_portal_api().validate_magic_link, token)

    async def produce():
        return elapsed_view(payload)

    events = tick_stream(request, ELAPSED_TICK_SEC, produce, event="elapsed", name="magic-link-timer")
    return StreamingResponse(events, media_type="text/event-stream", headers={"Cache-Control": "no-cache"})


@router.get("/jobs/{job_id}/confirm/{token}")
def confirmation_details(job_id: str, token: str):
    return extract_data(get_portal_api().get_magic_confirmation(job_id, token))


@router.post("/jobs/{job_id}/confirm/{token}")
def confirm_job(job_id: str, token: str):
    result = get_portal_api().submit_magic_confirmation(job_id, token)
    log_action(job_id=job_id, action="magic-confirm", event="SUCCEEDED")
    return extract_data(result)


@router.get("/jobs/{job_id}/report/{token}")
def report_details(job_id: str, token: str):
    return extract_data(get_portal_api().get_magic_report(job_id, token))


@router.post("/jobs/{job_id}/report/{token}")
async def submit_report(
    job_id: str,
    token: str,
    fields: dict = Depends(completion_form),
    documents: List[UploadFile] | None = File(None),
):
    today = utc_now().astimezone(PORTAL_TZ).date()
    clean = validate_completion_report(fields, today=today)
    files = await read_documents(documents)
    result = await run_in_threadpool(get_portal_api().submit_magic_report, job_id, token, clean, files)
    log_action(job_id=job_id, action="magic-report", event="SUCCEEDED", documents=len(files))
    return extract_data(result)


@router.get("/transportation-jobs/{job_id}/report/{token}")
def transportation_report_details(job_id: str, token: str):
    return extract_data(get_portal_api().get_magic_report(job_id, token, transportation=True))


@router.post("/transportation-jobs/{job_id}/report/{token}")
# User value: drivers cannot send a drop-off time that comes before the pickup.
def submit_transportation_report(job_id: str, token: str, payload: TransportationReportRequest):
    clean = validate_transportation_report(payload.model_dump())
    result = get_portal_api().submit_magic_report(job_id, token, clean, transportation=True)
    log_action(job_id=job_id, action="magic-transportation-report", event="SUCCEEDED")
    return extract_data(result)
