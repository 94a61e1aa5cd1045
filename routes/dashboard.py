# User value: This file serves the dashboard, pending actions and schedule from one shared job list.
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from config import POLL_INTERVAL_SEC
from schemas.responses import DashboardResponse, PendingActionsResponse
from services.auth import get_query_cache, require_session
from services.earnings import summarize_breakdown, summarize_totals
from services.feature_flags import is_live_streams_enabled
from services.job_classifier import count_buckets
from services.job_records import extract_data
from services.job_views import (
    build_dashboard,
    build_pending_actions,
    build_schedule,
    fetch_my_jobs,
    profile_service_rates,
    utc_now,
)
from services.live_stream import tick_stream
from services.portal_api import PortalApiError, SessionExpiredError, get_portal_api
from utils.metrics import incr

logger = logging.getLogger("portal.dashboard")

router = APIRouter(tags=["dashboard"])


def _monthly_earnings(api, cache, session) -> dict | None:
    try:
        payload = cache.get_or_fetch(
            session["owner"],
            "earnings",
            {"period": "month"},
            lambda: api.get_earnings(session["token"], "month"),
        )
    except SessionExpiredError:
        raise
    except PortalApiError as e:
        logger.warning("dashboard_earnings_unavailable status=%s error_code=%s", e.status_code, e.error_code)
        return None
    data = extract_data(payload)
    data = data if isinstance(data, dict) else {}
    breakdown = summarize_breakdown(data.get("breakdown") or [])
    return summarize_totals(data.get("summary"), breakdown)


@router.get("/dashboard", response_model=DashboardResponse)
# User value: one request gives the next action, urgent items, today's jobs and this month's earnings.
def dashboard(session=Depends(require_session)):
    api = get_portal_api()
    cache = get_query_cache()
    jobs, _ = fetch_my_jobs(api, cache, session)
    monthly = _monthly_earnings(api, cache, session)
    out = build_dashboard(
        jobs,
        utc_now(),
        service_rates=profile_service_rates(session["profile"]),
        monthly_earnings=monthly,
    )
    incr("portal_dashboard_total", smart_action=out["smart_action"]["type"])
    return out


@router.get("/pending-actions", response_model=PendingActionsResponse)
def pending_actions(session=Depends(require_session)):
    jobs, _ = fetch_my_jobs(get_portal_api(), get_query_cache(), session)
    return build_pending_actions(jobs, utc_now(), service_rates=profile_service_rates(session["profile"]))


@router.get("/schedule")
def schedule(session=Depends(require_session)):
    jobs, _ = fetch_my_jobs(get_portal_api(), get_query_cache(), session)
    now = utc_now()
    return {
        "generated_at": now.isoformat(),
        "jobs": build_schedule(jobs, now, service_rates=profile_service_rates(session["profile"])),
    }


@router.get("/dashboard/stream")
# User value: badge counts keep moving with the clock even when nothing else changes.
async def dashboard_stream(request: Request, session=Depends(require_session)):
    if not is_live_streams_enabled():
        raise HTTPException(
            status_code=404,
            detail={"error_code": "FEATURE_DISABLED", "error_message": "Live updates are not enabled"},
        )

    def compute_counts() -> dict:
        jobs, _ = fetch_my_jobs(get_portal_api(), get_query_cache(), session)
        now = utc_now()
        return {"generated_at": now.isoformat(), "counts": count_buckets(jobs, now)}

    async def produce():
        return await run_in_threadpool(compute_counts)

    events = tick_stream(request, POLL_INTERVAL_SEC, produce, event="counts", name=f"dashboard:{session['owner'][:8]}")
    return StreamingResponse(events, media_type="text/event-stream", headers={"Cache-Control": "no-cache"})
