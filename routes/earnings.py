import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from schemas.job_contract import EARNINGS_PERIODS
from schemas.responses import EarningsResponse
from services.auth import get_query_cache, require_session
from services.earnings import summarize_breakdown, summarize_totals
from services.job_records import extract_data
from services.portal_api import get_portal_api

logger = logging.getLogger("portal.earnings_routes")

router = APIRouter(tags=["earnings"])


@router.get("/earnings", response_model=EarningsResponse)
# User value: paid jobs show the actual payment; everything else shows the recorded earnings.
def earnings(period: str = Query(default="month"), session=Depends(require_session)):
    if period not in EARNINGS_PERIODS:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_PERIOD", "error_message": f"period must be one of {', '.join(EARNINGS_PERIODS)}"},
        )
    api = get_portal_api()
    payload = get_query_cache().get_or_fetch(
        session["owner"],
        "earnings",
        {"period": period},
        lambda: api.get_earnings(session["token"], period),
    )
    data = extract_data(payload)
    data = data if isinstance(data, dict) else {}
    breakdown = summarize_breakdown(data.get("breakdown") or [])
    logger.debug("earnings_loaded owner=%s period=%s rows=%s", session["owner"], period, len(breakdown))
    return {
        "period": period,
        "summary": summarize_totals(data.get("summary"), breakdown),
        "breakdown": breakdown,
    }
