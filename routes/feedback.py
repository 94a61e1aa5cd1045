import logging

from fastapi import APIRouter, Depends

from schemas.requests import FeedbackRequest
from services.account import validate_feedback
from services.auth import require_session
from services.job_records import extract_data
from services.portal_api import get_portal_api
from utils.metrics import incr

logger = logging.getLogger("portal.feedback_routes")

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.get("")
def list_feedback(session=Depends(require_session)):
    data = extract_data(get_portal_api().list_feedback(session["token"]))
    return {"feedback": data if isinstance(data, list) else []}


@router.post("")
def submit_feedback(payload: FeedbackRequest, session=Depends(require_session)):
    clean = validate_feedback(payload.category, payload.rating, payload.comment)
    result = get_portal_api().submit_feedback(session["token"], clean["category"], clean["rating"], clean["comment"])
    incr("portal_feedback_total", category=clean["category"])
    logger.info("feedback_submitted owner=%s category=%s rating=%s", session["owner"], clean["category"], clean["rating"])
    return {"status": "submitted", "data": extract_data(result)}
