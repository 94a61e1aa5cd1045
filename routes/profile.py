# User value: This file lets interpreters view their profile and send changes for admin approval.
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from services.account import profile_update_fields
from services.auth import get_session_store, require_session
from services.job_records import extract_data
from services.portal_api import get_portal_api
from utils.metrics import incr

logger = logging.getLogger("portal.profile_routes")

router = APIRouter(prefix="/profile", tags=["profile"])


async def form_parts(request: Request) -> tuple[dict, list]:
    form = await request.form()
    fields, files = {}, []
    for name, value in form.multi_items():
        if isinstance(value, UploadFile):
            if value.filename:
                files.append((name, (value.filename, await value.read(), value.content_type or "application/octet-stream")))
        else:
            fields[name] = value
    return fields, files


@router.get("")
# User value: a fresh profile also refreshes the service rates used for earnings estimates.
def read_profile(session=Depends(require_session)):
    profile = extract_data(get_portal_api().get_profile(session["token"])) or {}
    if isinstance(profile, dict):
        get_session_store().update_profile(session["token"], profile)
    return profile


@router.post("/update")
async def submit_profile_update(request: Request, session=Depends(require_session)):
    raw_fields, files = await form_parts(request)
    fields = profile_update_fields(raw_fields)
    if not fields and not files:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "PROFILE_UPDATE_EMPTY", "error_message": "No profile changes were submitted"},
        )
    result = await run_in_threadpool(get_portal_api().submit_profile_update, session["token"], fields, files)
    incr("portal_profile_updates_total", outcome="submitted")
    logger.info("profile_update_submitted owner=%s fields=%s files=%s", session["owner"], len(fields), len(files))
    return {"status": "pending_approval", "data": extract_data(result)}


@router.get("/pending-update")
def pending_update(session=Depends(require_session)):
    return {"pending_update": extract_data(get_portal_api().get_pending_profile_update(session["token"])) or None}


@router.delete("/pending-update")
def cancel_pending_update(session=Depends(require_session)):
    get_portal_api().cancel_pending_profile_update(session["token"])
    incr("portal_profile_updates_total", outcome="cancelled")
    return {"status": "cancelled"}
