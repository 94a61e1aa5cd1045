# User value: This file signs interpreters in and out and remembers where they were.
import logging

from fastapi import APIRouter, Depends, HTTPException

from schemas.requests import (
    ChangePasswordRequest,
    CompleteSignupRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    RouteUpdateRequest,
    SignupTokenRequest,
)
from schemas.responses import LoginResponse, SessionResponse
from services.account import validate_new_password
from services.auth import get_session_store, require_session
from services.job_records import extract_data
from services.portal_api import PortalApiError, SessionExpiredError, get_portal_api
from utils.metrics import incr

logger = logging.getLogger("portal.auth_routes")

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_parts(payload) -> tuple[str | None, dict]:
    data = extract_data(payload)
    if not isinstance(data, dict):
        return None, {}
    token = data.get("token") or data.get("access_token")
    user = data.get("user") or data.get("interpreter") or {}
    return token, user if isinstance(user, dict) else {}


@router.post("/login", response_model=LoginResponse)
# User value: one login stores token, user and profile together so every screen starts from the same session.
def login(payload: LoginRequest):
    api = get_portal_api()
    result = api.login(payload.email.strip().lower(), payload.password)
    token, user = _login_parts(result)
    if not token:
        incr("portal_login_total", outcome="malformed")
        raise HTTPException(
            status_code=502,
            detail={"error_code": "AUTH_LOGIN_MALFORMED", "error_message": "Login response did not include a token"},
        )

    profile = {}
    try:
        profile = extract_data(api.get_profile(token)) or {}
    except PortalApiError as e:
        if isinstance(e, SessionExpiredError):
            raise
        logger.warning("login_profile_unavailable status=%s error_code=%s", e.status_code, e.error_code)

    store = get_session_store()
    store.login(token, user, profile)
    routes = store.get_routes(token)
    incr("portal_login_total", outcome="ok")
    return LoginResponse(token=token, user=user, profile=profile if isinstance(profile, dict) else {}, **routes)


@router.post("/logout")
def logout(session=Depends(require_session)):
    try:
        get_portal_api().logout(session["token"])
    except PortalApiError as e:
        logger.warning("logout_upstream_failed status=%s error_code=%s", e.status_code, e.error_code)
    get_session_store().logout(session["token"])
    incr("portal_logout_total")
    return {"status": "logged_out", "redirect": "/login"}


@router.get("/session", response_model=SessionResponse)
def read_session(session=Depends(require_session)):
    routes = get_session_store().get_routes(session["token"])
    return SessionResponse(user=session["user"], profile=session["profile"], **routes)


@router.put("/route")
# User value: remembers the screen the interpreter is on so a reload brings them back to it.
def save_route(payload: RouteUpdateRequest, session=Depends(require_session)):
    if not payload.route.startswith("/"):
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_ROUTE", "error_message": "Route must start with '/'"},
        )
    store = get_session_store()
    store.save_route(session["token"], payload.route)
    return store.get_routes(session["token"])


@router.get("/route")
def read_route(session=Depends(require_session)):
    return get_session_store().get_routes(session["token"])


@router.post("/change-password")
def change_password(payload: ChangePasswordRequest, session=Depends(require_session)):
    new_password = validate_new_password(
        payload.new_password,
        payload.confirm_password,
        current=payload.current_password,
        field="new_password",
    )
    get_portal_api().change_password(session["token"], payload.current_password, new_password)
    incr("portal_password_total", action="change")
    logger.info("password_changed owner=%s", session["owner"])
    return {"status": "password_changed"}


@router.post("/forgot-password")
# User value: an interpreter locked out of the portal can request a reset email.
def forgot_password(payload: ForgotPasswordRequest):
    get_portal_api().forgot_password(payload.email.strip().lower())
    incr("portal_password_total", action="forgot")
    return {"status": "reset_email_sent"}


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest):
    password = validate_new_password(payload.password, payload.confirm_password)
    get_portal_api().reset_password(payload.token, password)
    incr("portal_password_total", action="reset")
    return {"status": "password_reset", "redirect": "/login"}


@router.post("/validate-signup-token")
def validate_signup_token(payload: SignupTokenRequest):
    data = extract_data(get_portal_api().validate_signup_token(payload.token))
    user = data.get("user") if isinstance(data, dict) else None
    return {"valid": True, "user": user if isinstance(user, dict) else {}}


@router.post("/complete-signup")
# User value: a new interpreter sets a password once from the invite link and lands on login.
def complete_signup(payload: CompleteSignupRequest):
    password = validate_new_password(payload.password, payload.confirm_password, require_special=False)
    get_portal_api().complete_signup(payload.token, password)
    incr("portal_signup_total", outcome="ok")
    return {"status": "signup_completed", "redirect": "/login"}
