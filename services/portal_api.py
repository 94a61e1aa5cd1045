# User value: This file is the one place the portal talks to the interpreter API, with timeouts and clear errors.
import logging
import threading
import time
from typing import Any, Optional

import requests

from config import PORTAL_API_BASE_URL, PORTAL_API_TIMEOUT_SEC
from services.token_expiration import is_expired_response, response_message
from utils.metrics import incr, observe_ms
from utils.request_id import upstream_headers

logger = logging.getLogger("portal.api_client")

MSG_RATE_LIMITED = "Too many requests. Please try again later."
MSG_SERVER_ERROR = "Server error. Please try again later."
MSG_FALLBACK = "An unexpected error occurred"
MSG_TIMEOUT = "The server took too long to respond. Please try again."
MSG_UNAVAILABLE = "Unable to reach the server. Please try again later."

_UPSTREAM_ERROR_CODES = {
    400: "UPSTREAM_BAD_REQUEST",
    401: "UPSTREAM_UNAUTHORIZED",
    403: "UPSTREAM_FORBIDDEN",
    404: "UPSTREAM_NOT_FOUND",
    409: "UPSTREAM_CONFLICT",
    422: "UPSTREAM_VALIDATION_FAILED",
    429: "UPSTREAM_RATE_LIMITED",
}


class PortalApiError(Exception):
    def __init__(self, status_code: int, error_code: str, message: str, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail


class SessionExpiredError(PortalApiError):
    def __init__(self, token: str, message: str = "Session expired"):
        super().__init__(401, "AUTH_SESSION_EXPIRED", message)
        self.token = token


# User value: turns upstream failures into one short sentence interpreters can act on.
def upstream_error_message(status_code: int, body: Any) -> str:
    if status_code == 429:
        return MSG_RATE_LIMITED
    if status_code >= 500:
        return MSG_SERVER_ERROR
    message = response_message(body)
    if message:
        errors = body.get("errors") if isinstance(body, dict) else None
        if isinstance(errors, list) and errors:
            parts = []
            for err in errors:
                if isinstance(err, dict):
                    parts.append(f"{err.get('path')}: {err.get('msg')}")
                else:
                    parts.append(str(err))
            return "Validation errors: " + ", ".join(parts)
        return message
    return MSG_FALLBACK


def _clean_params(params: Optional[dict]) -> dict:
    out = {}
    for key, value in (params or {}).items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        out[key] = value
    return out


class PortalApiClient:
    def __init__(self, base_url: str = PORTAL_API_BASE_URL, timeout: float = PORTAL_API_TIMEOUT_SEC, session: Optional[requests.Session] = None):
        self.base_url = str(base_url).rstrip("/")
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        op: str,
        token: Optional[str] = None,
        params: Optional[dict] = None,
        json: Any = None,
        data: Optional[dict] = None,
        files: Any = None,
    ) -> Any:
        headers = upstream_headers()
        headers["Accept"] = "application/json"
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}/{path.lstrip('/')}"
        started = time.perf_counter()
        status_class = "error"
        try:
            resp = self.session.request(
                method,
                url,
                params=_clean_params(params),
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            logger.warning("upstream_timeout op=%s method=%s timeout_sec=%s error=%s", op, method, self.timeout, exc)
            raise PortalApiError(504, "UPSTREAM_TIMEOUT", MSG_TIMEOUT) from exc
        except requests.ConnectionError as exc:
            logger.warning("upstream_unavailable op=%s method=%s error=%s", op, method, exc)
            raise PortalApiError(503, "UPSTREAM_UNAVAILABLE", MSG_UNAVAILABLE) from exc
        except requests.RequestException as exc:
            logger.error("upstream_request_failed op=%s method=%s error=%s: %s", op, method, exc.__class__.__name__, exc)
            raise PortalApiError(502, "UPSTREAM_ERROR", MSG_FALLBACK) from exc
        else:
            status_class = f"{resp.status_code // 100}xx"
        finally:
            observe_ms("portal_upstream_latency_ms", (time.perf_counter() - started) * 1000.0, op=op)
            incr("portal_upstream_requests_total", op=op, status_class=status_class)

        try:
            body = resp.json()
        except ValueError:
            body = resp.text or None

        refused = resp.ok and isinstance(body, dict) and body.get("success") is False
        if resp.ok and not refused:
            return body

        # A 2xx reply carrying success=false is a refusal and maps like a 400.
        status = 400 if refused else resp.status_code
        if token and is_expired_response(status, body):
            logger.info("upstream_session_expired op=%s status=%s", op, resp.status_code)
            raise SessionExpiredError(token, response_message(body) or "Session expired")

        message = upstream_error_message(status, body)
        status_out = 502 if status >= 500 else status
        if refused:
            error_code = "UPSTREAM_REFUSED"
        elif status >= 500:
            error_code = "UPSTREAM_SERVER_ERROR"
        else:
            error_code = _UPSTREAM_ERROR_CODES.get(status, f"UPSTREAM_HTTP_{status}")
        logger.warning(
            "upstream_request_rejected op=%s status=%s error_code=%s message=%s",
            op,
            resp.status_code,
            error_code,
            message,
        )
        raise PortalApiError(status_out, error_code, message, detail=body if isinstance(body, dict) else None)

    # ------------------------------------------------------------------
    # Auth / profile
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> Any:
        return self._request("POST", "/auth/interpreter/login", op="login", json={"email": email, "password": password})

    def logout(self, token: str) -> Any:
        return self._request("POST", "/auth/logout", op="logout", token=token)

    def get_profile(self, token: str) -> Any:
        return self._request("GET", "/interpreters/profile", op="profile", token=token)

    def change_password(self, token: str, current_password: str, new_password: str) -> Any:
        body = {"currentPassword": current_password, "newPassword": new_password}
        return self._request("POST", "/auth/change-password", op="change_password", token=token, json=body)

    def forgot_password(self, email: str) -> Any:
        return self._request("POST", "/auth/forgot-password", op="forgot_password", json={"email": email})

    def reset_password(self, reset_token: str, password: str) -> Any:
        body = {"token": reset_token, "password": password}
        return self._request("POST", "/auth/reset-password", op="reset_password", json=body)

    def validate_signup_token(self, signup_token: str) -> Any:
        return self._request("POST", "/auth/validate-signup-token", op="signup_validate", json={"token": signup_token})

    def complete_signup(self, signup_token: str, password: str) -> Any:
        body = {"token": signup_token, "password": password}
        return self._request("POST", "/auth/complete-signup", op="signup_complete", json=body)

    def submit_profile_update(self, token: str, fields: dict, files: Optional[list] = None) -> Any:
        return self._request(
            "POST",
            "/interpreters/profile/update",
            op="profile_update",
            token=token,
            data=fields,
            files=files or None,
        )

    def get_pending_profile_update(self, token: str) -> Any:
        return self._request("GET", "/interpreters/profile/pending-update", op="profile_pending", token=token)

    def cancel_pending_profile_update(self, token: str) -> Any:
        return self._request("DELETE", "/interpreters/profile/pending-update", op="profile_pending_cancel", token=token)

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------
    def list_feedback(self, token: str) -> Any:
        return self._request("GET", "/feedback", op="feedback_list", token=token)

    def submit_feedback(self, token: str, category: str, rating: int, comment: str) -> Any:
        body = {"category": category, "rating": rating, "comment": comment}
        return self._request("POST", "/feedback", op="feedback_submit", token=token, json=body)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------
    def list_my_jobs(self, token: str, *, limit: Optional[int] = None, page: Optional[int] = None, status: Optional[str] = None) -> Any:
        return self._request(
            "GET",
            "/jobs/my-jobs",
            op="my_jobs",
            token=token,
            params={"limit": limit, "page": page, "status": status},
        )

    def list_available_jobs(self, token: str, **filters: Any) -> Any:
        return self._request("GET", "/jobs/available", op="available_jobs", token=token, params=filters)

    def get_job(self, token: str, job_id: str) -> Any:
        return self._request("GET", f"/jobs/{job_id}", op="job_detail", token=token)

    def accept_job(self, token: str, job_id: str, *, mileage_requested: Optional[float] = None, mileage_rate: Optional[float] = None) -> Any:
        body = {}
        if mileage_requested is not None:
            body["mileage_requested"] = mileage_requested
        if mileage_rate is not None:
            body["mileage_rate"] = mileage_rate
        return self._request("POST", f"/jobs/{job_id}/accept", op="accept", token=token, json=body)

    def decline_job(self, token: str, job_id: str, reason: Optional[str] = None) -> Any:
        body = {"reason": reason} if reason else {}
        return self._request("POST", f"/jobs/{job_id}/decline", op="decline", token=token, json=body)

    def indicate_available(self, token: str, job_id: str) -> Any:
        return self._request("POST", f"/jobs/{job_id}/indicate-available", op="indicate_available", token=token, json={})

    def indicate_not_available(self, token: str, job_id: str) -> Any:
        return self._request("POST", f"/jobs/{job_id}/indicate-not-available", op="indicate_not_available", token=token, json={})

    def confirm_availability(self, token: str, job_id: str) -> Any:
        return self._request("POST", f"/jobs/{job_id}/confirm-availability", op="confirm_availability", token=token, json={})

    def unassign_job(self, token: str, job_id: str, reason: Optional[str] = None) -> Any:
        body = {"reason": reason} if reason else {}
        return self._request("POST", f"/jobs/{job_id}/unassign", op="unassign", token=token, json=body)

    def start_job(self, token: str, job_id: str) -> Any:
        return self._request("POST", f"/interpreters/jobs/{job_id}/start", op="start", token=token, json={})

    def end_job(self, token: str, job_id: str) -> Any:
        return self._request("POST", f"/interpreters/jobs/{job_id}/end", op="end", token=token, json={})

    def update_duration(self, token: str, job_id: str, actual_duration_minutes: int) -> Any:
        return self._request(
            "PUT",
            f"/interpreters/jobs/{job_id}/update-duration",
            op="update_duration",
            token=token,
            json={"actual_duration_minutes": actual_duration_minutes},
        )

    def submit_completion_report(self, token: str, job_id: str, fields: dict, files: Optional[list] = None) -> Any:
        return self._request(
            "POST",
            f"/interpreters/jobs/{job_id}/completion-report",
            op="completion_report",
            token=token,
            data=fields,
            files=files or None,
        )

    def get_earnings(self, token: str, period: Optional[str] = None) -> Any:
        return self._request("GET", "/interpreters/earnings", op="earnings", token=token, params={"period": period})

    # ------------------------------------------------------------------
    # Magic links (token in the path, no session)
    # ------------------------------------------------------------------
    def validate_magic_link(self, link_token: str) -> Any:
        return self._request("GET", f"/magic-link/validate/{link_token}", op="magic_validate")

    def start_magic_link(self, link_token: str) -> Any:
        return self._request("POST", f"/magic-link/start/{link_token}", op="magic_start", json={})

    def end_magic_link(self, link_token: str) -> Any:
        return self._request("POST", f"/magic-link/end/{link_token}", op="magic_end", json={})

    def get_magic_confirmation(self, job_id: str, link_token: str) -> Any:
        return self._request("GET", f"/magic-link/jobs/{job_id}/confirm/{link_token}", op="magic_confirm_view")

    def submit_magic_confirmation(self, job_id: str, link_token: str) -> Any:
        return self._request("POST", f"/magic-link/jobs/{job_id}/confirm/{link_token}", op="magic_confirm", json={})

    def get_magic_report(self, job_id: str, link_token: str, *, transportation: bool = False) -> Any:
        kind = "transportation-jobs" if transportation else "jobs"
        return self._request("GET", f"/magic-link/{kind}/{job_id}/report/{link_token}", op="magic_report_view")

    def submit_magic_report(self, job_id: str, link_token: str, fields: dict, files: Optional[list] = None, *, transportation: bool = False) -> Any:
        kind = "transportation-jobs" if transportation else "jobs"
        if transportation:
            return self._request("POST", f"/magic-link/{kind}/{job_id}/report/{link_token}", op="magic_report", json=fields)
        return self._request(
            "POST",
            f"/magic-link/{kind}/{job_id}/report/{link_token}",
            op="magic_report",
            data=fields,
            files=files or None,
        )


_client: Optional[PortalApiClient] = None
_client_lock = threading.Lock()


def get_portal_api() -> PortalApiClient:
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = PortalApiClient()
    return _client
