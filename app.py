# User value: This file assembles the interpreter portal API with one error shape and request tracing.
# app.py
import os
import logging
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
from utils.json_logging import configure_json_logging
from utils.metrics import incr, observe_ms

# Route modules read os.getenv at import time.
load_dotenv(os.path.join(os.path.dirname(__file__), ".env"))

SERVICE_NAME = "interpreter-portal-api"


def configure_logging() -> None:
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    configure_json_logging(service=SERVICE_NAME, level=level)


configure_logging()
logger = logging.getLogger("portal.error")
from startup_env import validate_startup_env
from utils.request_id import (
    REQUEST_ID_HEADER,
    bind_request_id,
    get_request_id,
    normalize_request_id,
    release_request_id,
)

validate_startup_env()

from routes.auth import router as auth_router
from routes.contract import router as contract_router
from routes.dashboard import router as dashboard_router
from routes.earnings import router as earnings_router
from routes.feedback import router as feedback_router
from routes.health import router as health_router
from routes.jobs import router as jobs_router
from routes.magic_link import router as magic_link_router
from routes.profile import router as profile_router
from services.auth import clear_session
from services.portal_api import PortalApiError, SessionExpiredError
from services.session_store import SessionStoreUnavailable
from services.token_expiration import expiration_handler

app = FastAPI(title="Interpreter Portal API")

_DEFAULT_ERROR_CODES = {
    400: "INVALID_REQUEST",
    401: "AUTH_UNAUTHORIZED",
    403: "AUTH_FORBIDDEN",
    404: "RESOURCE_NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "STATE_CONFLICT",
    422: "VALIDATION_ERROR",
}


def _csv_env(name: str) -> list[str]:
    ordered: list[str] = []
    for item in os.getenv(name, "").split(","):
        item = item.strip()
        if item and item not in ordered:
            ordered.append(item)
    return ordered


@app.middleware("http")
# User value: every response carries a request id so a support report can be traced end to end.
async def request_context_middleware(request: Request, call_next):
    request_id, ctx_token = bind_request_id(request.headers.get(REQUEST_ID_HEADER))
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = int(getattr(response, "status_code", 500))
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        route = request.scope.get("route")
        labels = {
            "method": request.method.upper(),
            "path": getattr(route, "path", None) or request.url.path,
            "status_class": f"{status_code // 100}xx",
        }
        incr("portal_http_requests_total", status_code=status_code, **labels)
        observe_ms("portal_http_request_latency_ms", (time.perf_counter() - started) * 1000.0, **labels)
        release_request_id(ctx_token)


def _message_of(detail) -> str:
    if isinstance(detail, dict):
        return str(detail.get("error_message") or detail.get("message") or detail.get("detail") or detail)
    if isinstance(detail, list):
        return "; ".join(str(x) for x in detail)
    return str(detail)


def _code_of(status_code: int, detail) -> str:
    if isinstance(detail, dict) and detail.get("error_code"):
        return str(detail["error_code"]).strip().upper()
    if status_code == 401 and "missing authorization" in _message_of(detail).lower():
        return "AUTH_MISSING_TOKEN"
    return _DEFAULT_ERROR_CODES.get(status_code, f"HTTP_{status_code}")


def _error_response(
    request: Request,
    status_code: int,
    detail,
    *,
    event: str,
    error_code: str | None = None,
    error_message: str | None = None,
    level: int = logging.WARNING,
    **extra,
) -> JSONResponse:
    body = {
        "error_code": error_code or _code_of(status_code, detail),
        "error_message": error_message or _message_of(detail),
        "detail": detail,
        "path": request.url.path,
        "request_id": get_request_id() or normalize_request_id(request.headers.get(REQUEST_ID_HEADER)),
    }
    body.update(extra)
    logger.log(
        level,
        "%s status=%s path=%s request_id=%s error_code=%s error_message=%s",
        event,
        status_code,
        body["path"],
        body["request_id"],
        body["error_code"],
        body["error_message"],
    )
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error_response(
        request,
        422,
        exc.errors(),
        event="request_failed_validation",
        error_code="VALIDATION_ERROR",
        error_message="Request validation failed",
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    redirect = exc.detail.get("redirect") if isinstance(exc.detail, dict) else None
    extra = {"redirect": redirect} if redirect else {}
    return _error_response(request, exc.status_code, exc.detail, event="request_failed", **extra)


@app.exception_handler(SessionExpiredError)
# User value: an expired session signs the interpreter out once and points them back to login.
async def session_expired_handler(request: Request, exc: SessionExpiredError):
    outcome = await run_in_threadpool(expiration_handler.handle, exc.token, clear_session)
    detail = {"error_code": exc.error_code, "error_message": outcome["message"], "handled": outcome["handled"]}
    return _error_response(request, 401, detail, event="request_failed_session_expired", redirect=outcome["redirect"])


@app.exception_handler(PortalApiError)
async def portal_api_exception_handler(request: Request, exc: PortalApiError):
    detail = {"error_code": exc.error_code, "error_message": exc.message}
    if exc.detail is not None:
        detail["upstream"] = exc.detail
    return _error_response(request, exc.status_code, detail, event="request_failed_upstream")


@app.exception_handler(SessionStoreUnavailable)
async def session_store_exception_handler(request: Request, exc: SessionStoreUnavailable):
    detail = {"error_code": "INFRA_REDIS", "error_message": str(exc)}
    return _error_response(request, 503, detail, event="request_failed_session_store", level=logging.ERROR)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("request_failed_unhandled path=%s error=%s: %s", request.url.path, exc.__class__.__name__, exc)
    return _error_response(
        request,
        500,
        "Unhandled server exception",
        event="request_failed_unhandled",
        error_code="INTERNAL_SERVER_ERROR",
        error_message="Internal server error",
        level=logging.ERROR,
    )


CORS_ALLOW_ORIGINS = _csv_env("CORS_ALLOW_ORIGINS")
CORS_ALLOW_ORIGIN_REGEX = (os.getenv("CORS_ALLOW_ORIGIN_REGEX") or "").strip() or None
logger.info(
    "cors_configured allow_origins=%s allow_origin_regex=%s",
    CORS_ALLOW_ORIGINS,
    CORS_ALLOW_ORIGIN_REGEX or "",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_origin_regex=CORS_ALLOW_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)

for router in (
    auth_router,
    health_router,
    contract_router,
    dashboard_router,
    jobs_router,
    earnings_router,
    magic_link_router,
    profile_router,
    feedback_router,
):
    app.include_router(router)
