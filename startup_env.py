import logging
import os
from typing import List

from services.feature_flags import BOOL_FLAG_VALUES, FEATURE_FLAG_NAMES

logger = logging.getLogger("portal.startup")

POSITIVE_NUMBER_KEYS = (
    "PORTAL_API_TIMEOUT_SEC",
    "SESSION_TTL_SEC",
    "POLL_INTERVAL_SEC",
    "ELAPSED_TICK_SEC",
    "UNASSIGN_MIN_LEAD_HOURS",
    "REPORT_OVERDUE_HOURS",
    "FEDERAL_MILEAGE_CAP",
)


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _validate_redis_url(value: str | None, key: str, errors: List[str]) -> None:
    if _is_blank(value):
        errors.append(f"{key} is required")
        return
    if not (value.startswith("redis://") or value.startswith("rediss://")):
        errors.append(f"{key} must start with redis:// or rediss://")


def _validate_http_url(value: str | None, key: str, errors: List[str]) -> None:
    if _is_blank(value):
        errors.append(f"{key} is required")
        return
    if not (value.startswith("http://") or value.startswith("https://")):
        errors.append(f"{key} must start with http:// or https://")


def _validate_cors_allow_origins(value: str | None, errors: List[str]) -> None:
    if _is_blank(value):
        errors.append("CORS_ALLOW_ORIGINS is required")
        return

    origins = [x.strip() for x in str(value).split(",") if x.strip()]
    if not origins:
        errors.append("CORS_ALLOW_ORIGINS must contain at least one origin")
        return

    for origin in origins:
        if origin == "*":
            errors.append("CORS_ALLOW_ORIGINS must not contain '*' in strict allowlist mode")
            continue
        if not (origin.startswith("http://") or origin.startswith("https://")):
            errors.append(f"CORS origin must start with http:// or https://: {origin}")


def _validate_bool_flag_env(key: str, errors: List[str]) -> None:
    raw = os.getenv(key)
    if raw is None:
        return
    if str(raw).strip().lower() not in BOOL_FLAG_VALUES:
        errors.append(f"{key} must be one of {sorted(BOOL_FLAG_VALUES)}, got {raw!r}")


def _validate_positive_number_env(key: str, errors: List[str]) -> None:
    raw = os.getenv(key)
    if _is_blank(raw):
        return
    try:
        value = float(raw)
    except ValueError:
        errors.append(f"{key} must be a number, got {raw!r}")
        return
    if value <= 0:
        errors.append(f"{key} must be positive, got {raw!r}")


def validate_startup_env() -> None:
    errors: List[str] = []
    warnings: List[str] = []

    _validate_http_url(os.getenv("PORTAL_API_BASE_URL"), "PORTAL_API_BASE_URL", errors)
    _validate_redis_url(os.getenv("REDIS_URL"), "REDIS_URL", errors)
    _validate_cors_allow_origins(os.getenv("CORS_ALLOW_ORIGINS"), errors)

    for key in FEATURE_FLAG_NAMES:
        _validate_bool_flag_env(key, errors)
    for key in POSITIVE_NUMBER_KEYS:
        _validate_positive_number_env(key, errors)

    if _is_blank(os.getenv("PORTAL_TIMEZONE")):
        warnings.append("PORTAL_TIMEZONE is not set; scheduled times are read as UTC")

    if errors:
        for err in errors:
            logger.error("startup_env_invalid %s", err)
        raise RuntimeError("Startup env validation failed: " + "; ".join(errors))

    for warning in warnings:
        logger.warning("startup_env_warning %s", warning)

    logger.info(
        "startup_env_validated keys=%s",
        ["PORTAL_API_BASE_URL", "REDIS_URL", "CORS_ALLOW_ORIGINS", *FEATURE_FLAG_NAMES],
    )
