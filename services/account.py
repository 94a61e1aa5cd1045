# User value: This file rejects weak passwords and empty feedback before anything reaches the server.
import re
from typing import Any, Optional

from fastapi import HTTPException

from utils.time_format import parse_local_date

PASSWORD_MIN_LENGTH = 8
PASSWORD_SPECIALS = "@$!%*?&"

FEEDBACK_CATEGORIES = ("suggestion", "bug_report", "feature_request", "general")
FEEDBACK_DEFAULT_CATEGORY = "general"
FEEDBACK_MAX_RATING = 5

_SPECIAL_RE = re.compile(f"[{re.escape(PASSWORD_SPECIALS)}]")


def _invalid(error_code: str, message: str, field: str) -> HTTPException:
    return HTTPException(status_code=400, detail={"error_code": error_code, "error_message": message, "field": field})


def password_problems(password: str, *, require_special: bool = True) -> list[str]:
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append("length")
    if not re.search(r"[a-z]", password):
        problems.append("lowercase")
    if not re.search(r"[A-Z]", password):
        problems.append("uppercase")
    if not re.search(r"\d", password):
        problems.append("number")
    if require_special and not _SPECIAL_RE.search(password):
        problems.append("special")
    return problems


# User value: the same password rules the sign-up, reset and change screens show are enforced here.
def validate_new_password(
    password: Optional[str],
    confirm: Optional[str],
    *,
    require_special: bool = True,
    current: Optional[str] = None,
    field: str = "password",
) -> str:
    password = password or ""
    if not password:
        raise _invalid("PASSWORD_INVALID", "Password is required", field)
    problems = password_problems(password, require_special=require_special)
    if "length" in problems:
        raise _invalid("PASSWORD_INVALID", f"Password must be at least {PASSWORD_MIN_LENGTH} characters long", field)
    if problems:
        if require_special:
            rule = f"one uppercase letter, one lowercase letter, one number, and one special character ({PASSWORD_SPECIALS})"
        else:
            rule = "one uppercase letter, one lowercase letter, and one number"
        raise _invalid("PASSWORD_INVALID", f"Password must contain at least {rule}", field)
    if current is not None and password == current:
        raise _invalid("PASSWORD_INVALID", "New password must be different from your current password", field)
    if not confirm:
        raise _invalid("PASSWORD_MISMATCH", "Please confirm your password", "confirm_password")
    if confirm != password:
        raise _invalid("PASSWORD_MISMATCH", "Passwords do not match", "confirm_password")
    return password


def validate_feedback(category: Optional[str], rating: Any, comment: Optional[str]) -> dict:
    category = (category or FEEDBACK_DEFAULT_CATEGORY).strip().lower()
    if category not in FEEDBACK_CATEGORIES:
        raise _invalid("FEEDBACK_INVALID", f"category must be one of {', '.join(FEEDBACK_CATEGORIES)}", "category")
    try:
        stars = int(rating)
    except (TypeError, ValueError):
        stars = 0
    if not 1 <= stars <= FEEDBACK_MAX_RATING:
        raise _invalid("FEEDBACK_INVALID", "Please select a rating", "rating")
    text = (comment or "").strip()
    if not text:
        raise _invalid("FEEDBACK_INVALID", "Please enter a comment", "comment")
    return {"category": category, "rating": stars, "comment": text}


def profile_update_fields(fields: dict) -> dict:
    """Drop blank values and send date_of_birth as a plain calendar date."""
    out = {}
    for key, value in fields.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        out[key] = value
    if "date_of_birth" in out:
        day = parse_local_date(out["date_of_birth"])
        if day is not None:
            out["date_of_birth"] = day.isoformat()
    return out
