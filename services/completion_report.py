# User value: This file catches incomplete completion reports before they reach the server.
import logging
import re
from datetime import date
from typing import Any, List, Optional

from fastapi import Form, HTTPException, UploadFile

from utils.time_format import parse_local_date

logger = logging.getLogger("portal.completion_report")

RESULT_COMPLETED = "Completed"
RESULT_COMPLETED_WITH_FOLLOW_UP = "Completed with follow up"

RESULT_OPTIONS = (
    RESULT_COMPLETED,
    RESULT_COMPLETED_WITH_FOLLOW_UP,
    "Patient No Show",
    "Rescheduled",
    "Cancelled",
    "Cancelled Under 24 hours",
)

FILE_STATUS_OPTIONS = (
    "continue_with_same",
    "one_time",
    "requesting_therapy",
    "follow_up_pending",
    "Released from care",
    "Referred to a different provider",
    "Other",
)

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?:\s*([AaPp][Mm]))?$")


def _invalid(message: str, field: Optional[str] = None) -> HTTPException:
    detail = {"error_code": "REPORT_VALIDATION_FAILED", "error_message": message}
    if field:
        detail["field"] = field
    return HTTPException(status_code=400, detail=detail)


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _yes_no(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"yes", "true", "1", "on"}:
        return True
    if text in {"no", "false", "0", "off"}:
        return False
    return None


# User value: reads "09:30 PM" or "21:30" the same way so time checks never misfire.
def parse_clock_minutes(value: Any) -> Optional[int]:
    m = _CLOCK_RE.match(_text(value))
    if not m:
        return None
    hour, minute, period = int(m.group(1)), int(m.group(2)), m.group(3)
    if minute > 59:
        return None
    if period:
        if not 1 <= hour <= 12:
            return None
        if period.upper() == "AM":
            hour = 0 if hour == 12 else hour
        else:
            hour = 12 if hour == 12 else hour + 12
    elif hour > 23:
        return None
    return hour * 60 + minute


def _require_time_range(start: Any, end: Any, *, start_field: str, end_field: str, start_msg: str, end_msg: str, order_msg: str) -> None:
    start_min = parse_clock_minutes(start)
    if start_min is None:
        raise _invalid(start_msg, start_field)
    end_min = parse_clock_minutes(end)
    if end_min is None:
        raise _invalid(end_msg, end_field)
    if end_min <= start_min:
        raise _invalid(order_msg, end_field)


def validate_completion_report(fields: dict, *, today: date) -> dict:
    """Validate an interpreter completion report and build the multipart fields.

    Checks run in the order the form presents them and the first failure is
    raised as a 400 with error_code REPORT_VALIDATION_FAILED.
    """
    if not _text(fields.get("email")) or not _text(fields.get("order_number")):
        raise _invalid("Email and order number are required", "email")

    result = _text(fields.get("result"))
    if not result:
        raise _invalid("Please select a result", "result")
    if result not in RESULT_OPTIONS:
        raise _invalid(f"Unknown result: {result}", "result")

    file_status = _text(fields.get("file_status"))
    if not file_status:
        raise _invalid("Please select a file status", "file_status")
    if file_status not in FILE_STATUS_OPTIONS:
        raise _invalid(f"Unknown file status: {file_status}", "file_status")

    _require_time_range(
        fields.get("start_time"),
        fields.get("end_time"),
        start_field="start_time",
        end_field="end_time",
        start_msg="Please select a start time",
        end_msg="Please select an end time",
        order_msg="End time must be after start time",
    )

    out = {
        "email": _text(fields.get("email")),
        "order_number": _text(fields.get("order_number")),
        "start_time": _text(fields.get("start_time")),
        "end_time": _text(fields.get("end_time")),
        "result": result,
        "file_status": file_status,
        "notes": _text(fields.get("notes")),
    }

    if result != RESULT_COMPLETED_WITH_FOLLOW_UP:
        return out

    follow_up_date = parse_local_date(fields.get("follow_up_date"))
    if follow_up_date is None:
        raise _invalid("Follow-up date is required", "follow_up_date")
    if follow_up_date < today:
        raise _invalid("Follow-up date cannot be in the past", "follow_up_date")

    if parse_clock_minutes(fields.get("follow_up_time")) is None:
        raise _invalid("Follow-up time is required", "follow_up_time")

    same_location = _yes_no(fields.get("follow_up_use_same_location"))
    if same_location is None:
        raise _invalid("Please indicate if the follow-up is at the same location", "follow_up_use_same_location")

    location = {key: _text(fields.get(f"follow_up_{key}")) for key in ("street", "city", "state", "zip", "country")}
    if same_location is False and not all(location[k] for k in ("street", "city", "state", "zip")):
        raise _invalid("Please provide complete follow-up location details", "follow_up_street")

    available = _yes_no(fields.get("follow_up_available"))
    if available is None:
        raise _invalid("Please indicate if you are available for the follow-up", "follow_up_available")

    out.update(
        {
            "follow_up_date": follow_up_date.isoformat(),
            "follow_up_time": _text(fields.get("follow_up_time")),
            "follow_up_use_same_location": "Yes" if same_location else "No",
            "follow_up_street": location["street"],
            "follow_up_city": location["city"],
            "follow_up_state": location["state"],
            "follow_up_zip": location["zip"],
            "follow_up_country": location["country"],
            "follow_up_available": "Yes" if available else "No",
        }
    )
    return out


# User value: makes sure drivers report a drop-off after the pickup before the report is sent.
def validate_transportation_report(fields: dict) -> dict:
    _require_time_range(
        fields.get("actual_pickup_time"),
        fields.get("actual_dropoff_time"),
        start_field="actual_pickup_time",
        end_field="actual_dropoff_time",
        start_msg="Please enter actual pickup time",
        end_msg="Please enter actual drop-off time",
        order_msg="Drop-off time must be after pickup time",
    )

    wait_raw = fields.get("actual_wait_time")
    wait = 0
    if wait_raw is not None and _text(wait_raw) != "":
        try:
            wait = int(_text(wait_raw))
        except ValueError:
            raise _invalid("Wait time must be a non-negative number", "actual_wait_time")
        if wait < 0:
            raise _invalid("Wait time must be a non-negative number", "actual_wait_time")

    return {
        "actual_pickup_time": _text(fields.get("actual_pickup_time")),
        "actual_dropoff_time": _text(fields.get("actual_dropoff_time")),
        "actual_wait_time": wait,
        "notes": _text(fields.get("notes")),
    }


def completion_form(
    email: str = Form(""),
    order_number: str = Form(""),
    start_time: str = Form(""),
    end_time: str = Form(""),
    result: str = Form(""),
    file_status: str = Form(""),
    notes: str = Form(""),
    follow_up_date: Optional[str] = Form(None),
    follow_up_time: Optional[str] = Form(None),
    follow_up_use_same_location: Optional[str] = Form(None),
    follow_up_street: Optional[str] = Form(None),
    follow_up_city: Optional[str] = Form(None),
    follow_up_state: Optional[str] = Form(None),
    follow_up_zip: Optional[str] = Form(None),
    follow_up_country: Optional[str] = Form(None),
    follow_up_available: Optional[str] = Form(None),
) -> dict:
    return dict(locals())


async def read_documents(documents: Optional[List[UploadFile]]) -> list:
    parts = []
    for doc in documents or []:
        if not doc or not doc.filename:
            continue
        parts.append(("documents", (doc.filename, await doc.read(), doc.content_type or "application/octet-stream")))
    return parts
