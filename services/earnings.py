# User value: This file shows interpreters what a job pays, preferring real payments over estimates.
import logging
import math
import os
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from schemas.job_contract import JOB_STATUS_INTERPRETER_PAID

logger = logging.getLogger("portal.earnings")

FEDERAL_MILEAGE_CAP = float(os.getenv("FEDERAL_MILEAGE_CAP", "0.72"))
DEFAULT_MILEAGE_RATE = float(os.getenv("DEFAULT_MILEAGE_RATE", "0.70"))
DEFAULT_INCREMENT_MINUTES = 15
LEGAL_INCREMENT_MINUTES = 180

SOURCE_INTERPRETER_PAID = "interpreter_paid"
SOURCE_PAID_AMOUNT = "paid_amount"
SOURCE_BACKEND = "backend"
SOURCE_COMPUTED = "computed"
SOURCE_RATE_NOT_SET = "rate_not_set"

BACKEND_AMOUNT_FIELDS = (
    "earnings",
    "total_amount",
    "calculated_earnings",
    "estimated_earnings",
    "calculated_total_payment",
)


def _num(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(out):
        return None
    return out


def _money(value: float) -> float:
    try:
        return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0.0


def format_currency(amount: Any) -> str:
    value = _num(amount) or 0.0
    text = f"${abs(_money(value)):,.2f}"
    return f"-{text}" if value < 0 else text


def round_up_minutes(minutes: Any, increment: Any = DEFAULT_INCREMENT_MINUTES) -> int:
    total = _num(minutes) or 0.0
    step = _num(increment) or DEFAULT_INCREMENT_MINUTES
    if total <= 0:
        return 0
    if step <= 0:
        step = DEFAULT_INCREMENT_MINUTES
    return int(math.ceil(total / step) * step)


# User value: keeps mileage reimbursement within the federal cap even when a bad rate is entered.
def effective_mileage_rate(entered: Any = None, cap: float = FEDERAL_MILEAGE_CAP, default: float = DEFAULT_MILEAGE_RATE) -> float:
    rate = _num(entered)
    if not rate:
        rate = default
    return min(cap, max(0.0, rate))


def resolve_hours(job: dict) -> float:
    calculated = _num(job.get("calculated_hours"))
    if calculated is not None:
        return calculated
    for field in ("actual_duration_minutes", "estimated_duration_minutes"):
        minutes = _num(job.get(field))
        if minutes is not None:
            return minutes / 60.0
    duration = _num(job.get("duration_hours"))
    if duration is not None:
        return duration
    return 0.0


def is_legal_appointment(job: dict) -> bool:
    if str(job.get("interpreter_type_code") or "").lower() == "court_certified":
        return True
    name = str(job.get("service_type_name") or "").lower()
    return "legal" in name and "non-legal" not in name and "medical" not in name


def billing_increment(job: dict) -> int:
    explicit = _num(job.get("interpreter_interval_minutes"))
    if explicit and explicit > 0:
        return int(explicit)
    return LEGAL_INCREMENT_MINUTES if is_legal_appointment(job) else DEFAULT_INCREMENT_MINUTES


def _reserved_minutes(job: dict) -> float:
    minutes = _num(job.get("reserved_minutes"))
    if minutes is not None:
        return max(0.0, minutes)
    hours = _num(job.get("reserved_hours"))
    if hours is not None:
        return max(0.0, hours * 60.0)
    return 0.0


def _has_completion_report(job: dict) -> bool:
    submitted = job.get("completion_report_submitted")
    if isinstance(submitted, str):
        return submitted.strip().lower() in {"1", "true", "yes"}
    return bool(submitted)


def billable_minutes(job: dict) -> float:
    reserved = _reserved_minutes(job)
    if _has_completion_report(job):
        worked = _num(job.get("actual_duration_minutes")) or 0.0
    else:
        worked = _num(job.get("estimated_duration_minutes")) or 0.0
    return max(reserved, worked)


# User value: uses the interpreter's own profile rate for the service when the job has no agreed rate.
def resolve_hourly_rate(job: dict, service_rates: Optional[Iterable[dict]] = None) -> Optional[float]:
    agreed = _num(job.get("agreed_rate"))
    if agreed and agreed > 0:
        return agreed

    service_type_id = job.get("service_type_id")
    if service_type_id is not None:
        for rate in service_rates or []:
            if not isinstance(rate, dict) or str(rate.get("service_type_id")) != str(service_type_id):
                continue
            amount = _num(rate.get("rate_amount"))
            if not amount or amount <= 0:
                continue
            if str(rate.get("rate_unit") or "").lower() == "minutes":
                return amount * 60.0
            return amount

    hourly = _num(job.get("hourly_rate"))
    if hourly and hourly > 0:
        return hourly
    return None


def _estimate(amount, hours, source, *, actual=False, minutes=None, rate=None, mileage=None, note=None) -> dict:
    return {
        "amount": _money(amount),
        "display_amount": format_currency(amount),
        "hours": round(hours, 2),
        "source": source,
        "is_actual_payment": actual,
        "billable_minutes": minutes,
        "rate": rate,
        "mileage": mileage,
        "note": note,
    }


# User value: shows one trustworthy figure per job, walking from real payments down to a local estimate.
def estimate_earnings(job: dict, *, service_rates: Optional[Iterable[dict]] = None) -> dict:
    """Return the best available earnings figure for a job.

    Sources are tried in order: the recorded interpreter payment, any
    positive paid amount, backend-computed totals, and finally a local
    computation from billable minutes and the resolved hourly rate.
    """
    job = job or {}
    hours = resolve_hours(job)
    status = str(job.get("status") or "").lower()
    paid = _num(job.get("interpreter_paid_amount"))

    if status == JOB_STATUS_INTERPRETER_PAID and paid is not None:
        return _estimate(paid, hours, SOURCE_INTERPRETER_PAID, actual=True)
    if paid is not None and paid > 0:
        return _estimate(paid, hours, SOURCE_PAID_AMOUNT, actual=True)

    for field in BACKEND_AMOUNT_FIELDS:
        amount = _num(job.get(field))
        if amount is not None and amount > 0:
            return _estimate(amount, hours, SOURCE_BACKEND)

    minutes = billable_minutes(job)
    rate = resolve_hourly_rate(job, service_rates)
    if not rate or minutes <= 0:
        logger.debug("earnings_rate_not_set job_id=%s minutes=%s rate=%s", job.get("id"), minutes, rate)
        return _estimate(0, hours, SOURCE_RATE_NOT_SET, note="Rate not set")

    rounded = round_up_minutes(minutes, billing_increment(job))
    amount = rounded / 60.0 * rate
    mileage = _num(job.get("mileage_reimbursement"))
    if mileage and mileage > 0:
        amount += mileage
    return _estimate(
        amount,
        hours,
        SOURCE_COMPUTED,
        minutes=rounded,
        rate=rate,
        mileage=mileage if mileage and mileage > 0 else None,
    )


def summarize_breakdown(items: Iterable[dict]) -> list[dict]:
    out = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        paid = _num(item.get("interpreter_paid_amount"))
        is_paid = str(item.get("status") or "").lower() == JOB_STATUS_INTERPRETER_PAID and bool(paid)
        amount = paid if is_paid else (_num(item.get("earnings")) or 0.0)
        row = dict(item)
        row["display_amount"] = _money(amount)
        row["display_amount_text"] = format_currency(amount)
        row["is_actual_payment"] = is_paid
        out.append(row)
    return out


def summarize_totals(summary: Any, breakdown: list[dict]) -> dict:
    summary = summary if isinstance(summary, dict) else {}
    total = _num(summary.get("total_earnings"))
    if total is None:
        total = sum(row.get("display_amount", 0.0) for row in breakdown)
    completed = int(_num(summary.get("completed_jobs")) or len(breakdown))
    average = _num(summary.get("average_per_job"))
    if average is None:
        average = total / completed if completed else 0.0
    return {
        "total_earnings": _money(total),
        "total_earnings_text": format_currency(total),
        "completed_jobs": completed,
        "total_hours": round(_num(summary.get("total_hours")) or 0.0, 1),
        "average_per_job": _money(average),
        "average_per_job_text": format_currency(average),
    }
