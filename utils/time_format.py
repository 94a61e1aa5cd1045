# User value: This file turns raw timestamps into countdowns and timers interpreters can read at a glance.
import logging
import math
import re
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger("portal.time_format")

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")


def resolve_timezone(name: str | None):
    try:
        return ZoneInfo(str(name or "UTC").strip() or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("portal_timezone_invalid name=%s fallback=UTC", name)
        return timezone.utc


# Half-up rounding; Python's round() is banker's rounding.
def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# User value: reads dates as calendar days so a job never shifts to the previous day.
def parse_local_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip().split("T")[0]
    m = _DATE_RE.match(text)
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def parse_time_of_day(value) -> time | None:
    if value is None:
        return None
    if isinstance(value, time):
        return value
    m = _TIME_RE.match(str(value).strip())
    if not m:
        return None
    try:
        return time(int(m.group(1)), int(m.group(2)), int(m.group(3) or 0))
    except ValueError:
        return None


# User value: reads server timestamps strictly so countdowns are never built on guessed times.
def parse_timestamp(value, tz=None) -> datetime | None:
    """Parse an ISO-8601 string or epoch number into an aware datetime.

    Naive ISO values are read in ``tz`` (UTC when omitted). Epoch numbers
    above 1e11 are treated as milliseconds. Anything else returns None.
    """
    if value is None or isinstance(value, bool):
        return None
    zone = tz or timezone.utc
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=zone)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        seconds = value / 1000.0 if abs(value) > 1e11 else float(value)
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    try:
        return value.astimezone(timezone.utc).isoformat()
    except OverflowError:
        # Dates at the edge of the calendar keep their own offset.
        return value.isoformat()


def combine_local(day: date, at: time, tz) -> datetime:
    return datetime.combine(day, at).replace(tzinfo=tz)


# User value: keeps the live timer readable as M:SS or H:MM:SS.
def format_elapsed(seconds) -> str:
    total = int(max(0, math.floor(float(seconds or 0))))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


# User value: never shows a negative timer when the server clock and portal clock disagree.
def elapsed_seconds(started_at: datetime | None, now: datetime, ended_at: datetime | None = None) -> int:
    if started_at is None:
        return 0
    end = ended_at or now
    delta = (end - started_at).total_seconds()
    return int(max(0, math.floor(delta)))


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


# User value: tells interpreters how soon a job starts in plain words.
def format_countdown(minutes_until) -> str | None:
    if minutes_until is None:
        return None
    minutes = float(minutes_until)
    if minutes < 0:
        return None
    hours = minutes / 60.0
    if hours < 1:
        return "in " + _plural(round_half_up(minutes), "minute")
    if hours < 24:
        return "in " + _plural(round_half_up(hours), "hour")
    return "in " + _plural(int(math.floor(hours / 24)), "day")


# User value: shows how long ago a job finished so report deadlines are obvious.
def format_time_since(hours_since) -> str:
    if hours_since is None:
        return ""
    hours = max(0.0, float(hours_since))
    if hours < 24:
        return _plural(round_half_up(hours), "hour") + " ago"
    return _plural(int(math.floor(hours / 24)), "day") + " ago"


def format_clock_time(value) -> str:
    parsed = parse_time_of_day(value)
    if parsed is None:
        return "N/A"
    period = "PM" if parsed.hour >= 12 else "AM"
    display_hour = 12 if parsed.hour % 12 == 0 else parsed.hour % 12
    return f"{display_hour}:{parsed.minute:02d} {period}"
