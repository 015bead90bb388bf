"""Civil-time helpers pinned to the building's timezone.

Availability windows travel as absolute instants but are always read, entered
and compared as wall-clock date/time pairs in one fixed zone, whatever the
timezone of the machine running the client.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, time, tzinfo
from zoneinfo import ZoneInfo

from .const import TIMEZONE_LABEL, TIMEZONE_NAME
from .exceptions import ValidationError
from .models import CivilParts

CIVIL_TZ = ZoneInfo(TIMEZONE_NAME)

_DATE_FORMAT = "%Y-%m-%d"
_TIME_FORMAT = "%H:%M"

Instant = datetime | str | None


def parse_instant(value: datetime | str, *, tz: tzinfo = CIVIL_TZ) -> datetime:
    """Parse an ISO 8601 value into an aware datetime.

    Naive values are taken to be civil time in ``tz``.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Timestamp must be a non-empty string.")
        raw = value.strip()
        if raw.endswith("Z"):
            raw = f"{raw[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValidationError("Timestamp is not a valid ISO 8601 value.") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def format_instant(value: datetime, *, tz: tzinfo = CIVIL_TZ) -> str:
    """Format an instant for the wire: ISO 8601 with the civil offset."""
    if value.tzinfo is None:
        raise ValidationError("Timestamp must include timezone information.")
    return value.astimezone(tz).replace(microsecond=0).isoformat()


def _as_instant(value: Instant, tz: tzinfo) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, datetime | str):
        return None
    try:
        return parse_instant(value, tz=tz)
    except ValidationError:
        return None


def _resolve_now(now: datetime | None, tz: tzinfo) -> datetime:
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    return now.astimezone(tz)


def _parse_date(value: str) -> datetime | None:
    try:
        return datetime.strptime(value, _DATE_FORMAT)
    except (TypeError, ValueError):
        return None


def _minutes_since_midnight(value: str) -> int | None:
    try:
        parsed = datetime.strptime(value, _TIME_FORMAT)
    except (TypeError, ValueError):
        return None
    return parsed.hour * 60 + parsed.minute


def to_civil_parts(instant: Instant, *, tz: tzinfo = CIVIL_TZ) -> CivilParts:
    parsed = _as_instant(instant, tz)
    if parsed is None:
        return CivilParts(date="", time="")
    local = parsed.astimezone(tz)
    return CivilParts(date=local.strftime(_DATE_FORMAT), time=local.strftime(_TIME_FORMAT))


def combine(date: str, time_of_day: str, *, tz: tzinfo = CIVIL_TZ) -> datetime | None:
    """Compose a civil date and time into an instant, or ``None`` if incomplete."""
    if not date or not time_of_day:
        return None
    day = _parse_date(date)
    if day is None:
        return None
    try:
        clock = datetime.strptime(time_of_day, _TIME_FORMAT).time()
    except (TypeError, ValueError):
        return None
    return datetime.combine(day.date(), clock, tzinfo=tz)


def now_parts(*, now: datetime | None = None, tz: tzinfo = CIVIL_TZ) -> CivilParts:
    return to_civil_parts(_resolve_now(now, tz), tz=tz)


def hours_between(start: Instant, end: Instant, *, tz: tzinfo = CIVIL_TZ) -> float:
    start_dt = _as_instant(start, tz)
    end_dt = _as_instant(end, tz)
    if start_dt is None or end_dt is None:
        return 0.0
    return (end_dt.astimezone(UTC) - start_dt.astimezone(UTC)).total_seconds() / 3600


def days_between(start: Instant, end: Instant, *, tz: tzinfo = CIVIL_TZ) -> int:
    """Billable days: any started day counts as a full one."""
    hours = hours_between(start, end, tz=tz)
    if hours <= 0:
        return 0
    return math.ceil(hours / 24)


def is_in_past(
    date: str,
    time_of_day: str,
    *,
    now: datetime | None = None,
    tz: tzinfo = CIVIL_TZ,
) -> bool:
    day = _parse_date(date)
    if day is None:
        return False
    minutes = _minutes_since_midnight(time_of_day)
    if minutes is None:
        return False
    current = _resolve_now(now, tz)
    if day.date() != current.date():
        return day.date() < current.date()
    return minutes < current.hour * 60 + current.minute


def is_within_range(date: str, start: Instant, end: Instant, *, tz: tzinfo = CIVIL_TZ) -> bool:
    """Whether a civil day overlaps the window, compared on whole days."""
    probe = combine(date, "12:00", tz=tz)
    start_dt = _as_instant(start, tz)
    end_dt = _as_instant(end, tz)
    if probe is None or start_dt is None or end_dt is None:
        return False
    start_of_day = datetime.combine(start_dt.astimezone(tz).date(), time.min, tzinfo=tz)
    end_of_day = datetime.combine(end_dt.astimezone(tz).date(), time.max, tzinfo=tz)
    return start_of_day <= probe <= end_of_day


def format_date(value: Instant, *, tz: tzinfo = CIVIL_TZ) -> str:
    parsed = _as_instant(value, tz)
    if parsed is None:
        return ""
    local = parsed.astimezone(tz)
    return f"{local:%b} {local.day}, {local.year}"


def format_time(value: Instant, *, tz: tzinfo = CIVIL_TZ) -> str:
    parsed = _as_instant(value, tz)
    if parsed is None:
        return ""
    local = parsed.astimezone(tz)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local:%M} {suffix}"


def format_display(value: Instant, *, tz: tzinfo = CIVIL_TZ) -> str:
    if _as_instant(value, tz) is None:
        return ""
    return f"{format_date(value, tz=tz)} @ {format_time(value, tz=tz)} {TIMEZONE_LABEL}"


def today_string(*, now: datetime | None = None, tz: tzinfo = CIVIL_TZ) -> str:
    return now_parts(now=now, tz=tz).date


def min_time_for_date(date: str, *, now: datetime | None = None, tz: tzinfo = CIVIL_TZ) -> str:
    """Earliest selectable start time on ``date``."""
    current = now_parts(now=now, tz=tz)
    if date == current.date:
        return current.time
    return "00:00"
