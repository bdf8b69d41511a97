"""Calendar helpers working on naive local dates.

Every date-key in the application comes from :func:`date_key`, which reads the
year/month/day components directly. Nothing here converts through UTC or an
epoch timestamp: a ``datetime`` carrying a tzinfo keeps its own wall-clock date.
"""
from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union

DateLike = Union[date, datetime, str]

VIEWS = ("day", "week", "month")

_DATE_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_HHMM_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_DUE_TIME_RE = re.compile(r"^\d{2}:\d{2}$")

# 23:55 is the latest slot reachable with 5/15 minute nudges
_LAST_MINUTE_OF_DAY = 1435


def to_date(value: DateLike) -> date:
    """Drop the time part of ``value`` without any timezone conversion.

    Strings must be ``YYYY-MM-DD`` date-keys; anything else raises ``ValueError``.
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return value
    parsed = parse_date_key(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed


def date_key(value: DateLike) -> str:
    d = to_date(value)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_key(value: Optional[str]) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string; return ``None`` for anything else."""
    if not value or not isinstance(value, str):
        return None
    match = _DATE_KEY_RE.match(value.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def weekday_index(value: DateLike) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (to_date(value).weekday() + 1) % 7


def monday_offset(weekday: int) -> int:
    """Days after Monday for a Sunday-based weekday index."""
    return (weekday + 6) % 7


def add_days(value: DateLike, n: int) -> date:
    return to_date(value) + timedelta(days=n)


def start_of_week(value: DateLike) -> date:
    d = to_date(value)
    return d - timedelta(days=monday_offset(weekday_index(d)))


def start_of_month(value: DateLike) -> date:
    return to_date(value).replace(day=1)


def start_of_next_month(value: DateLike) -> date:
    d = to_date(value)
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def add_months(value: DateLike, n: int, day: Optional[int] = None) -> date:
    """Move ``n`` months, putting the result on ``day`` (default: same day).

    Days past the end of the target month are clamped to its last day, so
    ``add_months(date(2024, 1, 31), 1)`` is 2024-02-29.
    """
    d = to_date(value)
    months = d.year * 12 + (d.month - 1) + n
    year, month = divmod(months, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day or d.day, last))


def months_between(start: DateLike, end: DateLike) -> int:
    a, b = to_date(start), to_date(end)
    return (b.year - a.year) * 12 + (b.month - a.month)


def view_window(view: str, anchor: DateLike) -> Tuple[date, date]:
    """Return the ``[start, end)`` window a view shows around ``anchor``."""
    if view == "day":
        start = to_date(anchor)
        return start, add_days(start, 1)
    if view == "week":
        start = start_of_week(anchor)
        return start, add_days(start, 7)
    if view == "month":
        start = start_of_month(anchor)
        return start, start_of_next_month(start)
    raise ValueError(f"Unsupported view: {view!r}")


def shift_anchor(view: str, anchor: DateLike, delta: int) -> date:
    """Step the anchor by ``delta`` views (previous/next navigation)."""
    if view == "day":
        return add_days(anchor, delta)
    if view == "week":
        return add_days(anchor, delta * 7)
    if view == "month":
        return add_months(anchor, delta)
    raise ValueError(f"Unsupported view: {view!r}")


def next_weekday(value: DateLike, weekday: int) -> date:
    """The next date strictly after ``value`` falling on ``weekday`` (0=Sunday)."""
    d = to_date(value)
    diff = (weekday + 7 - weekday_index(d)) % 7 or 7
    return add_days(d, diff)


def hhmm_to_minutes(value: Optional[str]) -> int:
    match = _HHMM_RE.match((value or "").strip())
    if not match:
        return 0
    return int(match.group(1)) * 60 + int(match.group(2))


def normalize_hhmm(value: Optional[str]) -> Optional[str]:
    """Zero-pad an ``H:MM``/``HH:MM`` time; ``None`` for blanks, ``ValueError`` otherwise."""
    text = (value or "").strip()
    if not text:
        return None
    match = _HHMM_RE.match(text)
    if not match:
        raise ValueError(f"Invalid time: {value!r}")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def minutes_to_hhmm(minutes: float) -> str:
    m = max(0, min(_LAST_MINUTE_OF_DAY, int(round(minutes))))
    return f"{m // 60:02d}:{m % 60:02d}"


def parse_due(
    due_date: Optional[str],
    due_time: Optional[str] = None,
    *,
    default_time: str = "23:59",
) -> Optional[datetime]:
    """Combine the stored due fields into a naive local datetime."""
    d = parse_date_key(due_date)
    if d is None:
        return None
    raw_time = due_time if due_time and _DUE_TIME_RE.match(due_time) else default_time
    hours, minutes = (int(part) for part in raw_time.split(":"))
    if hours > 23 or minutes > 59:
        return None
    return datetime.combine(d, time(hours, minutes))


__all__ = [
    "VIEWS",
    "add_days",
    "add_months",
    "date_key",
    "hhmm_to_minutes",
    "minutes_to_hhmm",
    "monday_offset",
    "months_between",
    "next_weekday",
    "normalize_hhmm",
    "parse_date_key",
    "parse_due",
    "shift_anchor",
    "start_of_month",
    "start_of_next_month",
    "start_of_week",
    "to_date",
    "view_window",
    "weekday_index",
]
