"""Expand a task's recurrence rule into the date-keys it occupies in a window.

A recurring task is stored once; its occurrences are computed on demand and
never persisted. Every function here is pure: the same task and window always
produce the same sorted list, and bad task data yields an empty list instead of
an exception so one broken row cannot blank a whole calendar view.
"""
from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from flowshare.schedule.dates import (
    DateLike,
    add_months,
    date_key,
    monday_offset,
    months_between,
    parse_date_key,
    start_of_week,
    to_date,
    view_window,
    weekday_index,
)
from flowshare.schedule.fields import task_field, task_id

logger = logging.getLogger(__name__)

RECURRENCES = ("none", "daily", "weekly", "monthly")


def normalize_interval(value: Any) -> int:
    """Return ``value`` as an interval of at least 1."""
    if isinstance(value, bool):
        return 1
    try:
        interval = int(value)
    except (TypeError, ValueError):
        return 1
    return max(1, interval)


def parse_byweekday(raw: Any) -> Optional[List[int]]:
    """Decode the stored weekday set (JSON array of 0=Sunday..6=Saturday).

    ``None`` means the value is malformed; an empty list means "not set".
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        try:
            data = json.loads(text)
        except ValueError:
            return None
    else:
        data = raw
    if data is None:
        return []
    if not isinstance(data, (list, tuple, set, frozenset)):
        return None

    days = set()
    for item in data:
        if isinstance(item, bool):
            continue
        try:
            value = int(item)
        except (TypeError, ValueError):
            continue
        if 0 <= value <= 6:
            days.add(value)
    return sorted(days)


def _coerce_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return to_date(value)
    if isinstance(value, str):
        return parse_date_key(value)
    return None


def _series_bounds(task: Any, start: date) -> Optional[Tuple[date, Optional[date]]]:
    """Return ``(anchor, until)`` or ``None`` when a stored date is unreadable."""
    raw_anchor = task_field(task, "bucket_date")
    if raw_anchor in (None, ""):
        anchor = start
    else:
        anchor = _coerce_date(raw_anchor)
        if anchor is None:
            logger.debug("Task %s has an unreadable bucket_date %r", task_id(task), raw_anchor)
            return None

    raw_until = task_field(task, "until")
    until: Optional[date] = None
    if raw_until not in (None, ""):
        until = _coerce_date(raw_until)
        if until is None:
            logger.debug("Task %s has an unreadable until %r", task_id(task), raw_until)
            return None
    return anchor, until


def _expand_daily(
    task: Any, start: date, end: date, anchor: date, until: Optional[date], interval: int
) -> List[str]:
    current = anchor
    if current < start:
        gap = (start - current).days
        steps = -(-gap // interval)
        current = current + timedelta(days=steps * interval)

    dates: List[str] = []
    step = timedelta(days=interval)
    while current < end and (until is None or current <= until):
        dates.append(date_key(current))
        current += step
    return dates


def _expand_weekly(
    task: Any, start: date, end: date, anchor: date, until: Optional[date], interval: int
) -> List[str]:
    days = parse_byweekday(task_field(task, "byweekday"))
    if days is None:
        logger.debug("Task %s has a malformed byweekday; no weekly occurrences", task_id(task))
        return []
    if not days:
        days = [weekday_index(anchor)]

    # Weeks are walked from the window's own Monday.
    week = start_of_week(start)
    found = set()
    step = timedelta(weeks=interval)
    while week < end:
        for weekday in days:
            current = week + timedelta(days=monday_offset(weekday))
            if current < start or current >= end:
                continue
            if until is not None and current > until:
                continue
            found.add(date_key(current))
        week += step
    return sorted(found)


def _expand_monthly(
    task: Any, start: date, end: date, anchor: date, until: Optional[date], interval: int
) -> List[str]:
    day = anchor.day
    gap = months_between(anchor, start)
    offset = 0 if gap <= 0 else (gap // interval) * interval

    dates: List[str] = []
    while True:
        current = add_months(anchor, offset, day)
        if current >= end or (until is not None and current > until):
            break
        if current >= start:
            dates.append(date_key(current))
        offset += interval
    return dates


_Expander = Callable[[Any, date, date, date, Optional[date], int], List[str]]

_EXPANDERS: Dict[str, _Expander] = {
    "daily": _expand_daily,
    "weekly": _expand_weekly,
    "monthly": _expand_monthly,
}


def expand_range(task: Any, start: DateLike, end: DateLike) -> List[str]:
    """Date-keys of ``task`` occurrences inside ``[start, end)``."""
    window_start, window_end = to_date(start), to_date(end)
    if window_end <= window_start:
        return []

    recurrence = task_field(task, "recurrence", "none")
    expander = _EXPANDERS.get(recurrence)
    if expander is None:
        if recurrence != "none":
            logger.debug("Task %s has unknown recurrence %r", task_id(task), recurrence)
        return []

    bounds = _series_bounds(task, window_start)
    if bounds is None:
        return []
    anchor, until = bounds
    interval = normalize_interval(task_field(task, "interval", 1))
    return expander(task, window_start, window_end, anchor, until, interval)


def expand(task: Any, view: str, anchor: DateLike) -> List[str]:
    """Date-keys of ``task`` occurrences in the window of ``view`` around ``anchor``."""
    start, end = view_window(view, anchor)
    return expand_range(task, start, end)


def occurs_on(task: Any, day: DateLike) -> bool:
    d = to_date(day)
    return date_key(d) in expand_range(task, d, d + timedelta(days=1))


__all__ = [
    "RECURRENCES",
    "expand",
    "expand_range",
    "normalize_interval",
    "occurs_on",
    "parse_byweekday",
]
