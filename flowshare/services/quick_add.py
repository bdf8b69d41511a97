"""Turn a one-line quick-add entry into task fields.

Example: ``"Standup every 2 weeks mon wed 9:30am #blue #p2 @sam #week"``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from flowshare.helpers.datetime_utils import parse_date_input, parse_time_input
from flowshare.schedule.dates import (
    DateLike,
    date_key,
    next_weekday,
    parse_date_key,
    to_date,
    view_window,
    weekday_index,
)

COLOR_MAP = {
    "red": "#ef4444",
    "orange": "#f97316",
    "yellow": "#eab308",
    "green": "#22c55e",
    "teal": "#06b6d4",
    "cyan": "#06b6d4",
    "blue": "#3b82f6",
    "indigo": "#6366f1",
    "violet": "#8b5cf6",
    "purple": "#8b5cf6",
    "pink": "#ec4899",
}

# 0=Sunday, matching the stored byweekday convention
_WEEKDAY_RE = re.compile(
    r"\b(?P<next>next\s+)?(?P<day>sun(?:day)?|mon(?:day)?|tue(?:s(?:day)?)?|wed(?:nesday)?"
    r"|thu(?:r(?:s(?:day)?)?)?|fri(?:day)?|sat(?:urday)?)\b"
)
_WEEKDAY_PREFIXES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")

_ISO_DATE_RE = re.compile(r"\b\d{4}-\d{2}-\d{2}\b")
_DOTTED_DATE_RE = re.compile(r"\b\d{1,2}\.\d{1,2}(?:\.\d{4})?\b")
_AMPM_TIME_RE = re.compile(r"\b\d{1,2}(?::\d{2})?\s*(?:am|pm)\b")
_CLOCK_TIME_RE = re.compile(r"\b\d{1,2}:\d{2}\b")

_RECURRENCE_RES = (
    ("daily", re.compile(r"\b(?:every|each)\s+day\b|\bdaily\b")),
    ("weekly", re.compile(r"\b(?:every|each)\s+week\b|\bweekly\b")),
    ("monthly", re.compile(r"\b(?:every|each)\s+month\b|\bmonthly\b")),
)
_INTERVAL_RE = re.compile(r"\bevery\s+(\d+)\s+(day|week|month)s?\b")
_UNIT_RECURRENCE = {"day": "daily", "week": "weekly", "month": "monthly"}

_COLOR_RE = re.compile(r"#(" + "|".join(COLOR_MAP) + r")\b")
_HIGH_RE = re.compile(r"#p?3\b|#high\b|!{2,}")
_MEDIUM_RE = re.compile(r"#p?2\b|#med(?:ium)?\b|!")
_LOW_RE = re.compile(r"#p?1\b|#low\b")
_ASSIGNEE_RE = re.compile(r"@([\w-]+)")
_SCOPE_RE = re.compile(r"#(day|week|month)\b")

_TAG_STRIP_RE = re.compile(r"(?:^|\s)(?:#[\w-]+|@[\w-]+|!+)(?=\s|$)")


@dataclass
class QuickAdd:
    title: str
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    recurrence: Optional[str] = None
    interval: Optional[int] = None
    byweekday: List[int] = field(default_factory=list)
    color: Optional[str] = None
    priority: Optional[int] = None
    assignee: Optional[str] = None
    scope: Optional[str] = None

    def task_fields(self, base: DateLike) -> Dict[str, Any]:
        """Keyword arguments for ``TaskService.create`` (title excluded).

        The bucket is the scope's window containing the due date, or ``base``.
        """
        scope = self.scope or "day"
        anchor = parse_date_key(self.due_date) or to_date(base)
        start, _ = view_window(scope, anchor)
        fields: Dict[str, Any] = {"bucket_type": scope, "bucket_date": date_key(start)}
        for name in ("due_date", "due_time", "recurrence", "interval", "color", "priority"):
            value = getattr(self, name)
            if value is not None:
                fields[name] = value
        if self.byweekday:
            fields["byweekday"] = list(self.byweekday)
        return fields


def _weekday_number(token: str) -> int:
    return _WEEKDAY_PREFIXES.index(token[:3])


def _find_date(lower: str, base: date) -> Optional[date]:
    match = _ISO_DATE_RE.search(lower) or _DOTTED_DATE_RE.search(lower)
    if match:
        parsed = parse_date_input(match.group(0), base=base)
        if parsed is not None:
            return parsed
    if re.search(r"\btoday\b", lower):
        return base
    if re.search(r"\btomorrow\b", lower):
        return base + timedelta(days=1)
    match = _WEEKDAY_RE.search(lower)
    if match:
        target = _weekday_number(match.group("day"))
        if not match.group("next") and weekday_index(base) == target:
            return base
        return next_weekday(base, target)
    return None


def _find_time(lower: str) -> Optional[str]:
    for pattern in (_AMPM_TIME_RE, _CLOCK_TIME_RE):
        match = pattern.search(lower)
        if match:
            parsed = parse_time_input(match.group(0).replace(" ", ""))
            if parsed is not None:
                return f"{parsed.hour:02d}:{parsed.minute:02d}"
    return None


def _clean_title(text: str) -> str:
    stripped = _TAG_STRIP_RE.sub(" ", f" {text} ")
    return " ".join(stripped.split())


def parse_quick_add(text: str, base: DateLike) -> QuickAdd:
    """Extract schedule details from ``text`` relative to ``base``.

    Tags (``#…``), mentions (``@…``) and ``!`` runs are removed from the title;
    the rest of the text is kept as written.
    """
    raw = (text or "").strip()
    result = QuickAdd(title=_clean_title(raw) or raw)
    if not raw:
        return result
    base_day = to_date(base)
    lower = raw.lower()

    due = _find_date(lower, base_day)
    result.due_time = _find_time(lower)
    if due is None and result.due_time is not None:
        due = base_day
    if due is not None:
        result.due_date = date_key(due)

    for name, pattern in _RECURRENCE_RES:
        if pattern.search(lower):
            result.recurrence = name
    interval = _INTERVAL_RE.search(lower)
    if interval:
        result.interval = max(1, int(interval.group(1)))
        result.recurrence = result.recurrence or _UNIT_RECURRENCE[interval.group(2)]

    if result.recurrence == "weekly":
        selected = sorted({_weekday_number(m.group("day")) for m in _WEEKDAY_RE.finditer(lower)})
        if selected:
            result.byweekday = selected
        elif due is not None:
            result.byweekday = [weekday_index(due)]

    color = _COLOR_RE.search(lower)
    if color:
        result.color = COLOR_MAP[color.group(1)]

    if _HIGH_RE.search(lower):
        result.priority = 3
    elif _MEDIUM_RE.search(lower):
        result.priority = 2
    elif _LOW_RE.search(lower):
        result.priority = 1

    assignee = _ASSIGNEE_RE.search(raw)
    if assignee:
        result.assignee = assignee.group(1)

    scope = _SCOPE_RE.search(lower)
    if scope:
        result.scope = scope.group(1)
    return result


__all__ = ["COLOR_MAP", "QuickAdd", "parse_quick_add"]
