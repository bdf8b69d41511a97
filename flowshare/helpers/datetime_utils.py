"""Shared utilities for parsing free-form date/time input."""
from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional

_AMPM_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)$")


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_date_input(value: str | None, *, base: Optional[date] = None) -> Optional[date]:
    """Parse ``YYYY-MM-DD``, ``DD.MM.YYYY`` or ``DD.MM`` into a ``date``.

    ``DD.MM`` takes its year from ``base`` (today when omitted).
    """

    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in ("%Y-%m-%d", "%d.%m.%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    parts = text.split(".")
    if len(parts) == 2 and all(p.isdigit() for p in parts):
        year = (base or date.today()).year
        try:
            return date(year, int(parts[1]), int(parts[0]))
        except ValueError:
            return None
    return None


def parse_time_input(value: str | None) -> Optional[time]:
    """Parse ``HH:MM``, ``HH.MM``, ``9am``/``5:30pm`` or short ``hhmm``."""

    if not value:
        return None
    text = value.strip().lower()
    if not text:
        return None

    match = _AMPM_RE.match(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        if not 1 <= hours <= 12 or minutes > 59:
            return None
        hours = hours % 12 + (12 if match.group(3) == "pm" else 0)
        return time(hours, minutes)

    for fmt in ("%H:%M", "%H.%M"):
        try:
            dt = datetime.strptime(text, fmt)
            return time(dt.hour, dt.minute)
        except ValueError:
            continue

    # short hhmm (e.g. 930 -> 09:30)
    if len(text) in {3, 4} and text.isdigit():
        hours = _parse_int(text[:-2])
        minutes = _parse_int(text[-2:])
        if hours is not None and minutes is not None and 0 <= hours <= 23 and 0 <= minutes <= 59:
            return time(hours, minutes)

    return None


__all__ = ["parse_date_input", "parse_time_input"]
