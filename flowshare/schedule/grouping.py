"""Place tasks and recurring occurrences into the date buckets of a view."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from flowshare.core.priorities import normalize_priority
from flowshare.schedule.completion import CompletionTracker, get_completion, is_recurring
from flowshare.schedule.dates import DateLike, date_key, parse_date_key, parse_due, to_date, view_window
from flowshare.schedule.fields import task_field, task_id
from flowshare.schedule.recurrence import expand_range

SORT_MODES = ("manual", "priority", "due")


class ManualOrder:
    """Explicit drag-and-drop order: one list of task ids per bucket key.

    This is separate from the persisted ``Task.sort`` column, which only orders
    tasks owned by a day bucket. A manual list may mix day tasks, recurring
    occurrences and week/month banners shown on the same key.
    """

    def __init__(self, orders: Optional[Mapping[str, Sequence[int]]] = None):
        self._orders: Dict[str, List[int]] = {}
        for key, ids in (orders or {}).items():
            self.set(key, ids)

    def get(self, key: str) -> List[int]:
        return list(self._orders.get(key, []))

    def set(self, key: str, ids: Iterable[int]) -> None:
        ordered: List[int] = []
        for tid in ids:
            value = int(tid)
            if value not in ordered:
                ordered.append(value)
        if ordered:
            self._orders[key] = ordered
        else:
            self._orders.pop(key, None)

    def clear(self, key: str) -> None:
        self._orders.pop(key, None)

    def position(self, key: str, tid: Any) -> Optional[int]:
        ids = self._orders.get(key)
        if not ids or tid is None:
            return None
        try:
            return ids.index(int(tid))
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, List[int]]:
        return {key: list(ids) for key, ids in self._orders.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._orders


@dataclass(frozen=True)
class GroupedView:
    view: str
    start: date
    end: date
    days: Dict[str, List[Any]] = field(default_factory=dict)

    def items_on(self, key: str) -> List[Any]:
        return list(self.days.get(key, []))


def _coerce_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return to_date(value)
    if isinstance(value, str):
        return parse_date_key(value)
    return None


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def placement_key(task: Any, view: str, start: date, end: date) -> Optional[str]:
    """Bucket key of a non-recurring task in the window, or ``None``."""
    anchor = _coerce_date(task_field(task, "bucket_date"))
    if anchor is None or not (start <= anchor < end):
        return None
    bucket_type = task_field(task, "bucket_type")
    if bucket_type == view or bucket_type == "day":
        return date_key(anchor)
    # week-scoped tasks show up as banners in the month view
    if view == "month" and bucket_type == "week":
        return date_key(anchor)
    return None


def _owned_by_day(task: Any, key: str) -> bool:
    if is_recurring(task) or task_field(task, "bucket_type") != "day":
        return False
    anchor = _coerce_date(task_field(task, "bucket_date"))
    return anchor is not None and date_key(anchor) == key


def _manual_rank(task: Any, key: str, manual_order: Optional[ManualOrder]) -> Tuple[int, int, int]:
    if manual_order is not None:
        position = manual_order.position(key, task_id(task))
        if position is not None:
            return (0, position, 0)
    sort = _as_int(task_field(task, "sort", 0)) if _owned_by_day(task, key) else 0
    return (1, 0, sort)


def _due_rank(task: Any) -> Tuple[int, datetime]:
    due = parse_due(task_field(task, "due_date"), task_field(task, "due_time"))
    if due is None:
        return (1, datetime.max)
    return (0, due)


def sort_key_for(
    key: str,
    sort_mode: str = "manual",
    completion: Optional[CompletionTracker] = None,
    manual_order: Optional[ManualOrder] = None,
) -> Callable[[Any], tuple]:
    """Build the ordering used inside one bucket."""
    if sort_mode not in SORT_MODES:
        raise ValueError(f"Unsupported sort mode: {sort_mode!r}")

    def _key(task: Any) -> tuple:
        if sort_mode == "manual":
            primary: tuple = _manual_rank(task, key, manual_order)
        elif sort_mode == "priority":
            primary = (-normalize_priority(task_field(task, "priority", 0)),)
        else:
            primary = _due_rank(task)
        done = 1 if get_completion(task, key, completion) else 0
        title = str(task_field(task, "title", ""))
        return (primary, done, title.casefold(), title, _as_int(task_id(task)))

    return _key


def group(
    tasks: Iterable[Any],
    view: str,
    anchor: DateLike,
    *,
    sort_mode: str = "manual",
    completion: Optional[CompletionTracker] = None,
    manual_order: Optional[ManualOrder] = None,
) -> Dict[str, List[Any]]:
    """Map each date-key of the view window to the ordered tasks shown there."""
    if sort_mode not in SORT_MODES:
        raise ValueError(f"Unsupported sort mode: {sort_mode!r}")
    start, end = view_window(view, anchor)

    buckets: Dict[str, List[Any]] = {}
    for task in tasks:
        if is_recurring(task):
            keys = expand_range(task, start, end)
        else:
            key = placement_key(task, view, start, end)
            keys = [key] if key else []
        for key in keys:
            buckets.setdefault(key, []).append(task)

    for key, items in buckets.items():
        items.sort(key=sort_key_for(key, sort_mode, completion, manual_order))
    return {key: buckets[key] for key in sorted(buckets)}


def group_view(
    tasks: Iterable[Any],
    view: str,
    anchor: DateLike,
    *,
    sort_mode: str = "manual",
    completion: Optional[CompletionTracker] = None,
    manual_order: Optional[ManualOrder] = None,
) -> GroupedView:
    start, end = view_window(view, anchor)
    days = group(
        tasks,
        view,
        anchor,
        sort_mode=sort_mode,
        completion=completion,
        manual_order=manual_order,
    )
    return GroupedView(view=view, start=start, end=end, days=days)


__all__ = [
    "GroupedView",
    "ManualOrder",
    "SORT_MODES",
    "group",
    "group_view",
    "placement_key",
    "sort_key_for",
]
