"""Per-occurrence completion for recurring tasks.

A recurring task is a template: its ``status`` column says nothing about any
single occurrence. Done-ness of an occurrence lives in a sparse set of
``(task_id, date_key)`` marks. Non-recurring tasks keep using ``status``.
:func:`get_completion` is the one place that chooses between the two sources.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from flowshare.schedule.dates import date_key, parse_date_key
from flowshare.schedule.fields import task_field, task_id

DoneMark = Tuple[int, str]


def _normalize_key(value: Union[str, date]) -> str:
    if isinstance(value, date):
        return date_key(value)
    parsed = parse_date_key(value)
    if parsed is None:
        raise ValueError(f"Invalid date key: {value!r}")
    return date_key(parsed)


class CompletionTracker:
    """In-memory snapshot of DoneMarks handed to the scheduling code by callers."""

    def __init__(self, marks: Iterable[DoneMark] = ()):
        self._marks: Set[DoneMark] = set()
        for tid, key in marks:
            self._marks.add((int(tid), _normalize_key(key)))

    @classmethod
    def from_rows(cls, rows: Iterable[Any]) -> "CompletionTracker":
        """Build from storage rows exposing ``task_id`` and ``date``."""
        pairs = []
        for row in rows:
            if isinstance(row, Mapping):
                pairs.append((row["task_id"], row["date"]))
            else:
                pairs.append((row.task_id, row.date))
        return cls(pairs)

    def is_done(self, task_id: int, key: Union[str, date]) -> bool:
        try:
            return (int(task_id), _normalize_key(key)) in self._marks
        except (TypeError, ValueError):
            return False

    def set_done(self, task_id: int, key: Union[str, date], done: bool) -> bool:
        """Add or remove a mark. Returns ``True`` when the set changed."""
        mark = (int(task_id), _normalize_key(key))
        if done:
            if mark in self._marks:
                return False
            self._marks.add(mark)
            return True
        if mark not in self._marks:
            return False
        self._marks.discard(mark)
        return True

    def forget_task(self, task_id: int) -> int:
        doomed = {mark for mark in self._marks if mark[0] == int(task_id)}
        self._marks -= doomed
        return len(doomed)

    def marks(self) -> List[DoneMark]:
        return sorted(self._marks)

    def done_by_date(self) -> Dict[str, Set[int]]:
        result: Dict[str, Set[int]] = {}
        for tid, key in self._marks:
            result.setdefault(key, set()).add(tid)
        return result

    def __len__(self) -> int:
        return len(self._marks)

    def __contains__(self, mark: object) -> bool:
        return mark in self._marks


def is_recurring(task: Any) -> bool:
    return task_field(task, "recurrence", "none") != "none"


def get_completion(
    task: Any,
    key: Union[str, date],
    tracker: Optional[CompletionTracker] = None,
) -> bool:
    """Whether ``task`` counts as done on ``key``."""
    if is_recurring(task):
        if tracker is None:
            return False
        return tracker.is_done(task_id(task), key)
    return task_field(task, "status", "todo") == "done"


@dataclass(frozen=True)
class Progress:
    done: int = 0
    total: int = 0

    @property
    def ratio(self) -> float:
        return self.done / self.total if self.total else 0.0


def progress(
    grouped: Mapping[str, Iterable[Any]],
    tracker: Optional[CompletionTracker] = None,
) -> Progress:
    """Count done occurrences over a grouped view."""
    done = total = 0
    for key, items in grouped.items():
        for task in items:
            total += 1
            if get_completion(task, key, tracker):
                done += 1
    return Progress(done=done, total=total)


def progress_by_person(
    grouped: Mapping[str, Iterable[Any]],
    tracker: Optional[CompletionTracker] = None,
) -> Dict[int, Progress]:
    counts: Dict[int, List[int]] = {}
    for key, items in grouped.items():
        for task in items:
            person = task_field(task, "person_id")
            if person is None:
                continue
            bucket = counts.setdefault(person, [0, 0])
            bucket[1] += 1
            if get_completion(task, key, tracker):
                bucket[0] += 1
    return {person: Progress(done=d, total=t) for person, (d, t) in counts.items()}


__all__ = [
    "CompletionTracker",
    "DoneMark",
    "Progress",
    "get_completion",
    "is_recurring",
    "progress",
    "progress_by_person",
]
