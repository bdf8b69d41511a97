# flowshare/services/tasks.py
from __future__ import annotations

import json
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlmodel import Session, select
from sqlalchemy import func

from flowshare.core.priorities import normalize_priority
from flowshare.core.settings import SCHEDULE
from flowshare.models import Task, TaskDoneDate
from flowshare.schedule.completion import CompletionTracker, is_recurring
from flowshare.schedule.dates import (
    date_key,
    hhmm_to_minutes,
    minutes_to_hhmm,
    normalize_hhmm,
    parse_date_key,
)
from flowshare.schedule.recurrence import RECURRENCES, normalize_interval, parse_byweekday
from flowshare.storage.db import get_session
from flowshare.utils.datetime_utils import utc_now

STATUSES = ("todo", "in_progress", "done")
BUCKET_TYPES = ("day", "week", "month")
UPDATABLE = (
    "title",
    "description",
    "person_id",
    "status",
    "due_date",
    "due_time",
    "bucket_type",
    "bucket_date",
    "recurrence",
    "interval",
    "byweekday",
    "until",
    "sort",
    "color",
    "priority",
)


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_date(value: Any) -> Optional[str]:
    if isinstance(value, date):
        return date_key(value)
    return _clean_text(value)


def _clean_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _encode_byweekday(value: Any) -> Optional[str]:
    if value is None or value == "" or value == []:
        return None
    if isinstance(value, str):
        return value
    days = parse_byweekday(value)
    return json.dumps(days) if days else None


def normalize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce incoming task fields to their stored shapes."""
    unknown = set(fields) - set(UPDATABLE)
    if unknown:
        raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")

    clean: Dict[str, Any] = {}
    for key, value in fields.items():
        if key == "title":
            title = _clean_text(value)
            if not title:
                raise ValueError("Title required")
            clean[key] = title
        elif key == "due_time":
            clean[key] = normalize_hhmm(value)
        elif key in ("description", "color"):
            clean[key] = _clean_text(value)
        elif key in ("due_date", "bucket_date", "until"):
            clean[key] = _clean_date(value)
        elif key == "person_id":
            clean[key] = _clean_int(value)
        elif key == "status":
            clean[key] = value if value in STATUSES else "todo"
        elif key == "bucket_type":
            clean[key] = value if value in BUCKET_TYPES else None
        elif key == "recurrence":
            clean[key] = value if value in RECURRENCES else "none"
        elif key == "interval":
            clean[key] = normalize_interval(value)
        elif key == "byweekday":
            clean[key] = _encode_byweekday(value)
        elif key == "sort":
            clean[key] = _clean_int(value) or 0
        elif key == "priority":
            clean[key] = normalize_priority(value)
    return clean


def _require_key(value: Any) -> str:
    if isinstance(value, date):
        return date_key(value)
    parsed = parse_date_key(value)
    if parsed is None:
        raise ValueError(f"Invalid date key: {value!r}")
    return date_key(parsed)


def task_payload(task: Task) -> Dict[str, Any]:
    return task.model_dump(mode="json")


class TaskService:
    """CRUD over tasks and their done-marks; publishes realtime notifications."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = get_session,
        hub=None,
    ) -> None:
        self._session_factory = session_factory
        self.hub = hub

    def _publish(self, event: str, payload: Dict[str, Any]) -> None:
        if self.hub is not None:
            self.hub.publish(event, payload)

    # ---------- reads ----------
    def get(self, task_id: int) -> Optional[Task]:
        with self._session_factory() as s:
            return s.get(Task, task_id)

    def get_tasks_for_person(self, person_id: Optional[int] = None) -> List[Task]:
        with self._session_factory() as s:
            stmt = select(Task)
            if person_id is not None:
                stmt = stmt.where(Task.person_id == person_id)
            stmt = stmt.order_by(Task.created_at.desc(), Task.id.desc())
            return list(s.exec(stmt))

    def get_done_marks(self) -> List[Tuple[int, str]]:
        with self._session_factory() as s:
            rows = s.exec(select(TaskDoneDate).order_by(TaskDoneDate.task_id, TaskDoneDate.date))
            return [(row.task_id, row.date) for row in rows]

    def snapshot(self, person_id: Optional[int] = None) -> Tuple[List[Task], CompletionTracker]:
        """Tasks plus the done-mark overlay, as one consistent input for grouping."""
        tasks = self.get_tasks_for_person(person_id)
        return tasks, CompletionTracker(self.get_done_marks())

    def _next_sort(self, s: Session, bucket_type: Optional[str], bucket_date: Optional[str]) -> int:
        if bucket_type not in BUCKET_TYPES or not bucket_date:
            return 0
        stmt = select(func.max(Task.sort)).where(
            Task.bucket_type == bucket_type, Task.bucket_date == bucket_date
        )
        current = s.exec(stmt).one()
        return 0 if current is None else int(current) + 1

    # ---------- writes ----------
    def create(self, title: str, *, emit: bool = True, **fields: Any) -> Task:
        data = normalize_fields({"title": title, **fields})
        with self._session_factory() as s:
            if "sort" not in fields:
                data["sort"] = self._next_sort(s, data.get("bucket_type"), data.get("bucket_date"))
            task = Task(**data)
            s.add(task)
            s.commit()
            s.refresh(task)
        if emit:
            self._publish("task_created", {"task": task_payload(task)})
        return task

    def update(self, task_id: int, *, emit: bool = True, **fields: Any) -> Optional[Task]:
        if not fields:
            raise ValueError("No changes")
        data = normalize_fields(fields)
        with self._session_factory() as s:
            task = s.get(Task, task_id)
            if not task:
                return None
            for key, value in data.items():
                setattr(task, key, value)
            task.updated_at = utc_now()
            s.add(task)
            s.commit()
            s.refresh(task)
        if emit:
            self._publish("task_updated", {"task": task_payload(task)})
        return task

    def delete(self, task_id: int, *, emit: bool = True) -> bool:
        with self._session_factory() as s:
            task = s.get(Task, task_id)
            if not task:
                return False
            marks = s.exec(select(TaskDoneDate).where(TaskDoneDate.task_id == task_id))
            for mark in marks:
                s.delete(mark)
            s.delete(task)
            s.commit()
        if emit:
            self._publish("task_deleted", {"id": task_id})
        return True

    def set_task_sort(self, task_id: int, sort: int) -> Optional[Task]:
        return self.update(task_id, sort=sort)

    def set_done_mark(self, task_id: int, key: Any, done: bool = True) -> Optional[bool]:
        """Insert or remove the DoneMark; ``None`` when the task does not exist."""
        done_on = _require_key(key)
        with self._session_factory() as s:
            if s.get(Task, task_id) is None:
                return None
            row = s.get(TaskDoneDate, (task_id, done_on))
            if done and row is None:
                s.add(TaskDoneDate(task_id=task_id, date=done_on))
                s.commit()
            elif not done and row is not None:
                s.delete(row)
                s.commit()
        self._publish("task_updated", {"task_id": task_id, "done_on": done_on, "done": bool(done)})
        return bool(done)

    def toggle_done(self, task_id: int, key: Any = None) -> Optional[bool]:
        """Flip completion of one occurrence (recurring) or of the task itself."""
        task = self.get(task_id)
        if task is None:
            return None
        if is_recurring(task):
            if key is None:
                raise ValueError("Recurring tasks are completed per date")
            done_on = _require_key(key)
            with self._session_factory() as s:
                currently = s.get(TaskDoneDate, (task_id, done_on)) is not None
            return self.set_done_mark(task_id, done_on, not currently)
        new_status = "todo" if task.status == "done" else "done"
        self.update(task_id, status=new_status)
        return new_status == "done"

    def reorder_day(self, key: Any, ordered_ids: Sequence[int]) -> List[int]:
        """Renumber ``sort`` for the tasks owned by one day bucket.

        Ids of recurring occurrences or week/month banners in ``ordered_ids``
        keep their place in the sequence but are not written.
        """
        day = _require_key(key)
        changed: List[int] = []
        with self._session_factory() as s:
            index = 0
            for tid in ordered_ids:
                task = s.get(Task, tid)
                if task is None:
                    continue
                if task.recurrence != "none" or task.bucket_type != "day" or task.bucket_date != day:
                    continue
                if task.sort != index:
                    task.sort = index
                    task.updated_at = utc_now()
                    s.add(task)
                    changed.append(task.id)
                index += 1
            if changed:
                s.commit()
        for tid in changed:
            task = self.get(tid)
            if task is not None:
                self._publish("task_updated", {"task": task_payload(task)})
        return changed

    def move_to_day(self, task_ids: Iterable[int], key: Any) -> List[Task]:
        """Anchor tasks to a day bucket, appended after the tasks already there."""
        day = _require_key(key)
        ids = [int(tid) for tid in task_ids]
        moved: List[Task] = []
        with self._session_factory() as s:
            stmt = select(func.max(Task.sort)).where(
                Task.bucket_type == "day", Task.bucket_date == day, Task.id.not_in(ids)
            )
            current = s.exec(stmt).one()
            base = 0 if current is None else int(current) + 1
            for offset, tid in enumerate(ids):
                task = s.get(Task, tid)
                if task is None:
                    continue
                task.bucket_type = "day"
                task.bucket_date = day
                task.sort = base + offset
                task.updated_at = utc_now()
                s.add(task)
                moved.append(task)
            s.commit()
            for task in moved:
                s.refresh(task)
        for task in moved:
            self._publish("task_updated", {"task": task_payload(task)})
        return moved

    def shift_due_time(self, task_ids: Iterable[int], minutes: int) -> List[Task]:
        """Nudge ``due_time`` of day-bucket tasks by ``minutes``, staying inside the day."""
        shifted: List[Task] = []
        for tid in task_ids:
            task = self.get(tid)
            if task is None or task.bucket_type != "day":
                continue
            base = hhmm_to_minutes(task.due_time or SCHEDULE.nudge_base_time)
            updated = self.update(tid, due_time=minutes_to_hhmm(base + minutes))
            if updated is not None:
                shifted.append(updated)
        return shifted


__all__ = ["BUCKET_TYPES", "STATUSES", "TaskService", "normalize_fields", "task_payload"]
