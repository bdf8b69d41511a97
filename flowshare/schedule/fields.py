"""Read task fields from ORM rows, plain objects or decoded JSON payloads."""
from __future__ import annotations

from typing import Any, Mapping


def task_field(task: Any, name: str, default: Any = None) -> Any:
    if isinstance(task, Mapping):
        value = task.get(name, default)
    else:
        value = getattr(task, name, default)
    return default if value is None else value


def task_id(task: Any) -> Any:
    return task_field(task, "id")


__all__ = ["task_field", "task_id"]
