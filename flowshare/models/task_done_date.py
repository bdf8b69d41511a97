"""Sparse per-date completion marks for recurring tasks."""
from __future__ import annotations

from sqlmodel import Field, SQLModel


class TaskDoneDate(SQLModel, table=True):
    """One occurrence of a recurring task marked done on ``date``."""

    __tablename__ = "task_done_dates"

    task_id: int = Field(primary_key=True, foreign_key="tasks.id")
    date: str = Field(primary_key=True, description="Occurrence date-key YYYY-MM-DD")


__all__ = ["TaskDoneDate"]
