# flowshare/models/task.py
from typing import Optional
from datetime import datetime

from sqlmodel import SQLModel, Field

from flowshare.utils.datetime_utils import utc_now


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    person_id: Optional[int] = Field(default=None, foreign_key="people.id", index=True)
    status: str = "todo"              # todo / in_progress / done
    due_date: Optional[str] = None    # YYYY-MM-DD
    due_time: Optional[str] = None    # HH:mm
    bucket_type: Optional[str] = None  # day / week / month
    bucket_date: Optional[str] = None  # YYYY-MM-DD anchor
    recurrence: str = "none"          # none / daily / weekly / monthly
    interval: int = 1
    byweekday: Optional[str] = None   # JSON array, 0=Sunday
    until: Optional[str] = None       # YYYY-MM-DD, inclusive
    sort: int = 0
    color: Optional[str] = None
    priority: int = 0
    external_id: Optional[str] = Field(default=None, index=True)
    source_id: Optional[int] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
