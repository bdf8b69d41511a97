# flowshare/models/person.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from flowshare.utils.datetime_utils import utc_now


class Person(SQLModel, table=True):
    __tablename__ = "people"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: Optional[str] = None
    color: Optional[str] = None
    default_source_id: Optional[int] = None
    created_at: datetime = Field(default_factory=utc_now)


__all__ = ["Person"]
