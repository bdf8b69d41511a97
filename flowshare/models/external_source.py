"""Connected external calendar/task providers."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from flowshare.utils.datetime_utils import utc_now


PROVIDERS = ("google_tasks", "google_calendar", "ms_graph_todo", "ms_graph_calendar", "ics")


class ExternalSource(SQLModel, table=True):
    """A provider account linked to one person."""

    __tablename__ = "external_sources"

    id: Optional[int] = Field(default=None, primary_key=True)
    person_id: int = Field(foreign_key="people.id", index=True)
    provider: str
    url: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = Field(default=None, description="Token expiry, epoch seconds")
    scope: Optional[str] = None
    account: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


__all__ = ["ExternalSource", "PROVIDERS"]
