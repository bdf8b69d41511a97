"""Minimal Google Tasks client used by external source synchronisation."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from flowshare.core.settings import SYNC
from flowshare.schedule.completion import is_recurring
from flowshare.schedule.dates import parse_date_key
from flowshare.schedule.fields import task_field
from flowshare.utils.datetime_utils import to_rfc3339_utc

TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = ["https://www.googleapis.com/auth/tasks"]


def _http_status(exc: HttpError) -> int:
    status = getattr(exc, "resp", None) and getattr(exc.resp, "status", None)
    return int(status or 0)


def split_external_id(external_id: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """``"<list>:<task>"`` -> (list, task); bare ids carry no list."""
    if not external_id:
        return None, None
    if ":" in external_id:
        list_id, item_id = external_id.split(":", 1)
        return list_id or None, item_id or None
    return None, external_id


def task_to_gtask_body(task: Any) -> Dict[str, Optional[str]]:
    """Google Tasks resource body for a task row.

    Only non-recurring tasks export a completed status; a recurring task has
    no single done state.
    """
    done = not is_recurring(task) and task_field(task, "status") == "done"
    body: Dict[str, Optional[str]] = {
        "title": str(task_field(task, "title", "")).strip() or "Untitled",
        "notes": task_field(task, "description"),
        "status": "completed" if done else "needsAction",
    }
    if done and task_field(task, "updated_at") is not None:
        body["completed"] = to_rfc3339_utc(task_field(task, "updated_at"))
    due_date = task_field(task, "due_date")
    if parse_date_key(due_date):
        due_time = task_field(task, "due_time") or "00:00"
        body["due"] = f"{due_date}T{due_time}:00Z"
    else:
        body["due"] = None
    return body


def gtask_to_fields(item: Dict[str, Any], list_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Task fields for a Google Tasks item, or ``None`` when it should be skipped.

    The due stamp is read by its written components; it is not shifted into
    another timezone.
    """
    if item.get("deleted") or not item.get("id"):
        return None
    raw_due = str(item.get("due") or "")
    due_date = raw_due[:10] if parse_date_key(raw_due[:10]) else None
    due_time = None
    if due_date and len(raw_due) >= 16 and raw_due[10] == "T":
        hhmm = raw_due[11:16]
        if hhmm != "00:00":
            due_time = hhmm
    item_id = str(item["id"])
    return {
        "title": (item.get("title") or "").strip() or "Untitled",
        "description": (item.get("notes") or "").strip() or None,
        "status": "done" if item.get("status") == "completed" else "todo",
        "due_date": due_date,
        "due_time": due_time,
        "external_id": f"{list_id}:{item_id}" if list_id else item_id,
    }


class GoogleTasksClient:
    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        *,
        tasklist_id: Optional[str] = None,
        service: Any = None,
    ) -> None:
        self.credentials = credentials
        self.service = service
        configured = tasklist_id or SYNC.google_tasks_list
        self.tasklist_id: Optional[str] = None if configured == "@default" else configured

    @classmethod
    def from_source(cls, source: Any, **kwargs: Any) -> "GoogleTasksClient":
        if not getattr(source, "access_token", None):
            raise RuntimeError("Source is not authorized")
        creds = Credentials(
            token=source.access_token,
            refresh_token=getattr(source, "refresh_token", None),
            token_uri=TOKEN_URI,
            scopes=SCOPES,
        )
        return cls(creds, **kwargs)

    # ------------------------------------------------------------------
    def _ensure_service(self) -> Any:
        if self.service is None:
            if self.credentials is None:
                raise RuntimeError("Google credentials are not available")
            self.service = build("tasks", "v1", credentials=self.credentials, cache_discovery=False)
        return self.service

    def ensure_tasklist(self) -> str:
        if self.tasklist_id:
            return self.tasklist_id
        service = self._ensure_service()
        try:
            default = service.tasklists().get(tasklist="@default").execute()
            self.tasklist_id = default.get("id")
        except HttpError as exc:
            if _http_status(exc) != 404:
                raise
        if not self.tasklist_id:
            response = service.tasklists().list(maxResults=1).execute()
            items = response.get("items", [])
            if not items:
                raise RuntimeError("No Google Tasks list available")
            self.tasklist_id = items[0].get("id")
        return self.tasklist_id

    # ------------------------------------------------------------------
    def list_items(self) -> List[Dict[str, Any]]:
        service = self._ensure_service()
        tasklist_id = self.ensure_tasklist()
        items: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        while True:
            response = (
                service.tasks()
                .list(
                    tasklist=tasklist_id,
                    showCompleted=True,
                    showHidden=True,
                    maxResults=SYNC.page_size,
                    pageToken=page_token,
                )
                .execute()
            )
            items.extend(response.get("items", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break
        return items

    def insert(self, task: Any) -> str:
        """Create the item and return the ``list:task`` external id."""
        service = self._ensure_service()
        tasklist_id = self.ensure_tasklist()
        body = {k: v for k, v in task_to_gtask_body(task).items() if v is not None}
        created = service.tasks().insert(tasklist=tasklist_id, body=body).execute()
        return f"{tasklist_id}:{created['id']}"

    def patch(self, external_id: str, task: Any) -> Optional[Dict[str, Any]]:
        list_id, item_id = split_external_id(external_id)
        if not item_id:
            return None
        service = self._ensure_service()
        try:
            return (
                service.tasks()
                .patch(
                    tasklist=list_id or self.ensure_tasklist(),
                    task=item_id,
                    body=task_to_gtask_body(task),
                )
                .execute()
            )
        except HttpError as exc:
            if _http_status(exc) == 404:
                return None
            raise

    def delete(self, external_id: str) -> None:
        list_id, item_id = split_external_id(external_id)
        if not item_id:
            return
        service = self._ensure_service()
        try:
            service.tasks().delete(tasklist=list_id or self.ensure_tasklist(), task=item_id).execute()
        except HttpError as exc:
            if _http_status(exc) == 404:
                return
            raise


__all__ = [
    "GoogleTasksClient",
    "gtask_to_fields",
    "split_external_id",
    "task_to_gtask_body",
]
