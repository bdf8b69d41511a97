from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from googleapiclient.errors import HttpError
from sqlmodel import Session, select

from flowshare.core.settings import SYNC
from flowshare.models import ExternalSource, Task
from flowshare.services.google_tasks import GoogleTasksClient, gtask_to_fields
from flowshare.services.tasks import TaskService
from flowshare.storage.db import get_session
from flowshare.utils.datetime_utils import utc_now
from flowshare.utils.log import ensure_logger


@dataclass
class ImportResult:
    imported: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "imported": self.imported,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
        }


class SourceSyncService:
    """Mirror items of an external source into day buckets, and push tasks back."""

    def __init__(
        self,
        tasks: TaskService,
        session_factory: Callable[[], Session] = get_session,
    ) -> None:
        self.tasks = tasks
        self._session_factory = session_factory
        self.logger = ensure_logger("flowshare.sync", SYNC.log_filename)

    # ------------------------------------------------------------------
    def _find_existing(self, source_id: int, external_id: str) -> Optional[Task]:
        with self._session_factory() as s:
            stmt = select(Task).where(Task.source_id == source_id, Task.external_id == external_id)
            return s.exec(stmt).first()

    def _set_link(self, task_id: int, source_id: Optional[int], external_id: str) -> None:
        with self._session_factory() as s:
            row = s.get(Task, task_id)
            if row is None:
                return
            row.source_id = source_id
            row.external_id = external_id
            row.updated_at = utc_now()
            s.add(row)
            s.commit()

    def import_items(self, source: ExternalSource, items: Iterable[Dict[str, Any]]) -> ImportResult:
        """Upsert normalized items (``gtask_to_fields`` shape) for ``source``.

        Items without a due date have no day bucket to land in and are skipped.
        """
        result = ImportResult()
        for item in items:
            external_id = item.get("external_id")
            due_date = item.get("due_date")
            if not external_id or not due_date:
                result.skipped += 1
                continue
            fields = {
                "title": item.get("title") or "Untitled",
                "due_date": due_date,
                "due_time": item.get("due_time"),
                "bucket_type": "day",
                "bucket_date": due_date,
            }
            if item.get("status"):
                fields["status"] = item["status"]
            existing = self._find_existing(source.id, str(external_id))
            if existing is not None:
                self.tasks.update(existing.id, **fields)
                result.updated += 1
            else:
                created = self.tasks.create(
                    fields.pop("title"),
                    person_id=source.person_id,
                    description=item.get("description"),
                    recurrence="none",
                    **fields,
                )
                self._set_link(created.id, source.id, str(external_id))
                result.created += 1
            result.imported += 1
        self.logger.info(
            "Imported %d item(s) from source %s (%d new, %d updated, %d skipped)",
            result.imported,
            source.id,
            result.created,
            result.updated,
            result.skipped,
        )
        return result

    def pull(self, source: ExternalSource, client: Optional[GoogleTasksClient] = None) -> ImportResult:
        if not SYNC.enabled:
            self.logger.info("Sync disabled; skipping pull for source %s", source.id)
            return ImportResult()
        if source.provider != "google_tasks":
            raise ValueError(f"No handler for provider {source.provider!r}")
        client = client or GoogleTasksClient.from_source(source)
        try:
            raw = client.list_items()
        except HttpError as exc:
            self.logger.error("Pull from source %s failed: %s", source.id, exc)
            raise
        list_id = client.tasklist_id
        items = [f for f in (gtask_to_fields(item, list_id) for item in raw) if f is not None]
        return self.import_items(source, items)

    def push(self, task: Task, client: GoogleTasksClient, source: Optional[ExternalSource] = None) -> Optional[str]:
        """Create or patch the remote copy of ``task``; return its external id.

        A linked item that no longer exists remotely is recreated.
        """
        if not SYNC.enabled:
            return task.external_id
        try:
            if task.external_id:
                if client.patch(task.external_id, task) is not None:
                    return task.external_id
                self.logger.info("Remote item %s for task %s is gone; recreating", task.external_id, task.id)
            external_id = client.insert(task)
        except HttpError as exc:
            self.logger.error("Push of task %s failed: %s", task.id, exc)
            raise
        source_id = source.id if source is not None else task.source_id
        self._set_link(task.id, source_id, external_id)
        return external_id


__all__ = ["ImportResult", "SourceSyncService"]
