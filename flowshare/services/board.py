"""Build the calendar board for a view from a fresh storage snapshot."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from flowshare.core.settings import SCHEDULE
from flowshare.schedule.completion import (
    CompletionTracker,
    Progress,
    get_completion,
    progress,
    progress_by_person,
)
from flowshare.schedule.dates import DateLike
from flowshare.schedule.grouping import ManualOrder, group_view
from flowshare.services.tasks import TaskService

REFRESH_EVENTS = ("task_created", "task_updated", "task_deleted", "people_updated")


@dataclass(frozen=True)
class Board:
    view: str
    start: date
    end: date
    days: Dict[str, List[Any]]
    completion: CompletionTracker
    progress: Progress = Progress()
    by_person: Dict[int, Progress] = field(default_factory=dict)

    def is_done(self, task: Any, key: str) -> bool:
        return get_completion(task, key, self.completion)


class BoardService:
    """Stateless: every :meth:`build` reads tasks and done-marks again."""

    def __init__(self, tasks: TaskService) -> None:
        self.tasks = tasks

    def build(
        self,
        view: str,
        anchor: DateLike,
        *,
        person_id: Optional[int] = None,
        sort_mode: str = SCHEDULE.default_sort_mode,
        manual_order: Optional[ManualOrder] = None,
    ) -> Board:
        items, tracker = self.tasks.snapshot(person_id)
        grouped = group_view(
            items,
            view,
            anchor,
            sort_mode=sort_mode,
            completion=tracker,
            manual_order=manual_order,
        )
        return Board(
            view=view,
            start=grouped.start,
            end=grouped.end,
            days=grouped.days,
            completion=tracker,
            progress=progress(grouped.days, tracker),
            by_person=progress_by_person(grouped.days, tracker),
        )

    def follow(
        self,
        hub,
        on_board: Callable[[Board], None],
        view: str,
        anchor: DateLike,
        **options: Any,
    ) -> Callable[[str, Any], None]:
        """Rebuild and hand over a new board on every relevant notification.

        Returns the registered listener so callers can ``hub.unlisten`` it.
        """

        def _listener(event: str, _data: Any) -> None:
            if event in REFRESH_EVENTS:
                on_board(self.build(view, anchor, **options))

        hub.listen(_listener)
        return _listener


__all__ = ["Board", "BoardService", "REFRESH_EVENTS"]
