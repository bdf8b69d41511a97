"""ORM models exposed by the FlowShare application."""
from .person import Person
from .task import Task
from .task_done_date import TaskDoneDate
from .external_source import ExternalSource

__all__ = ["ExternalSource", "Person", "Task", "TaskDoneDate"]
