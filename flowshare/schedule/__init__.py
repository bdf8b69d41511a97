"""Recurrence expansion and bucket scheduling."""
from .completion import CompletionTracker, Progress, get_completion, is_recurring, progress
from .dates import date_key, parse_date_key, start_of_month, start_of_week, view_window
from .grouping import GroupedView, ManualOrder, SORT_MODES, group, group_view
from .recurrence import expand, expand_range, occurs_on

__all__ = [
    "CompletionTracker",
    "GroupedView",
    "ManualOrder",
    "Progress",
    "SORT_MODES",
    "date_key",
    "expand",
    "expand_range",
    "get_completion",
    "group",
    "group_view",
    "is_recurring",
    "occurs_on",
    "parse_date_key",
    "progress",
    "start_of_month",
    "start_of_week",
    "view_window",
]
