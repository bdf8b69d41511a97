"""Shared task and calendar planner."""

__version__ = "0.1.0"
