"""Utility helpers for task priorities."""
from __future__ import annotations

# 0 = no priority, 1 = low, 2 = medium, 3 = high.
DEFAULT_PRIORITY = 0
MAX_PRIORITY = 3


def normalize_priority(value: int | str | None) -> int:
    """Clamp external values to the supported priority range."""
    if value is None:
        return DEFAULT_PRIORITY
    try:
        ivalue = int(value)
    except (TypeError, ValueError):
        return DEFAULT_PRIORITY
    return max(DEFAULT_PRIORITY, min(MAX_PRIORITY, ivalue))


__all__ = [
    "DEFAULT_PRIORITY",
    "MAX_PRIORITY",
    "normalize_priority",
]
