"""Simple JSON-backed configuration store."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from flowshare.core.settings import CONFIG_PATH, SCHEDULE
from flowshare.schedule.dates import VIEWS
from flowshare.schedule.grouping import SORT_MODES, ManualOrder

TIME_FORMATS = ("12h", "24h")
DATE_FORMATS = ("YYYY-MM-DD", "MM/DD", "DD/MM")


@dataclass
class AppConfig:
    """Viewer preferences persisted to ``config.json``."""

    view: str = SCHEDULE.default_view
    sort_mode: str = SCHEDULE.default_sort_mode
    selected_person_id: Optional[int] = None
    relative_dates: bool = True
    time_format: str = "24h"
    date_format: str = "YYYY-MM-DD"
    manual_order: Dict[str, List[int]] = field(default_factory=dict)

    def manual(self) -> ManualOrder:
        return ManualOrder(self.manual_order)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _load_raw(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _choice(value: Any, allowed, default: str) -> str:
    return value if value in allowed else default


def _manual_order(value: Any) -> Dict[str, List[int]]:
    if not isinstance(value, dict):
        return {}
    try:
        return ManualOrder({str(k): v for k, v in value.items() if isinstance(v, list)}).to_dict()
    except (TypeError, ValueError):
        return {}


def load_config(path: Optional[Path] = None) -> AppConfig:
    target = path or CONFIG_PATH
    data = _load_raw(target)
    defaults = AppConfig()
    person = data.get("selected_person_id")
    return AppConfig(
        view=_choice(data.get("view"), VIEWS, defaults.view),
        sort_mode=_choice(data.get("sort_mode"), SORT_MODES, defaults.sort_mode),
        selected_person_id=person if isinstance(person, int) else None,
        relative_dates=bool(data.get("relative_dates", defaults.relative_dates)),
        time_format=_choice(data.get("time_format"), TIME_FORMATS, defaults.time_format),
        date_format=_choice(data.get("date_format"), DATE_FORMATS, defaults.date_format),
        manual_order=_manual_order(data.get("manual_order")),
    )


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    target = path or CONFIG_PATH
    _ensure_parent(target)
    payload = json.dumps(asdict(config), ensure_ascii=False, indent=2, sort_keys=True)
    tmp = target.with_suffix(".tmp")
    try:
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(target)
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError:
                pass


def update_config(path: Optional[Path] = None, **changes: Any) -> AppConfig:
    target = path or CONFIG_PATH
    cfg = load_config(target)
    for key, value in changes.items():
        if hasattr(cfg, key):
            setattr(cfg, key, value)
    save_config(cfg, target)
    return cfg


def save_manual_order(key: str, ids: List[int], path: Optional[Path] = None) -> AppConfig:
    """Persist the drag-and-drop order of one bucket."""
    target = path or CONFIG_PATH
    cfg = load_config(target)
    order = cfg.manual()
    order.set(key, ids)
    cfg.manual_order = order.to_dict()
    save_config(cfg, target)
    return cfg


__all__ = [
    "AppConfig",
    "load_config",
    "save_config",
    "save_manual_order",
    "update_config",
]
