"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys
import tempfile


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``FLOWSHARE_DATA_DIR`` in ``env`` wins over the platform default.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(env if env is not None else os.environ)
    home_dir = Path(home or Path.home())

    override = (environ.get("FLOWSHARE_DATA_DIR") or "").strip()
    if override:
        return Path(override).expanduser()

    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


def ensure_writable_dir(path: Path, *, fallback_name: str) -> Path:
    """Create ``path`` or fall back to a directory under the system temp dir."""

    try:
        path.mkdir(parents=True, exist_ok=True)
        if os.access(path, os.W_OK):
            return path
    except OSError:
        pass
    fallback = Path(tempfile.gettempdir()) / fallback_name
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


APP_NAME = "FlowShare"


DATA_DIR = ensure_writable_dir(get_default_data_dir(APP_NAME), fallback_name="flowshare-data")
LOG_DIR = DATA_DIR / "logs"

DB_PATH = DATA_DIR / "app.db"
CONFIG_PATH = DATA_DIR / "config.json"


@dataclass(frozen=True)
class ScheduleSettings:
    default_view: str = "month"
    default_sort_mode: str = "manual"
    # keyboard nudges start from this time when a task has none
    nudge_base_time: str = "09:00"


SCHEDULE = ScheduleSettings()


@dataclass(frozen=True)
class RealtimeSettings:
    keepalive_interval_sec: float = 25.0
    log_filename: str = "realtime.log"


REALTIME = RealtimeSettings()


@dataclass(frozen=True)
class SyncSettings:
    enabled: bool = True
    google_tasks_list: str = "@default"
    page_size: int = 100
    log_filename: str = "sync.log"


SYNC = SyncSettings()


@dataclass(frozen=True)
class LogSettings:
    max_bytes: int = 1_000_000
    backup_count: int = 3
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


LOGGING = LogSettings()


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DATA_DIR",
    "DB_PATH",
    "LOGGING",
    "LOG_DIR",
    "REALTIME",
    "SCHEDULE",
    "SYNC",
    "ensure_writable_dir",
    "get_default_data_dir",
]
