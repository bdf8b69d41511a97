"""Push channel between task mutations and connected clients.

Connections register a ``write``/``close`` pair and receive Server-Sent Events
frames. In-process consumers (view builders, sync hooks) use :meth:`listen`.
The hub owns its subscribers; nothing is kept at module level.
"""
from __future__ import annotations

import json
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from flowshare.core.settings import REALTIME
from flowshare.utils.log import ensure_logger

Listener = Callable[[str, Any], None]


def format_sse(event: str, data: Any) -> str:
    payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False, default=str)
    return f"event: {event}\ndata: {payload}\n\n"


@dataclass
class Subscriber:
    id: str
    write: Callable[[str], None]
    close: Callable[[], None]


class RealtimeHub:
    def __init__(
        self,
        *,
        keepalive_interval: float = REALTIME.keepalive_interval_sec,
        clock: Callable[[], float] = time.time,
        logger=None,
    ) -> None:
        self.keepalive_interval = keepalive_interval
        self._clock = clock
        self._subscribers: Dict[str, Subscriber] = {}
        self._listeners: Set[Listener] = set()
        self._lock = threading.RLock()
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self.logger = logger or ensure_logger("flowshare.realtime", REALTIME.log_filename)

    # ------------------------------------------------------------------
    # Lifecycle
    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._stopping.clear()
            if self.keepalive_interval and self.keepalive_interval > 0:
                self._thread = threading.Thread(
                    target=self._keepalive_loop, name="flowshare-keepalive", daemon=True
                )
                self._thread.start()
        self.logger.info("Realtime hub started")

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._stopping.set()
            thread, self._thread = self._thread, None
            subscribers = list(self._subscribers.values())
            self._subscribers.clear()
        if thread is not None:
            thread.join(timeout=max(1.0, float(self.keepalive_interval or 0)))
        for sub in subscribers:
            self._close_quietly(sub)
        self.logger.info("Realtime hub stopped (%d subscribers closed)", len(subscribers))

    def __enter__(self) -> "RealtimeHub":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Connections
    def subscribe(
        self,
        write: Callable[[str], None],
        close: Callable[[], None],
        subscriber_id: Optional[str] = None,
    ) -> str:
        if not self._running:
            raise RuntimeError("Realtime hub is not running")
        sub = Subscriber(id=subscriber_id or uuid.uuid4().hex, write=write, close=close)
        with self._lock:
            previous = self._subscribers.pop(sub.id, None)
            self._subscribers[sub.id] = sub
        if previous is not None:
            self._close_quietly(previous)
        self.logger.debug("Subscriber %s connected", sub.id)
        if not self._deliver(sub, format_sse("hello", {"ok": True})):
            self.unsubscribe(sub.id)
        return sub.id

    def unsubscribe(self, subscriber_id: str) -> bool:
        with self._lock:
            sub = self._subscribers.pop(subscriber_id, None)
        if sub is None:
            return False
        self._close_quietly(sub)
        self.logger.debug("Subscriber %s disconnected", subscriber_id)
        return True

    def subscriber_ids(self) -> List[str]:
        with self._lock:
            return list(self._subscribers)

    # ------------------------------------------------------------------
    # In-process consumers
    def listen(self, callback: Listener) -> None:
        with self._lock:
            self._listeners.add(callback)

    def unlisten(self, callback: Listener) -> None:
        with self._lock:
            self._listeners.discard(callback)

    # ------------------------------------------------------------------
    # Messages
    def publish(self, event: str, data: Any) -> int:
        """Send ``event`` to every subscriber and listener; return deliveries."""
        if not self._running:
            self.logger.debug("Dropping %s: hub not running", event)
            return 0
        delivered = self._broadcast(format_sse(event, data))
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, data)
                delivered += 1
            except Exception:
                self.logger.exception("Listener failed for %s", event)
        return delivered

    def ping(self) -> int:
        if not self._running:
            return 0
        return self._broadcast(format_sse("ping", int(self._clock() * 1000)))

    # ------------------------------------------------------------------
    # helpers
    def _broadcast(self, frame: str) -> int:
        with self._lock:
            subscribers = list(self._subscribers.values())
        delivered = 0
        for sub in subscribers:
            if self._deliver(sub, frame):
                delivered += 1
            else:
                self.unsubscribe(sub.id)
        return delivered

    def _deliver(self, sub: Subscriber, frame: str) -> bool:
        try:
            sub.write(frame)
            return True
        except Exception as exc:
            self.logger.warning("Write to subscriber %s failed: %s", sub.id, exc)
            return False

    def _close_quietly(self, sub: Subscriber) -> None:
        try:
            sub.close()
        except Exception as exc:
            self.logger.debug("Closing subscriber %s failed: %s", sub.id, exc)

    def _keepalive_loop(self) -> None:
        while not self._stopping.wait(self.keepalive_interval):
            self.ping()


__all__ = ["RealtimeHub", "Subscriber", "format_sse"]
