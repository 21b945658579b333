"""
QueryDesk Core - Notification queue.

Ephemeral user-facing messages. Each notification is removed exactly once,
either when its expiry timer fires or when the user dismisses it first; a
manual dismissal cancels the pending timer.

Notifications pushed while no event loop is running are shown right away;
their timers start with the next push or `arm_pending()` made inside a loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Literal, Protocol
from uuid import uuid4

from querydesk.schemas import Notification

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with ``call_later``; the asyncio event loop qualifies."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class NotificationQueue:
    def __init__(
        self,
        ttl_ms: int = 6000,
        scheduler: Scheduler | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self._ttl_ms = ttl_ms
        self._scheduler = scheduler
        self._on_change = on_change
        self._items: dict[str, Notification] = {}
        self._timers: dict[str, TimerHandle] = {}
        self._unarmed: list[str] = []

    @property
    def items(self) -> list[Notification]:
        """Live notifications in insertion order."""
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def push(
        self,
        kind: Literal["success", "error"],
        title: str,
        message: str | None = None,
    ) -> str:
        notification = Notification(
            id=uuid4().hex,
            kind=kind,
            title=title,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        nid = notification.id
        self._items[nid] = notification

        self._unarmed.append(nid)
        self.arm_pending()

        log = logger.warning if kind == "error" else logger.info
        log(f"[notify] {kind}: {title}" + (f" - {message}" if message else ""))
        self._changed()
        return nid

    def success(self, title: str, message: str | None = None) -> str:
        return self.push("success", title, message)

    def error(self, title: str, message: str | None = None) -> str:
        return self.push("error", title, message)

    def arm_pending(self) -> int:
        """
        Start expiry timers for notifications pushed while no event loop was running.

        Returns:
            Number of timers started
        """
        if not self._unarmed:
            return 0
        scheduler = self._current_scheduler()
        if scheduler is None:
            logger.debug(f"[notify] No event loop yet, {len(self._unarmed)} expiry timer(s) deferred")
            return 0
        pending, self._unarmed = self._unarmed, []
        for nid in pending:
            self._timers[nid] = scheduler.call_later(self._ttl_ms / 1000, lambda nid=nid: self._expire(nid))
        return len(pending)

    def _current_scheduler(self) -> Scheduler | None:
        if self._scheduler is not None:
            return self._scheduler
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def dismiss(self, nid: str) -> bool:
        """Remove a notification now. Returns False if it was already gone."""
        if nid in self._unarmed:
            self._unarmed.remove(nid)
        timer = self._timers.pop(nid, None)
        if timer is not None:
            timer.cancel()
        if self._items.pop(nid, None) is None:
            return False
        self._changed()
        return True

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._unarmed.clear()
        if self._items:
            self._items.clear()
            self._changed()

    def _expire(self, nid: str) -> None:
        self._timers.pop(nid, None)
        if self._items.pop(nid, None) is not None:
            self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
