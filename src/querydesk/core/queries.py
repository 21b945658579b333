"""
QueryDesk Core - Query runner.

One query at a time: ``idle -> running -> succeeded | failed``. Submissions
made while a query is running are skipped rather than raced. A failed run
leaves the previous result in place.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal

from querydesk.client import ApiClient
from querydesk.core.history import HistoryStore
from querydesk.core.notifications import NotificationQueue
from querydesk.exceptions import QueryDeskException, StorageException
from querydesk.schemas import Outcome, QueryResult

logger = logging.getLogger(__name__)

RunStatus = Literal["idle", "running", "succeeded", "failed"]


class QueryRunner:
    def __init__(
        self,
        client: ApiClient,
        history: HistoryStore,
        notifications: NotificationQueue,
        on_change: Callable[[], None] | None = None,
    ):
        self._client = client
        self._history = history
        self._notifications = notifications
        self._on_change = on_change
        self._status: RunStatus = "idle"
        self._result: QueryResult | None = None
        self._token = 0

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def running(self) -> bool:
        return self._status == "running"

    @property
    def result(self) -> QueryResult | None:
        return self._result

    async def run(self, query_text: str) -> Outcome[QueryResult]:
        text = (query_text or "").strip()
        if not text:
            return Outcome.skip("empty query")
        if self.running:
            logger.info("[query] Ignoring submission while another query is running")
            return Outcome.skip("query already running")

        self._token += 1
        token = self._token
        self._set_status("running")

        try:
            result = await self._client.run_query(text)
        except QueryDeskException as e:
            if token != self._token:
                return Outcome.skip("abandoned")
            self._notifications.error("Query failed", e.message)
            self._set_status("failed")
            return Outcome.failure(e)

        if token != self._token:
            logger.debug("[query] Dropping result of an abandoned run")
            return Outcome.skip("abandoned")

        self._result = result
        logger.info(f"[query] Completed: {len(result.rows)} rows (total={result.total_rows}, truncated={result.truncated})")
        self._notifications.success("Query completed")
        try:
            self._history.add(text)
        except StorageException as e:
            self._notifications.error("Could not save history", e.message)
        self._set_status("succeeded")
        return Outcome.success(result)

    def abandon(self) -> None:
        """Forget any run in flight; its response will not be applied."""
        self._token += 1
        if self.running:
            self._set_status("idle")

    def _set_status(self, status: RunStatus) -> None:
        self._status = status
        if self._on_change is not None:
            self._on_change()
