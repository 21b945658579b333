"""
QueryDesk Core - Workspace.

Composes the notification queue, history, upload coordinator, table registry
and query runner, and owns the state they share: the selected table, the
draft query and the current result. Every externally triggered transition
goes through one of the public coroutines below; the presentation layer
observes immutable ``WorkspaceState`` snapshots.

Wiring:
- a successful upload refreshes the table list
- selecting a table with a new id fetches its schema (token guarded)
- deleting the selected table clears the selection and its schema
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from querydesk.client import ApiClient, ProgressCallback
from querydesk.config import Settings, get_settings
from querydesk.core.export import DEFAULT_EXPORT_NAME, result_to_csv, write_csv
from querydesk.core.history import HistoryStore
from querydesk.core.notifications import NotificationQueue, Scheduler
from querydesk.core.queries import QueryRunner
from querydesk.core.tables import ConfirmCallback, TableRegistry
from querydesk.core.uploads import UploadCoordinator
from querydesk.exceptions import StorageException
from querydesk.schemas import (
    Notification,
    Outcome,
    QueryResult,
    SelectedFile,
    TableSchema,
    TableSummary,
    UploadReceipt,
    WorkspaceState,
)
from querydesk.storage import KeyValueStore

logger = logging.getLogger(__name__)

StateListener = Callable[[WorkspaceState], None]

EXAMPLE_QUERIES = (
    "Show me the top 10 rows",
    "What's the average cost?",
    "Total sales by month",
    "Find rows where status is active",
)


class Workspace:
    """Client-side orchestration of a data exploration session."""

    def __init__(
        self,
        client: ApiClient,
        storage: KeyValueStore,
        *,
        confirm: ConfirmCallback,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
    ):
        settings = settings or get_settings()
        self._listeners: list[StateListener] = []
        self._client = client
        self._confirm = confirm
        self._selected: TableSummary | None = None
        self._draft_query = ""
        self._started = False

        self._notifications = NotificationQueue(
            ttl_ms=settings.workspace.notification_ttl_ms,
            scheduler=scheduler,
            on_change=self._emit,
        )
        self._history = HistoryStore(storage, limit=settings.workspace.history_limit, on_change=self._emit)
        self._uploads = UploadCoordinator(client, self._notifications, on_change=self._emit)
        self._tables = TableRegistry(client, self._notifications, on_change=self._emit)
        self._queries = QueryRunner(client, self._history, self._notifications, on_change=self._emit)

    async def __aenter__(self) -> Workspace:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def selected_table(self) -> TableSummary | None:
        return self._selected

    @property
    def schema(self) -> TableSchema | None:
        """Schema of the selected table; never one belonging to another table."""
        if self._selected is None or self._tables.schema_owner != self._selected.id:
            return None
        return self._tables.schema

    @property
    def tables(self) -> list[TableSummary]:
        return self._tables.tables

    @property
    def result(self) -> QueryResult | None:
        return self._queries.result

    @property
    def history(self) -> list[str]:
        return self._history.entries

    @property
    def notifications(self) -> list[Notification]:
        return self._notifications.items

    @property
    def examples(self) -> tuple[str, ...]:
        return EXAMPLE_QUERIES

    def snapshot(self) -> WorkspaceState:
        return WorkspaceState(
            tables=self._tables.tables,
            selected_table=self._selected,
            table_schema=self.schema,
            result=self._queries.result,
            history=self._history.entries,
            notifications=self._notifications.items,
            upload=self._uploads.state,
            draft_query=self._draft_query,
            running=self._queries.running,
            loading_tables=self._tables.loading_tables,
            loading_schema=self._tables.loading_schema,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for state changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self) -> None:
        if not self._listeners:
            return
        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("[workspace] State listener failed")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> Outcome[list[TableSummary]]:
        """Load history and the table list once."""
        if self._started:
            return Outcome.skip("already started")
        self._started = True
        self._notifications.arm_pending()

        try:
            self._history.load()
        except StorageException as e:
            self._notifications.error("Failed to load history", e.message)

        return await self._tables.refresh_tables()

    async def aclose(self) -> None:
        self._queries.abandon()
        self._notifications.clear()
        self._listeners.clear()
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    async def refresh_tables(self) -> Outcome[list[TableSummary]]:
        return await self._tables.refresh_tables()

    async def select_table(self, table: TableSummary | None) -> Outcome[TableSchema]:
        """Change the selection and load the schema of a newly selected table."""
        if table is None:
            if self._selected is None:
                return Outcome.skip("nothing selected")
            self._selected = None
            self._tables.invalidate_schema()
            return Outcome.success()

        previous = self._selected
        self._selected = table
        if previous is not None and previous.id == table.id:
            if self._tables.loading_schema or self._tables.schema_owner == table.id:
                self._emit()
                return Outcome.skip("already selected")

        self._emit()
        logger.info(f"[workspace] Selected table {table.id}")
        return await self._tables.fetch_schema(table.id)

    async def delete_table(self, table: TableSummary) -> Outcome[None]:
        return await self._tables.delete_table(table, self._confirm, on_deleted=self._forget_selection)

    def _forget_selection(self, table: TableSummary) -> None:
        if self._selected is not None and self._selected.id == table.id:
            self._selected = None
            self._tables.invalidate_schema()

    # -------------------------------------------------------------------------
    # Uploads
    # -------------------------------------------------------------------------

    async def upload_file(
        self,
        file: SelectedFile,
        file_name: str | None = None,
        on_progress: ProgressCallback | None = None,
        on_complete: Callable[[Outcome[UploadReceipt]], None] | None = None,
    ) -> Outcome[UploadReceipt]:
        outcome = await self._uploads.start_upload(file, file_name, on_progress=on_progress, on_complete=on_complete)
        if outcome.ok:
            await self._tables.refresh_tables()
        return outcome

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def use_query(self, text: str) -> None:
        """Put a history entry or example into the draft."""
        self._draft_query = text
        self._emit()

    async def submit_query(self, text: str | None = None) -> Outcome[QueryResult]:
        if text is not None:
            self._draft_query = text
        return await self._queries.run(self._draft_query)

    def clear_history(self) -> Outcome[None]:
        try:
            self._history.clear()
        except StorageException as e:
            self._notifications.error("Could not save history", e.message)
            return Outcome.failure(e)
        return Outcome.success()

    def export_current_result_as_csv(self) -> Outcome[str]:
        result = self._queries.result
        if result is None:
            return Outcome.skip("no result")
        return Outcome.success(result_to_csv(result))

    def write_current_result_csv(self, path: str | Path = DEFAULT_EXPORT_NAME) -> Outcome[Path]:
        result = self._queries.result
        if result is None:
            return Outcome.skip("no result")
        try:
            return Outcome.success(write_csv(result, path))
        except OSError as e:
            error = StorageException("file", str(e))
            self._notifications.error("Export failed", error.message)
            return Outcome.failure(error)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def dismiss_notification(self, nid: str) -> bool:
        return self._notifications.dismiss(nid)
