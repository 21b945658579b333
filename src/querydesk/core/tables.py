"""
QueryDesk Core - Table registry.

Caches the table list and the schema of one table. Both fetch categories are
guarded by a monotonically increasing request token: a response is applied
only if no newer request of the same category was issued while it was in
flight. Superseded responses (successes and failures alike) are discarded.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

from querydesk.client import ApiClient
from querydesk.core.notifications import NotificationQueue
from querydesk.exceptions import ConfirmationException, QueryDeskException
from querydesk.schemas import Outcome, TableSchema, TableSummary

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool | Awaitable[bool]]


class TableRegistry:
    def __init__(
        self,
        client: ApiClient,
        notifications: NotificationQueue,
        on_change: Callable[[], None] | None = None,
    ):
        self._client = client
        self._notifications = notifications
        self._on_change = on_change

        self._tables: list[TableSummary] = []
        self._tables_token = 0
        self._loading_tables = False

        self._schema: TableSchema | None = None
        self._schema_owner: str | None = None
        self._schema_token = 0
        self._loading_schema = False

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def tables(self) -> list[TableSummary]:
        return list(self._tables)

    @property
    def schema(self) -> TableSchema | None:
        return self._schema

    @property
    def schema_owner(self) -> str | None:
        """Id of the table the cached schema belongs to."""
        return self._schema_owner

    @property
    def loading_tables(self) -> bool:
        return self._loading_tables

    @property
    def loading_schema(self) -> bool:
        return self._loading_schema

    def find(self, table_id: str) -> TableSummary | None:
        return next((t for t in self._tables if t.id == table_id), None)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def refresh_tables(self) -> Outcome[list[TableSummary]]:
        """Replace the cached list with the service's current listing."""
        self._tables_token += 1
        token = self._tables_token
        self._loading_tables = True
        self._changed()

        try:
            tables = await self._client.list_tables()
        except QueryDeskException as e:
            if token != self._tables_token:
                logger.debug(f"[tables] Dropping superseded listing failure (token={token})")
                return Outcome.skip("superseded")
            self._loading_tables = False
            self._notifications.error("Failed to load tables", e.message)
            self._changed()
            return Outcome.failure(e)

        if token != self._tables_token:
            logger.debug(f"[tables] Dropping superseded listing (token={token}, latest={self._tables_token})")
            return Outcome.skip("superseded")

        self._tables = tables
        self._loading_tables = False
        logger.info(f"[tables] Listed {len(tables)} tables")
        self._changed()
        return Outcome.success(list(tables))

    async def fetch_schema(self, table_id: str) -> Outcome[TableSchema]:
        """
        Load the schema of ``table_id`` into the cache.

        On failure the previously cached schema is left untouched.

        Returns:
            ``skipped`` when a newer schema request was issued meanwhile
        """
        self._schema_token += 1
        token = self._schema_token
        self._loading_schema = True
        self._changed()

        try:
            schema = await self._client.get_schema(table_id)
        except QueryDeskException as e:
            if token != self._schema_token:
                logger.debug(f"[tables] Dropping superseded schema failure for {table_id}")
                return Outcome.skip("superseded")
            self._loading_schema = False
            self._notifications.error("Failed to load schema", e.message)
            self._changed()
            return Outcome.failure(e)

        if token != self._schema_token:
            logger.debug(f"[tables] Dropping superseded schema for {table_id} (token={token}, latest={self._schema_token})")
            return Outcome.skip("superseded")

        self._schema = schema
        self._schema_owner = table_id
        self._loading_schema = False
        self._changed()
        return Outcome.success(schema)

    def invalidate_schema(self) -> None:
        """Clear the cached schema and discard any schema request in flight."""
        self._schema_token += 1
        self._schema = None
        self._schema_owner = None
        self._loading_schema = False
        self._changed()

    async def delete_table(
        self,
        table: TableSummary,
        confirm: ConfirmCallback,
        on_deleted: Callable[[TableSummary], None] | None = None,
    ) -> Outcome[None]:
        """
        Delete ``table`` after the user confirms, then refresh the listing.

        Args:
            table: Table to delete
            confirm: Yes/no gate, awaited before any request is sent
            on_deleted: Called after the service confirmed the deletion

        Returns:
            ``skipped`` when the user declined
        """
        prompt = f"Delete table {table.label}?"
        try:
            approved = confirm(prompt)
            if inspect.isawaitable(approved):
                approved = await approved
        except Exception as e:
            logger.exception(f"[tables] Confirmation for {table.id} failed")
            error = ConfirmationException(prompt, str(e))
            self._notifications.error("Failed to delete", error.message)
            return Outcome.failure(error)
        if not approved:
            logger.info(f"[tables] Deletion of {table.id} declined")
            return Outcome.skip("declined")

        try:
            await self._client.delete_table(table.id)
        except QueryDeskException as e:
            self._notifications.error("Failed to delete", e.message)
            return Outcome.failure(e)

        logger.info(f"[tables] Deleted {table.id}")
        self._notifications.success("Table deleted")
        if self._schema_owner == table.id:
            self._schema = None
            self._schema_owner = None
            self._changed()
        if on_deleted is not None:
            on_deleted(table)

        await self.refresh_tables()
        return Outcome.success()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
