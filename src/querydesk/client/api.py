"""
QueryDesk Client - Query service API.

Thin async wrapper over httpx for the five endpoints the workspace needs.
Every failure is raised as a QueryDeskException:
- transport problems -> NetworkException
- non-2xx statuses -> HttpErrorException (UploadRejectedException for uploads)
- unparseable or invalid bodies -> MalformedResponseException

No retries are attempted; callers decide whether to re-invoke.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from querydesk.config import Settings
from querydesk.exceptions import (
    HttpErrorException,
    MalformedResponseException,
    NetworkException,
    QueryDeskException,
    UploadRejectedException,
)
from querydesk.observability import MetricsStore, get_metrics_store
from querydesk.schemas import QueryResult, SelectedFile, TableSchema, TableSummary, UploadReceipt

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

UPLOAD_FIELD = "file"


class ApiClient:
    """Async client for the query service."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        upload_chunk_size: int = 64 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
        metrics: MetricsStore | None = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url.strip().rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )
        self._chunk_size = upload_chunk_size
        self._metrics = metrics or get_metrics_store()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> ApiClient:
        return cls(
            settings.backend.url,
            timeout_seconds=settings.backend.timeout_seconds,
            upload_chunk_size=settings.backend.upload_chunk_size,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # -------------------------------------------------------------------------
    # Transport helpers
    # -------------------------------------------------------------------------

    async def _send(self, operation: str, request: httpx.Request) -> httpx.Response:
        started = time.perf_counter()
        error_code: str | None = None
        try:
            try:
                response = await self._http.send(request)
            except (httpx.TransportError, httpx.InvalidURL) as e:
                logger.warning(f"[client] {operation} {request.method} {request.url} -> transport error: {e}")
                raise NetworkException(f"Could not reach the query service: {e}", operation=operation) from e

            if not response.is_success:
                logger.warning(f"[client] {operation} {request.method} {request.url} -> status {response.status_code}")
                if operation == "upload":
                    raise UploadRejectedException(response.status_code)
                raise HttpErrorException(response.status_code, operation=operation)
        except QueryDeskException as e:
            error_code = e.code
            raise
        finally:
            self._metrics.observe(operation, (time.perf_counter() - started) * 1000, error_code)

        logger.debug(f"[client] {operation} {request.method} {request.url} -> {response.status_code}")
        return response

    def _json(self, operation: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            self._metrics.count_failure(operation, "MALFORMED_RESPONSE")
            raise MalformedResponseException(f"Response could not be parsed: {e}", operation=operation) from e

    def _malformed(self, operation: str, message: str) -> MalformedResponseException:
        self._metrics.count_failure(operation, "MALFORMED_RESPONSE")
        return MalformedResponseException(message, operation=operation)

    @staticmethod
    def _table_path(table_id: str) -> str:
        return f"/api/tables/{quote(str(table_id), safe='')}"

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    async def list_tables(self) -> list[TableSummary]:
        """GET /api/tables. Accepts a bare array or ``{"tables": [...]}``."""
        response = await self._send("list_tables", self._http.build_request("GET", "/api/tables"))
        data = self._json("list_tables", response)

        if isinstance(data, dict):
            data = data.get("tables") or []
        if not isinstance(data, list):
            raise self._malformed("list_tables", "Expected a list of tables.")

        try:
            return [TableSummary.model_validate(item) for item in data]
        except ValidationError as e:
            raise self._malformed("list_tables", f"Invalid table entry: {e.error_count()} error(s)") from e

    async def get_schema(self, table_id: str) -> TableSchema:
        """GET /api/tables/{id}."""
        response = await self._send("get_schema", self._http.build_request("GET", self._table_path(table_id)))
        data = self._json("get_schema", response)

        if not isinstance(data, dict):
            raise self._malformed("get_schema", "Expected a schema object.")
        try:
            return TableSchema.model_validate(data)
        except ValidationError as e:
            raise self._malformed("get_schema", f"Invalid schema: {e.error_count()} error(s)") from e

    async def delete_table(self, table_id: str) -> None:
        """DELETE /api/tables/{id}. Any 2xx is success."""
        await self._send("delete_table", self._http.build_request("DELETE", self._table_path(table_id)))

    async def upload(
        self,
        file: SelectedFile,
        file_name: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> UploadReceipt:
        """
        POST /api/upload as multipart form data.

        The encoded body is streamed in chunks so progress can be reported
        as the transport consumes it.

        Args:
            file: File picked by the user
            file_name: Name sent to the service (defaults to ``file.name``)
            on_progress: Called with the rounded percentage after each chunk

        Returns:
            The parsed upload receipt
        """
        name = file_name or file.name
        encoded = self._http.build_request(
            "POST",
            "/api/upload",
            files={UPLOAD_FIELD: (name, file.data, file.content_type or "application/octet-stream")},
        )
        body = encoded.read()
        total = len(body)
        chunk_size = self._chunk_size

        async def _chunks() -> AsyncIterator[bytes]:
            sent = 0
            for start in range(0, total, chunk_size):
                piece = body[start : start + chunk_size]
                yield piece
                sent += len(piece)
                # Only report when the total length is known
                if on_progress is not None and total:
                    on_progress(int(sent * 100 / total + 0.5))

        request = self._http.build_request(
            "POST",
            "/api/upload",
            content=_chunks(),
            headers={
                "Content-Type": encoded.headers["Content-Type"],
                "Content-Length": str(total),
            },
        )
        response = await self._send("upload", request)
        self._metrics.add_bytes_sent("upload", total)
        data = self._json("upload", response)

        if not isinstance(data, dict):
            raise self._malformed("upload", "Upload succeeded but response could not be parsed.")
        try:
            return UploadReceipt.model_validate(data)
        except ValidationError as e:
            raise self._malformed("upload", "Upload succeeded but response could not be parsed.") from e

    async def run_query(self, query: str) -> QueryResult:
        """POST /api/query with ``{"query": text}``."""
        response = await self._send(
            "run_query",
            self._http.build_request("POST", "/api/query", json={"query": query}),
        )
        data = self._json("run_query", response)

        if not isinstance(data, dict):
            raise self._malformed("run_query", "Expected a query result object.")
        try:
            return QueryResult.model_validate(data)
        except ValidationError as e:
            raise self._malformed("run_query", f"Invalid query result: {e.error_count()} error(s)") from e
